"""Domain layer for onchaincounting."""

_SERVICES = {
    "InvoiceService": "onchaincounting.domain.invoice",
    "ExpenseService": "onchaincounting.domain.expense",
    "WithdrawalService": "onchaincounting.domain.withdrawal",
    "SummaryService": "onchaincounting.domain.summary",
    "OrderSyncService": "onchaincounting.domain.order_sync",
    "BackupService": "onchaincounting.domain.backup",
}

__all__ = list(_SERVICES)


# Services are imported lazily; the database layer imports domain.entities
# and must not pull the services (which import the database layer) with it.
def __getattr__(name):
    if name in _SERVICES:
        from importlib import import_module

        return getattr(import_module(_SERVICES[name]), name)
    raise AttributeError(f"module '{__name__}' has no attribute '{name}'")
