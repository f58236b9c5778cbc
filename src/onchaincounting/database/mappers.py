"""Mapper functions to convert between domain models and SQLAlchemy models.

This layer isolates the conversion logic, so enum values and nested
settlement entries are translated in one place.
"""

from onchaincounting.domain import entities as domain
from onchaincounting.database.models import (
    Invoice as ORMInvoice,
    Expense as ORMExpense,
    Withdrawal as ORMWithdrawal,
    Order as ORMOrder,
    MonthSummary as ORMMonthSummary,
    YearSummary as ORMYearSummary,
)


def invoice_to_domain(orm_invoice: ORMInvoice) -> domain.Invoice:
    """Convert SQLAlchemy Invoice model to domain Invoice entity."""
    return domain.Invoice(
        id=orm_invoice.id,
        date=orm_invoice.date,
        invoice_number=orm_invoice.invoice_number,
        client_name=orm_invoice.client_name,
        currency=domain.Currency(orm_invoice.currency),
        before_tax_amount=orm_invoice.before_tax_amount,
        after_tax_amount=orm_invoice.after_tax_amount,
        vat_rate=orm_invoice.vat_rate,
        vat_amount=orm_invoice.vat_amount,
        exchange_rate=orm_invoice.exchange_rate,
        before_tax_eur_amount=orm_invoice.before_tax_eur_amount,
        after_tax_eur_amount=orm_invoice.after_tax_eur_amount,
        vat_eur_amount=orm_invoice.vat_eur_amount,
        crypto_payments=tuple(
            domain.CryptoPayment(
                amount=payment["amount"],
                currency=domain.CryptoCurrency(payment["currency"]),
                network=domain.BlockchainNetwork(payment["network"]),
            )
            for payment in (orm_invoice.crypto_payments or [])
        ),
        pdf_path=orm_invoice.pdf_path,
        notes=orm_invoice.notes,
        created_at=orm_invoice.created_at,
        updated_at=orm_invoice.updated_at,
    )


def invoice_to_orm(invoice: domain.Invoice) -> ORMInvoice:
    """Convert domain Invoice entity to a SQLAlchemy Invoice model."""
    return ORMInvoice(
        id=invoice.id,
        date=invoice.date,
        invoice_number=invoice.invoice_number,
        client_name=invoice.client_name,
        currency=invoice.currency.value,
        before_tax_amount=invoice.before_tax_amount,
        after_tax_amount=invoice.after_tax_amount,
        vat_rate=invoice.vat_rate,
        vat_amount=invoice.vat_amount,
        exchange_rate=invoice.exchange_rate,
        before_tax_eur_amount=invoice.before_tax_eur_amount,
        after_tax_eur_amount=invoice.after_tax_eur_amount,
        vat_eur_amount=invoice.vat_eur_amount,
        crypto_payments=[
            {
                "amount": payment.amount,
                "currency": payment.currency.value,
                "network": payment.network.value,
            }
            for payment in invoice.crypto_payments
        ],
        pdf_path=invoice.pdf_path,
        notes=invoice.notes,
        created_at=invoice.created_at,
        updated_at=invoice.updated_at,
    )


def expense_to_domain(orm_expense: ORMExpense) -> domain.Expense:
    """Convert SQLAlchemy Expense model to domain Expense entity."""
    return domain.Expense(
        id=orm_expense.id,
        date=orm_expense.date,
        category=domain.ExpenseCategory(orm_expense.category),
        description=orm_expense.description,
        amount=orm_expense.amount,
        currency=domain.ExpenseCurrency(orm_expense.currency),
        vat_deductible=orm_expense.vat_deductible,
        receipt=orm_expense.receipt,
        notes=orm_expense.notes,
        created_at=orm_expense.created_at,
        updated_at=orm_expense.updated_at,
    )


def expense_to_orm(expense: domain.Expense) -> ORMExpense:
    """Convert domain Expense entity to a SQLAlchemy Expense model."""
    return ORMExpense(
        id=expense.id,
        date=expense.date,
        category=expense.category.value,
        description=expense.description,
        amount=expense.amount,
        currency=expense.currency.value,
        vat_deductible=expense.vat_deductible,
        receipt=expense.receipt,
        notes=expense.notes,
        created_at=expense.created_at,
        updated_at=expense.updated_at,
    )


def withdrawal_to_domain(orm_withdrawal: ORMWithdrawal) -> domain.Withdrawal:
    """Convert SQLAlchemy Withdrawal model to domain Withdrawal entity."""
    return domain.Withdrawal(
        id=orm_withdrawal.id,
        date=orm_withdrawal.date,
        source_amount=orm_withdrawal.source_amount,
        source_currency=domain.CryptoCurrency(orm_withdrawal.source_currency),
        source_network=domain.BlockchainNetwork(orm_withdrawal.source_network),
        target_amount=orm_withdrawal.target_amount,
        exchange_rate=orm_withdrawal.exchange_rate,
        status=domain.WithdrawalStatus(orm_withdrawal.status),
        monerium_reference=orm_withdrawal.monerium_reference,
        transaction_hash=orm_withdrawal.transaction_hash,
        notes=orm_withdrawal.notes,
        created_at=orm_withdrawal.created_at,
        updated_at=orm_withdrawal.updated_at,
    )


def withdrawal_to_orm(withdrawal: domain.Withdrawal) -> ORMWithdrawal:
    """Convert domain Withdrawal entity to a SQLAlchemy Withdrawal model."""
    return ORMWithdrawal(
        id=withdrawal.id,
        date=withdrawal.date,
        source_amount=withdrawal.source_amount,
        source_currency=withdrawal.source_currency.value,
        source_network=withdrawal.source_network.value,
        target_amount=withdrawal.target_amount,
        exchange_rate=withdrawal.exchange_rate,
        status=withdrawal.status.value,
        monerium_reference=withdrawal.monerium_reference,
        transaction_hash=withdrawal.transaction_hash,
        notes=withdrawal.notes,
        created_at=withdrawal.created_at,
        updated_at=withdrawal.updated_at,
    )


def order_to_domain(orm_order: ORMOrder) -> domain.Order:
    """Convert SQLAlchemy Order model to domain Order entity."""
    return domain.Order(
        id=orm_order.id,
        kind=domain.OrderKind(orm_order.kind),
        amount=orm_order.amount,
        currency=orm_order.currency,
        counterpart_standard=domain.PaymentStandard(orm_order.counterpart_standard),
        counterpart_identifier=orm_order.counterpart_identifier,
        counterpart_name=orm_order.counterpart_name,
        state=domain.OrderState(orm_order.state),
        placed_at=orm_order.placed_at,
        approved_at=orm_order.approved_at,
        processed_at=orm_order.processed_at,
        address=orm_order.address,
        chain=orm_order.chain,
        memo=orm_order.memo,
        last_synced=orm_order.last_synced,
    )


def order_to_orm(order: domain.Order) -> ORMOrder:
    """Convert domain Order entity to a SQLAlchemy Order model."""
    return ORMOrder(
        id=order.id,
        kind=order.kind.value,
        amount=order.amount,
        currency=order.currency,
        counterpart_standard=order.counterpart_standard.value,
        counterpart_identifier=order.counterpart_identifier,
        counterpart_name=order.counterpart_name,
        state=order.state.value,
        placed_at=order.placed_at,
        approved_at=order.approved_at,
        processed_at=order.processed_at,
        address=order.address,
        chain=order.chain,
        memo=order.memo,
        last_synced=order.last_synced,
    )


def month_summary_to_domain(orm_summary: ORMMonthSummary) -> domain.MonthSummaryRecord:
    """Convert SQLAlchemy MonthSummary model to a domain snapshot."""
    return domain.MonthSummaryRecord(
        year=orm_summary.year,
        month=orm_summary.month,
        total_invoiced_usd=orm_summary.total_invoiced_usd,
        total_invoiced_chf=orm_summary.total_invoiced_chf,
        total_invoiced_eur=orm_summary.total_invoiced_eur,
        total_vat_collected_eur=orm_summary.total_vat_collected_eur,
        total_expenses_eur=orm_summary.total_expenses_eur,
        total_withdrawals_eur=orm_summary.total_withdrawals_eur,
        profit_loss_eur=orm_summary.profit_loss_eur,
    )


def month_summary_to_orm(record: domain.MonthSummaryRecord) -> ORMMonthSummary:
    """Convert a domain month snapshot to a SQLAlchemy MonthSummary model."""
    return ORMMonthSummary(
        year=record.year,
        month=record.month,
        total_invoiced_usd=record.total_invoiced_usd,
        total_invoiced_chf=record.total_invoiced_chf,
        total_invoiced_eur=record.total_invoiced_eur,
        total_vat_collected_eur=record.total_vat_collected_eur,
        total_expenses_eur=record.total_expenses_eur,
        total_withdrawals_eur=record.total_withdrawals_eur,
        profit_loss_eur=record.profit_loss_eur,
    )


def year_summary_to_domain(orm_summary: ORMYearSummary) -> domain.YearSummaryRecord:
    """Convert SQLAlchemy YearSummary model to a domain snapshot."""
    return domain.YearSummaryRecord(
        year=orm_summary.year,
        total_invoiced_usd=orm_summary.total_invoiced_usd,
        total_invoiced_chf=orm_summary.total_invoiced_chf,
        total_invoiced_eur=orm_summary.total_invoiced_eur,
        total_vat_collected_eur=orm_summary.total_vat_collected_eur,
        total_expenses_eur=orm_summary.total_expenses_eur,
        total_withdrawals_eur=orm_summary.total_withdrawals_eur,
        profit_loss_eur=orm_summary.profit_loss_eur,
    )


def year_summary_to_orm(record: domain.YearSummaryRecord) -> ORMYearSummary:
    """Convert a domain year snapshot to a SQLAlchemy YearSummary model."""
    return ORMYearSummary(
        year=record.year,
        total_invoiced_usd=record.total_invoiced_usd,
        total_invoiced_chf=record.total_invoiced_chf,
        total_invoiced_eur=record.total_invoiced_eur,
        total_vat_collected_eur=record.total_vat_collected_eur,
        total_expenses_eur=record.total_expenses_eur,
        total_withdrawals_eur=record.total_withdrawals_eur,
        profit_loss_eur=record.profit_loss_eur,
    )
