"""Local mirror of payment institution orders."""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional, Protocol

import structlog

from onchaincounting.database.base import Database
from onchaincounting.domain.aggregator import order_effective_date, storage_year_range
from onchaincounting.domain.entities import Order, OrderKind, PaymentStandard, SyncStatus
from onchaincounting.domain.errors import SyncError
from onchaincounting.utils.date_parser import parse_timestamp, utcnow

logger = structlog.get_logger(__name__)

LAST_SYNC_KEY = "monerium_last_sync"


class OrderSource(Protocol):
    """Anything that can list the remote orders."""

    def get_orders(self) -> list[Order]: ...


@dataclass(frozen=True)
class MonthOrderGroup:
    """Orders of one month, newest first."""

    year: int
    month: int
    orders: tuple[Order, ...]


@dataclass(frozen=True)
class RefreshResult:
    """Outcome of a refresh attempt."""

    orders: tuple[Order, ...]
    offline: bool
    error: Optional[str] = None


def filter_orders(
    orders: Iterable[Order],
    direction: Optional[OrderKind] = None,
    standard: Optional[PaymentStandard] = None,
) -> list[Order]:
    """Keep orders matching a direction and a counterpart standard (None = any)."""
    return [
        order
        for order in orders
        if (direction is None or order.kind == direction)
        and (standard is None or order.counterpart_standard == standard)
    ]


def group_orders_by_month(orders: Iterable[Order]) -> list[MonthOrderGroup]:
    """Group orders by the year and month of their effective date, newest first."""
    buckets: dict[tuple[int, int], list[Order]] = {}
    for order in orders:
        effective = order_effective_date(order)
        buckets.setdefault((effective.year, effective.month), []).append(order)

    return [
        MonthOrderGroup(
            year=year,
            month=month,
            orders=tuple(sorted(buckets[(year, month)], key=order_effective_date, reverse=True)),
        )
        for year, month in sorted(buckets, reverse=True)
    ]


class OrderSyncService:
    """Service for mirroring remote orders into local storage."""

    def __init__(self, db: Database):
        """Initialize order sync service.

        Args:
            db: Database instance
        """
        self.db = db

    def sync_orders(self, orders: Sequence[Order]) -> datetime:
        """Upsert orders by ID, stamping all of them with one sync time.

        Returns:
            The sync timestamp
        """
        now = utcnow()
        self.db.upsert_orders([replace(order, last_synced=now) for order in orders])
        self.db.set_sync_value(LAST_SYNC_KEY, now.isoformat())
        logger.info("orders.synced", count=len(orders))
        return now

    def get_sync_status(self) -> SyncStatus:
        """Report when the mirror was last synced and whether it holds data."""
        return SyncStatus(
            last_synced=parse_timestamp(self.db.get_sync_value(LAST_SYNC_KEY)),
            has_local_data=self.db.count_orders() > 0,
        )

    def list_orders(
        self,
        year: Optional[int] = None,
        direction: Optional[OrderKind] = None,
        standard: Optional[PaymentStandard] = None,
    ) -> list[Order]:
        """List mirrored orders, newest first."""
        if year is None:
            orders = self.db.list_orders()
        else:
            start, end = storage_year_range(year)
            orders = self.db.list_orders(start=start, end=end)
        return filter_orders(orders, direction=direction, standard=standard)

    def refresh(self, client: OrderSource) -> list[Order]:
        """Fetch orders from the remote side and sync them.

        Raises:
            SyncError: If the remote side could not be read; the local mirror
                is left untouched
        """
        orders = client.get_orders()
        self.sync_orders(orders)
        return self.list_orders()

    def refresh_or_local(self, client: Optional[OrderSource]) -> RefreshResult:
        """Refresh, falling back to the local mirror when the remote side fails."""
        if client is None:
            return RefreshResult(orders=tuple(self.list_orders()), offline=True)
        try:
            return RefreshResult(orders=tuple(self.refresh(client)), offline=False)
        except SyncError as e:
            logger.warning("orders.offline_fallback", error=str(e))
            return RefreshResult(orders=tuple(self.list_orders()), offline=True, error=str(e))
