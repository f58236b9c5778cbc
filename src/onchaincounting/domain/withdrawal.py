"""Withdrawal domain service."""

from dataclasses import replace
from datetime import datetime
from typing import Optional

import structlog

from onchaincounting.database.base import Database
from onchaincounting.domain.entities import (
    BlockchainNetwork,
    CryptoCurrency,
    Withdrawal,
    WithdrawalStatus,
)
from onchaincounting.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    duplicate_id,
    withdrawal_not_found,
)
from onchaincounting.utils.date_parser import utcnow
from onchaincounting.utils.ids import generate_id

logger = structlog.get_logger(__name__)


class WithdrawalService:
    """Service for managing withdrawals."""

    def __init__(self, db: Database):
        """Initialize withdrawal service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_withdrawal(
        self,
        date: datetime,
        source_amount: float,
        source_currency: CryptoCurrency,
        source_network: BlockchainNetwork,
        target_amount: float,
        status: WithdrawalStatus = WithdrawalStatus.PENDING,
        exchange_rate: Optional[float] = None,
        monerium_reference: Optional[str] = None,
        transaction_hash: Optional[str] = None,
        notes: Optional[str] = None,
        withdrawal_id: Optional[str] = None,
    ) -> str:
        """Create a withdrawal.

        Args:
            date: Withdrawal date
            source_amount: Amount of tokens withdrawn
            source_currency: Token withdrawn
            source_network: Network the tokens left from
            target_amount: EUR received
            status: Withdrawal status
            exchange_rate: EUR per token; derived from the amounts if not provided
            monerium_reference: Optional payment institution reference
            transaction_hash: Optional on-chain transaction hash
            notes: Optional notes
            withdrawal_id: Optional explicit ID (generated if not provided)

        Returns:
            Withdrawal ID

        Raises:
            ValidationError: If amounts are not positive
            ConflictError: If the ID is already taken
        """
        if source_amount <= 0:
            raise ValidationError("Source amount must be positive")
        if target_amount < 0:
            raise ValidationError("Target amount must not be negative")

        withdrawal_id = withdrawal_id or generate_id()
        if self.db.get_withdrawal(withdrawal_id) is not None:
            raise ConflictError(duplicate_id("Withdrawal", withdrawal_id))

        if exchange_rate is None:
            exchange_rate = target_amount / source_amount

        now = utcnow()
        withdrawal = Withdrawal(
            id=withdrawal_id,
            date=date,
            source_amount=source_amount,
            source_currency=CryptoCurrency(source_currency),
            source_network=BlockchainNetwork(source_network),
            target_amount=target_amount,
            exchange_rate=exchange_rate,
            status=WithdrawalStatus(status),
            monerium_reference=monerium_reference,
            transaction_hash=transaction_hash,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        self.db.add_withdrawal(withdrawal)
        logger.info("withdrawal.created", withdrawal_id=withdrawal_id)
        return withdrawal_id

    def get_withdrawal(self, withdrawal_id: str) -> Optional[Withdrawal]:
        """Get withdrawal by ID."""
        return self.db.get_withdrawal(withdrawal_id)

    def update_status(self, withdrawal_id: str, status: WithdrawalStatus) -> Withdrawal:
        """Change the status of a withdrawal.

        Raises:
            NotFoundError: If the withdrawal doesn't exist
        """
        withdrawal = self.db.get_withdrawal(withdrawal_id)
        if withdrawal is None:
            raise NotFoundError(withdrawal_not_found(withdrawal_id))

        updated = replace(withdrawal, status=WithdrawalStatus(status), updated_at=utcnow())
        self.db.replace_withdrawal(updated)
        logger.info("withdrawal.status_changed", withdrawal_id=withdrawal_id, status=updated.status.value)
        return updated

    def delete_withdrawal(self, withdrawal_id: str) -> None:
        """Delete a withdrawal.

        Raises:
            NotFoundError: If the withdrawal doesn't exist
        """
        if self.db.get_withdrawal(withdrawal_id) is None:
            raise NotFoundError(withdrawal_not_found(withdrawal_id))
        self.db.delete_withdrawal(withdrawal_id)
        logger.info("withdrawal.deleted", withdrawal_id=withdrawal_id)

    def list_withdrawals(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> list[Withdrawal]:
        """List withdrawals, optionally restricted to an inclusive date range."""
        return self.db.list_withdrawals(start=start, end=end)
