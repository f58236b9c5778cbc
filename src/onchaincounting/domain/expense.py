"""Expense domain service."""

from datetime import datetime
from typing import Optional

import structlog

from onchaincounting.database.base import Database
from onchaincounting.domain.entities import Expense, ExpenseCategory, ExpenseCurrency
from onchaincounting.domain.errors import (
    ConflictError,
    NotFoundError,
    ValidationError,
    duplicate_id,
    expense_not_found,
)
from onchaincounting.utils.date_parser import utcnow
from onchaincounting.utils.ids import generate_id

logger = structlog.get_logger(__name__)


class ExpenseService:
    """Service for managing business expenses."""

    def __init__(self, db: Database):
        """Initialize expense service.

        Args:
            db: Database instance
        """
        self.db = db

    def create_expense(
        self,
        date: datetime,
        category: ExpenseCategory,
        description: str,
        amount: float,
        currency: ExpenseCurrency,
        vat_deductible: bool = False,
        receipt: Optional[str] = None,
        notes: Optional[str] = None,
        expense_id: Optional[str] = None,
    ) -> str:
        """Create an expense.

        Args:
            date: Expense date
            category: Expense category
            description: What was paid for
            amount: Amount in the expense currency
            currency: Expense currency
            vat_deductible: Whether VAT on the expense can be deducted
            receipt: Optional path to the receipt
            notes: Optional notes
            expense_id: Optional explicit ID (generated if not provided)

        Returns:
            Expense ID

        Raises:
            ValidationError: If the amount is negative
            ConflictError: If the ID is already taken
        """
        if amount < 0:
            raise ValidationError("Expense amount must not be negative")

        expense_id = expense_id or generate_id()
        if self.db.get_expense(expense_id) is not None:
            raise ConflictError(duplicate_id("Expense", expense_id))

        now = utcnow()
        expense = Expense(
            id=expense_id,
            date=date,
            category=ExpenseCategory(category),
            description=description,
            amount=amount,
            currency=ExpenseCurrency(currency),
            vat_deductible=vat_deductible,
            receipt=receipt,
            notes=notes,
            created_at=now,
            updated_at=now,
        )
        self.db.add_expense(expense)
        logger.info("expense.created", expense_id=expense_id, category=expense.category.value)
        return expense_id

    def get_expense(self, expense_id: str) -> Optional[Expense]:
        """Get expense by ID."""
        return self.db.get_expense(expense_id)

    def delete_expense(self, expense_id: str) -> None:
        """Delete an expense.

        Raises:
            NotFoundError: If the expense doesn't exist
        """
        if self.db.get_expense(expense_id) is None:
            raise NotFoundError(expense_not_found(expense_id))
        self.db.delete_expense(expense_id)
        logger.info("expense.deleted", expense_id=expense_id)

    def list_expenses(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> list[Expense]:
        """List expenses, optionally restricted to an inclusive date range."""
        return self.db.list_expenses(start=start, end=end)
