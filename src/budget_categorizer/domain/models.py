from dataclasses import dataclass
from decimal import Decimal
from datetime import date
from typing import Optional
from budget_categorizer.domain.enums import TransactionDirection, CategoryRole

@dataclass
class Transaction:
    """Core domain model representing a single transaction"""
    owner_id: str
    date: date
    description: str
    amount: Decimal
    direction: TransactionDirection
    account: str = ""
    category_id: Optional[int] = None
    id: Optional[int] = None

    def __hash__(self):
        """Hash for duplicate detection"""
        return hash((self.owner_id, self.date, self.description, self.amount, self.account))

    def __repr__(self):
        sign = "+" if self.direction == TransactionDirection.CREDIT else "-"
        return f"Transaction({self.date}, {self.description[:30]}, {sign}${self.amount})"


@dataclass
class Category:
    """A user's spending or income category. Read-only to the categorizer."""
    owner_id: str
    name: str
    role: Optional[CategoryRole] = None
    id: Optional[int] = None


@dataclass
class CategoryRule:
    """
    User-defined rule assigning a category to matching transactions.

    `description_pattern` is a regular expression searched case-insensitively
    in the transaction description. The optional amount and direction
    conditions, and `account_pattern` (a regex searched in the account name),
    narrow the match further when the caller knows those values.
    Higher `priority` is evaluated first.
    """
    owner_id: str
    name: str
    description_pattern: str
    category_id: int
    priority: int = 0
    is_active: bool = True
    amount_min: Optional[Decimal] = None
    amount_max: Optional[Decimal] = None
    direction: Optional[TransactionDirection] = None
    account_pattern: Optional[str] = None
    id: Optional[int] = None

    @property
    def upsert_key(self) -> tuple[str, str, int]:
        """Identity used when rules are written with upsert semantics"""
        return (self.owner_id, self.description_pattern, self.category_id)

    def __repr__(self):
        state = "" if self.is_active else ", inactive"
        return f"CategoryRule({self.name!r}, /{self.description_pattern}/ -> {self.category_id}, p={self.priority}{state})"


@dataclass(frozen=True)
class Suggestion:
    """Ephemeral category proposal shown to a human for confirmation. Never persisted."""
    category_id: int
    confidence: float
    reason: str
