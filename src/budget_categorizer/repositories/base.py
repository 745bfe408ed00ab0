from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import List, Optional

from budget_categorizer.domain.models import Transaction, Category, CategoryRule

class DuplicateTransactionError(Exception):
    """Raised when attempting to save a duplicate transaction."""
    pass

class TransactionNotFoundError(Exception):
    """Raised when a transaction cannot be found."""
    pass

class DuplicateRuleError(Exception):
    """Raised when a rule with the same owner, pattern and category exists."""
    pass

class RuleNotFoundError(Exception):
    """Raised when a rule cannot be found for the owner."""
    pass

class TransactionRepository(ABC):
    """
    Abstract repository for transaction persistence.

    Every method is scoped by owner. The categorizer only ever reads
    transactions and writes their category.
    """

    @abstractmethod
    def save(self, transaction: Transaction) -> Transaction:
        """
        Save a transaction to the repository.

        Args:
            transaction: Transaction to save

        Returns:
            Transaction with ID populated

        Raises:
            DuplicateTransactionError: If transaction already exists
        """
        pass

    @abstractmethod
    def save_many(self, transactions: List[Transaction]) -> List[Transaction]:
        """
        Save multiple transactions, silently skipping duplicates.

        Args:
            transactions: List of transactions to save.

        Returns:
            List of saved transactions with IDs
        """
        pass

    @abstractmethod
    def get_by_id(self, owner_id: str, transaction_id: int) -> Optional[Transaction]:
        """
        Retrieve one of the owner's transactions by ID.

        Returns:
            Transaction if found, None otherwise
        """
        pass

    @abstractmethod
    def get_all(
        self,
        owner_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        uncategorized_only: bool = False,
    ) -> List[Transaction]:
        """
        Retrieve the owner's transactions with optional filtering.

        Args:
            owner_id: Owning user
            start_date: Filter transactions on or after this date
            end_date: Filter transactions on or before this date
            uncategorized_only: Only transactions without a category

        Returns:
            List of matching transactions, newest first
        """
        pass

    @abstractmethod
    def get_categorized(self, owner_id: str) -> List[Transaction]:
        """Retrieve all of the owner's transactions that have a category."""
        pass

    @abstractmethod
    def update_category(
        self,
        owner_id: str,
        transaction_id: int,
        category_id: Optional[int],
    ) -> Transaction:
        """
        Set or clear a transaction's category.

        Returns:
            Updated transaction

        Raises:
            TransactionNotFoundError: If the owner has no such transaction
        """
        pass

    @abstractmethod
    def exists(
        self,
        owner_id: str,
        date: date,
        description: str,
        amount: Decimal,
        account: str,
    ) -> bool:
        """
        Check if a transaction already exists.

        Used for deduplication during imports.
        """
        pass


class CategoryRepository(ABC):
    """Abstract repository for categories. Read-only to the categorizer."""

    @abstractmethod
    def save(self, category: Category) -> Category:
        """Save a category and populate its ID."""
        pass

    @abstractmethod
    def get_all(self, owner_id: str) -> List[Category]:
        """Retrieve all of the owner's categories ordered by name."""
        pass

    @abstractmethod
    def get_by_name(self, owner_id: str, name: str) -> Optional[Category]:
        """Case-insensitive lookup by display name."""
        pass


class CategoryRuleRepository(ABC):
    """
    Abstract repository for categorization rules.

    Rules are identified for upserts by (owner_id, description_pattern,
    category_id). Reads always return rules in evaluation order: priority
    descending, then creation order.
    """

    @abstractmethod
    def create(self, rule: CategoryRule) -> CategoryRule:
        """
        Insert a new rule.

        Raises:
            DuplicateRuleError: If a rule with the same upsert key exists
        """
        pass

    @abstractmethod
    def upsert(self, rule: CategoryRule) -> CategoryRule:
        """
        Insert a rule or overwrite the one sharing its upsert key.

        Returns:
            The stored rule with ID populated
        """
        pass

    @abstractmethod
    def get_by_id(self, owner_id: str, rule_id: int) -> Optional[CategoryRule]:
        pass

    @abstractmethod
    def get_all(self, owner_id: str) -> List[CategoryRule]:
        """All of the owner's rules, active or not, in evaluation order."""
        pass

    @abstractmethod
    def get_active(self, owner_id: str) -> List[CategoryRule]:
        """The owner's active rules in evaluation order."""
        pass

    @abstractmethod
    def update(self, rule: CategoryRule) -> CategoryRule:
        """
        Update an existing rule.

        Raises:
            RuleNotFoundError: If the owner has no rule with this ID
            DuplicateRuleError: If the change collides with another rule's key
        """
        pass

    @abstractmethod
    def delete(self, owner_id: str, rule_id: int) -> bool:
        """
        Delete one of the owner's rules.

        Returns:
            True if deleted, False if not found
        """
        pass
