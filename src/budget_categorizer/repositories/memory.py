"""
In-memory repositories.

Useful for tests and for running the categorizer without a database.
The rule store keeps its upsert key as an explicit dict so the
no-duplicate-auto-rules guarantee holds without any storage engine.
"""
from dataclasses import replace
from datetime import date
from decimal import Decimal
from itertools import count
from typing import Dict, List, Optional, Tuple

from budget_categorizer.domain.models import Transaction, Category, CategoryRule
from budget_categorizer.repositories.base import (
    TransactionRepository,
    CategoryRepository,
    CategoryRuleRepository,
    DuplicateTransactionError,
    DuplicateRuleError,
    RuleNotFoundError,
    TransactionNotFoundError,
)


class InMemoryTransactionRepository(TransactionRepository):

    def __init__(self):
        self._rows: Dict[int, Transaction] = {}
        self._ids = count(1)

    def save(self, transaction: Transaction) -> Transaction:
        if self.exists(
            transaction.owner_id,
            transaction.date,
            transaction.description,
            transaction.amount,
            transaction.account,
        ):
            raise DuplicateTransactionError(
                f"Transaction already exists: {transaction.description} ({transaction.amount}) "
                f"on {transaction.date}"
            )
        transaction.id = next(self._ids)
        self._rows[transaction.id] = replace(transaction)
        return transaction

    def save_many(self, transactions: List[Transaction]) -> List[Transaction]:
        saved = []
        for txn in transactions:
            try:
                saved.append(self.save(txn))
            except DuplicateTransactionError:
                continue
        return saved

    def get_by_id(self, owner_id: str, transaction_id: int) -> Optional[Transaction]:
        txn = self._rows.get(transaction_id)
        if txn is None or txn.owner_id != owner_id:
            return None
        return replace(txn)

    def get_all(
        self,
        owner_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        uncategorized_only: bool = False,
    ) -> List[Transaction]:
        rows = [
            txn for txn in self._rows.values()
            if txn.owner_id == owner_id
            and (start_date is None or txn.date >= start_date)
            and (end_date is None or txn.date <= end_date)
            and not (uncategorized_only and txn.category_id is not None)
        ]
        rows.sort(key=lambda t: (t.date, t.id), reverse=True)
        return [replace(txn) for txn in rows]

    def get_categorized(self, owner_id: str) -> List[Transaction]:
        return [
            replace(txn) for txn in self._rows.values()
            if txn.owner_id == owner_id and txn.category_id is not None
        ]

    def update_category(
        self,
        owner_id: str,
        transaction_id: int,
        category_id: Optional[int],
    ) -> Transaction:
        txn = self._rows.get(transaction_id)
        if txn is None or txn.owner_id != owner_id:
            raise TransactionNotFoundError(f"Transaction with ID {transaction_id} not found")
        txn.category_id = category_id
        return replace(txn)

    def exists(
        self,
        owner_id: str,
        date: date,
        description: str,
        amount: Decimal,
        account: str,
    ) -> bool:
        return any(
            txn.owner_id == owner_id
            and txn.date == date
            and txn.description == description
            and txn.amount == amount
            and txn.account == account
            for txn in self._rows.values()
        )


class InMemoryCategoryRepository(CategoryRepository):

    def __init__(self):
        self._rows: Dict[int, Category] = {}
        self._ids = count(1)

    def save(self, category: Category) -> Category:
        category.id = next(self._ids)
        self._rows[category.id] = replace(category)
        return category

    def get_all(self, owner_id: str) -> List[Category]:
        rows = [c for c in self._rows.values() if c.owner_id == owner_id]
        return [replace(c) for c in sorted(rows, key=lambda c: c.name.casefold())]

    def get_by_name(self, owner_id: str, name: str) -> Optional[Category]:
        for category in self._rows.values():
            if category.owner_id == owner_id and category.name.casefold() == name.casefold():
                return replace(category)
        return None


RuleKey = Tuple[str, str, int]


class InMemoryCategoryRuleRepository(CategoryRuleRepository):
    """Rules held in a dict keyed by (owner_id, description_pattern, category_id)."""

    def __init__(self):
        self._by_key: Dict[RuleKey, CategoryRule] = {}
        self._ids = count(1)

    def create(self, rule: CategoryRule) -> CategoryRule:
        if rule.upsert_key in self._by_key:
            raise DuplicateRuleError(
                f"A rule for pattern {rule.description_pattern!r} and category "
                f"{rule.category_id} already exists"
            )
        rule.id = next(self._ids)
        self._by_key[rule.upsert_key] = replace(rule)
        return rule

    def upsert(self, rule: CategoryRule) -> CategoryRule:
        existing = self._by_key.get(rule.upsert_key)
        stored = replace(rule, id=existing.id if existing else next(self._ids))
        self._by_key[rule.upsert_key] = stored
        return replace(stored)

    def get_by_id(self, owner_id: str, rule_id: int) -> Optional[CategoryRule]:
        for rule in self._by_key.values():
            if rule.id == rule_id and rule.owner_id == owner_id:
                return replace(rule)
        return None

    def get_all(self, owner_id: str) -> List[CategoryRule]:
        rules = [r for r in self._by_key.values() if r.owner_id == owner_id]
        rules.sort(key=lambda r: (-r.priority, r.id))
        return [replace(r) for r in rules]

    def get_active(self, owner_id: str) -> List[CategoryRule]:
        return [r for r in self.get_all(owner_id) if r.is_active]

    def update(self, rule: CategoryRule) -> CategoryRule:
        if rule.id is None:
            raise ValueError("Cannot update rule without ID")

        current = self.get_by_id(rule.owner_id, rule.id)
        if current is None:
            raise RuleNotFoundError(f"Rule with ID {rule.id} not found")

        other = self._by_key.get(rule.upsert_key)
        if other is not None and other.id != rule.id:
            raise DuplicateRuleError(
                f"A rule for pattern {rule.description_pattern!r} and category "
                f"{rule.category_id} already exists"
            )

        del self._by_key[current.upsert_key]
        self._by_key[rule.upsert_key] = replace(rule)
        return rule

    def delete(self, owner_id: str, rule_id: int) -> bool:
        rule = self.get_by_id(owner_id, rule_id)
        if rule is None:
            return False
        del self._by_key[rule.upsert_key]
        return True
