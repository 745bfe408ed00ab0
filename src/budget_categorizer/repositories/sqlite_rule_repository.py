import sqlite3
from decimal import Decimal
from typing import List, Optional

from budget_categorizer.database.connection import DatabaseManager
from budget_categorizer.domain.enums import TransactionDirection
from budget_categorizer.domain.models import CategoryRule
from budget_categorizer.repositories.base import (
    CategoryRuleRepository,
    DuplicateRuleError,
    RuleNotFoundError,
)

# Evaluation order: priority first, creation order on ties
ORDER_BY = " ORDER BY priority DESC, id ASC"

class SQLiteCategoryRuleRepository(CategoryRuleRepository):
    """
    SQLite implementation of the CategoryRuleRepository.

    Upserts rely on the unique index over
    (owner_id, description_pattern, category_id); concurrent writers of the
    same key end up with one row, last writer wins.
    """

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    def create(self, rule: CategoryRule) -> CategoryRule:
        if self._find_id(rule) is not None:
            raise DuplicateRuleError(
                f"A rule for pattern {rule.description_pattern!r} and category "
                f"{rule.category_id} already exists"
            )

        with self.db.transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO category_rules (
                    owner_id, name, description_pattern, category_id,
                    priority, is_active, amount_min, amount_max, direction, account_pattern
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                self._params(rule),
            )
            rule.id = cursor.lastrowid

        return rule

    def upsert(self, rule: CategoryRule) -> CategoryRule:
        with self.db.transaction() as conn:
            conn.execute(
                """
                INSERT INTO category_rules (
                    owner_id, name, description_pattern, category_id,
                    priority, is_active, amount_min, amount_max, direction, account_pattern
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                ON CONFLICT (owner_id, description_pattern, category_id) DO UPDATE SET
                    name = excluded.name,
                    priority = excluded.priority,
                    is_active = excluded.is_active,
                    amount_min = excluded.amount_min,
                    amount_max = excluded.amount_max,
                    direction = excluded.direction,
                    account_pattern = excluded.account_pattern,
                    updated_at = CURRENT_TIMESTAMP
                """,
                self._params(rule),
            )

        rule.id = self._find_id(rule)
        return rule

    def get_by_id(self, owner_id: str, rule_id: int) -> Optional[CategoryRule]:
        conn = self.db.get_connection()
        row = conn.execute(
            "SELECT * FROM category_rules WHERE id = ? AND owner_id = ?",
            (rule_id, owner_id)
        ).fetchone()
        return self._row_to_rule(row) if row else None

    def get_all(self, owner_id: str) -> List[CategoryRule]:
        conn = self.db.get_connection()
        rows = conn.execute(
            "SELECT * FROM category_rules WHERE owner_id = ?" + ORDER_BY,
            (owner_id,)
        ).fetchall()
        return [self._row_to_rule(row) for row in rows]

    def get_active(self, owner_id: str) -> List[CategoryRule]:
        conn = self.db.get_connection()
        rows = conn.execute(
            "SELECT * FROM category_rules WHERE owner_id = ? AND is_active = 1" + ORDER_BY,
            (owner_id,)
        ).fetchall()
        return [self._row_to_rule(row) for row in rows]

    def update(self, rule: CategoryRule) -> CategoryRule:
        if rule.id is None:
            raise ValueError("Cannot update rule without ID")

        other_id = self._find_id(rule)
        if other_id is not None and other_id != rule.id:
            raise DuplicateRuleError(
                f"A rule for pattern {rule.description_pattern!r} and category "
                f"{rule.category_id} already exists"
            )

        with self.db.transaction() as conn:
            cursor = conn.execute(
                """
                UPDATE category_rules
                SET name = ?, description_pattern = ?, category_id = ?,
                    priority = ?, is_active = ?, amount_min = ?, amount_max = ?,
                    direction = ?, account_pattern = ?, updated_at = CURRENT_TIMESTAMP
                WHERE id = ? AND owner_id = ?
                """,
                self._params(rule)[1:] + (rule.id, rule.owner_id),
            )

            if cursor.rowcount == 0:
                raise RuleNotFoundError(f"Rule with ID {rule.id} not found")

        return rule

    def delete(self, owner_id: str, rule_id: int) -> bool:
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM category_rules WHERE id = ? AND owner_id = ?",
                (rule_id, owner_id)
            )
            return cursor.rowcount > 0

    def _find_id(self, rule: CategoryRule) -> Optional[int]:
        conn = self.db.get_connection()
        row = conn.execute(
            """
            SELECT id FROM category_rules
            WHERE owner_id = ? AND description_pattern = ? AND category_id = ?
            """,
            rule.upsert_key,
        ).fetchone()
        return row["id"] if row else None

    def _params(self, rule: CategoryRule) -> tuple:
        return (
            rule.owner_id,
            rule.name,
            rule.description_pattern,
            rule.category_id,
            rule.priority,
            int(rule.is_active),
            str(rule.amount_min) if rule.amount_min is not None else None,
            str(rule.amount_max) if rule.amount_max is not None else None,
            rule.direction.value if rule.direction else None,
            rule.account_pattern,
        )

    def _row_to_rule(self, row: sqlite3.Row) -> CategoryRule:
        """Convert database row to CategoryRule object."""
        return CategoryRule(
            id=row["id"],
            owner_id=row["owner_id"],
            name=row["name"],
            description_pattern=row["description_pattern"],
            category_id=row["category_id"],
            priority=row["priority"],
            is_active=bool(row["is_active"]),
            amount_min=Decimal(row["amount_min"]) if row["amount_min"] is not None else None,
            amount_max=Decimal(row["amount_max"]) if row["amount_max"] is not None else None,
            direction=TransactionDirection(row["direction"]) if row["direction"] else None,
            account_pattern=row["account_pattern"],
        )
