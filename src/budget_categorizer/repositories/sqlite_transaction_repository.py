import sqlite3
from datetime import date
from decimal import Decimal
from typing import List, Optional

from budget_categorizer.database.connection import DatabaseManager
from budget_categorizer.domain.models import Transaction
from budget_categorizer.domain.enums import TransactionDirection
from budget_categorizer.repositories.base import (
    TransactionRepository,
    DuplicateTransactionError,
    TransactionNotFoundError,
)

class SQLiteTransactionRepository(TransactionRepository):
    """
    SQLite implementation of the TransactionRepository.

    Handles all database operations for transactions using raw SQL.
    """

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    def save(self, transaction: Transaction) -> Transaction:
        """Save a single transaction."""
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

        with self.db.transaction() as conn:
            transaction.id = self._insert(conn, transaction)

        return transaction

    def save_many(self, transactions: List[Transaction]) -> List[Transaction]:
        """Save multiple transactions in one database transaction, skipping duplicates"""
        saved = []

        with self.db.transaction() as conn:
            for txn in transactions:
                if self.exists(txn.owner_id, txn.date, txn.description, txn.amount, txn.account):
                    continue
                txn.id = self._insert(conn, txn)
                saved.append(txn)

        return saved

    def get_by_id(self, owner_id: str, transaction_id: int) -> Optional[Transaction]:
        """Retrieve a transaction by ID, or None if the owner has no such transaction"""
        conn = self.db.get_connection()
        cursor = conn.execute(
            "SELECT * FROM transactions WHERE id = ? AND owner_id = ?",
            (transaction_id, owner_id)
        )
        row = cursor.fetchone()

        if row is None:
            return None

        return self._row_to_transaction(row)

    def get_all(
            self,
            owner_id: str,
            start_date: Optional[date] = None,
            end_date: Optional[date] = None,
            uncategorized_only: bool = False,
    ) -> List[Transaction]:
        """Retrieve transactions with optional filtering."""
        query = "SELECT * FROM transactions WHERE owner_id = ?"
        params: list = [owner_id]

        if start_date:
            query += " AND date >= ?"
            params.append(start_date)

        if end_date:
            query += " AND date <= ?"
            params.append(end_date)

        if uncategorized_only:
            query += " AND category_id IS NULL"

        query += " ORDER BY date DESC, id DESC"

        conn = self.db.get_connection()
        rows = conn.execute(query, params).fetchall()

        return [self._row_to_transaction(row) for row in rows]

    def get_categorized(self, owner_id: str) -> List[Transaction]:
        """All of the owner's transactions with a category, oldest first."""
        conn = self.db.get_connection()
        rows = conn.execute(
            """
            SELECT * FROM transactions
            WHERE owner_id = ? AND category_id IS NOT NULL
            ORDER BY id
            """,
            (owner_id,)
        ).fetchall()
        return [self._row_to_transaction(row) for row in rows]

    def update_category(
            self,
            owner_id: str,
            transaction_id: int,
            category_id: Optional[int],
    ) -> Transaction:
        """Set or clear the category. This is the only column the categorizer writes."""
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "UPDATE transactions SET category_id = ? WHERE id = ? AND owner_id = ?",
                (category_id, transaction_id, owner_id)
            )

            if cursor.rowcount == 0:
                raise TransactionNotFoundError(
                    f"Transaction with ID {transaction_id} not found"
                )

        return self.get_by_id(owner_id, transaction_id)

    def exists(
            self,
            owner_id: str,
            date: date,
            description: str,
            amount: Decimal,
            account: str,
        ) -> bool:
        """Check if a transaction exists for deduplication"""
        conn = self.db.get_connection()
        cursor = conn.execute(
            """
            SELECT 1 FROM transactions
            WHERE owner_id = ? AND date = ? AND description = ? AND amount = ? AND account = ?
            """,
            (owner_id, date, description, str(amount), account),
        )
        return cursor.fetchone() is not None

    def _insert(self, conn: sqlite3.Connection, txn: Transaction) -> int:
        cursor = conn.execute(
            """
            INSERT INTO transactions (
                owner_id, date, description, amount, direction, account, category_id
            ) VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            (
                txn.owner_id,
                txn.date,
                txn.description,
                str(txn.amount), # Store as string for precision
                txn.direction.value,
                txn.account,
                txn.category_id,
            ),
        )
        return cursor.lastrowid

    def _row_to_transaction(self, row: sqlite3.Row) -> Transaction:
        """Convert database row to Transaction object."""
        return Transaction(
            id=row["id"],
            owner_id=row["owner_id"],
            date=row["date"],
            description=row["description"],
            amount=Decimal(row["amount"]),
            direction=TransactionDirection(row["direction"]),
            account=row["account"],
            category_id=row["category_id"],
        )
