import sqlite3
from typing import List, Optional

from budget_categorizer.database.connection import DatabaseManager
from budget_categorizer.domain.enums import CategoryRole
from budget_categorizer.domain.models import Category
from budget_categorizer.repositories.base import CategoryRepository

class SQLiteCategoryRepository(CategoryRepository):
    """SQLite implementation of the CategoryRepository."""

    def __init__(self, db_manager: DatabaseManager):
        self.db = db_manager

    def save(self, category: Category) -> Category:
        with self.db.transaction() as conn:
            cursor = conn.execute(
                "INSERT INTO categories (owner_id, name, role) VALUES (?, ?, ?)",
                (
                    category.owner_id,
                    category.name,
                    category.role.value if category.role else None,
                ),
            )
            category.id = cursor.lastrowid
        return category

    def get_all(self, owner_id: str) -> List[Category]:
        conn = self.db.get_connection()
        rows = conn.execute(
            "SELECT * FROM categories WHERE owner_id = ? ORDER BY name COLLATE NOCASE",
            (owner_id,)
        ).fetchall()
        return [self._row_to_category(row) for row in rows]

    def get_by_name(self, owner_id: str, name: str) -> Optional[Category]:
        conn = self.db.get_connection()
        row = conn.execute(
            "SELECT * FROM categories WHERE owner_id = ? AND name = ? COLLATE NOCASE",
            (owner_id, name)
        ).fetchone()
        return self._row_to_category(row) if row else None

    def _row_to_category(self, row: sqlite3.Row) -> Category:
        return Category(
            id=row["id"],
            owner_id=row["owner_id"],
            name=row["name"],
            role=CategoryRole(row["role"]) if row["role"] else None,
        )
