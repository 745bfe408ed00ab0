#!/usr/bin/env python3
"""
Initialize the budget categorizer database.

Run this script to create the database schema and default categories
for one owner.
"""
import sys

from budget_categorizer.database.connection import DatabaseConfig, DatabaseManager, execute_schema, SCHEMA_PATH
from budget_categorizer.repositories.sqlite_category_repository import SQLiteCategoryRepository
from budget_categorizer.repositories.sqlite_rule_repository import SQLiteCategoryRuleRepository
from budget_categorizer.repositories.sqlite_transaction_repository import SQLiteTransactionRepository
from budget_categorizer.services.categorization_service import CategorizationService

def main():
    """Initialize the database."""
    owner = sys.argv[1] if len(sys.argv) > 1 else "default"

    config = DatabaseConfig()
    print(f"Initializing database at: {config.db_path}")

    with DatabaseManager(config) as db:
        conn = db.get_connection()

        print(f"Executing schema from: {SCHEMA_PATH}")
        execute_schema(conn)

        row = conn.execute(
            "SELECT version, description FROM schema_version ORDER BY version DESC LIMIT 1"
        ).fetchone()

        if not row:
            print("✗ Database initialization may have failed")
            return

        print(f"✓ Database initialized successfully!")
        print(f"  Schema version: {row['version']}")
        print(f"  Description: {row['description']}")

        service = CategorizationService(
            transactions=SQLiteTransactionRepository(db),
            categories=SQLiteCategoryRepository(db),
            rules=SQLiteCategoryRuleRepository(db),
        )
        created = service.ensure_default_categories(owner)
        print(f"  Default categories created for {owner}: {len(created)}")

if __name__ == "__main__":
    main()
