import pytest

from budget_categorizer.database.connection import DatabaseConfig, DatabaseManager, execute_schema
from budget_categorizer.domain.models import Category
from budget_categorizer.repositories.sqlite_category_repository import SQLiteCategoryRepository
from budget_categorizer.repositories.sqlite_rule_repository import SQLiteCategoryRuleRepository
from budget_categorizer.repositories.sqlite_transaction_repository import SQLiteTransactionRepository

@pytest.fixture
def test_db(tmp_path):
    """
    Create a real test database.

    Uses pytest's tmp_path fixture so every test gets a fresh file.
    """
    config = DatabaseConfig(tmp_path / "test.db")
    db_manager = DatabaseManager(config)
    execute_schema(db_manager.get_connection())

    yield db_manager

    db_manager.close()

@pytest.fixture
def sqlite_transactions(test_db) -> SQLiteTransactionRepository:
    return SQLiteTransactionRepository(test_db)

@pytest.fixture
def sqlite_categories(test_db) -> SQLiteCategoryRepository:
    return SQLiteCategoryRepository(test_db)

@pytest.fixture
def sqlite_rules(test_db) -> SQLiteCategoryRuleRepository:
    return SQLiteCategoryRuleRepository(test_db)

@pytest.fixture
def dining(sqlite_categories, owner) -> Category:
    return sqlite_categories.save(Category(owner_id=owner, name="Dining Out"))

@pytest.fixture
def shopping(sqlite_categories, owner) -> Category:
    return sqlite_categories.save(Category(owner_id=owner, name="Shopping"))
