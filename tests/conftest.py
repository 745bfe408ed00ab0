import pytest
from datetime import date, timedelta
from decimal import Decimal
from typing import Callable, Optional

from budget_categorizer.categorization.patterns import safe_compile
from budget_categorizer.config.settings import CategorizationSettings
from budget_categorizer.domain.enums import TransactionDirection
from budget_categorizer.domain.models import Transaction
from budget_categorizer.repositories.memory import (
    InMemoryCategoryRepository,
    InMemoryCategoryRuleRepository,
    InMemoryTransactionRepository,
)

OWNER = "user-1"
OTHER_OWNER = "user-2"

@pytest.fixture(autouse=True)
def fresh_pattern_cache():
    """Invalid-pattern warnings are emitted once per cached pattern"""
    safe_compile.cache_clear()
    yield

@pytest.fixture
def owner() -> str:
    return OWNER

@pytest.fixture
def settings() -> CategorizationSettings:
    """Default tuning constants, without touching config files"""
    return CategorizationSettings()

@pytest.fixture
def transaction_repo() -> InMemoryTransactionRepository:
    return InMemoryTransactionRepository()

@pytest.fixture
def category_repo() -> InMemoryCategoryRepository:
    return InMemoryCategoryRepository()

@pytest.fixture
def rule_repo() -> InMemoryCategoryRuleRepository:
    return InMemoryCategoryRuleRepository()

@pytest.fixture
def make_transaction() -> Callable[..., Transaction]:
    """
    Factory for transactions with unique dates so duplicate detection
    never kicks in unless a test asks for it.
    """
    counter = {"n": 0}

    def _make(
        description: str,
        category_id: Optional[int] = None,
        owner_id: str = OWNER,
        amount: str = "10.00",
        direction: TransactionDirection = TransactionDirection.DEBIT,
    ) -> Transaction:
        counter["n"] += 1
        return Transaction(
            owner_id=owner_id,
            date=date(2025, 1, 1) + timedelta(days=counter["n"]),
            description=description,
            amount=Decimal(amount),
            direction=direction,
            account="checking",
            category_id=category_id,
        )

    return _make
