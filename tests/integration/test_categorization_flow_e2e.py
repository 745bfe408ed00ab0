import pytest
from decimal import Decimal

from budget_categorizer.categorization import KeywordClassifier
from budget_categorizer.parsers.bank_csv import BankCsvParser
from budget_categorizer.services.categorization_service import CategorizationService

@pytest.fixture
def service(sqlite_transactions, sqlite_categories, sqlite_rules, settings) -> CategorizationService:
    return CategorizationService(
        sqlite_transactions,
        sqlite_categories,
        sqlite_rules,
        settings=settings,
        keyword_classifier=KeywordClassifier(),
    )

@pytest.mark.integration
class TestCategorizationFlow:

    def test_new_owner_gets_no_suggestions(self, service: CategorizationService, owner):
        assert service.suggest("New Merchant", Decimal("42.00"), owner) == []

    def test_manual_corrections_become_rules(self, service: CategorizationService, sqlite_transactions, make_transaction, owner):
        # Arrange
        service.ensure_default_categories(owner)
        entertainment = service.categories.get_by_name(owner, "Entertainment")
        charges = [
            sqlite_transactions.save(make_transaction(f"CRAVE TV {n}"))
            for n in range(4)
        ]

        # Act - the user files each charge by hand
        for txn in charges:
            service.assign_category(owner, txn.id, entertainment.id)

        # Assert - the fourth assignment saw three others
        rules = service.list_rules(owner)
        assert [r.name for r in rules] == ["Auto: crave"]

        suggestions = service.suggest("Crave subscription", Decimal("9.99"), owner)
        assert suggestions[0].category_id == entertainment.id
        assert suggestions[0].reason == "rule match"

    def test_repeated_learning_keeps_one_rule(self, service: CategorizationService, sqlite_transactions, make_transaction, owner):
        service.ensure_default_categories(owner)
        shopping = service.categories.get_by_name(owner, "Shopping")
        for _ in range(3):
            sqlite_transactions.save(make_transaction("Etsy order", category_id=shopping.id))
        txn = sqlite_transactions.save(make_transaction("Etsy gift", category_id=shopping.id))

        for _ in range(3):
            service.learn(txn.id, shopping.id, owner)

        assert [r.name for r in service.list_rules(owner)] == ["Auto: etsy"]

    def test_import_then_auto_categorize(self, service: CategorizationService, tmp_path, owner):
        # Arrange
        service.ensure_default_categories(owner)
        path = tmp_path / "chase.csv"
        path.write_text(
            "Transaction Date,Post Date,Description,Category,Type,Amount,Memo\n"
            "01/15/2025,01/16/2025,WALMART SUPERCENTER #4502,,Sale,-45.67,\n"
            "01/16/2025,01/17/2025,ZZ BRAKE SERVICE,,Sale,-300.00,\n"
        )
        transactions = BankCsvParser("chase", owner_id=owner).parse(path)

        # Act
        result = service.import_transactions(owner, transactions, source=str(path))

        # Assert
        assert result.new_transactions == 2
        by_description = {t.description: t for t in service.transactions.get_all(owner)}
        groceries = service.categories.get_by_name(owner, "Groceries")
        other = service.categories.get_by_name(owner, "Other")
        assert by_description["WALMART SUPERCENTER #4502"].category_id == groceries.id
        assert by_description["ZZ BRAKE SERVICE"].category_id == other.id

        # A rule later moves the brake job out of Other
        transportation = service.categories.get_by_name(owner, "Transportation")
        service.create_rule(owner, "Car repairs", "brake", transportation.id)

        assert service.auto_categorize(owner, overwrite=True).assigned_count == 1
        assert service.transactions.get_by_id(owner, by_description["ZZ BRAKE SERVICE"].id).category_id == transportation.id

    def test_reimport_skips_duplicates(self, service: CategorizationService, make_transaction, owner):
        rows = [make_transaction("Walmart")]
        service.import_transactions(owner, rows)

        result = service.import_transactions(owner, rows)

        assert result.duplicates_skipped == 1
