import pytest
from datetime import date
from decimal import Decimal
from pathlib import Path

from budget_categorizer.domain.enums import TransactionDirection
from budget_categorizer.parsers.bank_csv import BankCsvParser

CHASE_CSV = """Transaction Date,Post Date,Description,Category,Type,Amount,Memo
01/15/2025,01/16/2025,WALMART SUPERCENTER #4502,Groceries,Sale,-45.67,
01/16/2025,01/17/2025,"PAYROLL DEPOSIT, ACME",,Payment,"2,500.00",
01/17/2025,01/18/2025,BROKEN ROW,,Sale,n/a,
"""

CITI_CSV = """Status,Date,Description,Debit,Credit
Cleared,2025-02-01,NETFLIX.COM,15.99,
Cleared,2025-02-03,AMAZON REFUND,,$24.55
"""

FIRST_HORIZON_CSV = """Date,Description,Comments,Check Number,Amount,Balance
2025-03-01,Electric Company,,,-120.10,880.00
"""

def write(tmp_path: Path, name: str, content: str) -> Path:
    path = tmp_path / name
    path.write_text(content)
    return path

@pytest.mark.integration
class TestBankCsvParser:

    def test_chase_layout(self, tmp_path, owner):
        # Arrange
        path = write(tmp_path, "chase.csv", CHASE_CSV)
        parser = BankCsvParser("chase", owner_id=owner)

        # Act
        transactions = parser.parse(path)

        # Assert - the unparseable row is skipped
        assert len(transactions) == 2

        walmart, payroll = transactions
        assert walmart.date == date(2025, 1, 15)
        assert walmart.description == "WALMART SUPERCENTER #4502"
        assert walmart.amount == Decimal("45.67")
        assert walmart.direction == TransactionDirection.DEBIT
        assert walmart.owner_id == owner
        assert walmart.account == "chase"
        assert walmart.category_id is None

        assert payroll.description == "PAYROLL DEPOSIT, ACME"
        assert payroll.amount == Decimal("2500.00")
        assert payroll.direction == TransactionDirection.CREDIT

    def test_citi_layout(self, tmp_path, owner):
        path = write(tmp_path, "citi.csv", CITI_CSV)

        netflix, refund = BankCsvParser("citi", owner_id=owner, account="citi-visa").parse(path)

        assert netflix.amount == Decimal("15.99")
        assert netflix.direction == TransactionDirection.DEBIT
        assert refund.amount == Decimal("24.55")
        assert refund.direction == TransactionDirection.CREDIT
        assert refund.account == "citi-visa"

    def test_first_horizon_layout(self, tmp_path, owner):
        path = write(tmp_path, "fh.csv", FIRST_HORIZON_CSV)

        [electric] = BankCsvParser("first-horizon", owner_id=owner).parse(path)

        assert electric.amount == Decimal("120.10")
        assert electric.direction == TransactionDirection.DEBIT

    def test_unsupported_bank(self, owner):
        with pytest.raises(ValueError, match="Unsupported bank"):
            BankCsvParser("monzo", owner_id=owner)

    def test_missing_file(self, owner):
        with pytest.raises(FileNotFoundError):
            BankCsvParser("chase", owner_id=owner).validate_file("nope.csv")

    def test_wrong_extension(self, tmp_path, owner):
        path = write(tmp_path, "chase.txt", CHASE_CSV)

        with pytest.raises(ValueError, match="File must be .csv"):
            BankCsvParser("chase", owner_id=owner).validate_file(path)

    def test_wrong_layout(self, tmp_path, owner):
        path = write(tmp_path, "citi.csv", CITI_CSV)

        with pytest.raises(ValueError, match="Missing required columns"):
            BankCsvParser("chase", owner_id=owner).parse(path)
