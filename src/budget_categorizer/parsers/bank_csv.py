import logging
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import pandas as pd

from budget_categorizer.domain.enums import TransactionDirection
from budget_categorizer.domain.models import Transaction
from budget_categorizer.parsers.base import StatementParser

logger = logging.getLogger(__name__)

_NON_NUMERIC = re.compile(r"[^0-9.\-]")


@dataclass(frozen=True)
class CsvLayout:
    """
    Column names of one bank's CSV export.

    Either `amount_col` is set (signed amount, negative means money out)
    or both `debit_col` and `credit_col` are.
    """
    date_col: str
    description_col: str
    amount_col: Optional[str] = None
    debit_col: Optional[str] = None
    credit_col: Optional[str] = None

    @property
    def required_columns(self) -> List[str]:
        columns = [self.date_col, self.description_col]
        if self.amount_col:
            columns.append(self.amount_col)
        else:
            columns += [self.debit_col, self.credit_col]
        return columns


LAYOUTS: Dict[str, CsvLayout] = {
    # Transaction Date,Post Date,Description,Category,Type,Amount,Memo
    "chase": CsvLayout("Transaction Date", "Description", amount_col="Amount"),
    # Status,Date,Description,Debit,Credit
    "citi": CsvLayout("Date", "Description", debit_col="Debit", credit_col="Credit"),
    # Date,Description,Comments,Check Number,Amount,Balance
    "first-horizon": CsvLayout("Date", "Description", amount_col="Amount"),
}


class BankCsvParser(StatementParser):
    """
    Parser for bank CSV exports used by bulk import.

    Amounts come out unsigned with a debit/credit direction.

    Example:
        ```
        parser = BankCsvParser("chase", owner_id="user-1")
        transactions = parser.parse("chase_activity.csv")
        ```
    """

    def __init__(self, bank: str, owner_id: str, account: Optional[str] = None):
        if bank not in LAYOUTS:
            raise ValueError(
                f"Unsupported bank: {bank}. Supported: {', '.join(sorted(LAYOUTS))}"
            )
        self.bank = bank
        self.layout = LAYOUTS[bank]
        self.owner_id = owner_id
        self.account = account or bank

    def validate_file(self, filepath: Path | str) -> None:
        path = Path(filepath)

        if not path.exists():
            raise FileNotFoundError(f"File does not exist on path {path}")

        if path.suffix.lower() != ".csv":
            raise ValueError(f"File must be .csv, got {path.suffix}")

        self._validate_columns(self._read(path))

    def parse(self, filepath: Path | str) -> List[Transaction]:
        self.validate_file(filepath)
        df = self._read(Path(filepath))

        transactions = []
        for index, row in df.iterrows():
            try:
                transaction = self._parse_row(row)
            except (ValueError, InvalidOperation) as e:
                logger.warning("Skipping row %s of %s: %s", index, filepath, e)
                continue
            if transaction:
                transactions.append(transaction)

        logger.debug("Parsed %d transactions from %s", len(transactions), filepath)
        return transactions

    def _read(self, path: Path) -> pd.DataFrame:
        try:
            df = pd.read_csv(path, dtype=str, skipinitialspace=True)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise ValueError(f"Failed to read CSV file: {e}") from e
        df.columns = [str(col).strip() for col in df.columns]
        return df

    def _validate_columns(self, df: pd.DataFrame) -> None:
        """Ensure all required columns are present"""
        missing = [col for col in self.layout.required_columns if col not in df.columns]
        if missing:
            raise ValueError(
                f"Missing required columns for {self.bank}: {missing}. "
                f"Available columns: {list(df.columns)}"
            )

    def _parse_row(self, row: pd.Series) -> Optional[Transaction]:
        if pd.isna(row[self.layout.date_col]) or pd.isna(row[self.layout.description_col]):
            return None

        amount, direction = self._amount_and_direction(row)
        if amount is None:
            return None

        return Transaction(
            owner_id=self.owner_id,
            date=pd.to_datetime(row[self.layout.date_col]).date(),
            description=str(row[self.layout.description_col]).strip(),
            amount=amount,
            direction=direction,
            account=self.account,
        )

    def _amount_and_direction(
        self, row: pd.Series
    ) -> Tuple[Optional[Decimal], TransactionDirection]:
        if self.layout.amount_col:
            value = _to_decimal(row[self.layout.amount_col])
            if value is None:
                return None, TransactionDirection.DEBIT
            direction = TransactionDirection.DEBIT if value < 0 else TransactionDirection.CREDIT
            return abs(value), direction

        debit = _to_decimal(row[self.layout.debit_col])
        if debit:
            return abs(debit), TransactionDirection.DEBIT

        credit = _to_decimal(row[self.layout.credit_col])
        if credit:
            return abs(credit), TransactionDirection.CREDIT

        return None, TransactionDirection.DEBIT


def _to_decimal(value) -> Optional[Decimal]:
    """Parse '$1,234.56' style strings; blank cells give None."""
    if pd.isna(value):
        return None
    cleaned = _NON_NUMERIC.sub("", str(value))
    if not cleaned:
        return None
    return Decimal(cleaned)
