from abc import ABC, abstractmethod
from pathlib import Path
from typing import List
from budget_categorizer.domain.models import Transaction

class StatementParser(ABC):
    """
    Abstract base class for all statement parsers.

    Each statement layout gets its own concrete parser that implements
    this interface.
    """

    @abstractmethod
    def parse(self, filepath: Path | str) -> List[Transaction]:
        """
        Parse a statement file and return a list of transactions.

        Args:
            filepath: Path to the statement file

        Returns:
            List of uncategorized Transaction objects

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file format is invalid
        """
        pass

    @abstractmethod
    def validate_file(self, filepath: Path | str) -> None:
        """
        Validate that the file matches the expected format.

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If file format is invalid
        """
        pass
