"""
Service layer models - DTOs for service operations.

These models represent the results of service operations, not domain entities.
"""
from dataclasses import dataclass, field
from typing import List
from budget_categorizer.domain.models import Transaction

@dataclass
class ImportResult:
    """
    Result of a bulk import.

    Provides feedback about what happened during import:
    - How many transactions were processed
    - Which ones were new vs duplicates
    - How many the keyword table could place
    """
    total_parsed: int
    new_transactions: int
    duplicates_skipped: int
    classified: int = 0

    imported: List[Transaction] = field(default_factory=list)
    skipped: List[Transaction] = field(default_factory=list)

    source: str = ""

    def __str__(self) -> str:
        "Human-readable summary"
        lines = [
            f"Import summary for {self.source}:" if self.source else "Import summary:",
            f" New transactions: {self.new_transactions}",
            f" Duplicates skipped: {self.duplicates_skipped}",
            f" Classified by keyword: {self.classified}",
        ]
        return "\n".join(lines)

    def __post_init__(self):
        """Validate counts match lists"""
        if self.new_transactions != len(self.imported):
            raise ValueError(
                f"Count mismatch: new_transactions={self.new_transactions} "
                f"but len(imported)={len(self.imported)}"
            )
        if self.duplicates_skipped != len(self.skipped):
            raise ValueError(
                f"Count mismatch: duplicates_skipped={self.duplicates_skipped} "
                f"but len(skipped)={len(self.skipped)}"
            )


@dataclass
class CategorizeResult:
    """Outcome of applying rules to stored transactions."""
    examined: int
    assigned: List[Transaction] = field(default_factory=list)

    @property
    def assigned_count(self) -> int:
        return len(self.assigned)

    @property
    def unmatched(self) -> int:
        return self.examined - len(self.assigned)

    def __str__(self) -> str:
        return (
            f"Examined {self.examined} transactions: "
            f"{self.assigned_count} assigned, {self.unmatched} unmatched"
        )
