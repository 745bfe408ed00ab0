from abc import ABC, abstractmethod
from typing import Optional

class CategorizationRule(ABC):
    """
    Abstract base class for the bulk-import keyword rules.

    Implements Chain of Responsibility:
    - Each rule tries to name a category for a description
    - If it can't it passes to the next rule
    - Rules are tried in the order they were chained

    Usage:
        Create chain: specific -> general -> default
        ```
        groceries = KeywordRule("Groceries", ["walmart", "grocery"])
        dining = KeywordRule("Dining Out", ["cafe", "pizza"])
        default_rule = DefaultRule("Other")

        groceries.set_next(dining).set_next(default_rule)

        name = groceries.categorize("WALMART #12")
        ```
    """

    def __init__(self):
        self._next_rule: Optional['CategorizationRule'] = None

    def set_next(self, rule: 'CategorizationRule') -> 'CategorizationRule':
        """
        Set the next rule in the chain.

        Args:
            rule: The next rule to try if this one doesn't match

        Returns:
            The rule that was set (for chaining)

        Example:
            `rule1.set_next(rule2).set_next(rule3)`
        """
        self._next_rule = rule
        return rule

    @abstractmethod
    def _matches(self, description: str) -> bool:
        """
        Check if this rule matches the description.

        Args:
            description: Lower-cased transaction description

        Returns:
            True if this rule can categorize this description
        """
        pass

    @abstractmethod
    def _get_category(self, description: str) -> str:
        """
        Get the category name. Called only if _matches() returns True.
        """
        pass

    def categorize(self, description: str) -> Optional[str]:
        """
        Attempt to name a category for a description.

        Args:
            description: Transaction description, any case

        Returns:
            Category name, or None if no rule in the chain matched
        """
        description = (description or "").lower()
        rule: Optional[CategorizationRule] = self

        while rule is not None:
            if rule._matches(description):
                return rule._get_category(description)
            rule = rule._next_rule

        return None

    def __repr__(self):
        return f"{self.__class__.__name__}()"
