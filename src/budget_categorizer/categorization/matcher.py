import logging
from decimal import Decimal
from typing import Iterable, Optional

from budget_categorizer.categorization.patterns import safe_compile
from budget_categorizer.domain.enums import TransactionDirection
from budget_categorizer.domain.models import CategoryRule

logger = logging.getLogger(__name__)


class RuleMatcher:
    """
    Evaluates a transaction description against a user's rules.

    Rules are expected in evaluation order (priority descending), which is
    how the rule repositories return them. The first active rule that
    matches wins.

    Usage:
        ```
        matcher = RuleMatcher()
        category_id = matcher.match("STARBUCKS #123", rules)
        ```
    """

    def match(
        self,
        description: str,
        rules: Iterable[CategoryRule],
        amount: Optional[Decimal] = None,
        direction: Optional[TransactionDirection] = None,
        account: Optional[str] = None,
    ) -> Optional[int]:
        """
        Find the category of the first matching rule.

        Args:
            description: Transaction description
            rules: Rules ordered by priority descending
            amount: Unsigned amount, checked against rule amount bounds if given
            direction: Debit or credit, checked against rule direction if given
            account: Account name, searched with the rule's account pattern if given

        Returns:
            The matching rule's category_id, or None if no active rule matches
        """
        rule = self.first_match(description, rules, amount, direction, account)
        return rule.category_id if rule else None

    def first_match(
        self,
        description: str,
        rules: Iterable[CategoryRule],
        amount: Optional[Decimal] = None,
        direction: Optional[TransactionDirection] = None,
        account: Optional[str] = None,
    ) -> Optional[CategoryRule]:
        """Same as `match` but returns the rule itself."""
        for rule in rules:
            if self._matches(rule, description or "", amount, direction, account):
                logger.debug("Rule %r matched %r", rule, description)
                return rule
        return None

    def _matches(
        self,
        rule: CategoryRule,
        description: str,
        amount: Optional[Decimal],
        direction: Optional[TransactionDirection],
        account: Optional[str],
    ) -> bool:
        if not rule.is_active:
            return False

        pattern = safe_compile(rule.description_pattern)
        if pattern is None or not pattern.search(description):
            return False

        # Conditions whose input the caller doesn't know are not checked
        if amount is not None:
            if rule.amount_min is not None and amount < rule.amount_min:
                return False
            if rule.amount_max is not None and amount > rule.amount_max:
                return False

        if direction is not None and rule.direction is not None:
            if direction != rule.direction:
                return False

        if account and rule.account_pattern:
            account_pattern = safe_compile(rule.account_pattern)
            if account_pattern is None or not account_pattern.search(account):
                return False

        return True
