import logging
from typing import Any, Dict, Iterable, List, Optional

from budget_categorizer.categorization.base import CategorizationRule
from budget_categorizer.config.settings import ConfigLoader
from budget_categorizer.domain.enums import CategoryRole
from budget_categorizer.domain.models import Category

logger = logging.getLogger(__name__)

DEFAULT_FALLBACK_NAME = "Other"


class KeywordRule(CategorizationRule):
    """
    Rule that matches keywords in transaction descriptions.

    Case-insensitive substring matching; any keyword hit names the category.

    Example:
        ```
        rule = KeywordRule("Dining Out", ["starbucks", "cafe"])
        ```
    """

    def __init__(self, category: str, keywords: Iterable[str]):
        super().__init__()
        self.category = category
        self.keywords = [kw.lower() for kw in keywords]

    def _matches(self, description: str) -> bool:
        return any(keyword in description for keyword in self.keywords)

    def _get_category(self, description: str) -> str:
        return self.category

    def __repr__(self):
        return f"KeywordRule({self.category!r}, {len(self.keywords)} keywords)"


class DefaultRule(CategorizationRule):
    """
    Fallback rule that always matches.

    Should be the last rule in the chain.
    """

    def __init__(self, default_category: str = DEFAULT_FALLBACK_NAME):
        super().__init__()
        self.default_category = default_category

    def _matches(self, _: str) -> bool:
        """Always matches"""
        return True

    def _get_category(self, _: str) -> str:
        return self.default_category

    def __repr__(self) -> str:
        return f"DefaultRule('{self.default_category}')"


class KeywordClassifier:
    """
    Static keyword table for giving bulk-imported transactions a category.

    Independent of the user's own rules. Groups are tried in order and the
    first hit wins. Anything unmatched goes to the owner's fallback
    category: the one tagged with the `fallback` role, or failing that
    the one named "Other".

    Usage:
        # Production - keyword table and fallback name from ConfigLoader
        classifier = KeywordClassifier()

        # Testing - inject groups
        classifier = KeywordClassifier(groups=[
            {"category": "Groceries", "keywords": ["walmart"]}
        ])

        category_id = classifier.classify("WALMART #4502", categories)
    """

    def __init__(
        self,
        groups: Optional[List[Dict[str, Any]]] = None,
        fallback_name: Optional[str] = None,
    ):
        if groups is None:
            table = ConfigLoader.load_keyword_table()
            groups = table.get("groups", [])
            if fallback_name is None:
                fallback_name = table.get("fallback")

        self.groups = groups
        self.fallback_name = fallback_name or DEFAULT_FALLBACK_NAME
        self._rule_chain = self._build_rule_chain(groups)

    def _build_rule_chain(self, groups: List[Dict[str, Any]]) -> CategorizationRule:
        rules: List[CategorizationRule] = [
            KeywordRule(group["category"], group.get("keywords", []))
            for group in groups
        ]
        rules.append(DefaultRule(self.fallback_name))

        for i in range(len(rules) - 1):
            rules[i].set_next(rules[i + 1])

        return rules[0]

    @property
    def category_names(self) -> List[str]:
        """Category names the table can produce, fallback last"""
        return [group["category"] for group in self.groups] + [self.fallback_name]

    def classify(self, description: str, categories: Iterable[Category]) -> Optional[int]:
        """
        Pick a category for a description.

        Args:
            description: Transaction description
            categories: The owner's categories

        Returns:
            A category ID, or None if the matched (or fallback) category
            doesn't exist for this owner
        """
        categories = list(categories)
        name = self._rule_chain.categorize(description)

        if name == self.fallback_name:
            fallback = self._resolve_fallback(categories)
            return fallback.id if fallback else None

        category = _find_by_name(categories, name)
        if category is None:
            logger.debug("Keyword match %r has no category for this owner", name)
            return None
        return category.id

    def _resolve_fallback(self, categories: List[Category]) -> Optional[Category]:
        for category in categories:
            if category.role == CategoryRole.FALLBACK:
                return category
        return _find_by_name(categories, self.fallback_name)


def _find_by_name(categories: Iterable[Category], name: Optional[str]) -> Optional[Category]:
    if name is None:
        return None
    wanted = name.casefold()
    for category in categories:
        if category.name.casefold() == wanted:
            return category
    return None
