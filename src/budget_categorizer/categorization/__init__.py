"""
Transaction categorization.

Rule matching, similarity scoring and suggestion ranking for individual
transactions, rule learning from manual corrections, and a static keyword
table for bulk imports.

Quick Start:
    >>> from budget_categorizer.categorization import SuggestionAggregator
    >>>
    >>> aggregator = SuggestionAggregator(rule_repo, transaction_repo)
    >>> for s in aggregator.suggest("STARBUCKS #123", Decimal("4.50"), "user-1"):
    ...     print(s.category_id, s.confidence, s.reason)
"""
from budget_categorizer.categorization.base import CategorizationRule
from budget_categorizer.categorization.keywords import KeywordClassifier, KeywordRule, DefaultRule
from budget_categorizer.categorization.learning import LearningPromoter
from budget_categorizer.categorization.matcher import RuleMatcher
from budget_categorizer.categorization.patterns import InvalidRulePatternError, validate_pattern
from budget_categorizer.categorization.similarity import SimilarityScorer
from budget_categorizer.categorization.suggestions import SuggestionAggregator

__all__ = [
    "CategorizationRule",
    "DefaultRule",
    "InvalidRulePatternError",
    "KeywordClassifier",
    "KeywordRule",
    "LearningPromoter",
    "RuleMatcher",
    "SimilarityScorer",
    "SuggestionAggregator",
    "validate_pattern",
]
