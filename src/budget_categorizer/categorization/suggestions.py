import logging
from decimal import Decimal
from typing import List, Optional

from budget_categorizer.categorization.matcher import RuleMatcher
from budget_categorizer.categorization.similarity import SimilarityScorer
from budget_categorizer.config.settings import CategorizationSettings
from budget_categorizer.domain.models import Suggestion
from budget_categorizer.repositories.base import CategoryRuleRepository, TransactionRepository

logger = logging.getLogger(__name__)

RULE_MATCH_REASON = "rule match"
SIMILARITY_REASON = "similar transactions"


class SuggestionAggregator:
    """
    Combines rule matches and similarity scores into a ranked list of
    category suggestions for a human to confirm.

    The rule-derived suggestion always comes first. Similarity suggestions
    follow, best score first, and never repeat a category that is already
    in the list. Repository errors are not caught.
    """

    def __init__(
        self,
        rule_repository: CategoryRuleRepository,
        transaction_repository: TransactionRepository,
        settings: Optional[CategorizationSettings] = None,
        matcher: Optional[RuleMatcher] = None,
        scorer: Optional[SimilarityScorer] = None,
    ):
        self.rules = rule_repository
        self.transactions = transaction_repository
        self.settings = settings or CategorizationSettings()
        self.matcher = matcher or RuleMatcher()
        self.scorer = scorer or SimilarityScorer(self.settings)

    def suggest(
        self,
        description: str,
        amount: Optional[Decimal],
        owner_id: str,
    ) -> List[Suggestion]:
        """
        Suggest categories for a transaction.

        Args:
            description: Transaction description
            amount: Unsigned amount, used for rule amount bounds
            owner_id: Owning user; only their rules and history are used

        Returns:
            Suggestions ordered most confident first, unique by category

        Example:
            ```
            >>> aggregator.suggest("STARBUCKS #123", Decimal("4.50"), "user-1")
            [Suggestion(category_id=3, confidence=0.9, reason='rule match')]
            ```
        """
        suggestions: List[Suggestion] = []

        rules = self.rules.get_active(owner_id)
        rule_category = self.matcher.match(description, rules, amount=amount)
        if rule_category is not None:
            suggestions.append(Suggestion(
                category_id=rule_category,
                confidence=self.settings.rule_confidence,
                reason=RULE_MATCH_REASON,
            ))

        history = self.transactions.get_categorized(owner_id)
        scores = self.scorer.score(description, history)

        # sorted() is stable, so equal scores keep first-seen order
        ranked = sorted(scores.items(), key=lambda item: item[1], reverse=True)
        seen = {s.category_id for s in suggestions}

        for category_id, score in ranked[:self.settings.max_similarity_suggestions]:
            if category_id in seen:
                continue
            suggestions.append(Suggestion(
                category_id=category_id,
                confidence=min(score, self.settings.similarity_confidence_cap),
                reason=SIMILARITY_REASON,
            ))
            seen.add(category_id)

        logger.debug("%d suggestions for %r (owner=%s)", len(suggestions), description, owner_id)
        return suggestions
