import logging
from typing import Dict, Iterable, Optional, Protocol

from budget_categorizer.categorization.patterns import tokenize
from budget_categorizer.config.settings import CategorizationSettings

logger = logging.getLogger(__name__)


class Categorized(Protocol):
    """Anything with a description and an optional category, e.g. a Transaction"""
    description: str
    category_id: Optional[int]


class SimilarityScorer:
    """
    Scores categories by how much previously categorized transactions
    resemble a new description.

    Similarity between two descriptions is the number of shared tokens of
    at least `min_token_length` characters divided by the token count of
    the longer description. Historical transactions above the threshold add
    their similarity to their category's total.

    Example:
        ```
        scorer = SimilarityScorer()
        scorer.score("Amazon Marketplace", history)
        # {7: 0.67}
        ```
    """

    def __init__(self, settings: Optional[CategorizationSettings] = None):
        self.settings = settings or CategorizationSettings()

    def similarity(self, description_a: str, description_b: str) -> float:
        """Word-level similarity in [0, 1]."""
        tokens_a = set(tokenize(description_a))
        tokens_b = set(tokenize(description_b))

        if not tokens_a or not tokens_b:
            return 0.0

        common = [
            token for token in tokens_a
            if len(token) >= self.settings.min_token_length and token in tokens_b
        ]
        return len(common) / max(len(tokens_a), len(tokens_b))

    def score(
        self,
        description: str,
        history: Iterable[Categorized],
    ) -> Dict[int, float]:
        """
        Accumulate similarity per category.

        Args:
            description: The new transaction's description
            history: Previously categorized transactions. Rows without a
                category are ignored.

        Returns:
            Mapping of category_id to summed similarity, in order of first
            contribution. Empty if nothing is similar enough.
        """
        scores: Dict[int, float] = {}
        if not tokenize(description):
            return scores

        for txn in history:
            if txn.category_id is None:
                continue

            similarity = self.similarity(description, txn.description)
            if similarity > self.settings.similarity_threshold:
                scores[txn.category_id] = scores.get(txn.category_id, 0.0) + similarity

        logger.debug("Similarity scores for %r: %s", description, scores)
        return scores
