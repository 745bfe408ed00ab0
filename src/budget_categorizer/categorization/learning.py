import logging
from typing import List, Optional

from budget_categorizer.categorization.patterns import significant_tokens
from budget_categorizer.config.settings import CategorizationSettings
from budget_categorizer.domain.models import CategoryRule
from budget_categorizer.repositories.base import CategoryRuleRepository, TransactionRepository

logger = logging.getLogger(__name__)

AUTO_RULE_PREFIX = "Auto: "


class LearningPromoter:
    """
    Turns repeated manual categorizations into rules.

    After a user assigns a category to a transaction, each significant word
    of its description is checked against the user's other transactions in
    that category. Once a word shows up in enough of them, an
    "Auto: <word>" rule is upserted for the category.

    The rule is keyed by (owner, pattern, category), so learning from the
    same assignment again rewrites the existing rule rather than adding one.
    """

    def __init__(
        self,
        rule_repository: CategoryRuleRepository,
        transaction_repository: TransactionRepository,
        settings: Optional[CategorizationSettings] = None,
    ):
        self.rules = rule_repository
        self.transactions = transaction_repository
        self.settings = settings or CategorizationSettings()

    def learn(self, transaction_id: int, category_id: int, owner_id: str) -> List[CategoryRule]:
        """
        Learn from a confirmed category assignment.

        Args:
            transaction_id: The transaction the user categorized
            category_id: The category they chose
            owner_id: Owning user

        Returns:
            Rules created or refreshed by this call (empty if the transaction
            doesn't exist or nothing recurs often enough)
        """
        transaction = self.transactions.get_by_id(owner_id, transaction_id)
        if transaction is None:
            logger.debug("Nothing to learn: transaction %s not found for %s", transaction_id, owner_id)
            return []

        tokens = significant_tokens(transaction.description, self.settings.min_token_length)
        if not tokens:
            return []

        peers = [
            txn.description.lower()
            for txn in self.transactions.get_categorized(owner_id)
            if txn.category_id == category_id and txn.id != transaction_id
        ]

        promoted = []
        for token in tokens:
            count = sum(1 for description in peers if token in description)
            if count < self.settings.learning_threshold:
                continue

            rule = self.rules.upsert(self._auto_rule(token, category_id, owner_id))
            logger.info(
                "Promoted %r to a rule for category %s (%d matching transactions)",
                token, category_id, count,
            )
            promoted.append(rule)

        return promoted

    def _auto_rule(self, token: str, category_id: int, owner_id: str) -> CategoryRule:
        return CategoryRule(
            owner_id=owner_id,
            name=f"{AUTO_RULE_PREFIX}{token}",
            # Stored verbatim; tokens that are not valid regex are skipped by the matcher
            description_pattern=token,
            category_id=category_id,
            priority=self.settings.auto_rule_priority,
            is_active=True,
        )
