import logging
from dataclasses import replace
from decimal import Decimal
from typing import List, Optional

from budget_categorizer.categorization import (
    KeywordClassifier,
    LearningPromoter,
    RuleMatcher,
    SuggestionAggregator,
    validate_pattern,
)
from budget_categorizer.config.settings import CategorizationSettings, ConfigLoader
from budget_categorizer.domain.enums import CategoryRole, TransactionDirection
from budget_categorizer.domain.models import Category, CategoryRule, Suggestion, Transaction
from budget_categorizer.repositories.base import (
    CategoryRepository,
    CategoryRuleRepository,
    RuleNotFoundError,
    TransactionRepository,
)
from budget_categorizer.services.models import CategorizeResult, ImportResult

logger = logging.getLogger(__name__)


class CategorizationService:
    """
    Application entry point for everything category related.

    Wires the repositories to the matcher, suggestion aggregator, learning
    promoter and keyword classifier, and owns rule CRUD. Every operation is
    scoped to one owner. Repository errors propagate to the caller.
    """

    def __init__(
        self,
        transactions: TransactionRepository,
        categories: CategoryRepository,
        rules: CategoryRuleRepository,
        settings: Optional[CategorizationSettings] = None,
        keyword_classifier: Optional[KeywordClassifier] = None,
    ):
        self.transactions = transactions
        self.categories = categories
        self.rules = rules
        self.settings = settings or ConfigLoader.load_categorization_settings()
        self._keyword_classifier = keyword_classifier

        self.matcher = RuleMatcher()
        self.aggregator = SuggestionAggregator(rules, transactions, self.settings, matcher=self.matcher)
        self.promoter = LearningPromoter(rules, transactions, self.settings)

    @property
    def keyword_classifier(self) -> KeywordClassifier:
        """Lazy-load keyword classifier"""
        if self._keyword_classifier is None:
            self._keyword_classifier = KeywordClassifier()
        return self._keyword_classifier

    # Suggestions and learning

    def suggest(self, description: str, amount: Optional[Decimal], owner_id: str) -> List[Suggestion]:
        """Ranked category suggestions for a description."""
        return self.aggregator.suggest(description, amount, owner_id)

    def learn(self, transaction_id: int, category_id: int, owner_id: str) -> List[CategoryRule]:
        """Promote recurring words of a confirmed transaction into rules."""
        return self.promoter.learn(transaction_id, category_id, owner_id)

    def assign_category(
        self,
        owner_id: str,
        transaction_id: int,
        category_id: Optional[int],
        learn: bool = True,
    ) -> Transaction:
        """
        Record a user's manual category choice and learn from it.

        Args:
            owner_id: Owning user
            transaction_id: Transaction to update
            category_id: Chosen category, or None to clear it
            learn: Run the learning promoter afterwards

        Returns:
            The updated transaction

        Raises:
            TransactionNotFoundError: If the owner has no such transaction
        """
        transaction = self.transactions.update_category(owner_id, transaction_id, category_id)

        if learn and category_id is not None:
            self.promoter.learn(transaction_id, category_id, owner_id)

        return transaction

    def auto_categorize(self, owner_id: str, overwrite: bool = False) -> CategorizeResult:
        """
        Apply the owner's active rules to stored transactions.

        Args:
            owner_id: Owning user
            overwrite: Re-evaluate transactions that already have a category

        Returns:
            CategorizeResult with the transactions that got a new category

        Example:
            ```
            result = service.auto_categorize("user-1")
            print(result)  # Examined 12 transactions: 9 assigned, 3 unmatched
            ```
        """
        candidates = self.transactions.get_all(owner_id, uncategorized_only=not overwrite)
        rules = self.rules.get_active(owner_id)

        result = CategorizeResult(examined=len(candidates))
        if not rules:
            return result

        for txn in candidates:
            category_id = self.matcher.match(
                txn.description, rules,
                amount=txn.amount, direction=txn.direction, account=txn.account,
            )
            if category_id is None or category_id == txn.category_id:
                continue
            result.assigned.append(
                self.transactions.update_category(owner_id, txn.id, category_id)
            )

        logger.info("Auto-categorized for %s: %s", owner_id, result)
        return result

    # Bulk import

    def import_transactions(
        self,
        owner_id: str,
        transactions: List[Transaction],
        classify: bool = True,
        dry_run: bool = False,
        source: str = "",
    ) -> ImportResult:
        """
        Store imported transactions, giving uncategorized ones a keyword category.

        Args:
            owner_id: Owning user; overrides whatever the rows carry
            transactions: Parsed transactions
            classify: Run the keyword classifier on rows without a category
            dry_run: Report what would happen without saving
            source: Label for the import summary (e.g. file name)

        Returns:
            An ImportResult.
        """
        transactions = [replace(txn, owner_id=owner_id) for txn in transactions]

        classified = 0
        if classify:
            categories = self.categories.get_all(owner_id)
            for txn in transactions:
                if txn.category_id is not None:
                    continue
                txn.category_id = self.keyword_classifier.classify(txn.description, categories)
                if txn.category_id is not None:
                    classified += 1

        if dry_run:
            new_transactions = []
            skipped = []
            for txn in transactions:
                if self.transactions.exists(owner_id, txn.date, txn.description, txn.amount, txn.account):
                    skipped.append(txn)
                else:
                    new_transactions.append(txn)
        else:
            new_transactions = self.transactions.save_many(transactions)

            new_ids = {id(t) for t in new_transactions}
            skipped = [t for t in transactions if id(t) not in new_ids]

        return ImportResult(
            total_parsed=len(transactions),
            new_transactions=len(new_transactions),
            duplicates_skipped=len(skipped),
            classified=classified,
            imported=new_transactions,
            skipped=skipped,
            source=source,
        )

    def ensure_default_categories(self, owner_id: str) -> List[Category]:
        """
        Create any keyword-table category the owner is missing, plus the
        fallback bucket.

        Returns:
            The categories that were created
        """
        classifier = self.keyword_classifier
        created = []
        for name in classifier.category_names:
            if self.categories.get_by_name(owner_id, name) is not None:
                continue
            role = CategoryRole.FALLBACK if name == classifier.fallback_name else None
            created.append(self.categories.save(Category(owner_id=owner_id, name=name, role=role)))
        return created

    # Rule CRUD

    def list_rules(self, owner_id: str, active_only: bool = False) -> List[CategoryRule]:
        if active_only:
            return self.rules.get_active(owner_id)
        return self.rules.get_all(owner_id)

    def create_rule(
        self,
        owner_id: str,
        name: str,
        description_pattern: str,
        category_id: int,
        priority: int = 0,
        is_active: bool = True,
        amount_min: Optional[Decimal] = None,
        amount_max: Optional[Decimal] = None,
        direction: Optional[TransactionDirection] = None,
        account_pattern: Optional[str] = None,
    ) -> CategoryRule:
        """
        Validate and store a new rule.

        Raises:
            InvalidRulePatternError: If the description or account pattern doesn't compile
            ValueError: If the amount bounds are inverted
            DuplicateRuleError: If the owner already has this pattern for this category
        """
        rule = CategoryRule(
            owner_id=owner_id,
            name=name,
            description_pattern=description_pattern,
            category_id=category_id,
            priority=priority,
            is_active=is_active,
            amount_min=amount_min,
            amount_max=amount_max,
            direction=direction,
            account_pattern=account_pattern,
        )
        self._validate_rule(rule)
        return self.rules.create(rule)

    def update_rule(self, owner_id: str, rule_id: int, /, **changes) -> CategoryRule:
        """
        Change fields of an existing rule.

        Args:
            owner_id: Owning user
            rule_id: Rule to change
            **changes: CategoryRule fields to overwrite

        Raises:
            RuleNotFoundError: If the owner has no such rule
            InvalidRulePatternError: If the new pattern doesn't compile
        """
        rule = self.rules.get_by_id(owner_id, rule_id)
        if rule is None:
            raise RuleNotFoundError(f"Rule with ID {rule_id} not found")

        for protected in ("id", "owner_id"):
            changes.pop(protected, None)

        updated = replace(rule, **changes)
        self._validate_rule(updated)
        return self.rules.update(updated)

    def delete_rule(self, owner_id: str, rule_id: int) -> None:
        """
        Raises:
            RuleNotFoundError: If the owner has no such rule
        """
        if not self.rules.delete(owner_id, rule_id):
            raise RuleNotFoundError(f"Rule with ID {rule_id} not found")

    def _validate_rule(self, rule: CategoryRule) -> None:
        validate_pattern(rule.description_pattern)
        if rule.account_pattern is not None:
            validate_pattern(rule.account_pattern)

        if not isinstance(rule.priority, int) or isinstance(rule.priority, bool):
            raise ValueError(f"Priority must be an integer, got {rule.priority!r}")

        if (
            rule.amount_min is not None
            and rule.amount_max is not None
            and rule.amount_min > rule.amount_max
        ):
            raise ValueError(
                f"amount_min ({rule.amount_min}) is greater than amount_max ({rule.amount_max})"
            )
