import logging
import pytest
from decimal import Decimal

from budget_categorizer.categorization.matcher import RuleMatcher
from budget_categorizer.domain.enums import TransactionDirection
from budget_categorizer.domain.models import CategoryRule

DINING = 1
COFFEE_SHOPS = 2
SHOPPING = 3

def rule(pattern: str, category_id: int, priority: int = 0, **kwargs) -> CategoryRule:
    return CategoryRule(
        owner_id="user-1",
        name=pattern,
        description_pattern=pattern,
        category_id=category_id,
        priority=priority,
        **kwargs,
    )

@pytest.fixture
def matcher() -> RuleMatcher:
    return RuleMatcher()

@pytest.mark.unit
class TestRuleMatcherOrdering:

    def test_first_rule_in_priority_order_wins(self, matcher: RuleMatcher):
        # Arrange
        rules = [
            rule("coffee", DINING, priority=5),
            rule("starbucks", COFFEE_SHOPS, priority=1),
        ]

        # Act
        category = matcher.match("Starbucks Coffee #123", rules)

        # Assert
        assert category == DINING

    def test_falls_through_to_later_rule(self, matcher: RuleMatcher):
        rules = [
            rule("tea", DINING, priority=5),
            rule("starbucks", COFFEE_SHOPS, priority=1),
        ]

        assert matcher.match("Starbucks Coffee #123", rules) == COFFEE_SHOPS

    def test_no_match_returns_none(self, matcher: RuleMatcher):
        rules = [rule("amazon", SHOPPING)]

        assert matcher.match("Shell Gas Station", rules) is None

    def test_empty_rule_list(self, matcher: RuleMatcher):
        assert matcher.match("anything", []) is None

    def test_inactive_rules_are_skipped(self, matcher: RuleMatcher):
        rules = [
            rule("coffee", DINING, priority=5, is_active=False),
            rule("coffee", COFFEE_SHOPS, priority=1),
        ]

        assert matcher.match("Coffee", rules) == COFFEE_SHOPS

    def test_first_match_returns_rule(self, matcher: RuleMatcher):
        expected = rule("amzn|amazon", SHOPPING)

        assert matcher.first_match("AMZN Mktp CA", [expected]) is expected


@pytest.mark.unit
class TestRuleMatcherPatterns:

    def test_matching_is_case_insensitive(self, matcher: RuleMatcher):
        assert matcher.match("WHOLE FOODS MARKET", [rule("whole foods", DINING)]) == DINING

    def test_pattern_is_searched_not_anchored(self, matcher: RuleMatcher):
        assert matcher.match("POS 1234 NETFLIX.COM", [rule(r"netflix\.com", DINING)]) == DINING

    def test_regex_features_work(self, matcher: RuleMatcher):
        rules = [rule(r"^uber\s+(eats|trip)", DINING)]

        assert matcher.match("Uber   Eats Toronto", rules) == DINING
        assert matcher.match("Pay Uber Trip", rules) is None

    @pytest.mark.parametrize("bad_pattern", ["(", "[a-", "*coffee", "(?P<x"])
    def test_invalid_pattern_never_raises(self, matcher: RuleMatcher, bad_pattern: str):
        # Act
        category = matcher.match("Starbucks Coffee", [rule(bad_pattern, DINING)])

        # Assert
        assert category is None

    def test_invalid_pattern_does_not_block_other_rules(self, matcher: RuleMatcher, caplog):
        rules = [
            rule("(", DINING, priority=10),
            rule("coffee", COFFEE_SHOPS, priority=1),
        ]

        with caplog.at_level(logging.WARNING):
            category = matcher.match("Starbucks Coffee", rules)

        assert category == COFFEE_SHOPS
        assert "Skipping rule" in caplog.text

    def test_invalid_pattern_is_reported_once(self, matcher: RuleMatcher, caplog):
        rules = [rule("[oops", DINING)]

        with caplog.at_level(logging.WARNING):
            for description in ["Starbucks", "Shell", "Walmart", "Netflix"]:
                matcher.match(description, rules)

        skipped = [r for r in caplog.records if "Skipping rule" in r.getMessage()]
        assert len(skipped) == 1

    def test_empty_description(self, matcher: RuleMatcher):
        assert matcher.match("", [rule("coffee", DINING)]) is None


@pytest.mark.unit
class TestRuleMatcherConditions:

    def test_amount_bounds_are_inclusive(self, matcher: RuleMatcher):
        rules = [rule("amazon", SHOPPING, amount_min=Decimal("10"), amount_max=Decimal("50"))]

        assert matcher.match("Amazon", rules, amount=Decimal("10")) == SHOPPING
        assert matcher.match("Amazon", rules, amount=Decimal("50")) == SHOPPING
        assert matcher.match("Amazon", rules, amount=Decimal("9.99")) is None
        assert matcher.match("Amazon", rules, amount=Decimal("50.01")) is None

    def test_amount_bounds_ignored_when_amount_unknown(self, matcher: RuleMatcher):
        rules = [rule("amazon", SHOPPING, amount_min=Decimal("100"))]

        assert matcher.match("Amazon", rules) == SHOPPING

    def test_direction_condition(self, matcher: RuleMatcher):
        rules = [
            rule("amazon", DINING, priority=2, direction=TransactionDirection.CREDIT),
            rule("amazon", SHOPPING, priority=1),
        ]

        assert matcher.match("Amazon", rules, direction=TransactionDirection.CREDIT) == DINING
        assert matcher.match("Amazon", rules, direction=TransactionDirection.DEBIT) == SHOPPING

    def test_account_pattern(self, matcher: RuleMatcher):
        rules = [
            rule("amazon", DINING, priority=2, account_pattern="visa"),
            rule("amazon", SHOPPING, priority=1),
        ]

        assert matcher.match("Amazon", rules, account="Citi VISA 4821") == DINING
        assert matcher.match("Amazon", rules, account="checking") == SHOPPING

    def test_account_pattern_ignored_when_account_unknown(self, matcher: RuleMatcher):
        rules = [rule("amazon", SHOPPING, account_pattern="visa")]

        assert matcher.match("Amazon", rules) == SHOPPING
        assert matcher.match("Amazon", rules, account="") == SHOPPING

    def test_invalid_account_pattern_is_a_non_match(self, matcher: RuleMatcher):
        rules = [
            rule("amazon", DINING, priority=2, account_pattern="[visa"),
            rule("amazon", SHOPPING, priority=1),
        ]

        assert matcher.match("Amazon", rules, account="visa") == SHOPPING
