"""
Helpers shared by the matching, scoring and learning components.

Rule patterns are user supplied regular expressions that are never
validated by the database, so every compile goes through `safe_compile`.
"""
import logging
import re
from functools import lru_cache
from typing import List, Optional

logger = logging.getLogger(__name__)


class InvalidRulePatternError(ValueError):
    """Raised when a rule pattern is not a valid regular expression."""

    def __init__(self, pattern: str, reason: str):
        self.pattern = pattern
        self.reason = reason
        super().__init__(f"Invalid rule pattern {pattern!r}: {reason}")


@lru_cache(maxsize=512)
def _compile(pattern: str) -> re.Pattern:
    return re.compile(pattern, re.IGNORECASE)


def validate_pattern(pattern: str) -> re.Pattern:
    """
    Compile a rule pattern, raising if it can't be used.

    Args:
        pattern: Regular expression entered by the user

    Returns:
        The compiled, case-insensitive pattern

    Raises:
        InvalidRulePatternError: If the pattern is empty or doesn't compile
    """
    if not pattern or not pattern.strip():
        raise InvalidRulePatternError(pattern, "pattern is empty")
    try:
        return _compile(pattern)
    except re.error as e:
        raise InvalidRulePatternError(pattern, str(e)) from e


@lru_cache(maxsize=512)
def safe_compile(pattern: str) -> Optional[re.Pattern]:
    """
    Compile a rule pattern, returning None instead of raising.

    Failures are cached too, so a broken rule is reported once rather than
    once per transaction it is checked against.
    """
    try:
        return validate_pattern(pattern)
    except InvalidRulePatternError as e:
        logger.warning("Skipping rule: %s", e)
        return None


def tokenize(text: str) -> List[str]:
    """Split on whitespace and lower-case."""
    return (text or "").lower().split()


def significant_tokens(text: str, min_length: int = 4) -> List[str]:
    """
    Distinct tokens long enough to carry meaning, in order of appearance.

    Example:
        >>> significant_tokens("AMAZON Mktp amazon.com")
        ['amazon', 'mktp', 'amazon.com']
    """
    seen = []
    for token in tokenize(text):
        if len(token) >= min_length and token not in seen:
            seen.append(token)
    return seen
