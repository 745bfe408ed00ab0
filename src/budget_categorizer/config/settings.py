from dataclasses import dataclass, fields
from pathlib import Path
import json
import logging
from typing import Dict, Any

logger = logging.getLogger(__name__)

# Package defaults (bundled with code)
PACKAGE_CONFIG_DIR = Path(__file__).parent / "defaults"

# User configs (in project root, gitignored)
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
USER_CONFIG_DIR = PROJECT_ROOT / "config"

class ConfigLoader:
    """Load configuration with user overrides"""

    @staticmethod
    def load_config(config_name: str) -> Dict[str, Any]:
        """
        Load config with fallback: user config -> default config

        Args:
            config_name: Name of the config file (e.g., 'keywords.json')

        Raises:
            FileNotFoundError: If no config file was found

        Returns:
            Parsed JSON configuration
        """
        user_config_path = USER_CONFIG_DIR / config_name
        if user_config_path.exists():
            logger.debug("Loading %s from %s", config_name, user_config_path)
            with open(user_config_path) as f:
                return json.load(f)

        default_config_path = PACKAGE_CONFIG_DIR / config_name
        if default_config_path.exists():
            with open(default_config_path) as f:
                return json.load(f)

        raise FileNotFoundError(
            f"Config file '{config_name}' not found in:\n"
            f" - {user_config_path}\n"
            f" - {default_config_path}"
        )

    @staticmethod
    def load_categorization_settings() -> "CategorizationSettings":
        """Load the tuning constants for matching, scoring and learning"""
        return CategorizationSettings.from_dict(
            ConfigLoader.load_config('categorization.json')
        )

    @staticmethod
    def load_keyword_table() -> Dict[str, Any]:
        """
        Load the keyword table used for bulk imports

        Returns:
            Dict with the ordered "groups" list and the "fallback" category name
            (either key may be missing)
        """
        return ConfigLoader.load_config('keywords.json')


@dataclass(frozen=True)
class CategorizationSettings:
    """
    Tuning constants shared by the categorization components.

    A rule match must always outrank a similarity match, so
    `similarity_confidence_cap` has to stay below `rule_confidence`.
    """
    rule_confidence: float = 0.9
    similarity_confidence_cap: float = 0.8
    similarity_threshold: float = 0.3
    max_similarity_suggestions: int = 3
    # Tokens shorter than this are ignored by both scoring and learning
    min_token_length: int = 4
    learning_threshold: int = 3
    auto_rule_priority: int = 1

    def __post_init__(self):
        if self.similarity_confidence_cap >= self.rule_confidence:
            raise ValueError(
                f"similarity_confidence_cap ({self.similarity_confidence_cap}) "
                f"must be below rule_confidence ({self.rule_confidence})"
            )
        if self.min_token_length < 1:
            raise ValueError("min_token_length must be at least 1")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CategorizationSettings":
        """Build settings from a config dict, ignoring unknown keys"""
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            logger.warning("Ignoring unknown categorization settings: %s", sorted(unknown))
        return cls(**{k: v for k, v in data.items() if k in known})
