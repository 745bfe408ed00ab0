"""Transaction categorization for a personal budgeting app."""

__version__ = "0.1.0"
