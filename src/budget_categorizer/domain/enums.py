from enum import Enum

class TransactionDirection(Enum):
    """Represents whether money is coming in or out"""
    DEBIT = "debit" # out
    CREDIT = "credit" # in


class CategoryRole(Enum):
    """Stable tags for categories the categorizer looks up by purpose"""
    FALLBACK = "fallback" # bucket for anything the keyword table misses
