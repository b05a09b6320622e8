"""
HomeSpend Categorization

Learned category rules and category referential integrity.
"""

from .constants import DEFAULT_CATEGORIES, UNCATEGORIZED
from .migrator import CategoryMigrator, RenameResult
from .rules import CategoryLearner, rule_key

__all__ = [
    "CategoryLearner",
    "CategoryMigrator",
    "DEFAULT_CATEGORIES",
    "RenameResult",
    "UNCATEGORIZED",
    "rule_key",
]
