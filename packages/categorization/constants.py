"""Category constants for household spending.

``UNCATEGORIZED`` is the sentinel every imported transaction starts with;
``DEFAULT_CATEGORIES`` is the starter list offered to a new household.
"""

from packages.import_engine.models import UNCATEGORIZED

DEFAULT_CATEGORIES: list[str] = [
    "Groceries",
    "Dining & Cafes",
    "Transport & Fuel",
    "Shopping & Retail",
    "Beauty & Personal Care",
    "Health & Pharmacy",
    "Utilities & Bills",
    "Insurance",
    "Travel & Accommodation",
    "Kids/Family",
    "Gifts",
    "Entertainment & Subscriptions",
    "Fees & Charges",
    "Taxes & Government",
    "Work/Study",
    "Home",
    "Medical",
    "Other",
]

__all__ = ["DEFAULT_CATEGORIES", "UNCATEGORIZED"]
