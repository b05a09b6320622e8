"""Pydantic schemas for the categories domain."""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel


class CategoryOut(BaseModel):
    id: Optional[str] = None
    name: str
    color: Optional[str] = None
    sort_order: Optional[int] = None


class CategoryList(BaseModel):
    categories: list[CategoryOut]


class CategoryCreate(BaseModel):
    name: str


class CategoryPatch(BaseModel):
    """Rename and/or recolor. An empty ``color`` clears it."""

    name: Optional[str] = None
    color: Optional[str] = None


class RenameOut(BaseModel):
    category: CategoryOut
    old_name: str
    transactions_moved: int
    budget_moved: bool


class SeedOut(BaseModel):
    added: int


class BudgetIn(BaseModel):
    category: str
    amount: Decimal


class BudgetOut(BaseModel):
    category: str
    amount: float
