"""Categories router — category CRUD, referential-integrity rename/delete, budgets."""

from fastapi import APIRouter, Depends, Response

from apps.api.core.auth import get_household_id
from apps.api.core.errors import ValidationError
from apps.api.deps import get_stores
from apps.api.domains.categories.schemas import (
    BudgetIn,
    BudgetOut,
    CategoryCreate,
    CategoryList,
    CategoryOut,
    CategoryPatch,
    RenameOut,
    SeedOut,
)
from apps.api.domains.categories.service import CategoryService
from packages.import_engine.models import Budget, Category
from packages.import_engine.stores import LedgerStores

router = APIRouter(tags=["categories"])


def get_category_service(stores: LedgerStores = Depends(get_stores)) -> CategoryService:
    return CategoryService(stores)


def _out(category: Category) -> CategoryOut:
    return CategoryOut(
        id=category.id,
        name=category.name,
        color=category.color,
        sort_order=category.sort_order,
    )


def _budget_out(budget: Budget) -> BudgetOut:
    return BudgetOut(category=budget.category, amount=float(budget.amount))


@router.get("/categories", response_model=CategoryList)
async def list_categories(
    household_id: str = Depends(get_household_id),
    service: CategoryService = Depends(get_category_service),
):
    categories = await service.list_categories(household_id)
    return CategoryList(categories=[_out(c) for c in categories])


@router.post("/categories", response_model=CategoryOut, status_code=201)
async def create_category(
    body: CategoryCreate,
    household_id: str = Depends(get_household_id),
    service: CategoryService = Depends(get_category_service),
):
    return _out(await service.create_category(household_id, body.name))


@router.post("/categories/seed", response_model=SeedOut)
async def seed_categories(
    household_id: str = Depends(get_household_id),
    service: CategoryService = Depends(get_category_service),
):
    """Add the default starter categories the household does not have yet."""
    return SeedOut(added=await service.seed_defaults(household_id))


@router.post("/categories/{category_id}/rename", response_model=RenameOut)
async def rename_category(
    category_id: str,
    body: CategoryCreate,
    household_id: str = Depends(get_household_id),
    service: CategoryService = Depends(get_category_service),
):
    """Rename and move every transaction and the budget row to the new name."""
    result = await service.rename_category(household_id, category_id, body.name)
    return RenameOut(
        category=_out(result.category),
        old_name=result.old_name,
        transactions_moved=result.transactions_moved,
        budget_moved=result.budget_moved,
    )


@router.patch("/categories/{category_id}", response_model=CategoryOut)
async def update_category(
    category_id: str,
    body: CategoryPatch,
    household_id: str = Depends(get_household_id),
    service: CategoryService = Depends(get_category_service),
):
    """Rename and/or recolor a category."""
    if body.name is None and body.color is None:
        raise ValidationError("Nothing to update")

    category = None
    if body.name is not None:
        category = (await service.rename_category(household_id, category_id, body.name)).category
    if body.color is not None:
        category = await service.set_color(household_id, category_id, body.color)
    return _out(category)


@router.delete("/categories/{category_id}", status_code=204)
async def delete_category(
    category_id: str,
    household_id: str = Depends(get_household_id),
    service: CategoryService = Depends(get_category_service),
):
    """Delete an unused category; 409 while transactions or a budget still use it."""
    await service.delete_category(household_id, category_id)
    return Response(status_code=204)


@router.get("/budgets", response_model=list[BudgetOut])
async def list_budgets(
    household_id: str = Depends(get_household_id),
    service: CategoryService = Depends(get_category_service),
):
    return [_budget_out(b) for b in await service.list_budgets(household_id)]


@router.put("/budgets", response_model=BudgetOut)
async def set_budget(
    body: BudgetIn,
    household_id: str = Depends(get_household_id),
    service: CategoryService = Depends(get_category_service),
):
    return _budget_out(await service.set_budget(household_id, body.category, body.amount))
