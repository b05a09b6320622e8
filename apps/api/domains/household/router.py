"""Household router — household-scoped settings."""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from apps.api.core.auth import get_household_id
from apps.api.deps import get_stores
from packages.import_engine.stores import LedgerStores

router = APIRouter(prefix="/household", tags=["household"])


class HouseholdSettings(BaseModel):
    """Negative amounts in single-amount imports count as spending when true.

    Changing it only affects files imported afterwards.
    """

    negatives_are_spend: bool = True


@router.get("/settings", response_model=HouseholdSettings)
async def get_settings(
    household_id: str = Depends(get_household_id),
    stores: LedgerStores = Depends(get_stores),
):
    value = await stores.settings.get_negatives_are_spend(household_id)
    return HouseholdSettings(negatives_are_spend=value)


@router.put("/settings", response_model=HouseholdSettings)
async def put_settings(
    body: HouseholdSettings,
    household_id: str = Depends(get_household_id),
    stores: LedgerStores = Depends(get_stores),
):
    await stores.settings.set_negatives_are_spend(household_id, body.negatives_are_spend)
    return body
