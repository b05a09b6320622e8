"""FastAPI dependencies wiring request scope to the ledger stores.

Routers depend on ``get_stores``; tests override it with in-memory stores.
"""
from fastapi import Depends
from supabase import AsyncClient

from apps.api.core.auth import get_user_client
from apps.api.storage.supabase_store import supabase_stores
from packages.import_engine.stores import LedgerStores


async def get_stores(client: AsyncClient = Depends(get_user_client)) -> LedgerStores:
    """Record stores backed by a Supabase client scoped to the calling user."""
    return supabase_stores(client)
