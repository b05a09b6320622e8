"""Centralized request-scope dependencies.

Provides user-scoped and service-role Supabase clients and the active
household for a request. Sign-in and household membership live outside
this service: the caller's JWT is forwarded so Row-Level Security decides
which households it may touch.
"""

import os

from fastapi import Depends, Header, HTTPException
from supabase import AsyncClient, acreate_client


def _get_supabase_url() -> str:
    url = os.environ.get("SUPABASE_URL") or os.environ.get("NEXT_PUBLIC_SUPABASE_URL")
    if not url:
        raise RuntimeError("SUPABASE_URL is not configured")
    return url


def _get_supabase_anon_key() -> str:
    key = os.environ.get("SUPABASE_ANON_KEY") or os.environ.get("NEXT_PUBLIC_SUPABASE_ANON_KEY")
    if not key:
        raise RuntimeError("SUPABASE_ANON_KEY is not configured")
    return key


async def get_user_token(authorization: str = Header(default="")) -> str:
    """Extract Bearer token from Authorization header.

    Returns the raw JWT string.
    """
    if not authorization.startswith("Bearer "):
        raise HTTPException(
            status_code=401,
            detail="Missing or invalid Authorization header. Expected: Bearer <token>",
        )

    token = authorization[7:].strip()
    if not token:
        raise HTTPException(
            status_code=401,
            detail="Missing bearer token",
        )
    return token


async def get_household_id(x_household_id: str = Header(default="")) -> str:
    """The household every read and write in this request is scoped to."""
    household_id = x_household_id.strip()
    if not household_id:
        raise HTTPException(status_code=400, detail="Missing X-Household-Id header")
    return household_id


async def get_user_client(token: str = Depends(get_user_token)) -> AsyncClient:
    """Provide an async Supabase client that queries as the calling user.

    RLS policies will be enforced for all queries.

    Note: only PostgREST requests carry the JWT. No auth session is stored,
    since the gateway is stateless and never refreshes tokens.
    """
    client = await acreate_client(_get_supabase_url(), _get_supabase_anon_key())
    client.postgrest.auth(token)
    return client


async def get_service_client() -> AsyncClient:
    """Provide a service-role Supabase client (bypasses RLS).

    Used by the import CLI, which runs outside any user session.
    """
    url = _get_supabase_url()
    service_key = os.environ.get("SUPABASE_SERVICE_KEY", "")
    if not service_key:
        raise RuntimeError("SUPABASE_SERVICE_KEY is not configured")
    return await acreate_client(url, service_key)
