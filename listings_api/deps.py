# listings_api/deps.py
import hmac
import logging
from typing import Any, Dict, Optional

from fastapi import Depends, Header, HTTPException, Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from listings_api.config import Settings
from listings_api.repository.listings import ListingStore, SqlListingStore

LOG = logging.getLogger("deps")


def build_engine(settings: Settings) -> Engine:
    """Single engine (connection pool) for the process."""
    connect_args = {"connect_timeout": settings.connect_timeout}
    if settings.database_ssl:
        connect_args["sslmode"] = "require"
    return create_engine(
        settings.database_url,
        future=True,
        pool_pre_ping=True,
        pool_size=settings.pool_size,
        max_overflow=settings.max_overflow,
        connect_args=connect_args,
    )


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> ListingStore:
    """
    FastAPI dependency returning the app's ListingStore.
    No connection is taken here; the store checks one out per query.
    """
    return request.app.state.store


def build_store(settings: Settings) -> ListingStore:
    if settings.store_backend == "memory":
        from listings_api.repository.memory import InMemoryListingStore
        return InMemoryListingStore()
    return SqlListingStore(build_engine(settings))


def require_admin(
    x_admin_key: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> None:
    # With no key configured nobody is an admin.
    if not settings.admin_key or not x_admin_key:
        raise HTTPException(status_code=401, detail="Unauthorized")
    if not hmac.compare_digest(x_admin_key.encode(), settings.admin_key.encode()):
        LOG.warning("Rejected admin request with a wrong x-admin-key")
        raise HTTPException(status_code=401, detail="Unauthorized")


async def json_object_body(request: Request) -> Dict[str, Any]:
    """
    Reads the body as a JSON object. Used after require_admin so that an
    unauthenticated caller gets 401 whatever they send.
    """
    try:
        body = await request.json()
    except ValueError:
        raise HTTPException(status_code=400, detail="Request body must be JSON")
    if not isinstance(body, dict):
        raise HTTPException(status_code=400, detail="Request body must be a JSON object")
    return body
