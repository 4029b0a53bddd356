# src/launchpad/api/routes_public.py
from __future__ import annotations

from fastapi import APIRouter

from launchpad.api.routes_public_parts.collection import router as collection_router
from launchpad.api.routes_public_parts.health import router as health_router
from launchpad.api.routes_public_parts.staking import router as staking_router
from launchpad.api.routes_public_parts.tokens import router as tokens_router
from launchpad.api.routes_public_parts.tx import router as tx_router

public_router = APIRouter()

public_router.include_router(health_router, prefix="/v1", tags=["health"])
public_router.include_router(collection_router, prefix="/v1", tags=["collection"])
public_router.include_router(tokens_router, prefix="/v1", tags=["tokens"])
public_router.include_router(staking_router, prefix="/v1", tags=["staking"])
public_router.include_router(tx_router, prefix="/v1", tags=["tx"])
