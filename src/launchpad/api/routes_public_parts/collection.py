# src/launchpad/api/routes_public_parts/collection.py
from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Request

from launchpad.api.routes_public_parts.common import _executor, _int_param, _snapshot
from launchpad.runtime import queries

router = APIRouter()

Json = Dict[str, Any]


@router.get("/collection")
def collection(request: Request) -> Json:
    st = _snapshot(request)
    return {"ok": True, "collection": queries.collection_info(st)}


@router.get("/collection/events")
def collection_events(
    request: Request,
    after_seq: int = 0,
    limit: int = 100,
    event: Optional[str] = None,
) -> Json:
    """Persisted event log when a DB is configured, else the in-memory tail."""
    ex = _executor(request)
    limit = max(1, min(int(limit), 1000))
    store = getattr(ex, "store", None)
    if store is not None:
        events = store.read_events(after_seq=int(after_seq), limit=limit, event=event)
    else:
        events = [e for e in ex.recent_events(limit=limit) if not event or e.get("event") == event]
    return {"ok": True, "events": events}


@router.get("/signatures/verify")
def signatures_verify(request: Request, wallet: str, phase: str, signature: str) -> Json:
    ex = _executor(request)
    ph = _int_param(phase, name="phase")
    return {
        "ok": True,
        "wallet": wallet,
        "phase": ph,
        "valid": bool(ex.verify_signature(wallet, ph, signature)),
    }


@router.get("/wallets/{wallet}/minted")
def wallet_minted(request: Request, wallet: str) -> Json:
    st = _snapshot(request)
    return {"ok": True, **queries.wallet_info(st, wallet)}
