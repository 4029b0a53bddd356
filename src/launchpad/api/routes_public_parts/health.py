# src/launchpad/api/routes_public_parts/health.py
from __future__ import annotations

import time
from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter()


def _now_ms() -> int:
    return int(time.time() * 1000)


@router.get("/health")
def health(request: Request) -> Dict[str, Any]:
    # Never raises: reports ready=false when no executor is attached.
    ex = getattr(request.app.state, "executor", None)
    collection_id = None
    tx_count = None
    if ex is not None:
        st = ex.read_state()
        params = st.get("params") if isinstance(st.get("params"), dict) else {}
        collection_id = str(params.get("collection_id") or "") or None
        tx_count = int(st.get("tx_count", 0) or 0)

    cfg = getattr(request.app.state, "cfg", None)
    return {
        "ok": True,
        "service": "launchpad",
        "version": "v1",
        "ts_ms": _now_ms(),
        "ready": ex is not None,
        "mode": getattr(cfg, "mode", None),
        "collection_id": collection_id,
        "tx_count": tx_count,
    }
