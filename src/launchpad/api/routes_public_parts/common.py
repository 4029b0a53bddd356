# src/launchpad/api/routes_public_parts/common.py
from __future__ import annotations

from typing import Any, Dict, List

from fastapi import Request

from launchpad.api.errors import ApiError

Json = Dict[str, Any]


def _executor(request: Request):
    ex = getattr(request.app.state, "executor", None)
    if ex is None:
        raise ApiError.internal("not_ready", "executor not attached to app.state", {})
    return ex


def _snapshot(request: Request) -> Json:
    """Deep copy of the current collection state."""
    ex = _executor(request)
    st = ex.snapshot()
    return st if isinstance(st, dict) else dict(st)


def _require_signatures(request: Request) -> bool:
    cfg = getattr(request.app.state, "cfg", None)
    return bool(getattr(cfg, "require_tx_signatures", True))


def _int_param(v: Any, *, name: str) -> int:
    """Parse a required int query/path param, 400 on garbage."""
    s = str(v if v is not None else "").strip()
    try:
        return int(s)
    except ValueError:
        raise ApiError.bad_request("bad_request", f"{name} must be an integer", {name: v})


def _csv_ints(v: Any, *, name: str) -> List[int]:
    """Parse "1,2,3" into [1, 2, 3]."""
    s = str(v or "").strip()
    if not s:
        raise ApiError.bad_request("bad_request", f"missing {name}", {})
    out: List[int] = []
    for part in s.split(","):
        part = part.strip()
        if part:
            out.append(_int_param(part, name=name))
    if not out:
        raise ApiError.bad_request("bad_request", f"missing {name}", {})
    return out
