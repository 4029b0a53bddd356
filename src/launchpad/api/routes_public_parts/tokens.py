# src/launchpad/api/routes_public_parts/tokens.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from launchpad.api.errors import ApiError
from launchpad.api.routes_public_parts.common import _int_param, _snapshot
from launchpad.runtime import queries

router = APIRouter()

Json = Dict[str, Any]


@router.get("/tokens/{token_id}")
def token(request: Request, token_id: str) -> Json:
    tid = _int_param(token_id, name="token_id")
    if tid < 1:
        raise ApiError.bad_request("bad_request", "token_id must be positive", {"token_id": tid})
    info = queries.token_info(_snapshot(request), tid)
    if info is None:
        raise ApiError.not_found("not_minted", "token has not been minted", {"token_id": tid})
    return {"ok": True, "token": info}
