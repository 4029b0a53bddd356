# src/launchpad/api/routes_public_parts/staking.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Request

from launchpad.api.errors import ApiError
from launchpad.api.routes_public_parts.common import _csv_ints, _executor, _int_param, _snapshot
from launchpad.runtime import queries

router = APIRouter()

Json = Dict[str, Any]


@router.get("/stakes/rewards")
def stake_rewards(request: Request, token_ids: str, caller: str) -> Json:
    """Reward projection for unstaking `token_ids` now as `caller`. Read-only."""
    ids = _csv_ints(token_ids, name="token_ids")
    ex = _executor(request)
    rewards = ex.calculate_token_stake_rewards(ids, caller)
    return {
        "ok": True,
        "caller": caller,
        "rewards": rewards,
        "total_reward": sum(int(r["reward"]) for r in rewards),
    }


@router.get("/stake-options/{index}")
def stake_option(request: Request, index: str) -> Json:
    i = _int_param(index, name="index")
    opt = queries.stake_option(_snapshot(request), i)
    if opt is None:
        raise ApiError.not_found("invalid_option", "stake option does not exist", {"option": i})
    return {"ok": True, "option": i, "stake_option": opt}
