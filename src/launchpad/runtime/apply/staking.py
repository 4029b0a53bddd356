# src/launchpad/runtime/apply/staking.py
from __future__ import annotations

"""
Staking domain apply semantics.

Per-token lifecycle:  Unstaked -> STAKE -> Staked -> UNSTAKE -> Unstaked  (repeatable)

  - STAKE locks tokens the caller currently owns under one stake option.
  - UNSTAKE may only be sent by whoever started the current cycle. The reward
    is computed by launchpad.ledger.rewards and is paid from the pool only when
    the caller is the token's original minter.
  - lifetime_reward_count lives on the token record, so it carries across
    cycles and ownership changes and is never reset.

Owner-only administration of stake options and the lifetime cap lives here as well.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set

from launchpad.ledger.constants import MAX_UINT256
from launchpad.ledger.rewards import RewardError, StakeReward, compute_stake_reward
from launchpad.runtime.apply.registry import parse_token_id, require_token
from launchpad.runtime.errors import ApplyError
from launchpad.runtime.gates import authorize
from launchpad.runtime.tx_admission_types import TxEnvelope

Json = Dict[str, Any]


@dataclass
class StakingApplyError(ApplyError):
    code: str
    reason: str
    details: Optional[Json] = None


def _as_str(v: Any) -> str:
    return str(v).strip() if isinstance(v, (str, int)) else ""


def _as_int(v: Any, default: int = 0) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        return int(default)


def _as_dict(v: Any) -> Json:
    return v if isinstance(v, dict) else {}


def _strict_bool(v: Any, *, field: str) -> bool:
    if not isinstance(v, bool):
        raise StakingApplyError("invalid_payload", f"bad_{field}", {field: v})
    return v


def _strict_uint(v: Any, *, field: str) -> int:
    if isinstance(v, bool) or v is None or isinstance(v, float):
        raise StakingApplyError("invalid_payload", f"bad_{field}", {field: v})
    try:
        n = int(v)
    except (TypeError, ValueError):
        raise StakingApplyError("invalid_payload", f"bad_{field}", {field: v})
    if n < 0:
        raise StakingApplyError("invalid_payload", f"bad_{field}", {field: v})
    if n > MAX_UINT256:
        raise StakingApplyError("invalid_payload", "amount_overflow", {field: v})
    return n


def _now(state: Json) -> int:
    return _as_int(state.get("time"), 0)


def _params(state: Json) -> Json:
    params = state.get("params")
    if not isinstance(params, dict):
        params = {}
        state["params"] = params
    return params


def _ensure_options(state: Json) -> List[Json]:
    opts = state.get("stake_options")
    if not isinstance(opts, list):
        opts = []
        state["stake_options"] = opts
    return opts


def _ensure_stakes(state: Json) -> Json:
    stakes = state.get("stakes")
    if not isinstance(stakes, dict):
        stakes = {}
        state["stakes"] = stakes
    return stakes


def _token_ids(payload: Json) -> List[int]:
    raw = payload.get("token_ids")
    if not isinstance(raw, list) or not raw:
        raise StakingApplyError("invalid_payload", "missing_token_ids", {})
    return [parse_token_id(x) for x in raw]


def _option_at(state: Json, index: Any) -> Json:
    opts = _ensure_options(state)
    i = _strict_uint(index, field="option")
    if i >= len(opts) or not isinstance(opts[i], dict):
        raise StakingApplyError("not_found", "invalid_option", {"option": i, "options": len(opts)})
    return opts[i]


def _option_fields(payload: Json) -> Json:
    interval = _strict_uint(payload.get("interval"), field="interval")
    if interval == 0:
        raise StakingApplyError("invalid_payload", "invalid_interval", {"interval": 0})
    return {
        "interval": interval,
        "reward_per_interval": _strict_uint(payload.get("reward", payload.get("reward_per_interval")), field="reward"),
        "extension_limit": _strict_uint(payload.get("extension_limit"), field="extension_limit"),
        "enabled": _strict_bool(payload.get("enabled", True), field="enabled"),
    }


def reward_for(state: Json, token_id: int, identity: str, now: Optional[int] = None) -> StakeReward:
    """Reward the active stake on `token_id` would pay `identity`. Pure; raises not_staked."""
    stake = _as_dict(state.get("stakes")).get(str(int(token_id)))
    if not isinstance(stake, dict):
        raise StakingApplyError("not_found", "not_staked", {"token_id": int(token_id)})

    token = require_token(state, token_id)
    opts = state.get("stake_options")
    idx = _as_int(stake.get("option_index"), -1)
    if not isinstance(opts, list) or not (0 <= idx < len(opts)):
        raise StakingApplyError("invalid_state", "invalid_option", {"token_id": int(token_id), "option": idx})

    try:
        return compute_stake_reward(
            stake=stake,
            option=_as_dict(opts[idx]),
            token=token,
            stake_limit_per_token=_as_int(_params(state).get("stake_limit_per_token"), 0),
            identity=identity,
            now=_now(state) if now is None else int(now),
        )
    except RewardError as e:
        raise StakingApplyError(e.code, e.reason, e.details) from e


def _apply_stake(state: Json, env: TxEnvelope) -> Json:
    payload = _as_dict(env.payload)
    caller = _as_str(env.signer)
    token_ids = _token_ids(payload)

    option_index = _strict_uint(payload.get("option"), field="option")
    option = _option_at(state, option_index)
    if not bool(option.get("enabled", False)):
        raise StakingApplyError("forbidden", "option_disabled", {"option": option_index})

    limit = _as_int(_params(state).get("stake_limit_per_token"), 0)
    stakes = _ensure_stakes(state)
    now = _now(state)
    events: List[Json] = []

    for tid in token_ids:
        token = require_token(state, tid)
        if _as_str(token.get("owner")) != caller:
            raise StakingApplyError("forbidden", "not_token_owner", {"token_id": tid, "caller": caller})
        if str(tid) in stakes:
            raise StakingApplyError("conflict", "already_staked", {"token_id": tid})
        lifetime = _as_int(token.get("lifetime_reward_count"), 0)
        if lifetime >= limit:
            raise StakingApplyError(
                "limit_exceeded",
                "stake_limit_exhausted",
                {"token_id": tid, "lifetime_reward_count": lifetime, "stake_limit_per_token": limit},
            )

        stakes[str(tid)] = {"option_index": option_index, "start_time": now, "staker": caller}
        events.append({"event": "Staked", "token_id": tid, "option": option_index, "start_time": now, "staker": caller})

    return {"applied": "STAKE", "token_ids": token_ids, "option": option_index, "events": events}


def _pay_from_pool(state: Json, to: str, amount: int) -> None:
    pool = state.get("pool")
    if not isinstance(pool, dict):
        pool = {"balance": 0}
        state["pool"] = pool
    bal = _as_int(pool.get("balance"), 0)
    if bal < amount:
        raise StakingApplyError("invalid_state", "insufficient_pool_balance", {"balance": bal, "amount": amount})
    pool["balance"] = bal - amount

    accounts = state.get("accounts")
    if not isinstance(accounts, dict):
        accounts = {}
        state["accounts"] = accounts
    acct = accounts.get(to)
    if not isinstance(acct, dict):
        acct = {"balance": 0, "nonce": 0}
        accounts[to] = acct
    acct["balance"] = _as_int(acct.get("balance"), 0) + int(amount)


def _apply_unstake(state: Json, env: TxEnvelope) -> Json:
    payload = _as_dict(env.payload)
    caller = _as_str(env.signer)
    token_ids = _token_ids(payload)
    stakes = _ensure_stakes(state)
    now = _now(state)

    events: List[Json] = []
    total_reward = 0

    for tid in token_ids:
        stake = stakes.get(str(tid))
        if not isinstance(stake, dict):
            raise StakingApplyError("not_found", "not_staked", {"token_id": tid})
        if _as_str(stake.get("staker")) != caller:
            raise StakingApplyError("forbidden", "not_stake_owner", {"token_id": tid, "caller": caller})

        r = reward_for(state, tid, caller, now)
        token = require_token(state, tid)
        if r.reward_count > 0:
            token["lifetime_reward_count"] = _as_int(token.get("lifetime_reward_count"), 0) + r.reward_count
            _pay_from_pool(state, caller, r.reward)
            total_reward += r.reward

        del stakes[str(tid)]
        events.append(
            {
                "event": "Unstaked",
                "token_id": tid,
                "option": _as_int(stake.get("option_index"), 0),
                "reward": r.reward,
                "reward_count": r.reward_count,
                "total_token_stake_count": _as_int(token.get("lifetime_reward_count"), 0),
                "start_time": _as_int(stake.get("start_time"), 0),
                "end_time": now,
            }
        )

    return {"applied": "UNSTAKE", "token_ids": token_ids, "total_reward": total_reward, "events": events}


def _apply_stake_limit_per_token_update(state: Json, env: TxEnvelope) -> Json:
    authorize(state, env.signer)
    limit = _strict_uint(_as_dict(env.payload).get("limit"), field="limit")
    _params(state)["stake_limit_per_token"] = limit
    return {"applied": "STAKE_LIMIT_PER_TOKEN_UPDATE", "stake_limit_per_token": limit}


def _apply_stake_option_add(state: Json, env: TxEnvelope) -> Json:
    authorize(state, env.signer)
    opt = _option_fields(_as_dict(env.payload))
    opts = _ensure_options(state)
    opts.append(opt)
    return {"applied": "STAKE_OPTION_ADD", "option": len(opts) - 1, "stake_option": dict(opt)}


def _apply_stake_option_update(state: Json, env: TxEnvelope) -> Json:
    authorize(state, env.signer)
    payload = _as_dict(env.payload)
    index = _strict_uint(payload.get("option"), field="option")
    existing = _option_at(state, index)
    opt = _option_fields(payload)
    existing.update(opt)
    return {"applied": "STAKE_OPTION_UPDATE", "option": index, "stake_option": dict(existing)}


def _apply_stake_options_toggle_all(state: Json, env: TxEnvelope) -> Json:
    authorize(state, env.signer)
    payload = _as_dict(env.payload)
    if "enabled" not in payload:
        raise StakingApplyError("invalid_payload", "missing_enabled", {})
    enabled = _strict_bool(payload.get("enabled"), field="enabled")
    opts = _ensure_options(state)
    for opt in opts:
        if isinstance(opt, dict):
            opt["enabled"] = enabled
    return {"applied": "STAKE_OPTIONS_TOGGLE_ALL", "enabled": enabled, "options": len(opts)}


STAKING_TX_TYPES: Set[str] = {
    "STAKE",
    "UNSTAKE",
    "STAKE_LIMIT_PER_TOKEN_UPDATE",
    "STAKE_OPTION_ADD",
    "STAKE_OPTION_UPDATE",
    "STAKE_OPTIONS_TOGGLE_ALL",
}


def apply_staking(state: Json, env: TxEnvelope) -> Optional[Json]:
    t = _as_str(env.tx_type).upper()
    if t not in STAKING_TX_TYPES:
        return None

    if t == "STAKE":
        return _apply_stake(state, env)

    if t == "UNSTAKE":
        return _apply_unstake(state, env)

    if t == "STAKE_LIMIT_PER_TOKEN_UPDATE":
        return _apply_stake_limit_per_token_update(state, env)

    if t == "STAKE_OPTION_ADD":
        return _apply_stake_option_add(state, env)

    if t == "STAKE_OPTION_UPDATE":
        return _apply_stake_option_update(state, env)

    if t == "STAKE_OPTIONS_TOGGLE_ALL":
        return _apply_stake_options_toggle_all(state, env)

    return None


__all__ = ["STAKING_TX_TYPES", "StakingApplyError", "apply_staking", "reward_for"]
