# src/launchpad/runtime/queries.py
from __future__ import annotations

"""Read-only views over collection state.

Nothing in this module mutates the state it is given. Reward projections run the
same computation as UNSTAKE so a projection followed by an unstake at the same
instant pays exactly the projected amount.
"""

from typing import Any, Dict, List, Optional

from launchpad.runtime.apply.registry import balance_of, get_token, parse_token_id
from launchpad.runtime.apply.staking import StakingApplyError, reward_for
from launchpad.runtime.metadata import token_uri
from launchpad.runtime.sigverify import SignatureVerifier, verify_whitelist_signature

Json = Dict[str, Any]


def _as_dict(v: Any) -> Json:
    return v if isinstance(v, dict) else {}


def _as_int(v: Any, default: int = 0) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        return int(default)


def calculate_token_stake_rewards(
    state: Json,
    token_ids: List[Any],
    caller: str,
    now: Optional[int] = None,
) -> List[Json]:
    """Project the reward each staked token would pay `caller` if unstaked at `now`.

    Raises not_staked if any listed token has no active stake record.
    """
    if not isinstance(token_ids, list) or not token_ids:
        raise StakingApplyError("invalid_payload", "missing_token_ids", {})

    out: List[Json] = []
    for raw in token_ids:
        tid = parse_token_id(raw)
        r = reward_for(state, tid, str(caller or "").strip(), now)
        out.append({"token_id": tid, **r.to_json()})
    return out


def verify_signature(
    state: Json,
    wallet: str,
    phase: Any,
    signature: Any,
    verifier: Optional[SignatureVerifier] = None,
) -> bool:
    return verify_whitelist_signature(state, wallet=wallet, phase=phase, signature=signature, verifier=verifier)


def token_stake(state: Json, token_id: Any) -> Optional[Json]:
    tid = parse_token_id(token_id)
    rec = _as_dict(state.get("stakes")).get(str(tid))
    return dict(rec) if isinstance(rec, dict) else None


def number_minted(state: Json, wallet: str) -> int:
    """Tokens minted by `wallet` across all phases and the public sale."""
    w = str(wallet or "").strip()
    minting = _as_dict(state.get("minting"))
    by_phase = _as_dict(_as_dict(minting.get("minted_by_phase")).get(w))
    total = sum(_as_int(v) for v in by_phase.values())
    return total + _as_int(_as_dict(minting.get("public_minted")).get(w))


def number_minted_by_phase(state: Json, wallet: str, phase: Any) -> int:
    w = str(wallet or "").strip()
    minting = _as_dict(state.get("minting"))
    by_phase = _as_dict(_as_dict(minting.get("minted_by_phase")).get(w))
    return _as_int(by_phase.get(str(_as_int(phase, -1))))


def number_minted_public(state: Json, wallet: str) -> int:
    minting = _as_dict(state.get("minting"))
    return _as_int(_as_dict(minting.get("public_minted")).get(str(wallet or "").strip()))


def stake_option(state: Json, index: Any) -> Optional[Json]:
    opts = state.get("stake_options")
    i = _as_int(index, -1)
    if not isinstance(opts, list) or not (0 <= i < len(opts)) or not isinstance(opts[i], dict):
        return None
    return dict(opts[i])


def token_info(state: Json, token_id: Any) -> Optional[Json]:
    tid = parse_token_id(token_id)
    rec = get_token(state, tid)
    if rec is None:
        return None
    return {
        "token_id": tid,
        "owner": str(rec.get("owner") or ""),
        "original_minter": str(rec.get("original_minter") or ""),
        "lifetime_reward_count": _as_int(rec.get("lifetime_reward_count")),
        "stake": token_stake(state, tid),
        "uri": token_uri(state, tid),
    }


def wallet_info(state: Json, wallet: str) -> Json:
    w = str(wallet or "").strip()
    acct = _as_dict(_as_dict(state.get("accounts")).get(w))
    return {
        "wallet": w,
        "number_minted": number_minted(state, w),
        "public_minted": number_minted_public(state, w),
        "minted_by_phase": dict(_as_dict(_as_dict(_as_dict(state.get("minting")).get("minted_by_phase")).get(w))),
        "token_balance": balance_of(state, w),
        "balance": _as_int(acct.get("balance")),
        "nonce": _as_int(acct.get("nonce")),
    }


def collection_info(state: Json) -> Json:
    """Public summary of the collection parameters and counters."""
    params = _as_dict(state.get("params"))
    minting = _as_dict(state.get("minting"))
    opts = state.get("stake_options") if isinstance(state.get("stake_options"), list) else []
    return {
        "collection_id": str(params.get("collection_id") or ""),
        "name": str(params.get("name") or ""),
        "symbol": str(params.get("symbol") or ""),
        "owner": str(params.get("owner") or ""),
        "authorized_signer": str(params.get("authorized_signer") or ""),
        "current_phase": _as_int(params.get("current_phase")),
        "phase_cost": [_as_int(x) for x in (params.get("phase_cost") or [])],
        "phase_wallet_limit": [_as_int(x) for x in (params.get("phase_wallet_limit") or [])],
        "public_sale_enabled": bool(params.get("public_sale_enabled", False)),
        "public_sale_cost": _as_int(params.get("public_sale_cost")),
        "public_sale_wallet_limit": _as_int(params.get("public_sale_wallet_limit")),
        "total_supply_limit": _as_int(params.get("total_supply_limit")),
        "total_minted": _as_int(minting.get("total_minted")),
        "stake_limit_per_token": _as_int(params.get("stake_limit_per_token")),
        "stake_options": [dict(o) for o in opts if isinstance(o, dict)],
        "pool_balance": _as_int(_as_dict(state.get("pool")).get("balance")),
        "base_uri": str(params.get("base_uri") or ""),
        "network": str(params.get("network") or ""),
        "time": _as_int(state.get("time")),
    }


__all__ = [
    "calculate_token_stake_rewards",
    "collection_info",
    "number_minted",
    "number_minted_by_phase",
    "number_minted_public",
    "stake_option",
    "token_info",
    "token_stake",
    "verify_signature",
    "wallet_info",
]
