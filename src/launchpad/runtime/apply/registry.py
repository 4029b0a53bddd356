# src/launchpad/runtime/apply/registry.py
from __future__ import annotations

"""
Ownership registry.

Tracks who currently holds each issued token and who originally minted it.
Tokens are issued only through the issuance gate; the one user-facing action
here is TOKEN_TRANSFER, which refuses to move a token that is staked.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional, Set

from launchpad.ledger.constants import FIRST_TOKEN_ID
from launchpad.runtime.errors import ApplyError
from launchpad.runtime.tx_admission_types import TxEnvelope

Json = Dict[str, Any]


@dataclass
class RegistryApplyError(ApplyError):
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


def _ensure_root_dict(state: Json, key: str) -> Json:
    cur = state.get(key)
    if not isinstance(cur, dict):
        cur = {}
        state[key] = cur
    return cur


def _ensure_registry(state: Json) -> Json:
    reg = _ensure_root_dict(state, "registry")
    reg.setdefault("next_token_id", FIRST_TOKEN_ID)
    if not isinstance(reg.get("balances"), dict):
        reg["balances"] = {}
    return reg


def _ensure_tokens(state: Json) -> Json:
    return _ensure_root_dict(state, "tokens")


def parse_token_id(v: Any) -> int:
    """Token ids are positive integers; bools and non-integral strings are rejected."""
    if isinstance(v, bool):
        raise RegistryApplyError("invalid_payload", "bad_token_id", {"token_id": v})
    try:
        tid = int(str(v).strip()) if isinstance(v, str) else int(v)
    except (TypeError, ValueError):
        raise RegistryApplyError("invalid_payload", "bad_token_id", {"token_id": v})
    if tid < FIRST_TOKEN_ID:
        raise RegistryApplyError("invalid_payload", "bad_token_id", {"token_id": v})
    return tid


def get_token(state: Json, token_id: int) -> Optional[Json]:
    tokens = state.get("tokens")
    if not isinstance(tokens, dict):
        return None
    rec = tokens.get(str(int(token_id)))
    return rec if isinstance(rec, dict) else None


def require_token(state: Json, token_id: int) -> Json:
    rec = get_token(state, token_id)
    if rec is None:
        raise RegistryApplyError("not_found", "not_minted", {"token_id": int(token_id)})
    return rec


def owner_of(state: Json, token_id: int) -> str:
    return _as_str(require_token(state, token_id).get("owner"))


def balance_of(state: Json, wallet: str) -> int:
    reg = _as_dict(state.get("registry"))
    return _as_int(_as_dict(reg.get("balances")).get(_as_str(wallet)), 0)


def is_staked(state: Json, token_id: int) -> bool:
    stakes = state.get("stakes")
    return isinstance(stakes, dict) and isinstance(stakes.get(str(int(token_id))), dict)


def _move_balance(reg: Json, wallet: str, delta: int) -> None:
    balances = reg["balances"]
    cur = _as_int(balances.get(wallet), 0) + int(delta)
    if cur < 0:
        raise RegistryApplyError("invalid_state", "negative_token_balance", {"wallet": wallet})
    if cur == 0:
        balances.pop(wallet, None)
    else:
        balances[wallet] = cur


def issue_token(state: Json, to: str) -> int:
    """Issue the next token id to `to`, recording `to` as its permanent original minter."""
    holder = _as_str(to)
    if not holder:
        raise RegistryApplyError("invalid_payload", "missing_recipient", {})

    reg = _ensure_registry(state)
    tokens = _ensure_tokens(state)

    tid = _as_int(reg.get("next_token_id"), FIRST_TOKEN_ID)
    if str(tid) in tokens:
        raise RegistryApplyError("invalid_state", "token_id_exists", {"token_id": tid})

    tokens[str(tid)] = {
        "token_id": tid,
        "owner": holder,
        "original_minter": holder,
        "lifetime_reward_count": 0,
    }
    _move_balance(reg, holder, 1)
    reg["next_token_id"] = tid + 1
    return tid


def _apply_token_transfer(state: Json, env: TxEnvelope) -> Json:
    payload = _as_dict(env.payload)
    to = _as_str(payload.get("to"))
    if not to:
        raise RegistryApplyError("invalid_payload", "missing_to", {"tx_type": env.tx_type})

    tid = parse_token_id(payload.get("token_id"))
    rec = require_token(state, tid)

    frm = _as_str(env.signer)
    if _as_str(rec.get("owner")) != frm:
        raise RegistryApplyError("forbidden", "not_token_owner", {"token_id": tid, "caller": frm})

    # Staked tokens are transfer-locked until unstaked.
    if is_staked(state, tid):
        raise RegistryApplyError("forbidden", "token_staked", {"token_id": tid})

    reg = _ensure_registry(state)
    _move_balance(reg, frm, -1)
    _move_balance(reg, to, 1)
    rec["owner"] = to

    return {
        "applied": "TOKEN_TRANSFER",
        "token_id": tid,
        "from": frm,
        "to": to,
        "events": [{"event": "Transfer", "from": frm, "to": to, "token_id": tid}],
    }


REGISTRY_TX_TYPES: Set[str] = {"TOKEN_TRANSFER"}


def apply_registry(state: Json, env: TxEnvelope) -> Optional[Json]:
    t = _as_str(env.tx_type).upper()
    if t not in REGISTRY_TX_TYPES:
        return None

    if t == "TOKEN_TRANSFER":
        return _apply_token_transfer(state, env)

    return None


__all__ = [
    "RegistryApplyError",
    "apply_registry",
    "balance_of",
    "get_token",
    "is_staked",
    "issue_token",
    "owner_of",
    "parse_token_id",
    "require_token",
]
