# src/launchpad/runtime/apply/issuance.py
from __future__ import annotations

"""
Issuance gate apply semantics.

Two mint paths share supply and wallet-limit accounting:

  - PRIVATE_MINT: requires a whitelist signature from params.authorized_signer,
    bound to (collection, caller, current phase); priced and limited per phase.
  - MINT: public sale; priced and limited by the public-sale parameters.

The paths are mutually exclusive on params.public_sale_enabled. Payment attached
to the call must match amount * unit cost exactly and is credited to the pool.

Owner-only administration of phase, prices, limits and the signature blacklist
lives here as well.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set

from launchpad.crypto.sig import normalize_signature
from launchpad.ledger.constants import MAX_UINT256
from launchpad.runtime.apply.registry import issue_token
from launchpad.runtime.errors import ApplyError
from launchpad.runtime.gates import authorize
from launchpad.runtime.sigverify import SignatureVerifier, verify_whitelist_signature
from launchpad.runtime.tx_admission_types import TxEnvelope

Json = Dict[str, Any]


@dataclass
class IssuanceApplyError(ApplyError):
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


def _as_list(v: Any) -> List[Any]:
    return v if isinstance(v, list) else []


def _strict_uint(v: Any, *, field: str) -> int:
    """Parse a non-negative integer payload field, rejecting bools, floats and overflow."""
    if isinstance(v, bool) or v is None or isinstance(v, float):
        raise IssuanceApplyError("invalid_payload", f"bad_{field}", {field: v})
    try:
        n = int(v)
    except (TypeError, ValueError):
        raise IssuanceApplyError("invalid_payload", f"bad_{field}", {field: v})
    if n < 0:
        raise IssuanceApplyError("invalid_payload", f"bad_{field}", {field: v})
    if n > MAX_UINT256:
        raise IssuanceApplyError("invalid_payload", "amount_overflow", {field: v})
    return n


def _params(state: Json) -> Json:
    params = state.get("params")
    if not isinstance(params, dict):
        params = {}
        state["params"] = params
    return params


def _ensure_minting(state: Json) -> Json:
    m = state.get("minting")
    if not isinstance(m, dict):
        m = {}
        state["minting"] = m
    m.setdefault("total_minted", 0)
    if not isinstance(m.get("minted_by_phase"), dict):
        m["minted_by_phase"] = {}
    if not isinstance(m.get("public_minted"), dict):
        m["public_minted"] = {}
    if not isinstance(m.get("blacklist"), list):
        m["blacklist"] = []
    return m


def _phase_count(params: Json) -> int:
    return len(_as_list(params.get("phase_cost")))


def _credit_pool(state: Json, amount: int) -> None:
    pool = state.get("pool")
    if not isinstance(pool, dict):
        pool = {"balance": 0}
        state["pool"] = pool
    bal = _as_int(pool.get("balance"), 0) + int(amount)
    if bal > MAX_UINT256:
        raise IssuanceApplyError("invalid_payload", "amount_overflow", {"pool_balance": bal})
    pool["balance"] = bal


def _require_exact_payment(env: TxEnvelope, amount: int, unit_cost: int) -> int:
    expected = int(amount) * int(unit_cost)
    if expected > MAX_UINT256:
        raise IssuanceApplyError("invalid_payload", "amount_overflow", {"amount": amount, "unit_cost": unit_cost})
    paid = _as_int(env.value, -1)
    if paid != expected:
        raise IssuanceApplyError(
            "invalid_payment",
            "invalid_cost_amount",
            {"expected": expected, "value": env.value},
        )
    return expected


def _require_supply(state: Json, minting: Json, amount: int) -> None:
    limit = _as_int(_params(state).get("total_supply_limit"), 0)
    total = _as_int(minting.get("total_minted"), 0)
    if total + int(amount) > limit:
        raise IssuanceApplyError(
            "limit_exceeded",
            "supply_exceeded",
            {"total_minted": total, "amount": int(amount), "total_supply_limit": limit},
        )


def _issue(state: Json, minting: Json, to: str, amount: int) -> List[int]:
    ids = [issue_token(state, to) for _ in range(int(amount))]
    minting["total_minted"] = _as_int(minting.get("total_minted"), 0) + int(amount)
    return ids


def _canonical_signature(v: Any, *, reason: str) -> str:
    s = v.strip() if isinstance(v, str) else ""
    if not s:
        raise IssuanceApplyError("invalid_payload", reason, {"entry": v})
    try:
        return normalize_signature(s)
    except ValueError:
        raise IssuanceApplyError("invalid_payload", reason, {"entry": v})


def _mint_amount(payload: Json) -> int:
    amount = _strict_uint(payload.get("amount"), field="amount")
    if amount <= 0:
        raise IssuanceApplyError("invalid_payload", "invalid_amount", {"amount": payload.get("amount")})
    return amount


def _apply_private_mint(state: Json, env: TxEnvelope, verifier: Optional[SignatureVerifier]) -> Json:
    payload = _as_dict(env.payload)
    params = _params(state)
    minting = _ensure_minting(state)
    wallet = _as_str(env.signer)

    if bool(params.get("public_sale_enabled", False)):
        raise IssuanceApplyError("forbidden", "public_sale_active", {})

    amount = _mint_amount(payload)
    phase = _as_int(params.get("current_phase"), 0)
    signature = payload.get("signature")

    if not verify_whitelist_signature(state, wallet=wallet, phase=phase, signature=signature, verifier=verifier):
        raise IssuanceApplyError("forbidden", "invalid_signature", {"wallet": wallet, "phase": phase})

    # Blacklist entries are canonical hex, so every encoding of a signature is blocked.
    if _canonical_signature(signature, reason="invalid_signature") in set(minting["blacklist"]):
        raise IssuanceApplyError("forbidden", "signature_blacklisted", {"wallet": wallet})

    costs = _as_list(params.get("phase_cost"))
    limits = _as_list(params.get("phase_wallet_limit"))
    if not (0 <= phase < len(costs) and len(costs) == len(limits)):
        raise IssuanceApplyError("invalid_state", "invalid_phase", {"phase": phase})

    paid = _require_exact_payment(env, amount, _as_int(costs[phase], 0))
    _require_supply(state, minting, amount)

    by_wallet = minting["minted_by_phase"].get(wallet)
    if not isinstance(by_wallet, dict):
        by_wallet = {}
    already = _as_int(by_wallet.get(str(phase)), 0)
    limit = _as_int(limits[phase], 0)
    if already + amount > limit:
        raise IssuanceApplyError(
            "limit_exceeded",
            "wallet_limit_exceeded",
            {"wallet": wallet, "phase": phase, "minted": already, "amount": amount, "limit": limit},
        )

    by_wallet[str(phase)] = already + amount
    minting["minted_by_phase"][wallet] = by_wallet
    token_ids = _issue(state, minting, wallet, amount)
    _credit_pool(state, paid)

    return {
        "applied": "PRIVATE_MINT",
        "wallet": wallet,
        "phase": phase,
        "amount": amount,
        "paid": paid,
        "token_ids": token_ids,
        "events": [{"event": "Transfer", "from": "", "to": wallet, "token_id": t} for t in token_ids],
    }


def _apply_public_mint(state: Json, env: TxEnvelope) -> Json:
    payload = _as_dict(env.payload)
    params = _params(state)
    minting = _ensure_minting(state)
    wallet = _as_str(env.signer)

    if not bool(params.get("public_sale_enabled", False)):
        raise IssuanceApplyError("forbidden", "public_sale_disabled", {})

    amount = _mint_amount(payload)
    paid = _require_exact_payment(env, amount, _as_int(params.get("public_sale_cost"), 0))
    _require_supply(state, minting, amount)

    already = _as_int(minting["public_minted"].get(wallet), 0)
    limit = _as_int(params.get("public_sale_wallet_limit"), 0)
    if already + amount > limit:
        raise IssuanceApplyError(
            "limit_exceeded",
            "wallet_limit_exceeded",
            {"wallet": wallet, "minted": already, "amount": amount, "limit": limit},
        )

    minting["public_minted"][wallet] = already + amount
    token_ids = _issue(state, minting, wallet, amount)
    _credit_pool(state, paid)

    return {
        "applied": "MINT",
        "wallet": wallet,
        "amount": amount,
        "paid": paid,
        "token_ids": token_ids,
        "events": [{"event": "Transfer", "from": "", "to": wallet, "token_id": t} for t in token_ids],
    }


def _apply_public_sale_toggle(state: Json, env: TxEnvelope) -> Json:
    authorize(state, env.signer)
    params = _params(state)
    params["public_sale_enabled"] = not bool(params.get("public_sale_enabled", False))
    return {"applied": "PUBLIC_SALE_TOGGLE", "public_sale_enabled": params["public_sale_enabled"]}


def _apply_phase_set(state: Json, env: TxEnvelope) -> Json:
    authorize(state, env.signer)
    params = _params(state)
    phase = _strict_uint(_as_dict(env.payload).get("phase"), field="phase")
    if phase >= _phase_count(params):
        raise IssuanceApplyError("invalid_payload", "invalid_phase", {"phase": phase, "phases": _phase_count(params)})
    params["current_phase"] = phase
    return {"applied": "PHASE_SET", "current_phase": phase}


def _apply_public_sale_cost_set(state: Json, env: TxEnvelope) -> Json:
    authorize(state, env.signer)
    cost = _strict_uint(_as_dict(env.payload).get("cost"), field="cost")
    _params(state)["public_sale_cost"] = cost
    return {"applied": "PUBLIC_SALE_COST_SET", "public_sale_cost": cost}


def _apply_mint_limit_by_wallet_set(state: Json, env: TxEnvelope) -> Json:
    authorize(state, env.signer)
    payload = _as_dict(env.payload)
    params = _params(state)

    raw = payload.get("phase_limits")
    if not isinstance(raw, list):
        raise IssuanceApplyError("invalid_payload", "missing_phase_limits", {})
    if len(raw) != _phase_count(params):
        raise IssuanceApplyError(
            "invalid_payload",
            "invalid_limit_length",
            {"got": len(raw), "want": _phase_count(params)},
        )

    phase_limits = [_strict_uint(x, field="phase_limit") for x in raw]
    public_limit = _strict_uint(payload.get("public_limit"), field="public_limit")

    params["phase_wallet_limit"] = phase_limits
    params["public_sale_wallet_limit"] = public_limit
    return {"applied": "MINT_LIMIT_BY_WALLET_SET", "phase_limits": phase_limits, "public_limit": public_limit}


def _apply_signatures_blacklist(state: Json, env: TxEnvelope) -> Json:
    authorize(state, env.signer)
    raw = _as_dict(env.payload).get("signatures")
    if not isinstance(raw, list):
        raise IssuanceApplyError("invalid_payload", "missing_signatures", {})

    minting = _ensure_minting(state)
    current = set(str(s) for s in minting["blacklist"])
    added = 0
    for s in raw:
        sig = _canonical_signature(s, reason="bad_signature_entry")
        if sig not in current:
            current.add(sig)
            added += 1

    # Stored sorted so persisted snapshots are stable.
    minting["blacklist"] = sorted(current)
    return {"applied": "SIGNATURES_BLACKLIST", "added": added, "total": len(current)}


ISSUANCE_TX_TYPES: Set[str] = {
    "PRIVATE_MINT",
    "MINT",
    "PUBLIC_SALE_TOGGLE",
    "PHASE_SET",
    "PUBLIC_SALE_COST_SET",
    "MINT_LIMIT_BY_WALLET_SET",
    "SIGNATURES_BLACKLIST",
}


def apply_issuance(state: Json, env: TxEnvelope, *, verifier: Optional[SignatureVerifier] = None) -> Optional[Json]:
    """
    Returns:
      - dict: applied result (receipt)
      - None: tx_type not in the issuance domain
    """
    t = _as_str(env.tx_type).upper()
    if t not in ISSUANCE_TX_TYPES:
        return None

    if t == "PRIVATE_MINT":
        return _apply_private_mint(state, env, verifier)

    if t == "MINT":
        return _apply_public_mint(state, env)

    if t == "PUBLIC_SALE_TOGGLE":
        return _apply_public_sale_toggle(state, env)

    if t == "PHASE_SET":
        return _apply_phase_set(state, env)

    if t == "PUBLIC_SALE_COST_SET":
        return _apply_public_sale_cost_set(state, env)

    if t == "MINT_LIMIT_BY_WALLET_SET":
        return _apply_mint_limit_by_wallet_set(state, env)

    if t == "SIGNATURES_BLACKLIST":
        return _apply_signatures_blacklist(state, env)

    return None


__all__ = ["ISSUANCE_TX_TYPES", "IssuanceApplyError", "apply_issuance"]
