# src/launchpad/runtime/apply/treasury.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Set

from launchpad.ledger.constants import MAX_UINT256, TOTAL_PERCENTAGE
from launchpad.runtime.errors import ApplyError
from launchpad.runtime.gates import authorize
from launchpad.runtime.tx_admission_types import TxEnvelope

Json = Dict[str, Any]


@dataclass
class TreasuryApplyError(ApplyError):
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


def _ensure_pool(state: Json) -> Json:
    pool = state.get("pool")
    if not isinstance(pool, dict):
        pool = {}
        state["pool"] = pool
    pool.setdefault("balance", 0)
    return pool


def _ensure_account(state: Json, account_id: str) -> Json:
    accounts = state.get("accounts")
    if not isinstance(accounts, dict):
        accounts = {}
        state["accounts"] = accounts
    acct = accounts.get(account_id)
    if not isinstance(acct, dict):
        acct = {"balance": 0, "nonce": 0}
        accounts[account_id] = acct
    acct.setdefault("balance", 0)
    return acct


def _parse_withdraws(raw: Any) -> List[Json]:
    if not isinstance(raw, list):
        raise TreasuryApplyError("invalid_payload", "missing_withdraws", {})
    out: List[Json] = []
    for i, item in enumerate(raw):
        d = _as_dict(item)
        wallet = _as_str(d.get("wallet") or d.get("wallet_address"))
        pct = d.get("percentage")
        if not wallet:
            raise TreasuryApplyError("invalid_payload", "missing_wallet", {"index": i})
        if isinstance(pct, bool) or not isinstance(pct, int) or pct < 0 or pct > TOTAL_PERCENTAGE:
            raise TreasuryApplyError("invalid_payload", "bad_percentage", {"index": i, "percentage": pct})
        out.append({"wallet": wallet, "percentage": int(pct)})
    return out


def _apply_withdraw(state: Json, env: TxEnvelope) -> Json:
    """
    Split the whole pool among the listed wallets by percentage.

    - owner only
    - pool must be non-empty
    - percentages must add up to exactly 100
    - each wallet receives floor(balance * pct / 100), in listed order; the
      rounding remainder stays in the pool
    """
    authorize(state, env.signer)
    payload = _as_dict(env.payload)
    pool = _ensure_pool(state)

    balance = _as_int(pool.get("balance"), 0)
    if balance <= 0:
        raise TreasuryApplyError("invalid_state", "insufficient_balance", {"balance": balance})

    withdraws = _parse_withdraws(payload.get("withdraws"))
    total = sum(w["percentage"] for w in withdraws)
    if total != TOTAL_PERCENTAGE:
        raise TreasuryApplyError("invalid_payload", "invalid_total_percentage", {"total": total})

    requester = _as_str(payload.get("requester"))
    payouts: List[Json] = []
    paid = 0
    for w in withdraws:
        amount = balance * w["percentage"] // TOTAL_PERCENTAGE
        if amount > MAX_UINT256:
            raise TreasuryApplyError("invalid_payload", "amount_overflow", {"wallet": w["wallet"]})
        acct = _ensure_account(state, w["wallet"])
        acct["balance"] = _as_int(acct.get("balance"), 0) + amount
        paid += amount
        payouts.append({"wallet": w["wallet"], "percentage": w["percentage"], "amount": amount})

    pool["balance"] = balance - paid

    return {
        "applied": "WITHDRAW",
        "paid": paid,
        "remainder": pool["balance"],
        "payouts": payouts,
        "events": [{"event": "Withdrawn", "requester": requester, "payouts": payouts}],
    }


def _apply_pool_deposit(state: Json, env: TxEnvelope) -> Json:
    amount = _as_int(env.value, 0)
    if amount <= 0:
        raise TreasuryApplyError("invalid_payload", "invalid_amount", {"value": env.value})

    pool = _ensure_pool(state)
    bal = _as_int(pool.get("balance"), 0) + amount
    if bal > MAX_UINT256:
        raise TreasuryApplyError("invalid_payload", "amount_overflow", {"value": env.value})
    pool["balance"] = bal

    return {
        "applied": "POOL_DEPOSIT",
        "from": _as_str(env.signer),
        "amount": amount,
        "events": [{"event": "Deposited", "from": _as_str(env.signer), "amount": amount}],
    }


TREASURY_TX_TYPES: Set[str] = {"WITHDRAW", "POOL_DEPOSIT"}


def apply_treasury(state: Json, env: TxEnvelope) -> Optional[Json]:
    t = _as_str(env.tx_type).upper()
    if t not in TREASURY_TX_TYPES:
        return None

    if t == "WITHDRAW":
        return _apply_withdraw(state, env)

    if t == "POOL_DEPOSIT":
        return _apply_pool_deposit(state, env)

    return None


__all__ = ["TREASURY_TX_TYPES", "TreasuryApplyError", "apply_treasury"]
