# src/launchpad/runtime/gates.py
from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from launchpad.ledger.constants import ROLE_ANY, ROLE_OWNER
from launchpad.runtime.errors import ApplyError

Json = Dict[str, Any]


def _as_str(v: Any) -> str:
    return str(v) if v is not None else ""


def collection_owner(state: Json) -> str:
    params = state.get("params") if isinstance(state, dict) else None
    if not isinstance(params, dict):
        return ""
    return _as_str(params.get("owner")).strip()


def check_role(state: Json, caller: str, role: str) -> Tuple[bool, Optional[Json]]:
    """Evaluate a single role requirement for `caller`.

    Returns (ok, details). details explains the failure and is None on success.
    """
    who = _as_str(caller).strip()
    r = _as_str(role).strip().lower()

    if r == ROLE_ANY:
        if who:
            return True, None
        return False, {"reason": "caller_required"}

    if r == ROLE_OWNER:
        owner = collection_owner(state)
        # A collection without a configured owner has no administrator at all.
        if owner and who == owner:
            return True, None
        return False, {"reason": "not_owner", "caller": who}

    return False, {"reason": "unknown_role", "role": role}


def authorize(state: Json, caller: str, role: str = ROLE_OWNER) -> None:
    """Raise ApplyError('forbidden', ...) unless `caller` holds `role`."""
    ok, details = check_role(state, caller, role)
    if ok:
        return
    reason = _as_str((details or {}).get("reason")) or "forbidden"
    raise ApplyError("forbidden", reason, details)


__all__ = ["authorize", "check_role", "collection_owner"]
