# src/launchpad/runtime/state_invariants.py
from __future__ import annotations

"""State invariants / normalization helpers.

Collection state is a nested JSON-like dict that is mutated deterministically by apply_* modules.
This module is the single place that:

  - validates the state is dict-like
  - ensures core top-level containers exist (so domain modules can rely on them)

Only *core* containers are created here (accounts, params, pool). Domain-specific
containers remain the responsibility of the corresponding apply_* module.
"""

from collections.abc import MutableMapping
from typing import Any, Dict

Json = Dict[str, Any]


def ensure_state(st: Any) -> Json:
    """Ensure `st` is a dict and contains core keys.

    Returns the (possibly mutated) dict.

    Raises:
        TypeError: if st is not a MutableMapping
    """
    if not isinstance(st, MutableMapping):
        raise TypeError(f"state must be MutableMapping, got {type(st)}")

    # Accounts carry payout balances and consumed nonces.
    acc = st.get("accounts")
    if acc is None:
        st["accounts"] = {}
    elif not isinstance(acc, dict):
        # Fail closed: do not attempt to coerce arbitrary types.
        raise TypeError(f"state['accounts'] must be dict, got {type(acc)}")

    # Params carries the collection parameters (owner, phase tables, limits).
    params = st.get("params")
    if params is None:
        st["params"] = {}
    elif not isinstance(params, dict):
        raise TypeError(f"state['params'] must be dict, got {type(params)}")

    pool = st.get("pool")
    if pool is None:
        st["pool"] = {"balance": 0}
    elif not isinstance(pool, dict):
        raise TypeError(f"state['pool'] must be dict, got {type(pool)}")

    return st  # type: ignore[return-value]


__all__ = ["ensure_state"]
