# src/launchpad/runtime/domain_dispatch.py

from __future__ import annotations

from functools import partial
from typing import Any, Callable, Dict, FrozenSet, Optional, Tuple

from launchpad.ledger.rewards import RewardError
from launchpad.runtime.apply.issuance import ISSUANCE_TX_TYPES, apply_issuance
from launchpad.runtime.apply.registry import REGISTRY_TX_TYPES, apply_registry
from launchpad.runtime.apply.staking import STAKING_TX_TYPES, apply_staking
from launchpad.runtime.apply.treasury import TREASURY_TX_TYPES, apply_treasury
from launchpad.runtime.errors import ApplyError
from launchpad.runtime.sigverify import SignatureVerifier
from launchpad.runtime.state_invariants import ensure_state
from launchpad.runtime.tx_admission_types import TxEnvelope

Json = Dict[str, Any]
ApplyFn = Callable[[Json, TxEnvelope], Optional[Json]]

SUPPORTED_TX_TYPES: FrozenSet[str] = frozenset(
    ISSUANCE_TX_TYPES | STAKING_TX_TYPES | REGISTRY_TX_TYPES | TREASURY_TX_TYPES
)


def _appliers(verifier: Optional[SignatureVerifier]) -> Tuple[ApplyFn, ...]:
    return (
        partial(apply_issuance, verifier=verifier),
        apply_staking,
        apply_registry,
        apply_treasury,
    )


def envelope_from_any(env: Any) -> TxEnvelope:
    """Normalize a TxEnvelope or raw dict envelope; malformed fields raise ApplyError."""
    if isinstance(env, TxEnvelope):
        return env
    if not isinstance(env, dict):
        raise ApplyError("invalid_tx", "bad_envelope", {"type": str(type(env))})
    try:
        return TxEnvelope.from_json(env)
    except (TypeError, ValueError) as e:
        raise ApplyError("invalid_tx", "envelope_fields_invalid", {"error": str(e)}) from e


def _tx_type(env: TxEnvelope) -> str:
    return str(env.tx_type or "").strip().upper()


def apply_tx(state: Json, env: Any, *, verifier: Optional[SignatureVerifier] = None) -> Json:
    """Dispatch a TxEnvelope to the first domain applier that claims it.

    This mutates `state` in place and is NOT atomic on its own: a failure may
    leave earlier writes of the same tx behind. Callers that need all-or-nothing
    semantics apply to a copy (see CollectionExecutor.submit).
    """

    ensure_state(state)

    env_norm = envelope_from_any(env)

    t = _tx_type(env_norm)
    if not t:
        raise ApplyError("invalid_tx", "missing_tx_type", {"tx_type": t})

    if bool(env_norm.system):
        # The collection has no system-originated actions.
        raise ApplyError("forbidden", "system_tx_forbidden", {"tx_type": t})

    if not str(env_norm.signer or "").strip():
        raise ApplyError("invalid_tx", "missing_signer", {"tx_type": t})

    for fn in _appliers(verifier):
        try:
            out = fn(state, env_norm)
        except ApplyError:
            raise
        except RewardError as e:
            raise ApplyError(e.code, e.reason, e.details) from e
        except Exception as e:
            name = getattr(fn, "__name__", None) or getattr(getattr(fn, "func", None), "__name__", "apply")
            raise ApplyError(
                "domain_error",
                type(e).__name__,
                {"tx_type": t, "domain": name, "error": str(e)},
            ) from e

        if out is not None:
            return out

    raise ApplyError("tx_unimplemented", "tx_type_not_implemented", {"tx_type": t})


__all__ = ["ApplyError", "SUPPORTED_TX_TYPES", "apply_tx", "envelope_from_any"]
