# src/launchpad/runtime/tx_admission.py
from __future__ import annotations

import json
import os
from typing import Any, Dict, Optional, Tuple

from launchpad.crypto.sig import verify_tx_envelope_signature
from launchpad.runtime.domain_dispatch import SUPPORTED_TX_TYPES
from launchpad.runtime.tx_admission_types import TxEnvelope, TxVerdict

Json = Dict[str, Any]


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None:
        return int(default)
    try:
        return int(str(v).strip())
    except ValueError:
        return int(default)


def _json_size_bytes(obj: Any) -> int:
    """JSON byte size, or -1 if obj is not serializable."""
    try:
        return len(json.dumps(obj, separators=(",", ":"), ensure_ascii=False, sort_keys=True).encode("utf-8"))
    except (TypeError, ValueError):
        return -1


def _validate_payload_limits(payload: Any) -> Optional[TxVerdict]:
    """Generic payload validation (shape + size caps)."""
    if payload is None:
        return TxVerdict.reject("invalid_payload", "payload_required", {"expected": "object"})
    if not isinstance(payload, dict):
        return TxVerdict.reject("invalid_payload", "payload_must_be_object", {"type": str(type(payload))})

    max_payload_bytes = _env_int("LAUNCHPAD_MAX_TX_PAYLOAD_BYTES", 64 * 1024)
    max_payload_keys = _env_int("LAUNCHPAD_MAX_TX_PAYLOAD_KEYS", 64)
    max_string_bytes = _env_int("LAUNCHPAD_MAX_TX_STRING_BYTES", 4 * 1024)
    max_list_len = _env_int("LAUNCHPAD_MAX_TX_LIST_LEN", 1_000)
    max_depth = _env_int("LAUNCHPAD_MAX_TX_NESTING", 6)

    if len(payload) > int(max_payload_keys):
        return TxVerdict.reject(
            "invalid_payload",
            "payload_too_many_keys",
            {"keys": len(payload), "max_keys": int(max_payload_keys)},
        )

    payload_bytes = _json_size_bytes(payload)
    if payload_bytes < 0:
        return TxVerdict.reject("invalid_payload", "payload_not_json", {})
    if payload_bytes > int(max_payload_bytes):
        return TxVerdict.reject(
            "payload_too_large",
            "payload_exceeds_size_limit",
            {"bytes": int(payload_bytes), "max_bytes": int(max_payload_bytes)},
        )

    def walk(v: Any, depth: int) -> Optional[Tuple[str, Json]]:
        if depth > int(max_depth):
            return "payload_too_deep", {"max_depth": int(max_depth)}

        if v is None or isinstance(v, (bool, int)):
            return None

        if isinstance(v, float):
            # Amounts and ids are integers; floats would round silently.
            return "float_not_allowed", {}

        if isinstance(v, str):
            b = len(v.encode("utf-8", errors="ignore"))
            if b > int(max_string_bytes):
                return "string_too_large", {"bytes": int(b), "max_bytes": int(max_string_bytes)}
            return None

        if isinstance(v, list):
            if len(v) > int(max_list_len):
                return "list_too_long", {"len": len(v), "max_len": int(max_list_len)}
            for it in v:
                err = walk(it, depth + 1)
                if err:
                    return err
            return None

        if isinstance(v, dict):
            for kk, vv in v.items():
                if not isinstance(kk, str):
                    return "invalid_key_type", {"key_type": str(type(kk))}
                err = walk(vv, depth + 1)
                if err:
                    return err
            return None

        return "invalid_value_type", {"type": str(type(v))}

    err = walk(payload, 0)
    if err:
        reason, details = err
        return TxVerdict.reject("invalid_payload", reason, details)

    return None


def _last_nonce(state: Json, signer: str) -> int:
    accounts = state.get("accounts") if isinstance(state, dict) else None
    acct = accounts.get(signer) if isinstance(accounts, dict) else None
    if not isinstance(acct, dict):
        return 0
    try:
        return int(acct.get("nonce", 0) or 0)
    except (TypeError, ValueError):
        return 0


def admit_tx(tx: Any, state: Json, *, require_signatures: bool = True) -> TxVerdict:
    """Admission checks for envelopes arriving over HTTP.

    Domain rules are NOT checked here; they run at apply time. This only rejects
    envelopes that are malformed, oversized, replayed, or not signed by `signer`.
    """
    max_tx_bytes = _env_int("LAUNCHPAD_MAX_TX_ENVELOPE_BYTES", 96 * 1024)
    raw = tx.to_json() if isinstance(tx, TxEnvelope) else tx
    if not isinstance(raw, dict):
        return TxVerdict.reject("bad_shape", "envelope_must_be_object", {"type": str(type(raw))})

    env_size = _json_size_bytes(raw)
    if env_size > int(max_tx_bytes):
        return TxVerdict.reject(
            "tx_too_large",
            "tx_envelope_exceeds_size_limit",
            {"bytes": int(env_size), "max_bytes": int(max_tx_bytes)},
        )

    try:
        env = TxEnvelope.from_json(raw)
    except (TypeError, ValueError):
        return TxVerdict.reject("bad_shape", "envelope_fields_invalid", None)

    t = env.tx_type.strip().upper()
    if not t:
        return TxVerdict.reject("bad_shape", "missing_tx_type", None)
    if not env.signer.strip():
        return TxVerdict.reject("bad_shape", "missing_signer", None)
    if int(env.nonce) < 0:
        return TxVerdict.reject("bad_shape", "nonce_must_be_nonnegative", {"nonce": int(env.nonce)})
    if int(env.value) < 0:
        return TxVerdict.reject("bad_shape", "value_must_be_nonnegative", {"value": int(env.value)})

    if t not in SUPPORTED_TX_TYPES:
        return TxVerdict.reject("unknown_tx", "tx_type_not_supported", {"tx_type": env.tx_type})

    if bool(env.system):
        return TxVerdict.reject("forbidden", "system_tx_forbidden", {"tx_type": env.tx_type})

    payload_verdict = _validate_payload_limits(raw.get("payload", {}))
    if payload_verdict is not None:
        return payload_verdict

    if require_signatures:
        expected = _last_nonce(state, env.signer) + 1
        if int(env.nonce) != expected:
            return TxVerdict.reject("bad_nonce", "nonce_must_be_next", {"expected": expected, "got": int(env.nonce)})

        if not verify_tx_envelope_signature(tx=env.to_json()):
            return TxVerdict.reject(
                "bad_sig",
                "signature_verification_failed",
                {"signer": env.signer, "tx_type": env.tx_type},
            )

    return TxVerdict.admit()


__all__ = ["TxEnvelope", "TxVerdict", "admit_tx"]
