from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional


def _strict_int(v: Any, *, field: str) -> int:
    """Envelope integers must be real ints; floats, bools and strings are refused."""
    if v is None:
        return 0
    if isinstance(v, bool) or not isinstance(v, int):
        raise ValueError(f"{field} must be an integer; got {type(v).__name__}")
    return v


@dataclass(frozen=True)
class TxVerdict:
    ok: bool
    code: str
    reason: str
    details: Optional[Dict[str, Any]] = None

    @staticmethod
    def admit() -> "TxVerdict":
        return TxVerdict(True, "ok", "admitted", None)

    @staticmethod
    def reject(code: str, reason: str, details: Optional[Dict[str, Any]] = None) -> "TxVerdict":
        return TxVerdict(False, code, reason, details)


@dataclass(frozen=True)
class TxEnvelope:
    """One caller action against the collection.

    `signer` is the caller identity and `value` the payment attached to the call.
    """

    tx_type: str
    signer: str
    payload: Dict[str, Any]
    value: int = 0
    nonce: int = 0
    sig: str = ""
    system: bool = False

    @staticmethod
    def from_json(j: Any) -> "TxEnvelope":
        if isinstance(j, TxEnvelope):
            return j
        if not isinstance(j, dict):
            j = dict(j)  # type: ignore[arg-type]
        return TxEnvelope(
            tx_type=str(j.get("tx_type", "")),
            signer=str(j.get("signer", "")),
            payload=dict(j.get("payload", {}) or {}),
            value=_strict_int(j.get("value"), field="value"),
            nonce=_strict_int(j.get("nonce"), field="nonce"),
            sig=str(j.get("sig", "") or ""),
            system=bool(j.get("system", False)),
        )

    def to_json(self) -> Dict[str, Any]:
        return {
            "tx_type": self.tx_type,
            "signer": self.signer,
            "payload": self.payload,
            "value": self.value,
            "nonce": self.nonce,
            "sig": self.sig,
            "system": self.system,
        }
