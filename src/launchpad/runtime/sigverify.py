# src/launchpad/runtime/sigverify.py

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol

from launchpad.crypto.sig import canonical_whitelist_message, verify_ed25519_signature

Json = Dict[str, Any]


class SignatureVerifier(Protocol):
    """Anything that can tell whether `signature` over `message` was produced by `signer`."""

    def verify(self, message: bytes, signature: str, signer: str) -> bool: ...


class Ed25519Verifier:
    """Default verifier: `signer` is an Ed25519 public key (hex or base64)."""

    def verify(self, message: bytes, signature: str, signer: str) -> bool:
        return verify_ed25519_signature(message=message, sig=signature, pubkey=signer)


DEFAULT_VERIFIER: SignatureVerifier = Ed25519Verifier()


def _params(state: Json) -> Json:
    params = state.get("params") if isinstance(state, dict) else None
    return params if isinstance(params, dict) else {}


def verify_whitelist_signature(
    state: Json,
    *,
    wallet: str,
    phase: int,
    signature: Any,
    verifier: Optional[SignatureVerifier] = None,
) -> bool:
    """True iff `signature` whitelists `wallet` for `phase` of this collection.

    The message binds the collection id, the wallet and the phase, and must have
    been signed by params.authorized_signer.

    NOTE: This function is pure. It does not consume the signature; reuse is
    bounded by per-wallet limits and the blacklist.
    """
    if not isinstance(signature, str) or not signature.strip():
        return False

    params = _params(state)
    signer = str(params.get("authorized_signer") or "").strip()
    collection_id = str(params.get("collection_id") or "").strip()
    w = str(wallet or "").strip()
    if not signer or not collection_id or not w:
        return False

    try:
        ph = int(phase)
    except (TypeError, ValueError):
        return False

    msg = canonical_whitelist_message(collection_id=collection_id, wallet=w, phase=ph)
    v = verifier or DEFAULT_VERIFIER
    return bool(v.verify(msg, signature.strip(), signer))


__all__ = ["DEFAULT_VERIFIER", "Ed25519Verifier", "SignatureVerifier", "verify_whitelist_signature"]
