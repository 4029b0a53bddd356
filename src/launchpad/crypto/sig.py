# src/launchpad/crypto/sig.py
from __future__ import annotations

import base64
import json
from typing import Any, Dict, Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey

Json = Dict[str, Any]


def _decode_bytes(s: str) -> bytes:
    s = s.strip()
    if not s:
        raise ValueError("empty string")
    # hex
    try:
        return bytes.fromhex(s)
    except ValueError:
        pass
    # base64 / base64url
    try:
        padding = "=" * (-len(s) % 4)
        s2 = (s + padding).replace("-", "+").replace("_", "/")
        return base64.b64decode(s2, validate=True)
    except ValueError as e:
        raise ValueError("not hex or base64") from e


def _canon(obj: Json) -> bytes:
    return json.dumps(obj, sort_keys=True, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def canonical_whitelist_message(*, collection_id: str, wallet: str, phase: int) -> bytes:
    """Bytes an authorized signer signs to whitelist `wallet` for one phase of one collection."""
    return _canon(
        {
            "collection_id": str(collection_id),
            "wallet": str(wallet),
            "phase": int(phase),
        }
    )


def canonical_tx_message(
    *,
    tx_type: str,
    signer: str,
    nonce: int,
    payload: Json,
    value: int = 0,
) -> bytes:
    obj: Json = {
        "tx_type": str(tx_type),
        "signer": str(signer),
        "nonce": int(nonce),
        "payload": payload if isinstance(payload, dict) else {},
        "value": int(value),
    }
    return _canon(obj)


def verify_ed25519_signature(*, message: bytes, sig: str, pubkey: str) -> bool:
    if not isinstance(sig, str) or not isinstance(pubkey, str):
        return False
    try:
        sig_b = _decode_bytes(sig)
        pk_b = _decode_bytes(pubkey)
        key = Ed25519PublicKey.from_public_bytes(pk_b)
        key.verify(sig_b, message)
        return True
    except (InvalidSignature, ValueError):
        return False


def _private_key(privkey: str) -> Ed25519PrivateKey:
    pk_b = _decode_bytes(privkey)
    if len(pk_b) == 64:
        # 64-byte expanded keys carry the seed in the first half.
        pk_b = pk_b[:32]
    if len(pk_b) != 32:
        raise ValueError("ed25519 privkey must be 32-byte seed (or 64-byte expanded key)")
    return Ed25519PrivateKey.from_private_bytes(pk_b)


def sign_ed25519(*, message: bytes, privkey: str, encoding: str = "hex") -> str:
    """Sign a message with an Ed25519 private key.

    privkey: hex or base64/base64url string representing 32-byte seed or 64-byte private key.
    encoding: "hex" (default) or "b64".
    """
    sig_b = _private_key(privkey).sign(message)
    if encoding == "hex":
        return sig_b.hex()
    if encoding in {"b64", "base64"}:
        return base64.b64encode(sig_b).decode("ascii")
    raise ValueError("unsupported encoding")


def normalize_signature(sig: str) -> str:
    """Canonical lowercase hex of a signature given in any accepted encoding."""
    if not isinstance(sig, str):
        raise ValueError("signature must be a string")
    return _decode_bytes(sig).hex()


def sign_whitelist(
    *,
    collection_id: str,
    wallet: str,
    phase: int,
    privkey: str,
    encoding: str = "hex",
) -> str:
    """Produce a whitelist signature for (collection, wallet, phase)."""
    msg = canonical_whitelist_message(collection_id=collection_id, wallet=wallet, phase=phase)
    return sign_ed25519(message=msg, privkey=privkey, encoding=encoding)


def sign_tx_envelope_dict(*, tx: Json, privkey: str, encoding: str = "hex") -> Json:
    """Return a copy of tx with its 'sig' field populated.

    Expected shape (extra keys allowed):
      {
        "tx_type": str,
        "signer": str,
        "nonce": int,
        "payload": dict,
        "value": int
      }
    """
    tx_type = str(tx.get("tx_type") or "")
    signer = str(tx.get("signer") or "")
    nonce = int(tx.get("nonce") or 0)
    payload = tx.get("payload") if isinstance(tx.get("payload"), dict) else {}
    value = int(tx.get("value") or 0)

    msg = canonical_tx_message(tx_type=tx_type, signer=signer, nonce=nonce, payload=payload, value=value)

    out = dict(tx)
    out["tx_type"] = tx_type
    out["signer"] = signer
    out["nonce"] = nonce
    out["payload"] = payload
    out["value"] = value
    out["sig"] = sign_ed25519(message=msg, privkey=privkey, encoding=encoding)
    return out


def verify_tx_envelope_signature(*, tx: Json, pubkey: Optional[str] = None) -> bool:
    """Verify an envelope signature. The signer id doubles as its public key unless `pubkey` is given."""
    signer = str(tx.get("signer") or "").strip()
    sig = tx.get("sig")
    if not signer or not isinstance(sig, str) or not sig.strip():
        return False
    payload = tx.get("payload") if isinstance(tx.get("payload"), dict) else {}
    msg = canonical_tx_message(
        tx_type=str(tx.get("tx_type") or ""),
        signer=signer,
        nonce=int(tx.get("nonce") or 0),
        payload=payload,
        value=int(tx.get("value") or 0),
    )
    return verify_ed25519_signature(message=msg, sig=sig, pubkey=pubkey or signer)
