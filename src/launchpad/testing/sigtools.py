# src/launchpad/testing/sigtools.py
from __future__ import annotations

import hashlib
from typing import Any, Dict, Tuple

from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey
from cryptography.hazmat.primitives.serialization import Encoding, PrivateFormat, PublicFormat, NoEncryption

from launchpad.crypto.sig import sign_tx_envelope_dict, sign_whitelist

Json = Dict[str, Any]


def _sha256(b: bytes) -> bytes:
    return hashlib.sha256(b).digest()


def deterministic_ed25519_keypair(*, label: str) -> Tuple[str, str]:
    """Deterministically derive an Ed25519 keypair from a stable label.

    TEST ONLY.

    Returns:
      (pubkey_hex, privkey_seed_hex)
    """
    seed = _sha256(("launchpad-test-ed25519:" + (label or "")).encode("utf-8"))
    sk = Ed25519PrivateKey.from_private_bytes(seed)
    pk_hex = sk.public_key().public_bytes(Encoding.Raw, PublicFormat.Raw).hex()
    sk_hex = sk.private_bytes(Encoding.Raw, PrivateFormat.Raw, NoEncryption()).hex()
    return pk_hex, sk_hex


def wallet(label: str) -> str:
    """Wallet identity for `label`: its deterministic Ed25519 public key."""
    return deterministic_ed25519_keypair(label=label)[0]


def whitelist_sig(*, collection_id: str, wallet: str, phase: int, signer_label: str = "authorized-signer") -> str:
    """Whitelist signature for (collection, wallet, phase) by the labelled signer."""
    _, sk = deterministic_ed25519_keypair(label=signer_label)
    return sign_whitelist(collection_id=collection_id, wallet=wallet, phase=int(phase), privkey=sk)


def sign_tx_dict(tx: Json, *, label: str) -> Json:
    """Return tx with a real Ed25519 signature (hex) by the labelled key.

    The envelope signer must be the public key of `label` for admission to accept it.
    """
    if not isinstance(tx, dict):
        raise TypeError("tx must be a dict")
    _, sk = deterministic_ed25519_keypair(label=label)
    return sign_tx_envelope_dict(tx=tx, privkey=sk)


__all__ = ["deterministic_ed25519_keypair", "sign_tx_dict", "wallet", "whitelist_sig"]
