from __future__ import annotations

from typing import Any, Dict

from launchpad.crypto.sig import canonical_whitelist_message, sign_whitelist
from launchpad.runtime.collection_config import collection_config_from_dict, genesis_state
from launchpad.runtime.sigverify import verify_whitelist_signature
from launchpad.testing.sigtools import deterministic_ed25519_keypair, whitelist_sig

Json = Dict[str, Any]


def _state() -> Json:
    pub, _ = deterministic_ed25519_keypair(label="authorized-signer")
    return genesis_state(
        collection_config_from_dict({"collection_id": "col-1", "owner": "owner", "authorized_signer": pub})
    )


def test_whitelist_message_is_canonical() -> None:
    msg = canonical_whitelist_message(collection_id="col-1", wallet="alice", phase=0)
    assert msg == b'{"collection_id":"col-1","phase":0,"wallet":"alice"}'


def test_valid_signature_hex_and_base64() -> None:
    st = _state()
    _, sk = deterministic_ed25519_keypair(label="authorized-signer")

    hex_sig = sign_whitelist(collection_id="col-1", wallet="alice", phase=0, privkey=sk)
    b64_sig = sign_whitelist(collection_id="col-1", wallet="alice", phase=0, privkey=sk, encoding="b64")

    assert verify_whitelist_signature(st, wallet="alice", phase=0, signature=hex_sig) is True
    assert verify_whitelist_signature(st, wallet="alice", phase=0, signature=b64_sig) is True


def test_signature_scope() -> None:
    st = _state()
    sig = whitelist_sig(collection_id="col-1", wallet="alice", phase=0)

    assert verify_whitelist_signature(st, wallet="bob", phase=0, signature=sig) is False
    assert verify_whitelist_signature(st, wallet="alice", phase=1, signature=sig) is False

    other = whitelist_sig(collection_id="col-2", wallet="alice", phase=0)
    assert verify_whitelist_signature(st, wallet="alice", phase=0, signature=other) is False


def test_garbage_inputs_are_false() -> None:
    st = _state()

    for sig in ("", "zz", None, 123):
        assert verify_whitelist_signature(st, wallet="alice", phase=0, signature=sig) is False


def test_verification_does_not_consume() -> None:
    st = _state()
    sig = whitelist_sig(collection_id="col-1", wallet="alice", phase=0)

    assert verify_whitelist_signature(st, wallet="alice", phase=0, signature=sig) is True
    assert verify_whitelist_signature(st, wallet="alice", phase=0, signature=sig) is True
    assert st["minting"]["blacklist"] == []


class _AllowAll:
    def verify(self, message: bytes, signature: str, signer: str) -> bool:
        return True


def test_injected_verifier_is_used() -> None:
    st = _state()
    assert verify_whitelist_signature(st, wallet="alice", phase=0, signature="anything", verifier=_AllowAll()) is True
