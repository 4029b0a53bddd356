from __future__ import annotations

import pytest

from launchpad.runtime.collection_config import default_collection_config, genesis_state
from launchpad.runtime.domain_dispatch import SUPPORTED_TX_TYPES, apply_tx
from launchpad.runtime.errors import ApplyError
from launchpad.runtime.tx_admission_types import TxEnvelope


def test_unknown_tx_type_fails_closed() -> None:
    st = genesis_state(default_collection_config())

    with pytest.raises(ApplyError) as ei:
        apply_tx(st, {"tx_type": "BURN", "signer": "alice", "payload": {}})

    assert ei.value.code == "tx_unimplemented"


def test_missing_signer_and_system_rejected() -> None:
    st = genesis_state(default_collection_config())

    with pytest.raises(ApplyError) as ei:
        apply_tx(st, {"tx_type": "MINT", "signer": "", "payload": {}})
    assert ei.value.reason == "missing_signer"

    with pytest.raises(ApplyError) as ei:
        apply_tx(st, TxEnvelope(tx_type="MINT", signer="alice", payload={}, system=True))
    assert ei.value.reason == "system_tx_forbidden"


def test_supported_types_cover_every_domain() -> None:
    for t in ("PRIVATE_MINT", "MINT", "STAKE", "UNSTAKE", "WITHDRAW", "POOL_DEPOSIT", "TOKEN_TRANSFER"):
        assert t in SUPPORTED_TX_TYPES


def test_lowercase_tx_type_is_accepted() -> None:
    st = genesis_state(default_collection_config())

    meta = apply_tx(st, {"tx_type": "pool_deposit", "signer": "alice", "value": 5, "payload": {}})

    assert meta["applied"] == "POOL_DEPOSIT"


def test_non_dict_state_rejected() -> None:
    with pytest.raises(TypeError):
        apply_tx([], {"tx_type": "MINT", "signer": "alice", "payload": {}})  # type: ignore[arg-type]
