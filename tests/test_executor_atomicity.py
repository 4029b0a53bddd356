from __future__ import annotations

from pathlib import Path

import pytest

from launchpad.runtime.clock import ManualClock
from launchpad.runtime.collection_config import collection_config_from_dict
from launchpad.runtime.errors import ApplyError
from launchpad.runtime.executor import CollectionExecutor, ExecutorError


def _cfg(collection_id: str = "col-exec"):
    return collection_config_from_dict(
        {
            "collection_id": collection_id,
            "owner": "owner",
            "authorized_signer": "00" * 32,
            "public_sale_enabled": True,
            "total_supply_limit": 3,
        }
    )


def _mint(amount: int, signer: str = "alice", nonce: int = 0) -> dict:
    return {"tx_type": "MINT", "signer": signer, "nonce": nonce, "value": amount * 300_000, "payload": {"amount": amount}}


def test_rejected_tx_leaves_state_untouched() -> None:
    ex = CollectionExecutor(config=_cfg(), clock=ManualClock(100))
    ex.submit(_mint(2))
    ex.submit({"tx_type": "STAKE", "signer": "alice", "payload": {"token_ids": [1], "option": 0}})
    before = ex.snapshot()

    # Token 1 unstakes first, then token 2 fails: the whole tx is discarded.
    with pytest.raises(ApplyError) as ei:
        ex.submit({"tx_type": "UNSTAKE", "signer": "alice", "payload": {"token_ids": [1, 2]}})

    assert ei.value.reason == "not_staked"
    assert ex.snapshot() == before
    assert "1" in ex.state["stakes"]


def test_partial_batch_rolls_back() -> None:
    ex = CollectionExecutor(config=_cfg(), clock=ManualClock(100))
    ex.submit(_mint(2))
    ex.submit({"tx_type": "STAKE", "signer": "alice", "payload": {"token_ids": [2], "option": 0}})
    before = ex.snapshot()

    # Token 1 would stake, token 2 is already staked: nothing may change.
    with pytest.raises(ApplyError) as ei:
        ex.submit({"tx_type": "STAKE", "signer": "alice", "payload": {"token_ids": [1, 2], "option": 0}})

    assert ei.value.reason == "already_staked"
    assert ex.snapshot() == before
    assert "1" not in ex.state["stakes"]


def test_clock_never_moves_backwards() -> None:
    clock = ManualClock(1_000)
    ex = CollectionExecutor(config=_cfg(), clock=clock)
    ex.submit(_mint(1))
    assert ex.state["time"] == 1_000

    clock.set(500)
    ex.submit({"tx_type": "STAKE", "signer": "alice", "payload": {"token_ids": [1], "option": 0}})

    assert ex.state["time"] == 1_000
    assert ex.state["stakes"]["1"]["start_time"] == 1_000


def test_nonce_consumed_when_apply_rejects() -> None:
    ex = CollectionExecutor(config=_cfg(), clock=ManualClock(1))

    with pytest.raises(ApplyError):
        ex.submit(_mint(5, nonce=1))  # over supply
    assert ex.state["accounts"]["alice"]["nonce"] == 1

    with pytest.raises(ApplyError) as ei:
        ex.submit(_mint(1, nonce=1))
    assert ei.value.reason == "nonce_already_used"

    ex.submit(_mint(1, nonce=2))
    assert ex.state["accounts"]["alice"]["nonce"] == 2
    assert ex.state["minting"]["total_minted"] == 1


def test_state_and_events_persist_across_restart(tmp_path: Path) -> None:
    db_path = str(tmp_path / "launchpad.db")

    ex = CollectionExecutor(config=_cfg(), clock=ManualClock(10), db_path=db_path)
    ex.submit(_mint(2))
    ex.submit({"tx_type": "TOKEN_TRANSFER", "signer": "alice", "payload": {"to": "bob", "token_id": 2}})

    ex2 = CollectionExecutor(config=_cfg(), clock=ManualClock(20), db_path=db_path)

    assert ex2.state["tokens"]["2"]["owner"] == "bob"
    assert ex2.state["tx_count"] == 2
    events = ex2.store.read_events()
    assert [e["event"] for e in events] == ["Transfer", "Transfer", "Transfer"]
    assert events[-1]["tx_type"] == "TOKEN_TRANSFER"
    assert ex2.store.read_events(event="Transfer", after_seq=events[0]["seq"])[0]["seq"] == events[1]["seq"]


def test_restart_refuses_other_collection(tmp_path: Path) -> None:
    db_path = str(tmp_path / "launchpad.db")
    CollectionExecutor(config=_cfg("col-a"), db_path=db_path)

    with pytest.raises(ExecutorError):
        CollectionExecutor(config=_cfg("col-b"), db_path=db_path)
