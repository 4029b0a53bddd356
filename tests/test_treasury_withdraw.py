from __future__ import annotations

from typing import Any, Dict, List

import pytest

from launchpad.runtime.collection_config import default_collection_config, genesis_state
from launchpad.runtime.domain_dispatch import apply_tx
from launchpad.runtime.errors import ApplyError

Json = Dict[str, Any]


def _state(pool: int) -> Json:
    st = genesis_state(default_collection_config())
    st["pool"]["balance"] = pool
    return st


def _withdraw(withdraws: List[Json], signer: str = "owner") -> Json:
    return {"tx_type": "WITHDRAW", "signer": signer, "payload": {"withdraws": withdraws, "requester": "ops"}}


def test_sixty_forty_split_is_exact() -> None:
    st = _state(20_000_000)

    meta = apply_tx(st, _withdraw([{"wallet": "w1", "percentage": 60}, {"wallet": "w2", "percentage": 40}]))

    assert st["accounts"]["w1"]["balance"] == 12_000_000
    assert st["accounts"]["w2"]["balance"] == 8_000_000
    assert st["pool"]["balance"] == 0
    assert meta["remainder"] == 0
    assert meta["events"][0]["event"] == "Withdrawn"
    assert meta["events"][0]["requester"] == "ops"


def test_rounding_remainder_stays_in_pool() -> None:
    st = _state(10)

    apply_tx(st, _withdraw([{"wallet": "w1", "percentage": 33}, {"wallet": "w2", "percentage": 67}]))

    assert st["accounts"]["w1"]["balance"] == 3
    assert st["accounts"]["w2"]["balance"] == 6
    assert st["pool"]["balance"] == 1


@pytest.mark.parametrize("pcts", [[60, 30], [60, 50], [0], [101]])
def test_percentages_must_total_exactly_100(pcts: List[int]) -> None:
    st = _state(1_000)
    ws = [{"wallet": f"w{i}", "percentage": p} for i, p in enumerate(pcts)]

    with pytest.raises(ApplyError) as ei:
        apply_tx(st, _withdraw(ws))

    assert ei.value.reason in {"invalid_total_percentage", "bad_percentage"}
    assert st["pool"]["balance"] == 1_000


def test_empty_pool_rejected() -> None:
    st = _state(0)

    with pytest.raises(ApplyError) as ei:
        apply_tx(st, _withdraw([{"wallet": "w1", "percentage": 100}]))

    assert ei.value.reason == "insufficient_balance"


def test_pool_deposit_from_anyone() -> None:
    st = _state(0)

    meta = apply_tx(st, {"tx_type": "POOL_DEPOSIT", "signer": "donor", "value": 500, "payload": {}})

    assert meta["amount"] == 500
    assert st["pool"]["balance"] == 500

    with pytest.raises(ApplyError) as ei:
        apply_tx(st, {"tx_type": "POOL_DEPOSIT", "signer": "donor", "value": 0, "payload": {}})
    assert ei.value.reason == "invalid_amount"
