from __future__ import annotations

from typing import Any, Dict

import pytest

from launchpad.runtime.collection_config import default_collection_config, genesis_state
from launchpad.runtime.domain_dispatch import apply_tx
from launchpad.runtime.errors import ApplyError
from launchpad.runtime.queries import stake_option, token_stake

Json = Dict[str, Any]


def _state_with_tokens(owner: str = "alice", n: int = 2) -> Json:
    st = genesis_state(default_collection_config())
    st["params"]["public_sale_enabled"] = True
    apply_tx(st, {"tx_type": "MINT", "signer": owner, "value": n * 300_000, "payload": {"amount": n}})
    st["time"] = 1_000
    return st


def _stake(signer: str, ids: Any, option: Any = 0) -> Json:
    return {"tx_type": "STAKE", "signer": signer, "payload": {"token_ids": ids, "option": option}}


def test_stake_records_start_and_staker() -> None:
    st = _state_with_tokens()

    meta = apply_tx(st, _stake("alice", [1, 2]))

    assert meta["token_ids"] == [1, 2]
    assert token_stake(st, 1) == {"option_index": 0, "start_time": 1_000, "staker": "alice"}
    assert [e["event"] for e in meta["events"]] == ["Staked", "Staked"]


def test_stake_option_checks() -> None:
    st = _state_with_tokens()

    with pytest.raises(ApplyError) as ei:
        apply_tx(st, _stake("alice", [1], option=9))
    assert ei.value.reason == "invalid_option"

    with pytest.raises(ApplyError) as ei:
        apply_tx(st, _stake("alice", [1], option=1))
    assert ei.value.reason == "option_disabled"


def test_stake_requires_ownership_and_single_active_record() -> None:
    st = _state_with_tokens()

    with pytest.raises(ApplyError) as ei:
        apply_tx(st, _stake("bob", [1]))
    assert ei.value.reason == "not_token_owner"

    apply_tx(st, _stake("alice", [1]))
    with pytest.raises(ApplyError) as ei:
        apply_tx(st, _stake("alice", [1]))
    assert ei.value.reason == "already_staked"


def test_stake_unminted_and_empty_lists() -> None:
    st = _state_with_tokens()

    with pytest.raises(ApplyError) as ei:
        apply_tx(st, _stake("alice", [77]))
    assert ei.value.reason == "not_minted"

    with pytest.raises(ApplyError) as ei:
        apply_tx(st, _stake("alice", []))
    assert ei.value.reason == "missing_token_ids"


def test_unstake_requires_record_and_staker() -> None:
    st = _state_with_tokens()

    with pytest.raises(ApplyError) as ei:
        apply_tx(st, {"tx_type": "UNSTAKE", "signer": "alice", "payload": {"token_ids": [1]}})
    assert ei.value.reason == "not_staked"

    apply_tx(st, _stake("alice", [1]))
    with pytest.raises(ApplyError) as ei:
        apply_tx(st, {"tx_type": "UNSTAKE", "signer": "bob", "payload": {"token_ids": [1]}})
    assert ei.value.reason == "not_stake_owner"


def test_stake_option_admin() -> None:
    st = _state_with_tokens()

    meta = apply_tx(
        st,
        {
            "tx_type": "STAKE_OPTION_ADD",
            "signer": "owner",
            "payload": {"interval": 60, "reward": 7, "extension_limit": 2, "enabled": True},
        },
    )
    assert meta["option"] == 2
    assert stake_option(st, 2) == {"interval": 60, "reward_per_interval": 7, "extension_limit": 2, "enabled": True}

    apply_tx(
        st,
        {
            "tx_type": "STAKE_OPTION_UPDATE",
            "signer": "owner",
            "payload": {"option": 1, "interval": 10, "reward": 1, "extension_limit": 0, "enabled": True},
        },
    )
    assert stake_option(st, 1)["enabled"] is True

    with pytest.raises(ApplyError) as ei:
        apply_tx(st, {"tx_type": "STAKE_OPTION_ADD", "signer": "owner", "payload": {"interval": 0, "reward": 1, "extension_limit": 0}})
    assert ei.value.reason == "invalid_interval"

    with pytest.raises(ApplyError) as ei:
        apply_tx(
            st,
            {
                "tx_type": "STAKE_OPTION_UPDATE",
                "signer": "owner",
                "payload": {"option": 5, "interval": 10, "reward": 1, "extension_limit": 0},
            },
        )
    assert ei.value.reason == "invalid_option"


def test_toggle_all_options() -> None:
    st = _state_with_tokens()

    apply_tx(st, {"tx_type": "STAKE_OPTIONS_TOGGLE_ALL", "signer": "owner", "payload": {"enabled": False}})
    with pytest.raises(ApplyError) as ei:
        apply_tx(st, _stake("alice", [1]))
    assert ei.value.reason == "option_disabled"

    apply_tx(st, {"tx_type": "STAKE_OPTIONS_TOGGLE_ALL", "signer": "owner", "payload": {"enabled": True}})
    apply_tx(st, _stake("alice", [1], option=1))
    assert token_stake(st, 1)["option_index"] == 1


@pytest.mark.parametrize("enabled", ["maybe", "false", 0, None])
def test_toggle_all_requires_a_boolean(enabled: Any) -> None:
    st = _state_with_tokens()
    before = [dict(o) for o in st["stake_options"]]

    with pytest.raises(ApplyError) as ei:
        apply_tx(st, {"tx_type": "STAKE_OPTIONS_TOGGLE_ALL", "signer": "owner", "payload": {"enabled": enabled}})

    assert ei.value.code == "invalid_payload"
    assert ei.value.reason == "bad_enabled"
    assert st["stake_options"] == before


def test_stake_option_add_rejects_non_boolean_enabled() -> None:
    st = _state_with_tokens()

    with pytest.raises(ApplyError) as ei:
        apply_tx(
            st,
            {
                "tx_type": "STAKE_OPTION_ADD",
                "signer": "owner",
                "payload": {"interval": 60, "reward": 7, "extension_limit": 2, "enabled": "yes"},
            },
        )

    assert ei.value.reason == "bad_enabled"
    assert len(st["stake_options"]) == 2


def test_stake_limit_update_blocks_exhausted_tokens() -> None:
    st = _state_with_tokens()
    apply_tx(st, {"tx_type": "STAKE_LIMIT_PER_TOKEN_UPDATE", "signer": "owner", "payload": {"limit": 0}})

    with pytest.raises(ApplyError) as ei:
        apply_tx(st, _stake("alice", [1]))
    assert ei.value.reason == "stake_limit_exhausted"
