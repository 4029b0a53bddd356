from __future__ import annotations

import json
from pathlib import Path

import pytest

from launchpad.runtime.collection_config import (
    default_collection_config,
    genesis_state,
    load_collection_config,
    read_collection_config_file,
)


def test_default_config_matches_deployment_fixture() -> None:
    cfg = default_collection_config()

    assert cfg.symbol == "CLNF"
    assert cfg.phase_cost == (10_000_000, 20_000_000)
    assert cfg.phase_wallet_limit == (10, 15)
    assert cfg.public_sale_cost == 300_000
    assert cfg.stake_limit_per_token == 7
    assert [o.enabled for o in cfg.stake_options] == [True, False]


def test_yaml_and_json_files(tmp_path: Path) -> None:
    y = tmp_path / "collection.yaml"
    y.write_text(
        "collection_id: col-yaml\n"
        "owner: owner-1\n"
        "authorized_signer: 'ab'\n"
        "phase_cost: [1, 2, 3]\n"
        "phase_wallet_limit: [5, 5, 5]\n"
        "stake_options:\n"
        "  - {interval: 60, reward: 2, extension_limit: 1}\n",
        encoding="utf-8",
    )
    cfg = read_collection_config_file(str(y))
    assert cfg.collection_id == "col-yaml"
    assert cfg.phase_cost == (1, 2, 3)
    assert cfg.stake_options[0].reward_per_interval == 2
    assert cfg.stake_options[0].enabled is True

    j = tmp_path / "collection.json"
    j.write_text(json.dumps({"collection_id": "col-json", "owner": "o", "authorized_signer": "ab"}), encoding="utf-8")
    assert read_collection_config_file(str(j)).collection_id == "col-json"


def test_env_path_is_used(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    p = tmp_path / "c.json"
    p.write_text(json.dumps({"collection_id": "from-env"}), encoding="utf-8")
    monkeypatch.setenv("LAUNCHPAD_COLLECTION_CONFIG_PATH", str(p))

    assert load_collection_config().collection_id == "from-env"


@pytest.mark.parametrize(
    "raw",
    [
        {"phase_cost": [1, 2], "phase_wallet_limit": [1]},
        {"current_phase": 5},
        {"stake_options": [{"interval": 0, "reward": 1, "extension_limit": 0}]},
        {"total_supply_limit": -1},
        {"stake_options": "nope"},
    ],
)
def test_invalid_configs_fail_fast(tmp_path: Path, raw: dict) -> None:
    p = tmp_path / "bad.json"
    p.write_text(json.dumps(raw), encoding="utf-8")

    with pytest.raises(ValueError):
        read_collection_config_file(str(p))


def test_genesis_state_layout() -> None:
    st = genesis_state(default_collection_config())

    assert st["registry"]["next_token_id"] == 1
    assert st["pool"] == {"balance": 0}
    assert st["params"]["phase_cost"] == [10_000_000, 20_000_000]
    assert st["stake_options"][0] == {"interval": 5000, "reward_per_interval": 1000, "extension_limit": 5, "enabled": True}
