# src/launchpad/runtime/collection_config.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from launchpad.ledger.constants import FIRST_TOKEN_ID

Json = Dict[str, Any]


def _as_int(v: Any, default: int) -> int:
    if v is None or isinstance(v, bool):
        return int(default)
    try:
        return int(v)
    except (TypeError, ValueError):
        return int(default)


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


def _as_bool(v: Any, default: bool) -> bool:
    if v is None:
        return bool(default)
    if isinstance(v, bool):
        return v
    s = str(v).strip().lower()
    if s in {"1", "true", "yes", "y", "on"}:
        return True
    if s in {"0", "false", "no", "n", "off"}:
        return False
    return bool(default)


def _as_int_tuple(v: Any, default: Tuple[int, ...]) -> Tuple[int, ...]:
    if not isinstance(v, (list, tuple)):
        return tuple(default)
    return tuple(_as_int(x, 0) for x in v)


@dataclass(frozen=True)
class StakeOptionConfig:
    interval: int
    reward_per_interval: int
    extension_limit: int
    enabled: bool = True

    def to_json(self) -> Json:
        return {
            "interval": int(self.interval),
            "reward_per_interval": int(self.reward_per_interval),
            "extension_limit": int(self.extension_limit),
            "enabled": bool(self.enabled),
        }


@dataclass(frozen=True)
class CollectionConfig:
    collection_id: str
    name: str
    symbol: str
    owner: str
    # Ed25519 public key (hex) whose signatures whitelist wallets.
    authorized_signer: str

    total_supply_limit: int
    current_phase: int
    phase_cost: Tuple[int, ...]
    phase_wallet_limit: Tuple[int, ...]

    public_sale_enabled: bool
    public_sale_cost: int
    public_sale_wallet_limit: int

    stake_limit_per_token: int
    stake_options: Tuple[StakeOptionConfig, ...] = field(default_factory=tuple)

    base_uri: str = "https://api.test.com"
    network: str = "Ethereum"


def validate_collection_config(cfg: CollectionConfig) -> None:
    """Fail-fast validation of a collection deployment."""

    for name in ("collection_id", "owner", "authorized_signer"):
        v = getattr(cfg, name)
        if not isinstance(v, str) or not v.strip():
            raise ValueError(f"{name} must be a non-empty string")

    if len(cfg.phase_cost) == 0:
        raise ValueError("phase_cost must list at least one phase")

    if len(cfg.phase_cost) != len(cfg.phase_wallet_limit):
        raise ValueError(
            f"phase_cost and phase_wallet_limit must have the same length; "
            f"got {len(cfg.phase_cost)} and {len(cfg.phase_wallet_limit)}"
        )

    if not (0 <= int(cfg.current_phase) < len(cfg.phase_cost)):
        raise ValueError(f"current_phase must be 0..{len(cfg.phase_cost) - 1}; got: {cfg.current_phase}")

    for name in ("total_supply_limit", "public_sale_cost", "public_sale_wallet_limit", "stake_limit_per_token"):
        if int(getattr(cfg, name)) < 0:
            raise ValueError(f"{name} must be >= 0; got: {getattr(cfg, name)}")

    for i, (cost, limit) in enumerate(zip(cfg.phase_cost, cfg.phase_wallet_limit)):
        if int(cost) < 0 or int(limit) < 0:
            raise ValueError(f"phase {i} cost and wallet limit must be >= 0")

    for i, opt in enumerate(cfg.stake_options):
        if int(opt.interval) <= 0:
            raise ValueError(f"stake option {i}: interval must be > 0; got: {opt.interval}")
        if int(opt.reward_per_interval) < 0 or int(opt.extension_limit) < 0:
            raise ValueError(f"stake option {i}: reward and extension_limit must be >= 0")


def default_collection_config() -> CollectionConfig:
    """Development deployment fixture.

    owner and authorized_signer are placeholders; any real deployment supplies
    its own through a config file.
    """
    return CollectionConfig(
        collection_id="collection-launch-dev",
        name="Collection Launch NFTs",
        symbol="CLNF",
        owner="owner",
        authorized_signer="00" * 32,
        total_supply_limit=100,
        current_phase=0,
        phase_cost=(10_000_000, 20_000_000),
        phase_wallet_limit=(10, 15),
        public_sale_enabled=False,
        public_sale_cost=300_000,
        public_sale_wallet_limit=10,
        stake_limit_per_token=7,
        stake_options=(
            StakeOptionConfig(interval=5000, reward_per_interval=1000, extension_limit=5, enabled=True),
            StakeOptionConfig(interval=5000, reward_per_interval=1000, extension_limit=1, enabled=False),
        ),
        base_uri="https://api.test.com",
        network="Ethereum",
    )


def _stake_options_from_raw(raw: Any, default: Tuple[StakeOptionConfig, ...]) -> Tuple[StakeOptionConfig, ...]:
    if raw is None:
        return tuple(default)
    if not isinstance(raw, list):
        raise ValueError("stake_options must be a list")
    out: List[StakeOptionConfig] = []
    for i, item in enumerate(raw):
        if not isinstance(item, dict):
            raise ValueError(f"stake option {i} must be an object")
        out.append(
            StakeOptionConfig(
                interval=_as_int(item.get("interval"), 0),
                reward_per_interval=_as_int(item.get("reward_per_interval", item.get("reward")), 0),
                extension_limit=_as_int(item.get("extension_limit"), 0),
                enabled=_as_bool(item.get("enabled"), True),
            )
        )
    return tuple(out)


def collection_config_from_dict(raw: Json) -> CollectionConfig:
    if not isinstance(raw, dict):
        raise ValueError("collection config must be a mapping")

    d = default_collection_config()

    cfg = CollectionConfig(
        collection_id=_as_str(raw.get("collection_id"), d.collection_id),
        name=_as_str(raw.get("name"), d.name),
        symbol=_as_str(raw.get("symbol"), d.symbol),
        owner=_as_str(raw.get("owner"), d.owner),
        authorized_signer=_as_str(raw.get("authorized_signer"), d.authorized_signer),
        total_supply_limit=_as_int(raw.get("total_supply_limit"), d.total_supply_limit),
        current_phase=_as_int(raw.get("current_phase"), d.current_phase),
        phase_cost=_as_int_tuple(raw.get("phase_cost"), d.phase_cost),
        phase_wallet_limit=_as_int_tuple(raw.get("phase_wallet_limit"), d.phase_wallet_limit),
        public_sale_enabled=_as_bool(raw.get("public_sale_enabled"), d.public_sale_enabled),
        public_sale_cost=_as_int(raw.get("public_sale_cost"), d.public_sale_cost),
        public_sale_wallet_limit=_as_int(raw.get("public_sale_wallet_limit"), d.public_sale_wallet_limit),
        stake_limit_per_token=_as_int(raw.get("stake_limit_per_token"), d.stake_limit_per_token),
        stake_options=_stake_options_from_raw(raw.get("stake_options"), d.stake_options),
        base_uri=_as_str(raw.get("base_uri"), d.base_uri),
        network=_as_str(raw.get("network"), d.network),
    )

    validate_collection_config(cfg)
    return cfg


def read_collection_config_file(path: str) -> CollectionConfig:
    """Read a collection config from JSON or YAML (by file suffix)."""
    p = Path(path)
    text = p.read_text(encoding="utf-8")
    if p.suffix.lower() in {".yaml", ".yml"}:
        raw = yaml.safe_load(text)
    else:
        raw = json.loads(text)
    if not isinstance(raw, dict):
        raise ValueError("collection config must be a JSON/YAML object")
    return collection_config_from_dict(raw)


def load_collection_config(*, config_path: Optional[str] = None) -> CollectionConfig:
    p = config_path or os.environ.get("LAUNCHPAD_COLLECTION_CONFIG_PATH")
    if p:
        return read_collection_config_file(p)

    cfg = default_collection_config()
    validate_collection_config(cfg)
    return cfg


def genesis_state(cfg: CollectionConfig) -> Json:
    """Initial collection state for a validated deployment."""
    validate_collection_config(cfg)
    return {
        "params": {
            "collection_id": cfg.collection_id,
            "name": cfg.name,
            "symbol": cfg.symbol,
            "owner": cfg.owner,
            "authorized_signer": cfg.authorized_signer,
            "total_supply_limit": int(cfg.total_supply_limit),
            "current_phase": int(cfg.current_phase),
            "phase_cost": [int(x) for x in cfg.phase_cost],
            "phase_wallet_limit": [int(x) for x in cfg.phase_wallet_limit],
            "public_sale_enabled": bool(cfg.public_sale_enabled),
            "public_sale_cost": int(cfg.public_sale_cost),
            "public_sale_wallet_limit": int(cfg.public_sale_wallet_limit),
            "stake_limit_per_token": int(cfg.stake_limit_per_token),
            "base_uri": cfg.base_uri,
            "network": cfg.network,
        },
        "minting": {"total_minted": 0, "minted_by_phase": {}, "public_minted": {}, "blacklist": []},
        "stake_options": [o.to_json() for o in cfg.stake_options],
        "tokens": {},
        "stakes": {},
        "registry": {"next_token_id": FIRST_TOKEN_ID, "balances": {}},
        "accounts": {},
        "pool": {"balance": 0},
        "time": 0,
    }


__all__ = [
    "CollectionConfig",
    "StakeOptionConfig",
    "collection_config_from_dict",
    "default_collection_config",
    "genesis_state",
    "load_collection_config",
    "read_collection_config_file",
    "validate_collection_config",
]
