# src/launchpad/api/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

_ALLOWED_MODES = {"dev", "testnet", "prod"}


def _is_truthy(v: Optional[str]) -> bool:
    if v is None:
        return False
    return v.strip().lower() in {"1", "true", "yes", "y", "on"}


@dataclass(frozen=True)
class ApiConfig:
    mode: str  # "dev" | "testnet" | "prod"
    db_path: Optional[str]
    api_host: str
    api_port: int
    require_tx_signatures: bool


def validate_api_config(cfg: ApiConfig) -> None:
    if cfg.mode not in _ALLOWED_MODES:
        raise ValueError(f"mode must be one of {sorted(_ALLOWED_MODES)}; got: {cfg.mode!r}")
    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ValueError(f"api_port must be 1..65535; got: {cfg.api_port}")
    if cfg.mode == "prod" and not cfg.require_tx_signatures:
        raise ValueError("unsigned tx submission is not allowed in prod mode")


def load_api_config() -> ApiConfig:
    mode = (os.getenv("LAUNCHPAD_MODE") or "prod").strip().lower()
    db_path = (os.getenv("LAUNCHPAD_DB_PATH") or "").strip() or None
    host = (os.getenv("LAUNCHPAD_API_HOST") or "127.0.0.1").strip()
    raw_port = (os.getenv("LAUNCHPAD_API_PORT") or "8080").strip()
    try:
        port = int(raw_port)
    except ValueError:
        raise ValueError(f"LAUNCHPAD_API_PORT must be an integer; got: {raw_port!r}")

    # Signatures are required unless explicitly disabled.
    raw_sig = os.getenv("LAUNCHPAD_REQUIRE_TX_SIGNATURES")
    require_sigs = True if raw_sig is None else _is_truthy(raw_sig)

    cfg = ApiConfig(
        mode=mode,
        db_path=db_path,
        api_host=host,
        api_port=port,
        require_tx_signatures=require_sigs,
    )
    validate_api_config(cfg)
    return cfg


__all__ = ["ApiConfig", "load_api_config", "validate_api_config"]
