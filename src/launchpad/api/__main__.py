# src/launchpad/api/__main__.py
from __future__ import annotations

import uvicorn

from launchpad.api.app import create_app
from launchpad.api.config import load_api_config


def main() -> None:
    cfg = load_api_config()
    uvicorn.run(create_app(), host=cfg.api_host, port=cfg.api_port, log_level="info")


if __name__ == "__main__":
    main()
