# src/launchpad/api/app.py
from __future__ import annotations

from fastapi import FastAPI

from launchpad.api.config import load_api_config
from launchpad.api.errors import ApiError, api_error_handler, apply_error_handler
from launchpad.api.routes_public import public_router
from launchpad.api.structured_logging import RequestLogMiddleware, configure_structured_logging
from launchpad.runtime.errors import ApplyError
from launchpad.runtime.executor import build_executor as _build_executor


def build_executor():
    """Build a CollectionExecutor for API runtime.

    This wrapper exists so tests can monkeypatch `launchpad.api.app.build_executor`
    without reaching into runtime modules.
    """
    return _build_executor()


def create_app(*, boot_runtime: bool = True) -> FastAPI:
    """Create the FastAPI application.

    boot_runtime:
      - True (default): load the collection config and attach an executor
      - False: no executor; tests attach one to app.state.executor themselves
    """
    configure_structured_logging()
    cfg = load_api_config()

    # Disable docs in production.
    if cfg.mode == "prod":
        app = FastAPI(title="Launchpad Collection API", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="Launchpad Collection API")

    app.state.cfg = cfg
    app.state.executor = build_executor() if boot_runtime else None

    app.add_middleware(RequestLogMiddleware)

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(ApplyError, apply_error_handler)

    app.include_router(public_router)

    return app
