# src/faircoin/api/app.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from faircoin.airdrop.eligibility_store import EligibilityStore, open_store
from faircoin.api.config import ServiceConfig, load_service_config
from faircoin.api.errors import ApiError
from faircoin.api.routes_eligibility import router as eligibility_router
from faircoin.api.structured_logging import RequestLogMiddleware
from faircoin.runtime.runtime_logging import log_event

_log = logging.getLogger("faircoin.api")


def build_store(cfg: ServiceConfig) -> EligibilityStore:
    """Open the eligibility DB and seed it from airdrop.json on first boot.

    This wrapper exists so tests can monkeypatch `faircoin.api.app.build_store`.
    """
    store = open_store(cfg.db_path)
    if not store.is_seeded():
        p = Path(cfg.airdrop_path)
        if p.is_file():
            store.seed_from_airdrop(p)
        else:
            log_event(_log, "eligibility_unseeded", level=logging.WARNING, airdrop_path=str(p))
    return store


def create_app(
    *,
    cfg: Optional[ServiceConfig] = None,
    store: Optional[EligibilityStore] = None,
    boot_store: bool = True,
) -> FastAPI:
    """Create the FastAPI application.

    boot_store:
      - True (default): open/seed the SQLite store unless one is passed in
      - False: keep lightweight for route/middleware tests (lookups return 500)
    """
    cfg = cfg or load_service_config()

    # Disable docs in production.
    if cfg.mode == "prod":
        app = FastAPI(title="FairCoin Eligibility API", docs_url=None, redoc_url=None, openapi_url=None)
    else:
        app = FastAPI(title="FairCoin Eligibility API")

    app.state.cfg = cfg
    if store is not None:
        app.state.store = store
    elif boot_store:
        app.state.store = build_store(cfg)
    else:
        app.state.store = None

    @app.exception_handler(ApiError)
    async def _api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content=exc.to_json())

    # --- Middleware ---
    app.add_middleware(RequestLogMiddleware)

    # CORS (explicit allowlist only; disabled when unset).
    origins = cfg.cors_list()
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials="*" not in origins,
            allow_methods=["GET", "OPTIONS"],
            allow_headers=["Content-Type"],
        )

    # --- Routers ---
    app.include_router(eligibility_router, tags=["eligibility"])

    return app
