# src/faircoin/api/config.py
from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

Json = Dict[str, Any]


def _as_int(v: Any, default: int) -> int:
    try:
        return int(v)
    except (TypeError, ValueError):
        return int(default)


def _as_str(v: Any, default: str) -> str:
    if v is None:
        return str(default)
    s = str(v)
    return s if s.strip() else str(default)


@dataclass(frozen=True)
class ServiceConfig:
    mode: str  # "dev" | "testnet" | "prod"

    # SQLite file holding the root + precomputed proofs.
    db_path: str
    # airdrop.json produced by scripts/build_merkle.py; seeds an empty DB.
    airdrop_path: str

    api_host: str
    api_port: int

    cors_origins: str
    log_level: str

    def cors_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


_ALLOWED_MODES = {"dev", "testnet", "prod"}


def validate_service_config(cfg: ServiceConfig) -> None:
    """Fail-fast validation for operator config."""
    mode = str(cfg.mode or "").strip().lower()
    if mode not in _ALLOWED_MODES:
        raise ValueError(f"mode must be one of {_ALLOWED_MODES}; got: {cfg.mode!r}")

    if int(cfg.api_port) <= 0 or int(cfg.api_port) > 65535:
        raise ValueError(f"api_port must be 1..65535; got: {cfg.api_port}")

    for name, p in (("db_path", cfg.db_path), ("airdrop_path", cfg.airdrop_path)):
        if not isinstance(p, str) or not p.strip():
            raise ValueError(f"{name} must be a non-empty string")

    # Wildcard CORS is a dev convenience only.
    if mode == "prod" and "*" in cfg.cors_list():
        raise ValueError(
            "Unsafe CORS configuration: wildcard '*' not allowed in production. "
            "Set explicit origins in FAIRCOIN_CORS_ORIGINS."
        )


def default_service_config() -> ServiceConfig:
    return ServiceConfig(
        mode="prod",
        db_path="./data/airdrop.db",
        airdrop_path="./public/airdrop.json",
        api_host="127.0.0.1",
        api_port=4173,
        cors_origins="",
        log_level="INFO",
    )


def service_config_from_env() -> ServiceConfig:
    d = default_service_config()
    return ServiceConfig(
        mode=_as_str(os.environ.get("FAIRCOIN_MODE"), d.mode).strip().lower(),
        db_path=_as_str(os.environ.get("FAIRCOIN_DB_PATH"), d.db_path),
        airdrop_path=_as_str(os.environ.get("FAIRCOIN_AIRDROP_PATH"), d.airdrop_path),
        api_host=_as_str(os.environ.get("FAIRCOIN_API_HOST"), d.api_host),
        api_port=_as_int(os.environ.get("FAIRCOIN_API_PORT"), d.api_port),
        cors_origins=_as_str(os.environ.get("FAIRCOIN_CORS_ORIGINS"), d.cors_origins),
        log_level=_as_str(os.environ.get("FAIRCOIN_LOG_LEVEL"), d.log_level),
    )


def read_service_config_file(path: str) -> ServiceConfig:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(raw, dict):
        raise ValueError("service config must be a JSON object")

    d = default_service_config()
    cfg = ServiceConfig(
        mode=_as_str(raw.get("mode"), d.mode).strip().lower(),
        db_path=_as_str(raw.get("db_path"), d.db_path),
        airdrop_path=_as_str(raw.get("airdrop_path"), d.airdrop_path),
        api_host=_as_str(raw.get("api_host"), d.api_host),
        api_port=_as_int(raw.get("api_port"), d.api_port),
        cors_origins=_as_str(raw.get("cors_origins"), d.cors_origins),
        log_level=_as_str(raw.get("log_level"), d.log_level),
    )
    validate_service_config(cfg)
    return cfg


def load_service_config(*, config_path: Optional[str] = None) -> ServiceConfig:
    p = config_path or os.environ.get("FAIRCOIN_SERVICE_CONFIG_PATH")
    if p:
        return read_service_config_file(p)

    cfg = service_config_from_env()
    validate_service_config(cfg)
    return cfg


__all__ = [
    "ServiceConfig",
    "default_service_config",
    "load_service_config",
    "read_service_config_file",
    "service_config_from_env",
    "validate_service_config",
]
