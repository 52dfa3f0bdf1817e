# src/faircoin/api/__main__.py
from __future__ import annotations

import uvicorn

from faircoin.env import load_dotenv_if_present


def main() -> None:
    # Load .env early so FAIRCOIN_* vars exist before anything reads them.
    load_dotenv_if_present()

    # Import after dotenv load (prevents "config read before env" surprises)
    from faircoin.api.app import create_app
    from faircoin.api.config import load_service_config
    from faircoin.api.structured_logging import configure_structured_logging

    cfg = load_service_config()
    configure_structured_logging(cfg.log_level)

    uvicorn.run(create_app(cfg=cfg), host=cfg.api_host, port=cfg.api_port, log_level=cfg.log_level.lower())


if __name__ == "__main__":
    main()
