#!/usr/bin/env python3
"""FastAPI server runner."""

import uvicorn
import structlog

from binary_market.config.loader import load_config
from binary_market.logging.setup import setup_logging
from binary_market.api.app import app

logger = structlog.get_logger("api_runner")


def main(config_path: str | None = None):
    """Run the journal API server."""
    config = load_config(config_path)
    setup_logging(level=config.logging.level, log_format=config.logging.format)

    logger.info("api_server_starting", host=config.api.host, port=config.api.port)

    try:
        uvicorn.run(
            app,
            host=config.api.host,
            port=config.api.port,
            log_config=None,  # Use our structlog setup
        )
    except Exception as e:
        logger.error("api_server_failed", error=str(e))
        raise


if __name__ == "__main__":
    main()
