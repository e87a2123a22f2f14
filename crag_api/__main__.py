"""CLI entry point: ``python -m crag_api``."""

from __future__ import annotations

import logging

import uvicorn

from common.config import get_settings

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    logger.info("CragCrowd API server starting on port %d", settings.port)
    # uvicorn maneja SIGINT/SIGTERM: drena requests y corre el lifespan de cierre
    uvicorn.run(
        "crag_api.main:app",
        host="0.0.0.0",
        port=settings.port,
        log_level=settings.log_level.lower(),
        log_config=None,
    )


if __name__ == "__main__":
    main()
