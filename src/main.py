"""Entry point for the miner-spy API server."""

import asyncio

from loguru import logger

from config.settings import settings
from src.api.server import run_api_server
from src.utils.logger import setup_logger


async def main() -> None:
    setup_logger(json_logs=settings.json_logs, level=settings.log_level)
    logger.info("Starting miner-spy API...")
    await run_api_server()
    logger.info("Shutdown complete")


if __name__ == "__main__":
    asyncio.run(main())
