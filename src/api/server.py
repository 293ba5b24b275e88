"""API server — runs uvicorn inside the current asyncio event loop."""

from __future__ import annotations

import uvicorn
from loguru import logger

from config.settings import settings
from src.api.services import close_services, init_services


async def run_api_server() -> None:
    """Wire services, then serve the FastAPI app until shutdown.

    Uses ``uvicorn.Server.serve()`` which is fully async; uvicorn installs
    its own SIGINT/SIGTERM handlers. Services are closed even when wiring
    fails part way (e.g. redis unreachable).
    """
    from src.api.app import create_app

    try:
        await init_services(settings)
        app = create_app()
        config = uvicorn.Config(
            app=app,
            host=settings.api_host,
            port=settings.api_port,
            log_level="warning",
            loop="none",  # use the existing event loop
        )
        server = uvicorn.Server(config)
        logger.info(f"Miner Spy API starting on http://{settings.api_host}:{settings.api_port}")
        logger.info(f"Default subnet: {settings.default_subnet_id}, cache TTL: {settings.cache_ttl_sec}s")
        await server.serve()
    finally:
        await close_services()
