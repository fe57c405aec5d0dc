"""FastAPI application serving one RSS feed per AO3 work."""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import Response

from . import __version__, runner
from .config import AppConfig
from .runner import RunConfig
from .stream import StreamCoordinator

logger = logging.getLogger(__name__)


def create_app(config: Optional[AppConfig] = None) -> FastAPI:
    """Create the web application.

    Args:
        config: Service configuration; defaults are used when omitted.

    Returns:
        A FastAPI app exposing ``GET /work/{work_id}`` and ``GET /healthz``.
    """
    config = config or AppConfig()
    run_config = RunConfig(
        base_url=config.source.base_url,
        timeout=config.source.timeout,
        user_agent=config.source.user_agent,
    )

    app = FastAPI(title="ao3-feed", version=__version__)
    app.state.config = config

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/work/{work_id}")
    async def work_feed(work_id: str, request: Request) -> Response:
        """Stream the RSS feed for a single work."""
        logger.info("Feed requested for work %s", work_id)

        async def pipeline() -> bytes:
            return await asyncio.to_thread(runner.execute, work_id, run_config)

        coordinator = StreamCoordinator(
            pipeline,
            keepalive=config.keepalive.enabled,
            keepalive_interval=config.keepalive.interval,
            is_disconnected=request.is_disconnected,
            label=f"work {work_id}",
        )
        return await coordinator.respond()

    return app
