"""Application entrypoint for the live portfolio valuation MCP server."""

from __future__ import annotations

import asyncio
import logging
import os

from mcp.server.fastmcp import FastMCP
from starlette.responses import JSONResponse, Response

from live_portfolio.config.settings import Settings, get_settings
from live_portfolio.resources.portfolio_resources import register_portfolio_resources
from live_portfolio.tools.registry import build_tool_services, register_all_tools

LOGGER = logging.getLogger(__name__)


def resolve_transport_mode(configured_mode: str) -> str:
    if os.getenv("RENDER") and configured_mode == "stdio":
        return "http"
    if configured_mode in {"stdio", "http"}:
        return configured_mode
    if os.getenv("RENDER") or os.getenv("PORT"):
        return "http"
    return "stdio"


def resolve_http_transport(configured_transport: str) -> str:
    if configured_transport in {"sse", "streamable"}:
        return configured_transport
    return "sse"


def configure_logging(settings: Settings) -> None:
    level = getattr(logging, settings.log_level, logging.INFO)
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s %(message)s")


async def run() -> None:
    settings = get_settings()
    configure_logging(settings)
    services = build_tool_services(settings)
    mcp = FastMCP(
        name=settings.app_name,
        host=settings.host,
        port=settings.port,
        streamable_http_path=settings.mcp_path,
    )
    register_all_tools(mcp, services)
    register_portfolio_resources(mcp, services)
    resolved_mode = resolve_transport_mode(settings.transport_mode)
    resolved_http_transport = resolve_http_transport(settings.http_transport)

    @mcp.custom_route(settings.health_path, methods=["GET"])
    async def health_check(_: object) -> Response:
        status = services.session.status()
        return JSONResponse(
            {
                "status": "ok",
                "service": settings.app_name,
                "mode": resolved_mode,
                "feed_base_url": settings.api_base_url,
                "has_portfolio": status["has_portfolio"],
                "prices": status["prices"]["status"],
                "fundamentals": status["fundamentals"]["status"],
            }
        )

    LOGGER.info(
        "starting server: mode=%s http_transport=%s feed_base_url=%s poll_interval_s=%s",
        resolved_mode,
        resolved_http_transport,
        settings.api_base_url,
        settings.poll_interval_seconds,
    )
    try:
        if resolved_mode == "stdio":
            await mcp.run_stdio_async()
        elif resolved_http_transport == "streamable":
            await mcp.run_streamable_http_async()
        else:
            await mcp.run_sse_async()
    finally:
        services.session.close()


def main() -> None:
    asyncio.run(run())


if __name__ == "__main__":
    main()
