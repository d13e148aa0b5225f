"""
HTTP entry point for the HealthKart Deal Alert system.

Exposes one POST endpoint that triggers an alert run and health
endpoints, built on aiohttp.web.
"""

import json
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from aiohttp import web

from . import __version__
from .services.alert_service import AlertService, generate_request_id
from .utils.error_handling import http_status_for, sanitize_error_message
from .utils.logging import get_logger

AlertServiceProvider = Callable[[], AlertService]

SERVICE_PROVIDER = web.AppKey("service_provider", object)
ENVIRONMENT = web.AppKey("environment", str)
CATEGORY_RESOLVER = web.AppKey("category_resolver", object)

logger = get_logger("http.api")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


async def index(request: web.Request) -> web.Response:
    return web.json_response({
        "service": "HealthKart Deal Alert API",
        "version": __version__,
        "endpoints": {
            "sendAlert": "POST /api/send-alert",
            "health": "GET /api/health",
        },
        "timestamp": _now_iso(),
    })


async def health(request: web.Request) -> web.Response:
    return web.json_response({
        "status": "healthy",
        "message": "HealthKart Deal Alert API is running",
        "timestamp": _now_iso(),
        "environment": request.app[ENVIRONMENT],
        "version": __version__,
    })


async def send_alert(request: web.Request) -> web.Response:
    """Run one alert cycle and report the result."""
    request_id = generate_request_id()
    started = time.monotonic()

    category = None
    if request.can_read_body:
        try:
            body = await request.json()
        except json.JSONDecodeError:
            return web.json_response(
                {
                    "success": False,
                    "error": "Request body must be valid JSON",
                    "statusCode": 400,
                    "timestamp": _now_iso(),
                    "requestId": request_id,
                },
                status=400,
            )
        if isinstance(body, dict):
            category = body.get("category")

    resolver = request.app[CATEGORY_RESOLVER]
    category_code = resolver(category) if resolver else category

    logger.info("Send alert requested", extra={"request_id": request_id, "category": category_code})

    try:
        async with request.app[SERVICE_PROVIDER]() as service:
            result = await service.execute(category_code=category_code, request_id=request_id)

    except Exception as e:
        status = http_status_for(e)
        message = sanitize_error_message(str(e))
        logger.error(
            "Send alert failed",
            extra={"request_id": request_id, "status": status, "error": message},
        )
        return web.json_response(
            {
                "success": False,
                "error": message,
                "statusCode": status,
                "timestamp": _now_iso(),
                "requestId": request_id,
            },
            status=status,
        )

    return web.json_response({
        "success": True,
        "timestamp": _now_iso(),
        "executionTimeMs": int((time.monotonic() - started) * 1000),
        "requestId": request_id,
        "data": result.to_dict(),
    })


def create_app(
    service_provider: AlertServiceProvider,
    environment: str = "development",
    category_resolver: Optional[Callable[[Optional[str]], Optional[str]]] = None,
) -> web.Application:
    """
    Build the aiohttp application.

    Args:
        service_provider: Returns a fresh AlertService per request; the
            service is used as an async context manager and closed afterwards
        environment: Reported by the health endpoint
        category_resolver: Maps a requested category key to a category code
    """
    app = web.Application()
    app[SERVICE_PROVIDER] = service_provider
    app[ENVIRONMENT] = environment
    app[CATEGORY_RESOLVER] = category_resolver

    app.router.add_get("/", index)
    app.router.add_get("/api", index)
    app.router.add_get("/health", health)
    app.router.add_get("/api/health", health)
    app.router.add_post("/api/send-alert", send_alert)
    return app
