"""Main FastAPI application for the adapter."""

import logging
from contextlib import asynccontextmanager
from typing import Awaitable, Callable, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from .api.routes import chat_completions, home_page, list_models
from .auth import ApiKeyValidator
from .config_loader import AdapterSettings, load_settings
from .core.exceptions import AuthenticationError, ProxyError
from .core.registry import ModelRegistry, build_registry
from .core.upstream import UpstreamClient
from .logging import setup_logging

logger = logging.getLogger("edgeone-adapter")

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
    "Access-Control-Max-Age": "86400",
}


def error_response(
    message: str,
    status_code: int,
    error_type: str,
    code: object = None,
) -> JSONResponse:
    return JSONResponse(
        {"error": {"message": message, "type": error_type, "code": code}},
        status_code=status_code,
        headers=CORS_HEADERS,
    )


async def handle_proxy_error(request: Request, exc: ProxyError) -> JSONResponse:
    logger.error(
        "Request to %s failed: %s (%s, status %s)",
        request.url.path,
        exc.message,
        exc.error_type,
        exc.status_code,
    )
    return JSONResponse(exc.to_envelope(), status_code=exc.status_code, headers=CORS_HEADERS)


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return error_response("Not Found", 404, "invalid_request_error", "not_found")
    if exc.status_code == 405:
        return error_response("Method not allowed", 405, "method_not_allowed", "method_not_allowed")
    return error_response(str(exc.detail), exc.status_code, "invalid_request_error")


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error while serving %s", request.url.path)
    return error_response(
        f"Error processing request: {exc}", 500, "internal_server_error"
    )


def create_app(
    settings: Optional[AdapterSettings] = None,
    registry: Optional[ModelRegistry] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """Factory function to create the FastAPI application.

    Args:
        settings: Adapter settings; loaded from config file and environment if omitted.
        registry: Model registry; the built-in DeepSeek table if omitted.
        transport: Optional httpx transport for the upstream client (tests).

    Returns:
        The configured FastAPI application instance.
    """
    settings = settings or load_settings()
    registry = registry or build_registry()
    validator = ApiKeyValidator.from_keys(settings.api_keys)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        upstream = settings.build_upstream()
        client = UpstreamClient(upstream, transport=transport)
        app.state.upstream_client = client
        logger.info("Adapter starting up, forwarding to %s", upstream.url)
        logger.info("Available models: %s", registry.model_ids())
        logger.info("API key authentication: %s", "enabled" if validator.enabled else "DISABLED")
        if settings.forward_mapped_model:
            logger.info("Forwarding registry-mapped upstream model ids")
        try:
            yield
        finally:
            await client.aclose()
            logger.info("Adapter shut down")

    app = FastAPI(title="EdgeOne OpenAI Adapter", lifespan=lifespan)
    app.state.settings = settings
    app.state.registry = registry
    app.state.api_key_validator = validator

    @app.middleware("http")
    async def cors_and_auth(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        # Preflight never reaches auth or routing
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=CORS_HEADERS)

        if request.url.path.startswith("/v1/"):
            try:
                validator.validate(request.headers.get("authorization"))
            except AuthenticationError as exc:
                return JSONResponse(
                    exc.to_envelope(), status_code=exc.status_code, headers=CORS_HEADERS
                )

        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    app.add_exception_handler(ProxyError, handle_proxy_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected_error)

    app.get("/")(home_page)
    app.get("/v1/models")(list_models)
    app.post("/v1/chat/completions")(chat_completions)

    return app


setup_logging()
app = create_app()

__all__ = ["app", "create_app", "CORS_HEADERS"]
