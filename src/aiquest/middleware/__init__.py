"""Middleware registration."""

from fastapi import FastAPI

from aiquest.config import Settings
from aiquest.middleware.cors import setup_cors
from aiquest.middleware.error_handler import setup_error_handlers
from aiquest.middleware.logging import setup_logging
from aiquest.middleware.rate_limit import RateLimitMiddleware
from aiquest.middleware.request_id import RequestIdMiddleware


def setup_middleware(app: FastAPI, settings: Settings) -> None:
    """Register logging, error handlers and middleware.

    Starlette runs middleware in reverse-add order, so CORS is added last to
    wrap everything (including 429s) and the request id is bound before the
    rate limiter logs anything.
    """
    setup_logging(settings)
    setup_error_handlers(app)
    app.add_middleware(
        RateLimitMiddleware,
        requests_per_window=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
    )
    app.add_middleware(RequestIdMiddleware)
    setup_cors(app, settings)
