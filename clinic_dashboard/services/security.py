"""Security helpers: headers, rate limiting, and cache control."""

from __future__ import annotations

from functools import wraps
from typing import Any, Callable

from flask import g, make_response, request
from flask_limiter.errors import RateLimitExceeded

from clinic_dashboard.extensions import limiter


def no_store(func: Callable[..., Any]) -> Callable[..., Any]:
    """Mark a view's response as non-cacheable."""

    @wraps(func)
    def wrapped(*args: Any, **kwargs: Any):
        g.nostore = True
        return func(*args, **kwargs)

    return wrapped


def init_security(app) -> None:
    protected_blueprints = ("core", "visits", "patients")
    for bp_name in protected_blueprints:
        bp = app.blueprints.get(bp_name)
        if bp is not None:
            limiter.limit("60 per minute", methods=["POST", "PUT", "DELETE"])(bp)

    @limiter.request_filter
    def skip_rate_limits() -> bool:  # type: ignore[unused-local]
        return request.endpoint in {"static"}

    @app.before_request
    def reset_flags() -> None:
        g.nostore = False

    @app.after_request
    def apply_headers(response):
        response.headers.setdefault(
            "Content-Security-Policy",
            "default-src 'self'; "
            "img-src 'self' data:; "
            "style-src 'self' 'unsafe-inline'; "
            "script-src 'self';",
        )
        response.headers.setdefault("Referrer-Policy", "no-referrer")
        response.headers.setdefault("X-Frame-Options", "DENY")
        response.headers.setdefault("X-Content-Type-Options", "nosniff")
        response.headers.setdefault("Permissions-Policy", "geolocation=(), camera=(), microphone=()")
        if getattr(g, "nostore", False):
            response.headers["Cache-Control"] = "no-store"
        return response

    @app.errorhandler(RateLimitExceeded)
    def handle_rate_limit(exc: RateLimitExceeded):  # type: ignore[override]
        app.logger.warning("Rate limit exceeded on %s", request.endpoint or "global")
        return make_response("Too Many Requests", 429)
