"""Error recording for view functions."""

from __future__ import annotations

from flask import current_app, has_request_context, request


def record_exception(where: str, exc: BaseException) -> None:
    """Log an unexpected exception with the request that triggered it."""
    path = request.full_path if has_request_context() else "-"
    current_app.logger.error("Unhandled error in %s (%s): %s", where, path, exc, exc_info=exc)
