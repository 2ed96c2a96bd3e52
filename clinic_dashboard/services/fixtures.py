"""Loading the appointments fixture.

The fixture stands in for a real backend: a JSON array of appointment
objects served at ``/appointments.json``. Pages load it once per request
and treat any failure as an empty dataset.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import requests
from flask import current_app

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0


class FixtureError(Exception):
    """Raised when the fixture cannot be fetched or decoded."""


def _as_records(payload: Any, source: str) -> list[dict]:
    if not isinstance(payload, list):
        raise FixtureError(f"{source} did not contain a JSON array")
    return payload


def fetch_appointments(
    url: str | None = None,
    path: str | Path | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[dict]:
    """Fetch the raw fixture from ``url`` over HTTP, or read it from ``path``."""
    if url:
        try:
            response = requests.get(url, timeout=timeout, headers={"Accept": "application/json"})
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as exc:
            raise FixtureError(f"Failed to fetch {url}: {exc}") from exc
        except ValueError as exc:
            raise FixtureError(f"Invalid JSON from {url}: {exc}") from exc
        return _as_records(payload, url)

    if path is None:
        raise FixtureError("No fixture url or path configured")
    try:
        with open(path, encoding="utf-8") as fh:
            payload = json.load(fh)
    except OSError as exc:
        raise FixtureError(f"Failed to read {path}: {exc}") from exc
    except ValueError as exc:
        raise FixtureError(f"Invalid JSON in {path}: {exc}") from exc
    return _as_records(payload, str(path))


def load_appointments(
    url: str | None = None,
    path: str | Path | None = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> list[dict]:
    """Like :func:`fetch_appointments` but never raises; failures yield ``[]``."""
    try:
        records = fetch_appointments(url=url, path=path, timeout=timeout)
    except FixtureError as exc:
        logger.error("Failed to load appointments fixture: %s", exc)
        return []
    logger.debug("Loaded %d appointment records", len(records))
    return records


def load_configured_appointments() -> list[dict]:
    """Load the fixture using the current app's configuration."""
    config = current_app.config
    return load_appointments(
        url=config.get("FIXTURE_URL"),
        path=config.get("FIXTURE_PATH"),
        timeout=config.get("FIXTURE_TIMEOUT", DEFAULT_TIMEOUT),
    )
