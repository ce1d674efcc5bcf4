"""Helpers for normalising incoming calculation requests."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from flask import Request
from werkzeug.exceptions import BadRequest


def _resolve_timezone(req: Request, payload: dict[str, Any]) -> None:
    """Populate the timezone field in ``payload`` from the query string when absent."""

    timezone = payload.get("timezone")
    if isinstance(timezone, str) and timezone.strip():
        payload["timezone"] = timezone.strip()
        return

    timezone_param = req.args.get("timezone")
    if timezone_param and timezone_param.strip():
        payload["timezone"] = timezone_param.strip()


def parse_calculation_payload(req: Request) -> dict[str, Any]:
    """Extract and validate a JSON payload from ``req``."""

    data = req.get_json(silent=True)
    if data is None:
        raise BadRequest("Request body must be valid JSON")
    if not isinstance(data, Mapping):
        raise BadRequest("Request JSON must be an object")

    payload = dict(data)
    _resolve_timezone(req, payload)

    return payload
