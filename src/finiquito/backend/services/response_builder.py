"""Utilities for serialising calculation responses."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from flask import Response, jsonify

# Settlement figures describe a single person's termination.
PRIVATE_CACHE_CONTROL = "no-store"


def build_calculation_response(payload: Mapping[str, Any], status: int = 200) -> Response:
    """Return a non-cacheable Flask JSON response for the calculation ``payload``."""

    response = jsonify(payload)
    response.status_code = status
    response.headers["Cache-Control"] = PRIVATE_CACHE_CONTROL
    return response
