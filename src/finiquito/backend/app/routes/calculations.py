"""REST endpoints for settlement calculations."""

from __future__ import annotations

from flask import Blueprint, Response, request

from finiquito.backend.services import (
    build_calculation_response,
    calculate_estimate,
    calculate_termination,
    parse_calculation_payload,
)

blueprint = Blueprint("calculations", __name__, url_prefix="/api/v1")


@blueprint.post("/settlements")
def create_settlement() -> Response:
    """Calculate a termination settlement from the submitted JSON payload."""

    payload = parse_calculation_payload(request)
    return build_calculation_response(calculate_termination(payload))


@blueprint.post("/estimates")
def create_estimate() -> Response:
    """Calculate the quick fiscal and real estimate for the submitted payload."""

    payload = parse_calculation_payload(request)
    return build_calculation_response(calculate_estimate(payload))
