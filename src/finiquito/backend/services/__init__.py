"""Service-layer helpers for the finiquito backend."""

from finiquito.backend.app.services.estimate_service import calculate_estimate
from finiquito.backend.app.services.settlement_service import calculate_termination

from .request_parser import parse_calculation_payload
from .response_builder import build_calculation_response

__all__ = [
    "calculate_estimate",
    "calculate_termination",
    "parse_calculation_payload",
    "build_calculation_response",
]
