"""Unit tests for response formatting helpers."""

from __future__ import annotations

from flask import Flask

from finiquito.backend.services.response_builder import build_calculation_response


def test_build_calculation_response_returns_json(app: Flask) -> None:
    """Formatting helper should generate a non-cacheable JSON response."""

    with app.app_context():
        response = build_calculation_response({"total_payable": 1694.36})

    assert response.status_code == 200
    assert response.get_json() == {"total_payable": 1694.36}
    assert response.headers["Cache-Control"] == "no-store"


def test_build_calculation_response_accepts_status(app: Flask) -> None:
    with app.app_context():
        response = build_calculation_response({}, status=201)

    assert response.status_code == 201
