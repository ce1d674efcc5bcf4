"""Integration coverage for configuration metadata endpoints."""

from http import HTTPStatus

import pytest
from flask.testing import FlaskClient

from finiquito.backend.version import get_project_version


def test_meta_endpoint(client: FlaskClient) -> None:
    response = client.get("/api/v1/config/meta")

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()
    assert payload == {
        "version": get_project_version(),
        "supported_years": [2024, 2025],
        "default_year": 2025,
    }


def test_list_years_endpoint(client: FlaskClient) -> None:
    response = client.get("/api/v1/config/years")

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()
    assert payload["default_year"] == 2025
    statuses = {entry["year"]: entry["status"] for entry in payload["years"]}
    assert statuses == {2024: "archived", 2025: "active"}
    assert payload["years"][1]["meta"]["source"].startswith("DOF")


def test_constants_endpoint_reports_values_in_force(client: FlaskClient) -> None:
    response = client.get("/api/v1/config/2025/constants?date=2025-01-15")

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()
    assert payload["date"] == "2025-01-15"
    assert payload["in_force"]["uma"] == pytest.approx(108.57)
    assert payload["in_force"]["minimum_wage"] == {"general": 278.80, "border": 419.88}
    brackets = payload["tax_table"]["brackets"]
    assert len(brackets) == 11
    assert brackets[0]["lower"] == pytest.approx(0.01)
    assert brackets[-1]["upper"] is None
    assert payload["settlement"]["estimate_withholding"]["amount"] == pytest.approx(0.5)
    entries = payload["vacation_table"]["entries"]
    assert entries[0] == {"years": 1, "days": 12}


def test_constants_endpoint_defaults_to_year_end(client: FlaskClient) -> None:
    response = client.get("/api/v1/config/2025/constants")

    assert response.status_code == HTTPStatus.OK
    payload = response.get_json()
    assert payload["date"] == "2025-12-31"
    assert payload["in_force"]["uma"] == pytest.approx(113.14)


def test_constants_endpoint_rejects_dates_outside_the_year(client: FlaskClient) -> None:
    response = client.get("/api/v1/config/2025/constants?date=2024-06-01")

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.get_json()["error"] == "validation_error"


def test_unknown_year_returns_not_found(client: FlaskClient) -> None:
    response = client.get("/api/v1/config/1999/constants")

    assert response.status_code == HTTPStatus.NOT_FOUND
    payload = response.get_json()
    assert payload["error"] == "not_found"
    assert payload["year"] == 1999
