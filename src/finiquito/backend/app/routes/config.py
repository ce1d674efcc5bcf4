"""Expose the YAML-backed payroll constants consumed by front-end forms.

Clients read the published UMA, UMI, minimum wages and withholding tables
from these endpoints instead of duplicating them.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date
from decimal import Decimal
from typing import Any

from flask import Blueprint, jsonify, request

from finiquito.backend.app.http import not_found
from finiquito.backend.config.year_config import (
    TaxBracketTable,
    YearConfiguration,
    available_years,
    load_benefit_tables,
    load_manifest,
    load_year_configuration,
)
from finiquito.backend.version import get_project_version

blueprint = Blueprint("config", __name__, url_prefix="/api/v1/config")


def get_configuration_metadata() -> dict[str, Any]:
    """Expose runtime metadata derived from the configuration manifest."""

    manifest = load_manifest()
    supported_years = list(manifest.supported_years)
    default_year = supported_years[-1] if supported_years else None
    return {
        "version": get_project_version(),
        "supported_years": supported_years,
        "default_year": default_year,
    }


def _serialise(value: Any) -> Any:
    """Convert decimals, dates and Pydantic models into JSON-ready values."""

    if hasattr(value, "model_dump"):
        return _serialise(value.model_dump(mode="python"))
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(key): _serialise(item) for key, item in value.items()}
    if isinstance(value, Sequence) and not isinstance(value, str | bytes | bytearray):
        return [_serialise(item) for item in value]
    return value


def _serialise_tax_table(table: TaxBracketTable) -> dict[str, Any]:
    return {
        "effective": table.effective_date.isoformat(),
        "brackets": [
            {
                "lower": float(bracket.lower_limit),
                "upper": float(bracket.upper_limit) if not bracket.is_open else None,
                "fee": float(bracket.fixed_fee),
                "percent": float(bracket.marginal_percent),
            }
            for bracket in table.brackets
        ],
    }


def _effective_values(entries: Sequence[Any]) -> list[dict[str, Any]]:
    return [
        {"effective": entry.effective_date.isoformat(), "value": float(entry.value)}
        for entry in entries
    ]


def _serialise_year(config: YearConfiguration) -> dict[str, Any]:
    entry = load_manifest().get_entry(config.year)
    return {
        "year": config.year,
        "status": entry.status,
        "notes_url": entry.notes_url,
        "meta": _serialise(config.meta),
    }


def _serialise_constants(config: YearConfiguration, on: date) -> dict[str, Any]:
    return {
        "year": config.year,
        "date": on.isoformat(),
        "uma": _effective_values(config.uma),
        "umi": _effective_values(config.umi),
        "minimum_wages": [
            {
                "effective": wage.effective_date.isoformat(),
                "general": float(wage.general),
                "border": float(wage.border),
            }
            for wage in config.minimum_wages
        ],
        "in_force": {
            "uma": float(config.uma_for(on)),
            "umi": float(config.umi_for(on)),
            "minimum_wage": {
                "general": float(config.minimum_wage_for(on)),
                "border": float(config.minimum_wage_for(on, border_zone=True)),
            },
        },
        "tax_table": _serialise_tax_table(config.tax_table_for(on)),
        "settlement": _serialise(config.settlement),
        "vacation_table": _serialise(load_benefit_tables().vacation_table_for(on)),
    }


@blueprint.get("/meta")
def get_application_metadata() -> tuple[Any, int]:
    """Expose lightweight application metadata such as the version identifier."""

    return jsonify(get_configuration_metadata()), 200


@blueprint.get("/years")
def list_years() -> tuple[Any, int]:
    """Return all configured years with lightweight metadata."""

    years = [_serialise_year(load_year_configuration(year)) for year in available_years()]
    metadata = get_configuration_metadata()
    payload = {
        "years": years,
        "default_year": metadata["default_year"],
        "supported_years": metadata["supported_years"],
    }
    return jsonify(payload), 200


@blueprint.get("/<int:year>/constants")
def get_year_constants(year: int) -> tuple[Any, int]:
    """Return the constants of ``year`` and the values in force on ``?date=``."""

    try:
        configuration = load_year_configuration(year)
    except FileNotFoundError as exc:
        return not_found(str(exc), year=year).to_response()

    on = date(year, 12, 31)
    requested = request.args.get("date")
    if requested:
        try:
            on = date.fromisoformat(requested)
        except ValueError as exc:
            raise ValueError(f"Invalid date '{requested}': expected YYYY-MM-DD") from exc
        if on.year != year:
            raise ValueError(f"Date {requested} is outside configuration year {year}")

    return jsonify(_serialise_constants(configuration, on)), 200
