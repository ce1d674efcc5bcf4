#!/usr/bin/env python3
"""Collect baseline timings for the settlement and estimate services."""

from __future__ import annotations

import json
import os
import sys
from collections.abc import Callable, Mapping
from pathlib import Path
from time import perf_counter
from typing import Any

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from finiquito.backend.app.services.estimate_service import calculate_estimate  # noqa: E402
from finiquito.backend.app.services.settlement_service import (  # noqa: E402
    calculate_termination,
)

SETTLEMENT_PAYLOAD = {
    "hire_date": "2019-03-15",
    "termination_date": "2025-06-30",
    "daily_salary": 650.00,
    "severance_enabled": True,
    "worked_days": 15,
    "seventh_day": 2.5,
    "pending_vacation_days": 4,
    "housing_credits": [
        {"discount_type": "percentage", "discount_value": 20, "pending_days": 10}
    ],
    "complement": {"real_hire_date": "2018-01-08", "real_daily_salary": 900.00},
}

ESTIMATE_PAYLOAD = {
    "hire_date": "2025-01-01",
    "termination_date": "2025-01-29",
    "salary": 12999.90,
    "salary_frequency": "monthly",
    "days_factor": 30,
    "fiscal_daily_salary": 278.80,
}


def measure(
    calculate: Callable[[Mapping[str, Any]], Any], payload: Mapping[str, Any], iterations: int
) -> dict[str, float]:
    """Return timing statistics for repeated calls of ``calculate``."""

    calculate(payload)  # Warm configuration caches
    start = perf_counter()
    for _ in range(iterations):
        calculate(payload)
    elapsed = perf_counter() - start
    return {
        "iterations": iterations,
        "total_ms": elapsed * 1000,
        "average_ms": (elapsed / iterations) * 1000,
    }


def main() -> None:
    iterations = int(os.getenv("FINIQUITO_PROFILE_ITERATIONS", "75"))
    report = {
        "settlement": measure(calculate_termination, SETTLEMENT_PAYLOAD, iterations),
        "estimate": measure(calculate_estimate, ESTIMATE_PAYLOAD, iterations),
    }
    print(json.dumps(report, indent=2, sort_keys=True))


if __name__ == "__main__":
    main()
