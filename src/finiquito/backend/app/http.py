"""Problem responses shared by the Flask blueprints and error handlers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from flask import Response, jsonify


@dataclass(frozen=True)
class ProblemResponse:
    """Error payload of the form ``{"error": code, "message": text}``."""

    error: str
    status: int
    message: str | None = None
    extra: Mapping[str, Any] | None = None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error}
        if self.message:
            payload["message"] = self.message
        if self.extra:
            payload.update(self.extra)
        return payload

    def to_response(self) -> tuple[Response, int]:
        return jsonify(self.as_dict()), self.status


def problem_response(
    error: str,
    *,
    status: int,
    message: str | None = None,
    **extra: Any,
) -> ProblemResponse:
    """Build a :class:`ProblemResponse`; keyword extras are merged into the body."""

    return ProblemResponse(error=error, status=status, message=message, extra=extra or None)


def not_found(message: str, **extra: Any) -> ProblemResponse:
    return problem_response("not_found", status=404, message=message, **extra)


def validation_error(message: str) -> ProblemResponse:
    return problem_response("validation_error", status=400, message=message)


__all__ = ["ProblemResponse", "not_found", "problem_response", "validation_error"]
