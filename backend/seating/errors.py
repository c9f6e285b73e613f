# Overview: Error taxonomy shared by the seating services and routes.

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    field: str
    reason: str

    def to_dict(self) -> dict:
        return {"field": self.field, "reason": self.reason}


class SeatingError(Exception):
    """Base class; status_code is the HTTP-equivalent callers should map to."""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"error": self.message}


class ValidationError(SeatingError, ValueError):
    """400-level input problem, detected before any persistence attempt."""
    status_code = 400

    def __init__(self, errors: list[FieldError], message: str = "Validation failed"):
        super().__init__(message)
        self.errors = list(errors)

    def to_dict(self) -> dict:
        return {"error": self.message, "details": [e.to_dict() for e in self.errors]}


class NotFoundError(SeatingError):
    status_code = 404


class ConflictError(SeatingError):
    """409-level concurrent modification (stale revision)."""
    status_code = 409


class InternalError(SeatingError):
    """Repository backend failure."""
    status_code = 500


class CacheError(SeatingError):
    """Cache backend failure. Never fatal for chart operations."""
    status_code = 500
