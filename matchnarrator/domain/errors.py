"""
Domain Errors
Fachliche Fehler, die von den Services geworfen und von der API auf HTTP-Statuscodes abgebildet werden
"""

from typing import Any, Optional


class NarratorError(Exception):
    """Basisklasse aller fachlichen Fehler"""

    status_code = 500

    def __init__(self, message: str, *, details: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class BadRequestError(NarratorError):
    status_code = 400


class UnauthorizedError(NarratorError):
    status_code = 401


class ForbiddenError(NarratorError):
    status_code = 403


class NotFoundError(NarratorError):
    status_code = 404

    @classmethod
    def for_entity(cls, entity: str, entity_id: Any) -> "NotFoundError":
        return cls(f"{entity} with ID {entity_id} not found")


class ConflictError(NarratorError):
    status_code = 409


class UpstreamAPIError(NarratorError):
    """Failure talking to the external football API"""

    status_code = 502


__all__ = [
    "NarratorError",
    "BadRequestError",
    "UnauthorizedError",
    "ForbiddenError",
    "NotFoundError",
    "ConflictError",
    "UpstreamAPIError",
]
