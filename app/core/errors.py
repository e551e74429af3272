# app/core/errors.py - Domain exceptions raised by services, mapped to HTTP in app/main.py
from typing import List, Optional


class RegistrarError(Exception):
    """Base class for expected, user-facing failures"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"detail": self.message}


class NotFoundError(RegistrarError):
    """Referenced entity does not exist"""

    status_code = 404

    def __init__(self, entity: str, entity_id: Optional[object] = None, message: Optional[str] = None):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(message or f"{entity} not found")


class EnrollmentValidationError(RegistrarError):
    """
    One or more registration rules failed.

    Carries every violated rule so the caller can show all problems at once.
    """

    status_code = 422

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__(f"Enrollment validation failed: {', '.join(self.errors)}")

    def to_dict(self) -> dict:
        return {"detail": self.message, "errors": self.errors}


class InvalidStateError(RegistrarError):
    """Operation attempted against an entity in the wrong lifecycle state"""

    status_code = 409


class ConstraintViolationError(RegistrarError):
    """Operation would break a data invariant"""

    status_code = 400


class ForbiddenError(RegistrarError):
    """Caller lacks the permission for the attempted action"""

    status_code = 403


__all__ = [
    "RegistrarError",
    "NotFoundError",
    "EnrollmentValidationError",
    "InvalidStateError",
    "ConstraintViolationError",
    "ForbiddenError",
]
