"""Domain errors raised by services and storage"""
from typing import Dict, Optional


class LeadDeskError(Exception):
    """Base class for every error the core reports to its caller"""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(LeadDeskError):
    """Referenced lead, user or reminder does not exist (or is not visible)"""

    status_code = 404


class InvalidAssigneeError(LeadDeskError):
    """Target user is not in the acting user's assignable set"""

    status_code = 400


class ValidationFailure(LeadDeskError):
    """
    One or more fields failed validation.

    `errors` maps field name to a human readable message so the presentation
    layer can report them field by field.
    """

    status_code = 422

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        super().__init__(message or "Validation failed")
        self.errors = dict(errors)


class AuthenticationError(LeadDeskError):
    status_code = 401


class PermissionDeniedError(LeadDeskError):
    status_code = 403


class ConflictError(LeadDeskError):
    """Stored record changed since it was read"""

    status_code = 409


class StorageUnavailableError(LeadDeskError):
    """Storage collaborator could not be reached"""

    status_code = 503
