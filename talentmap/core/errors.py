"""
Domain Errors Module

Errors raised by the service layer. Each carries the HTTP status the API
answers with; the handler registered in ``talentmap.main`` renders them as
``{"detail": message}``.
"""


class TalentMapError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationFailed(TalentMapError):
    """Client-side rule violated before any write was attempted."""
    status_code = 422


class DuplicateAssignmentError(TalentMapError):
    """The employee already holds an allocation on the target project."""
    status_code = 409


class EmployeeNotEditableError(TalentMapError):
    """Only active employees may have core fields or allocations edited."""
    status_code = 409


class ConfirmationRequired(TalentMapError):
    status_code = 409


class NotFoundError(TalentMapError):
    status_code = 404


class BackendError(TalentMapError):
    """A write or read against the database failed; message is the raw backend text."""
    status_code = 502
