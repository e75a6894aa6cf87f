"""Error taxonomy shared by the CRUD layer and the HTTP surface.

Every error carries a short machine-readable ``detail`` code
(e.g. ``missing_fields``). The API maps each class to one status code so
frontends can handle errors consistently.
"""

from __future__ import annotations


class StudyMateError(Exception):
    status_code = 500

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ValidationError(StudyMateError, ValueError):
    """Missing/empty required field or a value outside its domain."""

    status_code = 400


class AuthenticationError(StudyMateError):
    """Missing, malformed or expired credential."""

    status_code = 401


class ConflictError(StudyMateError, ValueError):
    """Username or email already taken by another account."""

    status_code = 409


class NotFoundError(StudyMateError, LookupError):
    """Row absent, or owned by a different account; both answer 404."""

    status_code = 404


class StorageError(StudyMateError):
    """Underlying store failure. ``detail`` is always generic."""

    status_code = 500

    def __init__(self, detail: str = "storage_error") -> None:
        super().__init__(detail)
