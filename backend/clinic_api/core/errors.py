from __future__ import annotations


class ClinicError(Exception):
    status_code = 400

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class UnauthorizedError(ClinicError):
    status_code = 401


class ForbiddenError(ClinicError):
    status_code = 403


class NotFoundError(ClinicError):
    status_code = 404


class ValidationError(ClinicError):
    status_code = 400


class ProcedureIndexError(ClinicError):
    """Procedure index outside the visit's procedures array.

    Negative or non-integer indexes are a malformed request (400); an index
    at or past the end of the array does not resolve to an element (404).
    """

    status_code = 404


class ConflictError(ClinicError):
    status_code = 409


class RateLimitedError(ClinicError):
    status_code = 429


class UpstreamError(ClinicError):
    status_code = 400
