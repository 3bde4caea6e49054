"""Service-level exceptions.

Services raise these; the application factory registers a handler that
turns them into the ``{"success": False, "message": ...}`` envelope with
the matching status code. They subclass ``ValueError`` so callers that
only care about "bad input" can keep catching ``ValueError``.
"""


class ServiceError(ValueError):
    status_code = 400

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(ServiceError):
    status_code = 400


class AuthError(ServiceError):
    status_code = 401


class ForbiddenError(ServiceError):
    status_code = 403


class NotFoundError(ServiceError):
    status_code = 404


class ConflictError(ServiceError):
    status_code = 409


class UpstreamError(ServiceError):
    status_code = 502
