"""Errors raised by the circulation workflows.

Each carries the HTTP status it is rendered with; ``main`` installs a
handler that turns them into ``{"detail": ...}`` bodies, the same shape
``HTTPException`` produces.
"""


class LibraryError(Exception):
    status_code = 400

    def __init__(self, detail, **extra):
        super().__init__(detail)
        self.detail = detail
        self.extra = extra


class NotFoundError(LibraryError):
    status_code = 404


class ConflictError(LibraryError):
    status_code = 409


class ValidationFailed(LibraryError):
    status_code = 422
