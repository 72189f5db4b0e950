"""Error taxonomy shared by the rule engines and the HTTP layer."""

from __future__ import annotations


class WmsError(Exception):
    """Base class; ``status_code`` / ``error`` drive the HTTP rendering."""

    status_code: int = 500
    error: str = "Internal Server Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(WmsError):
    """A referenced product, item, location or order does not exist."""

    status_code = 404
    error = "Not Found"


class ConflictError(WmsError):
    """A business rule was violated (stock, transition, capacity, duplicates)."""

    status_code = 409
    error = "Conflict"


InvalidStateError = ConflictError


class BadRequestError(WmsError):
    """Malformed input that the request schema could not reject by itself."""

    status_code = 400
    error = "Bad Request"
