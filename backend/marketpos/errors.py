# Overview: Domain error taxonomy shared by services and routes.

"""
Every error a service raises on purpose derives from PosError and carries the
HTTP status the API reports for it. Anything else reaching the boundary is an
unexpected failure and is reported as 500 Internal.
"""


class PosError(Exception):
    """Base class for expected, user-visible failures."""
    status_code = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(PosError, ValueError):
    """400-level input problem."""
    status_code = 400


class NotFoundError(PosError):
    status_code = 404


class ConflictError(PosError, ValueError):
    """409-level business rule conflict (e.g., duplicate barcode)."""
    status_code = 409


class InsufficientStockError(PosError):
    """Requested quantity exceeds on-hand stock (or would drive it negative)."""
    status_code = 400


class InvalidStateError(PosError):
    """Operation not allowed in the document's current status."""
    status_code = 400


class HasDependentsError(PosError):
    """Delete blocked because other records still reference the entity."""
    status_code = 400


class DiscountUnavailableError(PosError):
    """Discount is inactive, expired, or not yet started."""
    status_code = 400


class ConcurrentUpdateError(PosError):
    """A product row changed underneath the current transaction."""
    status_code = 409
