"""
Domain errors raised by the service layer.

Routers never translate these by hand: the application registers one
exception handler per class (see ``erp.main``).
"""


class ERPError(Exception):
    """Base class for business errors surfaced directly to the caller."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ERPError):
    """Input is well-formed but violates a business rule (missing contact, empty cart...)."""

    status_code = 422


class NotFoundError(ERPError):
    """A referenced quotation, order, invoice or catalog row does not exist."""

    status_code = 404


class ConflictError(ERPError):
    """The operation contradicts the current state of the document."""

    status_code = 409
