"""
Service-layer exceptions.

Each exception carries the HTTP status the API layer should answer with,
so services stay free of FastAPI imports.
"""


class ServiceError(Exception):
    """Base class for business rule failures."""
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(ServiceError):
    """Requested record does not exist in the caller's organization."""
    status_code = 404

    def __init__(self, entity: str, identifier=None):
        message = f"{entity} not found" if identifier is None else f"{entity} not found: {identifier}"
        super().__init__(message)


class BusinessRuleError(ServiceError):
    """Request is well formed but violates a domain rule."""
    status_code = 400


class ConflictError(ServiceError):
    """Request clashes with existing data."""
    status_code = 409
