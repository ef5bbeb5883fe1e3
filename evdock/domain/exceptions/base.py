"""Base domain exception."""


class DomainException(Exception):
    """
    Base exception for all domain-level errors.

    Carries a human-readable message and a stable machine-readable code
    that the HTTP layer exposes in error responses.
    """

    def __init__(self, message: str, code: str = "DOMAIN_ERROR"):
        self.message = message
        self.code = code
        super().__init__(self.message)


class NotFoundException(DomainException):
    """Raised when a requested resource does not exist."""
