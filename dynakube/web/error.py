from typing import Mapping, Optional


class RegistryError(Exception):
    """Container registry request failed."""

    def __init__(self, message: str, status: int = None, headers: Optional[Mapping] = None):
        self.status = status
        self.headers = headers or {}
        super().__init__(message)


class NotFoundError(RegistryError):
    """Resource not found"""
    pass


class AuthenticationError(RegistryError):
    """Registry rejected the request credentials."""
    pass


class InvalidResponse(RegistryError):
    """Registry answered with a document the client does not understand."""
    pass
