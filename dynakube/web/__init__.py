from .client import RegistryClient
from .error import RegistryError, NotFoundError, AuthenticationError, InvalidResponse

__all__ = [
    "RegistryClient",
    "RegistryError",
    "NotFoundError",
    "AuthenticationError",
    "InvalidResponse",
]
