"""
Python client for the User Auth API with transparent access-token refresh.
"""
from .api import ApiClient
from .errors import ApiError, RefreshFailed
from .refresh import RefreshCoordinator
from .services import AuthService, UserService
from .session import SessionStore

__all__ = [
    "ApiClient",
    "ApiError",
    "AuthService",
    "RefreshCoordinator",
    "RefreshFailed",
    "SessionStore",
    "UserService",
]
