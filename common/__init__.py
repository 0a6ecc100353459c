"""
Common library for reusable infrastructure components.

This package provides generic modules shared by the application:

- database: Async MongoDB connection (Motor) and store call helpers
- auth: Pluggable bearer-token verification (JWT)
- utils: Standard responses and API exceptions
- config: Base settings class
"""

from common.database import MongoDB, StoreUnavailable, StoreCaller
from common.auth import AuthProvider, JWTAuth, create_auth_dependency
from common.utils import (
    success_response,
    error_response,
    APIException,
    UnauthorizedException,
    ForbiddenException,
    NotFoundException,
    ConflictException,
    ValidationException,
    ServiceUnavailableException,
)
from common.config import BaseAppSettings

__all__ = [
    # Database
    "MongoDB",
    "StoreUnavailable",
    "StoreCaller",
    # Auth
    "AuthProvider",
    "JWTAuth",
    "create_auth_dependency",
    # Utils
    "success_response",
    "error_response",
    "APIException",
    "UnauthorizedException",
    "ForbiddenException",
    "NotFoundException",
    "ConflictException",
    "ValidationException",
    "ServiceUnavailableException",
    # Config
    "BaseAppSettings",
]
