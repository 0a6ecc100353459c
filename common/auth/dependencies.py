"""
FastAPI dependencies resolving the caller's user identifier.

Example:
    from common.auth import JWTAuth, create_auth_dependency

    auth = JWTAuth(secret="your-secret")
    require_auth = create_auth_dependency(lambda: auth)

    @router.post("/circles/{circle_id}/join")
    async def join(circle_id: str, user_id: Annotated[str, Depends(require_auth)]):
        ...
"""

from typing import Callable, Optional

from fastapi import Header

from common.auth.base import AuthProvider
from common.utils.exceptions import UnauthorizedException


def _split_bearer(authorization: str, scheme: str) -> Optional[str]:
    """Return the token after the scheme prefix, or None if it does not match."""
    prefix = f"{scheme} "
    if not authorization.startswith(prefix):
        return None
    return authorization[len(prefix):].strip()


def create_auth_dependency(
    get_auth_provider: Callable[[], AuthProvider],
    header_name: str = "Authorization",
    scheme: str = "Bearer",
):
    """
    Build a dependency that requires a valid token.

    The provider is fetched per request so it can be initialized during
    application startup, after the routers are imported.

    Returns:
        Dependency returning the user ID, raising UnauthorizedException otherwise
    """

    async def get_current_user_id(
        authorization: Optional[str] = Header(None, alias=header_name),
    ) -> str:
        if not authorization:
            raise UnauthorizedException(message="Missing authorization header")

        token = _split_bearer(authorization, scheme)
        if token is None:
            raise UnauthorizedException(
                message=f"Invalid authorization scheme. Expected: {scheme}",
                code="INVALID_AUTH_SCHEME",
            )
        if not token:
            raise UnauthorizedException(message="Token is empty", code="EMPTY_TOKEN")

        try:
            return await get_auth_provider().subject_of(token)
        except ValueError as e:
            raise UnauthorizedException(message=str(e), code="INVALID_TOKEN")

    return get_current_user_id


def create_optional_auth_dependency(
    get_auth_provider: Callable[[], AuthProvider],
    header_name: str = "Authorization",
    scheme: str = "Bearer",
):
    """
    Build a dependency for reads that anonymous callers may also make.

    Any missing or invalid token yields None; visibility rules then treat
    the caller as a non-member.
    """

    async def get_optional_user_id(
        authorization: Optional[str] = Header(None, alias=header_name),
    ) -> Optional[str]:
        if not authorization:
            return None

        token = _split_bearer(authorization, scheme)
        if not token:
            return None

        try:
            return await get_auth_provider().subject_of(token)
        except ValueError:
            return None

    return get_optional_user_id
