"""
Bearer-token verification contract.

The API never stores credentials. Tokens are issued by the identity service
and every request resolves to the opaque user identifier held in `sub`.
Circle roles are looked up separately in the membership ledger.

Example:
    from common.auth import AuthProvider, JWTAuth

    def get_auth_provider(settings) -> AuthProvider:
        return JWTAuth(secret=settings.JWT_SECRET)
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class AuthProvider(ABC):
    """Turns a bearer token into verified claims."""

    @abstractmethod
    async def verify_token(self, token: str) -> Dict[str, Any]:
        """
        Verify a token and return its claims.

        Raises:
            ValueError: If the token is malformed or expired
        """

    async def subject_of(self, token: str) -> str:
        """
        Verify `token` and return the user identifier it was issued to.

        Raises:
            ValueError: If verification fails or `sub` is not a non-empty string
        """
        claims = await self.verify_token(token)
        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject:
            raise ValueError("Token missing user ID")
        return subject
