"""
JWT implementation of AuthProvider.

Verifies bearer tokens signed with the shared secret of the identity service.
`create_token` signs with the same secret; scripts/mint_dev_token.py uses it
to issue tokens against a local deployment.

Example:
    auth = JWTAuth(secret=settings.JWT_SECRET)
    user_id = await auth.subject_of(token)
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from jose import ExpiredSignatureError, JWTError, jwt

from common.auth.base import AuthProvider


class JWTAuth(AuthProvider):
    """HMAC-signed JWTs with the user identifier in `sub`."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        access_token_expire_minutes: int = 60,
    ):
        if not secret:
            raise ValueError("JWT secret must not be empty")

        self.secret = secret
        self.algorithm = algorithm
        self.access_token_expire = timedelta(minutes=access_token_expire_minutes)

    async def create_token(self, user_id: str, **claims: Any) -> str:
        issued_at = datetime.now(timezone.utc)
        payload = {
            **claims,
            "sub": user_id,
            "iat": issued_at,
            "exp": issued_at + self.access_token_expire,
        }
        return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    async def verify_token(self, token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise ValueError("Token has expired")
        except JWTError as e:
            raise ValueError(f"Invalid token: {e}")
