#!/usr/bin/env python3
"""
Issue a bearer token for local development.

The API only verifies tokens; real ones come from the identity service.
This script signs a token with the configured JWT_SECRET so a developer can
call a local deployment as any user id.

Usage:
    python scripts/mint_dev_token.py <user-id> [--minutes 60]

Environment variables required:
    JWT_SECRET - Shared signing secret
    ENVIRONMENT - Must be "development" (the default)
"""

import argparse
import asyncio
import os
import sys
from typing import List, Optional

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.auth import JWTAuth
from mindbridge.config import Settings


async def mint_token(settings: Settings, user_id: str, minutes: Optional[int] = None) -> str:
    """
    Sign a token for `user_id` with the configured secret.

    Raises:
        RuntimeError: Outside development, or when JWT_SECRET is unset
    """
    if not settings.is_development():
        raise RuntimeError(f"Refusing to mint tokens in {settings.ENVIRONMENT}")
    if not settings.JWT_SECRET:
        raise RuntimeError("JWT_SECRET environment variable not set")
    if not user_id.strip():
        raise RuntimeError("User id must not be empty")

    auth = JWTAuth(
        secret=settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        access_token_expire_minutes=minutes or settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES,
    )
    return await auth.create_token(user_id.strip())


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Mint a development bearer token")
    parser.add_argument("user_id", help="Value placed in the token's `sub` claim")
    parser.add_argument("--minutes", type=int, default=None, help="Lifetime in minutes")
    args = parser.parse_args(argv)

    try:
        token = asyncio.run(mint_token(Settings(), args.user_id, args.minutes))
    except RuntimeError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(token)
    return 0


if __name__ == "__main__":
    sys.exit(main())
