"""
Store call helpers.

Wraps individual Motor operations so that connectivity problems surface as a
single StoreUnavailable condition, distinct from any domain outcome, and so
that idempotent operations can be retried with bounded exponential backoff.

Example:
    from common.database.store import run_store_operation

    doc = await run_store_operation(
        lambda: circles.find_one({"_id": circle_id}),
        retries=2,
        description="find circle",
    )
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from pymongo.errors import ConnectionFailure, ExecutionTimeout, WTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ConnectionFailure covers AutoReconnect, NetworkTimeout and
# ServerSelectionTimeoutError.
TRANSIENT_STORE_ERRORS = (ConnectionFailure, ExecutionTimeout, WTimeoutError)


class StoreUnavailable(Exception):
    """The document store could not be reached or timed out."""

    def __init__(self, description: str, cause: Optional[Exception] = None):
        self.description = description
        self.cause = cause
        message = f"Store unavailable during {description}"
        if cause is not None:
            message = f"{message}: {type(cause).__name__}"
        super().__init__(message)


async def run_store_operation(
    operation: Callable[[], Awaitable[T]],
    *,
    retries: int = 0,
    base_delay: float = 0.1,
    max_delay: float = 2.0,
    description: str = "store operation",
) -> T:
    """
    Run one store operation, translating transient failures.

    Only pass retries > 0 for operations that are safe to repeat (reads and
    plain $set updates). Inserts and counter increments must use retries=0.

    Args:
        operation: Zero-argument callable returning the awaitable to run
        retries: Extra attempts after the first failure
        base_delay: Initial backoff in seconds
        max_delay: Backoff ceiling in seconds
        description: Short label used in logs and the raised error

    Raises:
        StoreUnavailable: If every attempt failed with a transient error
    """
    attempts = max(0, retries) + 1
    for attempt in range(attempts):
        try:
            return await operation()
        except TRANSIENT_STORE_ERRORS as e:
            if attempt < attempts - 1:
                delay = min(base_delay * (2 ** attempt), max_delay)
                logger.warning(
                    f"Transient store error during {description} "
                    f"(attempt {attempt + 1}/{attempts}), retrying in {delay:.2f}s: {e}"
                )
                await asyncio.sleep(delay)
                continue
            logger.error(f"Store unavailable during {description}: {e}")
            raise StoreUnavailable(description, e) from e

    raise RuntimeError("Retry logic exited without a result")


class StoreCaller:
    """
    Binds retry settings so services can issue store calls tersely.

    Services hold one StoreCaller and use `call` for non-repeatable writes
    and `call_idempotent` for reads and $set updates.
    """

    def __init__(self, max_retries: int = 2, base_delay: float = 0.1, max_delay: float = 2.0):
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.max_delay = max_delay

    async def call(self, operation: Callable[[], Awaitable[Any]], description: str) -> Any:
        """Run a write that must not be repeated."""
        return await run_store_operation(operation, retries=0, description=description)

    async def call_idempotent(
        self, operation: Callable[[], Awaitable[Any]], description: str
    ) -> Any:
        """Run a read or idempotent update with bounded retry."""
        return await run_store_operation(
            operation,
            retries=self.max_retries,
            base_delay=self.base_delay,
            max_delay=self.max_delay,
            description=description,
        )
