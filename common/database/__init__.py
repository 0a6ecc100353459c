"""
Database module - Motor connection and store call helpers.

Usage:
    from common.database import MongoDB, StoreCaller

    main_db = MongoDB()
    await main_db.connect(uri, database_name)
    store = StoreCaller(max_retries=2)
"""

from common.database.mongodb import MongoDB, mask_uri
from common.database.store import (
    StoreUnavailable,
    StoreCaller,
    run_store_operation,
)

__all__ = [
    "MongoDB",
    "mask_uri",
    "StoreUnavailable",
    "StoreCaller",
    "run_store_operation",
]
