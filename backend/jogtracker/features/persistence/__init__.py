"""
Persistence module.

Usage:
    from jogtracker.features.persistence import (
        SessionStore, DeferredWorkQueue, create_gateway,
    )

Components:
- PersistenceGateway: key/value storage contract (sql, json files, memory)
- SessionStore: typed, failure-tolerant access to tracker records
- DeferredWorkQueue: fire-and-forget write scheduling
"""

from .gateway import (
    PersistenceError,
    PersistenceGateway,
    InMemoryGateway,
    JsonFileGateway,
    SqlKeyValueGateway,
    create_gateway,
)
from .store import SessionStore, StorageInfo
from .work_queue import (
    DeferredWorkQueue,
    QueueStatus,
    QueueStrategy,
    InlineStrategy,
    ThreadStrategy,
    RecurringTask,
)

__all__ = [
    # Gateway
    "PersistenceError",
    "PersistenceGateway",
    "InMemoryGateway",
    "JsonFileGateway",
    "SqlKeyValueGateway",
    "create_gateway",
    # Store
    "SessionStore",
    "StorageInfo",
    # Queue
    "DeferredWorkQueue",
    "QueueStatus",
    "QueueStrategy",
    "InlineStrategy",
    "ThreadStrategy",
    "RecurringTask",
]
