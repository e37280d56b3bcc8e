"""Local record storage."""

from coinseries.core.data.storage.base import RecordStore, dedupe_batch
from coinseries.core.data.storage.duckdb import DuckDBRecordStore
from coinseries.core.data.storage.duckdb_factory import DuckDBFactory, DuckDBFactoryConfig
from coinseries.core.data.storage.memory import InMemoryRecordStore

__all__ = [
    "DuckDBFactory",
    "DuckDBFactoryConfig",
    "DuckDBRecordStore",
    "InMemoryRecordStore",
    "RecordStore",
    "dedupe_batch",
]
