"""
本地存储模块

提供持仓、交易记录和监控配置的键值存储。
"""

from .kv_store import JsonFileStore, KeyValueStore, MemoryStore, StorageError

__all__ = [
    "KeyValueStore",
    "JsonFileStore",
    "MemoryStore",
    "StorageError",
]
