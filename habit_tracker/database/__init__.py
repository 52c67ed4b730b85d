"""
Реализации RemoteStore: в памяти и с сохранением в JSON
"""

from .memory_store import InMemoryRemoteStore, StoreStats
from .json_store import JsonFileRemoteStore

__all__ = ['InMemoryRemoteStore', 'StoreStats', 'JsonFileRemoteStore']
