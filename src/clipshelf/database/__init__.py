"""
Persistence adapters for ClipShelf.

Provides the storage backends the history store and ignore list write through.
"""

from clipshelf.database.base import PersistenceAdapter
from clipshelf.database.memory import InMemoryPersistence
from clipshelf.database.redis_manager import RedisPersistence

__all__ = [
    'PersistenceAdapter',
    'InMemoryPersistence',
    'RedisPersistence',
]
