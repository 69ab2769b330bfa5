"""
Entity Store Module

Hash-table primitives the repositories are built on, with a Redis backend
and a process-local backend.
"""

from .base import HashStore
from .memory import InMemoryHashStore

__all__ = [
    "HashStore",
    "InMemoryHashStore",
]
