"""
Repository Implementations

Hash-store backed repositories for the cached entity kinds.
"""

from .cache_repository import CacheRepository, build_store
from .entity_repository import (
    DocumentTypeRepository,
    HashEntityRepository,
    SystemDateRepository,
    SystemRateRepository,
)
from .uniqueness import NameIndexUniquenessGuard, ScanUniquenessGuard, UniquenessGuard

__all__ = [
    "CacheRepository",
    "build_store",
    "HashEntityRepository",
    "DocumentTypeRepository",
    "SystemRateRepository",
    "SystemDateRepository",
    "UniquenessGuard",
    "NameIndexUniquenessGuard",
    "ScanUniquenessGuard",
]
