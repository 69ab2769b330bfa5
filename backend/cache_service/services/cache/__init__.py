"""
Parameter Cache Services

Cache-aside orchestration for the parameter reference data.
"""

from .parameter_cache import ParameterCacheService

__all__ = ["ParameterCacheService"]
