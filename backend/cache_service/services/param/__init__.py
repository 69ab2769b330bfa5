"""
Parameter Service Client Module

Upstream source of truth for the cached reference data.
"""

from .client import ParamServiceClient, UpstreamClient

__all__ = [
    "UpstreamClient",
    "ParamServiceClient",
]
