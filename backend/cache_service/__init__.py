"""
Parameter Cache Service

Cache-aside layer in front of the parameter service. Keeps document types,
system rates and system dates in Redis hashes with hand-rolled CRUD,
name uniqueness and optimistic versioning.
"""

__version__ = "0.1.0"
