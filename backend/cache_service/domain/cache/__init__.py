"""
Cache Domain Module

Domain-Driven Design implementation for the parameter cache.
Contains entities, value objects, repository interfaces, and domain services.
"""
