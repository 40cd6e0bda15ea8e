"""
Service initialization.

- logging: Logger configuration
"""

__all__ = []
