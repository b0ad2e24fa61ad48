"""
LeagueSight Infrastructure - System infrastructure components.

This module contains:
- cache: TTL key/value stores and the cache-aside read/write helpers
"""

__all__: list[str] = []
