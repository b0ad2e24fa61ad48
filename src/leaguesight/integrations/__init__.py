"""
LeagueSight Integrations - External service integrations.

This module contains:
- faceit: Rate-limited FACEIT data API client and its error types
- teams: Team identity override table and resolution
"""

__all__: list[str] = []
