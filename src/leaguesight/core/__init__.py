"""
LeagueSight Core - Configuration and application wiring.

This module contains:
- config: Dataclass configuration loaded from files and environment
- context: The per-process application context
"""

from leaguesight.core.config import (
    LeagueSightConfig,
    get_config,
    load_config,
    reset_config,
    set_config,
)

__all__: list[str] = [
    "LeagueSightConfig",
    "get_config",
    "load_config",
    "reset_config",
    "set_config",
]
