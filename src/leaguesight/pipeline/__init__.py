"""
LeagueSight Pipeline - Collection, aggregation and cache-aside orchestration.

This module contains:
- collector: Paginated championship match collection
- aggregator: Batched match-detail fetching and accumulation
- orchestrator: Cache-aside league statistics service
- player_stats: Per-player form updater and cached lookups
"""

__all__: list[str] = []
