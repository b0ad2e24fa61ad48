"""
Match corpus collection.

Pages through a championship's finished matches until a short page (end of
data) or the match cap is reached. Retries are the client's job; any error
raised here aborts the run.
"""

from __future__ import annotations

import logging

from leaguesight.analysis.models import Match
from leaguesight.integrations.faceit import FaceitClient

logger = logging.getLogger(__name__)

PAGE_SIZE = 100
MAX_MATCHES = 500


async def collect_matches(
    client: FaceitClient,
    competition_id: str,
    page_size: int = PAGE_SIZE,
    max_matches: int = MAX_MATCHES,
) -> list[Match]:
    """
    Collect up to ``max_matches`` finished matches of a championship.

    Args:
        client: Upstream client
        competition_id: Championship id
        page_size: Items requested per page
        max_matches: Hard cap on the number of matches returned

    Returns:
        Matches in upstream order
    """
    matches: list[Match] = []
    offset = 0

    while len(matches) < max_matches:
        limit = min(page_size, max_matches - len(matches))
        page = await client.get_championship_matches(competition_id, offset=offset, limit=limit)
        items = (page or {}).get("items") or []

        if not items:
            logger.debug(f"No more matches at offset {offset}")
            break

        matches.extend(Match.from_item(item) for item in items if item.get("match_id"))
        offset += len(items)

        if len(items) < limit:
            break

    matches = matches[:max_matches]
    logger.info(f"Collected {len(matches)} matches for championship {competition_id}")
    return matches
