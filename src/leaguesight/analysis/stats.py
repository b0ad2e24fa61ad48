"""
Player Statistics Engine

Turns a player's sequence of per-match records into per-round and per-match
averages plus a composite rating.

The rating is a fixed linear model:
Rating = 0.0073*KAST + 0.3591*KPR + (-0.5329)*DPR + 0.2372*Impact + 0.0032*ADR + 0.2287

Where:
- KAST: estimated Kill/Assist/Survived/Traded percentage (0-100), mean per match
- KPR / DPR: kills / deaths per round over all rounds
- Impact: KPR and ADR normalized against fixed baselines, scaled by KAST
- ADR: average damage per round, mean per match (not round-weighted)

Upstream data has no KAST, so it is estimated per match from kills, assists,
survived rounds and a flat traded share.
"""

from __future__ import annotations

from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from leaguesight.analysis.models import PlayerAggregate, PlayerMatchRecord

RATING_COEFFICIENTS = {
    "kast": 0.0073,
    "kpr": 0.3591,
    "dpr": -0.5329,
    "impact": 0.2372,
    "adr": 0.0032,
    "base": 0.2287,
}

# Impact baselines
IMPACT_KPR_BASELINE = 0.70
IMPACT_ADR_BASELINE = 75.0
IMPACT_KAST_BASELINE = 68.0
IMPACT_KPR_WEIGHT = 0.6
IMPACT_ADR_WEIGHT = 0.4
IMPACT_KAST_SENSITIVITY = 0.01
IMPACT_MODIFIER_MIN = 0.7
IMPACT_MODIFIER_MAX = 1.3

# KAST estimate
KAST_TRADE_SHARE = 0.2
KAST_FACTOR = 0.45

# ADR fallback when upstream reports none
DAMAGE_PER_KILL = 105

# Recent form window used by the per-player updater
DEFAULT_FORM_WINDOW = 10


def _safe_div(numerator: float, denominator: float) -> float:
    return numerator / denominator if denominator else 0.0


def round_half_up(value: float, digits: int) -> float:
    """
    Round to ``digits`` decimals with ties away from zero.

    The exact binary value of ``value`` is rounded, so 0.125 gives 0.13 while
    1.005 (stored just below 1.005) gives 1.0.
    """
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def estimate_kast(kills: int, deaths: int, assists: int, rounds: int) -> float:
    """
    Estimate KAST% for a single match.

    Args:
        kills: Kills in the match
        deaths: Deaths in the match
        assists: Assists in the match
        rounds: Rounds played in the match

    Returns:
        KAST percentage capped at 100, or 0 when rounds is not positive
    """
    if rounds <= 0:
        return 0.0
    survived = rounds - deaths
    traded = KAST_TRADE_SHARE * rounds
    raw = (kills + assists + survived + traded) * KAST_FACTOR
    return min(100.0, (raw / rounds) * 100)


def match_adr(record: PlayerMatchRecord) -> float:
    """Reported ADR, or a kills-based estimate when none was reported."""
    if record.adr:
        return record.adr
    return _safe_div(record.kills, record.rounds) * DAMAGE_PER_KILL


def kast_modifier(kast_pct: float) -> float:
    """KAST deviation from baseline as a multiplier clamped to [0.7, 1.3]."""
    modifier = 1 + (kast_pct - IMPACT_KAST_BASELINE) * IMPACT_KAST_SENSITIVITY
    return min(IMPACT_MODIFIER_MAX, max(IMPACT_MODIFIER_MIN, modifier))


def calculate_impact(kpr: float, adr: float, kast_pct: float) -> float:
    """
    Calculate the impact score.

    Args:
        kpr: Kills per round
        adr: Average damage per round
        kast_pct: KAST percentage (0-100)

    Returns:
        Non-negative impact value
    """
    base = (
        IMPACT_KPR_WEIGHT * (kpr / IMPACT_KPR_BASELINE)
        + IMPACT_ADR_WEIGHT * (adr / IMPACT_ADR_BASELINE)
    )
    return max(0.0, base * kast_modifier(kast_pct))


def calculate_rating(kast_pct: float, kpr: float, dpr: float, impact: float, adr: float) -> float:
    """Apply the fixed linear rating model. Never returns a negative value."""
    rating = (
        RATING_COEFFICIENTS["kast"] * kast_pct
        + RATING_COEFFICIENTS["kpr"] * kpr
        + RATING_COEFFICIENTS["dpr"] * dpr
        + RATING_COEFFICIENTS["impact"] * impact
        + RATING_COEFFICIENTS["adr"] * adr
        + RATING_COEFFICIENTS["base"]
    )
    return max(0.0, rating)


def compute_player_aggregate(
    records: Sequence[PlayerMatchRecord], player_id: str | None = None
) -> PlayerAggregate | None:
    """
    Compute a player's aggregate from their per-match records.

    Args:
        records: One record per match the player appeared in
        player_id: Override for the aggregate's player id (defaults to the
                   id on the first record)

    Returns:
        PlayerAggregate, or None when there are no records
    """
    match_count = len(records)
    if match_count == 0:
        return None

    total_kills = total_deaths = total_assists = total_headshots = 0
    total_rounds = total_wins = 0
    adr_sum = 0.0
    kast_sum = 0.0

    for record in records:
        total_kills += record.kills
        total_deaths += record.deaths
        total_assists += record.assists
        total_headshots += record.headshots
        total_rounds += record.rounds
        total_wins += record.win
        adr_sum += match_adr(record)
        kast_sum += estimate_kast(record.kills, record.deaths, record.assists, record.rounds)

    kpr = _safe_div(total_kills, total_rounds)
    dpr = _safe_div(total_deaths, total_rounds)
    apr = _safe_div(total_assists, total_rounds)
    adr = adr_sum / match_count
    kast = kast_sum / match_count
    kd = total_kills / max(1, total_deaths)
    hsp = total_headshots / max(1, total_kills) * 100
    win_rate = total_wins / match_count * 100

    impact = calculate_impact(kpr, adr, kast)
    rating = calculate_rating(kast, kpr, dpr, impact, adr)

    return PlayerAggregate(
        player_id=player_id if player_id is not None else records[0].player_id,
        matches_played=match_count,
        rating=round_half_up(rating, 2),
        impact=round_half_up(impact, 2),
        kpr=round_half_up(kpr, 2),
        dpr=round_half_up(dpr, 2),
        apr=round_half_up(apr, 2),
        adr=round_half_up(adr, 1),
        kast=round_half_up(kast, 1),
        kd=round_half_up(kd, 2),
        hsp=round_half_up(hsp, 1),
        win_rate=round_half_up(win_rate, 1),
        total_kills=total_kills,
        total_deaths=total_deaths,
        total_assists=total_assists,
        total_headshots=total_headshots,
        total_rounds=total_rounds,
        total_wins=total_wins,
    )


def compute_recent_form(
    records: Sequence[PlayerMatchRecord], window: int = DEFAULT_FORM_WINDOW
) -> tuple[PlayerAggregate | None, int]:
    """
    Aggregate only the most recent matches.

    Records are ordered by ``started_at`` (newest first, unknown timestamps
    last) and the first ``window`` are aggregated.

    Returns:
        (aggregate or None, number of matches used)
    """
    recent = sorted(records, key=lambda r: r.started_at or 0, reverse=True)[:window]
    if not recent:
        return None, 0
    return compute_player_aggregate(recent), len(recent)
