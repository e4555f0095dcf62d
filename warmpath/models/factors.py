"""
Edge Factor Scorers

Stateless scoring functions for the four relationship-strength factors:
recency, frequency, bidirectional balance and channel diversity. Each
returns a value in [0, 1].
"""

import math
from datetime import datetime
from typing import Iterable, Optional

from warmpath.models.entities import to_naive_utc, utc_now

SECONDS_PER_DAY = 86400

# exp(-days / 180): ~0.37 at 180 days, half-life ~125 days
RECENCY_TIME_CONSTANT_DAYS = 180

FREQUENCY_WINDOW_DAYS = 30


def _clamp(value: float) -> float:
    return max(0.0, min(1.0, value))


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from start to end (negative if end is earlier)."""
    return (to_naive_utc(end) - to_naive_utc(start)).total_seconds() / SECONDS_PER_DAY


def calculate_recency(
    last_interaction: Optional[datetime],
    now: Optional[datetime] = None,
    time_constant_days: float = RECENCY_TIME_CONSTANT_DAYS,
) -> float:
    """Score how recently two people interacted.

    Uses exponential decay: exp(-days_since / time_constant).

    Args:
        last_interaction: Timestamp of the last interaction, if any
        now: Reference time (default: now)
        time_constant_days: Decay time constant in days

    Returns:
        0 with no interaction, 1 for future timestamps, decayed score otherwise
    """
    if last_interaction is None:
        return 0.0

    now = to_naive_utc(now) or utc_now()
    days_since = days_between(last_interaction, now)

    if days_since < 0:
        return 1.0

    return _clamp(math.exp(-days_since / time_constant_days))


def calculate_frequency(count: int, time_span_days: float) -> float:
    """Score how often two people interact.

    Normalizes to interactions per 30 days, then compresses with
    log10(per_month + 1) / 2 so 1/month ~0.15, 30/month ~0.74 and
    100/month saturates at 1.0.

    Raises:
        ValueError: If count or time_span_days is negative
    """
    if count < 0:
        raise ValueError("count must be non-negative")
    if time_span_days < 0:
        raise ValueError("timeSpanDays must be non-negative")

    if count == 0 or time_span_days == 0:
        return 0.0

    per_month = (count / time_span_days) * FREQUENCY_WINDOW_DAYS
    return _clamp(math.log10(per_month + 1) / 2)


def calculate_bidirectional(sent: int, received: int) -> float:
    """Score how balanced communication is between two people.

    One-way communication lands in a low 0.10-0.25 band that grows slowly
    with volume. Two-way communication scores the min/max ratio plus a
    small volume boost of at most 0.1.

    Raises:
        ValueError: If sent or received is negative
    """
    if sent < 0:
        raise ValueError("sent must be non-negative")
    if received < 0:
        raise ValueError("received must be non-negative")

    if sent == 0 and received == 0:
        return 0.0

    if sent == 0 or received == 0:
        volume = max(sent, received)
        volume_factor = min(1.0, math.log10(volume + 1) / 2)
        return 0.1 + volume_factor * 0.15

    ratio = min(sent, received) / max(sent, received)
    volume_boost = min(0.1, math.log10(sent + received + 1) / 20)

    return _clamp(ratio + volume_boost)


def calculate_channel_diversity(channels: Iterable[str]) -> float:
    """Score the number of distinct channels used.

    Channels are compared case-insensitively after trimming.
    1 -> 0.25, 2 -> 0.5, 3 -> 0.75, 4 or more -> 1.0.
    """
    unique = {c.strip().lower() for c in channels or [] if c and c.strip()}
    return min(len(unique), 4) * 0.25
