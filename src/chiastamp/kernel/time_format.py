"""Human-readable rendering of elapsed time."""

from typing import List, Tuple

# Descending thresholds in seconds; months are ~30 days, years ~365 days.
_BUCKETS: List[Tuple[int, str]] = [
    (31_536_000, "year"),
    (2_592_000, "month"),
    (604_800, "week"),
    (86_400, "day"),
    (3_600, "hour"),
    (60, "minute"),
]


def format_time_delta(delta_seconds: int) -> str:
    """Render elapsed seconds as e.g. "2 hours ago" or "just now".

    Each bucket value is floor-divided; the first bucket with a count of
    at least one wins. Negative deltas fall through to "just now".
    """
    for unit_seconds, unit in _BUCKETS:
        count = delta_seconds // unit_seconds
        if count > 0:
            return f"{count} {unit}{'' if count == 1 else 's'} ago"
    return "just now"
