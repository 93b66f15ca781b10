"""Reusable helpers for heuristic confidence scores."""

from __future__ import annotations

# (minimum sample size, confidence), checked from the top down.
SAMPLE_SIZE_TIERS: tuple[tuple[int, float], ...] = (
    (11, 0.95),
    (6, 0.8),
    (3, 0.6),
)
BASELINE_CONFIDENCE = 0.3


def confidence_for_sample_size(total_sources: int) -> float:
    """Return how much a domain average can be trusted given its sample size.

    The tiers reflect our current heuristic expectations:
    - 11 or more sources ⇒ 0.95
    - 6 to 10 sources ⇒ 0.8
    - 3 to 5 sources ⇒ 0.6
    - otherwise 0.3

    Args:
        total_sources: Number of rated sources behind the average.

    Returns:
        A float between 0.0 and 1.0 inclusive.
    """

    for minimum, confidence in SAMPLE_SIZE_TIERS:
        if total_sources >= minimum:
            return confidence
    return BASELINE_CONFIDENCE
