"""Combine a fresh stat update with the stored record for the same player/period."""

from __future__ import annotations

from typing import Dict, Mapping, Optional


def merge_stats(
    existing: Optional[Mapping[str, float]],
    incoming: Mapping[str, float],
) -> Dict[str, float]:
    """Keep a stored non-zero category when the update reports zero for it.

    Feeds report zeros before the real value lands, so a zero never overwrites.
    A genuine correction down to zero is therefore not representable.
    """

    if not existing:
        return {key: float(value or 0) for key, value in incoming.items()}

    merged: Dict[str, float] = {key: float(value or 0) for key, value in existing.items()}
    for key, value in incoming.items():
        new_value = float(value or 0)
        if new_value != 0:
            merged[key] = new_value
    return merged
