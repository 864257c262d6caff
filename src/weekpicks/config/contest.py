"""Contest configuration for supported contest modes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Set, Tuple


@dataclass(frozen=True)
class ContestRules:
    mode: str
    required_slots: Tuple[str, ...]
    slot_positions: Mapping[str, Set[str]]
    periods: Tuple[int, ...]

    def has_period(self, period: int) -> bool:
        return period in self.periods


_CONTEST_RULES: Dict[str, ContestRules] = {
    "PLAYOFFS": ContestRules(
        mode="PLAYOFFS",
        required_slots=("QB", "RB", "FLEX"),
        slot_positions={
            "QB": {"QB"},
            "RB": {"RB"},
            "FLEX": {"RB", "WR", "TE"},
        },
        periods=(1, 2, 3, 4),
    ),
    "REGULAR_SEASON": ContestRules(
        mode="REGULAR_SEASON",
        required_slots=("QB", "RB", "FLEX"),
        slot_positions={
            "QB": {"QB"},
            "RB": {"RB"},
            "FLEX": {"RB", "WR", "TE"},
        },
        periods=(14, 15, 16, 17, 18),
    ),
}


def iter_rules() -> Iterable[ContestRules]:
    """Return an iterator of all configured rule sets."""

    return _CONTEST_RULES.values()


def get_rules(mode: str) -> ContestRules:
    """Fetch rules for a contest mode, raising KeyError if missing."""

    key = mode.upper()
    if key not in _CONTEST_RULES:
        raise KeyError(f"No contest rules configured for mode={mode!r}")
    return _CONTEST_RULES[key]
