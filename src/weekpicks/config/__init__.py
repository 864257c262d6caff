"""Configuration helpers for contest modes and required slots."""

from .contest import ContestRules, get_rules, iter_rules

__all__ = [
    "ContestRules",
    "get_rules",
    "iter_rules",
]
