"""Persist and load scoring coefficient profiles."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from weekpicks.models import ScoringCoefficients


@dataclass
class ScoringProfile:
    name: str
    coefficients: ScoringCoefficients = field(default_factory=ScoringCoefficients)

    @classmethod
    def load(cls, path: Path) -> "ScoringProfile":
        data = json.loads(path.read_text(encoding="utf-8"))
        return cls(
            name=data.get("name", path.stem),
            coefficients=ScoringCoefficients.model_validate(data.get("coefficients", {})),
        )

    def save(self, path: Path) -> None:
        payload = {
            "name": self.name,
            "coefficients": self.coefficients.model_dump(),
        }
        path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
