# imdb_ratings/telemetry.py
from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class RefreshStats:
    """Counts and stage timings for one refresh cycle."""
    counts: Dict[str, int] = field(default_factory=dict)
    timings: Dict[str, float] = field(default_factory=dict)
    notes: Dict[str, Any] = field(default_factory=dict)
    _stage: Optional[str] = None
    _stage_started: float = 0.0

    def mark(self, stage: str, n: int | None = None) -> None:
        if n is not None:
            self.counts[stage] = int(n)

    def add_note(self, key: str, value: Any) -> None:
        self.notes[key] = value

    def begin(self, stage: str) -> None:
        self.end()
        self._stage = stage
        self._stage_started = time.monotonic()

    def end(self) -> None:
        if self._stage is not None:
            self.timings[self._stage] = round(time.monotonic() - self._stage_started, 3)
            self._stage = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"counts": self.counts}
        if self.timings:
            out["timings"] = self.timings
        if self.notes:
            out["notes"] = self.notes
        return out
