from __future__ import annotations

import random
from collections.abc import Callable
from pathlib import Path

from clip_enrichment.domain.errors import SourceUnavailable
from clip_enrichment.utils.media import CommandError, ffprobe_duration


class PlaceholderBeatSource:
    """Quasi-periodic markers standing in for a real onset detector.

    Markers start at 0 and advance by ``interval_sec`` plus uniform jitter in
    ``[0, jitter_sec)``. Pass ``seed`` for reproducible sequences.
    """

    def __init__(
        self,
        interval_sec: float = 0.8,
        jitter_sec: float = 0.4,
        seed: int | None = None,
        duration_probe: Callable[[Path], float] = ffprobe_duration,
    ) -> None:
        if interval_sec <= 0:
            raise ValueError("interval_sec must be positive")
        self.interval_sec = interval_sec
        self.jitter_sec = max(0.0, jitter_sec)
        self.seed = seed
        self.duration_probe = duration_probe

    def detect(self, source: Path, total_duration: float | None = None) -> list[float]:
        duration = total_duration if total_duration and total_duration > 0 else self._probe(source)

        rng = random.Random(self.seed)
        markers: list[float] = []
        cursor = 0.0
        while cursor < duration:
            markers.append(round(cursor, 2))
            cursor += self.interval_sec + rng.random() * self.jitter_sec
        return markers

    def _probe(self, source: Path) -> float:
        try:
            return self.duration_probe(source)
        except (CommandError, OSError) as exc:
            raise SourceUnavailable(f"cannot read duration of {source}: {exc}") from exc
