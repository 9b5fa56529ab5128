from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

from .models import ClipCandidate, SyncResult


@dataclass(slots=True)
class BeatSyncConfig:
    nearby_window_sec: float = 5.0


class BeatSynchronizer:
    """Snaps clip starts to the nearest beat marker."""

    def __init__(self, config: BeatSyncConfig | None = None) -> None:
        self.config = config or BeatSyncConfig()

    def sync(self, clip: ClipCandidate, markers: Sequence[float]) -> SyncResult:
        duration = clip.duration
        best = self._nearest_marker(clip.start_sec, markers)
        if best is None:
            new_start = clip.start_sec
        else:
            new_start = max(0.0, best)
        new_end = new_start + duration

        window = self.config.nearby_window_sec
        low = max(0.0, new_start - window)
        high = new_end + window
        nearby = tuple(m for m in markers if low <= m <= high)

        return SyncResult(
            original_start_sec=clip.start_sec,
            new_start_sec=new_start,
            new_end_sec=new_end,
            offset_sec=new_start - clip.start_sec,
            nearby_markers=nearby,
        )

    def _nearest_marker(self, target: float, markers: Sequence[float]) -> float | None:
        best: float | None = None
        best_diff = math.inf
        for marker in markers:
            diff = abs(marker - target)
            # strict comparison keeps the earliest marker on ties
            if diff < best_diff:
                best_diff = diff
                best = marker
        return best
