from __future__ import annotations

from pathlib import Path

from clip_enrichment.domain.errors import SourceUnavailable


class LibrosaBeatSource:
    """Beat markers from librosa's onset-envelope beat tracker."""

    def __init__(self, sample_rate: int = 22050, hop_length: int = 512) -> None:
        self.sample_rate = sample_rate
        self.hop_length = hop_length

    def detect(self, source: Path, total_duration: float | None = None) -> list[float]:
        try:
            import librosa
        except ImportError as exc:  # pragma: no cover
            raise SourceUnavailable("librosa is not installed") from exc

        try:
            y, sr = librosa.load(str(source), sr=self.sample_rate, mono=True, duration=total_duration)
        except Exception as exc:
            raise SourceUnavailable(f"cannot decode audio of {source}: {exc}") from exc
        if y is None or len(y) == 0:
            raise SourceUnavailable(f"no audio samples in {source}")

        duration = float(len(y)) / float(sr)
        onset_env = librosa.onset.onset_strength(y=y, sr=sr, hop_length=self.hop_length)
        _tempo, beat_times = librosa.beat.beat_track(
            onset_envelope=onset_env,
            sr=sr,
            hop_length=self.hop_length,
            units="time",
        )
        return sorted(round(float(t), 2) for t in beat_times if 0.0 <= float(t) < duration)
