import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

from clip_enrichment.domain.errors import SourceUnavailable
from clip_enrichment.infrastructure.beats.librosa_beats import LibrosaBeatSource
from clip_enrichment.infrastructure.beats.placeholder import PlaceholderBeatSource
from clip_enrichment.utils.media import CommandError


def test_placeholder_markers_cover_duration_with_bounded_gaps():
    markers = PlaceholderBeatSource(seed=7).detect(Path("in.mp4"), total_duration=30.0)

    assert markers[0] == 0.0
    assert markers[-1] < 30.0
    assert markers == sorted(markers)
    gaps = [b - a for a, b in zip(markers, markers[1:])]
    assert all(0.78 <= gap <= 1.22 for gap in gaps)
    assert 30.0 - markers[-1] <= 1.21


def test_placeholder_is_reproducible_with_seed():
    first = PlaceholderBeatSource(seed=3).detect(Path("in.mp4"), total_duration=12.0)
    second = PlaceholderBeatSource(seed=3).detect(Path("in.mp4"), total_duration=12.0)

    assert first == second


def test_placeholder_probes_duration_when_missing():
    probed = []

    def probe(path):
        probed.append(path)
        return 5.0

    markers = PlaceholderBeatSource(jitter_sec=0.0, duration_probe=probe).detect(Path("in.mp4"))

    assert probed == [Path("in.mp4")]
    assert markers == [0.0, 0.8, 1.6, 2.4, 3.2, 4.0, 4.8]


def test_placeholder_raises_source_unavailable_on_probe_failure():
    def probe(path):
        raise CommandError("moov atom not found")

    with pytest.raises(SourceUnavailable):
        PlaceholderBeatSource(duration_probe=probe).detect(Path("broken.mp4"))


def test_placeholder_rejects_non_positive_interval():
    with pytest.raises(ValueError):
        PlaceholderBeatSource(interval_sec=0)


def _fake_librosa(samples, beat_times, load_error=None):
    def load(path, sr, mono, duration):
        if load_error is not None:
            raise load_error
        return samples, sr

    return SimpleNamespace(
        load=load,
        onset=SimpleNamespace(onset_strength=lambda y, sr, hop_length: [0.0]),
        beat=SimpleNamespace(beat_track=lambda onset_envelope, sr, hop_length, units: (120.0, beat_times)),
    )


def test_librosa_beats_are_sorted_rounded_and_bounded(monkeypatch):
    samples = [0.0] * (22050 * 4)
    monkeypatch.setitem(sys.modules, "librosa", _fake_librosa(samples, [1.5049, 0.501, 3.99, 4.2]))

    markers = LibrosaBeatSource().detect(Path("in.mp4"))

    assert markers == [0.5, 1.5, 3.99]


def test_librosa_decode_failure_is_source_unavailable(monkeypatch):
    monkeypatch.setitem(sys.modules, "librosa", _fake_librosa([], [], load_error=RuntimeError("no backend")))

    with pytest.raises(SourceUnavailable):
        LibrosaBeatSource().detect(Path("broken.mp4"))


def test_librosa_silent_source_is_unavailable(monkeypatch):
    monkeypatch.setitem(sys.modules, "librosa", _fake_librosa([], []))

    with pytest.raises(SourceUnavailable):
        LibrosaBeatSource().detect(Path("empty.mp4"))
