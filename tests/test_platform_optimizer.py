import threading
import time
from pathlib import Path

from clip_enrichment.application.platform_optimizer import PlatformOptimizer
from clip_enrichment.domain.errors import TranscodeFailure
from clip_enrichment.domain.models import ClipCandidate
from clip_enrichment.domain.platform_profiles import PlatformProfileCatalog


class DummyLogger:
    def __init__(self):
        self.warnings = []

    def info(self, *args, **kwargs):
        pass

    def warning(self, event, **kwargs):
        self.warnings.append((event, kwargs))

    def exception(self, *args, **kwargs):
        pass


class RecordingTranscoder:
    def __init__(self, failing=(), crashing=(), delays=None):
        self.failing = set(failing)
        self.crashing = set(crashing)
        self.delays = delays or {}
        self.calls = []
        self._lock = threading.Lock()

    def transcode(self, source, start_sec, duration_sec, aspect_ratio, quality, preset, *, output_name, cancel_event=None):
        platform = output_name.split("_")[1]
        with self._lock:
            self.calls.append((platform, start_sec, duration_sec, aspect_ratio, quality, preset))
        time.sleep(self.delays.get(platform, 0.0))
        if platform in self.failing:
            raise TranscodeFailure("encoder exploded", platform=platform)
        if platform in self.crashing:
            raise OSError("disk full")
        return Path(f"/out/{output_name}.mp4")


def _clip(*platforms: str, duration: float = 75.0) -> ClipCandidate:
    return ClipCandidate(
        clip_id="c1",
        start_sec=10.0,
        end_sec=10.0 + duration,
        viral_score=90,
        emotion="hype",
        platforms=tuple(platforms),
    )


def _optimizer(transcoder, logger=None) -> PlatformOptimizer:
    return PlatformOptimizer(PlatformProfileCatalog(), transcoder, logger or DummyLogger(), max_workers=4)


def test_unknown_platform_yields_empty_sequence():
    transcoder = RecordingTranscoder()
    logger = DummyLogger()

    variants = _optimizer(transcoder, logger).optimize_for_platforms(_clip("unknownPlatform"), Path("in.mp4"))

    assert variants == []
    assert transcoder.calls == []
    assert logger.warnings[0][0] == "optimize.platform_skipped"


def test_effective_duration_is_capped_by_profile_and_clip():
    variants = _optimizer(RecordingTranscoder()).optimize_for_platforms(
        _clip("tiktok", "instagram", "facebook"), Path("in.mp4")
    )

    by_platform = {v.platform: v for v in variants}
    assert by_platform["tiktok"].effective_duration_sec == 60
    assert by_platform["instagram"].effective_duration_sec == 75
    assert by_platform["facebook"].effective_duration_sec == 75
    for variant in variants:
        assert variant.effective_duration_sec <= variant.max_duration_sec
        assert variant.effective_duration_sec <= variant.clip.duration


def test_transcode_receives_profile_parameters():
    transcoder = RecordingTranscoder()
    _optimizer(transcoder).optimize_for_platforms(_clip("youtube"), Path("in.mp4"))

    platform, start, duration, aspect, quality, preset = transcoder.calls[0]
    assert platform == "youtube"
    assert start == 10.0
    assert duration == 75.0
    assert aspect == "16:9"
    assert quality == "veryhigh"
    assert preset == "medium"


def test_failed_platform_does_not_abort_siblings():
    transcoder = RecordingTranscoder(failing={"instagram"}, crashing={"kwai"})
    logger = DummyLogger()

    variants = _optimizer(transcoder, logger).optimize_for_platforms(
        _clip("tiktok", "instagram", "kwai", "youtube"), Path("in.mp4")
    )

    assert [v.platform for v in variants] == ["tiktok", "youtube"]
    assert len(transcoder.calls) == 4
    events = [event for event, _ in logger.warnings]
    assert "optimize.transcode_failed" in events
    assert "optimize.transcode_crashed" in events


def test_output_follows_input_order_regardless_of_completion():
    transcoder = RecordingTranscoder(delays={"tiktok": 0.2, "instagram": 0.1})

    variants = _optimizer(transcoder).optimize_for_platforms(
        _clip("tiktok", "instagram", "youtube"), Path("in.mp4")
    )

    assert [v.platform for v in variants] == ["tiktok", "instagram", "youtube"]


def test_run_reports_diagnostics_per_platform():
    outcomes = _optimizer(RecordingTranscoder(failing={"tiktok"})).run(_clip("tiktok", "youtube"), Path("in.mp4"))

    assert [o.platform for o in outcomes] == ["tiktok", "youtube"]
    assert not outcomes[0].ok
    assert outcomes[0].error == "encoder exploded"
    assert outcomes[1].ok


def test_start_override_keeps_clip_duration_and_back_reference():
    transcoder = RecordingTranscoder()
    clip = _clip("instagram", duration=30.1)

    variants = _optimizer(transcoder).optimize_for_platforms(clip, Path("in.mp4"), start_sec=9.5)

    _, start, duration, *_ = transcoder.calls[0]
    assert start == 9.5
    assert duration == clip.duration
    assert variants[0].clip is clip
