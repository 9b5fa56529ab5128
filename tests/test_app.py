from dataclasses import replace
from pathlib import Path

import pytest

from clip_enrichment.app import build_beat_source, build_pipeline
from clip_enrichment.infrastructure.beats.librosa_beats import LibrosaBeatSource
from clip_enrichment.infrastructure.beats.placeholder import PlaceholderBeatSource
from clip_enrichment.infrastructure.storage.artifact_store import ArtifactStore
from clip_enrichment.utils.config import PipelineConfig, load_settings

ROOT = Path(__file__).resolve().parents[1]


class DummyLogger:
    def info(self, *args, **kwargs):
        pass

    def warning(self, *args, **kwargs):
        pass


def _pipeline_config(beat_source: str) -> PipelineConfig:
    return PipelineConfig(
        clip_parallelism=1,
        platform_parallelism=1,
        default_utc_offset="+00:00",
        default_language="pt",
        beat_source=beat_source,
        beat_seed=5,
    )


def test_build_beat_source_by_name():
    assert isinstance(build_beat_source(_pipeline_config("librosa")), LibrosaBeatSource)
    placeholder = build_beat_source(_pipeline_config("placeholder"))
    assert isinstance(placeholder, PlaceholderBeatSource)
    assert placeholder.seed == 5
    with pytest.raises(ValueError):
        build_beat_source(_pipeline_config("madmom"))


def test_build_pipeline_without_captions(tmp_path: Path, monkeypatch):
    monkeypatch.delenv("CLIP_ENRICHMENT_OUTPUT_DIR", raising=False)
    settings = load_settings(ROOT)
    settings.captions = replace(settings.captions, enable_captions=False)

    pipeline = build_pipeline(settings, ArtifactStore(tmp_path / "out"), DummyLogger())

    assert pipeline.captioner is None
    assert (tmp_path / "out" / "variants").is_dir()
