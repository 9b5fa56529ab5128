import threading
from pathlib import Path

import pytest

from clip_enrichment.application.batch_jobs import BatchJobRunner
from clip_enrichment.domain.errors import BatchCancelled
from clip_enrichment.domain.models import BatchSummary, ClipCandidate, EnrichedBatch, JobStatus


class DummyLogger:
    def __init__(self):
        self.events = []

    def info(self, event, **kwargs):
        self.events.append(event)

    def exception(self, event, **kwargs):
        self.events.append(event)


class DummyPipeline:
    def __init__(self, error=None, block=False, gate=None):
        self.error = error
        self.block = block
        self.gate = gate
        self.started = threading.Event()
        self.calls = []

    def process_batch(self, clips, source, utc_offset, language, reference=None, cancel_event=None):
        self.calls.append((len(clips), source, utc_offset, language))
        self.started.set()
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if self.block:
            cancel_event.wait(timeout=5)
            raise BatchCancelled("stopped")
        if self.error is not None:
            raise self.error
        return EnrichedBatch(
            clips=[],
            global_optimum=None,
            summary=BatchSummary(0, 0.0, [], [language], 0, 0, None),
            source=source,
            utc_offset=utc_offset,
            language=language,
        )


def _clips():
    return [ClipCandidate("c1", 0.0, 30.0, 80.0, "joy", ("tiktok",))]


def test_submitted_job_completes_with_batch():
    pipeline = DummyPipeline()
    logger = DummyLogger()
    runner = BatchJobRunner(pipeline, logger)

    job_id = runner.submit(_clips(), Path("in.mp4"), "-03:00", "pt")
    batch = runner.result(job_id, timeout=5)
    runner.shutdown()

    assert len(job_id) == 12
    assert batch.language == "pt"
    assert pipeline.calls == [(1, Path("in.mp4"), "-03:00", "pt")]
    assert runner.status(job_id).status is JobStatus.COMPLETED
    assert logger.events == ["job.created", "job.completed"]


def test_failed_job_records_error_and_reraises():
    runner = BatchJobRunner(DummyPipeline(error=ValueError("bad offset")), DummyLogger())

    job_id = runner.submit(_clips(), Path("in.mp4"), "nowhere", "pt")
    with pytest.raises(ValueError):
        runner.result(job_id, timeout=5)
    runner.shutdown()

    record = runner.status(job_id)
    assert record.status is JobStatus.FAILED
    assert record.error_message == "bad offset"


def test_running_job_can_be_cancelled():
    pipeline = DummyPipeline(block=True)
    runner = BatchJobRunner(pipeline, DummyLogger())

    job_id = runner.submit(_clips(), Path("in.mp4"), "+00:00", "pt")
    assert pipeline.started.wait(timeout=5)
    assert runner.cancel(job_id) is True
    with pytest.raises(BatchCancelled):
        runner.result(job_id, timeout=5)
    runner.shutdown()

    assert runner.status(job_id).status is JobStatus.CANCELLED
    assert runner.cancel(job_id) is False


def test_unknown_job_id_raises_key_error():
    runner = BatchJobRunner(DummyPipeline(), DummyLogger())

    with pytest.raises(KeyError):
        runner.status("missing")
    assert runner.jobs() == []
    runner.shutdown()


def test_queued_job_cancel_reports_batch_cancelled():
    gate = threading.Event()
    pipeline = DummyPipeline(gate=gate)
    runner = BatchJobRunner(pipeline, DummyLogger(), max_concurrent_jobs=1)

    first = runner.submit(_clips(), Path("a.mp4"), "+00:00", "pt")
    assert pipeline.started.wait(timeout=5)
    queued = runner.submit(_clips(), Path("b.mp4"), "+00:00", "pt")

    assert runner.status(queued).status is JobStatus.QUEUED
    assert runner.cancel(queued) is True
    assert runner.status(queued).status is JobStatus.CANCELLED
    with pytest.raises(BatchCancelled):
        runner.result(queued, timeout=5)

    gate.set()
    assert runner.result(first, timeout=5).source == Path("a.mp4")
    runner.shutdown()
    assert [call[1] for call in pipeline.calls] == [Path("a.mp4")]
    assert runner.cancel(first) is False


def test_accepted_cancel_wins_over_late_completion():
    gate = threading.Event()
    pipeline = DummyPipeline(gate=gate)
    runner = BatchJobRunner(pipeline, DummyLogger())

    job_id = runner.submit(_clips(), Path("in.mp4"), "+00:00", "pt")
    assert pipeline.started.wait(timeout=5)
    assert runner.cancel(job_id) is True
    gate.set()

    with pytest.raises(BatchCancelled):
        runner.result(job_id, timeout=5)
    runner.shutdown()
    assert runner.status(job_id).status is JobStatus.CANCELLED


def test_forget_drops_only_finished_jobs():
    gate = threading.Event()
    pipeline = DummyPipeline(gate=gate)
    runner = BatchJobRunner(pipeline, DummyLogger())

    job_id = runner.submit(_clips(), Path("in.mp4"), "+00:00", "pt")
    assert pipeline.started.wait(timeout=5)
    with pytest.raises(RuntimeError):
        runner.forget(job_id)

    gate.set()
    runner.result(job_id, timeout=5)
    runner.shutdown()
    assert runner.forget(job_id).status is JobStatus.COMPLETED
    assert runner.jobs() == []
    with pytest.raises(KeyError):
        runner.status(job_id)
