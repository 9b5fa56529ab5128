from __future__ import annotations

from collections.abc import Sequence
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from threading import Event, Lock
from uuid import uuid4

from clip_enrichment.application.enrichment_pipeline import EnrichmentPipeline
from clip_enrichment.domain.errors import BatchCancelled
from clip_enrichment.domain.models import ClipCandidate, EnrichedBatch, JobRecord, JobStatus

FINISHED_STATUSES = (JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.CANCELLED)


@dataclass(slots=True)
class _JobHandle:
    record: JobRecord
    cancel_event: Event
    future: Future


class BatchJobRunner:
    """Submits enrichment batches in the background and keeps a handle per job.

    A job that ``cancel`` accepted always finishes as CANCELLED, and its
    ``result`` raises ``BatchCancelled`` whether it was still queued or running.
    """

    def __init__(self, pipeline: EnrichmentPipeline, logger, max_concurrent_jobs: int = 1) -> None:
        self.pipeline = pipeline
        self.logger = logger
        self._executor = ThreadPoolExecutor(max_workers=max(1, max_concurrent_jobs))
        self._jobs: dict[str, _JobHandle] = {}
        self._lock = Lock()

    def submit(
        self,
        clips: Sequence[ClipCandidate],
        source: Path,
        utc_offset: str,
        language: str,
        reference: datetime | None = None,
    ) -> str:
        job_id = uuid4().hex[:12]
        record = JobRecord(job_id=job_id, source=Path(source), status=JobStatus.QUEUED)
        cancel_event = Event()
        self.logger.info("job.created", job_id=job_id, source=str(source), clips=len(clips))

        with self._lock:
            future = self._executor.submit(
                self._run,
                record,
                cancel_event,
                list(clips),
                Path(source),
                utc_offset,
                language,
                reference,
            )
            self._jobs[job_id] = _JobHandle(record=record, cancel_event=cancel_event, future=future)
        return job_id

    def status(self, job_id: str) -> JobRecord:
        return self._handle(job_id).record

    def result(self, job_id: str, timeout: float | None = None) -> EnrichedBatch:
        """Block until the job finishes and return its batch, re-raising its failure."""
        handle = self._handle(job_id)
        try:
            return handle.future.result(timeout=timeout)
        except CancelledError:
            raise BatchCancelled(f"job {job_id} was cancelled before it started") from None

    def cancel(self, job_id: str) -> bool:
        """Request cancellation; False when the job had already finished."""
        handle = self._handle(job_id)
        with self._lock:
            if handle.record.status in FINISHED_STATUSES:
                return False
            handle.cancel_event.set()
            if handle.future.cancel():
                self._set_status(handle.record, JobStatus.CANCELLED)
        self.logger.info("job.cancel_requested", job_id=job_id)
        return True

    def jobs(self) -> list[JobRecord]:
        with self._lock:
            return [handle.record for handle in self._jobs.values()]

    def forget(self, job_id: str) -> JobRecord:
        """Drop a finished job's handle and return its final record."""
        with self._lock:
            handle = self._jobs.get(job_id)
            if handle is None:
                raise KeyError(f"unknown job id: {job_id}")
            if handle.record.status not in FINISHED_STATUSES:
                raise RuntimeError(f"job {job_id} is still {handle.record.status.value}")
            del self._jobs[job_id]
        return handle.record

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def _run(
        self,
        record: JobRecord,
        cancel_event: Event,
        clips: list[ClipCandidate],
        source: Path,
        utc_offset: str,
        language: str,
        reference: datetime | None,
    ) -> EnrichedBatch:
        job_id = record.job_id
        with self._lock:
            self._set_status(record, JobStatus.RUNNING)
        try:
            batch = self.pipeline.process_batch(
                clips,
                source,
                utc_offset,
                language,
                reference=reference,
                cancel_event=cancel_event,
            )
        except BatchCancelled:
            self._finish_cancelled(record)
            raise
        except Exception as exc:
            with self._lock:
                cancelled = cancel_event.is_set()
                if not cancelled:
                    self._set_status(record, JobStatus.FAILED, str(exc))
            if cancelled:
                self._finish_cancelled(record)
                raise BatchCancelled(f"job {job_id} was cancelled") from exc
            self.logger.exception("job.failed", job_id=job_id, error=str(exc))
            raise

        # an accepted cancel never ends COMPLETED
        with self._lock:
            cancelled = cancel_event.is_set()
            if not cancelled:
                self._set_status(record, JobStatus.COMPLETED)
        if cancelled:
            self._finish_cancelled(record)
            raise BatchCancelled(f"job {job_id} was cancelled")
        self.logger.info("job.completed", job_id=job_id, clips=len(batch.clips))
        return batch

    def _finish_cancelled(self, record: JobRecord) -> None:
        with self._lock:
            self._set_status(record, JobStatus.CANCELLED)
        self.logger.info("job.cancelled", job_id=record.job_id)

    def _handle(self, job_id: str) -> _JobHandle:
        with self._lock:
            try:
                return self._jobs[job_id]
            except KeyError:
                raise KeyError(f"unknown job id: {job_id}") from None

    def _set_status(self, record: JobRecord, status: JobStatus, error_message: str = "") -> None:
        record.status = status
        record.error_message = error_message
        record.updated_at = datetime.now(timezone.utc)
