from __future__ import annotations


class EnrichmentError(RuntimeError):
    pass


class SourceUnavailable(EnrichmentError):
    """Beat markers cannot be derived from the source media."""


class TranscodeFailure(EnrichmentError):
    def __init__(self, reason: str, platform: str = "") -> None:
        self.reason = reason
        self.platform = platform
        prefix = f"[{platform}] " if platform else ""
        super().__init__(f"{prefix}transcode failed: {reason}")


class CaptionFailure(EnrichmentError):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(f"caption failed: {reason}")


class ScheduleUnavailable(EnrichmentError):
    def __init__(self, platform: str, weekday: str) -> None:
        self.platform = platform
        self.weekday = weekday
        super().__init__(f"no engagement data for {platform} on {weekday}")


class BatchCancelled(EnrichmentError):
    pass
