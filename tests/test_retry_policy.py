import pytest

from clip_enrichment.utils.retry_policy import retry


def test_retry_returns_after_transient_failures():
    attempts = []

    def flaky():
        attempts.append(1)
        if len(attempts) < 3:
            raise RuntimeError("temporary")
        return "ok"

    seen = []
    assert retry(flaky, retries=2, delay_sec=0, on_retry=lambda n, exc: seen.append(n)) == "ok"
    assert seen == [1, 2]


def test_retry_reraises_last_error():
    with pytest.raises(RuntimeError, match="always"):
        retry(lambda: (_ for _ in ()).throw(RuntimeError("always")), retries=1, delay_sec=0)


def test_unlisted_errors_are_not_retried():
    attempts = []

    def broken():
        attempts.append(1)
        raise KeyError("bad")

    with pytest.raises(KeyError):
        retry(broken, retries=3, delay_sec=0, retry_on=(RuntimeError,))
    assert len(attempts) == 1
