"""
Tests for RemoteCallExecutor retry semantics.

Linear back-off (attempt * base_delay), bounded attempts, unchanged
propagation of the last error and the transient/all retry policies.
"""

import asyncio

import pytest

from clarivalue.domain.exceptions import (
    RemoteCallError,
    RemoteConnectionError,
    RemoteHTTPError,
    RemoteResponseError,
    RemoteTimeoutError,
)
from clarivalue.infrastructure.remote import RemoteCallExecutor, RetryPolicy, is_transient_error


class TestRetryLoop:
    @pytest.mark.asyncio
    async def test_success_on_first_attempt_does_not_wait(self, fake_transport, recording_sleep):
        fake_transport.queue({"ok": True})
        executor = RemoteCallExecutor(fake_transport, sleep=recording_sleep)

        result = await executor.invoke("extract", {"companyName": "Acme Oy"})

        assert result == {"ok": True}
        assert recording_sleep.delays == []
        assert fake_transport.calls == [{"function": "extract", "payload": {"companyName": "Acme Oy"}}]

    @pytest.mark.asyncio
    async def test_four_failures_raise_last_error_after_linear_backoff(self, fake_transport, recording_sleep):
        errors = [RemoteConnectionError(f"refused #{n}") for n in range(1, 5)]
        fake_transport.queue(*errors)
        executor = RemoteCallExecutor(fake_transport, base_delay=0.5, sleep=recording_sleep)

        with pytest.raises(RemoteConnectionError) as exc_info:
            await executor.invoke("extract", {})

        assert exc_info.value is errors[-1]
        assert len(fake_transport.calls) == 4
        assert recording_sleep.delays == pytest.approx([0.5, 1.0, 1.5])
        assert executor.retry_count == 3

    @pytest.mark.asyncio
    async def test_recovers_after_transient_failures(self, fake_transport, recording_sleep):
        fake_transport.queue(RemoteTimeoutError("slow"), RemoteHTTPError("busy", status_code=503), {"ok": 1})
        executor = RemoteCallExecutor(fake_transport, base_delay=1.0, sleep=recording_sleep)

        assert await executor.invoke("finalize", {}) == {"ok": 1}
        assert recording_sleep.delays == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_client_error_is_not_retried_by_default(self, fake_transport, recording_sleep):
        fake_transport.queue(RemoteHTTPError("bad request", status_code=400), {"unreached": True})
        executor = RemoteCallExecutor(fake_transport, sleep=recording_sleep)

        with pytest.raises(RemoteHTTPError):
            await executor.invoke("extract", {})

        assert len(fake_transport.calls) == 1
        assert recording_sleep.delays == []

    @pytest.mark.asyncio
    async def test_retry_all_policy_retries_client_errors(self, fake_transport, recording_sleep):
        fake_transport.queue(RemoteHTTPError("bad request", status_code=400), {"ok": True})
        executor = RemoteCallExecutor(fake_transport, retry_policy=RetryPolicy.ALL, sleep=recording_sleep)

        assert await executor.invoke("extract", {}) == {"ok": True}
        assert recording_sleep.delays == [1.0]

    @pytest.mark.asyncio
    async def test_zero_retries_means_single_attempt(self, fake_transport, recording_sleep):
        fake_transport.queue(RemoteConnectionError("refused"))
        executor = RemoteCallExecutor(fake_transport, max_retries=0, sleep=recording_sleep)

        with pytest.raises(RemoteConnectionError):
            await executor.invoke("extract", {})
        assert len(fake_transport.calls) == 1

    def test_default_sleep_is_asyncio_sleep(self, fake_transport):
        executor = RemoteCallExecutor(fake_transport)

        assert executor._sleep is asyncio.sleep

    @pytest.mark.parametrize("kwargs", [{"max_retries": -1}, {"base_delay": -0.1}])
    def test_invalid_settings_rejected(self, fake_transport, kwargs):
        with pytest.raises(ValueError):
            RemoteCallExecutor(fake_transport, **kwargs)


class TestTransientClassification:
    @pytest.mark.parametrize(
        "error,expected",
        [
            (RemoteConnectionError("refused"), True),
            (RemoteTimeoutError("slow"), True),
            (RemoteHTTPError("down", status_code=502), True),
            (RemoteHTTPError("slow down", status_code=429), True),
            (RemoteHTTPError("not found", status_code=404), False),
            (RemoteHTTPError("unauthorized", status_code=401), False),
            (RemoteResponseError("not json"), False),
            (RemoteCallError("service reported an error"), True),
            (ValueError("bad payload"), False),
            (OSError("network unreachable"), True),
        ],
    )
    def test_is_transient_error(self, error, expected):
        assert is_transient_error(error) is expected
