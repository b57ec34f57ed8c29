"""Tests for utils/retry.py: backoff and error redaction."""

import pytest
from unittest.mock import AsyncMock, patch
from utils.retry import async_retry, backoff_delays, sanitize_error


class TestSanitizeError:
    def test_redacts_query_password(self):
        assert sanitize_error("failed password=hunter2&x=1") == "failed password=[REDACTED]&x=1"

    def test_redacts_dsn_password(self):
        text = "could not connect to postgresql://app:s3cret@db:5432/profiles"
        assert "s3cret" not in sanitize_error(text)
        assert "postgresql://app:[REDACTED]@db" in sanitize_error(text)

    def test_leaves_plain_text(self):
        assert sanitize_error("connection refused") == "connection refused"


class TestAsyncRetry:
    @patch("utils.retry.asyncio.sleep", new_callable=AsyncMock)
    async def test_retries_then_succeeds(self, mock_sleep):
        calls = []

        @async_retry(retries=2, base_delay=0.5, exceptions=(OSError,))
        async def flaky():
            calls.append(1)
            if len(calls) < 3:
                raise OSError("down")
            return "ok"

        assert await flaky() == "ok"
        assert [c.args[0] for c in mock_sleep.await_args_list] == [0.5, 1.0]

    @patch("utils.retry.asyncio.sleep", new_callable=AsyncMock)
    async def test_other_exceptions_not_retried(self, mock_sleep):
        @async_retry(retries=3, exceptions=(OSError,))
        async def broken():
            raise ValueError("bad input")

        with pytest.raises(ValueError):
            await broken()
        mock_sleep.assert_not_awaited()

    @patch("utils.retry.asyncio.sleep", new_callable=AsyncMock)
    async def test_delay_capped(self, mock_sleep):
        @async_retry(retries=3, base_delay=1.0, max_delay=1.5, exceptions=(OSError,))
        async def down():
            raise OSError("down")

        with pytest.raises(OSError):
            await down()
        assert [c.args[0] for c in mock_sleep.await_args_list] == [1.0, 1.5, 1.5]

    @patch("utils.retry.asyncio.sleep", new_callable=AsyncMock)
    async def test_no_retries_calls_once(self, mock_sleep):
        calls = []

        @async_retry(retries=0, exceptions=(OSError,))
        async def down():
            calls.append(1)
            raise OSError("down")

        with pytest.raises(OSError):
            await down()
        assert calls == [1]
        mock_sleep.assert_not_awaited()


class TestBackoffDelays:
    def test_doubles_then_caps(self):
        assert backoff_delays(4, 0.2, 0.5) == [0.2, 0.4, 0.5, 0.5]

    def test_zero_retries(self):
        assert backoff_delays(0, 1.0, 2.0) == []
