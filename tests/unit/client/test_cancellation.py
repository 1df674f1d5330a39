"""
Tests for cancellation tokens.
"""

import asyncio

import pytest

from documentdb.client.cancellation import CancellationToken


class TestCancellationToken:
    """Test suite for CancellationToken."""

    def test_not_cancelled_initially(self):
        """Test a fresh token has not fired."""
        token = CancellationToken()

        assert token.cancelled is False
        assert token.reason is None
        assert token.remaining() is None

    def test_cancel_keeps_first_reason(self):
        """Test only the first cancellation reason is kept."""
        token = CancellationToken()
        token.cancel("shutdown")
        token.cancel("again")

        assert token.cancelled is True
        assert token.reason == "shutdown"

    def test_expired_deadline_counts_as_cancelled(self):
        """Test a passed deadline fires the token."""
        token = CancellationToken(timeout=0)

        assert token.cancelled is True
        assert token.reason == "deadline exceeded"

    def test_negative_timeout_rejected(self):
        """Test negative timeouts are rejected."""
        with pytest.raises(ValueError):
            CancellationToken(timeout=-1)

    @pytest.mark.asyncio
    async def test_wait_times_out(self):
        """Test wait returns False when the token does not fire in time."""
        token = CancellationToken()

        assert await token.wait(0.01) is False
        assert token.cancelled is False

    @pytest.mark.asyncio
    async def test_wait_returns_when_cancelled(self):
        """Test wait returns True as soon as the token fires."""
        token = CancellationToken()
        asyncio.get_running_loop().call_later(0.01, token.cancel)

        assert await token.wait(5.0) is True

    @pytest.mark.asyncio
    async def test_wait_stops_at_deadline(self):
        """Test a deadline shorter than the wait fires the token."""
        token = CancellationToken(timeout=0.02)

        assert await token.wait(5.0) is True
        assert token.reason == "deadline exceeded"
