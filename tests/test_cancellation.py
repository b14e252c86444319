"""
Tests for cancellation tokens and token sources.
"""

import asyncio
import threading
import time
from unittest.mock import MagicMock

import pytest

from steadfast.cancellation import CancellationToken, CancellationTokenSource
from steadfast.errors import OperationCanceledError


class TestCancellationToken:
    """Test token observation."""

    def test_none_token_never_cancels(self):
        """Test the none token cannot be cancelled."""
        token = CancellationToken.none()

        assert not token.can_be_canceled
        assert not token.is_cancellation_requested
        token.raise_if_cancellation_requested()
        assert CancellationToken.none() is not token

    def test_cancel_sets_flag(self):
        """Test cancelling the source is visible on its token."""
        source = CancellationTokenSource()
        assert not source.token.is_cancellation_requested

        source.cancel()

        assert source.is_cancellation_requested
        assert source.token.is_cancellation_requested
        with pytest.raises(OperationCanceledError) as exc_info:
            source.token.raise_if_cancellation_requested()
        assert exc_info.value.token is source.token

    def test_cancel_is_idempotent(self):
        """Test callbacks run once even if cancel is called repeatedly."""
        source = CancellationTokenSource()
        callback = MagicMock()
        source.token.register(callback)

        source.cancel()
        source.cancel()

        callback.assert_called_once()

    def test_register_after_cancel_runs_immediately(self):
        """Test late registrations are invoked right away."""
        source = CancellationTokenSource()
        source.cancel()
        callback = MagicMock()

        source.token.register(callback)

        callback.assert_called_once()

    def test_unregister(self):
        """Test an unregistered callback is not invoked."""
        source = CancellationTokenSource()
        callback = MagicMock()
        unregister = source.token.register(callback)

        unregister()
        source.cancel()

        callback.assert_not_called()

    def test_failing_callback_does_not_stop_others(self):
        """Test callback errors are logged, not raised."""
        source = CancellationTokenSource()
        second = MagicMock()
        source.token.register(MagicMock(side_effect=RuntimeError("boom")))
        source.token.register(second)

        source.cancel()

        second.assert_called_once()

    @pytest.mark.asyncio
    async def test_wait_returns_on_cancel(self):
        """Test awaiting a token completes when it is cancelled."""
        source = CancellationTokenSource()
        asyncio.get_running_loop().call_later(0.01, source.cancel)

        await asyncio.wait_for(source.token.wait(), timeout=1.0)

        assert source.is_cancellation_requested

    @pytest.mark.asyncio
    async def test_wait_on_cancelled_token_returns_immediately(self):
        """Test awaiting an already-cancelled token does not block."""
        source = CancellationTokenSource()
        source.cancel()

        await asyncio.wait_for(source.token.wait(), timeout=0.1)

    @pytest.mark.asyncio
    async def test_cancel_from_another_thread(self):
        """Test cancellation requested off the event loop wakes waiters."""
        source = CancellationTokenSource()
        timer = threading.Timer(0.02, source.cancel)
        timer.start()
        try:
            await asyncio.wait_for(source.token.wait(), timeout=1.0)
        finally:
            timer.cancel()

    @pytest.mark.asyncio
    async def test_sleep_completes(self):
        """Test sleep returns normally when not cancelled."""
        source = CancellationTokenSource()
        await source.token.sleep(0.01)
        await CancellationToken.none().sleep(0.01)

    @pytest.mark.asyncio
    async def test_sleep_interrupted(self):
        """Test sleep raises as soon as the token is cancelled."""
        with CancellationTokenSource() as source:
            source.cancel_after(0.02)
            start = time.monotonic()

            with pytest.raises(OperationCanceledError):
                await source.token.sleep(10)

        assert time.monotonic() - start < 1.0

    @pytest.mark.asyncio
    async def test_sleep_on_cancelled_token(self):
        """Test sleep on an already-cancelled token raises immediately."""
        source = CancellationTokenSource()
        source.cancel()

        with pytest.raises(OperationCanceledError):
            await source.token.sleep(10)


class TestCancellationTokenSource:
    """Test sources, timers and linking."""

    @pytest.mark.asyncio
    async def test_cancel_after(self):
        """Test scheduled cancellation fires."""
        source = CancellationTokenSource()
        source.cancel_after(0.01)

        await asyncio.sleep(0.05)

        assert source.is_cancellation_requested

    @pytest.mark.asyncio
    async def test_close_stops_timer(self):
        """Test closing a source cancels its pending timer."""
        with CancellationTokenSource() as source:
            source.cancel_after(0.01)

        await asyncio.sleep(0.05)

        assert not source.is_cancellation_requested

    def test_linked_token_follows_any_parent(self):
        """Test cancelling any parent cancels the linked token."""
        first = CancellationTokenSource()
        second = CancellationTokenSource()
        linked = CancellationTokenSource.create_linked(first.token, second.token)

        second.cancel()

        assert linked.is_cancellation_requested
        assert not first.is_cancellation_requested

    def test_cancelling_linked_leaves_parents(self):
        """Test cancelling the linked source does not cancel its parents."""
        parent = CancellationTokenSource()
        linked = CancellationTokenSource.create_linked(parent.token)

        linked.cancel()

        assert linked.is_cancellation_requested
        assert not parent.is_cancellation_requested

    def test_linked_to_cancelled_parent(self):
        """Test linking to an already-cancelled token yields a cancelled token."""
        parent = CancellationTokenSource()
        parent.cancel()

        linked = CancellationTokenSource.create_linked(parent.token)

        assert linked.is_cancellation_requested

    def test_linked_ignores_uncancellable_tokens(self):
        """Test none tokens and None are skipped when linking."""
        parent = CancellationTokenSource()
        linked = CancellationTokenSource.create_linked(CancellationToken.none(), None, parent.token)

        parent.cancel()

        assert linked.is_cancellation_requested

    def test_close_unlinks(self):
        """Test a closed linked source no longer follows its parents."""
        parent = CancellationTokenSource()
        with CancellationTokenSource.create_linked(parent.token) as linked:
            pass

        parent.cancel()

        assert not linked.is_cancellation_requested
