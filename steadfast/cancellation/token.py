"""
Cooperative cancellation tokens for asynchronous operations.

A CancellationTokenSource owns a CancellationToken and is the only thing that
can cancel it. Tokens are handed to operations, which observe them by polling
(raise_if_cancellation_requested), awaiting (wait, sleep) or registering
callbacks. Linked sources combine several tokens so that cancelling any of
them cancels the linked token, while the original tokens stay untouched.
"""

import asyncio
import logging
import threading
from typing import Callable, List, Optional

from ..errors import OperationCanceledError

logger = logging.getLogger(__name__)


def _set_waiter_result(waiter: asyncio.Future) -> None:
    if not waiter.done():
        waiter.set_result(None)


class CancellationToken:
    """
    Signal that tells an operation it should stop.

    Tokens are not bound to an event loop; awaiting a token creates a waiter
    future on the running loop, and cancellation may be requested from any
    thread or loop.
    """

    def __init__(self, can_be_canceled: bool = True):
        self._can_be_canceled = can_be_canceled
        self._canceled = False
        self._callbacks: List[Callable[[], None]] = []
        self._waiters: List[asyncio.Future] = []
        self._lock = threading.Lock()

    @classmethod
    def none(cls) -> "CancellationToken":
        """Create a token that is never cancelled."""
        return cls(can_be_canceled=False)

    @property
    def is_cancellation_requested(self) -> bool:
        with self._lock:
            return self._canceled

    @property
    def can_be_canceled(self) -> bool:
        return self._can_be_canceled

    def raise_if_cancellation_requested(self) -> None:
        """Raise OperationCanceledError if cancellation was requested."""
        if self.is_cancellation_requested:
            raise OperationCanceledError(token=self)

    def register(self, callback: Callable[[], None]) -> Callable[[], None]:
        """
        Register a callback to run once when the token is cancelled.

        The callback runs immediately if the token is already cancelled.
        Returns a function that unregisters the callback.
        """
        with self._lock:
            if not self._canceled:
                self._callbacks.append(callback)
                return lambda: self._unregister(callback)

        callback()
        return lambda: None

    def _unregister(self, callback: Callable[[], None]) -> None:
        with self._lock:
            try:
                self._callbacks.remove(callback)
            except ValueError:
                pass

    async def wait(self) -> None:
        """Wait until cancellation is requested."""
        loop = asyncio.get_running_loop()
        waiter = loop.create_future()

        with self._lock:
            if self._canceled:
                return
            self._waiters.append(waiter)

        try:
            await waiter
        finally:
            with self._lock:
                if waiter in self._waiters:
                    self._waiters.remove(waiter)

    async def sleep(self, seconds: float) -> None:
        """
        Sleep for the given number of seconds.

        Raises OperationCanceledError as soon as the token is cancelled, without
        waiting out the remaining delay.
        """
        self.raise_if_cancellation_requested()
        if not self._can_be_canceled:
            await asyncio.sleep(seconds)
            return

        try:
            await asyncio.wait_for(self.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return

        raise OperationCanceledError(token=self)

    def _cancel(self) -> None:
        with self._lock:
            if self._canceled or not self._can_be_canceled:
                return
            self._canceled = True
            callbacks, self._callbacks = self._callbacks, []
            waiters, self._waiters = self._waiters, []

        for waiter in waiters:
            loop = waiter.get_loop()
            if not loop.is_closed():
                loop.call_soon_threadsafe(_set_waiter_result, waiter)

        for callback in callbacks:
            try:
                callback()
            except Exception as e:
                logger.error(f"Cancellation callback failed: {e}")

    def __repr__(self) -> str:
        return f"CancellationToken(canceled={self.is_cancellation_requested})"


class CancellationTokenSource:
    """Owner of a CancellationToken; the only way to cancel it."""

    def __init__(self):
        self._token = CancellationToken()
        self._timer: Optional[asyncio.TimerHandle] = None
        self._registrations: List[Callable[[], None]] = []

    @classmethod
    def create_linked(cls, *tokens: Optional[CancellationToken]) -> "CancellationTokenSource":
        """
        Create a source whose token is cancelled when any of the given tokens is.

        Cancelling the linked source does not cancel the given tokens.
        """
        source = cls()
        for token in tokens:
            if token is None or not token.can_be_canceled:
                continue
            source._registrations.append(token.register(source.cancel))
        return source

    @property
    def token(self) -> CancellationToken:
        return self._token

    @property
    def is_cancellation_requested(self) -> bool:
        return self._token.is_cancellation_requested

    def cancel(self) -> None:
        """Request cancellation of the owned token."""
        self._token._cancel()

    def cancel_after(self, seconds: float) -> None:
        """Schedule cancellation on the running event loop after a delay."""
        if self._timer is not None:
            self._timer.cancel()
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(seconds, self.cancel)

    def close(self) -> None:
        """Release the timer and any links to other tokens."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        for unregister in self._registrations:
            unregister()
        self._registrations.clear()

    def __enter__(self) -> "CancellationTokenSource":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
