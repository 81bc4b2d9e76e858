"""Cooperative cancellation shared by every network call of an audit."""

import asyncio
from typing import Awaitable, Optional, TypeVar

from .errors import AuditCancelled


T = TypeVar("T")


class CancelToken:
    """One-shot cancellation signal.

    The operator side calls ``cancel()``; the engine side checks the token
    before dispatching work and races in-flight awaits against it.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise AuditCancelled()

    async def run(self, aw: Awaitable[T]) -> T:
        """Await ``aw`` unless the token fires first.

        Raises:
            AuditCancelled: if the token fired before or during the await.
        """
        if self._event.is_set():
            if asyncio.iscoroutine(aw):
                aw.close()
            raise AuditCancelled()
        task = asyncio.ensure_future(aw)
        waiter = asyncio.ensure_future(self._event.wait())
        try:
            done, _ = await asyncio.wait(
                {task, waiter}, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            waiter.cancel()

        if task in done:
            return task.result()
        task.cancel()
        raise AuditCancelled()

    async def sleep(self, seconds: float) -> None:
        """Sleep that wakes early, raising AuditCancelled, if the token fires."""
        self.raise_if_cancelled()
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            return
        raise AuditCancelled()


def ensure_token(token: Optional[CancelToken]) -> CancelToken:
    """Return ``token`` or a fresh one that never fires."""
    return token if token is not None else CancelToken()
