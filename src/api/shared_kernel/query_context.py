"""Per-call query context carrying cancellation and deadline signals.

A QueryContext is created by the caller for the lifetime of one request and
handed to every read operation. It carries no instance identity: ids and hosts
are always passed explicitly. Its only jobs are to abort in-flight statements
when the caller cancels or runs out of time, and to carry observability
metadata.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass, field, replace
from typing import Awaitable, TypeVar

from shared_kernel.observability_context import ObservationContext

T = TypeVar("T")


class ContextCancelledError(Exception):
    """Raised when an operation runs under a cancelled QueryContext."""

    pass


class ContextDeadlineExceededError(Exception):
    """Raised when an operation outlives the QueryContext deadline."""

    pass


@dataclass
class QueryContext:
    """Cancellation-aware execution context for a single caller.

    Attributes:
        deadline: Absolute time.monotonic() value after which running
            operations are aborted, or None for no deadline.
        observation: Metadata attached to every probe event of the call.

    Example:
        ctx = QueryContext.with_timeout(2.5)
        instance = await repository.get_current(ctx, current)
    """

    deadline: float | None = None
    observation: ObservationContext = field(default_factory=ObservationContext)
    _cancelled: asyncio.Event = field(default_factory=asyncio.Event, repr=False)

    @classmethod
    def with_timeout(
        cls,
        seconds: float,
        observation: ObservationContext | None = None,
    ) -> QueryContext:
        """Create a context whose deadline is `seconds` from now."""
        return cls(
            deadline=time.monotonic() + seconds,
            observation=observation or ObservationContext(),
        )

    def bounded(self, seconds: float | None) -> QueryContext:
        """Return a context sharing this cancel signal, due within `seconds`.

        The earlier of the existing deadline and the new one wins.
        """
        if seconds is None:
            return self
        deadline = time.monotonic() + seconds
        if self.deadline is not None and self.deadline <= deadline:
            return self
        return replace(self, deadline=deadline)

    @property
    def cancelled(self) -> bool:
        """Whether cancel() has been called."""
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Signal cancellation to every operation running under this context."""
        self._cancelled.set()

    def remaining(self) -> float | None:
        """Seconds left until the deadline, or None without a deadline."""
        if self.deadline is None:
            return None
        return max(self.deadline - time.monotonic(), 0.0)

    def check(self) -> None:
        """Raise if the context is already cancelled or past its deadline."""
        if self.cancelled:
            raise ContextCancelledError("context canceled")
        remaining = self.remaining()
        if remaining is not None and remaining <= 0:
            raise ContextDeadlineExceededError("context deadline exceeded")

    async def run(self, awaitable: Awaitable[T]) -> T:
        """Await `awaitable` unless the context is cancelled or times out first.

        The awaited operation is cancelled when the context fires, so the
        driver can abort the in-flight statement.

        Raises:
            ContextCancelledError: If cancel() was called before completion.
            ContextDeadlineExceededError: If the deadline passed before completion.
        """
        task = asyncio.ensure_future(awaitable)
        try:
            self.check()
        except Exception:
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise

        cancel_waiter = asyncio.ensure_future(self._cancelled.wait())
        try:
            done, _ = await asyncio.wait(
                {task, cancel_waiter},
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            cancel_waiter.cancel()

        if task in done:
            return task.result()

        task.cancel()
        await asyncio.gather(task, return_exceptions=True)
        if self.cancelled:
            raise ContextCancelledError("context canceled")
        raise ContextDeadlineExceededError("context deadline exceeded")
