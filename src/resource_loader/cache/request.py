"""Single-use completion of one cache operation.

A ``CacheRequest`` holds the listener of exactly one backend operation.
The operation's job runs on the backend's worker thread; its outcome is
handed back to the event loop, delivered to the listener, and the listener
reference is dropped. There is no way to cancel a request once submitted.
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor
from typing import Any, Callable, Optional, TypeVar

from resource_loader.cache.base import CacheListener

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CacheRequest:
    """Delivers the outcome of one cache job to one listener, once.

    Attributes:
        operation: Name of the operation ("open", "get" or "put").
        listener: The listener to notify, None once delivered.
    """

    def __init__(self, operation: str, listener: CacheListener) -> None:
        self.operation = operation
        self.listener: Optional[CacheListener] = listener

    @property
    def done(self) -> bool:
        """Whether the outcome has been delivered."""
        return self.listener is None

    def submit(
        self,
        loop: asyncio.AbstractEventLoop,
        executor: Executor,
        job: Callable[[], T],
        deliver: Callable[[CacheListener, T], None],
    ) -> "asyncio.Future[T]":
        """Run job on the executor and deliver its result on the loop.

        Args:
            loop: Event loop that listeners run on.
            executor: Executor the job runs on.
            job: Blocking work; must not raise (errors become flags).
            deliver: Calls the right listener method with the job result.

        Returns:
            The future wrapping the job, for callers that want to await it.
        """
        future = loop.run_in_executor(executor, job)

        def on_done(fut: "asyncio.Future[Any]") -> None:
            self.resolve(deliver, fut.result())

        future.add_done_callback(on_done)
        return future

    def resolve(
        self, deliver: Callable[[CacheListener, T], None], result: T
    ) -> None:
        """Deliver a result to the listener and release it.

        Raises:
            AssertionError: If this request was already resolved.
        """
        listener = self.listener
        if listener is None:
            raise AssertionError(f"{self.operation} already completed")
        self.listener = None
        logger.debug(f"Cache {self.operation} completed")
        deliver(listener, result)
