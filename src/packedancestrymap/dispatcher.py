"""Concurrent per-marker dispatch of decoded rows to a caller-supplied handler."""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Iterable
from typing import Literal

from .errors import HandlerError
from .models import Individual, Marker

logger = logging.getLogger(__name__)

RowHandler = Callable[[list[int], Marker, tuple[Individual, ...]], None | Awaitable[None]]
HandlerErrorPolicy = Literal["collect", "abort"]

HANDLER_ERROR_POLICIES = ("collect", "abort")


class RowDispatcher:
    """Run a row handler once per marker, each invocation as its own task.

    Rows are consumed strictly in order; only the handler calls overlap and
    they may finish in any order. Plain callables run on worker threads,
    ``async def`` handlers (functions or objects with an async ``__call__``)
    run on the event loop. An awaitable returned by a plain callable is
    awaited before the invocation counts as complete. ``drain`` is the single
    barrier after which every invocation has completed.

    Handler failures are recorded rather than propagated from the task. With
    the "collect" policy every marker is still dispatched; with "abort" no new
    marker is dispatched after the first failure. Either way ``drain`` raises
    HandlerError once all in-flight invocations have finished.
    """

    def __init__(
        self,
        handler: RowHandler,
        individuals: tuple[Individual, ...],
        max_concurrency: int | None = None,
        on_handler_error: HandlerErrorPolicy = "collect",
    ):
        if on_handler_error not in HANDLER_ERROR_POLICIES:
            raise ValueError(
                f"on_handler_error must be one of {HANDLER_ERROR_POLICIES}, "
                f"got {on_handler_error!r}"
            )
        if max_concurrency is not None and max_concurrency <= 0:
            raise ValueError(f"max_concurrency must be positive, got {max_concurrency}")

        self.handler = handler
        self.individuals = tuple(individuals)
        self.max_concurrency = max_concurrency
        self.on_handler_error = on_handler_error
        self.dispatched = 0
        self.completed = 0
        self.failures: list[tuple[str, BaseException]] = []

        self._is_async = inspect.iscoroutinefunction(handler) or inspect.iscoroutinefunction(
            getattr(handler, "__call__", None)
        )
        self._semaphore: asyncio.Semaphore | None = None
        self._tasks: set[asyncio.Task] = set()

    @property
    def aborted(self) -> bool:
        return self.on_handler_error == "abort" and bool(self.failures)

    async def dispatch(self, row: list[int], marker: Marker) -> bool:
        """Start a handler invocation for one marker.

        Waits for a free slot when max_concurrency is set.

        Returns:
            False if the abort policy has tripped and the row was not dispatched
        """
        if self.max_concurrency is not None:
            if self._semaphore is None:
                self._semaphore = asyncio.Semaphore(self.max_concurrency)
            await self._semaphore.acquire()

        if self.aborted:
            self._release()
            return False

        task = asyncio.create_task(self._invoke(row, marker))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self.dispatched += 1
        # Let the new task start before the next record is decoded.
        await asyncio.sleep(0)
        return True

    async def drain(self) -> None:
        """Wait until every dispatched invocation has completed.

        Raises:
            HandlerError: If any invocation raised
        """
        await self._wait_in_flight()

        if self.failures:
            first = self.failures[0][1]
            raise HandlerError(list(self.failures)) from first

    async def run(self, markers: Iterable[Marker], rows: Iterable[list[int]]) -> int:
        """Dispatch each (marker, row) pair and wait for all of them.

        ``rows`` is consumed lazily, one row per marker, so decoding stays
        sequential. If it raises, in-flight invocations are still awaited
        before the error propagates.

        Returns:
            Number of markers dispatched
        """
        try:
            for marker, row in zip(markers, rows):
                if not await self.dispatch(row, marker):
                    logger.warning(
                        "Stopped dispatching at marker %s after a handler failure", marker.name
                    )
                    break
        except BaseException:
            await self._wait_in_flight()
            raise

        await self.drain()
        return self.dispatched

    async def _invoke(self, row: list[int], marker: Marker) -> None:
        try:
            if self._is_async:
                result = self.handler(row, marker, self.individuals)
            else:
                result = await asyncio.to_thread(self.handler, row, marker, self.individuals)
            # Plain callables may still hand back a coroutine.
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error("Row handler failed for marker %s: %s", marker.name, e)
            self.failures.append((marker.name, e))
        finally:
            self.completed += 1
            self._release()

    async def _wait_in_flight(self) -> None:
        pending = list(self._tasks)
        while pending:
            await asyncio.gather(*pending)
            pending = [task for task in self._tasks if not task.done()]

    def _release(self) -> None:
        if self._semaphore is not None:
            self._semaphore.release()
