"""Bounded queues and threads linking pipeline stages.

Each stage runs in its own thread, reads from an input ``StageQueue`` and
writes to an output one. Every blocking operation polls a shared
``threading.Event``: once it is set, stages stop at their next queue
operation without draining or flushing anything.

A stage signals the end of its stream by closing its output queue, which
enqueues a sentinel. Iterating a queue stops at the sentinel.
"""

import logging
import threading
from queue import Empty, Full, Queue
from typing import Any, Callable, Iterator, Optional

from ..errors import CancelledError

logger = logging.getLogger(__name__)

POLL_INTERVAL = 0.1

_END = object()


class StageQueue:
    """A bounded queue whose blocking calls honour a cancellation event.

    Args:
        cancel: Shared cancellation event
        maxsize: Capacity (backpressure limit)
        name: Name used in logs
    """

    def __init__(self, cancel: threading.Event, maxsize: int = 16, name: str = "stage") -> None:
        self.cancel = cancel
        self.maxsize = maxsize
        self.name = name
        self._queue: Queue = Queue(maxsize=maxsize)

    def put(self, item: Any) -> None:
        """
        Enqueue ``item``, waiting for room.

        Raises:
            CancelledError: If cancellation fires while waiting
        """
        while True:
            if self.cancel.is_set():
                raise CancelledError(queue=self.name)
            try:
                self._queue.put(item, timeout=POLL_INTERVAL)
                return
            except Full:
                continue

    def get(self) -> Any:
        """
        Dequeue the next item; returns the end sentinel after ``close``.

        Raises:
            CancelledError: If cancellation fires while waiting
        """
        while True:
            if self.cancel.is_set():
                raise CancelledError(queue=self.name)
            try:
                return self._queue.get(timeout=POLL_INTERVAL)
            except Empty:
                continue

    def close(self) -> None:
        """Mark the end of the stream. Does nothing once cancelled."""
        try:
            self.put(_END)
        except CancelledError:
            logger.debug(f"Queue closed after cancellation: {{'queue': {self.name!r}}}")

    def __iter__(self) -> Iterator[Any]:
        """Items until the end of the stream; stops quietly on cancellation."""
        while True:
            try:
                item = self.get()
            except CancelledError:
                return
            if item is _END:
                return
            yield item

    def depth(self) -> int:
        return self._queue.qsize()


class StageThread(threading.Thread):
    """Runs one stage function and closes its output queue when done.

    The exception that stopped the stage, if any, is kept in ``error`` for
    the consumer to re-raise. Cancellation is not an error.
    """

    def __init__(
        self,
        name: str,
        target: Callable[..., None],
        output: StageQueue,
        *args: Any,
    ) -> None:
        super().__init__(name=name, daemon=True)
        self._target_fn = target
        self._stage_args = args
        self.output = output
        self.error: Optional[BaseException] = None

    def run(self) -> None:
        logger.debug(f"Stage started: {{'stage': {self.name!r}}}")
        try:
            self._target_fn(*self._stage_args)
        except CancelledError:
            logger.info(f"Stage cancelled: {{'stage': {self.name!r}}}")
        except Exception as e:
            logger.error(f"Stage failed: {{'stage': {self.name!r}, 'error': {str(e)!r}}}", exc_info=True)
            self.error = e
        finally:
            self.output.close()
            logger.debug(f"Stage finished: {{'stage': {self.name!r}}}")
