"""Single-worker event queue in front of the handler registry."""

from __future__ import annotations

import logging
import queue
from threading import Event, Thread

from .events import ServiceDelete, ServiceUpsert
from .registry import HandlerRegistry

LOG = logging.getLogger(__name__)


class EventWorker(Thread):
    """Serialise events from any number of watchers onto one thread.

    Watchers call :meth:`handle` from their own threads; the worker hands
    events to the registry one at a time, so handlers never run
    concurrently and need no locking.
    """

    def __init__(
        self,
        registry: HandlerRegistry,
        stop_event: Event,
        poll_interval: float = 0.5,
    ) -> None:
        super().__init__(name="event-worker", daemon=True)
        self._registry = registry
        self._stop_event = stop_event
        self._poll_interval = poll_interval
        self._queue: "queue.Queue[ServiceUpsert | ServiceDelete]" = queue.Queue()

    def handle(self, event: ServiceUpsert | ServiceDelete) -> None:
        self._queue.put(event)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def run(self) -> None:
        while not self._stop_event.is_set():
            try:
                event = self._queue.get(timeout=self._poll_interval)
            except queue.Empty:
                continue
            self._dispatch(event)
        LOG.debug("event worker stopped with %d events pending", self.pending)

    def process_pending(self) -> int:
        """Dispatch every queued event on the calling thread."""

        processed = 0
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                return processed
            self._dispatch(event)
            processed += 1

    def _dispatch(self, event: ServiceUpsert | ServiceDelete) -> None:
        try:
            self._registry.handle(event)
        except Exception:  # pragma: no cover - logged below
            LOG.exception("failed to handle event %r", event)
        finally:
            self._queue.task_done()
