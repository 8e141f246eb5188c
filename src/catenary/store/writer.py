"""
Single writer for the message store.

Request handlers never touch `Plane.add_message` directly. They hand inbound
messages to `MessageWriter.submit`, and one long-lived daemon thread drains the
queue in arrival order.
"""

from __future__ import annotations

import logging
import queue
import threading

from catenary.domain.models import ChatMessageIn
from catenary.store.plane import Plane

logger = logging.getLogger(__name__)

_STOP = object()


class MessageWriter:
    def __init__(self, plane: Plane, *, maxsize: int = 1000) -> None:
        self._plane = plane
        self._queue: queue.Queue[object] = queue.Queue(maxsize=maxsize)
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def pending(self) -> int:
        return self._queue.qsize()

    def submit(self, msg: ChatMessageIn) -> bool:
        """Queue a message without blocking. False if the queue is full."""
        try:
            self._queue.put_nowait(msg)
        except queue.Full:
            logger.warning("ingest queue full, dropping message %s", msg.id)
            return False
        return True

    def start(self) -> None:
        if self.running:
            return
        self._thread = threading.Thread(target=self._run, name="catenary-writer", daemon=True)
        self._thread.start()
        logger.info("starting message writer")

    def stop(self, timeout: float | None = 5.0) -> None:
        """Drain what is already queued, then stop the thread."""
        thread = self._thread
        if thread is None:
            return
        self._queue.put(_STOP)
        thread.join(timeout)
        if thread.is_alive():
            logger.warning("message writer did not stop within %s s", timeout)
            return
        self._thread = None
        logger.info("message writer stopped")

    def join(self) -> None:
        """Block until every queued message has been written."""
        self._queue.join()

    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                self._plane.add_message(item)  # type: ignore[arg-type]
            except Exception:
                logger.exception("failed to add message to plane")
            finally:
                self._queue.task_done()
