"""
The message store ("plane").

One `Plane` holds every recent chat message of the process. It is created once at
startup and handed to the API and the writer thread; tests construct their own.

Locking:
- `add_message` (single writer thread) blocks on the lock.
- `len()` reads the deque without locking.
- `get_messages` / `vote_message` only try the lock. If it is held they return an
  empty list / do nothing. Clients poll both paths on a short interval, so a missed
  poll is corrected by the next one, and request latency stays bounded.
"""

from __future__ import annotations

import logging
import threading
import uuid
from collections import deque

from catenary.config.settings import TuningSettings
from catenary.core.time import Clock, elapsed_whole_minutes, utcnow
from catenary.domain.models import ChatMessage, ChatMessageIn, ChatMessageOut, Trace
from catenary.store.names import NameSupplier, RandomNameSupplier
from catenary.tracing.proximity import overlaps

logger = logging.getLogger(__name__)

DEFAULT_DISPLAY_NAME = "anonymous"
# Upper bound on messages scanned per listing.
MAX_LISTED_MESSAGES = 10_000


class Plane:
    def __init__(
        self,
        settings: TuningSettings,
        *,
        name_supplier: NameSupplier | None = None,
        clock: Clock = utcnow,
    ) -> None:
        self._settings = settings
        self._names = name_supplier or RandomNameSupplier()
        self._clock = clock
        self._lock = threading.Lock()
        # Newest first.
        self._messages: deque[ChatMessage] = deque()
        # Grows for the process lifetime; author ids are short-lived cookies.
        self._display_names: dict[uuid.UUID, str] = {}

    @property
    def capacity(self) -> int:
        return self._settings.max_messages_in_memory

    def __len__(self) -> int:
        # Read without the lock; may lag a concurrent add by one message.
        return len(self._messages)

    def display_name_for(self, author: uuid.UUID) -> str | None:
        with self._lock:
            return self._display_names.get(author)

    def _display_name(self, author: uuid.UUID) -> str:
        name = self._display_names.get(author)
        if name is None:
            name = self._names.next_name() or DEFAULT_DISPLAY_NAME
            self._display_names[author] = name
        return name

    def _delete_old_messages(self) -> None:
        now = self._clock()
        max_age = self._settings.max_message_age_minutes
        self._messages = deque(
            m for m in self._messages if elapsed_whole_minutes(m.timestamp, now) < max_age
        )

    def add_message(self, msg: ChatMessageIn) -> ChatMessage:
        with self._lock:
            stored = ChatMessage.from_inbound(msg, self._display_name(msg.author))
            self._messages.appendleft(stored)
            self._delete_old_messages()
            if len(self._messages) > self.capacity:
                self._messages.pop()
            return stored

    def get_messages(self, trace: Trace, viewer_id: uuid.UUID | None = None) -> list[ChatMessageOut]:
        """Messages visible from `trace`, oldest first, with the viewer's own vote."""
        if not self._lock.acquire(blocking=False):
            logger.warning("couldn't lock plane in list handler")
            return []
        try:
            self._delete_old_messages()
            visible = []
            for i, msg in enumerate(self._messages):
                if i >= MAX_LISTED_MESSAGES:
                    break
                if overlaps(trace, msg.trace, self._settings):
                    visible.append(ChatMessageOut.project(msg, viewer_id))
        finally:
            self._lock.release()

        visible.sort(key=lambda m: m.timestamp)
        return visible

    def vote_message(self, message_id: uuid.UUID, viewer_id: uuid.UUID, up: bool) -> bool:
        """Toggle the viewer's vote. Returns False when nothing changed."""
        if not self._lock.acquire(blocking=False):
            logger.warning("couldn't lock plane in vote handler")
            return False
        try:
            msg = next((m for m in self._messages if m.id == message_id), None)
            if msg is None:
                logger.warning("couldn't find message with id: %s", message_id)
                return False

            same, opposite = (msg.upvoters, msg.downvoters) if up else (msg.downvoters, msg.upvoters)
            if viewer_id in same:
                same.discard(viewer_id)
            else:
                same.add(viewer_id)
                opposite.discard(viewer_id)
            return True
        finally:
            self._lock.release()
