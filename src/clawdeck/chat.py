"""Conversation state for the chat view.

The message log has two writers that are not coordinated with each other:

- the history poller, which every few seconds replaces the whole log with the
  gateway's latest history for the session
- ``send``, which appends the user's message right away (a provisional
  message) and removes it again if the gateway rejects it

Every mutation swaps in a new tuple in one step, so readers always see either
the old log or the new one. Provisional messages carry a ``local_id`` and are
removed by that id only, never by content, so two identical messages typed in
a row stay two messages.

A successful send leaves its provisional message in place. The next poll
replaces the log with history that already contains the acknowledged message,
which is how duplicates are avoided. A poll that was already in flight when the
message was sent may briefly drop it; the log is not guaranteed to grow
monotonically between polls.
"""

import asyncio
import enum
import logging
import uuid
from contextlib import suppress
from typing import Callable

from .config import get_session_key
from .core import SessionMessage
from .gateway import GatewayClient, GatewayError
from .normalize import MESSAGE_FIELDS, find_records, is_acknowledged, normalize_messages
from .tasks import now_ms

logger = logging.getLogger(__name__)

POLL_INTERVAL_S = 3.0
HISTORY_LIMIT = 50


class StoreState(str, enum.Enum):
    LOADING = "loading"  # no history fetched yet
    IDLE = "idle"
    SENDING = "sending"  # one provisional message awaiting acknowledgement


class MessageStore:
    """The message log of a single conversation."""

    def __init__(self, gateway: GatewayClient, session_key: str | None = None, limit: int = HISTORY_LIMIT):
        self.gateway = gateway
        self.session_key = session_key or get_session_key()
        self.limit = limit
        self.draft = ""  # the unsent input buffer

        self._messages: tuple[SessionMessage, ...] = ()
        self._loaded = False
        self._sending = False
        self._listeners: list[Callable[[int], None]] = []

    @property
    def messages(self) -> tuple[SessionMessage, ...]:
        return self._messages

    @property
    def state(self) -> StoreState:
        if self._sending:
            return StoreState.SENDING
        if not self._loaded:
            return StoreState.LOADING
        return StoreState.IDLE

    def add_listener(self, callback: Callable[[int], None]) -> None:
        """Call ``callback(new_length)`` whenever the number of messages changes.

        Replacing the log with one of the same length does not notify.
        """
        self._listeners.append(callback)

    def remove_listener(self, callback: Callable[[int], None]) -> None:
        with suppress(ValueError):
            self._listeners.remove(callback)

    # ── Atomic mutations ─────────────────────────────────────────────

    def replace(self, messages) -> None:
        self._commit(tuple(messages))

    def append_provisional(self, message: SessionMessage) -> None:
        if message.local_id is None:
            raise ValueError("provisional messages need a local_id")
        self._commit(self._messages + (message,))

    def remove_provisional(self, local_id: str) -> bool:
        """Remove the provisional message with ``local_id``; False if it is already gone."""
        remaining = tuple(m for m in self._messages if m.local_id != local_id)
        if len(remaining) == len(self._messages):
            return False
        self._commit(remaining)
        return True

    def _commit(self, messages: tuple[SessionMessage, ...]) -> None:
        previous = len(self._messages)
        self._messages = messages
        if len(messages) != previous:
            self._notify(len(messages))

    def _notify(self, length: int) -> None:
        for callback in list(self._listeners):
            try:
                callback(length)
            except Exception:
                logger.exception("Message listener %r failed", callback)

    # ── Operations ───────────────────────────────────────────────────

    async def refresh(self) -> bool:
        """Replace the log with the gateway's latest history.

        Returns False and keeps the current log if the fetch fails or the
        payload has an unexpected shape; the next poll retries.
        """
        try:
            payload = await self.gateway.sessions_history(self.session_key, self.limit)
        except GatewayError as e:
            logger.warning("Failed to fetch history for %s: %s", self.session_key, e)
            self._loaded = True
            return False

        records = find_records(payload, MESSAGE_FIELDS)
        if records is None:
            logger.warning("Unexpected history payload for %s: %s", self.session_key, type(payload).__name__)
            self._loaded = True
            return False

        self.replace(normalize_messages(records))
        self._loaded = True
        return True

    async def send(self, text: str | None = None) -> bool:
        """Send ``text`` (or the draft) as the user, echoing it immediately.

        Does nothing if the text is blank or another send is in flight. The
        draft is cleared and is not restored if the send fails.
        Returns True if the gateway acknowledged the message.
        """
        if text is None:
            text = self.draft
        trimmed = text.strip()
        if not trimmed or self._sending:
            return False

        self.draft = ""
        self._sending = True

        message = SessionMessage(
            role="user",
            content=trimmed,
            timestamp=now_ms(),
            local_id=uuid.uuid4().hex,
        )
        self.append_provisional(message)

        acknowledged = False
        try:
            payload = await self.gateway.sessions_send(self.session_key, trimmed)
            acknowledged = is_acknowledged(payload)
            if not acknowledged:
                logger.warning("Gateway rejected message for %s: %r", self.session_key, payload)
        except GatewayError as e:
            logger.warning("Failed to send message to %s: %s", self.session_key, e)
        finally:
            if not acknowledged:
                self.remove_provisional(message.local_id)
            self._sending = False

        return acknowledged


class HistoryPoller:
    """Refreshes a MessageStore on a fixed interval until stopped."""

    def __init__(self, store: MessageStore, interval: float = POLL_INTERVAL_S):
        self.store = store
        self.interval = interval
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start polling; must be called from a running event loop."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Stop the timer. A send already in flight is left to finish on its own."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task

    async def __aenter__(self) -> "HistoryPoller":
        self.start()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.stop()

    async def _run(self) -> None:
        while True:
            try:
                await self.store.refresh()
            except Exception:
                logger.exception("History poll for %s failed", self.store.session_key)
            await asyncio.sleep(self.interval)
