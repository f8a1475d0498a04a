"""Derive the task board from gateway sessions.

Sessions fall into exactly one column:

- upcoming: scheduled (``cron``) sessions, however recently they ran
- ongoing: sessions updated within the last 30 minutes
- done: everything else, including sessions with no update time
"""

import logging
import time
from typing import Iterable

from .core import Session, TaskBuckets
from .gateway import GatewayClient, GatewayError
from .normalize import normalize_sessions

logger = logging.getLogger(__name__)

ONGOING_WINDOW_MS = 30 * 60 * 1000


def categorize(sessions: Iterable[Session], now: int | None = None) -> TaskBuckets:
    """Partition sessions into upcoming/ongoing/done as of ``now`` (epoch ms)."""
    if now is None:
        now = now_ms()

    buckets = TaskBuckets()
    for session in sessions:
        if session.kind == "cron":
            buckets.upcoming.append(session)
        elif session.updated_at is not None and now - session.updated_at < ONGOING_WINDOW_MS:
            buckets.ongoing.append(session)
        else:
            buckets.done.append(session)
    return buckets


def now_ms() -> int:
    return int(time.time() * 1000)


async def fetch_sessions(gateway: GatewayClient, message_limit: int = 1) -> list[Session]:
    """Fetch and normalize the session list; gateway failures yield an empty list."""
    try:
        payload = await gateway.sessions_list(message_limit)
    except GatewayError as e:
        logger.warning("Failed to list sessions: %s", e)
        return []
    return normalize_sessions(payload)
