"""Turn loosely-shaped gateway results into typed records.

Gateway tools are not consistent about how they return collections. Two shapes
are recognised, checked in order:

- A bare list: ``[{...}, {...}]``
- A mapping with the list under a known field: ``{"agents": [...]}``,
  ``{"sessions": [...]}``, ``{"messages": [...]}``, ``{"files": [...]}`` or
  ``{"entries": [...]}``

Anything else normalizes to an empty list. None of the functions here raise on
bad input; entries that cannot be turned into a record are dropped.
"""

from datetime import datetime, timezone
from typing import Any, Iterable, Optional

from .core import Agent, Binding, ContentPart, MessageContent, Session, SessionMessage

AGENT_FIELDS = ("agents",)
SESSION_FIELDS = ("sessions",)
MESSAGE_FIELDS = ("messages",)
ENTRY_FIELDS = ("files", "entries")


def find_records(payload: Any, fields: Iterable[str]) -> Optional[list]:
    """Return the record list in ``payload``, or None if no known shape matches."""
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for name in fields:
            value = payload.get(name)
            if isinstance(value, list):
                return value
    return None


def extract_records(payload: Any, fields: Iterable[str]) -> list:
    """Like find_records, but an unrecognised payload yields an empty list."""
    records = find_records(payload, fields)
    return records if records is not None else []


# ── Agents ───────────────────────────────────────────────────────────


def normalize_agents(payload: Any) -> list[Agent]:
    agents = []
    for entry in extract_records(payload, AGENT_FIELDS):
        agent = _to_agent(entry)
        if agent:
            agents.append(agent)
    return agents


def _to_agent(entry: Any) -> Agent | None:
    if isinstance(entry, str):
        return Agent(id=entry) if entry else None
    if not isinstance(entry, dict):
        return None

    agent_id = _str_or_none(entry.get("id"))
    if not agent_id:
        return None

    model = entry.get("model")
    if isinstance(model, dict):
        # {"primary": "anthropic/...", "fallbacks": [...]}
        model = model.get("primary")

    bindings = entry.get("bindings")
    if not isinstance(bindings, list):
        bindings = []

    return Agent(
        id=agent_id,
        name=_str_or_none(entry.get("name")),
        is_default=bool(entry.get("default", False)),
        workspace=_str_or_none(entry.get("workspace")),
        model=_str_or_none(model),
        bindings=tuple(_to_binding(b, agent_id) for b in bindings if isinstance(b, dict)),
    )


def _to_binding(entry: dict, agent_id: str) -> Binding:
    match = entry.get("match")
    channel = match.get("channel") if isinstance(match, dict) else None
    return Binding(
        agent_id=_str_or_none(entry.get("agentId")) or agent_id,
        match_channel=_str_or_none(channel),
    )


# ── Sessions ─────────────────────────────────────────────────────────


def normalize_sessions(payload: Any) -> list[Session]:
    sessions = []
    for entry in extract_records(payload, SESSION_FIELDS):
        if isinstance(entry, str):
            if entry:
                sessions.append(Session(key=entry))
            continue
        if not isinstance(entry, dict):
            continue

        key = _str_or_none(entry.get("key"))
        if not key:
            continue

        sessions.append(Session(
            key=key,
            kind=_str_or_none(entry.get("kind")) or "unknown",
            display_name=_str_or_none(entry.get("displayName")),
            channel=_str_or_none(entry.get("channel")),
            updated_at=to_epoch_ms(entry.get("updatedAt")),
        ))
    return sessions


# ── Messages ─────────────────────────────────────────────────────────


def normalize_messages(payload: Any) -> list[SessionMessage]:
    return [_to_message(entry) for entry in extract_records(payload, MESSAGE_FIELDS)
            if isinstance(entry, dict)]


def _to_message(entry: dict) -> SessionMessage:
    return SessionMessage(
        role=_str_or_none(entry.get("role")) or "assistant",
        content=normalize_content(entry.get("content")),
        timestamp=to_epoch_ms(entry.get("timestamp")),
    )


def normalize_content(content: Any) -> MessageContent:
    """Coerce raw message content into a string or a tuple of parts."""
    if isinstance(content, str):
        return content
    if content is None:
        return ""
    if isinstance(content, (list, tuple)):
        parts = []
        for part in content:
            if isinstance(part, ContentPart):
                parts.append(part)
            elif isinstance(part, dict):
                text = part.get("text")
                parts.append(ContentPart(
                    type=str(part.get("type", "")),
                    text=text if isinstance(text, str) else None,
                    data=part,
                ))
            else:
                parts.append(ContentPart(type="unknown", data={"value": part}))
        return tuple(parts)
    return str(content)


def message_text(content: Any) -> str:
    """Return the displayable text of a message body.

    Strings are returned as-is. For a list of parts, the text of every
    ``type == "text"`` part is joined with newlines; other parts (images,
    tool calls) are skipped.
    """
    if isinstance(content, str):
        return content
    if isinstance(content, (list, tuple)):
        texts = []
        for part in content:
            if isinstance(part, ContentPart):
                part_type, text = part.type, part.text
            elif isinstance(part, dict):
                part_type, text = part.get("type"), part.get("text")
            else:
                continue
            if part_type == "text" and text:
                texts.append(str(text))
        return "\n".join(texts)
    return str(content)


# ── Scalars ──────────────────────────────────────────────────────────


def to_epoch_ms(value: Any) -> int | None:
    """Convert a millisecond timestamp or ISO 8601 string to epoch ms, or None."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return _ms_or_none(value)
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
        try:
            return _ms_or_none(float(value))
        except ValueError:
            pass
        parsed = _parse_iso(value)
        if parsed:
            return int(parsed.timestamp() * 1000)
    return None


def _ms_or_none(value: float) -> int | None:
    try:
        return int(value)
    except (ValueError, OverflowError):
        return None


def _parse_iso(value: str) -> datetime | None:
    """Parse an ISO 8601 datetime string; naive values are taken as UTC."""
    try:
        if value.endswith("Z"):
            value = value[:-1] + "+00:00"
        parsed = datetime.fromisoformat(value)
    except (ValueError, TypeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _str_or_none(value: Any) -> str | None:
    if value is None:
        return None
    if isinstance(value, str):
        return value or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def is_acknowledged(payload: Any) -> bool:
    """Return False if a sessions_send result is a negative acknowledgement."""
    if isinstance(payload, dict):
        if payload.get("ok", True) is False:
            return False
        return payload.get("status") != "error"
    return payload is not False
