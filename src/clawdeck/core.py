"""Core data models for clawdeck."""

from dataclasses import dataclass, field
from typing import Optional, Union


@dataclass(frozen=True)
class Binding:
    """Routes traffic from a channel to an agent."""

    agent_id: str = ""
    match_channel: Optional[str] = None  # None means "any channel"


@dataclass(frozen=True)
class Agent:
    """An agent configured in the gateway."""

    id: str
    name: Optional[str] = None
    is_default: bool = False
    workspace: Optional[str] = None
    model: Optional[str] = None
    bindings: tuple[Binding, ...] = ()


@dataclass(frozen=True)
class Session:
    """A gateway session; the task board is derived from these."""

    key: str
    kind: str = "unknown"  # "cron" | "direct" | "group" | ...
    display_name: Optional[str] = None
    channel: Optional[str] = None
    updated_at: Optional[int] = None  # epoch milliseconds


@dataclass(frozen=True)
class ContentPart:
    """One typed part of a message body."""

    type: str
    text: Optional[str] = None
    data: dict = field(default_factory=dict, compare=False)  # the raw part


MessageContent = Union[str, tuple[ContentPart, ...]]


@dataclass(frozen=True)
class SessionMessage:
    """A single message within a conversation."""

    role: str  # "user" | "assistant" | "tool" | ...
    content: MessageContent
    timestamp: Optional[int] = None  # epoch milliseconds
    local_id: Optional[str] = None  # set only on provisional (unacknowledged) messages

    @property
    def provisional(self) -> bool:
        return self.local_id is not None


@dataclass(frozen=True)
class WorkspaceFile:
    """A report or feedback file in an agent workspace."""

    name: str
    path: str  # e.g. "report/17-02-2026.md"
    date: str  # "DD-MM-YYYY" found in the name, else the name itself
    agent_id: str

    @property
    def title(self) -> str:
        return self.name.replace(".md", "", 1)


@dataclass
class TaskBuckets:
    """Sessions partitioned for the task board."""

    upcoming: list[Session] = field(default_factory=list)
    ongoing: list[Session] = field(default_factory=list)
    done: list[Session] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.upcoming) + len(self.ongoing) + len(self.done)
