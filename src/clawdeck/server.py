"""FastAPI web server for clawdeck.

Every route returns already-normalized records. Gateway failures come back as
empty lists or fallback text, never as error responses.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import Body, FastAPI, HTTPException, Query

from .agents import fetch_agents
from .chat import HistoryPoller, MessageStore, StoreState
from .core import Agent, Session, SessionMessage, WorkspaceFile
from .gateway import GatewayClient
from .normalize import message_text
from .tasks import categorize, fetch_sessions
from .workspace import DEFAULT_AGENT_ID, FILE_CATEGORIES, list_workspace_files, read_workspace_file

logger = logging.getLogger(__name__)

# Shared state (created on first use)
_gateway: GatewayClient | None = None
_store: MessageStore | None = None
_poller: HistoryPoller | None = None


def _get_gateway() -> GatewayClient:
    global _gateway
    if _gateway is None:
        _gateway = GatewayClient()
        logger.info("Using gateway at %s", _gateway.base_url)
    return _gateway


def _get_store() -> MessageStore:
    global _store
    if _store is None:
        _store = MessageStore(_get_gateway())
    return _store


@asynccontextmanager
async def lifespan(_: FastAPI):
    global _poller, _gateway, _store
    _poller = HistoryPoller(_get_store())
    _poller.start()
    try:
        yield
    finally:
        await _poller.stop()
        _poller = None
        if _gateway is not None:
            await _gateway.aclose()
        _gateway = None
        _store = None


app = FastAPI(title="clawdeck", version="0.1.0", lifespan=lifespan)


def _agent_to_dict(agent: Agent) -> dict:
    return {
        "id": agent.id,
        "name": agent.name,
        "default": agent.is_default,
        "workspace": agent.workspace,
        "model": agent.model,
        "bindings": [
            {"agentId": b.agent_id, "channel": b.match_channel or "any"}
            for b in agent.bindings
        ],
    }


def _session_to_dict(session: Session) -> dict:
    return {
        "key": session.key,
        "kind": session.kind,
        "displayName": session.display_name or session.key,
        "channel": session.channel,
        "updatedAt": session.updated_at,
    }


def _file_to_dict(file: WorkspaceFile) -> dict:
    return {
        "name": file.name,
        "title": file.title,
        "path": file.path,
        "date": file.date,
        "agentId": file.agent_id,
    }


def _message_to_dict(msg: SessionMessage) -> dict:
    if isinstance(msg.content, str):
        content = msg.content
    else:
        content = [part.data or {"type": part.type, "text": part.text} for part in msg.content]
    return {
        "role": msg.role,
        "text": message_text(msg.content),
        "content": content,
        "timestamp": msg.timestamp,
        "provisional": msg.provisional,
    }


def _chat_to_dict(store: MessageStore) -> dict:
    return {
        "sessionKey": store.session_key,
        "state": store.state.value,
        "messages": [_message_to_dict(m) for m in store.messages],
    }


# ── Routes ───────────────────────────────────────────────────────


@app.get("/api/agents")
async def get_agents():
    """Return all agents configured in the gateway."""
    agents = await fetch_agents(_get_gateway())
    return [_agent_to_dict(a) for a in agents]


@app.get("/api/sessions")
async def get_sessions(message_limit: int = Query(1, alias="messageLimit", ge=0, le=100)):
    """Return gateway sessions."""
    sessions = await fetch_sessions(_get_gateway(), message_limit)
    return [_session_to_dict(s) for s in sessions]


@app.get("/api/tasks")
async def get_tasks():
    """Return sessions split into upcoming, ongoing and done."""
    buckets = categorize(await fetch_sessions(_get_gateway()))
    return {
        "upcoming": [_session_to_dict(s) for s in buckets.upcoming],
        "ongoing": [_session_to_dict(s) for s in buckets.ongoing],
        "done": [_session_to_dict(s) for s in buckets.done],
    }


@app.get("/api/workspace/files")
async def get_workspace_files(
    type: str | None = Query(None, description="File category: report or feedback"),
    agent_id: str = Query(DEFAULT_AGENT_ID, alias="agentId"),
    file: str | None = Query(None, description="Path of a file to read"),
):
    """List files of a category, or return one file's content when ``file`` is given."""
    if type not in FILE_CATEGORIES:
        raise HTTPException(status_code=400, detail="type must be 'report' or 'feedback'")

    if file:
        return {"content": await read_workspace_file(_get_gateway(), file, agent_id)}

    files = await list_workspace_files(_get_gateway(), type, agent_id)
    return [_file_to_dict(f) for f in files]


@app.get("/api/chat")
async def get_chat():
    """Return the conversation log."""
    store = _get_store()
    if store.state is StoreState.LOADING:
        await store.refresh()
    return _chat_to_dict(store)


@app.post("/api/chat/refresh")
async def refresh_chat():
    """Fetch history now instead of waiting for the next poll."""
    store = _get_store()
    await store.refresh()
    return _chat_to_dict(store)


@app.post("/api/chat/send")
async def send_chat(message: str = Body(..., embed=True)):
    """Send a message as the operator."""
    store = _get_store()
    ok = await store.send(message)
    return {"ok": ok, **_chat_to_dict(store)}
