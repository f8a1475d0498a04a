"""Report and feedback files stored in agent workspaces.

Each agent keeps dated markdown files under a directory per category:

    report/17-02-2026.md
    feedback/18-02-2026.md

Listing and reading are separate gateway calls. A listing only gives names
(sometimes with paths), never content.
"""

import logging
import re
from typing import Any, Iterable

from .core import WorkspaceFile
from .gateway import GatewayClient, GatewayError
from .normalize import ENTRY_FIELDS, extract_records

logger = logging.getLogger(__name__)

FILE_CATEGORIES = ("report", "feedback")
DEFAULT_AGENT_ID = "main"

NO_CONTENT = "No content available."
LOAD_FAILED = "Failed to load file content."

_DATE_RE = re.compile(r"(\d{2}-\d{2}-\d{4})")


def index_files(entries: Iterable[Any], category: str, agent_id: str) -> list[WorkspaceFile]:
    """Build WorkspaceFile records from raw directory-listing entries."""
    files = []
    for entry in entries:
        file = _to_workspace_file(entry, category, agent_id)
        if file:
            files.append(file)
    return files


def _to_workspace_file(entry: Any, category: str, agent_id: str) -> WorkspaceFile | None:
    if isinstance(entry, str):
        name = entry
        path = f"{category}/{entry}"
    elif isinstance(entry, dict):
        raw_name = entry.get("name")
        name = str(raw_name) if raw_name is not None else str(entry)
        raw_path = entry.get("path")
        path = str(raw_path) if raw_path is not None else f"{category}/{name}"
    else:
        name = str(entry)
        path = f"{category}/{name}"

    # The name doubles as the sort key, so an empty one has nothing to order by
    if not name:
        return None

    return WorkspaceFile(name=name, path=path, date=date_key(name), agent_id=agent_id)


def date_key(name: str) -> str:
    """Return the first DD-MM-YYYY found in ``name``, else ``name`` itself."""
    match = _DATE_RE.search(name)
    return match.group(1) if match else name


def sort_newest_first(files: Iterable[WorkspaceFile]) -> list[WorkspaceFile]:
    """Order files by descending date key. Ties keep their listing order."""
    return sorted(files, key=lambda f: f.date, reverse=True)


async def list_workspace_files(
    gateway: GatewayClient, category: str, agent_id: str = DEFAULT_AGENT_ID
) -> list[WorkspaceFile]:
    """List a category directory for an agent, newest first.

    Gateway failures yield an empty list.
    """
    try:
        payload = await gateway.list_directory(category, agent_id)
    except GatewayError as e:
        logger.warning("Failed to list %s files for agent %s: %s", category, agent_id, e)
        return []

    entries = extract_records(payload, ENTRY_FIELDS)
    return sort_newest_first(index_files(entries, category, agent_id))


async def read_workspace_file(gateway: GatewayClient, path: str, agent_id: str = DEFAULT_AGENT_ID) -> str:
    """Return the text of a workspace file, or a fallback message if it can't be read."""
    try:
        payload = await gateway.read_file(path, agent_id)
    except GatewayError as e:
        logger.error("Failed to read %s for agent %s: %s", path, agent_id, e)
        return LOAD_FAILED

    return file_content(payload)


def file_content(payload: Any) -> str:
    """Coerce a read_file result to text."""
    if isinstance(payload, str):
        return payload
    if isinstance(payload, dict):
        content = payload.get("content")
        if content is None:
            return NO_CONTENT
        return str(content)
    return NO_CONTENT
