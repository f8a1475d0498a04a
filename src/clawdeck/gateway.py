"""Async client for the agent gateway's /tools/invoke endpoint.

Every remote operation is a named tool invoked with a mapping of arguments:

    POST {gateway}/tools/invoke  {"tool": "agents_list", "args": {}}

The gateway wraps results in an envelope:

    {"ok": true, "result": {"details": ...}}
    {"ok": false, "error": {"message": "..."}}

Only the envelope is interpreted here. Results are returned as decoded JSON of
whatever shape the tool produced; see ``normalize`` for turning them into records.
"""

import logging
from typing import Any

import httpx

from .config import get_gateway_timeout, get_gateway_token, get_gateway_url

logger = logging.getLogger(__name__)


class GatewayError(Exception):
    """A remote operation failed: transport error, bad body, or a rejected call."""

    def __init__(self, tool: str, message: str):
        super().__init__(f"{tool}: {message}")
        self.tool = tool
        self.message = message


class GatewayClient:
    """Invokes gateway tools over HTTP."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = (base_url or get_gateway_url()).rstrip("/")
        token = token if token is not None else get_gateway_token()

        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout if timeout is not None else get_gateway_timeout(),
            transport=transport,
        )

    async def __aenter__(self) -> "GatewayClient":
        return self

    async def __aexit__(self, *exc) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def invoke(self, tool: str, args: dict | None = None) -> Any:
        """Invoke ``tool`` and return its unwrapped result.

        Raises GatewayError on transport failure, a non-JSON body, or ``ok: false``.
        """
        logger.debug("Invoking gateway tool %s", tool)
        try:
            resp = await self._client.post("/tools/invoke", json={"tool": tool, "args": args or {}})
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise GatewayError(tool, str(e) or type(e).__name__) from e

        try:
            data = resp.json()
        except ValueError as e:
            raise GatewayError(tool, "response is not JSON") from e

        if not isinstance(data, dict):
            return data

        if data.get("ok") is False:
            error = data.get("error")
            if isinstance(error, dict):
                message = error.get("message") or "request rejected"
            else:
                message = str(error) if error else "request rejected"
            raise GatewayError(tool, message)

        if "result" not in data:
            return data

        result = data["result"]
        if isinstance(result, dict) and "details" in result:
            return result["details"]
        return result

    # ── Tools ────────────────────────────────────────────────────────

    async def agents_list(self) -> Any:
        return await self.invoke("agents_list")

    async def sessions_list(self, message_limit: int = 1) -> Any:
        return await self.invoke("sessions_list", {"messageLimit": message_limit})

    async def sessions_history(self, session_key: str, limit: int = 50) -> Any:
        return await self.invoke("sessions_history", {"sessionKey": session_key, "limit": limit})

    async def sessions_send(self, session_key: str, message: str) -> Any:
        return await self.invoke("sessions_send", {"sessionKey": session_key, "message": message})

    async def list_directory(self, path: str, agent_id: str) -> Any:
        return await self.invoke("list_directory", {"path": path, "agentId": agent_id})

    async def read_file(self, path: str, agent_id: str) -> Any:
        return await self.invoke("read_file", {"path": path, "agentId": agent_id})
