"""Shared test fixtures for clawdeck."""

import asyncio
import json

import httpx
import pytest

from clawdeck.gateway import GatewayClient


class FakeGateway:
    """Stands in for the gateway's /tools/invoke endpoint.

    ``responses`` maps a tool name to one of:
    - a payload, returned wrapped in a success envelope
    - a callable taking the tool args and returning a payload
    - an httpx.Response, returned as-is
    - an exception, raised from the transport

    ``gates`` maps a tool name to an asyncio.Event the call waits on, so tests
    can hold a request in flight.
    """

    def __init__(self):
        self.responses = {}
        self.gates = {}
        self.calls = []

    async def handle(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        tool, args = body["tool"], body["args"]
        self.calls.append((tool, args))

        gate = self.gates.get(tool)
        if gate is not None:
            await gate.wait()

        response = self.responses.get(tool, [])
        if callable(response) and not isinstance(response, httpx.Response):
            response = response(args)
        if isinstance(response, Exception):
            raise response
        if isinstance(response, httpx.Response):
            return response
        return httpx.Response(200, json={"ok": True, "result": {"details": response}})

    def calls_to(self, tool: str) -> list[dict]:
        return [args for name, args in self.calls if name == tool]

    def client(self) -> GatewayClient:
        return GatewayClient(
            base_url="http://gateway.test",
            token="test-token",
            timeout=5.0,
            transport=httpx.MockTransport(self.handle),
        )


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def gateway(fake_gateway):
    return fake_gateway.client()


@pytest.fixture
def agents_payload():
    """agents_list result as the gateway returns it."""
    return {
        "requester": "main",
        "allowAny": False,
        "agents": [
            {
                "id": "main",
                "name": "Main",
                "default": True,
                "workspace": "/home/op/.openclaw/workspace",
                "model": {"primary": "anthropic/claude-sonnet", "fallbacks": []},
                "bindings": [
                    {"agentId": "main", "match": {"channel": "telegram"}},
                    {"agentId": "main", "match": {}},
                ],
            },
            {"id": "researcher", "configured": True, "model": "openai/gpt-4o"},
        ],
    }


@pytest.fixture
def history_payload():
    """sessions_history result: plain and multi-part messages."""
    return [
        {"role": "user", "content": "What did you find?", "timestamp": 1771322400000},
        {
            "role": "assistant",
            "content": [
                {"type": "text", "text": "Two things."},
                {"type": "toolCall", "name": "read"},
                {"type": "text", "text": "Both are in the report."},
            ],
            "timestamp": 1771322405000,
        },
    ]


async def _wait_until(predicate, timeout: float = 1.0):
    """Yield to the event loop until ``predicate()`` is true."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached")
        await asyncio.sleep(0)


@pytest.fixture
def wait_until():
    return _wait_until
