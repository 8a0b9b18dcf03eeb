"""Shared fixtures: harness configuration and a fake MCP server."""

import asyncio
import io
import json
from typing import Any, Dict, List, Optional

import httpx
import pytest
import pytest_asyncio
from rich.console import Console

from mcp_test_harness.client.response_formatter import ResponseFormatter
from mcp_test_harness.config.loader import HarnessConfig

BASE_URL = "http://mcp.test"


async def _stream(chunks: List[bytes]):
    for chunk in chunks:
        yield chunk


async def _silent_stream():
    await asyncio.sleep(3600)
    yield b""


class FakeMCPServer:
    """In-process stand-in for the remote server's /api/v1 endpoints.

    Each attribute describes how one endpoint answers; every request is kept
    in ``requests`` for later assertions.
    """

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.health_status = 200
        self.health_body: Any = {"status": "ok"}
        self.connect_status = 200
        self.connect_body: Any = {"sessionId": "abc123", "serverInfo": {"name": "demo"}}
        self.rpc_status = 200
        self.rpc_results: Dict[str, Any] = {
            "ping": {},
            "tools/list": {"tools": [{"name": "x"}]},
            "resources/list": {"resources": [{"uri": "github://user"}, {"uri": "github://repositories"}]},
        }
        self.rpc_raw_body: Optional[str] = None
        self.events_status = 200
        self.events_content_type = "text/event-stream"
        # None keeps the stream open without ever sending data
        self.event_chunks: Optional[List[bytes]] = [
            b'event: connected\ndata: {"sessionId": "abc123"}\n\n'
        ]
        self.disconnect_status = 204
        self.fail_paths: Dict[str, Exception] = {}

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handle)

    def requests_to(self, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path == path]

    @staticmethod
    def _body(status: int, body: Any) -> httpx.Response:
        if isinstance(body, str):
            return httpx.Response(status, text=body)
        return httpx.Response(status, json=body)

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path in self.fail_paths:
            raise self.fail_paths[path]

        if path == "/api/v1/health":
            return self._body(self.health_status, self.health_body)

        if path == "/api/v1/connect":
            return self._body(self.connect_status, self.connect_body)

        if path == "/api/v1/rpc":
            if self.rpc_raw_body is not None:
                return httpx.Response(self.rpc_status, text=self.rpc_raw_body)
            envelope = json.loads(request.content)
            method = envelope["method"]
            if method not in self.rpc_results:
                return httpx.Response(self.rpc_status, json={
                    "jsonrpc": "2.0",
                    "error": {"code": -32601, "message": "Method not found"},
                    "id": envelope["id"],
                })
            return httpx.Response(self.rpc_status, json={
                "jsonrpc": "2.0",
                "result": self.rpc_results[method],
                "id": envelope["id"],
            })

        if path == "/api/v1/events":
            if self.events_status != 200:
                return httpx.Response(self.events_status, json={"error": "Invalid session"})
            headers = {"content-type": self.events_content_type}
            if self.event_chunks is None:
                return httpx.Response(200, headers=headers, content=_silent_stream())
            return httpx.Response(200, headers=headers, content=_stream(self.event_chunks))

        if path == "/api/v1/disconnect":
            return httpx.Response(self.disconnect_status)

        return httpx.Response(404, json={"error": "Not found"})


@pytest.fixture
def fake_server() -> FakeMCPServer:
    return FakeMCPServer()


@pytest.fixture
def harness_config() -> HarnessConfig:
    config = HarnessConfig()
    config.server.base_url = BASE_URL
    config.events.idle_timeout = 0.2
    config.output.colors = False
    return config


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def formatter(output: io.StringIO) -> ResponseFormatter:
    console = Console(file=output, force_terminal=False, color_system=None, width=120)
    return ResponseFormatter(console, colors=False)


@pytest_asyncio.fixture
async def silent_server():
    """A TCP server that accepts connections but never answers.

    Yields its base URL. Requests to it never receive response headers.
    """
    writers: List[asyncio.StreamWriter] = []

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        writers.append(writer)
        try:
            await reader.read(-1)
        finally:
            writer.close()

    server = await asyncio.start_server(handle, "127.0.0.1", 0)
    port = server.sockets[0].getsockname()[1]
    try:
        yield f"http://127.0.0.1:{port}"
    finally:
        for writer in writers:
            writer.close()
        server.close()
        await server.wait_closed()
