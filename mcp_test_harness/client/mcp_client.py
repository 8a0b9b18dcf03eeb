"""HTTP client for testing an MCP server.

This module provides an async HTTP client for the session, JSON-RPC, event
stream and health endpoints an MCP server exposes over HTTP. The client holds
the session id issued by the server and attaches it to later requests.
"""

import asyncio
import itertools
import time
from typing import Any, Dict, Optional

import httpx
import structlog

from ..config.loader import HarnessConfig
from .errors import (
    MCPClientError,
    MCPConnectionError,
    MCPDecodeError,
    MCPHTTPError,
    MCPTimeoutError,
)
from .models import (
    ClientInfo,
    ConnectRequest,
    HTTPResult,
    RpcEnvelope,
    StreamProbe,
    decode_body,
    parse_sse_chunk,
)

logger = structlog.get_logger(__name__)

SESSION_HEADER = "X-Session-ID"


class MCPTestClient:
    """Async HTTP client for testing an MCP server.

    Every operation attempts exactly once. Transport failures are raised as
    MCPConnectionError or MCPTimeoutError, unexpected statuses as MCPHTTPError
    and non-JSON bodies (where JSON is required) as MCPDecodeError.
    """

    def __init__(
        self,
        config: HarnessConfig,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize the MCP test client.

        Args:
            config: Harness configuration containing server settings
            transport: Optional httpx transport, used to substitute the network
        """
        self.config = config
        self.base_url = config.server.base_url.rstrip("/")
        self.timeout = config.server.timeout

        self._headers = {
            "Content-Type": "application/json",
            "User-Agent": config.client.user_agent,
        }
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        self._session_id: Optional[str] = None
        self._rpc_ids = itertools.count(1)
        self._logger = logger.bind(base_url=self.base_url)

    @property
    def session_id(self) -> Optional[str]:
        """Session id issued by the last successful connect, if any."""
        return self._session_id

    def clear_session(self) -> None:
        self._session_id = None

    async def __aenter__(self) -> "MCPTestClient":
        """Async context manager entry."""
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is initialized."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self._headers,
                timeout=httpx.Timeout(self.timeout, connect=10.0),
                verify=self.config.client.verify_ssl,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client and cleanup resources."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _session_headers(self) -> Dict[str, str]:
        if self._session_id:
            return {SESSION_HEADER: self._session_id}
        return {}

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        data: Optional[Dict[str, Any]] = None,
        expected_status: Optional[int] = 200,
    ) -> HTTPResult:
        """Make a single HTTP request and decode its body.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: Endpoint path below the API prefix
            data: Request body, sent as JSON
            expected_status: Status required for success, None to accept any

        Returns:
            Response status, headers and decoded body

        Raises:
            MCPTimeoutError: If request times out
            MCPConnectionError: If connection fails
            MCPHTTPError: If the status differs from expected_status
        """
        client = await self._ensure_client()
        path = self.config.server.path(endpoint)
        request_logger = self._logger.bind(method=method, path=path)

        request_logger.debug("Making request", has_session=bool(self._session_id))
        start_time = time.perf_counter()

        try:
            response = await client.request(
                method,
                path,
                json=data,
                headers=self._session_headers(),
            )
        except httpx.TimeoutException as e:
            request_logger.warning("Request timeout", error=str(e))
            raise MCPTimeoutError(
                f"Request to {self.base_url}{path} timed out after {self.timeout}s"
            ) from e
        except httpx.HTTPError as e:
            request_logger.warning("Connection error", error=str(e), error_type=type(e).__name__)
            raise MCPConnectionError(f"Failed to connect to {self.base_url}{path}: {e}") from e
        except Exception as e:
            request_logger.error("Unexpected error", error=str(e), error_type=type(e).__name__)
            raise MCPClientError(f"Unexpected error: {e}") from e

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        result = HTTPResult(
            status_code=response.status_code,
            headers=dict(response.headers),
            text=response.text,
            body=decode_body(response.text),
            elapsed_ms=elapsed_ms,
        )

        request_logger.debug(
            "Request completed",
            status_code=result.status_code,
            elapsed_ms=round(elapsed_ms, 2),
        )

        if expected_status is not None and result.status_code != expected_status:
            raise MCPHTTPError(
                f"HTTP {result.status_code}",
                status_code=result.status_code,
                response_text=result.text,
            )

        return result

    async def check_health(self) -> HTTPResult:
        """Check the health endpoint.

        Raises:
            MCPClientError: If the request fails or the status is not 200
        """
        self._logger.debug("Checking server health")
        return await self._make_request("GET", self.config.server.health_endpoint)

    async def connect(self, client_name: str, client_version: str) -> Dict[str, Any]:
        """Open a session and remember the session id the server issues.

        Args:
            client_name: clientInfo.name to present
            client_version: clientInfo.version to present

        Returns:
            The decoded connect response

        Raises:
            MCPClientError: If the request fails, the status is not 200, or
                the body is not a JSON object carrying a sessionId
        """
        request_data = ConnectRequest(
            clientInfo=ClientInfo(name=client_name, version=client_version)
        )

        self._logger.info("Connecting", client_name=client_name, client_version=client_version)

        result = await self._make_request(
            "POST",
            self.config.server.connect_endpoint,
            data=request_data.model_dump(),
        )
        body = result.json()

        session_id = body.get("sessionId") if isinstance(body, dict) else None
        if not isinstance(session_id, str) or not session_id:
            raise MCPDecodeError("Response missing sessionId", response_text=result.text)

        self._session_id = session_id
        self._logger.info("Session established", session_id=session_id)
        return body  # type: ignore[no-any-return]

    def build_envelope(self, method: str, params: Optional[Dict[str, Any]] = None) -> RpcEnvelope:
        """Build a JSON-RPC envelope with a fresh request id."""
        return RpcEnvelope(id=next(self._rpc_ids), method=method, params=params or {})

    async def call_rpc(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Send one JSON-RPC request and return the decoded response.

        Raises:
            MCPClientError: If the request fails, the status is not 200 or
                the body is not JSON
        """
        envelope = self.build_envelope(method, params)

        self._logger.info("Calling RPC method", method=method, rpc_id=envelope.id)

        result = await self._make_request(
            "POST",
            self.config.server.rpc_endpoint,
            data=envelope.model_dump(),
        )
        return result.json()

    async def disconnect(self) -> HTTPResult:
        """Ask the server to release the session.

        The response status is not checked. The held session is cleared even
        when the request fails.
        """
        self._logger.info("Disconnecting", session_id=self._session_id)
        try:
            return await self._make_request(
                "POST",
                self.config.server.disconnect_endpoint,
                expected_status=None,
            )
        finally:
            self.clear_session()

    async def probe_event_stream(self, idle_timeout: float) -> StreamProbe:
        """Open the event stream and wait for its first chunk.

        The idle timeout races the response headers and the first chunk
        together; whichever finishes first decides the probe and the other is
        cancelled. A probe that timed out before headers arrived has no
        status_code. The stream is closed before returning in every case.

        Args:
            idle_timeout: Seconds to wait for the headers and first chunk

        Raises:
            MCPTimeoutError: If the connection times out
            MCPConnectionError: If connection fails
            MCPHTTPError: If the status is not 200
        """
        client = await self._ensure_client()
        path = self.config.server.path(self.config.server.events_endpoint)
        headers = {
            "Accept": "text/event-stream",
            "Cache-Control": "no-cache",
            SESSION_HEADER: self._session_id or self.config.client.placeholder_session,
        }
        stream_logger = self._logger.bind(path=path, idle_timeout=idle_timeout)

        # written by read_first_chunk once headers arrive, so a timed-out
        # probe still reports the status and content type it saw
        opened: Dict[str, StreamProbe] = {}

        async def read_first_chunk() -> StreamProbe:
            async with client.stream(
                "GET",
                path,
                headers=headers,
                timeout=httpx.Timeout(self.timeout, connect=10.0, read=None),
            ) as response:
                probe = StreamProbe(
                    status_code=response.status_code,
                    content_type=response.headers.get("content-type", ""),
                )
                if response.status_code != 200:
                    await response.aread()
                    raise MCPHTTPError(
                        f"HTTP {response.status_code}",
                        status_code=response.status_code,
                        response_text=response.text,
                    )

                opened["probe"] = probe
                stream_logger.debug("Event stream opened", content_type=probe.content_type)

                chunks = response.aiter_text()
                try:
                    chunk = await chunks.__anext__()
                except StopAsyncIteration:
                    probe.closed = True
                else:
                    probe.chunk = chunk
                    probe.events = parse_sse_chunk(chunk)
                finally:
                    await chunks.aclose()
                return probe

        try:
            first_chunk = asyncio.create_task(read_first_chunk())
            idle = asyncio.create_task(asyncio.sleep(idle_timeout))
            try:
                done, _ = await asyncio.wait(
                    {first_chunk, idle}, return_when=asyncio.FIRST_COMPLETED
                )
            finally:
                for task in (first_chunk, idle):
                    task.cancel()
                await asyncio.gather(first_chunk, idle, return_exceptions=True)

            if first_chunk in done:
                probe = first_chunk.result()
            else:
                probe = opened.get("probe") or StreamProbe(status_code=None, content_type="")
                probe.timed_out = True

        except httpx.TimeoutException as e:
            stream_logger.warning("Event stream timeout", error=str(e))
            raise MCPTimeoutError(f"Event stream at {self.base_url}{path} timed out") from e
        except httpx.HTTPError as e:
            stream_logger.warning("Event stream error", error=str(e), error_type=type(e).__name__)
            raise MCPConnectionError(f"Failed to open event stream {self.base_url}{path}: {e}") from e
        except MCPClientError:
            raise
        except Exception as e:
            stream_logger.error("Unexpected error", error=str(e), error_type=type(e).__name__)
            raise MCPClientError(f"Unexpected error: {e}") from e

        stream_logger.debug(
            "Event stream closed",
            timed_out=probe.timed_out,
            headers_received=probe.status_code is not None,
            closed_by_server=probe.closed,
            events=len(probe.events),
        )
        return probe
