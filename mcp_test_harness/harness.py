"""Test harness that exercises an MCP server step by step.

Each step issues one request through MCPTestClient and records exactly one
TestOutcome. Failures of any kind are recorded as FAIL outcomes and never
propagate, so a run always reaches its summary.
"""

from typing import Any, Dict, List, Optional

import structlog

from .client.errors import MCPClientError
from .client.mcp_client import MCPTestClient
from .client.models import decode_body, payload_of
from .client.response_formatter import (
    OutcomeStatus,
    OutcomeSummary,
    ResponseFormatter,
    TestOutcome,
)
from .config.loader import EventsConfig

logger = structlog.get_logger(__name__)


def describe_rpc_result(body: Any) -> str:
    """Summarise the list-valued members of a JSON-RPC result, e.g. '2 tools'."""
    if not isinstance(body, dict):
        return ""
    result = body.get("result")
    if not isinstance(result, dict):
        return ""
    return ", ".join(
        f"{len(value)} {key}" for key, value in result.items() if isinstance(value, list)
    )


class MCPTestHarness:
    """Runs health, session, event stream and JSON-RPC checks against a server.

    The harness owns the ordered outcome log; the session lives in the
    client it wraps.
    """

    def __init__(
        self,
        client: MCPTestClient,
        formatter: Optional[ResponseFormatter] = None,
        idle_timeout: Optional[float] = None,
        output_format: Optional[str] = None,
    ) -> None:
        self.client = client
        self.config = client.config
        self.formatter = formatter or ResponseFormatter(colors=self.config.output.colors)
        if idle_timeout is not None:
            self.idle_timeout = EventsConfig(idle_timeout=idle_timeout).idle_timeout
        else:
            self.idle_timeout = self.config.events.idle_timeout
        self.output_format = output_format or self.config.output.format
        self.outcomes: List[TestOutcome] = []
        self.server_name: Optional[str] = None
        self.logger = logger.bind(component="harness", base_url=client.base_url)

    @property
    def session_id(self) -> Optional[str]:
        return self.client.session_id

    def record(
        self,
        test: str,
        status: OutcomeStatus,
        message: str,
        payload: Any = None,
    ) -> TestOutcome:
        """Append one outcome to the log and print it."""
        outcome = TestOutcome(test=test, status=status, message=message, payload=payload)
        self.outcomes.append(outcome)
        self.logger.info("Outcome recorded", test=test, status=status.value, message=message)
        # json output is printed once, at the summary
        if self.output_format != "json":
            self.formatter.print_outcome(outcome)
        return outcome

    def _record_failure(self, test: str, error: MCPClientError) -> TestOutcome:
        payload = None
        if error.response_text:
            payload = payload_of(decode_body(error.response_text))
        self.logger.warning(
            "Step failed", test=test, error=str(error), error_type=type(error).__name__
        )
        return self.record(test, OutcomeStatus.FAIL, str(error), payload)

    async def check_health(self) -> bool:
        """Check that the health endpoint answers with HTTP 200."""
        try:
            result = await self.client.check_health()
        except MCPClientError as e:
            self._record_failure("Health Check", e)
            return False

        self.record("Health Check", OutcomeStatus.PASS, "Health endpoint accessible", result.payload)
        return True

    async def connect(
        self,
        client_name: Optional[str] = None,
        client_version: Optional[str] = None,
    ) -> bool:
        """Open a session; True when the server issued a session id."""
        try:
            body = await self.client.connect(
                client_name or self.config.client.name,
                client_version or self.config.client.version,
            )
        except MCPClientError as e:
            self._record_failure("Connect", e)
            return False

        server_info = body.get("serverInfo")
        server_name = server_info.get("name") if isinstance(server_info, dict) else None
        self.server_name = server_name if isinstance(server_name, str) else None
        message = "Connected successfully"
        if self.server_name:
            message += f" to {self.server_name}"
        self.record(
            "Connect",
            OutcomeStatus.PASS,
            message,
            {"sessionId": self.session_id, "response": body},
        )
        return True

    async def call_rpc(self, method: str, params: Optional[Dict[str, Any]] = None) -> Optional[Any]:
        """Call one JSON-RPC method.

        Returns:
            The decoded response, or None when the call failed. A body that
            is not a JSON object is a failure.
        """
        test = f"RPC: {method}"
        try:
            body = await self.client.call_rpc(method, params)
        except MCPClientError as e:
            self._record_failure(test, e)
            return None

        if not isinstance(body, dict):
            self.record(test, OutcomeStatus.FAIL, "Response is not a JSON-RPC object", body)
            return None

        error = body.get("error")
        if isinstance(error, dict):
            self.record(
                test,
                OutcomeStatus.INFO,
                f"RPC error {error.get('code')}: {error.get('message')}",
                body,
            )
            return body

        message = "RPC call successful"
        details = describe_rpc_result(body)
        if details:
            message += f" ({details})"
        self.record(test, OutcomeStatus.PASS, message, body)
        return body

    async def check_event_stream(self) -> bool:
        """Check the event stream.

        Receiving a first chunk passes. Hearing nothing within the idle
        timeout, or the server closing the stream without data, is recorded
        as INFO and still counts as success.
        """
        test = "Event Stream"
        try:
            probe = await self.client.probe_event_stream(self.idle_timeout)
        except MCPClientError as e:
            self._record_failure(test, e)
            return False

        if probe.status_code is None:
            self.record(
                test,
                OutcomeStatus.INFO,
                f"No event stream response within {self.idle_timeout:g} seconds",
            )
            return True

        if not probe.content_type.startswith("text/event-stream"):
            self.record(
                test,
                OutcomeStatus.FAIL,
                f"Unexpected content type: {probe.content_type or 'none'}",
                probe.chunk,
            )
            return False

        if probe.chunk is not None:
            self.record(
                test,
                OutcomeStatus.PASS,
                "Received event stream data",
                {
                    "data": probe.chunk.strip(),
                    "events": [event.to_dict() for event in probe.events],
                },
            )
        elif probe.timed_out:
            self.record(
                test,
                OutcomeStatus.INFO,
                f"No event stream data received within {self.idle_timeout:g} seconds (this is normal)",
            )
        else:
            self.record(test, OutcomeStatus.INFO, "Event stream closed by server before sending data")
        return True

    async def disconnect(self) -> None:
        """Release the session. The outcome is always INFO."""
        test = "Disconnect"
        if not self.session_id:
            self.record(test, OutcomeStatus.INFO, "No active session; disconnect skipped")
            return

        try:
            result = await self.client.disconnect()
        except MCPClientError as e:
            self.record(test, OutcomeStatus.INFO, f"Disconnect request failed: {e}")
            return

        self.record(
            test,
            OutcomeStatus.INFO,
            "Disconnect request sent",
            {"status_code": result.status_code},
        )

    async def run_all(self) -> List[TestOutcome]:
        """Run every check in order and print the summary.

        RPC calls are only made when connect produced a session.
        """
        if self.output_format != "json":
            self.formatter.print_banner("MCP Server Tests", self.client.base_url)

        await self.check_health()
        connected = await self.connect()
        await self.check_event_stream()

        if connected:
            for method in self.config.rpc.methods:
                await self.call_rpc(method)

        await self.disconnect()

        self.summarize()
        return list(self.outcomes)

    def summarize(self) -> OutcomeSummary:
        summary = self.formatter.print_summary(self.outcomes, self.output_format)
        self.logger.info("Run completed", **summary.to_dict())
        return summary
