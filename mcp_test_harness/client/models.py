"""Request and response models used by the MCP test client."""

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field

from .errors import MCPDecodeError


class ClientInfo(BaseModel):
    """Client identification sent on connect."""

    name: str = Field(..., description="Client name")
    version: str = Field(..., description="Client version")


class ConnectRequest(BaseModel):
    """Request model for opening a session."""

    clientInfo: ClientInfo = Field(..., description="Client identification")


class RpcEnvelope(BaseModel):
    """JSON-RPC 2.0 request object."""

    jsonrpc: str = Field(default="2.0", description="Protocol version tag")
    id: int = Field(..., description="Request identifier, unique per client")
    method: str = Field(..., description="Method name")
    params: Dict[str, Any] = Field(default_factory=dict, description="Method parameters")


@dataclass(frozen=True)
class JsonBody:
    """A response body that decoded as JSON."""

    value: Any


@dataclass(frozen=True)
class RawBody:
    """A response body kept as text because it is not JSON."""

    text: str


Decoded = Union[JsonBody, RawBody]


def decode_body(text: str) -> Decoded:
    """Decode a body as JSON, falling back to the raw text."""
    if not text.strip():
        return RawBody(text)
    try:
        return JsonBody(json.loads(text))
    except ValueError:
        return RawBody(text)


def payload_of(decoded: Decoded) -> Any:
    """Return the decoded JSON value, or the raw text."""
    if isinstance(decoded, JsonBody):
        return decoded.value
    return decoded.text


@dataclass
class HTTPResult:
    """Status, headers and best-effort decoded body of one response."""

    status_code: int
    headers: Dict[str, str]
    text: str
    body: Decoded
    elapsed_ms: float = 0.0

    @property
    def payload(self) -> Any:
        return payload_of(self.body)

    def json(self) -> Any:
        """Return the JSON body.

        Raises:
            MCPDecodeError: If the body is not JSON
        """
        if isinstance(self.body, JsonBody):
            return self.body.value
        raise MCPDecodeError("Response body is not valid JSON", response_text=self.text)


@dataclass
class SSEEvent:
    """One event parsed from a text/event-stream chunk."""

    event: str = "message"
    data: Any = None
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"event": self.event, "data": self.data}
        if self.id is not None:
            result["id"] = self.id
        return result


def parse_sse_chunk(text: str) -> List[SSEEvent]:
    """Parse the complete events contained in a chunk of an event stream.

    Comment lines (starting with ':') are ignored, multiple data lines are
    joined with newlines and the data is decoded best-effort as JSON. A
    trailing event without its blank-line terminator is still returned.
    """
    events: List[SSEEvent] = []
    fields: Dict[str, Any] = {}
    data_lines: List[str] = []

    def flush() -> None:
        if not data_lines and not fields:
            return
        data: Any = None
        if data_lines:
            data = payload_of(decode_body("\n".join(data_lines)))
        events.append(SSEEvent(
            event=fields.get("event", "message"),
            data=data,
            id=fields.get("id"),
        ))
        fields.clear()
        data_lines.clear()

    for line in text.splitlines():
        if not line:
            flush()
            continue
        if line.startswith(":"):
            continue
        name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if name == "data":
            data_lines.append(value)
        elif name in ("event", "id"):
            fields[name] = value
    flush()

    return events


@dataclass
class StreamProbe:
    """What an event stream produced before the check completed."""

    status_code: Optional[int]
    content_type: str
    chunk: Optional[str] = None
    timed_out: bool = False
    closed: bool = False
    events: List[SSEEvent] = field(default_factory=list)
