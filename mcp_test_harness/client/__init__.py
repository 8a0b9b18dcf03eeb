"""
Client implementations for the test harness.

This module provides the async HTTP client used to talk to an MCP server,
the models for its requests and decoded responses, and the result formatter.
"""

from .errors import (
    MCPClientError,
    MCPConnectionError,
    MCPDecodeError,
    MCPHTTPError,
    MCPTimeoutError,
)
from .mcp_client import SESSION_HEADER, MCPTestClient
from .models import Decoded, JsonBody, RawBody, RpcEnvelope, decode_body

__all__ = [
    "Decoded",
    "JsonBody",
    "MCPClientError",
    "MCPConnectionError",
    "MCPDecodeError",
    "MCPHTTPError",
    "MCPTestClient",
    "MCPTimeoutError",
    "RawBody",
    "RpcEnvelope",
    "SESSION_HEADER",
    "decode_body",
]
