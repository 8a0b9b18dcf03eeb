"""Exceptions raised by the MCP test client."""


class MCPClientError(Exception):
    """Base exception for MCP client errors."""

    response_text: str = ""


class MCPTimeoutError(MCPClientError):
    """Raised when a request times out."""
    pass


class MCPConnectionError(MCPClientError):
    """Raised when connection to server fails."""
    pass


class MCPHTTPError(MCPClientError):
    """Raised when server returns an unexpected HTTP status."""

    def __init__(self, message: str, status_code: int, response_text: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.response_text = response_text


class MCPDecodeError(MCPClientError):
    """Raised when a body that must be JSON is not."""

    def __init__(self, message: str, response_text: str = ""):
        super().__init__(message)
        self.response_text = response_text
