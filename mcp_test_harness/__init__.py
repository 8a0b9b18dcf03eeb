"""
Test harness for MCP servers exposed over HTTP.

This package checks a remote MCP server's health, session, JSON-RPC and
server-sent event endpoints and reports a PASS/FAIL/INFO outcome per step.
"""

__version__ = "0.1.0"
