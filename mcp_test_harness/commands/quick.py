"""Quick smoke test: health, connect and a tools/list call."""

from typing import List, Optional

from rich.console import Console

from ..client.mcp_client import MCPTestClient
from ..client.response_formatter import ResponseFormatter, TestOutcome
from ..config.loader import HarnessConfig
from ..harness import MCPTestHarness


async def run_quick_check(
    config: HarnessConfig,
    console: Optional[Console] = None,
) -> List[TestOutcome]:
    """Check health, open a session and count the server's tools.

    The event stream is not checked. The session is released at the end.
    """
    formatter = ResponseFormatter(console, colors=config.output.colors)

    async with MCPTestClient(config) as client:
        harness = MCPTestHarness(client, formatter)
        if harness.output_format != "json":
            formatter.print_banner("Simple MCP Server Test", client.base_url)

        await harness.check_health()
        if await harness.connect(client_name="simple-test"):
            if harness.output_format != "json":
                formatter.print_detail("Session", harness.session_id)
                formatter.print_detail("Server", harness.server_name or "unknown")
            await harness.call_rpc("tools/list")
        await harness.disconnect()

        harness.summarize()
        return list(harness.outcomes)
