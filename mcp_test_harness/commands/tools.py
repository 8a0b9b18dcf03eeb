"""List the tools and resources an MCP server offers."""

from typing import Any, Dict, Optional

from rich.console import Console
from rich.json import JSON
from rich.panel import Panel

from ..client.mcp_client import MCPTestClient
from ..client.response_formatter import ResponseFormatter
from ..config.loader import HarnessConfig
from ..harness import MCPTestHarness

LISTINGS = (
    ("tools/list", "Available Tools"),
    ("resources/list", "Available Resources"),
)


async def list_server_tools(
    config: HarnessConfig,
    console: Optional[Console] = None,
) -> Dict[str, Any]:
    """Open a session and print the tools/list and resources/list results.

    Returns:
        Decoded responses keyed by method; methods whose call failed are
        absent
    """
    formatter = ResponseFormatter(console, colors=config.output.colors)
    listings: Dict[str, Any] = {}

    async with MCPTestClient(config) as client:
        harness = MCPTestHarness(client, formatter)

        if await harness.connect(client_name="tool-test"):
            if harness.output_format != "json":
                formatter.print_detail("Session", harness.session_id)
            for method, title in LISTINGS:
                body = await harness.call_rpc(method)
                if body is None:
                    continue
                listings[method] = body
                if harness.output_format != "json":
                    formatter.console.print(Panel(
                        JSON.from_data(body, indent=2, default=str),
                        title=title,
                        border_style="blue",
                    ))

        await harness.disconnect()
        harness.summarize()

    return listings
