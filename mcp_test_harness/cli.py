"""
Main CLI application for the MCP test harness.

Provides command-line interface for checking an MCP server's health, session,
event stream and JSON-RPC endpoints using the Cyclopts framework.
"""

import asyncio
from pathlib import Path
from typing import Annotated, Optional

import cyclopts

from . import __version__
from .commands.quick import run_quick_check
from .commands.run import build_config, run_test_suite
from .commands.tools import list_server_tools

app = cyclopts.App(
    name="mcp-test-harness",
    help="Test harness for MCP servers exposed over HTTP - checks health, sessions, events and JSON-RPC",
    version=__version__,
)

ServerUrl = Annotated[
    Optional[str],
    cyclopts.Parameter(
        help="Base URL of the MCP server (defaults to the configured server)"
    )
]
ConfigFile = Annotated[
    Optional[Path],
    cyclopts.Parameter(
        help="Path to a harness configuration file"
    )
]
Profile = Annotated[
    str,
    cyclopts.Parameter(
        help="Configuration profile to load"
    )
]
OutputFormat = Annotated[
    Optional[str],
    cyclopts.Parameter(
        help="Output format for results (pretty, table, json)"
    )
]
LogLevel = Annotated[
    Optional[str],
    cyclopts.Parameter(
        help="Logging level (debug, info, warning, error); logs go to stderr"
    )
]


@app.default
@app.command
def run(
    server_url: ServerUrl = None,
    *,
    config: ConfigFile = None,
    profile: Profile = "default",
    idle_timeout: Annotated[
        Optional[float],
        cyclopts.Parameter(
            help="Seconds to wait for event stream data before reporting INFO"
        )
    ] = None,
    output_format: OutputFormat = None,
    log_level: LogLevel = None,
) -> None:
    """
    Run the full test sequence against an MCP server.

    Checks health, connects, probes the event stream, calls ping, tools/list
    and resources/list when a session was issued, then disconnects.
    """
    harness_config = build_config(
        server_url=server_url,
        config_file=config,
        profile=profile,
        idle_timeout=idle_timeout,
        output_format=output_format,
        log_level=log_level,
    )
    asyncio.run(run_test_suite(harness_config))


@app.command
def quick(
    server_url: ServerUrl = None,
    *,
    config: ConfigFile = None,
    profile: Profile = "default",
    output_format: OutputFormat = None,
    log_level: LogLevel = None,
) -> None:
    """
    Run a quick smoke test against an MCP server.

    Checks health, connects and counts the tools the server offers.
    """
    harness_config = build_config(
        server_url=server_url,
        config_file=config,
        profile=profile,
        output_format=output_format,
        log_level=log_level,
    )
    asyncio.run(run_quick_check(harness_config))


@app.command
def tools(
    server_url: ServerUrl = None,
    *,
    config: ConfigFile = None,
    profile: Profile = "default",
    output_format: OutputFormat = None,
    log_level: LogLevel = None,
) -> None:
    """
    List the tools and resources an MCP server offers.

    Connects, prints the full tools/list and resources/list responses and
    disconnects.
    """
    harness_config = build_config(
        server_url=server_url,
        config_file=config,
        profile=profile,
        output_format=output_format,
        log_level=log_level,
    )
    asyncio.run(list_server_tools(harness_config))


def main() -> None:
    """Main entry point for the MCP test harness CLI."""
    app()


if __name__ == "__main__":
    main()
