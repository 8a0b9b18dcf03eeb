"""Full test run against an MCP server.

Runs the health, connect, event stream, JSON-RPC and disconnect steps and
prints a PASS/FAIL/INFO summary.
"""

from pathlib import Path
from typing import List, Optional

import structlog
from rich.console import Console

from ..client.mcp_client import MCPTestClient
from ..client.response_formatter import ResponseFormatter, TestOutcome
from ..config.loader import EventsConfig, HarnessConfig, load_config
from ..harness import MCPTestHarness
from ..logging_config import configure_stderr_logging

logger = structlog.get_logger(__name__)


def build_config(
    server_url: Optional[str] = None,
    config_file: Optional[Path] = None,
    profile: str = "default",
    idle_timeout: Optional[float] = None,
    output_format: Optional[str] = None,
    log_level: Optional[str] = None,
) -> HarnessConfig:
    """Load configuration and apply command-line overrides.

    Args:
        server_url: Base URL of the server, overriding the configured one
        config_file: A configuration file; its directory is used as the
            config directory and its stem as the profile unless it is
            default.toml
        profile: Configuration profile to load
        idle_timeout: Event stream idle timeout override in seconds; must be
            positive
        output_format: Output format override (pretty, table, json)
        log_level: Log level override

    Raises:
        ValueError: If idle_timeout is not positive
    """
    if config_file:
        config_dir = config_file.parent
        if config_file.stem != "default":
            profile = config_file.stem
        config = load_config(profile, config_dir)
    else:
        config = load_config(profile)

    if server_url:
        config.server.base_url = server_url
    if idle_timeout is not None:
        config.events = EventsConfig(idle_timeout=idle_timeout)
    if output_format:
        config.output.format = output_format
    if log_level:
        config.logging.level = log_level

    configure_stderr_logging(
        level=config.logging.level,
        json_logs=config.logging.format == "json",
    )
    return config


async def run_test_suite(
    config: HarnessConfig,
    console: Optional[Console] = None,
) -> List[TestOutcome]:
    """Run every harness step against the configured server.

    Args:
        config: Harness configuration
        console: Console to print to (a new one if None)

    Returns:
        Outcomes in execution order
    """
    formatter = ResponseFormatter(console, colors=config.output.colors)

    async with MCPTestClient(config) as client:
        harness = MCPTestHarness(client, formatter)
        outcomes = await harness.run_all()

    logger.debug("Test suite finished", outcomes=len(outcomes))
    return outcomes
