"""Outcome records and console formatting for harness runs.

This module provides the TestOutcome record produced by every harness step and
formatting utilities for displaying outcomes using Rich console integration.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Union

from rich import box
from rich.console import Console
from rich.json import JSON
from rich.panel import Panel
from rich.table import Table
from rich.text import Text


class OutcomeStatus(str, Enum):
    """Result of one harness step."""

    PASS = "PASS"
    FAIL = "FAIL"
    INFO = "INFO"


STATUS_STYLES = {
    OutcomeStatus.PASS: ("✓", "green"),
    OutcomeStatus.FAIL: ("✗", "red"),
    OutcomeStatus.INFO: ("ℹ", "yellow"),
}


@dataclass(frozen=True)
class TestOutcome:
    """Recorded result of one harness step.

    The payload is the decoded JSON value of the response, its raw text when
    the body was not JSON, or extra detail for the step.
    """

    __test__ = False

    test: str
    status: OutcomeStatus
    message: str
    payload: Any = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self) -> Dict[str, Any]:
        """Convert TestOutcome to dictionary format."""
        return {
            "test": self.test,
            "status": self.status.value,
            "message": self.message,
            "payload": self.payload,
            "timestamp": self.timestamp.isoformat(),
        }

    def get_summary(self) -> str:
        return f"{self.status.value}: {self.test}: {self.message}"


@dataclass
class OutcomeSummary:
    """Counts of outcomes by status."""

    passed: int = 0
    failed: int = 0
    info: int = 0

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[TestOutcome]) -> "OutcomeSummary":
        summary = cls()
        for outcome in outcomes:
            if outcome.status is OutcomeStatus.PASS:
                summary.passed += 1
            elif outcome.status is OutcomeStatus.FAIL:
                summary.failed += 1
            else:
                summary.info += 1
        return summary

    @property
    def total(self) -> int:
        return self.passed + self.failed + self.info

    @property
    def all_passed(self) -> bool:
        return self.failed == 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "passed": self.passed,
            "failed": self.failed,
            "info": self.info,
            "total": self.total,
        }


class ResponseFormatter:
    """Rich console formatter for harness outcomes.

    Outcomes are printed as they are recorded; a run ends with a summary in
    one of the pretty, table or json formats.
    """

    def __init__(self, console: Optional[Console] = None, colors: bool = True):
        """Initialize the response formatter.

        Args:
            console: Rich console instance (creates new one if None)
            colors: Whether to enable colored output
        """
        self.console = console or Console(color_system="auto" if colors else None)
        self.colors = colors

    def print_banner(self, title: str, server_url: str) -> None:
        self.console.print(Text(title, style="bold cyan"))
        self.console.print(f"Testing server: [blue]{server_url}[/blue]")
        self.console.rule()

    def print_outcome(self, outcome: TestOutcome) -> None:
        """Print one outcome line, with its payload unless it passed."""
        icon, style = STATUS_STYLES[outcome.status]
        line = Text()
        line.append(f"{icon} {outcome.test}", style=f"bold {style}")
        line.append(f": {outcome.message}")
        self.console.print(line)

        if outcome.payload is not None and outcome.status is not OutcomeStatus.PASS:
            self.print_payload(outcome.payload, indent="   ")

    def print_detail(self, label: str, value: Any) -> None:
        self.console.print(f"   {label}: {value}", markup=False, highlight=False)

    def print_payload(self, payload: Any, indent: str = "") -> None:
        if isinstance(payload, str):
            self.console.print(f"{indent}Data: {payload}", markup=False, highlight=False)
        else:
            self.console.print(f"{indent}Data:", markup=False)
            self.console.print(JSON.from_data(payload, indent=2, default=str))

    def format_json(self, outcomes: Union[TestOutcome, List[TestOutcome]]) -> str:
        """Format outcome(s) as JSON."""
        if isinstance(outcomes, list):
            data: Union[Dict[str, Any], List[Dict[str, Any]]] = [o.to_dict() for o in outcomes]
        else:
            data = outcomes.to_dict()

        return json.dumps(data, indent=2, default=str)

    def format_table(self, outcomes: List[TestOutcome]) -> Table:
        """Build a Rich table of outcomes."""
        table = Table(
            title="Test Results",
            box=box.ROUNDED,
            show_header=True,
            header_style="bold magenta",
        )

        table.add_column("Status", style="bold", width=8)
        table.add_column("Test", style="cyan", min_width=20)
        table.add_column("Message", min_width=30)
        table.add_column("Time", style="dim", width=10)

        for outcome in outcomes:
            icon, style = STATUS_STYLES[outcome.status]
            message = outcome.message
            if len(message) > 60:
                message = message[:57] + "..."
            table.add_row(
                f"[{style}]{icon} {outcome.status.value}[/{style}]",
                outcome.test,
                message,
                outcome.timestamp.strftime("%H:%M:%S"),
            )

        return table

    def print_summary(self, outcomes: List[TestOutcome], output_format: str = "pretty") -> OutcomeSummary:
        """Print the PASS/FAIL/INFO summary of a run.

        Args:
            outcomes: Outcomes in execution order
            output_format: pretty, table or json

        Returns:
            The counts that were printed
        """
        summary = OutcomeSummary.from_outcomes(outcomes)

        if output_format == "json":
            self.console.print_json(json.dumps(
                {"summary": summary.to_dict(), "results": [o.to_dict() for o in outcomes]},
                default=str,
            ))
            return summary

        self.console.rule()
        if output_format == "table":
            self.console.print(self.format_table(outcomes))

        lines = [
            "[bold]Test Summary[/bold]",
            "",
            f"Passed: [green]{summary.passed}[/green]",
            f"Failed: [red]{summary.failed}[/red]",
            f"Info:   [yellow]{summary.info}[/yellow]",
            "",
        ]
        if summary.all_passed:
            lines.append("[bold green]All tests passed! The MCP server is working correctly.[/bold green]")
            border = "green"
        else:
            lines.append("[bold red]Some tests failed. Check the details above.[/bold red]")
            border = "red"

        self.console.print(Panel("\n".join(lines), border_style=border, padding=(1, 2)))
        return summary
