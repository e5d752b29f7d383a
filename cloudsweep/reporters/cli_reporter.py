"""
CLI Reporter Module
===================

Rich terminal output for deletion candidates and run outcomes.

Classes
-------
CLIReporter
    Prints candidate tables, the outcome report and region errors.

Example
-------
>>> from cloudsweep.reporters import CLIReporter
>>>
>>> reporter = CLIReporter()
>>> reporter.print_candidates(inspection)
>>> reporter.print_report(report)
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from cloudsweep.core.region_manager import MultiRegionNukeResult
from cloudsweep.core.report import Report

# Module logger
logger = logging.getLogger(__name__)


class CLIReporter:
    """
    Reporter for terminal output.

    Parameters
    ----------
    console : Console, optional
        Rich Console instance. If not provided, creates a new one.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def print_header(
        self,
        regions: Sequence[str],
        resource_labels: Sequence[str],
        dry_run: bool = False,
    ) -> None:
        """Print a panel describing what is about to run."""
        region_text = (
            ", ".join(regions) if len(regions) <= 5 else f"{len(regions)} regions"
        )

        header = Text()
        title = "Inspecting" if dry_run else "Nuking"
        header.append(f"\n{title} {', '.join(resource_labels)}\n", style="bold blue")
        header.append(f"Regions: {region_text}", style="dim")

        self.console.print(Panel(header, border_style="yellow" if dry_run else "red"))

    def print_candidates(self, result: MultiRegionNukeResult) -> None:
        """
        Print a table of every resource eligible for deletion.

        Parameters
        ----------
        result : MultiRegionNukeResult
            Results of a run or inspection.
        """
        rows = [
            (r.region, r.resource_type, candidate)
            for r in result.all_results()
            for candidate in r.details
        ]
        if not rows:
            self.console.print("\n[green]No resources eligible for deletion.[/green]")
            return

        table = Table(title="\nResources eligible for deletion", title_style="bold")
        table.add_column("#", style="dim", width=4)
        table.add_column("Region", style="yellow", no_wrap=True)
        table.add_column("Resource Type", style="magenta")
        table.add_column("Identifier", style="cyan", no_wrap=True)
        table.add_column("Name", style="white")
        table.add_column("Created", style="dim")

        for index, (region, resource_type, candidate) in enumerate(rows, 1):
            table.add_row(
                str(index),
                region,
                resource_type,
                candidate.identifier,
                candidate.name or "-",
                candidate.created_at.strftime("%Y-%m-%d %H:%M:%S UTC"),
            )

        self.console.print(table)

    def print_report(self, report: Report) -> None:
        """
        Print one row per deletion attempt followed by totals.

        Parameters
        ----------
        report : Report
            The run's outcome report.
        """
        entries = report.entries
        if not entries:
            self.console.print("\n[dim]No deletions were attempted.[/dim]")
            return

        table = Table(title="\nDeletion report", title_style="bold")
        table.add_column("Identifier", style="cyan", no_wrap=True)
        table.add_column("Resource Type", style="magenta")
        table.add_column("Region", style="yellow")
        table.add_column("Deleted", justify="center")
        table.add_column("Error", style="red", max_width=60)

        for entry in sorted(entries, key=lambda e: (e.region, e.resource_type)):
            table.add_row(
                entry.identifier,
                entry.resource_type,
                entry.region,
                "[green]✓[/green]" if entry.deleted else "[red]✗[/red]",
                self._truncate(entry.error_message or "", 60),
            )

        self.console.print(table)

        self.console.print(f"\n  Deleted:  [green]{report.deleted_count}[/green]")
        self.console.print(f"  Failed:   [red]{report.failed_count}[/red]")
        self.console.print(f"  Total:    {report.total}")

    def print_errors(self, errors: Dict[str, List[str]]) -> None:
        """Print batch-level errors by region."""
        if not errors:
            return

        self.console.print("\n[yellow bold]Errors encountered:[/yellow bold]")
        for region, error_list in sorted(errors.items()):
            self.console.print(f"\n[yellow]{region}:[/yellow]")
            for error in error_list:
                self.console.print(f"  [red]• {error}[/red]")

    @staticmethod
    def _truncate(text: str, max_length: int) -> str:
        if len(text) <= max_length:
            return text
        return text[: max_length - 3] + "..."

    def print_completion_message(self, output_file: Optional[str] = None) -> None:
        self.console.print("\n[green bold]Done![/green bold]")
        if output_file:
            self.console.print(f"[dim]Report saved to: {output_file}[/dim]")

    def print_error(self, message: str) -> None:
        self.console.print(f"\n[red bold]Error:[/red bold] {message}")

    def __repr__(self) -> str:
        """Return string representation."""
        return "CLIReporter()"
