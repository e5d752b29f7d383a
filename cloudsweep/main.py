"""
cloudsweep CLI

Main entry point for the command-line interface.
"""

import re
import sys
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

import click
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm

from . import __version__
from .core.aws_client import AWSClient
from .core.config import Config, load_config
from .core.exceptions import AWSClientError, CloudSweepError
from .core.logging import LOG_LEVELS, setup_logging
from .core.region_manager import RegionManager
from .core.report import Report
from .core.telemetry import Telemetry
from .reporters.cli_reporter import CLIReporter
from .reporters.json_reporter import JSONReporter
from .resources import ALL_RESOURCES, get_resource_classes


console = Console()

DURATION_PATTERN = re.compile(r"(\d+)([smhd])")
DURATION_UNITS = {"s": "seconds", "m": "minutes", "h": "hours", "d": "days"}


def parse_duration(ctx, param, value: Optional[str]) -> timedelta:
    """Parse durations such as '30m', '24h', '7d' or '1d12h'."""
    if value is None:
        return timedelta(0)
    text = value.strip().lower()
    parts = DURATION_PATTERN.findall(text)
    if not text or "".join(n + u for n, u in parts) != text:
        raise click.BadParameter(
            f"Invalid duration '{value}' (expected e.g. 30m, 24h, 7d)"
        )
    return sum(
        (timedelta(**{DURATION_UNITS[unit]: int(amount)}) for amount, unit in parts),
        timedelta(0),
    )


@click.group()
@click.version_option(version=__version__, prog_name="cloudsweep")
def cli():
    """
    cloudsweep: delete unused AWS resources

    Finds resources that are eligible for deletion, filters them against
    age, exclusion tag and name rules, deletes them and reports the outcome
    of every deletion.
    """
    pass


def _run_options(func):
    """Options shared by the aws and inspect-aws commands."""
    options = [
        click.option(
            "--region",
            "-r",
            "regions",
            multiple=True,
            help="Region to process (repeatable). Default: all enabled regions",
        ),
        click.option(
            "--all-regions",
            is_flag=True,
            default=False,
            help="Process every enabled region (overrides --region)",
        ),
        click.option(
            "--exclude-region",
            "excluded_regions",
            multiple=True,
            help="Region to skip (repeatable)",
        ),
        click.option(
            "--resource-type",
            "resource_types",
            multiple=True,
            help=f"Resource type to process (repeatable): {', '.join(ALL_RESOURCES)}",
        ),
        click.option(
            "--exclude-resource-type",
            "excluded_resource_types",
            multiple=True,
            help="Resource type to skip (repeatable)",
        ),
        click.option(
            "--older-than",
            default="0s",
            callback=parse_duration,
            help="Only delete resources older than this (e.g. 30m, 24h, 7d)",
        ),
        click.option(
            "--config",
            "config_path",
            type=click.Path(dir_okay=False),
            default=None,
            help="YAML file with per-resource-type name rules",
        ),
        click.option(
            "--profile",
            "-p",
            default=None,
            help="AWS profile name from ~/.aws/credentials",
        ),
        click.option(
            "--log-level",
            type=click.Choice(LOG_LEVELS, case_sensitive=False),
            default="info",
            help="Log level (default: info)",
        ),
        click.option(
            "--log-file",
            type=click.Path(dir_okay=False),
            default=None,
            help="Also write logs to this file",
        ),
        click.option(
            "--max-workers",
            default=10,
            type=int,
            help="Maximum regions processed in parallel (default: 10)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _prepare(
    regions: Tuple[str, ...],
    all_regions: bool,
    excluded_regions: Tuple[str, ...],
    resource_types: Tuple[str, ...],
    excluded_resource_types: Tuple[str, ...],
    config_path: Optional[str],
    profile: Optional[str],
    max_workers: int,
):
    """Validate credentials and resolve regions, handlers and rules."""
    resource_classes = get_resource_classes(resource_types, excluded_resource_types)
    config = load_config(config_path) if config_path else Config()

    AWSClient(profile=profile).validate_credentials()

    manager = RegionManager(profile=profile, max_workers=max_workers)
    if all_regions or not regions:
        target_regions: List[str] = manager.get_all_regions()
    else:
        target_regions = list(regions)
    target_regions = [r for r in target_regions if r not in excluded_regions]
    if not target_regions:
        raise click.UsageError("No regions left to process")

    return manager, resource_classes, config, target_regions


@cli.command("aws")
@_run_options
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="List what would be deleted without deleting anything",
)
@click.option(
    "--force",
    is_flag=True,
    default=False,
    help="Skip the confirmation prompt (dangerous!)",
)
@click.option(
    "--output",
    "-o",
    default=None,
    help="Write the JSON report (candidates and deletion outcomes) to this file",
)
def nuke_aws(
    regions: Tuple[str, ...],
    all_regions: bool,
    excluded_regions: Tuple[str, ...],
    resource_types: Tuple[str, ...],
    excluded_resource_types: Tuple[str, ...],
    older_than: timedelta,
    config_path: Optional[str],
    profile: Optional[str],
    log_level: str,
    log_file: Optional[str],
    max_workers: int,
    dry_run: bool,
    force: bool,
    output: Optional[str],
):
    """
    Delete eligible AWS resources.

    Resources tagged cloud-nuke-excluded=true, resources created within the
    --older-than window, and resources whose Name tag fails the configured
    rules are never deleted.

    Examples:

        # Preview what would be deleted (safe)
        cloudsweep aws --dry-run

        # Delete EBS volumes older than a week in one region
        cloudsweep aws --resource-type ebs --older-than 7d --region eu-west-1

        # Apply name rules and skip the prompt
        cloudsweep aws --config rules.yaml --force
    """
    setup_logging(log_level, log_file)
    reporter = CLIReporter(console)

    try:
        manager, resource_classes, config, target_regions = _prepare(
            regions,
            all_regions,
            excluded_regions,
            resource_types,
            excluded_resource_types,
            config_path,
            profile,
            max_workers,
        )
        excluded_after = datetime.now(timezone.utc) - older_than

        if dry_run:
            console.print(
                Panel(
                    "[yellow bold]DRY-RUN MODE[/yellow bold]\n"
                    "Nothing will actually be deleted.",
                    border_style="yellow",
                )
            )
        reporter.print_header(
            target_regions, [c.RESOURCE_LABEL for c in resource_classes], dry_run
        )

        # Step 1: discover
        inspection = manager.inspect_regions(
            resource_classes,
            regions=target_regions,
            excluded_after=excluded_after,
            config=config,
        )
        reporter.print_candidates(inspection)
        reporter.print_errors(inspection.errors)

        if dry_run or inspection.total_candidates == 0:
            if output:
                report = Report()
                report.complete()
                output_file = JSONReporter(output_path=output).report(report, inspection)
                reporter.print_completion_message(output_file)
            sys.exit(1 if inspection.has_errors else 0)

        # Step 2: confirm
        if not force:
            confirmed = Confirm.ask(
                f"[yellow]Delete all {inspection.total_candidates} resources?[/yellow]",
                console=console,
                default=False,
            )
            if not confirmed:
                console.print("\n[yellow]Deletion cancelled by user.[/yellow]")
                return

        # Step 3: delete exactly what was shown
        report = Report()
        result = manager.nuke_regions(
            resource_classes,
            regions=target_regions,
            excluded_after=excluded_after,
            config=config,
            report=report,
            telemetry=Telemetry(),
            targets=inspection,
        )
        report.complete()

        reporter.print_report(report)
        reporter.print_errors(result.errors)

        output_file = None
        if output:
            output_file = JSONReporter(output_path=output).report(report, result)
        reporter.print_completion_message(output_file)

        if inspection.has_errors or result.has_errors:
            sys.exit(1)

    except CloudSweepError as e:
        reporter.print_error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled by user.[/yellow]")
        sys.exit(130)


@cli.command("inspect-aws")
@_run_options
def inspect_aws(
    regions: Tuple[str, ...],
    all_regions: bool,
    excluded_regions: Tuple[str, ...],
    resource_types: Tuple[str, ...],
    excluded_resource_types: Tuple[str, ...],
    older_than: timedelta,
    config_path: Optional[str],
    profile: Optional[str],
    log_level: str,
    log_file: Optional[str],
    max_workers: int,
):
    """List the resources that would be deleted, without deleting them."""
    setup_logging(log_level, log_file)
    reporter = CLIReporter(console)

    try:
        manager, resource_classes, config, target_regions = _prepare(
            regions,
            all_regions,
            excluded_regions,
            resource_types,
            excluded_resource_types,
            config_path,
            profile,
            max_workers,
        )
        reporter.print_header(
            target_regions, [c.RESOURCE_LABEL for c in resource_classes], dry_run=True
        )
        inspection = manager.inspect_regions(
            resource_classes,
            regions=target_regions,
            excluded_after=datetime.now(timezone.utc) - older_than,
            config=config,
        )
        reporter.print_candidates(inspection)
        reporter.print_errors(inspection.errors)

    except CloudSweepError as e:
        reporter.print_error(str(e))
        sys.exit(1)

    if inspection.has_errors:
        sys.exit(1)


@cli.command("resource-types")
def list_resource_types():
    """List the resource types cloudsweep can delete."""
    console.print("\n[bold]Supported resource types:[/bold]\n")
    for name, resource_class in ALL_RESOURCES.items():
        console.print(f"  • {name:<8} {resource_class.RESOURCE_LABEL}")
    console.print()


@cli.command("regions")
@click.option(
    "--profile",
    "-p",
    default=None,
    help="AWS profile name from ~/.aws/credentials",
)
def list_regions(profile: Optional[str]):
    """List all enabled AWS regions."""
    try:
        regions = RegionManager(profile=profile).get_all_regions()
    except AWSClientError as e:
        console.print(f"\n[red bold]Error:[/red bold] {str(e)}")
        sys.exit(1)

    console.print(f"\n[bold]Enabled AWS Regions ({len(regions)} total):[/bold]\n")
    for region in regions:
        console.print(f"  • {region}")
    console.print()


@cli.command("validate")
@click.option(
    "--profile",
    "-p",
    default=None,
    help="AWS profile name from ~/.aws/credentials",
)
@click.option(
    "--region",
    "-r",
    default="us-east-1",
    help="AWS region to use for validation",
)
def validate_credentials(profile: Optional[str], region: str):
    """Validate AWS credentials and show account info."""
    try:
        client = AWSClient(region=region, profile=profile)
        client.validate_credentials()
        account_id = client.get_account_id()
    except AWSClientError as e:
        console.print(f"\n[red bold]Validation Failed:[/red bold] {str(e)}")
        sys.exit(1)

    console.print("\n[green bold]AWS credentials are valid![/green bold]")
    console.print(f"\n  Account ID: {account_id}")
    console.print(f"  Region: {region}")
    if profile:
        console.print(f"  Profile: {profile}")
    console.print()


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
