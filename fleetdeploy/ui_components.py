"""
FleetDeploy - UI Components
Standardized headers and summary rendering
"""

from typing import Optional

from rich.console import Console
from rich.table import Table

from fleetdeploy.models.results import BatchSummary

LOGO = "fleetdeploy"

# Color scheme
BRAND_COLOR = "cyan"
SUCCESS_COLOR = "green"
ERROR_COLOR = "red"


def show_header(
    title: str,
    subtitle: Optional[str] = None,
    details: Optional[dict] = None,
    console: Optional[Console] = None,
):
    """
    Display a standardized FleetDeploy command header.

    Args:
        title: Main title (e.g., "Install Fleet")
        subtitle: Optional subtitle line
        details: Additional key-value pairs to display
        console: Rich Console instance (creates new if None)

    Example:
        show_header(
            title="Install Fleet",
            details={"Hosts": 42, "Device class": "HC9XX device"}
        )
    """
    if console is None:
        console = Console()

    prefix = f" [bold color(214)]{LOGO}[/bold color(214)] [dim]›[/dim]"

    console.print(f"{prefix} [bold white]{title}[/bold white]")

    if subtitle:
        console.print(f"{prefix} [dim]{subtitle}[/dim]")

    if details:
        for key, value in details.items():
            console.print(f"{prefix} {key}: [{BRAND_COLOR}]{value}[/{BRAND_COLOR}]")

    console.print()


def show_summary(summary: BatchSummary, console: Optional[Console] = None) -> None:
    """Print the failed hosts listing and the total/succeeded/failed counts."""
    if console is None:
        console = Console()

    if summary.failures:
        failed = Table(
            title="Failed installs on the following hosts",
            title_justify="left",
            padding=(0, 1),
        )
        failed.add_column("Host", style=BRAND_COLOR, no_wrap=True)
        failed.add_column("Reason", style="dim")
        for outcome in summary.failures:
            failed.add_row(outcome.host, outcome.failure_reason or "")
        console.print()
        console.print(failed)

    totals = Table(show_header=False, padding=(0, 1), box=None)
    totals.add_column("Metric")
    totals.add_column("Count", justify="right")
    totals.add_row("Total hosts", str(summary.total))
    totals.add_row(
        "Successful installs", f"[{SUCCESS_COLOR}]{summary.succeeded}[/{SUCCESS_COLOR}]"
    )
    failed_color = ERROR_COLOR if summary.failed else "dim"
    totals.add_row("Failed installs", f"[{failed_color}]{summary.failed}[/{failed_color}]")

    console.print()
    console.print(totals)
    console.print()
