from __future__ import annotations

from typing import List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from src.domain.models import Driver, DriverTips, TipAggregate
from src.services.batch_consumer import BatchReport
from src.utils.time_buckets import to_iso

_STATUS_STYLES = {
    "applied": "green",
    "parse_failed": "red",
    "invalid": "yellow",
    "processing_failed": "bold red",
}


def print_batch_report(report: BatchReport, console: Optional[Console] = None) -> None:
    """
    Render per-item batch outcomes as a rich table.

    Failed items are listed first so they are visible without scrolling.
    """
    console = console or Console()

    if not report.outcomes:
        console.print("[yellow]Empty batch, nothing to display.[/yellow]")
        return

    failed = len(report.failed_ids)
    table = Table(
        title="Tip Batch Results",
        box=box.ROUNDED,
        caption=f"{report.applied_count} applied │ {failed} to redeliver",
    )
    table.add_column("Message", style="cyan", no_wrap=True)
    table.add_column("Status", justify="center")
    table.add_column("Reason", style="dim", overflow="fold")

    for outcome in sorted(report.outcomes, key=lambda o: o.ok):
        style = _STATUS_STYLES.get(outcome.status.value, "white")
        table.add_row(
            outcome.item_id,
            f"[{style}]{outcome.status.value}[/{style}]",
            outcome.reason or "",
        )

    console.print(table)


def _aggregate_row(label: str, aggregate: Optional[TipAggregate]) -> List[str]:
    if aggregate is None:
        return [label, "-", "0.00", "-"]
    return [
        label,
        aggregate.aggregation_key,
        f"{aggregate.total_amount:,.2f}",
        to_iso(aggregate.updated_at),
    ]


def print_driver_tips(driver_id: str, tips: DriverTips, console: Optional[Console] = None) -> None:
    """Render the current day/week totals of one driver."""
    console = console or Console()

    table = Table(title=f"Tips for driver {driver_id}", box=box.ROUNDED)
    table.add_column("Period", style="cyan", no_wrap=True)
    table.add_column("Bucket", style="magenta")
    table.add_column("Total", justify="right", style="bold green")
    table.add_column("Updated", justify="right", style="dim")

    table.add_row(*_aggregate_row("Today", tips.daily))
    table.add_row(*_aggregate_row("This week", tips.weekly))

    console.print(table)


def print_drivers(drivers: List[Driver], console: Optional[Console] = None) -> None:
    console = console or Console()

    if not drivers:
        console.print("[yellow]No drivers registered.[/yellow]")
        return

    table = Table(title="Drivers", box=box.ROUNDED)
    table.add_column("Id", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Licence", style="magenta")
    for driver in drivers:
        table.add_row(driver.id, f"{driver.firstname} {driver.lastname}", driver.driver_license_id)

    console.print(table)


__all__ = ["print_batch_report", "print_driver_tips", "print_drivers"]
