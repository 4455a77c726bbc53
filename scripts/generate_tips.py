"""
Sample tip-event generator for the driver tips service.

Emits deterministic pseudo-random tip events as a delivery envelope
(`{"Records": [...]}`) that `python -m src.main consume` understands, and can
seed the two demo drivers when the driver table is empty.
"""

from __future__ import annotations

import asyncio
import json
import random
import sys
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any, Dict, List, Sequence

import typer

from src.config import get_settings
from src.container import container_scope
from src.domain.models import CreateDriverRequest
from src.utils.time_buckets import to_iso

app = typer.Typer(help="Generate sample tip events (and demo drivers).")

DEMO_DRIVERS = [
    CreateDriverRequest(firstname="Linda", lastname="Doe", driver_license_id="12345"),
    CreateDriverRequest(firstname="Dean", lastname="Driver", driver_license_id="9654321"),
]


def _generate_records(
    driver_ids: Sequence[str],
    count: int,
    seed: int,
    start: datetime,
    spread_hours: int = 24,
) -> List[Dict[str, Any]]:
    """
    Build `count` queue records with tips for random drivers.

    Amounts are sent as two-decimal strings, the way upstream producers do.
    """
    rng = random.Random(seed)
    records: List[Dict[str, Any]] = []
    for i in range(count):
        event_time = start + timedelta(seconds=rng.randint(0, spread_hours * 3600))
        body = {
            "driverId": rng.choice(list(driver_ids)),
            "amount": f"{rng.uniform(0.5, 10):.2f}",
            "eventTime": to_iso(event_time),
        }
        records.append({"messageId": f"sample-{seed}-{i:05d}", "body": json.dumps(body)})
    return records


async def _seed_drivers() -> List[str]:
    async with container_scope(get_settings()) as container:
        existing = await container.driver_service.get_drivers()
        if existing:
            typer.echo(f"Skipping driver creation, {len(existing)} drivers exist already.")
            return [d.id for d in existing]
        typer.echo("Creating demo drivers.")
        created = [await container.driver_service.create_driver(r) for r in DEMO_DRIVERS]
        return [d.id for d in created]


@app.command()
def main(
    count: int = typer.Option(10, "--count", "-n", help="Number of tip events."),
    seed: int = typer.Option(42, "--seed", help="Deterministic RNG seed."),
    driver: List[str] = typer.Option(
        [], "--driver", "-d", help="Driver id to tip (repeatable). Ignored with --seed-drivers."
    ),
    seed_drivers: bool = typer.Option(
        False, "--seed-drivers", help="Create demo drivers if none exist and tip those."
    ),
    output: Path = typer.Option(
        Path("tip-events.json"), "--output", "-o", help="Where to write the envelope."
    ),
) -> None:
    """
    Generate a batch of sample tip events.
    """
    driver_ids = asyncio.run(_seed_drivers()) if seed_drivers else list(driver)
    if not driver_ids:
        typer.echo("No drivers given; pass --driver or --seed-drivers.", err=True)
        raise typer.Exit(code=2)

    start = datetime.now(UTC).replace(hour=0, minute=0, second=0, microsecond=0)
    records = _generate_records(driver_ids, count=count, seed=seed, start=start)

    output.parent.mkdir(parents=True, exist_ok=True)
    with output.open("w", encoding="utf-8") as f:
        json.dump({"Records": records}, f, indent=2)
    typer.echo(f"Wrote {len(records)} tip events for {len(driver_ids)} drivers -> {output}")


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
