from __future__ import annotations

import asyncio
import json
import sys
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

import typer
import uvicorn

from src.api import create_app
from src.config import get_settings
from src.container import container_scope
from src.domain.exceptions import NotFoundError
from src.domain.models import CreateDriverRequest
from src.handlers import records_to_items
from src.infrastructure.db_factory import create_async_pool, ensure_schema, open_pool
from src.reporter import print_batch_report, print_driver_tips, print_drivers
from src.services.batch_consumer import BatchItem
from src.utils.logging import configure_logging
from src.utils.time_buckets import as_utc

app = typer.Typer(help="Driver tips service CLI.")


def _setup_logging() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)


def _load_items(path: Path) -> List[BatchItem]:
    """
    Read a batch from disk.

    Accepts either a delivery envelope (`{"Records": [...]}`) or JSON lines with
    one tip event per line; lines are identified as `line-<n>`.
    """
    text = path.read_text(encoding="utf-8")
    stripped = text.lstrip()
    if stripped.startswith("{"):
        try:
            document: Any = json.loads(text)
        except json.JSONDecodeError:
            document = None
        if isinstance(document, dict) and "Records" in document:
            return records_to_items(document)
    return [
        (f"line-{number}", line)
        for number, line in enumerate(text.splitlines(), start=1)
        if line.strip()
    ]


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"backend={settings.storage_backend} | "
        f"DB={settings.db_user}@{settings.db_host}:{settings.db_port}/{settings.db_name} | "
        f"tables={settings.tips_table},{settings.drivers_table} | "
        f"concurrency={settings.consumer_concurrency} retries={settings.store_retry_attempts}"
    )


@app.command("init-db")
def init_db() -> None:
    """
    Create the PostgreSQL tables if they do not exist.
    """
    _setup_logging()
    settings = get_settings()

    async def _run() -> None:
        pool = await open_pool(create_async_pool(settings))
        try:
            await ensure_schema(pool, settings)
        finally:
            await pool.close()

    asyncio.run(_run())
    typer.echo("Schema ready.")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default from settings)."),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (default from settings)."),
) -> None:
    """
    Run the HTTP API.
    """
    _setup_logging()
    settings = get_settings()
    uvicorn.run(
        create_app(settings=settings),
        host=host or settings.api_host,
        port=port or settings.api_port,
        log_config=None,
    )


@app.command()
def consume(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Batch file to apply."),
    as_json: bool = typer.Option(False, "--json", help="Print the batch response as JSON."),
) -> None:
    """
    Apply a batch of tip events and report which items need redelivery.

    Exits with status 1 when any item failed.
    """
    _setup_logging()
    items = _load_items(path)

    async def _run():
        async with container_scope(get_settings()) as container:
            return await container.consumer.consume(items)

    report = asyncio.run(_run())
    if as_json:
        typer.echo(json.dumps(report.to_response(), indent=2))
    else:
        print_batch_report(report)
    if report.failed_ids:
        raise typer.Exit(code=1)


@app.command("create-driver")
def create_driver(
    firstname: str = typer.Option(..., "--firstname"),
    lastname: str = typer.Option(..., "--lastname"),
    license_id: str = typer.Option(..., "--license", help="Driver licence id."),
) -> None:
    """
    Register a driver and print it as JSON.
    """
    _setup_logging()
    request = CreateDriverRequest(
        firstname=firstname, lastname=lastname, driver_license_id=license_id
    )

    async def _run():
        async with container_scope(get_settings()) as container:
            return await container.driver_service.create_driver(request)

    driver = asyncio.run(_run())
    typer.echo(json.dumps(driver.to_wire(), indent=2))


@app.command()
def drivers() -> None:
    """
    List registered drivers.
    """
    _setup_logging()

    async def _run():
        async with container_scope(get_settings()) as container:
            return await container.driver_service.get_drivers()

    print_drivers(asyncio.run(_run()))


@app.command()
def tips(
    driver_id: str = typer.Argument(..., help="Driver id."),
    at: Optional[str] = typer.Option(
        None, "--at", help="ISO-8601 instant to query instead of now."
    ),
    as_json: bool = typer.Option(False, "--json", help="Print the wire JSON instead of a table."),
) -> None:
    """
    Show a driver's tip totals for the current day and week.
    """
    _setup_logging()
    now: Optional[datetime] = None
    if at:
        try:
            now = as_utc(at)
        except (ValueError, OverflowError) as exc:
            raise typer.BadParameter(f"not an ISO-8601 instant: {at!r}", param_hint="--at") from exc

    async def _run():
        async with container_scope(get_settings()) as container:
            return await container.query.get_driver_tips(driver_id, now=now)

    try:
        result = asyncio.run(_run())
    except NotFoundError as exc:
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1) from exc
    if as_json:
        typer.echo(json.dumps(result.to_wire(), indent=2))
    else:
        print_driver_tips(driver_id, result)


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
