from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path

import pytest
from rich.console import Console
from typer.testing import CliRunner

from scripts import generate_tips
from src import config
from src.domain.models import Driver, DriverTips, TipAggregate
from src.main import _load_items, app
from src.reporter import print_batch_report, print_driver_tips, print_drivers
from src.services.batch_consumer import BatchReport, ItemOutcome, ItemStatus

START = datetime(2024, 1, 15, tzinfo=UTC)


@pytest.fixture
def memory_env(monkeypatch: pytest.MonkeyPatch):
    """Run CLI commands against the in-memory backend, restoring logging afterwards."""
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("LOG_LEVEL", "CRITICAL")
    root = logging.getLogger()
    previous_level, previous_handlers = root.level, list(root.handlers)
    config.get_settings.cache_clear()
    yield
    config.get_settings.cache_clear()
    root.handlers[:] = previous_handlers
    root.setLevel(previous_level)


def test_settings_defaults():
    settings = config.Settings()
    assert settings.db_host == "localhost"
    assert settings.db_port == 5432
    assert settings.db_name == "driver_tips"
    assert settings.storage_backend == "postgres"
    assert settings.tips_table == "driver_tip_aggregates"
    assert settings.consumer_concurrency > 0
    assert settings.store_retry_attempts > 0


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("STORAGE_BACKEND", "memory")
    monkeypatch.setenv("CONSUMER_CONCURRENCY", "3")
    settings = config.Settings()
    assert settings.storage_backend == "memory"
    assert settings.consumer_concurrency == 3


def test_generate_records_is_deterministic():
    first = generate_tips._generate_records(["d1", "d2"], count=5, seed=123, start=START)
    second = generate_tips._generate_records(["d1", "d2"], count=5, seed=123, start=START)

    assert first == second
    assert [r["messageId"] for r in first] == [f"sample-123-{i:05d}" for i in range(5)]
    for record in first:
        body = json.loads(record["body"])
        assert body["driverId"] in {"d1", "d2"}
        assert Decimal(body["amount"]) > 0
        assert body["eventTime"].startswith("2024-01-1")
        assert body["eventTime"].endswith("Z")


def test_load_items_reads_envelope_and_json_lines(tmp_path: Path):
    envelope = tmp_path / "batch.json"
    envelope.write_text(json.dumps({"Records": [{"messageId": "m-1", "body": "{}"}]}))
    lines = tmp_path / "batch.jsonl"
    lines.write_text('{"driverId": "d1"}\n\n{"driverId": "d2"}\n')

    assert _load_items(envelope) == [("m-1", "{}")]
    assert [item_id for item_id, _ in _load_items(lines)] == ["line-1", "line-3"]


def test_reporter_renders_tables():
    console = Console(record=True, width=120)
    report = BatchReport(
        outcomes=[
            ItemOutcome("msg-1", ItemStatus.APPLIED),
            ItemOutcome("msg-2", ItemStatus.INVALID, "Invalid tip event"),
        ]
    )
    aggregate = TipAggregate(
        driver_id="d1",
        aggregation_key="DAY#2024-01-15",
        total_amount=Decimal("11.00"),
        created_at=START,
        updated_at=START,
    )

    print_batch_report(report, console=console)
    print_driver_tips("d1", DriverTips(daily=aggregate), console=console)
    print_drivers(
        [Driver(id="d1", firstname="Linda", lastname="Doe", driver_license_id="12345")],
        console=console,
    )

    text = console.export_text()
    assert "msg-2" in text and "invalid" in text
    assert "1 applied" in text
    assert "DAY#2024-01-15" in text and "11.00" in text
    assert "Linda Doe" in text


def test_cli_consume_reports_failed_items(tmp_path: Path, memory_env):
    records = generate_tips._generate_records(["d1"], count=3, seed=7, start=START)
    records.append({"messageId": "broken", "body": "{"})
    batch = tmp_path / "batch.json"
    batch.write_text(json.dumps({"Records": records}))

    result = CliRunner().invoke(app, ["consume", str(batch), "--json"])

    assert result.exit_code == 1
    assert json.loads(result.stdout) == {"batchItemFailures": [{"itemIdentifier": "broken"}]}


def test_cli_tips_for_unknown_driver_fails(memory_env):
    result = CliRunner().invoke(app, ["tips", "ghost"])
    assert result.exit_code == 1


def test_cli_tips_rejects_malformed_instant(memory_env):
    result = CliRunner().invoke(app, ["tips", "d1", "--at", "yesterday"])

    assert result.exit_code == 2
    assert not isinstance(result.exception, ValueError)
