from __future__ import annotations

import json
from datetime import UTC

import pytest
from factories import DAY_D, StubFetcher, clock_at, daily_archive, make_record
from typer.testing import CliRunner

from coinseries.cli import utils as cli_utils
from coinseries.cli.main import create_app
from coinseries.core.client import CoinSeriesClient
from coinseries.core.data.archive import ArchiveLoader, StaticArchiveSource
from coinseries.core.data.storage import InMemoryRecordStore
from coinseries.core.exceptions import ApiError, ConfigurationError
from coinseries.core.logging import configure_logging
from coinseries.core.timeutils import ONE_DAY_MS, ONE_HOUR_MS


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    configure_logging("WARNING")


@pytest.fixture()
def base_args(tmp_path) -> list[str]:
    return ["--config", str(tmp_path / "absent.toml"), "--log-level", "ERROR", "--format", "jsonl"]


class ClientFactory:
    def __init__(self, *, points=(), error: Exception | None = None, cached=(), now_ms: int = DAY_D + 2 * ONE_DAY_MS):
        self.points = points
        self.error = error
        self.cached = cached
        self.now_ms = now_ms
        self.stores: list[InMemoryRecordStore] = []
        self.configs: list[object] = []

    def __call__(self, config) -> CoinSeriesClient:
        self.configs.append(config)
        store = InMemoryRecordStore(self.cached)
        self.stores.append(store)
        archive = ArchiveLoader(StaticArchiveSource(daily_archive(DAY_D - 9 * ONE_DAY_MS, range(91, 101))), tz=UTC)
        fetcher = StubFetcher(store, self.points, error=self.error)
        return CoinSeriesClient(archive, store, fetcher, tz=UTC, clock=clock_at(self.now_ms))


def _rows(output: str) -> list[dict[str, object]]:
    return [json.loads(line) for line in output.splitlines() if line.startswith("{")]


def test_status_reports_live_update(runner: CliRunner, base_args, monkeypatch: pytest.MonkeyPatch) -> None:
    factory = ClientFactory(points=[(DAY_D + ONE_DAY_MS + ONE_HOUR_MS, 101.0), (DAY_D + 2 * ONE_DAY_MS, 102.0)])
    monkeypatch.setattr(cli_utils, "get_client", factory)

    result = runner.invoke(create_app(), [*base_args, "series", "status"])

    assert result.exit_code == 0, result.output
    (row,) = _rows(result.stdout)
    assert row["source"] == "LIVE_API"
    assert row["missing_days"] == 0
    assert row["records"] == 12
    assert row["last_date"] == "2024-01-12"
    assert row["last_close"] == 102.0
    assert row["error"] is None


def test_status_reports_fetch_error_without_failing(runner: CliRunner, base_args, monkeypatch) -> None:
    monkeypatch.setattr(cli_utils, "get_client", ClientFactory(error=ApiError("API Error: 500", 500)))

    result = runner.invoke(create_app(), [*base_args, "series", "status"])

    assert result.exit_code == 0, result.output
    (row,) = _rows(result.stdout)
    assert row["source"] == "FETCHING"
    assert row["missing_days"] == 2
    assert row["error"] == "API Error: 500"


def test_show_renders_weekly_buckets(runner: CliRunner, base_args, monkeypatch) -> None:
    monkeypatch.setattr(cli_utils, "get_client", ClientFactory(now_ms=DAY_D + 3 * ONE_HOUR_MS))

    result = runner.invoke(create_app(), [*base_args, "series", "show", "--range", "1y"])

    assert result.exit_code == 0, result.output
    rows = _rows(result.stdout)
    # 2024-01-01..07 and 2024-01-08..10
    assert [row["date"] for row in rows] == ["2024-01-01", "2024-01-08"]
    assert rows[0]["open"] == 91
    assert rows[0]["close"] == 97
    assert rows[1]["close"] == 100
    assert set(rows[0]) == {"date", "open", "high", "low", "close", "volume"}


def test_show_rejects_unknown_range(runner: CliRunner, base_args, monkeypatch) -> None:
    factory = ClientFactory()
    monkeypatch.setattr(cli_utils, "get_client", factory)

    result = runner.invoke(create_app(), [*base_args, "series", "show", "--range", "2W"])

    assert result.exit_code != 0
    assert factory.configs == []


def test_summary_and_log(runner: CliRunner, base_args, monkeypatch) -> None:
    monkeypatch.setattr(cli_utils, "get_client", ClientFactory(now_ms=DAY_D + 3 * ONE_HOUR_MS))

    summary = runner.invoke(create_app(), [*base_args, "series", "summary"])
    log = runner.invoke(create_app(), [*base_args, "series", "log", "--duration", "1W"])

    assert summary.exit_code == 0, summary.output
    (row,) = _rows(summary.stdout)
    assert row["price"] == 100
    assert row["previous_price"] == 99
    assert row["change_pct"] == pytest.approx(1.01)

    assert log.exit_code == 0, log.output
    entries = _rows(log.stdout)
    assert [entry["close"] for entry in entries] == [100, 99, 98, 97, 96, 95, 94, 93]
    assert entries[-1]["change_pct"] == 0


def test_configuration_error_maps_to_validation_exit_code(runner: CliRunner, base_args, monkeypatch) -> None:
    def broken(config):
        raise ConfigurationError("Unknown time zone 'Mars/Olympus'")

    monkeypatch.setattr(cli_utils, "get_client", broken)

    result = runner.invoke(create_app(), [*base_args, "series", "status"])

    assert result.exit_code == 1


def test_status_without_any_data_exits_with_system_code(runner: CliRunner, base_args, monkeypatch) -> None:
    def empty(config):
        store = InMemoryRecordStore()
        archive = ArchiveLoader(StaticArchiveSource("Timestamp,Open,High,Low,Close,Volume\n"), tz=UTC)
        return CoinSeriesClient(archive, store, StubFetcher(store), tz=UTC, clock=clock_at(DAY_D))

    monkeypatch.setattr(cli_utils, "get_client", empty)

    result = runner.invoke(create_app(), [*base_args, "series", "status"])

    assert result.exit_code == 3
    (row,) = _rows(result.stdout)
    assert row["source"] == "ERROR"


def test_invalid_format_is_rejected(runner: CliRunner, tmp_path) -> None:
    result = runner.invoke(create_app(), ["--config", str(tmp_path / "absent.toml"), "--format", "xml", "store", "stats"])

    assert result.exit_code != 0


def test_store_stats_and_clear(runner: CliRunner, base_args, monkeypatch) -> None:
    cached = [make_record(DAY_D + ONE_DAY_MS, 101), make_record(DAY_D + 2 * ONE_DAY_MS, 102)]
    factory = ClientFactory(cached=cached)
    monkeypatch.setattr(cli_utils, "get_client", factory)

    stats = runner.invoke(create_app(), [*base_args, "store", "stats"])
    declined = runner.invoke(create_app(), [*base_args, "store", "clear"], input="n\n")
    cleared = runner.invoke(create_app(), [*base_args, "store", "clear", "--yes"])

    assert stats.exit_code == 0, stats.output
    assert _rows(stats.stdout) == [{"count": 2, "first_date": "2024-01-11", "last_date": "2024-01-12"}]
    assert declined.exit_code == 1
    assert len(factory.stores) == 2
    assert cleared.exit_code == 0, cleared.output
    assert _rows(cleared.stdout) == [{"removed": 2}]
    assert len(factory.stores[-1]) == 0


def test_table_output_to_file(runner: CliRunner, tmp_path, monkeypatch) -> None:
    monkeypatch.setattr(cli_utils, "get_client", ClientFactory(now_ms=DAY_D + ONE_HOUR_MS))
    target = tmp_path / "out.txt"

    result = runner.invoke(
        create_app(),
        ["--config", str(tmp_path / "absent.toml"), "--log-level", "ERROR", "--no-color", "-o", str(target), "series", "summary"],
    )

    assert result.exit_code == 0, result.output
    text = target.read_text(encoding="utf-8")
    assert "price" in text
    assert "100.00" in text


def test_store_failure_maps_to_system_exit_code(runner: CliRunner, base_args, monkeypatch) -> None:
    factory = ClientFactory()

    def closed_store(config) -> CoinSeriesClient:
        client = factory(config)
        client.store.close()
        return client

    monkeypatch.setattr(cli_utils, "get_client", closed_store)

    result = runner.invoke(create_app(), [*base_args, "store", "stats"])

    assert result.exit_code == 3


def test_failed_command_leaves_no_output_file(runner: CliRunner, base_args, tmp_path, monkeypatch) -> None:
    factory = ClientFactory()
    target = tmp_path / "stats.jsonl"

    def closed_store(config) -> CoinSeriesClient:
        client = factory(config)
        client.store.close()
        return client

    monkeypatch.setattr(cli_utils, "get_client", closed_store)

    result = runner.invoke(create_app(), [*base_args, "--output", str(target), "store", "stats"])

    assert result.exit_code == 3
    assert not target.exists()
