"""Pytest configuration for the coinseries test suite."""

from __future__ import annotations

from datetime import UTC

import pytest
from factories import DAY_D, daily_archive

from coinseries.core.data.archive import ArchiveLoader, StaticArchiveSource
from coinseries.core.data.storage import InMemoryRecordStore
from coinseries.core.timeutils import ONE_DAY_MS


def pytest_addoption(parser: pytest.Parser) -> None:
    """Register command-line options for controlling integration tests."""

    parser.addoption(
        "--coinseries-run-integration",
        action="store_true",
        default=False,
        help="Run coinseries integration tests that require external services.",
    )


def pytest_configure(config: pytest.Config) -> None:
    """Register the integration marker for coinseries tests."""

    config.addinivalue_line(
        "markers",
        "integration: marks coinseries tests requiring network or external services",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    """Skip integration tests unless explicitly requested."""

    if config.getoption("--coinseries-run-integration"):
        return

    skip_integration = pytest.mark.skip(reason="integration tests require --coinseries-run-integration")
    for item in items:
        if "integration" in item.keywords:
            item.add_marker(skip_integration)


@pytest.fixture()
def memory_store() -> InMemoryRecordStore:
    return InMemoryRecordStore()


@pytest.fixture()
def archive_loader() -> ArchiveLoader:
    """Three archive days ending at ``DAY_D`` with closes 90, 95 and 100."""
    return ArchiveLoader(StaticArchiveSource(daily_archive(DAY_D - 2 * ONE_DAY_MS, [90, 95, 100])), tz=UTC)
