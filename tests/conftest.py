"""
Pytest configuration and fixtures for pallet-sync tests

This module provides shared fixtures for unit, integration, and E2E tests.
"""
import os
from datetime import datetime
from typing import Any, Callable, Generator

import pytest
from testcontainers.postgres import PostgresContainer

from palletsync.core.config import PipelineConfig
from palletsync.core.schema import BUILD_SCHEMA, GRN_SCHEMA, LEDGER_SCHEMA, STATUS_SCHEMA
from palletsync.warehouse.tables import InMemoryTableStore, TableStore
from palletsync.warehouse.workbook import Workbook


# =======================
# PYTEST CONFIGURATION
# =======================

def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests that don't require external services"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests that require Docker containers"
    )
    config.addinivalue_line(
        "markers", "e2e: End-to-end tests that test the full pipeline"
    )
    config.addinivalue_line(
        "markers", "slow: Tests that take more than 5 seconds to run"
    )


# =======================
# CLOCK FIXTURES
# =======================

FIXED_NOW = datetime(2025, 11, 17, 9, 30, 0)


@pytest.fixture
def fixed_now() -> datetime:
    """The instant returned by fixed_clock"""
    return FIXED_NOW


@pytest.fixture
def fixed_clock() -> Callable[[], datetime]:
    """Clock that always returns FIXED_NOW"""
    return lambda: FIXED_NOW


# =======================
# TABLE FIXTURES
# =======================

def rows_from_records(header: list[str], records: list[dict[str, Any]]) -> list[list[Any]]:
    """Turn header-keyed dicts into positional rows (missing cells blank)."""
    return [[record.get(column, "") for column in header] for record in records]


def records_from_store(store: TableStore) -> list[dict[str, Any]]:
    """Read a store back as header-keyed dicts."""
    snapshot = store.read_all()
    return [
        {column: (row[i] if i < len(row) else "") for i, column in enumerate(snapshot.header)}
        for row in snapshot.rows
    ]


@pytest.fixture
def make_workbook() -> Callable[..., Workbook]:
    """
    Factory for in-memory workbooks

    Each table argument is a list of header-keyed dicts; headers default to
    the canonical header of each table and can be overridden.
    """

    def _make(
        build: list[dict[str, Any]] | None = None,
        ledger: list[dict[str, Any]] | None = None,
        status: list[dict[str, Any]] | None = None,
        grn: list[dict[str, Any]] | None = None,
        build_header: list[str] | None = None,
        ledger_header: list[str] | None = None,
        status_header: list[str] | None = None,
        grn_header: list[str] | None = None,
    ) -> Workbook:
        build_header = build_header or BUILD_SCHEMA.header
        ledger_header = ledger_header or LEDGER_SCHEMA.header
        status_header = status_header or STATUS_SCHEMA.header
        grn_header = grn_header or GRN_SCHEMA.header

        return Workbook(
            build=InMemoryTableStore(
                BUILD_SCHEMA.name, build_header, rows_from_records(build_header, build or [])
            ),
            ledger=InMemoryTableStore(
                LEDGER_SCHEMA.name, ledger_header, rows_from_records(ledger_header, ledger or [])
            ),
            status=InMemoryTableStore(
                STATUS_SCHEMA.name, status_header, rows_from_records(status_header, status or [])
            ),
            grn=InMemoryTableStore(
                GRN_SCHEMA.name, grn_header, rows_from_records(grn_header, grn or [])
            ),
        )

    return _make


@pytest.fixture
def read_records() -> Callable[[TableStore], list[dict[str, Any]]]:
    """Read a table store back as header-keyed dicts"""
    return records_from_store


@pytest.fixture
def build_row() -> dict[str, Any]:
    """A typical build row for pallet P1 on GRN G1, vehicle still unloading"""
    return {
        "Timestamp": "2025-11-17T08:30:00",
        "GRN_ID": "G1",
        "Pallet_GRN": "P1-G1",
        "Pallet_ID": "P1",
        "SKU_ID": "S1",
        "SKU_Description": "Frozen peas 1kg",
        "Batch_Number": "B-2025-11",
        "Quantity_Boxes": 10,
        "Expiry_Date": "2026-05-01",
        "Vehicle_Completed": False,
    }


@pytest.fixture
def pipeline_config() -> PipelineConfig:
    """Default configuration on the memory backend"""
    return PipelineConfig(backend="memory")


# =======================
# DATABASE FIXTURES (Testcontainers)
# =======================

@pytest.fixture(scope="session")
def postgres_container() -> Generator[PostgresContainer, None, None]:
    """
    Start PostgreSQL container for integration tests

    Yields:
        PostgresContainer instance
    """
    with PostgresContainer(
        image="postgres:16.2-alpine",
        username="test_palletsync",
        password="test_password",
        dbname="test_palletsync"
    ) as postgres:
        # Wait for container to be ready
        postgres.get_connection_url()
        yield postgres


@pytest.fixture(scope="function")
def db_pool(postgres_container):
    """
    Open connection pool on a clean sheet_rows table

    Args:
        postgres_container: PostgreSQL container fixture

    Yields:
        Open DatabaseConnectionPool
    """
    from palletsync.warehouse.connection import DatabaseConnectionPool

    pool = DatabaseConnectionPool(
        host=postgres_container.get_container_host_ip(),
        port=int(postgres_container.get_exposed_port(5432)),
        database="test_palletsync",
        user="test_palletsync",
        password="test_password",
    )
    pool.open()
    pool.execute_command("DROP TABLE IF EXISTS sheet_rows")

    yield pool

    pool.close()


# =======================
# CONFIGURATION FIXTURES
# =======================

@pytest.fixture
def clean_env(monkeypatch):
    """Blank every environment variable the config layer reads (blank values are ignored)"""
    for name in (
        "PALLETSYNC_BACKEND",
        "PALLETSYNC_CSV_DIR",
        "LOG_LEVEL",
        "LOG_FORMAT",
        "DB_HOST",
        "DB_PORT",
        "DB_NAME",
        "DB_USER",
        "DB_PASSWORD",
    ):
        monkeypatch.setenv(name, "")
    return monkeypatch


@pytest.fixture(scope="session")
def project_root() -> str:
    """Path to the repository root"""
    return os.path.dirname(os.path.dirname(__file__))
