"""
Workbook: the four table stores one pipeline run works on.
"""

from palletsync.core.config import PipelineConfig
from palletsync.core.schema import BUILD_SCHEMA, GRN_SCHEMA, LEDGER_SCHEMA, STATUS_SCHEMA
from palletsync.observability.logger import get_logger

from .connection import DatabaseConnectionPool
from .csv_store import CsvTableStore
from .postgres_store import PostgresTableStore
from .tables import InMemoryTableStore, TableStore

logger = get_logger(__name__)


class Workbook:
    """
    Bundle of the build source, ledger, status view and GRN table stores.

    Attributes:
        build: Pallet build source (read-only for the engine)
        ledger: Pallet transaction ledger (append-only)
        status: Pallet status view (rows updated in place)
        grn: Goods-receipt note table (status column updated)
        pool: Connection pool owned by this workbook, if any
    """

    def __init__(
        self,
        build: TableStore,
        ledger: TableStore,
        status: TableStore,
        grn: TableStore,
        pool: DatabaseConnectionPool | None = None,
    ):
        self.build = build
        self.ledger = ledger
        self.status = status
        self.grn = grn
        self.pool = pool

    def stores(self) -> dict[str, TableStore]:
        return {
            "build": self.build,
            "ledger": self.ledger,
            "status": self.status,
            "grn": self.grn,
        }

    def close(self) -> None:
        """Close the owned connection pool, if any."""
        if self.pool is not None:
            self.pool.close()
            self.pool = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def open_workbook(config: PipelineConfig, pool: DatabaseConnectionPool | None = None) -> Workbook:
    """
    Build the four table stores for the configured backend.

    Args:
        config: Pipeline configuration
        pool: Open pool to use for the postgres backend; when None a pool is
            created from `config.database` and owned by the workbook

    Returns:
        Workbook

    Raises:
        ValueError: If the postgres backend has no password configured
        OperationalError: If the database cannot be reached
    """
    names = config.tables

    if config.backend == "memory":
        return Workbook(
            build=InMemoryTableStore(names.build, BUILD_SCHEMA.header),
            ledger=InMemoryTableStore(names.ledger, LEDGER_SCHEMA.header),
            status=InMemoryTableStore(names.status, STATUS_SCHEMA.header),
            grn=InMemoryTableStore(names.grn, GRN_SCHEMA.header),
        )

    if config.backend == "csv":
        csv_dir = config.csv_dir
        return Workbook(
            build=CsvTableStore(csv_dir / f"{names.build}.csv", names.build),
            ledger=CsvTableStore(csv_dir / f"{names.ledger}.csv", names.ledger),
            status=CsvTableStore(csv_dir / f"{names.status}.csv", names.status),
            grn=CsvTableStore(csv_dir / f"{names.grn}.csv", names.grn),
        )

    owned_pool = None
    if pool is None:
        pool = owned_pool = DatabaseConnectionPool.from_settings(config.database)
        pool.open()
        logger.info(
            "Opened database pool",
            extra={"host": pool.host, "port": pool.port, "database": pool.database},
        )

    table_name = config.database.table_name
    stores = {
        key: PostgresTableStore(pool, name, table_name=table_name)
        for key, name in names.model_dump().items()
    }
    stores["build"].ensure_schema()
    return Workbook(pool=owned_pool, **stores)


def create_tables(workbook: Workbook) -> list[str]:
    """
    Create any missing table with its canonical header.

    Returns:
        Names of the tables that were created
    """
    headers = {
        "build": BUILD_SCHEMA.header,
        "ledger": LEDGER_SCHEMA.header,
        "status": STATUS_SCHEMA.header,
        "grn": GRN_SCHEMA.header,
    }

    created = []
    for key, store in workbook.stores().items():
        if store.initialize(headers[key]):
            logger.info(f"Created table {store.name}", extra={"table": store.name})
            created.append(store.name)
    return created
