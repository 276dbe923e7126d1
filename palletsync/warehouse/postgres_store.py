"""
PostgreSQL-backed table store.

Each table ("sheet") is a set of rows in one shared relation, keyed by
(sheet_name, row_position). Position 0 holds the header; data row i lives at
position i + 1. Cells are stored as a JSONB array so tables keep their
spreadsheet shape and column resolution stays by header name.
"""

import json
from datetime import date, datetime
from functools import partial
from typing import Any

from psycopg import sql
from psycopg.types.json import Jsonb

from palletsync.core.errors import TableNotFoundError
from palletsync.observability.logger import get_logger
from palletsync.utils.validation import sanitize_sql_identifier

from .connection import DatabaseConnectionPool
from .tables import TableSnapshot, TableStore, check_range, splice_range

logger = get_logger(__name__)

_CREATE_SHEET_ROWS = """
CREATE TABLE IF NOT EXISTS {table} (
    sheet_name   TEXT        NOT NULL,
    row_position INTEGER     NOT NULL CHECK (row_position >= 0),
    cells        JSONB       NOT NULL,
    updated_at   TIMESTAMPTZ NOT NULL DEFAULT now(),
    PRIMARY KEY (sheet_name, row_position)
)
"""


def _json_default(value: Any) -> str:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


_dumps = partial(json.dumps, default=_json_default)


class PostgresTableStore(TableStore):
    """
    Table stored as JSONB rows in PostgreSQL.

    Appends take a transaction-scoped advisory lock on the sheet name so two
    appends never claim the same position. Range writes lock the affected
    rows and run in a single transaction.
    """

    def __init__(self, pool: DatabaseConnectionPool, name: str, table_name: str = "sheet_rows"):
        """
        Initialize postgres table store.

        Args:
            pool: Open database connection pool
            name: Sheet name (value of the sheet_name column)
            table_name: Relation holding all sheets
        """
        super().__init__(name)
        self.pool = pool
        self.table_name = sanitize_sql_identifier(table_name, "table_name")
        self._table = sql.Identifier(self.table_name)

    def ensure_schema(self) -> None:
        """Create the shared sheet_rows relation if it does not exist."""
        self.pool.execute_command(sql.SQL(_CREATE_SHEET_ROWS).format(table=self._table))

    def read_all(self) -> TableSnapshot:
        query = sql.SQL(
            "SELECT row_position, cells FROM {table} "
            "WHERE sheet_name = %s ORDER BY row_position"
        ).format(table=self._table)
        records = self.pool.execute_query(query, (self.name,))

        if not records or records[0]["row_position"] != 0:
            raise TableNotFoundError(self.name, f"postgres:{self.table_name}")

        header = list(records[0]["cells"])
        rows = [list(r["cells"]) for r in records[1:]]
        return TableSnapshot(self.name, header, rows)

    def append_row(self, values: list[Any]) -> int:
        with self.pool.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute("SELECT pg_advisory_xact_lock(hashtext(%s))", (self.name,))
                cur.execute(
                    sql.SQL(
                        "SELECT COALESCE(MAX(row_position), -1) AS last_position "
                        "FROM {table} WHERE sheet_name = %s"
                    ).format(table=self._table),
                    (self.name,),
                )
                last_position = cur.fetchone()["last_position"]
                if last_position < 0:
                    raise TableNotFoundError(self.name, f"postgres:{self.table_name}")

                new_position = last_position + 1
                cur.execute(
                    sql.SQL(
                        "INSERT INTO {table} (sheet_name, row_position, cells) "
                        "VALUES (%s, %s, %s)"
                    ).format(table=self._table),
                    (self.name, new_position, Jsonb(list(values), dumps=_dumps)),
                )
            conn.commit()

        logger.debug(f"Appended row to {self.name}", extra={"position": new_position - 1})
        return new_position - 1

    def write_range(self, position: int, column: int, rows: list[list[Any]]) -> None:
        select_row = sql.SQL(
            "SELECT cells FROM {table} "
            "WHERE sheet_name = %s AND row_position = %s FOR UPDATE"
        ).format(table=self._table)
        update_row = sql.SQL(
            "UPDATE {table} SET cells = %s, updated_at = now() "
            "WHERE sheet_name = %s AND row_position = %s"
        ).format(table=self._table)
        count_rows = sql.SQL(
            "SELECT COUNT(*) AS row_count FROM {table} "
            "WHERE sheet_name = %s AND row_position > 0"
        ).format(table=self._table)

        with self.pool.get_connection() as conn:
            with conn.cursor() as cur:
                cur.execute(count_rows, (self.name,))
                check_range(self.name, cur.fetchone()["row_count"], position, column, rows)

                for offset, values in enumerate(rows):
                    db_position = position + offset + 1
                    cur.execute(select_row, (self.name, db_position))
                    record = cur.fetchone()
                    if record is None:
                        raise IndexError(f"[{self.name}] row {position + offset} does not exist")
                    cells = splice_range(list(record["cells"]), column, list(values))
                    cur.execute(
                        update_row,
                        (Jsonb(cells, dumps=_dumps), self.name, db_position),
                    )
            conn.commit()

    def initialize(self, header: list[str]) -> bool:
        self.ensure_schema()
        created = self.pool.execute_command(
            sql.SQL(
                "INSERT INTO {table} (sheet_name, row_position, cells) "
                "VALUES (%s, 0, %s) ON CONFLICT DO NOTHING"
            ).format(table=self._table),
            (self.name, Jsonb(list(header), dumps=_dumps)),
        )
        return created == 1
