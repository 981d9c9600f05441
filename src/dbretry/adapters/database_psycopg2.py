import asyncio
from typing import Any, Optional, Sequence

import psycopg2 as db
from psycopg2 import sql as pgsql
from psycopg2.extras import RealDictCursor
from sqlalchemy.engine import make_url

from dbretry.core.interfaces.database import (
    ConnectionFactoryPort,
    ConnectionPort,
    DatabaseClientPort,
    RowType,
)
from dbretry.core.models.command import CommandType
from dbretry.core.settings import logger

# result shapes of a single statement
ROWCOUNT = "rowcount"
FETCH_FIRST = "first"
FETCH_ALL = "all"


class Psycopg2Connection(ConnectionPort):
    """One physical PostgreSQL connection, opened and closed in a worker thread."""

    def __init__(self, connect_kwargs: dict[str, Any]):
        self._connect_kwargs = connect_kwargs
        self.raw = None

    async def open(self) -> None:
        if not self.closed:
            return
        # the worker thread keeps connecting after a cancel, so the connect task
        # is shielded and its result closed once it lands
        connect = asyncio.ensure_future(asyncio.to_thread(db.connect, **self._connect_kwargs))
        try:
            self.raw = await asyncio.shield(connect)
        except asyncio.CancelledError:
            connect.add_done_callback(self._close_abandoned)
            raise
        logger.debug(f"[db:connection] opened host={self._connect_kwargs.get('host', '-')}")

    @staticmethod
    def _close_abandoned(connect: asyncio.Future) -> None:
        if connect.cancelled() or connect.exception() is not None:
            return
        connect.result().close()
        logger.debug("[db:connection] closed connection abandoned by a cancelled open")

    async def close(self) -> None:
        if self.closed:
            return
        await asyncio.to_thread(self.raw.close)
        logger.debug("[db:connection] closed")

    @property
    def closed(self) -> bool:
        # psycopg2 reports closed as an int, 0 meaning open
        return self.raw is None or bool(self.raw.closed)


class Psycopg2ConnectionFactory(ConnectionFactoryPort):
    """Creates psycopg2 connections from a libpq DSN or a SQLAlchemy URL."""

    def create(self, connection_string: str) -> Psycopg2Connection:
        return Psycopg2Connection(self.connect_kwargs(connection_string))

    @staticmethod
    def connect_kwargs(connection_string: str) -> dict[str, Any]:
        if "://" not in connection_string:
            return {"dsn": connection_string}
        url = make_url(connection_string)
        kwargs = url.translate_connect_args(username="user", database="dbname")
        kwargs.update(url.query)
        return kwargs


class Psycopg2DatabaseClient(DatabaseClientPort):
    """Runs statements with a RealDictCursor, one worker thread per call.

    Without a ``transaction`` each statement is committed on success and rolled
    back on error. A non-None ``transaction`` means the caller owns an open
    transaction on this connection, so nothing is committed here.
    """

    async def query_many(
        self,
        connection: ConnectionPort,
        sql: str,
        parameters: Any = None,
        transaction: Any = None,
        timeout: Optional[float] = None,
        command_type: Optional[CommandType] = None,
        row_type: RowType = None,
    ) -> Sequence[Any]:
        rows = await asyncio.to_thread(
            self._run, connection, sql, parameters, transaction, timeout, command_type,
            shape=FETCH_ALL,
        )
        return self._map_rows(rows, row_type)

    async def query_first_or_default(
        self,
        connection: ConnectionPort,
        sql: str,
        parameters: Any = None,
        transaction: Any = None,
        timeout: Optional[float] = None,
        command_type: Optional[CommandType] = None,
        row_type: RowType = None,
        default: Any = None,
    ) -> Any:
        rows = await asyncio.to_thread(
            self._run, connection, sql, parameters, transaction, timeout, command_type,
            shape=FETCH_FIRST,
        )
        if not rows:
            return default
        return self._map_rows(rows, row_type)[0]

    async def execute(
        self,
        connection: ConnectionPort,
        sql: str,
        parameters: Any = None,
        transaction: Any = None,
        timeout: Optional[float] = None,
        command_type: Optional[CommandType] = None,
    ) -> int:
        return await asyncio.to_thread(
            self._run, connection, sql, parameters, transaction, timeout, command_type,
            shape=ROWCOUNT,
        )

    @staticmethod
    def _map_rows(rows, row_type: RowType) -> list[Any]:
        if row_type is None:
            return [dict(row) for row in rows]
        return [row_type(**row) for row in rows]

    def _run(self, connection, sql, parameters, transaction, timeout, command_type, *, shape):
        raw = getattr(connection, "raw", None)
        if raw is None or raw.closed:
            raise RuntimeError("Connection is not open. Call open() before running statements.")

        if transaction is not None:
            return self._run_statement(raw, sql, parameters, timeout, command_type, shape)
        with raw:
            return self._run_statement(raw, sql, parameters, timeout, command_type, shape)

    def _run_statement(self, raw, sql, parameters, timeout, command_type, shape):
        """Execute one statement.

        ``shape`` selects the result: ROWCOUNT returns the affected row count,
        FETCH_FIRST a list of at most one row, FETCH_ALL every row.
        """
        with raw.cursor(cursor_factory=RealDictCursor) as cursor:
            if timeout is not None:
                cursor.execute("SET LOCAL statement_timeout = %s", (int(timeout * 1000),))

            command_type = CommandType(command_type or CommandType.text)
            if command_type == CommandType.stored_procedure:
                cursor.callproc(sql, parameters)
            elif command_type == CommandType.table_direct:
                table = pgsql.Identifier(*sql.split("."))
                cursor.execute(pgsql.SQL("SELECT * FROM {}").format(table))
            else:
                cursor.execute(sql, parameters)

            if shape == ROWCOUNT:
                return cursor.rowcount

            try:
                if shape == FETCH_FIRST:
                    row = cursor.fetchone()
                    return [] if row is None else [row]
                return cursor.fetchall()
            except db.ProgrammingError as e:
                if str(e) == "no results to fetch":
                    return []
                raise
