"""DatabaseRetryManager: runs single database calls under a retry policy.

Responsibilities:
1. Resolve the call target: an open connection (reused, not managed) or a
   connection string (a fresh connection per attempt, always closed).
2. Wrap the call as a repeatable zero-argument operation.
3. Submit it to the retry port and return its result or final error.
4. Report each failed attempt to the optional logger.
"""

from __future__ import annotations

import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, Optional, Union

from dbretry.core.exceptions import RetryConfigurationError
from dbretry.core.interfaces.database import (
    ConnectionFactoryPort,
    ConnectionPort,
    DatabaseClientPort,
    RowType,
)
from dbretry.core.interfaces.logging import LoggingPort
from dbretry.core.interfaces.retry import RetryPort
from dbretry.core.logging_config import operation_id_var
from dbretry.core.models.command import CommandType

Target = Union[str, ConnectionPort]


class DatabaseRetryManager:
    """Retrying facade over a DatabaseClientPort.

    Every public operation accepts either a connection string or an open
    connection as ``target``. Connection strings require a connection factory.
    """

    def __init__(
        self,
        client: DatabaseClientPort,
        retry_port: RetryPort,
        connection_factory: Optional[ConnectionFactoryPort] = None,
        logger: Optional[LoggingPort] = None,
    ) -> None:
        self._client = client
        self._retry = retry_port
        self._connections = connection_factory
        self._logger = logger

    def _on_failure(self, error: BaseException, attempt_index: int, max_attempts: int) -> None:
        self._logger.warning("Database retry #: %s", attempt_index + 1, exc_info=error)

    async def retry_action(
        self,
        operation: Callable[[], Awaitable[Any]],
        retry_limit: Optional[int] = None,
    ) -> Any:
        """Run ``operation`` through the retry port, logging failed attempts."""
        token = operation_id_var.set(uuid.uuid4().hex[:8])
        try:
            return await self._retry.run_with_retry(
                operation,
                max_attempts=retry_limit,
                on_failure=self._on_failure if self._logger else None,
            )
        finally:
            operation_id_var.reset(token)

    @asynccontextmanager
    async def _new_connection(self, connection_string: str) -> AsyncIterator[ConnectionPort]:
        connection = self._connections.create(connection_string)
        try:
            await connection.open()
            yield connection
        finally:
            await connection.close()

    def _bind(
        self,
        target: Target,
        call: Callable[[ConnectionPort], Awaitable[Any]],
    ) -> Callable[[], Awaitable[Any]]:
        """Turn a per-connection call into a repeatable operation for ``target``."""
        if isinstance(target, str):
            if self._connections is None:
                raise RetryConfigurationError(
                    "A connection factory is required for connection-string targets",
                    parameter="connection_factory",
                )

            async def on_new_connection():
                async with self._new_connection(target) as connection:
                    return await call(connection)

            return on_new_connection

        async def on_open_connection():
            return await call(target)

        return on_open_connection

    async def query(
        self,
        target: Target,
        sql: str,
        parameters: Any = None,
        *,
        row_type: RowType = None,
        retry_limit: Optional[int] = None,
        transaction: Any = None,
        command_timeout: Optional[float] = None,
        command_type: Optional[CommandType] = None,
    ) -> list[Any]:
        """Return all rows of ``sql``; an empty result is an empty list."""
        async def call(connection: ConnectionPort):
            return await self._client.query_many(
                connection, sql, parameters, transaction, command_timeout, command_type, row_type
            )

        rows = await self.retry_action(self._bind(target, call), retry_limit)
        return list(rows)

    async def query_first_or_default(
        self,
        target: Target,
        sql: str,
        parameters: Any = None,
        *,
        row_type: RowType = None,
        default: Any = None,
        retry_limit: Optional[int] = None,
        transaction: Any = None,
        command_timeout: Optional[float] = None,
        command_type: Optional[CommandType] = None,
    ) -> Any:
        """Return the first row of ``sql``, or ``default`` when no row matches."""
        async def call(connection: ConnectionPort):
            return await self._client.query_first_or_default(
                connection, sql, parameters, transaction, command_timeout, command_type,
                row_type, default,
            )

        return await self.retry_action(self._bind(target, call), retry_limit)

    async def execute(
        self,
        target: Target,
        sql: str,
        parameters: Any = None,
        *,
        retry_limit: Optional[int] = None,
        transaction: Any = None,
        command_timeout: Optional[float] = None,
        command_type: Optional[CommandType] = None,
    ) -> int:
        """Run a non-query statement and return the affected row count."""
        async def call(connection: ConnectionPort):
            return await self._client.execute(
                connection, sql, parameters, transaction, command_timeout, command_type
            )

        return await self.retry_action(self._bind(target, call), retry_limit)

    # Single attempts on a fresh connection, without retry

    async def query_new_connection(
        self,
        connection_string: str,
        sql: str,
        parameters: Any = None,
        *,
        row_type: RowType = None,
        transaction: Any = None,
        command_timeout: Optional[float] = None,
        command_type: Optional[CommandType] = None,
    ) -> list[Any]:
        async def call(connection: ConnectionPort):
            return await self._client.query_many(
                connection, sql, parameters, transaction, command_timeout, command_type, row_type
            )

        return list(await self._bind(connection_string, call)())

    async def query_first_or_default_new_connection(
        self,
        connection_string: str,
        sql: str,
        parameters: Any = None,
        *,
        row_type: RowType = None,
        default: Any = None,
        transaction: Any = None,
        command_timeout: Optional[float] = None,
        command_type: Optional[CommandType] = None,
    ) -> Any:
        async def call(connection: ConnectionPort):
            return await self._client.query_first_or_default(
                connection, sql, parameters, transaction, command_timeout, command_type,
                row_type, default,
            )

        return await self._bind(connection_string, call)()

    async def execute_new_connection(
        self,
        connection_string: str,
        sql: str,
        parameters: Any = None,
        *,
        transaction: Any = None,
        command_timeout: Optional[float] = None,
        command_type: Optional[CommandType] = None,
    ) -> int:
        async def call(connection: ConnectionPort):
            return await self._client.execute(
                connection, sql, parameters, transaction, command_timeout, command_type
            )

        return await self._bind(connection_string, call)()
