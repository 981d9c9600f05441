"""Database ports: connection lifecycle and statement execution.

Async methods anticipate network-backed adapters; blocking drivers are
expected to offload their work to threads inside the adapter.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional, Sequence

from dbretry.core.models.command import CommandType

RowType = Optional[Callable[..., Any]]


class ConnectionPort(ABC):
	"""Handle to a single physical database connection."""

	@abstractmethod
	async def open(self) -> None:
		"""Establish the physical connection."""
		raise NotImplementedError

	@abstractmethod
	async def close(self) -> None:
		"""Release the physical connection. Calling it twice is a no-op."""
		raise NotImplementedError

	@property
	@abstractmethod
	def closed(self) -> bool:
		raise NotImplementedError


class ConnectionFactoryPort(ABC):
	"""Creates unopened connection handles from a connection string."""

	@abstractmethod
	def create(self, connection_string: str) -> ConnectionPort:
		raise NotImplementedError


class DatabaseClientPort(ABC):
	"""Executes one statement against an open connection."""

	@abstractmethod
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
		"""Return every row of the result set (possibly empty)."""
		raise NotImplementedError

	@abstractmethod
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
		"""Return the first row, or ``default`` when there are no rows."""
		raise NotImplementedError

	@abstractmethod
	async def execute(
		self,
		connection: ConnectionPort,
		sql: str,
		parameters: Any = None,
		transaction: Any = None,
		timeout: Optional[float] = None,
		command_type: Optional[CommandType] = None,
	) -> int:
		"""Run a non-query statement and return the affected row count."""
		raise NotImplementedError
