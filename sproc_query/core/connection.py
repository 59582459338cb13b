"""Connection configuration and state.

ConnectionConfig is a Pydantic model for type-safe connection config.
Connection and AsyncConnection wrap one driver connection behind an
open/closed state so the execution lifecycle can decide ownership.
Neither pools connections.
"""

from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from sproc_query.core.enums import ConnectionState, DatabaseBackend
from sproc_query.core.exceptions import AdapterError, ConnectionStateError

logger = logging.getLogger(__name__)


class ConnectionConfig(BaseModel):
    """Configuration for database connections."""

    driver: str
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str
    default_schema: str | None = None
    command_timeout: int = Field(default=30, ge=0)
    autocommit: bool = True
    procedures_dir: Path | None = None
    extra: dict[str, Any] = {}


# Adapter module mapping: backend → (module_path, sync_class, async_class)
_ADAPTER_MAP: dict[DatabaseBackend, tuple[str, str, str]] = {
    DatabaseBackend.SQLITE: (
        "sproc_query.adapters.sqlite",
        "SqliteSyncAdapter",
        "SqliteAsyncAdapter",
    ),
    DatabaseBackend.POSTGRESQL: (
        "sproc_query.adapters.postgresql",
        "PostgresqlSyncAdapter",
        "PostgresqlAsyncAdapter",
    ),
    DatabaseBackend.MYSQL: ("sproc_query.adapters.mysql", "MysqlSyncAdapter", "MysqlAsyncAdapter"),
    DatabaseBackend.ORACLE: (
        "sproc_query.adapters.oracle",
        "OracleSyncAdapter",
        "OracleAsyncAdapter",
    ),
}


def _load_adapter(driver: str, kind: str) -> Any:
    """Load a sync or async adapter by driver name."""
    try:
        backend = DatabaseBackend(driver.lower())
    except ValueError:
        raise AdapterError(f"Unsupported database driver: {driver}") from None

    module_path, sync_cls_name, async_cls_name = _ADAPTER_MAP[backend]
    cls_name = sync_cls_name if kind == "sync" else async_cls_name

    try:
        module = importlib.import_module(module_path)
        return getattr(module, cls_name)()
    except (ImportError, AttributeError) as e:
        raise AdapterError(f"Failed to load {kind} adapter for '{driver}': {e}") from e


class Connection:
    """Synchronous connection with an explicit open/closed state.

    Usable as a context manager for caller-managed connections: the
    connection is opened on enter and closed on exit.
    """

    def __init__(self, config: ConnectionConfig, adapter: Any | None = None) -> None:
        self.config = config
        self._adapter = adapter if adapter is not None else _load_adapter(config.driver, "sync")
        self._raw: Any = None

    @property
    def adapter(self) -> Any:
        return self._adapter

    @property
    def state(self) -> ConnectionState:
        return ConnectionState.CLOSED if self._raw is None else ConnectionState.OPEN

    @property
    def raw(self) -> Any:
        """The driver connection. Only available while open."""
        if self._raw is None:
            raise ConnectionStateError(ConnectionState.CLOSED.value, "use")
        return self._raw

    def open(self) -> None:
        if self._raw is not None:
            raise ConnectionStateError(ConnectionState.OPEN.value, "open")
        self._raw = self._adapter.connect(self.config)
        logger.debug("Opened %s connection to %s", self.config.driver, self.config.database)

    def close(self) -> None:
        """Close the driver connection. Closing a closed connection is a no-op."""
        if self._raw is None:
            return
        raw, self._raw = self._raw, None
        self._adapter.close(raw)
        logger.debug("Closed %s connection to %s", self.config.driver, self.config.database)

    def __enter__(self) -> Connection:
        self.open()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()


class AsyncConnection:
    """Asynchronous connection with an explicit open/closed state."""

    def __init__(self, config: ConnectionConfig, adapter: Any | None = None) -> None:
        self.config = config
        self._adapter = adapter if adapter is not None else _load_adapter(config.driver, "async")
        self._raw: Any = None

    @property
    def adapter(self) -> Any:
        return self._adapter

    @property
    def state(self) -> ConnectionState:
        return ConnectionState.CLOSED if self._raw is None else ConnectionState.OPEN

    @property
    def raw(self) -> Any:
        """The driver connection. Only available while open."""
        if self._raw is None:
            raise ConnectionStateError(ConnectionState.CLOSED.value, "use")
        return self._raw

    async def open(self) -> None:
        if self._raw is not None:
            raise ConnectionStateError(ConnectionState.OPEN.value, "open")
        self._raw = await self._adapter.connect_async(self.config)
        logger.debug("Opened async %s connection to %s", self.config.driver, self.config.database)

    async def close(self) -> None:
        """Close the driver connection. Closing a closed connection is a no-op."""
        if self._raw is None:
            return
        raw, self._raw = self._raw, None
        await self._adapter.close_async(raw)
        logger.debug("Closed async %s connection to %s", self.config.driver, self.config.database)

    async def __aenter__(self) -> AsyncConnection:
        await self.open()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
