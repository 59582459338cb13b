"""SprocQuery - stored-procedure execution and result mapping."""

from __future__ import annotations

from sproc_query.core.cancellation import run_cancellable
from sproc_query.core.command import DB_NULL, Parameter, ParameterCollection, ProcedureCommand
from sproc_query.core.connection import AsyncConnection, Connection, ConnectionConfig
from sproc_query.core.engine import AsyncDatabase, Database
from sproc_query.core.enums import (
    CommandType,
    ConnectionState,
    DatabaseBackend,
    ParameterDirection,
)
from sproc_query.core.exceptions import (
    AdapterError,
    CommandDisposedError,
    CommandNotConfiguredError,
    ConnectionStateError,
    CursorBusyError,
    CursorClosedError,
    DescriptorError,
    DuplicateProcedureError,
    InvalidProcedureNameError,
    MappingError,
    MissingHandlerError,
    OperationCancelledError,
    ProcedureNotFoundError,
    RecordConstructionError,
    RegistryError,
    ScalarCoercionError,
    ScriptParseError,
    SprocQueryError,
    UsageError,
)
from sproc_query.core.execution import (
    ConnectionLease,
    execute_stored_non_query,
    execute_stored_non_query_async,
    execute_stored_proc,
    execute_stored_proc_async,
    execute_stored_proc_many_async,
)
from sproc_query.core.registry import ProcedureRegistry
from sproc_query.core.results import ProcResults
from sproc_query.mapping.descriptor import FieldBinding, RecordDescriptor, describe
from sproc_query.mapping.record import map_to_list, map_to_scalar

__all__ = [
    # Connection
    "ConnectionConfig",
    "Connection",
    "AsyncConnection",
    # Database
    "Database",
    "AsyncDatabase",
    # Command
    "ProcedureCommand",
    "Parameter",
    "ParameterCollection",
    "DB_NULL",
    # Execution
    "ConnectionLease",
    "execute_stored_proc",
    "execute_stored_proc_async",
    "execute_stored_proc_many_async",
    "execute_stored_non_query",
    "execute_stored_non_query_async",
    "run_cancellable",
    # Results
    "ProcResults",
    # Mapping
    "RecordDescriptor",
    "FieldBinding",
    "describe",
    "map_to_list",
    "map_to_scalar",
    # Registry
    "ProcedureRegistry",
    # Enums
    "CommandType",
    "ConnectionState",
    "DatabaseBackend",
    "ParameterDirection",
    # Exceptions
    "SprocQueryError",
    "UsageError",
    "CommandNotConfiguredError",
    "CommandDisposedError",
    "MissingHandlerError",
    "CursorClosedError",
    "CursorBusyError",
    "ConnectionStateError",
    "OperationCancelledError",
    "MappingError",
    "RecordConstructionError",
    "ScalarCoercionError",
    "DescriptorError",
    "RegistryError",
    "ProcedureNotFoundError",
    "DuplicateProcedureError",
    "ScriptParseError",
    "AdapterError",
    "InvalidProcedureNameError",
]
