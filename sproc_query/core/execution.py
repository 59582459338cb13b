"""Execution lifecycle for procedure commands.

Every execute function owns the command it is given and disposes it exactly
once, on every exit path. Connection handling is decided once per call as a
ConnectionLease:

* Single-handler reader calls (execute_stored_proc, execute_stored_proc_async)
  own the connection only when ``manage_connection`` is true and the
  connection is closed at call time; they then open it and close it on exit.
  A connection that is already open is borrowed and left open, even when
  ``manage_connection`` is true.
* execute_stored_proc_many_async opens a closed connection and closes it on
  exit whenever ``manage_connection`` is true, even if it was already open.
* Non-query calls open the connection whenever it is closed, and close it
  on exit exactly when ``manage_connection`` is true.

Driver errors from open, execute and advance propagate unchanged.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from sproc_query.core.cancellation import maybe_await, run_cancellable
from sproc_query.core.enums import ConnectionState
from sproc_query.core.exceptions import MissingHandlerError
from sproc_query.core.results import ProcResults

if TYPE_CHECKING:
    from sproc_query.core.command import ProcedureCommand
    from sproc_query.core.connection import AsyncConnection, Connection

logger = logging.getLogger(__name__)

ResultHandler = Callable[[ProcResults], Any]
AsyncResultHandler = Union[Callable[[ProcResults], Awaitable[Any]], ResultHandler]


@dataclass(frozen=True)
class ConnectionLease:
    """Whether a call opens the connection and whether it closes it on exit."""

    opens: bool
    closes: bool

    @classmethod
    def for_reader(
        cls, connection: Connection | AsyncConnection, manage_connection: bool
    ) -> ConnectionLease:
        owned = manage_connection and connection.state is ConnectionState.CLOSED
        return cls(opens=owned, closes=owned)

    @classmethod
    def for_handlers(
        cls, connection: Connection | AsyncConnection, manage_connection: bool
    ) -> ConnectionLease:
        closed = connection.state is ConnectionState.CLOSED
        return cls(opens=manage_connection and closed, closes=manage_connection)

    @classmethod
    def for_non_query(
        cls, connection: Connection | AsyncConnection, manage_connection: bool
    ) -> ConnectionLease:
        return cls(opens=connection.state is ConnectionState.CLOSED, closes=manage_connection)


def execute_stored_proc(
    command: ProcedureCommand,
    handle_results: ResultHandler,
    *,
    manage_connection: bool = True,
) -> None:
    """Execute *command* and pass its results to *handle_results*.

    Raises:
        MissingHandlerError: If *handle_results* is None (before any I/O).
        CommandDisposedError: If the command was already executed.
    """
    if handle_results is None:
        raise MissingHandlerError("handle_results")

    with command:
        connection: Connection = command.connection  # type: ignore[assignment]
        lease = ConnectionLease.for_reader(connection, manage_connection)
        try:
            if lease.opens:
                connection.open()
            logger.debug("Executing %s", command.command_text)
            reader = connection.adapter.call_procedure(connection.raw, command)
            results = ProcResults(reader)
            try:
                handle_results(results)
            finally:
                results.close()
        finally:
            if lease.closes:
                connection.close()


async def _execute_reader_async(
    command: ProcedureCommand,
    handlers: Sequence[AsyncResultHandler],
    cancel: asyncio.Event | None,
    manage_connection: bool,
    lease_for: Callable[[AsyncConnection, bool], ConnectionLease],
) -> None:
    with command:
        connection: AsyncConnection = command.connection  # type: ignore[assignment]
        lease = lease_for(connection, manage_connection)
        try:
            if lease.opens:
                await run_cancellable(connection.open(), cancel, "open")
            logger.debug("Executing %s with %d handler(s)", command.command_text, len(handlers))
            reader = await run_cancellable(
                connection.adapter.call_procedure_async(connection.raw, command),
                cancel,
                "execute",
            )
            results = ProcResults(reader)
            try:
                for handler in handlers:
                    await maybe_await(handler(results))
            finally:
                await results.close_async()
        finally:
            if lease.closes:
                await connection.close()


async def execute_stored_proc_async(
    command: ProcedureCommand,
    handle_results: AsyncResultHandler,
    *,
    cancel: asyncio.Event | None = None,
    manage_connection: bool = True,
) -> None:
    """Asynchronously execute *command* and pass its results to *handle_results*.

    *handle_results* may be a plain callable or a coroutine function.

    Args:
        cancel: Optional event observed while opening and executing.

    Raises:
        MissingHandlerError: If *handle_results* is None (before any I/O).
        OperationCancelledError: If *cancel* is set during open or execute.
    """
    if handle_results is None:
        raise MissingHandlerError("handle_results")
    await _execute_reader_async(
        command, [handle_results], cancel, manage_connection, ConnectionLease.for_reader
    )


async def execute_stored_proc_many_async(
    command: ProcedureCommand,
    result_handlers: Sequence[AsyncResultHandler],
    *,
    cancel: asyncio.Event | None = None,
    manage_connection: bool = True,
) -> None:
    """Asynchronously execute *command* and run every handler on its results.

    All handlers share one ProcResults and run in order; each starts where
    the previous one left the cursor. An empty sequence executes the command
    with no consumer.

    With *manage_connection* the connection is opened if closed and always
    closed on exit, even when it was open beforehand.

    Raises:
        MissingHandlerError: If *result_handlers* is None (before any I/O).
        OperationCancelledError: If *cancel* is set during open or execute.
    """
    if result_handlers is None:
        raise MissingHandlerError("result_handlers")
    await _execute_reader_async(
        command, list(result_handlers), cancel, manage_connection, ConnectionLease.for_handlers
    )


def execute_stored_non_query(command: ProcedureCommand, *, manage_connection: bool = True) -> int:
    """Execute *command* without reading results.

    Returns:
        The driver-reported affected row count, or -1 if the driver could not
        determine it.
    """
    affected = -1
    with command:
        connection: Connection = command.connection  # type: ignore[assignment]
        lease = ConnectionLease.for_non_query(connection, manage_connection)
        try:
            if lease.opens:
                connection.open()
            logger.debug("Executing non-query %s", command.command_text)
            affected = connection.adapter.call_non_query(connection.raw, command)
        finally:
            if lease.closes:
                connection.close()
    return affected


async def execute_stored_non_query_async(
    command: ProcedureCommand,
    *,
    cancel: asyncio.Event | None = None,
    manage_connection: bool = True,
) -> int:
    """Asynchronously execute *command* without reading results.

    Returns:
        The driver-reported affected row count, or -1 if the driver could not
        determine it.

    Raises:
        OperationCancelledError: If *cancel* is set during open or execute.
    """
    affected = -1
    with command:
        connection: AsyncConnection = command.connection  # type: ignore[assignment]
        lease = ConnectionLease.for_non_query(connection, manage_connection)
        try:
            if lease.opens:
                await run_cancellable(connection.open(), cancel, "open")
            logger.debug("Executing non-query %s", command.command_text)
            affected = await run_cancellable(
                connection.adapter.call_non_query_async(connection.raw, command),
                cancel,
                "execute",
            )
        finally:
            if lease.closes:
                await connection.close()
    return affected
