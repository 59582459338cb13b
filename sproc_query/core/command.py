"""Procedure invocation command and parameter binding.

A ProcedureCommand is configured by Database.load_procedure(), receives
parameters through the with_* binders, and is disposed by the execute
function it is handed to.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from sproc_query.core.enums import CommandType, ParameterDirection
from sproc_query.core.exceptions import CommandDisposedError, CommandNotConfiguredError

if TYPE_CHECKING:
    from sproc_query.core.connection import AsyncConnection, Connection
    from sproc_query.core.execution import AsyncResultHandler, ResultHandler

logger = logging.getLogger(__name__)

DEFAULT_COMMAND_TIMEOUT = 30


class _DbNull:
    """Marker for an explicit SQL NULL parameter value."""

    _instance: _DbNull | None = None

    def __new__(cls) -> _DbNull:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "DB_NULL"

    def __bool__(self) -> bool:
        return False


DB_NULL = _DbNull()

_UNSET: Any = object()


@dataclass
class Parameter:
    """A named procedure parameter.

    Attributes:
        name: Parameter name. A leading ``@`` or ``:`` is tolerated and
            stripped when binding.
        value: Value sent to the driver. ``DB_NULL`` and ``None`` are both
            sent as SQL NULL.
        direction: Direction hint; adapters bind INPUT values only.
        db_type: Optional driver type hint.
        size: Optional size hint.
    """

    name: str = ""
    value: Any = None
    direction: ParameterDirection = ParameterDirection.INPUT
    db_type: Any = None
    size: int | None = None

    @property
    def bind_name(self) -> str:
        return self.name.lstrip("@:")

    @property
    def bind_value(self) -> Any:
        return None if self.value is DB_NULL else self.value


class ParameterCollection:
    """Ordered parameters of a command. Duplicate names are not validated."""

    def __init__(self) -> None:
        self._items: list[Parameter] = []

    def add(self, parameter: Parameter) -> None:
        self._items.append(parameter)

    def extend(self, parameters: Iterable[Parameter]) -> None:
        self._items.extend(parameters)

    def __iter__(self) -> Iterator[Parameter]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __getitem__(self, key: int | str) -> Parameter:
        if isinstance(key, int):
            return self._items[key]
        for parameter in self._items:
            if parameter.name == key or parameter.bind_name == key:
                return parameter
        raise KeyError(key)

    def __contains__(self, name: object) -> bool:
        return any(p.name == name or p.bind_name == name for p in self._items)

    def bound(self) -> list[Parameter]:
        """Parameters sent to the driver, in declaration order."""
        return [
            p
            for p in self._items
            if p.direction in (ParameterDirection.INPUT, ParameterDirection.INPUT_OUTPUT)
        ]

    def as_dict(self) -> dict[str, Any]:
        """Bound parameters keyed by bind name."""
        return {p.bind_name: p.bind_value for p in self.bound()}


class ProcedureCommand:
    """A configured stored-procedure call.

    Args:
        connection: The connection the command executes on.
        command_text: Procedure name, possibly schema-qualified.
        command_type: How command_text is interpreted.
        command_timeout: Execution timeout in seconds; 0 disables it.
    """

    def __init__(
        self,
        connection: Connection | AsyncConnection,
        command_text: str = "",
        command_type: CommandType = CommandType.TEXT,
        command_timeout: int = DEFAULT_COMMAND_TIMEOUT,
    ) -> None:
        self.connection = connection
        self.command_text = command_text
        self.command_type = command_type
        self.command_timeout = command_timeout
        self.parameters = ParameterCollection()
        self._disposed = False

    def __repr__(self) -> str:
        return (
            f"ProcedureCommand({self.command_text!r}, type={self.command_type.value}, "
            f"parameters={len(self.parameters)})"
        )

    # --- Parameter binding ---

    def _check_configured(self) -> None:
        if not self.command_text or self.command_type is not CommandType.STORED_PROCEDURE:
            raise CommandNotConfiguredError()

    def create_parameter(self) -> Parameter:
        """Create an unattached parameter."""
        return Parameter()

    def with_param(
        self,
        name: str,
        value: Any = _UNSET,
        configure: Callable[[Parameter], None] | None = None,
    ) -> ProcedureCommand:
        """Create a parameter and add it to the command.

        With a value, ``None`` is stored as DB_NULL. Without a value, only
        *configure* shapes the parameter.

        Raises:
            CommandNotConfiguredError: If load_procedure has not configured
                the command.
        """
        self._check_configured()
        parameter = self.create_parameter()
        parameter.name = name
        if value is not _UNSET:
            parameter.value = DB_NULL if value is None else value
        if configure is not None:
            configure(parameter)
        self.parameters.add(parameter)
        return self

    def with_parameter(self, parameter: Parameter) -> ProcedureCommand:
        """Add a pre-built parameter."""
        self._check_configured()
        self.parameters.add(parameter)
        return self

    def with_parameters(self, parameters: Sequence[Parameter]) -> ProcedureCommand:
        """Add several pre-built parameters in order."""
        self._check_configured()
        self.parameters.extend(parameters)
        return self

    # --- Lifetime ---

    @property
    def disposed(self) -> bool:
        return self._disposed

    def check_usable(self) -> None:
        if self._disposed:
            raise CommandDisposedError(self.command_text)

    def dispose(self) -> None:
        """Release the command. Later calls are no-ops."""
        if self._disposed:
            return
        self._disposed = True
        logger.debug("Disposed command %s", self.command_text)

    def __enter__(self) -> ProcedureCommand:
        self.check_usable()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.dispose()

    # --- Execution shortcuts ---

    def execute(self, handle_results: ResultHandler, *, manage_connection: bool = True) -> None:
        """See execute_stored_proc."""
        from sproc_query.core.execution import execute_stored_proc

        execute_stored_proc(self, handle_results, manage_connection=manage_connection)

    async def execute_async(
        self,
        handle_results: AsyncResultHandler,
        *,
        cancel: asyncio.Event | None = None,
        manage_connection: bool = True,
    ) -> None:
        """See execute_stored_proc_async."""
        from sproc_query.core.execution import execute_stored_proc_async

        await execute_stored_proc_async(
            self, handle_results, cancel=cancel, manage_connection=manage_connection
        )

    async def execute_many_async(
        self,
        result_handlers: Sequence[AsyncResultHandler],
        *,
        cancel: asyncio.Event | None = None,
        manage_connection: bool = True,
    ) -> None:
        """See execute_stored_proc_many_async."""
        from sproc_query.core.execution import execute_stored_proc_many_async

        await execute_stored_proc_many_async(
            self, result_handlers, cancel=cancel, manage_connection=manage_connection
        )

    def execute_non_query(self, *, manage_connection: bool = True) -> int:
        """See execute_stored_non_query."""
        from sproc_query.core.execution import execute_stored_non_query

        return execute_stored_non_query(self, manage_connection=manage_connection)

    async def execute_non_query_async(
        self,
        *,
        cancel: asyncio.Event | None = None,
        manage_connection: bool = True,
    ) -> int:
        """See execute_stored_non_query_async."""
        from sproc_query.core.execution import execute_stored_non_query_async

        return await execute_stored_non_query_async(
            self, cancel=cancel, manage_connection=manage_connection
        )
