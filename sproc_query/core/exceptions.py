"""SprocQuery exception hierarchy.

Usage errors are raised before any I/O. Driver errors raised while opening,
executing or advancing propagate unchanged and are never wrapped here.
"""

from __future__ import annotations


class SprocQueryError(Exception):
    """Base exception for all SprocQuery errors."""


# --- Usage ---


class UsageError(SprocQueryError):
    """Base for caller-fixable precondition violations."""


class CommandNotConfiguredError(UsageError):
    """Raised when parameters are bound before the procedure is loaded."""

    def __init__(self) -> None:
        super().__init__("Call load_procedure before binding parameters")


class CommandDisposedError(UsageError):
    """Raised when a disposed command is used again."""

    def __init__(self, command_text: str) -> None:
        self.command_text = command_text
        super().__init__(f"Command '{command_text}' has already been disposed")


class MissingHandlerError(UsageError):
    """Raised when an execute call receives no result handler."""

    def __init__(self, argument: str) -> None:
        self.argument = argument
        super().__init__(f"Argument '{argument}' must not be None")


class CursorClosedError(UsageError):
    """Raised when a ProcResults is used after its execute call returned."""

    def __init__(self) -> None:
        super().__init__("Result cursor is closed; it is only valid inside its handler")


class CursorBusyError(UsageError):
    """Raised when two operations overlap on the same result cursor."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"Cannot {operation}: another operation is in progress on this cursor")


class ConnectionStateError(UsageError):
    """Raised on invalid connection state transitions or access."""

    def __init__(self, current_state: str, attempted_action: str) -> None:
        self.current_state = current_state
        self.attempted_action = attempted_action
        super().__init__(f"Cannot {attempted_action} connection in state '{current_state}'")


# --- Cancellation ---


class OperationCancelledError(SprocQueryError):
    """Raised when a cancel event is set at an open/execute/advance boundary."""

    def __init__(self, stage: str) -> None:
        self.stage = stage
        super().__init__(f"Operation cancelled during {stage}")


# --- Mapping ---


class MappingError(SprocQueryError):
    """Base for mapping errors."""


class RecordConstructionError(MappingError):
    """Raised when a target record cannot be constructed."""

    def __init__(self, target_class: str, detail: str) -> None:
        self.target_class = target_class
        super().__init__(f"Cannot construct {target_class}: {detail}")


class ScalarCoercionError(MappingError):
    """Raised when a scalar value cannot be coerced to the requested type."""

    def __init__(self, value: object, target: str) -> None:
        self.value = value
        self.target = target
        super().__init__(f"Cannot coerce {type(value).__name__} value {value!r} to {target}")


class DescriptorError(MappingError):
    """Raised when a record descriptor is declared incorrectly."""


# --- Registry ---


class RegistryError(SprocQueryError):
    """Base for procedure registry errors."""


class ProcedureNotFoundError(RegistryError):
    """Raised when a procedure cannot be found in the registry."""

    def __init__(self, procedure_name: str) -> None:
        self.procedure_name = procedure_name
        super().__init__(f"Procedure not found: '{procedure_name}'")


class DuplicateProcedureError(RegistryError):
    """Raised when two script files resolve to the same procedure name."""

    def __init__(self, procedure_name: str, path_a: str, path_b: str) -> None:
        self.procedure_name = procedure_name
        super().__init__(f"Duplicate procedure name '{procedure_name}': {path_a} and {path_b}")


class ScriptParseError(RegistryError):
    """Raised when a procedure script cannot be split into statements."""


# --- Adapter ---


class AdapterError(SprocQueryError):
    """Base for adapter errors."""


class InvalidProcedureNameError(AdapterError):
    """Raised when a procedure name is not a plain qualified identifier."""

    def __init__(self, procedure_name: str) -> None:
        self.procedure_name = procedure_name
        super().__init__(f"Invalid procedure name: '{procedure_name}'")
