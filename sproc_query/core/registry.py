"""Procedure registry - loads SQL scripts that emulate stored procedures.

Used by the SQLite adapter, since SQLite has no stored procedures.

Namespace convention:
    procedures/GetUsersByStatus.sql     -> "GetUsersByStatus"
    procedures/sales/ListOrders.sql     -> "sales.ListOrders"
"""

from __future__ import annotations

from pathlib import Path

from sproc_query.core.exceptions import DuplicateProcedureError, ProcedureNotFoundError
from sproc_query.core.sanitizer import split_statements


class ProcedureRegistry:
    """Loads and caches procedure scripts from a directory structure.

    Each script is split into statements once at load time; every statement
    that returns rows produces one result set when the procedure runs.
    Lookups are case-insensitive, matching SQL identifier rules.

    Args:
        root_dir: Root directory containing ``.sql`` scripts.

    Raises:
        DuplicateProcedureError: If two files resolve to the same name.
    """

    def __init__(self, root_dir: Path | str) -> None:
        self._root_dir = Path(root_dir)
        self._procedures: dict[str, list[str]] = {}
        self._names: dict[str, str] = {}
        self._paths: dict[str, Path] = {}
        self._load()

    def _load(self) -> None:
        """Recursively load all .sql files from root directory."""
        if not self._root_dir.exists():
            return

        for sql_file in sorted(self._root_dir.rglob("*.sql")):
            relative = sql_file.relative_to(self._root_dir)
            parts = list(relative.parts)
            parts[-1] = parts[-1].removesuffix(".sql")
            name = ".".join(parts)
            key = name.casefold()

            if key in self._procedures:
                raise DuplicateProcedureError(name, str(self._paths[key]), str(sql_file))

            script = sql_file.read_text(encoding="utf-8")
            self._procedures[key] = split_statements(script)
            self._names[key] = name
            self._paths[key] = sql_file

    def get(self, procedure_name: str) -> list[str]:
        """Look up the statements of a procedure.

        Raises:
            ProcedureNotFoundError: If no script matches the given name.
        """
        try:
            return list(self._procedures[procedure_name.casefold()])
        except KeyError:
            raise ProcedureNotFoundError(procedure_name) from None

    def has(self, procedure_name: str) -> bool:
        """Check if a procedure name is registered."""
        return procedure_name.casefold() in self._procedures

    @property
    def procedure_names(self) -> list[str]:
        """List all registered procedure names, sorted alphabetically."""
        return sorted(self._names.values())

    def __len__(self) -> int:
        """Number of registered procedures."""
        return len(self._procedures)
