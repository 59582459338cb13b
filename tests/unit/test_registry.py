"""Unit tests for ProcedureRegistry."""

from __future__ import annotations

from pathlib import Path

import pytest

from sproc_query.core.exceptions import DuplicateProcedureError, ProcedureNotFoundError
from sproc_query.core.registry import ProcedureRegistry


class TestProcedureRegistry:
    def test_load_directory(self, tmp_proc_dir: Path, write_procedure) -> None:
        write_procedure("GetUsers.sql", "SELECT * FROM users")
        write_procedure("sales/ListOrders.sql", "SELECT * FROM orders")
        registry = ProcedureRegistry(tmp_proc_dir)
        assert len(registry) == 2

    def test_dot_separated_namespace(self, tmp_proc_dir: Path, write_procedure) -> None:
        write_procedure("sales/reports/Monthly.sql", "SELECT 1")
        registry = ProcedureRegistry(tmp_proc_dir)
        assert registry.has("sales.reports.Monthly")

    def test_lookup_is_case_insensitive(self, tmp_proc_dir: Path, write_procedure) -> None:
        write_procedure("dbo/GetUsers.sql", "SELECT 1")
        registry = ProcedureRegistry(tmp_proc_dir)
        assert registry.has("DBO.getusers")
        assert registry.get("dbo.GETUSERS") == ["SELECT 1"]

    def test_get_returns_statements(self, tmp_proc_dir: Path, write_procedure) -> None:
        write_procedure(
            "Report.sql",
            "-- two result sets\nSELECT id FROM users;\nSELECT COUNT(*) FROM users;\n",
        )
        registry = ProcedureRegistry(tmp_proc_dir)
        assert registry.get("Report") == ["SELECT id FROM users", "SELECT COUNT(*) FROM users"]

    def test_get_returns_copy(self, tmp_proc_dir: Path, write_procedure) -> None:
        write_procedure("Report.sql", "SELECT 1")
        registry = ProcedureRegistry(tmp_proc_dir)
        registry.get("Report").append("DROP TABLE users")
        assert registry.get("Report") == ["SELECT 1"]

    def test_procedure_names_sorted(self, tmp_proc_dir: Path, write_procedure) -> None:
        write_procedure("b/Proc.sql", "SELECT 1")
        write_procedure("a/Proc.sql", "SELECT 2")
        write_procedure("c/Proc.sql", "SELECT 3")
        registry = ProcedureRegistry(tmp_proc_dir)
        assert registry.procedure_names == ["a.Proc", "b.Proc", "c.Proc"]

    def test_procedure_not_found(self, tmp_proc_dir: Path, write_procedure) -> None:
        write_procedure("GetUsers.sql", "SELECT 1")
        registry = ProcedureRegistry(tmp_proc_dir)
        with pytest.raises(ProcedureNotFoundError, match="Missing"):
            registry.get("Missing")

    def test_duplicate_names_differing_in_case(
        self, tmp_proc_dir: Path, write_procedure
    ) -> None:
        write_procedure("GetUsers.sql", "SELECT 1")
        write_procedure("getusers.sql", "SELECT 2")
        if len(list(tmp_proc_dir.iterdir())) < 2:
            pytest.skip("case-insensitive filesystem")
        with pytest.raises(DuplicateProcedureError):
            ProcedureRegistry(tmp_proc_dir)

    def test_missing_directory_is_empty(self, tmp_path: Path) -> None:
        registry = ProcedureRegistry(tmp_path / "nope")
        assert len(registry) == 0
        assert registry.procedure_names == []
