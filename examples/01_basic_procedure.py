"""
Example 01: Basic Procedure Execution

This example demonstrates loading a procedure, binding parameters and mapping
its result set with SprocQuery's Database and execute_stored_proc.
"""

from sproc_query import ConnectionConfig, Database, execute_stored_proc
from dataclasses import dataclass
import tempfile
import sqlite3
from pathlib import Path


@dataclass
class User:
    id: int = 0
    name: str = ""


def main():
    # Create a temporary database
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    conn = sqlite3.connect(db_path)
    conn.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT, status TEXT)")
    conn.execute("INSERT INTO users (name, status) VALUES ('Alice', 'active')")
    conn.execute("INSERT INTO users (name, status) VALUES ('Bob', 'active')")
    conn.execute("INSERT INTO users (name, status) VALUES ('Charlie', 'inactive')")
    conn.commit()
    conn.close()

    # SQLite has no stored procedures: each script in procedures_dir stands in for one
    proc_dir = Path(tempfile.mkdtemp())
    (proc_dir / "GetUsersByStatus.sql").write_text(
        "SELECT id, name, status FROM users WHERE status = :status"
    )
    (proc_dir / "CountUsers.sql").write_text("SELECT COUNT(*) FROM users")

    config = ConnectionConfig(driver="sqlite", database=db_path, procedures_dir=proc_dir)
    db = Database.from_config(config)

    print("=== Basic Procedure Execution ===\n")

    # read_rows: map every row of the current result set
    users = []
    command = db.load_procedure("GetUsersByStatus").with_param("status", "active")
    execute_stored_proc(command, lambda results: users.extend(results.read_rows(User)))
    print(f"read_rows result ({len(users)} rows):")
    for user in users:
        print(f"  - {user.id}: {user.name}")
    print()

    # read_scalar: first column of the first row
    counts = []
    db.load_procedure("CountUsers").execute(
        lambda results: counts.append(results.read_scalar(int))
    )
    print(f"read_scalar result: {counts[0]} total users\n")

    # Clean up
    Path(db_path).unlink()
    for file in proc_dir.glob("*.sql"):
        file.unlink()
    proc_dir.rmdir()


if __name__ == "__main__":
    main()
