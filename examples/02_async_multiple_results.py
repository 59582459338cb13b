"""
Example 02: Async Execution With Multiple Result Sets

This example demonstrates several handlers sharing one result cursor, each
consuming a result set and advancing to the next.
"""

import asyncio
from sproc_query import AsyncDatabase, ConnectionConfig, ProcResults
from dataclasses import dataclass
import tempfile
import sqlite3
from pathlib import Path


@dataclass
class User:
    id: int = 0
    name: str = ""


async def main():
    db_file = tempfile.NamedTemporaryFile(delete=False, suffix=".db")
    db_path = db_file.name
    db_file.close()

    conn = sqlite3.connect(db_path)
    conn.execute("CREATE TABLE users (id INTEGER PRIMARY KEY, name TEXT)")
    conn.execute("INSERT INTO users (name) VALUES ('Alice')")
    conn.execute("INSERT INTO users (name) VALUES ('Bob')")
    conn.commit()
    conn.close()

    proc_dir = Path(tempfile.mkdtemp())
    (proc_dir / "UserSummary.sql").write_text(
        "SELECT id, name FROM users ORDER BY id;\nSELECT COUNT(*) FROM users;"
    )

    config = ConnectionConfig(driver="sqlite", database=db_path, procedures_dir=proc_dir)
    db = AsyncDatabase.from_config(config)

    print("=== Async Multiple Result Sets ===\n")

    async def print_users(results: ProcResults) -> None:
        for user in results.read_rows(User):
            print(f"  - {user.id}: {user.name}")
        await results.advance_async()

    def print_total(results: ProcResults) -> None:
        print(f"Total: {results.read_scalar(int)}")

    # Cancel by setting the event from elsewhere; it is checked while opening,
    # executing and advancing
    cancel = asyncio.Event()
    await db.load_procedure("UserSummary").execute_many_async(
        [print_users, print_total], cancel=cancel
    )

    # Non-query calls return the affected row count, or -1 when unknown
    (proc_dir / "Rename.sql").write_text("UPDATE users SET name = :name WHERE id = :id")
    db = AsyncDatabase.from_config(config)
    affected = await (
        db.load_procedure("Rename").with_param("id", 1).with_param("name", "Alicia")
    ).execute_non_query_async()
    print(f"\nRows affected: {affected}")

    Path(db_path).unlink()
    for file in proc_dir.glob("*.sql"):
        file.unlink()
    proc_dir.rmdir()


if __name__ == "__main__":
    asyncio.run(main())
