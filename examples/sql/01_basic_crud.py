"""Basic CRUD example for the dbstore Repository."""

from __future__ import annotations

import sqlite3
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

# Allow running this script directly from repository root.
PROJECT_ROOT = next(
    (parent for parent in Path(__file__).resolve().parents if (parent / "dbstore").exists()),
    None,
)
if PROJECT_ROOT and str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from dbstore import Database, NoRowsError, Repository, Seeder, SQLiteDialect


@dataclass
class User:
    # Auto primary key: set by the store after insert.
    id: Optional[int] = field(default=None, metadata={"pk": True, "auto": True})
    email: str = field(default="", metadata={"unique": True})
    age: Optional[int] = None


def main() -> None:
    # 1) Create DB adapter and repository.
    conn = sqlite3.connect(":memory:")
    db = Database(conn, SQLiteDialect())
    repo = Repository(db)

    try:
        # 2) Create table from dataclass fields.
        Seeder(db).create_tables([User])

        # 3) Insert rows.
        alice = repo.create(User(email="alice@example.com", age=25))
        bob = repo.create(User(email="bob@example.com", age=30))
        print("Inserted:", alice, bob)

        # 4) A duplicate email is skipped instead of raising.
        repo.create(User(email="alice@example.com", age=99), ignore_duplicates=True)

        # 5) Load by PK into a probe record.
        print("Fetched by PK:", repo.find_one_by_pk(User(id=alice.id)))

        # 6) Update by PK (record must carry its PK).
        bob.age = 31
        print("Updated row count:", repo.update_one_by_pk(bob))

        # 7) Upsert overwrites every non-key column.
        repo.upsert(User(id=bob.id, email="robert@example.com", age=32))
        print("All users:", repo.find_many_where(User))

        # 8) Delete by PK; missing rows raise NoRowsError on lookup.
        print("Deleted row count:", repo.delete_by_pk(alice))
        try:
            repo.find_one_by_pk(User(id=alice.id))
        except NoRowsError as exc:
            print("Lookup after delete:", exc)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
