"""Optional filters, ordering, and keyset pages."""

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

from dbstore import Database, Repository, Seeder, SQLiteDialect, order_by_desc, with_cursor
from dbstore import filters as f


@dataclass
class Product:
    id: Optional[int] = field(default=None, metadata={"pk": True, "auto": True})
    name: str = ""
    category: Optional[str] = None
    price: float = 0.0


def search(repo: Repository, category: Optional[str], text: Optional[str]) -> list[Product]:
    # Filters built from None or blank input are skipped.
    return repo.find_many_where(
        Product,
        f.eq("category", category),
        f.contains("name", text),
        lambda stmt: order_by_desc(stmt, "price"),
    )


def main() -> None:
    conn = sqlite3.connect(":memory:")
    db = Database(conn, SQLiteDialect())
    repo = Repository(db)

    try:
        Seeder(db).create_tables([Product])
        repo.create_bulk(
            [
                Product(name="desk lamp", category="home", price=25.0),
                Product(name="floor lamp", category="home", price=80.0),
                Product(name="usb cable", category="tech", price=5.0),
                Product(name="keyboard", category="tech", price=45.0),
                Product(name="lamp shade", category=None, price=12.0),
            ]
        )

        print("All lamps:", [p.name for p in search(repo, None, "lamp")])
        print("Home lamps:", [p.name for p in search(repo, "home", "lamp")])
        print("Everything:", [p.name for p in search(repo, None, "  ")])

        # Walk forward two rows at a time. The cursor row comes back first,
        # so every page after the first drops it.
        cursor = None
        while True:
            page = repo.find_many_where(Product, page=with_cursor(2, True, "id", cursor))
            if cursor is not None:
                page = page[1:]
            if not page:
                break
            print("Page:", [(p.id, p.name) for p in page])
            cursor = page[-1].id
    finally:
        conn.close()


if __name__ == "__main__":
    main()
