"""Transactions, rollback, and context deadlines."""

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

from dbstore import Context, Database, OperationCancelled, Repository, Seeder, SQLiteDialect


@dataclass
class Account:
    id: Optional[int] = field(default=None, metadata={"pk": True, "auto": True})
    owner: str = ""
    balance: int = 0


def transfer(repo: Repository, src: Account, dst: Account, amount: int) -> None:
    def work(tx_repo: Repository) -> None:
        if src.balance < amount:
            raise ValueError(f"{src.owner} cannot send {amount}")
        src.balance -= amount
        dst.balance += amount
        tx_repo.update_many_by_pk([src, dst])

    repo.transaction(work)


def main() -> None:
    conn = sqlite3.connect(":memory:")
    db = Database(conn, SQLiteDialect())
    repo = Repository(db)

    try:
        Seeder(db).create_tables([Account])
        alice, bob = repo.create_bulk([Account(owner="alice", balance=100), Account(owner="bob")])

        transfer(repo, alice, bob, 40)
        try:
            transfer(repo, bob, alice, 500)
        except ValueError as exc:
            print("Rolled back:", exc)

        print("Balances:", [(a.owner, a.balance) for a in repo.find_many_where(Account)])

        # An expired deadline stops the statement before it is sent.
        try:
            repo.find_many_where(Account, ctx=Context(timeout=0))
        except OperationCancelled as exc:
            print("Cancelled:", exc)
    finally:
        conn.close()


if __name__ == "__main__":
    main()
