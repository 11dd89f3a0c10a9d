# core/store.py — SQLite-backed invention store with change notifications

import os
import sqlite3
from datetime import datetime
from typing import Callable, List, Optional

from core.model import Invention, new_invention_id

SCHEMA_VERSION = "1"

_SORT_COLUMNS = {
    "title": "title ASC, created_at ASC, id ASC",
    "created_at": "created_at ASC, id ASC",
}


class StoreError(Exception):
    """A store mutation or commit failed; pending changes were not persisted."""


def _row_to_invention(row) -> Invention:
    inv_id, title, details, link_string, created_at = row
    try:
        stamp = datetime.fromisoformat(created_at) if created_at else datetime.fromtimestamp(0)
    except ValueError:
        stamp = datetime.fromtimestamp(0)
    return Invention(id=inv_id, title=title, details=details, link_string=link_string, created_at=stamp)


class InventionStore:
    """
    Durable collection of Invention records.
    Mutations (create/update/delete) are pending until save(); reads on the
    same store see pending changes. Subscribers are called after every
    save() and discard() so views can re-read all().
    """

    def __init__(self, path: str, *, sort_key: str = "title", connect=sqlite3.connect):
        if sort_key not in _SORT_COLUMNS:
            raise ValueError(f"Unknown sort_key '{sort_key}' (expected one of {sorted(_SORT_COLUMNS)})")
        self.path = path
        self.sort_key = sort_key
        self._listeners: List[Callable[[], None]] = []
        if path != ":memory:":
            os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        self._con = connect(path)
        self._init_schema()

    # ---------- schema ----------
    def _init_schema(self) -> None:
        cur = self._con.cursor()
        if self.path != ":memory:":
            cur.execute("PRAGMA journal_mode=WAL;")
        cur.execute("""CREATE TABLE IF NOT EXISTS inventions(
            id TEXT PRIMARY KEY,
            title TEXT, details TEXT, link_string TEXT, created_at TEXT
        )""")
        cur.execute("""CREATE TABLE IF NOT EXISTS meta(
            k TEXT PRIMARY KEY, v TEXT
        )""")
        cur.execute("INSERT OR IGNORE INTO meta(k,v) VALUES('schema_version', ?)", (SCHEMA_VERSION,))
        self._con.commit()

    # ---------- observers ----------
    def subscribe(self, callback: Callable[[], None]) -> Callable[[], None]:
        self._listeners.append(callback)

        def unsubscribe():
            if callback in self._listeners:
                self._listeners.remove(callback)
        return unsubscribe

    def _notify(self) -> None:
        for cb in list(self._listeners):
            cb()

    # ---------- reads ----------
    def all(self) -> List[Invention]:
        order = _SORT_COLUMNS[self.sort_key]
        cur = self._con.execute(
            f"SELECT id, title, details, link_string, created_at FROM inventions ORDER BY {order}"
        )
        return [_row_to_invention(r) for r in cur.fetchall()]

    def get(self, invention_id: str) -> Optional[Invention]:
        cur = self._con.execute(
            "SELECT id, title, details, link_string, created_at FROM inventions WHERE id=?",
            (invention_id,),
        )
        row = cur.fetchone()
        return _row_to_invention(row) if row else None

    def __len__(self) -> int:
        return self._con.execute("SELECT COUNT(*) FROM inventions").fetchone()[0]

    # ---------- pending mutations ----------
    def create(self, *, title: Optional[str], details: Optional[str], link_string: Optional[str] = None) -> Invention:
        inv = Invention(id=new_invention_id(), title=title, details=details,
                        link_string=link_string, created_at=datetime.now())
        self._execute(
            "create",
            "INSERT INTO inventions(id, title, details, link_string, created_at) VALUES(?,?,?,?,?)",
            (inv.id, inv.title, inv.details, inv.link_string, inv.created_at.isoformat()),
        )
        return inv

    def update(self, inv: Invention) -> None:
        cur = self._execute(
            "update",
            "UPDATE inventions SET title=?, details=?, link_string=? WHERE id=?",
            (inv.title, inv.details, inv.link_string, inv.id),
        )
        if cur.rowcount == 0:
            raise KeyError(f"Unknown invention '{inv.id}'")

    def delete(self, inv) -> None:
        invention_id = inv.id if isinstance(inv, Invention) else str(inv)
        self._execute("delete", "DELETE FROM inventions WHERE id=?", (invention_id,))

    def _execute(self, op: str, sql: str, params: tuple):
        try:
            return self._con.execute(sql, params)
        except sqlite3.Error as e:
            raise StoreError(f"{op} failed: {e}") from e

    # ---------- commit / rollback ----------
    def save(self) -> None:
        try:
            self._con.commit()
        except sqlite3.Error as e:
            raise StoreError(f"save failed: {e}") from e
        self._notify()

    def discard(self) -> None:
        try:
            self._con.rollback()
        except sqlite3.Error as e:
            raise StoreError(f"discard failed: {e}") from e
        self._notify()

    def close(self) -> None:
        self._listeners.clear()
        self._con.close()
