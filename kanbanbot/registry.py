"""Daily marriage registry for group members, stored in SQLite."""

from __future__ import annotations

import datetime
import sqlite3
import threading
from dataclasses import dataclass
from enum import IntEnum
from typing import Callable

_UPDATE_TABLE = "updateinfo"
_NAME_WIDTH_LIMIT = 350


def _today() -> str:
    return datetime.date.today().strftime("%Y/%m/%d")


def _quote(name: str) -> str:
    return '"' + name.replace('"', '""') + '"'


class Status(IntEnum):
    """Where a member stands in a group's registry."""

    WIFE = 0
    HUSBAND = 1
    SINGLE = 3


@dataclass(frozen=True)
class Couple:
    """One registered pair; ``user`` is the husband, ``target`` the wife."""

    user: int
    target: int
    username: str
    targetname: str
    updatetime: str


class MarriageRegistry:
    """Per-group couple tables plus the date each group was last reset."""

    def __init__(self, path):
        self._conn = sqlite3.connect(
            str(path), check_same_thread=False, isolation_level=None
        )
        self._lock = threading.Lock()

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "MarriageRegistry":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _create_update_table(self) -> None:
        self._conn.execute(
            f"CREATE TABLE IF NOT EXISTS {_quote(_UPDATE_TABLE)} "
            "(gid INTEGER PRIMARY KEY, updatetime TEXT)"
        )

    def _create_group_table(self, gid: str) -> None:
        self._conn.execute(
            f"CREATE TABLE IF NOT EXISTS {_quote(gid)} "
            '("user" INTEGER PRIMARY KEY, target INTEGER, username TEXT, '
            "targetname TEXT, updatetime TEXT)"
        )

    def _record_update(self, gid: int) -> None:
        self._create_update_table()
        self._conn.execute(
            f"REPLACE INTO {_quote(_UPDATE_TABLE)} (gid, updatetime) VALUES (?, ?)",
            (gid, _today()),
        )

    def _find(self, gid: str, column: str, value: int) -> Couple | None:
        row = self._conn.execute(
            f'SELECT "user", target, username, targetname, updatetime '
            f"FROM {_quote(gid)} WHERE {_quote(column)} = ? LIMIT 1",
            (value,),
        ).fetchone()
        return Couple(*row) if row else None

    def _insert(self, gid: str, couple: Couple) -> None:
        self._conn.execute(
            f'REPLACE INTO {_quote(gid)} ("user", target, username, targetname, '
            "updatetime) VALUES (?, ?, ?, ?, ?)",
            (couple.user, couple.target, couple.username, couple.targetname,
             couple.updatetime),
        )

    def check_update(self, gid: int) -> str:
        """Return the group's last reset date, recording today if there is none."""
        with self._lock:
            self._create_update_table()
            row = self._conn.execute(
                f"SELECT updatetime FROM {_quote(_UPDATE_TABLE)} WHERE gid = ?",
                (gid,),
            ).fetchone()
            if row is not None:
                return row[0]
            today = _today()
            self._conn.execute(
                f"INSERT INTO {_quote(_UPDATE_TABLE)} (gid, updatetime) VALUES (?, ?)",
                (gid, today),
            )
            return today

    def reset(self, gid: str) -> None:
        """Clear one group's couples, or every group's when ``gid`` is ``"ALL"``."""
        with self._lock:
            if gid != "ALL":
                try:
                    self._conn.execute(f"DROP TABLE {_quote(gid)}")
                except sqlite3.OperationalError:
                    self._create_group_table(gid)
                    return
                try:
                    number = int(gid)
                except ValueError:
                    number = 0
                self._record_update(number)
                return
            tables = [
                name
                for (name,) in self._conn.execute(
                    "SELECT name FROM sqlite_master WHERE type = 'table'"
                )
                if name != _UPDATE_TABLE
            ]
            for table in tables:
                self._conn.execute(f"DROP TABLE {_quote(table)}")
                try:
                    number = int(table)
                except ValueError:
                    number = 0
                self._record_update(number)

    def divorce(self, gid: int, target: int) -> None:
        """Remove every record whose wife is ``target``."""
        with self._lock:
            self._create_group_table(str(gid))
            self._conn.execute(
                f"DELETE FROM {_quote(str(gid))} WHERE target = ?", (target,)
            )

    def remarry(self, gid: int, uid: int, target: int, username: str,
                targetname: str) -> None:
        """Register ``uid`` with ``target`` unless both already head a record."""
        with self._lock:
            table = str(gid)
            self._create_group_table(table)
            if (self._find(table, "user", uid) is not None
                    and self._find(table, "user", target) is not None):
                return
            self._insert(table, Couple(uid, target, username, targetname, _today()))

    def roster(self, gid: int) -> list[Couple]:
        """Return every couple of the group, skipping self-declared singles."""
        with self._lock:
            table = str(gid)
            self._create_group_table(table)
            rows = self._conn.execute(
                f'SELECT "user", target, username, targetname, updatetime '
                f'FROM {_quote(table)} GROUP BY "user" ORDER BY "user"'
            ).fetchall()
            return [Couple(*row) for row in rows if row[1] != 0]

    def lookup(self, gid: int, uid: int) -> tuple[Couple | None, Status]:
        """Find the record naming ``uid`` and the role ``uid`` plays in it."""
        with self._lock:
            table = str(gid)
            self._create_group_table(table)
            info = self._find(table, "user", uid)
            if info is not None:
                return info, Status.HUSBAND
            info = self._find(table, "target", uid)
            if info is not None:
                return info, Status.WIFE
            return None, Status.SINGLE

    def register(self, gid: int, uid: int, target: int, username: str,
                 targetname: str) -> None:
        """Record ``uid`` as husband of ``target`` for today."""
        with self._lock:
            table = str(gid)
            self._create_group_table(table)
            self._insert(table, Couple(uid, target, username, targetname, _today()))


def slice_name(name: str, measure: Callable[[str], float]) -> str:
    """Shorten ``name`` with an ellipsis when its drawn width exceeds 350."""
    total = 0
    last_fit = 0
    for index, char in enumerate(name):
        total += int(measure(char))
        if total > _NAME_WIDTH_LIMIT:
            break
        last_fit = index
    if total > _NAME_WIDTH_LIMIT:
        return name[:max(last_fit - 1, 0)] + "......"
    return name