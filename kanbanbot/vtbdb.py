"""Catalogue of vtuber voice quotations, stored in SQLite."""

from __future__ import annotations

import datetime
import json
import random
import sqlite3
import threading
import urllib.request
from dataclasses import dataclass
from typing import Any

VTB_LIST_URL = "https://vtbkeyboard.moe/api/get_vtb_list"
VTB_PAGE_URL = "https://vtbkeyboard.moe/api/get_vtb_page?uid="
TIMEOUT = 60

FIRST_HEADER = "请选择一个vtb并发送序号:\n"
SECOND_HEADER = "请选择一个语录类别并发送序号:\n"
THIRD_HEADER = "请选择一个语录并发送序号:\n"

_USER_AGENTS = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/96.0.4664.110 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64; rv:95.0) Gecko/20100101 Firefox/95.0",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/15.1 Safari/605.1.15",
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/96.0.4664.93 Safari/537.36",
)

_MODEL_COLUMNS = (
    "id INTEGER PRIMARY KEY AUTOINCREMENT, created_at DATETIME, "
    "updated_at DATETIME, deleted_at DATETIME"
)
_SCHEMA = (
    "CREATE TABLE IF NOT EXISTS first_category ("
    f"{_MODEL_COLUMNS}, first_category_index BIGINT, "
    "first_category_name VARCHAR(255), first_category_uid VARCHAR(255), "
    "first_category_description VARCHAR(1024), "
    "first_category_icon_path VARCHAR(255))",
    "CREATE TABLE IF NOT EXISTS second_category ("
    f"{_MODEL_COLUMNS}, second_category_index BIGINT, "
    "first_category_uid VARCHAR(255), second_category_name VARCHAR(255), "
    "second_category_author VARCHAR(255), "
    "second_category_description VARCHAR(255))",
    "CREATE TABLE IF NOT EXISTS third_category ("
    f"{_MODEL_COLUMNS}, third_category_index BIGINT, "
    "second_category_index BIGINT, first_category_uid VARCHAR(255), "
    "third_category_name VARCHAR(255), third_category_path VARCHAR(255), "
    "third_category_author VARCHAR(255), "
    "third_category_description VARCHAR(255))",
)
_ALIVE = "deleted_at IS NULL"


@dataclass(frozen=True)
class FirstCategory:
    """A vtuber."""

    index: int
    name: str
    uid: str
    description: str = ""
    icon_path: str = ""


@dataclass(frozen=True)
class SecondCategory:
    """A category of one vtuber's quotations."""

    index: int
    first_uid: str
    name: str
    author: str = ""
    description: str = ""


@dataclass(frozen=True)
class ThirdCategory:
    """One quotation, with the path of its recording."""

    index: int
    second_index: int
    first_uid: str
    name: str
    path: str = ""
    author: str = ""
    description: str = ""


def _now() -> str:
    return datetime.datetime.now().isoformat(sep=" ", timespec="microseconds")


def _get(data: Any, path: str) -> Any:
    for key in path.split("."):
        if isinstance(data, dict):
            data = data.get(key)
        elif isinstance(data, list) and key.isdigit() and int(key) < len(data):
            data = data[int(key)]
        else:
            return None
    return data


def _text(data: Any, path: str) -> str:
    value = _get(data, path)
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return json.dumps(value, ensure_ascii=False)


def _parse(data: Any) -> Any:
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    if isinstance(data, str):
        return json.loads(data)
    return data


def _request(url: str) -> bytes:
    request = urllib.request.Request(
        url, headers={"User-Agent": random.choice(_USER_AGENTS)}
    )
    with urllib.request.urlopen(request, timeout=TIMEOUT) as response:
        return response.read()


class VtbDB:
    """Vtubers, their quotation categories and the quotations themselves."""

    def __init__(self, path):
        self._conn = sqlite3.connect(
            str(path), check_same_thread=False, isolation_level=None
        )
        self._lock = threading.Lock()
        with self._lock:
            for statement in _SCHEMA:
                self._conn.execute(statement)

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "VtbDB":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _first_uid(self, first_index: int) -> str:
        row = self._conn.execute(
            "SELECT first_category_uid FROM first_category "
            f"WHERE first_category_index = ? AND {_ALIVE} ORDER BY id LIMIT 1",
            (first_index,),
        ).fetchone()
        return row[0] if row is not None and row[0] is not None else ""

    def first_category_message(self) -> str:
        """List every vtuber as a numbered menu."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT first_category_index, first_category_name "
                f"FROM first_category WHERE {_ALIVE} ORDER BY id"
            ).fetchall()
        return FIRST_HEADER + "".join(f"{index}. {name}\n" for index, name in rows)

    def second_category_message(self, first_index: int) -> str:
        """List one vtuber's categories, or return "" when there are none."""
        with self._lock:
            uid = self._first_uid(first_index)
            rows = self._conn.execute(
                "SELECT second_category_index, second_category_name "
                f"FROM second_category WHERE first_category_uid = ? AND {_ALIVE} "
                "ORDER BY id",
                (uid,),
            ).fetchall()
        if not rows:
            return ""
        return SECOND_HEADER + "".join(f"{index}. {name}\n" for index, name in rows)

    def third_category_message(self, first_index: int, second_index: int) -> str:
        """List the quotations of one category, or return "" when there are none."""
        with self._lock:
            uid = self._first_uid(first_index)
            rows = self._conn.execute(
                "SELECT third_category_index, third_category_name "
                "FROM third_category WHERE first_category_uid = ? "
                f"AND second_category_index = ? AND {_ALIVE} ORDER BY id",
                (uid, second_index),
            ).fetchall()
        if not rows:
            return ""
        return THIRD_HEADER + "".join(f"{index}. {name}\n" for index, name in rows)

    _THIRD_COLUMNS = (
        "third_category_index, second_category_index, first_category_uid, "
        "third_category_name, third_category_path, third_category_author, "
        "third_category_description"
    )

    @staticmethod
    def _third(row) -> ThirdCategory:
        return ThirdCategory(*(value if value is not None else "" for value in row))

    def third_category(self, first_index: int, second_index: int,
                       third_index: int) -> ThirdCategory | None:
        """Find one quotation by its three menu numbers."""
        with self._lock:
            uid = self._first_uid(first_index)
            row = self._conn.execute(
                f"SELECT {self._THIRD_COLUMNS} FROM third_category "
                "WHERE first_category_uid = ? AND second_category_index = ? "
                f"AND third_category_index = ? AND {_ALIVE} ORDER BY id LIMIT 1",
                (uid, second_index, third_index),
            ).fetchone()
        return self._third(row) if row is not None else None

    def random_vtb(self, rng: random.Random | None = None) -> ThirdCategory | None:
        """Pick a quotation at random, or None when there are none."""
        rng = rng if rng is not None else random.Random()
        with self._lock:
            (count,) = self._conn.execute(
                f"SELECT COUNT(*) FROM third_category WHERE {_ALIVE}"
            ).fetchone()
            if count == 0:
                return None
            row = self._conn.execute(
                f"SELECT {self._THIRD_COLUMNS} FROM third_category "
                f"WHERE {_ALIVE} ORDER BY id LIMIT 1 OFFSET ?",
                (rng.randrange(count),),
            ).fetchone()
        return self._third(row)

    def first_category_by_uid(self, uid: str) -> FirstCategory | None:
        """Find a vtuber by uid."""
        with self._lock:
            row = self._conn.execute(
                "SELECT first_category_index, first_category_name, "
                "first_category_uid, first_category_description, "
                "first_category_icon_path FROM first_category "
                f"WHERE first_category_uid = ? AND {_ALIVE} ORDER BY id LIMIT 1",
                (uid,),
            ).fetchone()
        if row is None:
            return None
        return FirstCategory(*(value if value is not None else "" for value in row))

    def _exists(self, table: str, where: str, args: tuple) -> bool:
        row = self._conn.execute(
            f"SELECT 1 FROM {table} WHERE {where} AND {_ALIVE} LIMIT 1", args
        ).fetchone()
        return row is not None

    def save_vtb_list(self, data) -> list[str]:
        """Store the vtuber list (JSON text or parsed) and return their uids."""
        items = _parse(data)
        if not isinstance(items, list):
            items = []
        uids = []
        with self._lock:
            for index, item in enumerate(items):
                fc = FirstCategory(
                    index=index,
                    name=_text(item, "name"),
                    uid=_text(item, "uid"),
                    description=_text(item, "description"),
                    icon_path=_text(item, "icon_path"),
                )
                now = _now()
                if self._exists("first_category", "first_category_uid = ?", (fc.uid,)):
                    self._conn.execute(
                        "UPDATE first_category SET first_category_index = ?, "
                        "first_category_name = ?, first_category_description = ?, "
                        "first_category_icon_path = ?, updated_at = ? "
                        f"WHERE first_category_uid = ? AND {_ALIVE}",
                        (fc.index, fc.name, fc.description, fc.icon_path, now, fc.uid),
                    )
                else:
                    self._conn.execute(
                        "INSERT INTO first_category (created_at, updated_at, "
                        "first_category_index, first_category_name, "
                        "first_category_uid, first_category_description, "
                        "first_category_icon_path) VALUES (?, ?, ?, ?, ?, ?, ?)",
                        (now, now, fc.index, fc.name, fc.uid, fc.description,
                         fc.icon_path),
                    )
                uids.append(fc.uid)
        return uids

    def save_vtb_page(self, uid: str, data) -> None:
        """Store one vtuber's categories and quotations (JSON text or parsed)."""
        page = _parse(data)
        voices = _get(page, "data.voices")
        if not isinstance(voices, list):
            voices = []
        with self._lock:
            for second_index, second in enumerate(voices):
                self._save_second(uid, second_index, second)
                voice_list = _get(second, "voiceList")
                if not isinstance(voice_list, list):
                    continue
                for third_index, third in enumerate(voice_list):
                    self._save_third(uid, second_index, third_index, third)

    def _save_second(self, uid: str, second_index: int, item: Any) -> None:
        name = _text(item, "categoryName")
        author = _text(item, "author")
        description = _text(item, "categoryDescription.zh-CN")
        now = _now()
        where = "first_category_uid = ? AND second_category_index = ?"
        if self._exists("second_category", where, (uid, second_index)):
            self._conn.execute(
                "UPDATE second_category SET second_category_name = ?, "
                "second_category_author = ?, second_category_description = ?, "
                f"updated_at = ? WHERE {where} AND {_ALIVE}",
                (name, author, description, now, uid, second_index),
            )
        else:
            self._conn.execute(
                "INSERT INTO second_category (created_at, updated_at, "
                "second_category_index, first_category_uid, second_category_name, "
                "second_category_author, second_category_description) "
                "VALUES (?, ?, ?, ?, ?, ?, ?)",
                (now, now, second_index, uid, name, author, description),
            )

    def _save_third(self, uid: str, second_index: int, third_index: int,
                    item: Any) -> None:
        name = _text(item, "name")
        description = _text(item, "description.zh-CN")
        path = _text(item, "path")
        author = _text(item, "author")
        now = _now()
        where = ("first_category_uid = ? AND second_category_index = ? "
                 "AND third_category_index = ?")
        key = (uid, second_index, third_index)
        if self._exists("third_category", where, key):
            self._conn.execute(
                "UPDATE third_category SET third_category_name = ?, "
                "third_category_description = ?, third_category_path = ?, "
                f"third_category_author = ?, updated_at = ? WHERE {where} AND {_ALIVE}",
                (name, description, path, author, now, *key),
            )
        else:
            self._conn.execute(
                "INSERT INTO third_category (created_at, updated_at, "
                "third_category_index, second_category_index, first_category_uid, "
                "third_category_name, third_category_path, third_category_author, "
                "third_category_description) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (now, now, third_index, second_index, uid, name, path, author,
                 description),
            )

    def fetch_vtb_list(self) -> list[str]:
        """Download and store the vtuber list; return their uids."""
        return self.save_vtb_list(_request(VTB_LIST_URL))

    def store_vtb(self, uid: str) -> None:
        """Download and store one vtuber's quotations."""
        self.save_vtb_page(uid, _request(VTB_PAGE_URL + uid))