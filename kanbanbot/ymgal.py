"""Galgame CG and sticker sets scraped from ymgal, stored in SQLite."""

from __future__ import annotations

import random
import re
import sqlite3
import threading
import time
import urllib.parse
import urllib.request
from dataclasses import dataclass
from typing import Callable

import lxml.html

WEB_URL = "https://www.ymgal.com"
CG_TYPE = "Gal CG"
EMOTICON_TYPE = "其他"
WEB_PIC_URL = WEB_URL + "/co/picset/"
CG_URL = (WEB_URL + "/search?type=picset&sort=default&category="
          + urllib.parse.quote_plus(CG_TYPE) + "&page=")
EMOTICON_URL = (WEB_URL + "/search?type=picset&sort=default&category="
                + urllib.parse.quote_plus(EMOTICON_TYPE) + "&page=")
REQUEST_INTERVAL = 0.5
TIMEOUT = 30

_PAGE_NUMBER_EXPR = ("//*[@id='pager-box']/div/a[@class='icon item pager-next']"
                     "/preceding-sibling::a[1]/text()")
_PICSET_EXPR = "//*[@id='picset-result-list']/ul/div/div[1]/a"
_PICTURE_COUNT_EXPR = ("//div[@class='meta-info']/div[@class='meta-right']"
                       "/span[2]/text()")
_CG_PICTURE_EXPR = ("//*[@id='main-picset-warp']/div/div[2]/div"
                    "/div[@class='swiper-wrapper']/div[{}]")
_EMOTICON_PICTURE_EXPR = ("//*[@id='main-picset-warp']/div"
                          "/div[@class='stream-list']/div[{}]/img")
_NUMBER = re.compile(r"\d+")


@dataclass(frozen=True)
class Ymgal:
    """One picture set."""

    id: int
    title: str
    picture_type: str
    picture_description: str
    picture_list: str

    @property
    def pictures(self) -> list[str]:
        return self.picture_list.split(",") if self.picture_list else []


_COLUMNS = "id, title, picture_type, picture_description, picture_list"


def _row(row) -> Ymgal:
    return Ymgal(*(value if value is not None else "" for value in row))


def _key(id):
    if isinstance(id, str) and id.isdigit():
        return int(id)
    return id


class YmgalDB:
    """Picture sets keyed by their site id."""

    def __init__(self, path):
        self._conn = sqlite3.connect(
            str(path), check_same_thread=False, isolation_level=None
        )
        self._lock = threading.Lock()
        with self._lock:
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS ymgal (id INTEGER PRIMARY KEY, "
                "title VARCHAR(255), picture_type VARCHAR(255), "
                "picture_description VARCHAR(1024), picture_list VARCHAR(20000))"
            )

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "YmgalDB":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def upsert(self, id: int, title: str, picture_type: str,
               picture_description: str, picture_list: str) -> None:
        """Insert a picture set or replace the stored one with the same id."""
        with self._lock:
            self._conn.execute(
                f"INSERT INTO ymgal ({_COLUMNS}) VALUES (?, ?, ?, ?, ?) "
                "ON CONFLICT(id) DO UPDATE SET title = excluded.title, "
                "picture_type = excluded.picture_type, "
                "picture_description = excluded.picture_description, "
                "picture_list = excluded.picture_list",
                (id, title, picture_type, picture_description, picture_list),
            )

    def get_by_id(self, id) -> Ymgal | None:
        with self._lock:
            row = self._conn.execute(
                f"SELECT {_COLUMNS} FROM ymgal WHERE id = ?", (_key(id),)
            ).fetchone()
        return _row(row) if row is not None else None

    def _pick(self, where: str, args: tuple, rng: random.Random | None) -> Ymgal | None:
        rng = rng if rng is not None else random.Random()
        with self._lock:
            (count,) = self._conn.execute(
                f"SELECT COUNT(*) FROM ymgal WHERE {where}", args
            ).fetchone()
            if count == 0:
                return None
            row = self._conn.execute(
                f"SELECT {_COLUMNS} FROM ymgal WHERE {where} "
                "ORDER BY id LIMIT 1 OFFSET ?",
                (*args, rng.randrange(count)),
            ).fetchone()
        return _row(row)

    def random(self, picture_type: str, rng: random.Random | None = None) -> Ymgal | None:
        """Pick a random set of the given type, or None when there is none."""
        return self._pick("picture_type = ?", (picture_type,), rng)

    def search(self, picture_type: str, key: str,
               rng: random.Random | None = None) -> Ymgal | None:
        """Pick a random set whose title or description contains ``key``."""
        pattern = f"%{key}%"
        return self._pick(
            "picture_type = ? AND (picture_description LIKE ? OR title LIKE ?)",
            (picture_type, pattern, pattern), rng,
        )


def _document(html):
    return lxml.html.document_fromstring(html)


def _find_one(doc, expr: str):
    found = doc.xpath(expr)
    if not found:
        raise ValueError(f"nothing matches {expr}")
    return found[0]


def _attribute(element, position: int) -> str:
    values = list(element.attrib.values())
    if len(values) <= position:
        raise ValueError(f"element <{element.tag}> lacks attribute {position}")
    return values[position]


def parse_page_number(html) -> int:
    """Return the number of the last result page."""
    return int(str(_find_one(_document(html), _PAGE_NUMBER_EXPR)))


def parse_picset_ids(html) -> list[str]:
    """Return the picture set ids listed on a search result page."""
    ids = []
    for link in _document(html).xpath(_PICSET_EXPR):
        values = list(link.attrib.values())
        match = _NUMBER.search(values[0]) if values else None
        ids.append(match.group(0) if match else "")
    return ids


def _parse_picset(html, pic_id, picture_type: str, picture_expr: str) -> Ymgal:
    number = int(pic_id)
    doc = _document(html)
    title = _attribute(_find_one(doc, "//meta[@name='name']"), 1)
    description = _attribute(_find_one(doc, "//meta[@name='description']"), 1)
    count_text = _NUMBER.search(str(_find_one(doc, _PICTURE_COUNT_EXPR)))
    if count_text is None:
        raise ValueError("picture count missing")
    urls = [
        _attribute(_find_one(doc, picture_expr.format(i)), 1)
        for i in range(1, int(count_text.group(0)) + 1)
    ]
    return Ymgal(number, title, picture_type, description, ",".join(urls))


def parse_cg_page(html, pic_id) -> Ymgal:
    """Parse a CG picture set page."""
    return _parse_picset(html, pic_id, CG_TYPE, _CG_PICTURE_EXPR)


def parse_emoticon_page(html, pic_id) -> Ymgal:
    """Parse a sticker picture set page."""
    return _parse_picset(html, pic_id, EMOTICON_TYPE, _EMOTICON_PICTURE_EXPR)


def _fetch(url: str) -> str:
    with urllib.request.urlopen(url, timeout=TIMEOUT) as response:
        return response.read().decode("utf-8", errors="replace")


def _collect_ids(fetch: Callable[[str], str], base_url: str, pages: int) -> list[str]:
    ids = []
    for page in range(1, pages + 1):
        ids.extend(parse_picset_ids(fetch(base_url + str(page))))
        time.sleep(REQUEST_INTERVAL)
    return ids


def _store_new(db: YmgalDB, fetch: Callable[[str], str], ids: list[str],
               parse: Callable[[str, str], Ymgal]) -> int:
    stored = 0
    for pic_id in reversed(ids):
        existing = db.get_by_id(pic_id)
        if existing is not None and existing.picture_list:
            break
        y = parse(fetch(WEB_PIC_URL + pic_id), pic_id)
        db.upsert(y.id, y.title, y.picture_type, y.picture_description,
                  y.picture_list)
        stored += 1
        time.sleep(REQUEST_INTERVAL)
    return stored


def update_pictures(db: YmgalDB, fetch: Callable[[str], str] | None = None) -> int:
    """Scrape the site for sets newer than those stored; return how many were added."""
    fetch = fetch if fetch is not None else _fetch
    cg_pages = parse_page_number(fetch(CG_URL + "1"))
    emoticon_pages = parse_page_number(fetch(EMOTICON_URL + "1"))
    cg_ids = _collect_ids(fetch, CG_URL, cg_pages)
    emoticon_ids = _collect_ids(fetch, EMOTICON_URL, emoticon_pages)
    return (_store_new(db, fetch, cg_ids, parse_cg_page)
            + _store_new(db, fetch, emoticon_ids, parse_emoticon_page))


def format_ymgal(y: Ymgal | None, bot_name: str) -> list[str]:
    """Build the forwarded messages for a set: title, description, images.

    When there is nothing to show, the list holds only an apology.
    """
    if y is None or not y.picture_list:
        return [f"{bot_name}暂时没有这样的图呢"]
    messages = [y.title]
    if y.picture_description:
        messages.append(y.picture_description)
    messages.extend(f"[CQ:image,file={url}]" for url in y.pictures)
    return messages