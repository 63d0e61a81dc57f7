"""Interactive menu for choosing vtuber voice quotations and fetching their records."""

from __future__ import annotations

import os
import re
import urllib.parse
import urllib.request
from dataclasses import dataclass
from pathlib import Path

from .vtbdb import ThirdCategory, VtbDB

SESSION_TIMEOUT = 60
DOWNLOAD_TIMEOUT = 60
MAX_ERRORS = 3
USER_AGENT = "Mozilla/5.0 (Windows NT 6.1; WOW64; rv:6.0) Gecko/20100101 Firefox/6.0"

EXPIRED = "vtb语录指令过期"
TOO_MANY_ERRORS = "输入错误太多,请重新发指令"
BAD_NUMBER = "请输入正确的序号，三次输入错误，指令可退出重输"
EMPTY_CHOICE = "你选择的序号没有内容，请重新选择，三次输入错误，指令可退出重输"
NO_QUOTATION = "没有内容请重新选择，三次输入错误，指令可退出重输"

_LAST_SEGMENT = re.compile(r".*/(.*)")
_NUMBER = re.compile(r"[+-]?[0-9]+")


def escape_record_url(url: str) -> str:
    """Percent-escape the last path segment of a record URL."""
    match = _LAST_SEGMENT.search(url)
    if match is None:
        return url
    segment = match.group(1)
    url = url.replace(segment, urllib.parse.quote_plus(segment, safe=""))
    return url.replace("+", "%20")


def record_file_name(store, indexes, url: str) -> str:
    """Return the cache path of a record: ``<store>/<a>-<b>-<c><ext>``."""
    first, second, third = indexes
    base = url.rsplit("/", 1)[-1]
    dot = base.rfind(".")
    ext = base[dot:] if dot >= 0 else ""
    return os.path.join(os.fspath(store), f"{first}-{second}-{third}{ext}")


def download_record(path, url: str) -> bool:
    """Download ``url`` to ``path`` unless it is already there; True if downloaded."""
    target = Path(path)
    if target.exists():
        return False
    request = urllib.request.Request(url, headers={
        "Content-Type": "application/x-www-form-urlencoded",
        "User-Agent": USER_AGENT,
    })
    with urllib.request.urlopen(request, timeout=DOWNLOAD_TIMEOUT) as response:
        data = response.read()
    target.write_bytes(data)
    return True


@dataclass(frozen=True)
class Reply:
    """What the bot answers to one message of a session."""

    text: str = ""
    menu: str = ""
    quotation: ThirdCategory | None = None
    url: str = ""
    done: bool = False


class QuotationSession:
    """Three-step menu: vtuber, then category, then quotation."""

    def __init__(self, db: VtbDB):
        self._db = db
        self._indexes = [0, 0, 0]
        self._step = 0
        self._errors = 0
        self.done = False

    def start(self) -> str:
        """Return the first menu."""
        return self._db.first_category_message()

    def feed(self, text: str) -> Reply:
        """Handle one reply from the user."""
        if self.done:
            raise RuntimeError("session is over")
        if self._errors >= MAX_ERRORS:
            self.done = True
            return Reply(text=TOO_MANY_ERRORS, done=True)
        if not _NUMBER.fullmatch(text):
            self._errors += 1
            return Reply(text=BAD_NUMBER)
        number = int(text)
        if self._step == 0:
            return self._choose_vtuber(number)
        if self._step == 1:
            return self._choose_category(number)
        return self._choose_quotation(number)

    def _choose_vtuber(self, number: int) -> Reply:
        self._indexes[0] = number
        menu = self._db.second_category_message(number)
        if not menu:
            self._errors += 1
            return Reply(text=EMPTY_CHOICE, menu=self._db.first_category_message())
        self._step = 1
        return Reply(menu=menu)

    def _choose_category(self, number: int) -> Reply:
        self._indexes[1] = number
        menu = self._db.third_category_message(self._indexes[0], number)
        if not menu:
            self._errors += 1
            return Reply(text=EMPTY_CHOICE,
                         menu=self._db.second_category_message(self._indexes[0]))
        self._step = 2
        return Reply(menu=menu)

    def _choose_quotation(self, number: int) -> Reply:
        self._indexes[2] = number
        quotation = self._db.third_category(*self._indexes)
        if quotation is None or not quotation.path:
            self._errors += 1
            self._step = 1
            return Reply(text=NO_QUOTATION, menu=self._db.first_category_message())
        self.done = True
        return Reply(
            text=f"请欣赏《{quotation.name}》",
            quotation=quotation,
            url=escape_record_url(quotation.path),
            done=True,
        )

    @property
    def indexes(self) -> tuple[int, int, int]:
        return tuple(self._indexes)