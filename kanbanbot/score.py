"""Daily sign-in with a capped score and levels, stored in SQLite."""

from __future__ import annotations

import datetime
import sqlite3
import threading
from dataclasses import dataclass

SIGNIN_MAX = 1
SCORE_MAX = 120
LEVELS = (0, 1, 2, 5, 10, 20, 35, 55, 75, 100, 120)


def _stamp(when: datetime.datetime) -> str:
    return when.isoformat(sep=" ", timespec="microseconds")


class ScoreDB:
    """Scores and sign-in counts per user."""

    def __init__(self, path):
        self._conn = sqlite3.connect(
            str(path), check_same_thread=False, isolation_level=None
        )
        self._lock = threading.Lock()
        with self._lock:
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS score "
                "(uid INTEGER PRIMARY KEY, score INTEGER DEFAULT 0)"
            )
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS sign_in "
                "(uid INTEGER PRIMARY KEY, count INTEGER DEFAULT 0, updated_at TEXT)"
            )

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "ScoreDB":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def get_score(self, uid: int) -> int:
        """Return the user's score, creating a zero record when missing."""
        with self._lock:
            row = self._conn.execute(
                "SELECT score FROM score WHERE uid = ?", (uid,)
            ).fetchone()
            if row is not None:
                return row[0]
            self._conn.execute("INSERT INTO score (uid, score) VALUES (?, 0)", (uid,))
            return 0

    def set_score(self, uid: int, score: int) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT INTO score (uid, score) VALUES (?, ?) "
                "ON CONFLICT(uid) DO UPDATE SET score = excluded.score",
                (uid, score),
            )

    def _get_sign_in(self, uid: int,
                     when: datetime.datetime) -> tuple[int, datetime.datetime]:
        with self._lock:
            row = self._conn.execute(
                "SELECT count, updated_at FROM sign_in WHERE uid = ?", (uid,)
            ).fetchone()
            if row is not None:
                return row[0], datetime.datetime.fromisoformat(row[1])
            self._conn.execute(
                "INSERT INTO sign_in (uid, count, updated_at) VALUES (?, 0, ?)",
                (uid, _stamp(when)),
            )
            return 0, when

    def _set_sign_in(self, uid: int, count: int, when: datetime.datetime) -> None:
        with self._lock:
            self._conn.execute(
                "INSERT INTO sign_in (uid, count, updated_at) VALUES (?, ?, ?) "
                "ON CONFLICT(uid) DO UPDATE SET count = excluded.count, "
                "updated_at = excluded.updated_at",
                (uid, count, _stamp(when)),
            )

    def get_sign_in(self, uid: int) -> tuple[int, datetime.datetime]:
        """Return (sign-in count, last update time), creating a record when missing."""
        return self._get_sign_in(uid, datetime.datetime.now())

    def set_sign_in_count(self, uid: int, count: int) -> None:
        self._set_sign_in(uid, count, datetime.datetime.now())

    def top_scores(self, n: int) -> list[tuple[int, int]]:
        """Return up to ``n`` (uid, score) pairs, highest score first."""
        with self._lock:
            return [
                (uid, score)
                for uid, score in self._conn.execute(
                    "SELECT uid, score FROM score ORDER BY score DESC LIMIT ?", (n,)
                )
            ]


@dataclass(frozen=True)
class SignInResult:
    """Outcome of one sign-in attempt."""

    already_signed: bool
    score: int = 0
    level: int = 0
    next_level_score: int = 0
    capped: bool = False
    hour_word: str = ""
    month_word: str = ""


def get_level(score: int) -> int:
    """Return the level reached by ``score``, or -1 beyond the last level."""
    for level, threshold in enumerate(LEVELS):
        if score == threshold:
            return level
        if score < threshold:
            return level - 1
    return -1


def get_hour_word(when: datetime.datetime) -> str:
    hour = when.hour
    if 6 <= hour < 12:
        return "早上好"
    if 12 <= hour < 14:
        return "中午好"
    if 14 <= hour < 19:
        return "下午好"
    if 19 <= hour < 24:
        return "晚上好"
    return "凌晨好"


def sign_in(db: ScoreDB, uid: int, now: datetime.datetime) -> SignInResult:
    """Sign ``uid`` in at ``now``, adding one point up to the cap."""
    today = now.strftime("%Y%m%d")
    count, updated = db._get_sign_in(uid, now)
    updated_day = updated.strftime("%Y%m%d")
    if count >= SIGNIN_MAX and updated_day == today:
        return SignInResult(already_signed=True)
    if updated_day != today:
        db._set_sign_in(uid, 0, now)
    db._set_sign_in(uid, count + 1, now)
    score = db.get_score(uid) + 1
    capped = score > SCORE_MAX
    if capped:
        score = SCORE_MAX
    db.set_score(uid, score)
    level = get_level(score)
    next_level = LEVELS[level + 1] if level < 10 else SCORE_MAX
    return SignInResult(
        already_signed=False,
        score=score,
        level=level,
        next_level_score=next_level,
        capped=capped,
        hour_word=get_hour_word(now),
        month_word=now.strftime("%m/%d"),
    )