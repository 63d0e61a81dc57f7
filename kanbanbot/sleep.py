"""Good-night and good-morning tracking per group, stored in SQLite."""

from __future__ import annotations

import datetime
import sqlite3
import threading

_EPOCH = datetime.datetime.min


def _stamp(when: datetime.datetime) -> str:
    return when.isoformat(sep=" ", timespec="microseconds")


def _strip(now: datetime.datetime, hours: int) -> datetime.datetime:
    return now - datetime.timedelta(hours=hours, minutes=now.minute,
                                    seconds=now.second)


class SleepDB:
    """Last sleep or wake time of each member of each group."""

    def __init__(self, path):
        self._conn = sqlite3.connect(
            str(path), check_same_thread=False, isolation_level=None
        )
        self._lock = threading.Lock()
        with self._lock:
            self._conn.execute(
                "CREATE TABLE IF NOT EXISTS sleep_manage "
                "(id INTEGER PRIMARY KEY AUTOINCREMENT, group_id INTEGER, "
                "user_id INTEGER, sleep_time TEXT)"
            )

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "SleepDB":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _record(self, gid: int, uid: int, now: datetime.datetime,
                since: datetime.datetime) -> tuple[int, datetime.timedelta]:
        with self._lock:
            row = self._conn.execute(
                "SELECT sleep_time FROM sleep_manage "
                "WHERE group_id = ? AND user_id = ? ORDER BY id LIMIT 1",
                (gid, uid),
            ).fetchone()
            elapsed = datetime.timedelta(0)
            if row is None:
                self._conn.execute(
                    "INSERT INTO sleep_manage (group_id, user_id, sleep_time) "
                    "VALUES (?, ?, ?)",
                    (gid, uid, _stamp(now)),
                )
            else:
                elapsed = now - datetime.datetime.fromisoformat(row[0])
                self._conn.execute(
                    "UPDATE sleep_manage SET sleep_time = ? "
                    "WHERE group_id = ? AND user_id = ?",
                    (_stamp(now), gid, uid),
                )
            (position,) = self._conn.execute(
                "SELECT COUNT(*) FROM sleep_manage WHERE group_id = ? "
                "AND sleep_time <= ? AND sleep_time >= ?",
                (gid, _stamp(now), _stamp(since)),
            ).fetchone()
            return position, elapsed

    def sleep(self, gid: int, uid: int,
              now: datetime.datetime) -> tuple[int, datetime.timedelta]:
        """Record going to bed; return (place tonight, time awake)."""
        if now.hour >= 21:
            since = _strip(now, now.hour - 21)
        elif now.hour <= 3:
            since = _strip(now, now.hour + 3)
        else:
            since = _EPOCH
        return self._record(gid, uid, now, since)

    def get_up(self, gid: int, uid: int,
               now: datetime.datetime) -> tuple[int, datetime.timedelta]:
        """Record getting up; return (place this morning, time asleep)."""
        return self._record(gid, uid, now, _strip(now, now.hour - 6))


def _trunc_div(a: int, b: int) -> int:
    q = abs(a) // b
    return q if a >= 0 else -q


def split_duration(delta: datetime.timedelta) -> tuple[int, int, int]:
    """Split into whole (hours, minutes, seconds), truncating toward zero."""
    total = delta // datetime.timedelta(microseconds=1)
    hour_us, minute_us, second_us = 3_600_000_000, 60_000_000, 1_000_000
    hours = _trunc_div(total, hour_us)
    minutes = _trunc_div(total - hours * hour_us, minute_us)
    seconds = _trunc_div(total - hours * hour_us - minutes * minute_us, second_us)
    return hours, minutes, seconds


def is_morning(now: datetime.datetime) -> bool:
    return 6 <= now.hour <= 12


def is_evening(now: datetime.datetime) -> bool:
    return now.hour >= 21 or now.hour <= 3


def _untracked(hour: int, minute: int, second: int) -> bool:
    return (hour == 0 and minute == 0 and second == 0) or hour >= 24


def good_morning_text(position: int, duration: datetime.timedelta) -> str:
    hour, minute, second = split_duration(duration)
    if _untracked(hour, minute, second):
        return f"早安成功！你是今天第{position}个起床的"
    return (f"早安成功！你的睡眠时长为{hour}时{minute}分{second}秒,"
            f"你是今天第{position}个起床的")


def good_night_text(position: int, duration: datetime.timedelta) -> str:
    hour, minute, second = split_duration(duration)
    if _untracked(hour, minute, second):
        return f"晚安成功！你是今天第{position}个睡觉的"
    return (f"晚安成功！你的清醒时长为{hour}时{minute}分{second}秒,"
            f"你是今天第{position}个睡觉的")