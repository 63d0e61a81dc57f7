"""Reincarnation lottery: a random birthplace and gender."""

from __future__ import annotations

import bisect
import json
import random
from itertools import accumulate
from typing import Hashable, Iterable

GENDERS = (("男孩子", 50707), ("女孩子", 48292), ("雌雄同体", 1001))
SUCCESS = "投胎成功！\n您出生在 {country}, 是 {gender}。"
FAILURE = "投胎失败！\n您没能活到出生，祝您下次好运！"
_SURVIVAL_THRESHOLD = 1 << 27


class WeightedChooser:
    """Pick items at random with probability proportional to integer weights."""

    def __init__(self, choices: Iterable[tuple[Hashable, int]],
                 rng: random.Random | None = None):
        pairs = sorted(((item, int(weight)) for item, weight in choices),
                       key=lambda pair: pair[1])
        if any(weight < 0 for _, weight in pairs):
            raise ValueError("weights must not be negative")
        self._items = [item for item, _ in pairs]
        self._totals = list(accumulate(weight for _, weight in pairs))
        if not self._totals or self._totals[-1] <= 0:
            raise ValueError("zero choices with weight >= 1")
        self._rng = rng if rng is not None else random.Random()

    def pick(self):
        r = self._rng.randrange(self._totals[-1]) + 1
        return self._items[bisect.bisect_left(self._totals, r)]


def load_rates(path) -> list[tuple[str, float]]:
    """Read a JSON list of {"name", "weight"} entries."""
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    return [(entry["name"], float(entry["weight"])) for entry in data]


class Reborn:
    """Roll a new life from country weights and fixed gender weights."""

    def __init__(self, rates: Iterable[tuple[str, float]],
                 rng: random.Random | None = None):
        self._rng = rng if rng is not None else random.Random()
        self._countries = WeightedChooser(
            ((name, int(weight * 1e9)) for name, weight in rates), self._rng)
        self._genders = WeightedChooser(GENDERS, self._rng)

    def roll(self) -> str:
        if self._rng.getrandbits(31) > _SURVIVAL_THRESHOLD:
            country = self._countries.pick()
            gender = self._genders.pick()
            return SUCCESS.format(country=country, gender=gender)
        return FAILURE