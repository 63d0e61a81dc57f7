import json
import random

import pytest

from kanbanbot.reborn import FAILURE, GENDERS, Reborn, WeightedChooser, load_rates


class FixedRandom:
    def __init__(self, bits, *values):
        self.bits = bits
        self.values = list(values)

    def getrandbits(self, k):
        return self.bits

    def randrange(self, n):
        value = self.values.pop(0)
        assert 0 <= value < n
        return value


def test_chooser_only_positive_weight_chosen():
    chooser = WeightedChooser([("a", 1), ("b", 0)], random.Random(3))
    assert {chooser.pick() for _ in range(50)} == {"a"}


def test_chooser_zero_total_raises():
    with pytest.raises(ValueError):
        WeightedChooser([("a", 0)])
    with pytest.raises(ValueError):
        WeightedChooser([])


def test_chooser_negative_weight_raises():
    with pytest.raises(ValueError):
        WeightedChooser([("a", 5), ("b", -1)])


def test_chooser_boundaries():
    choices = [("b", 3), ("a", 2)]
    assert WeightedChooser(choices, FixedRandom(0, 1)).pick() == "a"
    assert WeightedChooser(choices, FixedRandom(0, 2)).pick() == "b"
    assert WeightedChooser(choices, FixedRandom(0, 4)).pick() == "b"


def test_chooser_picks_from_items():
    chooser = WeightedChooser(GENDERS, random.Random(7))
    names = {name for name, _ in GENDERS}
    assert {chooser.pick() for _ in range(200)} <= names


def test_load_rates(tmp_path):
    path = tmp_path / "rate.json"
    path.write_text(json.dumps([{"name": "中国", "weight": 0.5},
                                {"name": "日本", "weight": 0.25}]),
                    encoding="utf-8")
    assert load_rates(path) == [("中国", 0.5), ("日本", 0.25)]


def test_roll_failure():
    reborn = Reborn([("中国", 0.5)], FixedRandom(0))
    assert reborn.roll() == FAILURE


def test_roll_success():
    reborn = Reborn([("中国", 0.5), ("日本", 0.25)], FixedRandom(1 << 30, 0, 0))
    assert reborn.roll() == "投胎成功！\n您出生在 日本, 是 雌雄同体。"


def test_roll_with_real_rng_gives_known_text():
    reborn = Reborn([("中国", 0.5)], random.Random(1))
    for _ in range(20):
        text = reborn.roll()
        assert text == FAILURE or text.startswith("投胎成功！\n您出生在 中国, 是 ")


def test_reborn_zero_rates_raise():
    with pytest.raises(ValueError):
        Reborn([("中国", 0.0)])