"""Major Arcana tarot draws, meanings and spreads."""

from __future__ import annotations

import json
import random
from dataclasses import dataclass, field
from typing import Mapping

BED = "https://gitcode.net/shudorcl/zbp-tarot/-/raw/master/"
MAJOR_ARCANA = 22
MAX_DRAW = 20
REASONS = ("您抽到的是~\n", "锵锵锵，塔罗牌的预言是~\n", "诶，让我看看您抽到了~\n")
POSITIONS = ("正位", "逆位")
_REVERSE = ("", "Reverse")


@dataclass(frozen=True)
class Card:
    """A tarot card and its meanings."""

    name: str
    description: str = ""
    reverse_description: str = ""
    img_url: str = ""


@dataclass(frozen=True)
class Formation:
    """A spread: how many cards and what each place stands for."""

    cards_num: int
    is_cut: bool = False
    represent: list[list[str]] = field(default_factory=list)


def _image_url(index: int, reversed_: int) -> str:
    return f"{BED}MajorArcana{_REVERSE[reversed_]}/{index}.png"


def load_tarot(cards_json, formations_json) -> tuple[dict[str, Card], dict[str, Formation]]:
    """Parse the card and formation JSON documents."""
    cards = {}
    for key, entry in json.loads(cards_json).items():
        info = entry.get("info", {})
        cards[key] = Card(
            name=entry.get("name", ""),
            description=info.get("description", ""),
            reverse_description=info.get("reverseDescription", ""),
            img_url=info.get("imgUrl", ""),
        )
    formations = {
        key: Formation(
            cards_num=entry.get("cards_num", 0),
            is_cut=entry.get("is_cut", False),
            represent=entry.get("represent", []),
        )
        for key, entry in json.loads(formations_json).items()
    }
    return cards, formations


def parse_draw_count(match: str, in_group: bool) -> int:
    """Turn the optional ``N张`` part of a draw command into a count."""
    if not match:
        return 1
    n = int(match.removesuffix("张"))
    if n <= 0:
        raise ValueError("张数必须为正")
    if n > 1 and not in_group:
        raise ValueError("抽取多张仅支持群聊")
    if n > MAX_DRAW:
        raise ValueError("抽取张数过多")
    return n


class Tarot:
    """Cards keyed by index string and spreads keyed by name."""

    def __init__(self, cards: Mapping[str, Card],
                 formations: Mapping[str, Formation],
                 rng: random.Random | None = None):
        self._cards = dict(cards)
        self._formations = dict(formations)
        self._rng = rng if rng is not None else random.Random()
        self._meanings = {card.name.split("(")[0]: card for card in self._cards.values()}

    def _name(self, index: int) -> str:
        card = self._cards.get(str(index))
        return card.name if card is not None else ""

    def _deal(self, n: int) -> list[tuple[int, int]]:
        indices = self._rng.sample(range(MAJOR_ARCANA), n)
        return [(index, self._rng.randrange(2)) for index in indices]

    def draw(self, n: int = 1) -> list[tuple[str, str]]:
        """Draw ``n`` distinct cards as (text, image url) pairs."""
        result = []
        for index, reversed_ in self._deal(n):
            reason = REASONS[self._rng.randrange(len(REASONS))]
            text = f"{reason}{POSITIONS[reversed_]} 的 {self._name(index)}\n"
            result.append((text, _image_url(index, reversed_)))
        return result

    def explain(self, name: str) -> tuple[str, str] | None:
        """Return (image url, meaning text) for a card name, or None."""
        card = self._meanings.get(name)
        if card is None:
            return None
        text = (f"\n{name}的含义是~"
                f"\n正位:{card.description}"
                f"\n逆位:{card.reverse_description}")
        return BED + card.img_url, text

    def spread(self, name: str, username: str) -> tuple[str, list[str]] | None:
        """Lay out a named spread: (summary text, image urls), or None."""
        formation = self._formations.get(name)
        if formation is None:
            return None
        lines = [username + "\n"]
        urls = []
        for place, (index, reversed_) in enumerate(self._deal(formation.cards_num)):
            lines.append(f"{formation.represent[0][place]}: "
                         f"{POSITIONS[reversed_]} 的 {self._name(index)}\n")
            urls.append(_image_url(index, reversed_))
        return "".join(lines), urls