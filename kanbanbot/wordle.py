"""Word guessing game with a coloured board image."""

from __future__ import annotations

import io
from typing import Iterable

from PIL import Image, ImageDraw, ImageFont

MATCH_COLOR = (125, 166, 108)
EXIST_COLOR = (199, 183, 96)
NOT_EXIST_COLOR = (123, 123, 123)
UNDONE_COLOR = (219, 219, 219)
WHITE = (255, 255, 255)

CLASSES = {"": 5, "五阶": 5, "六阶": 6, "七阶": 7}

_SIDE = 20
_SPACE = 10
_STEP = _SIDE + 4


class WordleError(Exception):
    """A guess could not be accepted or the game is over."""


class LengthNotEnough(WordleError):
    """The guess does not have the target's length."""


class UnknownWord(WordleError):
    """The guess is not in the dictionary."""


class TimesRunOut(WordleError):
    """Every attempt has been used."""


def class_length(name: str) -> int:
    """Return the word length for a difficulty name such as 六阶."""
    try:
        return CLASSES[name]
    except KeyError:
        raise ValueError(f"unknown class: {name}") from None


class WordleGame:
    """One game: the target word, its dictionary and the guesses so far."""

    def __init__(self, target: str, dictionary: Iterable[str]):
        self.target = target
        self._dictionary = frozenset(dictionary)
        self.max_attempts = len(target) + 1
        self._records: list[str] = []

    @property
    def records(self) -> tuple[str, ...]:
        return tuple(self._records)

    def guess(self, word: str) -> bool:
        """Record a guess; True when it is the target.

        Raises TimesRunOut once the last attempt fails.
        """
        if len(self._records) >= self.max_attempts:
            raise TimesRunOut("times run out")
        word = word.lower()
        win = word == self.target
        if not win:
            if len(word) != len(self.target):
                raise LengthNotEnough("length not enough")
            if word not in self._dictionary:
                raise UnknownWord("unknown word")
        self._records.append(word)
        if not win and len(self._records) >= self.max_attempts:
            raise TimesRunOut("times run out")
        return win

    def _color(self, row: str, column: int) -> tuple[int, int, int]:
        letter = row[column]
        if letter == self.target[column]:
            return MATCH_COLOR
        if letter in self.target:
            return EXIST_COLOR
        return NOT_EXIST_COLOR

    def render(self) -> bytes:
        """Draw the board as PNG bytes."""
        length = len(self.target)
        width = _STEP * length + _SPACE * 2 - 4
        height = _STEP * (length + 1) + _SPACE * 2 - 4
        image = Image.new("RGB", (width, height), WHITE)
        draw = ImageDraw.Draw(image)
        font = ImageFont.load_default()
        for i in range(length + 1):
            for j in range(length):
                x = _SPACE + j * _STEP
                y = _SPACE + i * _STEP
                if i < len(self._records):
                    row = self._records[i]
                    draw.rectangle((x, y, x + _SIDE - 1, y + _SIDE - 1),
                                   fill=self._color(row, j))
                    draw.text((x + 7, y + 4), row[j].upper(), fill=WHITE, font=font)
                else:
                    draw.rectangle((x + 1, y + 1, x + _SIDE - 1, y + _SIDE - 1),
                                   outline=UNDONE_COLOR, width=1)
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()