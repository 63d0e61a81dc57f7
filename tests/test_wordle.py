import io

import pytest
from PIL import Image

from kanbanbot.wordle import (
    LengthNotEnough,
    TimesRunOut,
    UnknownWord,
    WordleError,
    WordleGame,
    class_length,
)

WORDS = ["apple", "grape", "lemon", "melon", "peach", "mango", "berry"]


def _image(game):
    return Image.open(io.BytesIO(game.render())).convert("RGB")


def test_correct_guess_wins():
    game = WordleGame("apple", WORDS)
    assert game.guess("APPLE") is True
    assert game.records == ("apple",)


def test_wrong_guess_is_recorded():
    game = WordleGame("apple", WORDS)
    assert game.guess("grape") is False
    assert game.records == ("grape",)


def test_length_mismatch():
    game = WordleGame("apple", WORDS)
    with pytest.raises(LengthNotEnough):
        game.guess("pear")
    assert game.records == ()


def test_unknown_word():
    game = WordleGame("apple", WORDS)
    with pytest.raises(UnknownWord):
        game.guess("zzzzz")
    assert game.records == ()


@pytest.mark.parametrize(
    "guesses,expected",
    [
        (["pear"], LengthNotEnough),
        (["zzzzz"], UnknownWord),
        (["grape", "lemon", "melon", "peach", "mango", "berry"], TimesRunOut),
    ],
)
def test_errors_share_base(guesses, expected):
    game = WordleGame("apple", WORDS)
    with pytest.raises(WordleError) as info:
        for word in guesses:
            game.guess(word)
    assert isinstance(info.value, expected)


def test_times_run_out():
    game = WordleGame("apple", WORDS)
    wrong = ["grape", "lemon", "melon", "peach", "mango", "berry"]
    for word in wrong[: game.max_attempts - 1]:
        assert game.guess(word) is False
    with pytest.raises(TimesRunOut):
        game.guess(wrong[game.max_attempts - 1])
    assert len(game.records) == game.max_attempts
    with pytest.raises(TimesRunOut):
        game.guess("apple")


def test_win_on_last_attempt():
    game = WordleGame("apple", WORDS)
    for word in ["grape", "lemon", "melon", "peach", "mango"][: game.max_attempts - 1]:
        game.guess(word)
    assert game.guess("apple") is True


def test_render_is_png():
    assert WordleGame("apple", WORDS).render()[:8] == b"\x89PNG\r\n\x1a\n"


def test_render_grows_with_length():
    small = _image(WordleGame("apple", WORDS))
    large = _image(WordleGame("banana", []))
    assert large.size[0] > small.size[0]
    assert large.size[1] > small.size[1]
    assert small.size[1] > small.size[0]


def test_undone_cell_colour():
    assert _image(WordleGame("apple", WORDS)).getpixel((11, 11)) == (219, 219, 219)


def test_match_cell_colour():
    game = WordleGame("apple", WORDS)
    game.guess("apple")
    assert game.records[0] == game.target
    assert _image(game).getpixel((11, 11)) == (125, 166, 108)


def test_missing_letter_colour():
    game = WordleGame("apple", WORDS)
    game.guess("mango")
    assert _image(game).getpixel((11, 11)) == (123, 123, 123)


def test_class_length():
    assert class_length("") == 5
    assert class_length("五阶") == 5
    assert class_length("六阶") == 6
    assert class_length("七阶") == 7
    with pytest.raises(ValueError):
        class_length("八阶")