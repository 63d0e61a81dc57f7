import datetime

import pytest

from kanbanbot.score import (
    LEVELS,
    SCORE_MAX,
    ScoreDB,
    get_hour_word,
    get_level,
    sign_in,
)


@pytest.fixture
def db(tmp_path):
    database = ScoreDB(tmp_path / "score.db")
    yield database
    database.close()


@pytest.mark.parametrize("score, level", [(0, 0), (1, 1), (3, 2), (120, 10), (121, -1)])
def test_get_level(score, level):
    assert get_level(score) == level


def test_levels_match_thresholds():
    for level, threshold in enumerate(LEVELS):
        assert get_level(threshold) == level


@pytest.mark.parametrize("hour, word", [
    (7, "早上好"), (12, "中午好"), (15, "下午好"), (20, "晚上好"), (2, "凌晨好"),
])
def test_hour_word(hour, word):
    assert get_hour_word(datetime.datetime(2022, 7, 1, hour)) == word


def test_score_round_trip(db):
    assert db.get_score(5) == 0
    db.set_score(5, 42)
    assert db.get_score(5) == 42


def test_sign_in_count_round_trip(db):
    count, _ = db.get_sign_in(9)
    assert count == 0
    db.set_sign_in_count(9, 3)
    assert db.get_sign_in(9)[0] == 3


def test_top_scores_order(db):
    for uid, score in [(1, 5), (2, 50), (3, 20)]:
        db.set_score(uid, score)
    assert db.top_scores(2) == [(2, 50), (3, 20)]


def test_first_sign_in(db):
    now = datetime.datetime(2022, 7, 1, 8, 30)
    result = sign_in(db, 7, now)
    assert not result.already_signed
    assert result.score == 1
    assert result.level == 1
    assert result.next_level_score == LEVELS[2]
    assert result.hour_word == "早上好"
    assert result.month_word == now.strftime("%m/%d")
    assert db.get_score(7) == 1


def test_second_sign_in_same_day(db):
    now = datetime.datetime(2022, 7, 1, 8, 30)
    sign_in(db, 7, now)
    again = sign_in(db, 7, now + datetime.timedelta(hours=2))
    assert again.already_signed
    assert db.get_score(7) == 1


def test_sign_in_next_day(db):
    now = datetime.datetime(2022, 7, 1, 8, 30)
    sign_in(db, 7, now)
    result = sign_in(db, 7, now + datetime.timedelta(days=1))
    assert not result.already_signed
    assert result.score == 2
    assert db.get_score(7) == 2


def test_sign_in_capped(db):
    db.set_score(8, SCORE_MAX)
    result = sign_in(db, 8, datetime.datetime(2022, 7, 1, 20))
    assert result.capped
    assert result.score == SCORE_MAX
    assert result.next_level_score == SCORE_MAX
    assert db.get_score(8) == SCORE_MAX