import os
import urllib.parse

import pytest

from kanbanbot.vtb import (
    BAD_NUMBER,
    EMPTY_CHOICE,
    NO_QUOTATION,
    TOO_MANY_ERRORS,
    QuotationSession,
    download_record,
    escape_record_url,
    record_file_name,
)
from kanbanbot.vtbdb import VtbDB


@pytest.fixture
def db(tmp_path):
    database = VtbDB(tmp_path / "vtb.db")
    database.save_vtb_list([{"name": "Alice", "uid": "u1"},
                            {"name": "Bob", "uid": "u2"}])
    database.save_vtb_page("u1", {"data": {"voices": [
        {"categoryName": "greet", "voiceList": [
            {"name": "hello", "path": "https://example.com/voices/hello world.mp3"},
            {"name": "mute", "path": ""},
        ]},
    ]}})
    yield database
    database.close()


def test_escape_space_in_last_segment():
    assert escape_record_url("https://example.com/a/b c.mp3") == \
        "https://example.com/a/b%20c.mp3"


def test_escape_without_slash_is_unchanged():
    assert escape_record_url("plain name.mp3") == "plain name.mp3"


def test_escape_round_trips_unicode_segment():
    url = "https://example.com/voice/早上好 呀.ogg"
    escaped = escape_record_url(url)
    assert " " not in escaped
    assert urllib.parse.unquote(escaped) == url


def test_record_file_name_keeps_extension():
    name = record_file_name("store", (1, 2, 3), "https://example.com/x/y.mp3")
    assert name == os.path.join("store", "1-2-3.mp3")


def test_record_file_name_without_extension():
    name = record_file_name("store", (4, 5, 6), "https://example.com/x.d/y")
    assert os.path.basename(name) == "4-5-6"


def test_download_keeps_existing_file(tmp_path):
    target = tmp_path / "rec.mp3"
    target.write_bytes(b"old")
    source = tmp_path / "src.mp3"
    source.write_bytes(b"new")
    assert download_record(target, source.as_uri()) is False
    assert target.read_bytes() == b"old"


def test_download_fetches_missing_file(tmp_path):
    source = tmp_path / "src.mp3"
    source.write_bytes(b"voice")
    target = tmp_path / "rec.mp3"
    assert download_record(target, source.as_uri()) is True
    assert target.read_bytes() == b"voice"


def test_full_session(db):
    session = QuotationSession(db)
    assert session.start() == db.first_category_message()
    first = session.feed("0")
    assert first.menu == db.second_category_message(0)
    second = session.feed("0")
    assert second.menu == db.third_category_message(0, 0)
    final = session.feed("0")
    assert final.done
    assert final.quotation.name == "hello"
    assert final.text == "请欣赏《hello》"
    assert final.url == escape_record_url(final.quotation.path)
    with pytest.raises(RuntimeError):
        session.feed("0")


def test_empty_vtuber_choice(db):
    session = QuotationSession(db)
    reply = session.feed("1")
    assert reply.text == EMPTY_CHOICE
    assert reply.menu == db.first_category_message()
    assert not reply.done


def test_missing_quotation_goes_back_to_category(db):
    session = QuotationSession(db)
    session.feed("0")
    session.feed("0")
    reply = session.feed("1")
    assert reply.text == NO_QUOTATION
    assert reply.menu == db.first_category_message()
    again = session.feed("0")
    assert again.menu == db.third_category_message(0, 0)


def test_too_many_errors_ends_session(db):
    session = QuotationSession(db)
    for _ in range(3):
        assert session.feed("abc").text == BAD_NUMBER
    reply = session.feed("0")
    assert reply.text == TOO_MANY_ERRORS
    assert reply.done