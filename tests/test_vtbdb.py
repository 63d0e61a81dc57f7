import io
import json
import random
from unittest import mock

import pytest

from kanbanbot.vtbdb import (
    FIRST_HEADER,
    SECOND_HEADER,
    THIRD_HEADER,
    VTB_LIST_URL,
    VTB_PAGE_URL,
    FirstCategory,
    ThirdCategory,
    VtbDB,
)

VTB_LIST = [
    {"name": "Alpha", "uid": "u1", "description": "first", "icon_path": "a.png"},
    {"name": "Beta", "uid": "u2", "description": "second", "icon_path": "b.png"},
]

VTB_PAGE = {
    "data": {
        "voices": [
            {
                "categoryName": "greet",
                "author": "ann",
                "categoryDescription": {"zh-CN": "hello"},
                "voiceList": [
                    {"name": "hi", "path": "x/hi.mp3", "author": "ann",
                     "description": {"zh-CN": "d1"}},
                    {"name": "bye", "path": "x/bye.mp3", "author": "bob",
                     "description": {"zh-CN": "d2"}},
                ],
            },
            {"categoryName": "sing", "author": "cat", "voiceList": []},
        ]
    }
}


@pytest.fixture
def db(tmp_path):
    with VtbDB(tmp_path / "vtb.db") as database:
        yield database


def test_first_category_message_lists_vtubers(db):
    uids = db.save_vtb_list(json.dumps(VTB_LIST))
    assert uids == ["u1", "u2"]
    assert db.first_category_message() == FIRST_HEADER + "0. Alpha\n1. Beta\n"


def test_empty_database_menu_is_header_only(db):
    assert db.first_category_message() == FIRST_HEADER


def test_save_list_updates_existing_uid(db):
    db.save_vtb_list(VTB_LIST)
    db.save_vtb_list([{"name": "Gamma", "uid": "u2"}])
    assert db.first_category_by_uid("u2") == FirstCategory(0, "Gamma", "u2", "", "")
    assert db.first_category_message().count("\n") == 3


def test_first_category_by_uid(db):
    db.save_vtb_list(json.dumps(VTB_LIST).encode())
    assert db.first_category_by_uid("u1") == FirstCategory(
        0, "Alpha", "u1", "first", "a.png")
    assert db.first_category_by_uid("missing") is None


def test_non_string_values_become_text(db):
    db.save_vtb_list([{"name": "N", "uid": 77}])
    assert db.first_category_by_uid("77").name == "N"


def test_second_and_third_messages(db):
    db.save_vtb_list(VTB_LIST)
    db.save_vtb_page("u1", json.dumps(VTB_PAGE))
    assert db.second_category_message(0) == SECOND_HEADER + "0. greet\n1. sing\n"
    assert db.third_category_message(0, 0) == THIRD_HEADER + "0. hi\n1. bye\n"


def test_messages_empty_without_content(db):
    db.save_vtb_list(VTB_LIST)
    db.save_vtb_page("u1", VTB_PAGE)
    assert db.second_category_message(1) == ""
    assert db.third_category_message(0, 1) == ""
    assert db.second_category_message(9) == ""


def test_third_category_lookup(db):
    db.save_vtb_list(VTB_LIST)
    db.save_vtb_page("u1", VTB_PAGE)
    assert db.third_category(0, 0, 1) == ThirdCategory(
        1, 0, "u1", "bye", "x/bye.mp3", "bob", "d2")
    assert db.third_category(0, 0, 5) is None


def test_save_page_twice_does_not_duplicate(db):
    db.save_vtb_list(VTB_LIST)
    db.save_vtb_page("u1", VTB_PAGE)
    changed = json.loads(json.dumps(VTB_PAGE))
    changed["data"]["voices"][0]["voiceList"][0]["name"] = "hey"
    db.save_vtb_page("u1", changed)
    assert db.third_category_message(0, 0) == THIRD_HEADER + "0. hey\n1. bye\n"


def test_random_vtb(db):
    assert db.random_vtb(random.Random(1)) is None
    db.save_vtb_list(VTB_LIST)
    db.save_vtb_page("u1", VTB_PAGE)
    names = {db.random_vtb(random.Random(seed)).name for seed in range(30)}
    assert names <= {"hi", "bye"}
    assert len(names) == 2


def test_fetch_vtb_list_downloads(db):
    body = io.BytesIO(json.dumps(VTB_LIST).encode())
    with mock.patch("urllib.request.urlopen", return_value=body) as opened:
        assert db.fetch_vtb_list() == ["u1", "u2"]
    assert opened.call_args.args[0].full_url == VTB_LIST_URL


def test_store_vtb_downloads_page(db):
    db.save_vtb_list(VTB_LIST)
    body = io.BytesIO(json.dumps(VTB_PAGE).encode())
    with mock.patch("urllib.request.urlopen", return_value=body) as opened:
        db.store_vtb("u1")
    assert opened.call_args.args[0].full_url == VTB_PAGE_URL + "u1"
    assert db.third_category(0, 0, 0).path == "x/hi.mp3"