import json
from unittest import mock

import pytest

from kanbanbot.runcode import (
    RunCodeError,
    clear_newline_suffix,
    cut_too_long,
    handle_command,
    lookup_language,
    run_code,
    template,
)

SUFFIX = "\n............\n............"


class FakeResponse:
    def __init__(self, payload, status=200):
        self.status = status
        self._body = json.dumps(payload).encode()

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def test_lookup_language_is_case_insensitive():
    assert lookup_language("Python") == ("15", "py3")
    assert lookup_language("TS") == ("1010", "ts")


def test_lookup_language_unknown():
    assert lookup_language("cobol") is None


def test_template():
    assert template("py") == "print(\"Hello, World!\")"
    with pytest.raises(KeyError):
        template("cobol")


def test_clear_newline_suffix():
    assert clear_newline_suffix("abc\n\n\n") == "abc"
    assert clear_newline_suffix("a\nb") == "a\nb"


def test_cut_too_long_keeps_short_text():
    text = "line\r\n" * 25
    assert cut_too_long(text) == text


def test_cut_too_long_many_lines():
    text = "x\n" * 40
    result = cut_too_long(text)
    assert result.endswith(SUFFIX)
    assert text.startswith(result[: -len(SUFFIX)])
    assert result[: -len(SUFFIX)].count("\n") <= 30


def test_cut_too_long_many_chars():
    text = "a" * 2000
    result = cut_too_long(text)
    assert result.endswith(SUFFIX)
    assert len(result) < len(text)
    assert set(result[: -len(SUFFIX)]) == {"a"}


def test_handle_command_not_a_command():
    assert handle_command("hello", "nick", lambda c, l: "out") is None


def test_handle_command_unsupported_language():
    reply = handle_command(">runcode cobol print", "nick", lambda c, l: "out")
    assert reply == "> nick\n语言不是受支持的编程语种呢~"


def test_handle_command_help():
    reply = handle_command(">runcode Python help", "nick", lambda c, l: "out")
    assert reply == "> nick  python-template:\n>runcode python\nprint(\"Hello, World!\")"


def test_handle_command_runs_and_unescapes():
    calls = []

    def runner(code, language):
        calls.append((code, language))
        return "result"

    reply = handle_command(">runcode py print(&#91;1&#93;)", "nick", runner)
    assert calls == [("print([1])", "py")]
    assert reply == "> nick\nresult"


def test_handle_command_raw():
    reply = handle_command(">runcoderaw go x", "nick", lambda c, l: "plain")
    assert reply == "plain"


def test_handle_command_error():
    def runner(code, language):
        raise RunCodeError("boom")

    assert handle_command(">runcode go x", "nick", runner) == "> nick\nERROR:boom"


def test_run_code_unsupported_language():
    with pytest.raises(RunCodeError):
        run_code("x", "cobol")


def test_run_code_success():
    payload = {"errors": "\n\n", "output": "hi\n\n"}
    with mock.patch("urllib.request.urlopen", return_value=FakeResponse(payload)) as op:
        assert run_code("print('hi')", "py") == "hi"
    request = op.call_args.args[0]
    assert b"fileext=py3" in request.data


def test_run_code_reports_errors():
    payload = {"errors": "SyntaxError\n", "output": ""}
    with mock.patch("urllib.request.urlopen", return_value=FakeResponse(payload)):
        with pytest.raises(RunCodeError, match="SyntaxError"):
            run_code("print(", "py")


def test_run_code_bad_status():
    with mock.patch("urllib.request.urlopen",
                    return_value=FakeResponse({}, status=500)):
        with pytest.raises(RunCodeError, match="code not 200"):
            run_code("x", "py")