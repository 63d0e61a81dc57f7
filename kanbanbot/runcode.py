"""Run code snippets through an online compiler service."""

from __future__ import annotations

import json
import os
import re
import urllib.error
import urllib.parse
import urllib.request
from typing import Callable

API_URL = "https://tool.runoob.com/compile2.php"
API_TOKEN = os.environ.get("KANBANBOT_RUNCODE_TOKEN", "token")
TIMEOUT = 15

_HEADERS = {
    "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8",
    "Referer": "https://c.runoob.com/",
    "User-Agent": "Mozilla/5.0 (Windows NT 6.1; Win64; x64; rv:87.0) "
                  "Gecko/20100101 Firefox/87.0",
}

_CUT_SUFFIX = "\n............\n............"
_COMMAND = re.compile(r"^>runcode(raw)?\s(.+?)\s([\s\S]+)$")

_HELLO_C = "#include <stdio.h>\n\nint main()\n{\n   printf(\"Hello, World! \n\");\n   return 0;\n}"
_HELLO_CPP = ("#include <iostream>\nusing namespace std;\n\nint main()\n{\n"
              "   cout << \"Hello World\";\n   return 0;\n}")
_HELLO_CS = ("using System;\nnamespace HelloWorldApplication\n{\n   class HelloWorld\n"
             "   {\n      static void Main(string[] args)\n      {\n"
             "         Console.WriteLine(\"Hello World!\");\n      }\n   }\n}")
_HELLO_JS = "console.log(\"Hello World!\");"
_HELLO_RB = "puts \"Hello World!\";"
_HELLO_RS = "fn main() {\n    println!(\"Hello World!\");\n}"
_HELLO_SH = "echo 'Hello World!'"
_HELLO_PY = "print(\"Hello, World!\")"
_HELLO_KT = "fun main(args : Array<String>){\n    println(\"Hello World!\")\n}"
_HELLO_TS = "const hello : string = \"Hello World!\"\nconsole.log(hello)"
_HELLO_LUA = "var myString = \"Hello, World!\"\nprint(myString)"

TEMPLATES = {
    "py2": "print 'Hello World!'",
    "ruby": _HELLO_RB,
    "rb": _HELLO_RB,
    "php": "<?php\n\techo 'Hello World!';\n?>",
    "javascript": _HELLO_JS,
    "js": _HELLO_JS,
    "node.js": _HELLO_JS,
    "scala": "object Main {\n  def main(args:Array[String])\n  {\n"
             "    println(\"Hello World!\")\n  }\n\t\t\n}",
    "go": "package main\n\nimport \"fmt\"\n\nfunc main() {\n"
          "   fmt.Println(\"Hello, World!\")\n}",
    "c": _HELLO_C,
    "c++": _HELLO_CPP,
    "cpp": _HELLO_CPP,
    "java": "public class HelloWorld {\n    public static void main(String []args) {\n"
            "       System.out.println(\"Hello World!\");\n    }\n}",
    "rust": _HELLO_RS,
    "rs": _HELLO_RS,
    "c#": _HELLO_CS,
    "cs": _HELLO_CS,
    "csharp": _HELLO_CS,
    "shell": _HELLO_SH,
    "bash": _HELLO_SH,
    "erlang": "% escript will ignore the first line\n\nmain(_) ->\n"
              "    io:format(\"Hello World!~n\").",
    "perl": "print \"Hello, World!\n\";",
    "python": _HELLO_PY,
    "py": _HELLO_PY,
    "swift": "var myString = \"Hello, World!\"\nprint(myString)",
    "lua": _HELLO_LUA,
    "pascal": "runcode Hello;\nbegin\n  writeln ('Hello, world!')\nend.",
    "kotlin": _HELLO_KT,
    "kt": _HELLO_KT,
    "r": "myString <- \"Hello, World!\"\nprint ( myString)",
    "vb": "Module Module1\n\n    Sub Main()\n        Console.WriteLine(\"Hello World!\")\n"
          "    End Sub\n\nEnd Module",
    "typescript": _HELLO_TS,
    "ts": _HELLO_TS,
}

LANGUAGES = {
    "py2": ("0", "py"),
    "ruby": ("1", "rb"),
    "rb": ("1", "rb"),
    "php": ("3", "php"),
    "javascript": ("4", "js"),
    "js": ("4", "js"),
    "node.js": ("4", "js"),
    "scala": ("5", "scala"),
    "go": ("6", "go"),
    "c": ("7", "c"),
    "c++": ("7", "cpp"),
    "cpp": ("7", "cpp"),
    "java": ("8", "java"),
    "rust": ("9", "rs"),
    "rs": ("9", "rs"),
    "c#": ("10", "cs"),
    "cs": ("10", "cs"),
    "csharp": ("10", "cs"),
    "shell": ("10", "sh"),
    "bash": ("10", "sh"),
    "erlang": ("12", "erl"),
    "perl": ("14", "pl"),
    "python": ("15", "py3"),
    "py": ("15", "py3"),
    "swift": ("16", "swift"),
    "lua": ("17", "lua"),
    "pascal": ("18", "pas"),
    "kotlin": ("19", "kt"),
    "kt": ("19", "kt"),
    "r": ("80", "r"),
    "vb": ("84", "vb"),
    "typescript": ("1010", "ts"),
    "ts": ("1010", "ts"),
}


class RunCodeError(Exception):
    """The compiler service failed or reported an error."""


def lookup_language(language: str) -> tuple[str, str] | None:
    """Return the service's (language id, file extension), or None if unsupported."""
    return LANGUAGES.get(language.lower())


def template(language: str) -> str:
    """Return the hello-world template for ``language``."""
    return TEMPLATES[language.lower()]


def clear_newline_suffix(text: str) -> str:
    """Strip trailing newlines."""
    return text.rstrip("\n")


def cut_too_long(text: str) -> str:
    """Truncate text past 30 line breaks or 1000 characters."""
    count = 0
    for index, char in enumerate(text):
        if char == "\r" and text[index + 1:index + 2] == "\n":
            pass
        elif char in "\n\r":
            count += 1
        if count > 30 or index > 1000:
            return text[:index - 1] + _CUT_SUFFIX
    return text


def _unescape_cq(text: str) -> str:
    return text.replace("&#91;", "[").replace("&#93;", "]").replace("&amp;", "&")


def run_code(code: str, language: str) -> str:
    """Run ``code`` on the service and return its trimmed output."""
    run_type = lookup_language(language)
    if run_type is None:
        raise RunCodeError(f"unsupported language: {language}")
    form = urllib.parse.urlencode({
        "code": code,
        "token": API_TOKEN,
        "stdin": "",
        "language": run_type[0],
        "fileext": run_type[1],
    }).encode()
    request = urllib.request.Request(API_URL, data=form, headers=_HEADERS,
                                     method="POST")
    try:
        with urllib.request.urlopen(request, timeout=TIMEOUT) as response:
            if response.status != 200:
                raise RunCodeError("code not 200")
            body = response.read()
    except urllib.error.HTTPError as exc:
        raise RunCodeError("code not 200") from exc
    except OSError as exc:
        raise RunCodeError(str(exc)) from exc
    try:
        content = json.loads(body)
    except ValueError as exc:
        raise RunCodeError(str(exc)) from exc
    if not isinstance(content, dict):
        content = {}
    errors = content.get("errors")
    errors = errors if isinstance(errors, str) else ""
    if errors != "\n\n":
        raise RunCodeError(cut_too_long(clear_newline_suffix(errors)))
    output = content.get("output")
    output = output if isinstance(output, str) else ""
    return cut_too_long(clear_newline_suffix(output))


def handle_command(text: str, nickname: str,
                   runner: Callable[[str, str], str] = run_code) -> str | None:
    """Answer a ``>runcode`` chat command, or return None if ``text`` is not one."""
    matched = _COMMAND.match(text)
    if matched is None:
        return None
    is_raw = matched.group(1) is not None
    language = matched.group(2).lower()
    header = f"> {nickname}\n"
    if lookup_language(language) is None:
        return header + "语言不是受支持的编程语种呢~"
    block = _unescape_cq(matched.group(3))
    if block == "help":
        return (f"> {nickname}  {language}-template:\n"
                f">runcode {language}\n{template(language)}")
    try:
        output = runner(block, language)
    except RunCodeError as exc:
        return f"{header}ERROR:{exc}"
    return output if is_raw else header + output