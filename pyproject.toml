[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kanbanbot"
version = "0.1.0"
description = "Group-chat bot feature logic: marriage game, sign-in scores, sleep tracking, tarot, wordle, hot words and quotation lookups"
requires-python = ">=3.10"
keywords = ["chatbot", "group chat", "wordle", "tarot", "sign-in", "games", "sqlite"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Natural Language :: Chinese (Simplified)",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Communications :: Chat",
    "Topic :: Games/Entertainment",
]
dependencies = [
    "lxml",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["kanbanbot"]

[tool.hatch.build.targets.sdist]
include = ["kanbanbot", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
