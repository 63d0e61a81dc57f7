# kanbanbot

The logic behind a set of group-chat bot features, kept apart from any chat
transport. Each module takes plain values (group ids, user ids, names,
message text, times), does its work and returns text or data for the bot to
send. State is kept in SQLite files through the standard library's `sqlite3`.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Modules

| Module | What it provides |
| --- | --- |
| `kanbanbot.registry` | Per-group marriage register: `MarriageRegistry`, `Couple`, `Status` (`WIFE`, `HUSBAND`, `SINGLE`), and `slice_name` for shortening names by drawn width |
| `kanbanbot.qqwife` | The daily "marry a group member" game built on the register: `Marriage` (random marriage, proposals, taking someone's partner, divorce, roster reset) and `SkillCooldown` |
| `kanbanbot.runcode` | Runs snippets on an online compiler service: `run_code`, `handle_command` for `>runcode` / `>runcoderaw` messages, `lookup_language`, `template`, `cut_too_long`, `clear_newline_suffix`, `RunCodeError` |
| `kanbanbot.reborn` | Weighted "reincarnation" roll: `WeightedChooser`, `load_rates` (JSON list of `{"name", "weight"}`), `Reborn` |
| `kanbanbot.score` | Daily sign-in with a score capped at 120 and levels: `ScoreDB`, `sign_in`, `SignInResult`, `get_level`, `get_hour_word` |
| `kanbanbot.sleep` | Good-night / good-morning tracking per group: `SleepDB`, `split_duration`, `is_morning`, `is_evening`, `good_morning_text`, `good_night_text` |
| `kanbanbot.wordle` | Word guessing game with a PNG board: `WordleGame`, `class_length`, and the errors `WordleError`, `LengthNotEnough`, `UnknownWord`, `TimesRunOut` |
| `kanbanbot.tarot` | Major Arcana draws, meanings and spreads: `Tarot`, `Card`, `Formation`, `load_tarot`, `parse_draw_count` |
| `kanbanbot.word_count` | Hot-word counting: `load_stopwords`, `clamp_message_count`, `count_words`, `rank_by_word_count` |
| `kanbanbot.vtbdb` | Store of vtuber voice quotations: `VtbDB` with `FirstCategory`, `SecondCategory`, `ThirdCategory` records |
| `kanbanbot.vtb` | Three-step quotation picker and record download: `QuotationSession`, `escape_record_url`, `record_file_name`, `download_record` |
| `kanbanbot.wtf` | "What is my ..." generators on a remote service: `Wtf`, `TABLE`, `new_wtf`, `list_text` |
| `kanbanbot.ymgal` | Galgame CG and sticker sets scraped from the web: `YmgalDB`, `Ymgal`, page parsers, `update_pictures`, `format_ymgal` |

## Examples

A marriage register kept in a SQLite file:

```python
from kanbanbot.registry import MarriageRegistry, Status

with MarriageRegistry("marriages.db") as registry:
    registry.register(123456, 1001, 1002, "Alice", "Bob")
    couple, status = registry.lookup(123456, 1002)
    assert status is Status.WIFE and couple.user == 1001
```

The game on top of it; `members` holds (user id, last message time) pairs:

```python
import random
from kanbanbot.qqwife import Marriage

game = Marriage(registry, random.Random(1))
reply = game.marry_random(123456, 1001, [(1001, 10), (1002, 20), (1003, 30)],
                          {1001: "Alice", 1002: "Bob", 1003: "Carol"})
```

A round of Wordle; guesses must be in the dictionary:

```python
from kanbanbot.wordle import WordleGame, UnknownWord

game = WordleGame("apple", ["apple", "grape", "lemon"])
try:
    game.guess("zzzzz")
except UnknownWord:
    print("not a word")
won = game.guess("grape")
png = game.render()
```

Sign-in:

```python
from datetime import datetime
from kanbanbot.score import ScoreDB, sign_in

with ScoreDB("score.db") as db:
    result = sign_in(db, 1001, datetime.now())
    print(result.score, result.level, result.next_level_score)
```

Sleep tracking:

```python
from datetime import datetime
from kanbanbot.sleep import SleepDB, good_night_text

with SleepDB("sleep.db") as db:
    position, awake = db.sleep(123456, 1001, datetime.now())
    print(good_night_text(position, awake))
```

Answering a `>runcode` message without the network (the `help` block returns the
language's template):

```python
from kanbanbot.runcode import handle_command

print(handle_command(">runcode py help", "Alice"))
```

Hot words from already split text:

```python
from kanbanbot.word_count import count_words, load_stopwords, rank_by_word_count

stop = load_stopwords("的\n了\n")
print(rank_by_word_count(count_words(["今天", "天气", "今天", "的"], stop)))
```

## Network access

`run_code`, `Wtf.predict`, `VtbDB.fetch_vtb_list`, `VtbDB.store_vtb`,
`download_record` and `update_pictures` (unless it is given its own `fetch`
callable) reach the internet. `run_code` sends the token read from the
`KANBANBOT_RUNCODE_TOKEN` environment variable. `VtbDB.save_vtb_list`,
`VtbDB.save_vtb_page` and the `ymgal` page parsers take data you already hold,
so the stores can be filled offline. Everything else works offline.

## What the package does not do

- It does not connect to any chat service, listen for messages or send
  replies; there is no command-line program or server. A bot has to route
  messages to these functions and deliver what they return.
- It keeps no timers: `SkillCooldown` is given the current time, and
  `QuotationSession` and `WordleGame` do not expire on their own.
- It draws only the Wordle board. Sign-in cards, score rankings, hot-word
  charts, marriage rosters and tarot spreads are returned as data and text,
  not as pictures.
- `count_words` expects words already split; it does not segment text or
  fetch chat history.
- `Tarot` needs the card and spread JSON documents, and `Reborn` the country
  weights; none are bundled.