"""Daily group marriage game: one husband and one wife per member per day."""

from __future__ import annotations

import datetime
import random
from typing import Hashable, Iterable, Mapping, Sequence

from .registry import Couple, MarriageRegistry, Status

COOLDOWN = 12 * 60 * 60
CANDIDATE_LIMIT = 30

CONFESS_SUCCESS = (
    "是个勇敢的孩子(*/ω＼*) 今天的运气都降临在你的身边~\n\n",
    "(´･ω･`)对方答应了你 并表示愿意当今天的CP\n\n",
)
CONFESS_FAILURE = (
    "今天的运气有一点背哦~明天再试试叭",
    "_(:з」∠)_下次还有机会 咱抱抱你w",
    "今天失败了惹. 摸摸头~咱明天还有机会",
)
NTR_SUCCESS = ("因为你的个人魅力~~今天他就是你的了w\n\n",)
DIVORCE_FAILURE = (
    "打是情，骂是爱，,不打不亲不相爱。答应我不要分手。",
    "床头打架床尾和，夫妻没有隔夜仇。安啦安啦，不要闹变扭。",
)
DIVORCE_SUCCESS = (
    "离婚成功力\n天涯何处无芳草，何必单恋一枝花？不如再摘一支（bushi",
    "离婚成功力\n话说你不考虑当个1？",
)

ALREADY_TOGETHER = "笨蛋~你们明明已经在一起了啊w"
STILL_SINGLE = "ta现在还是单身哦，快向ta表白吧！"
NOT_MARRIED = "今天你还没有结婚哦"
GROUP_ONLY = "该功能只能在群组使用或者指定群组"


def _today() -> str:
    return datetime.date.today().strftime("%Y/%m/%d")


def _at(uid: int) -> str:
    return f"[CQ:at,qq={uid}]"


def _avatar(uid: int) -> str:
    return f"[CQ:image,file=http://q4.qlogo.cn/g?b=qq&nk={uid}&s=640,cache=0]"


def _introduce(uid: int, name: str) -> str:
    return f"{_avatar(uid)}\n[{name}]({uid})哒"


def _target(info: Couple | None) -> int:
    return info.target if info is not None else 0


class SkillCooldown:
    """Allow one use per key within each interval (seconds)."""

    def __init__(self, interval: float = COOLDOWN):
        self.interval = interval
        self._last: dict[Hashable, float] = {}

    def allow(self, key: Hashable, now: float) -> bool:
        last = self._last.get(key)
        if last is not None and now - last < self.interval:
            return False
        self._last[key] = now
        return True


class Marriage:
    """Chat commands of the marriage game; each returns the bot's reply."""

    def __init__(self, registry: MarriageRegistry, rng: random.Random | None = None):
        self._registry = registry
        self._rng = rng if rng is not None else random.Random()

    def _pick(self, texts: Sequence[str]) -> str:
        return texts[self._rng.randrange(len(texts))]

    @staticmethod
    def _name(names: Mapping[int, str], uid: int) -> str:
        return names.get(uid, str(uid))

    def ensure_today(self, gid: int) -> bool:
        """Reset the group when its records are from an earlier day; True if reset."""
        if self._registry.check_update(gid) == _today():
            return False
        self._registry.reset(str(gid))
        return True

    def marry_random(self, gid: int, uid: int,
                     members: Iterable[tuple[int, int]],
                     names: Mapping[int, str]) -> str:
        """Marry ``uid`` to a random single among the most recently active members.

        ``members`` holds (user id, last sent time) pairs.
        """
        self.ensure_today(gid)
        info, status = self._registry.lookup(gid, uid)
        if status != Status.SINGLE and _target(info) == 0:
            return "今天你是单身贵族噢"
        if status == Status.HUSBAND:
            return (f"{_at(uid)}\n今天你已经娶过了，群老婆是"
                    f"{_introduce(info.target, info.targetname)}")
        if status == Status.WIFE:
            return (f"{_at(uid)}\n今天你被娶了，群老公是"
                    f"{_introduce(info.user, info.username)}")
        recent = sorted(members, key=lambda member: member[1])[-CANDIDATE_LIMIT:]
        candidates = [
            member for member, _ in recent
            if self._registry.lookup(gid, member)[1] == Status.SINGLE
        ]
        if len(candidates) <= 1:
            return "~群里没有ta人是单身了哦 明天再试试叭"
        fiancee = self._pick(candidates)
        if fiancee == uid:
            return "呜...没娶到，你可以再尝试一次"
        self._registry.register(gid, uid, fiancee, self._name(names, uid),
                                self._name(names, fiancee))
        return (f"{_at(uid)}今天你的群老婆是"
                f"{_introduce(fiancee, self._name(names, fiancee))}")

    def check_single(self, gid: int, uid: int, fiancee: int) -> str | None:
        """Return why ``uid`` may not propose to ``fiancee``, or None if allowed."""
        if self.ensure_today(gid):
            return None
        info, status = self._registry.lookup(gid, uid)
        finfo, fstatus = self._registry.lookup(gid, fiancee)
        if status == Status.SINGLE and fstatus == Status.SINGLE:
            return None
        if _target(info) == fiancee:
            return ALREADY_TOGETHER
        if status != Status.SINGLE and _target(info) == 0:
            return "今天的你是单身贵族噢"
        if status == Status.HUSBAND:
            return "笨蛋~你家里还有个吃白饭的w"
        if status == Status.WIFE:
            return "该是0就是0，当0有什么不好"
        if fstatus != Status.SINGLE and _target(finfo) == 0:
            return "今天的ta是单身贵族噢"
        if fstatus == Status.HUSBAND:
            return "他有别的女人了，你该放下了"
        if fstatus == Status.WIFE:
            return "这是一个纯爱的世界，拒绝NTR"
        return None

    def propose(self, gid: int, uid: int, fiancee: int, choice: str,
                names: Mapping[int, str]) -> str:
        """Propose to ``fiancee``; ``choice`` is 娶 to marry, anything else to be married."""
        if uid == fiancee:
            if self._rng.randrange(3) == 1:
                self._registry.register(gid, uid, 0, "", "")
                return "今日获得成就：单身贵族"
            return "今日获得成就：自恋狂"
        if self._rng.randrange(2) == 0:
            return self._pick(CONFESS_FAILURE)
        uname = self._name(names, uid)
        fname = self._name(names, fiancee)
        if choice == "娶":
            self._registry.register(gid, uid, fiancee, uname, fname)
            choice_text = "\n今天你的群老婆是"
        else:
            self._registry.register(gid, fiancee, uid, fname, uname)
            choice_text = "\n今天你的群老公是"
        return (f"{self._pick(CONFESS_SUCCESS)}{_at(uid)}{choice_text}"
                f"{_introduce(fiancee, fname)}")

    def check_mistress(self, gid: int, uid: int, fiancee: int) -> str | None:
        """Return why ``uid`` may not steal ``fiancee``, or None if allowed."""
        if self.ensure_today(gid):
            return STILL_SINGLE
        info, status = self._registry.lookup(gid, uid)
        if _target(info) == fiancee:
            return ALREADY_TOGETHER
        if status != Status.SINGLE and _target(info) == 0:
            return "今天的你是单身贵族哦"
        if fiancee == uid:
            return None
        if status == Status.HUSBAND:
            return "打灭，不给纳小妾！"
        if status == Status.WIFE:
            return "该是0就是0，当0有什么不好"
        finfo, fstatus = self._registry.lookup(gid, fiancee)
        if fstatus == Status.SINGLE:
            return STILL_SINGLE
        if _target(finfo) == 0:
            return "今天的ta是单身贵族哦"
        return None

    def become_mistress(self, gid: int, uid: int, fiancee: int,
                        names: Mapping[int, str]) -> str:
        """Try to take ``fiancee`` away from their current partner."""
        if fiancee == uid:
            return "今日获得成就：自我攻略"
        if self._rng.randrange(10) // 4 != 0:
            return "失败了！可惜"
        _, status = self._registry.lookup(gid, fiancee)
        uname = self._name(names, uid)
        fname = self._name(names, fiancee)
        if status == Status.SINGLE:
            return STILL_SINGLE
        if status == Status.HUSBAND:
            self._registry.remarry(gid, fiancee, uid, fname, uname)
            choice_text = "老公"
        else:
            self._registry.remarry(gid, uid, fiancee, uname, fname)
            choice_text = "老婆"
        return (f"{self._pick(NTR_SUCCESS)}{_at(uid)}今天你的群{choice_text}是"
                f"{_introduce(fiancee, fname)}")

    def check_married(self, gid: int, uid: int) -> str | None:
        """Return why ``uid`` cannot divorce, or None if they are married."""
        if self.ensure_today(gid):
            return NOT_MARRIED
        _, status = self._registry.lookup(gid, uid)
        if status == Status.SINGLE:
            return NOT_MARRIED
        return None

    def divorce(self, gid: int, uid: int) -> str | None:
        """Try to divorce; succeeds one time in ten. None when ``uid`` is single."""
        info, status = self._registry.lookup(gid, uid)
        if status == Status.HUSBAND:
            if self._rng.randrange(10) != 1:
                return self._pick(DIVORCE_FAILURE)
            self._registry.divorce(gid, info.target)
            return DIVORCE_SUCCESS[0]
        if status == Status.WIFE:
            if self._rng.randrange(10) != 0:
                return self._pick(DIVORCE_FAILURE)
            self._registry.divorce(gid, info.user)
            return DIVORCE_SUCCESS[1]
        return None

    def reset_command(self, arg: str, gid: int) -> str:
        """Reset a roster: ``""``/本群 this group, 所有 every group, else the named one."""
        if arg in ("", "本群"):
            if gid == 0:
                return GROUP_ONLY
            target = str(gid)
        elif arg == "所有":
            target = "ALL"
        else:
            target = arg
        self._registry.reset(target)
        return "重置成功"