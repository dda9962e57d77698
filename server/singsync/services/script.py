"""Coarse writing-system classification used to reject wrong-language lyrics.

Each script family is counted by its own small predicate, so adding a
family only means adding a counter to ``SCRIPT_COUNTERS``.
"""

from collections.abc import Callable
from dataclasses import dataclass

from singsync.models.lyrics import ScriptType


def _is_latin(ch: str) -> bool:
    return ("A" <= ch <= "Z") or ("a" <= ch <= "z")


def _is_hangul(ch: str) -> bool:
    return "\uac00" <= ch <= "\ud7af"


def _is_hiragana(ch: str) -> bool:
    return "\u3040" <= ch <= "\u309f"


def _is_katakana(ch: str) -> bool:
    return "\u30a0" <= ch <= "\u30ff"


def _is_han(ch: str) -> bool:
    return ("\u3400" <= ch <= "\u4dbf") or ("\u4e00" <= ch <= "\u9fff")


def _is_cyrillic(ch: str) -> bool:
    return "\u0400" <= ch <= "\u04ff"


def _is_japanese(ch: str) -> bool:
    return _is_hiragana(ch) or _is_katakana(ch) or _is_han(ch)


# Enumeration order doubles as the tie-break when two families share the max.
SCRIPT_COUNTERS: dict[str, Callable[[str], bool]] = {
    "korean": _is_hangul,
    "japanese": _is_japanese,
    "cyrillic": _is_cyrillic,
    "latin": _is_latin,
}


@dataclass(frozen=True)
class ScriptCounts:
    latin: int = 0
    korean: int = 0
    japanese: int = 0
    cyrillic: int = 0

    @property
    def total(self) -> int:
        return self.latin + self.korean + self.japanese + self.cyrillic

    @property
    def non_latin(self) -> int:
        return self.korean + self.japanese + self.cyrillic

    def get(self, family: str) -> int:
        return getattr(self, family)


def count_scripts(text: str) -> ScriptCounts:
    counts = dict.fromkeys(SCRIPT_COUNTERS, 0)
    for ch in text:
        for family, predicate in SCRIPT_COUNTERS.items():
            if predicate(ch):
                counts[family] += 1
    return ScriptCounts(**counts)


def detect_script(text: str) -> ScriptType:
    counts = count_scripts(text)
    top = max(counts.get(family) for family in SCRIPT_COUNTERS)
    if top <= 1:
        return "unknown"

    present = sum(1 for family in SCRIPT_COUNTERS if counts.get(family) > 0)
    if present >= 3:
        return "mixed"

    for family in SCRIPT_COUNTERS:
        if counts.get(family) == top:
            return family  # type: ignore[return-value]
    return "unknown"


def detect_expected_script(title: str, channel: str) -> ScriptType:
    """Guess the song's script from its title, falling back to title + channel."""
    title_script = detect_script(title)
    if title_script not in ("unknown", "mixed"):
        return title_script
    return detect_script(f"{title} {channel}")


def is_script_compatible(text: str, expected: ScriptType) -> bool:
    if expected in ("unknown", "mixed"):
        return True

    counts = count_scripts(text)
    if counts.total == 0:
        return False

    # K-pop/J-pop lines legitimately mix the local script with English
    if expected in ("korean", "japanese"):
        if counts.cyrillic > 0:
            return False
        return counts.get(expected) >= 2 or counts.latin >= 2

    if expected == "cyrillic":
        return counts.cyrillic >= 2

    return counts.latin >= 2 and counts.non_latin <= max(2, int(counts.latin * 0.6))
