"""Combat log text parsing.

Turns recognized OCR lines into at most one EnemyEvent per line. Lines are
normalized first so that full-width/half-width variants and spacing noise
from the OCR engine compare equal.
"""

import re
import time
import unicodedata
from dataclasses import dataclass, replace
from typing import Callable

from loguru import logger

from bosscycle.models import EnemyEvent, EventKind, OcrLine
from bosscycle.ocr.similarity import levenshtein_ratio
from bosscycle.protocols import SimilarityFunction

FORCED_ACTIONS = ("コールサファイア", "スクランブルサファイア")

ACTION_PATTERNS = (
    re.compile(r"は(.+?)を(唱えた|放った|構えた|使った|発動した)"),
    re.compile(r"(.+?)を(唱えた|放った|構えた|使った|発動した)"),
    re.compile(r"(?:activates|activated|unleashed|used|uses|casts|cast)(.+)$"),
)

MODE_KEYWORDS = (
    ("怒り", "RAGE"),
    ("暴走", "BERSERK"),
    ("フェーズ", "PHASE_CHANGE"),
    ("rage", "RAGE"),
    ("berserk", "BERSERK"),
    ("phase", "PHASE_CHANGE"),
)

SUMMON_KEYWORDS = ("サファイア", "ボム", "召喚", "呼び出", "summon", "bomb")

CONTAINMENT_SCORE = 0.9

_CACHE_LIMIT = 1000
_CACHE_KEEP = 500

_FULLWIDTH_ALNUM = {
    code: code - 0xFEE0
    for start, end in (("Ａ", "Ｚ"), ("ａ", "ｚ"), ("０", "９"))
    for code in range(ord(start), ord(end) + 1)
}
_HALFWIDTH_KANA = re.compile(r"[｡-ﾟ]+")
_WHITESPACE = re.compile(r"\s+")


def _now_ms() -> int:
    return int(time.time() * 1000)


def normalize(text: str) -> str:
    """Normalize a log line for matching.

    Full-width ASCII letters and digits become half-width, half-width katakana
    (including voiced sound marks) becomes full-width, whitespace is removed
    and ASCII is lowercased. Applying it twice gives the same result.
    """
    text = text.translate(_FULLWIDTH_ALNUM)
    text = _HALFWIDTH_KANA.sub(lambda m: unicodedata.normalize("NFKC", m.group()), text)
    text = _WHITESPACE.sub("", text)
    return text.lower()


@dataclass(frozen=True)
class LogParserConfig:
    similarity_threshold: float = 0.7
    max_line_age_ms: int = 10000


class LogTextParser:
    """Extracts enemy events from combat log lines.

    Per line the checks run in order: AI reset phrase, action name, mode
    keyword, summon keyword. The first hit produces the line's event.
    """

    def __init__(
        self,
        known_actions: list[str],
        reset_phrases: list[str],
        config: LogParserConfig | None = None,
        similarity: SimilarityFunction = levenshtein_ratio,
        aliases: dict[str, list[str]] | None = None,
        clock: Callable[[], int] | None = None,
    ):
        self._config = config or LogParserConfig()
        self._similarity = similarity
        self._clock = clock or _now_ms
        self._processed: dict[tuple[str, int], None] = {}
        self._aliases = dict(aliases or {})
        self._known_actions: list[str] = []
        self._vocabulary: list[tuple[str, str]] = []
        self._reset_phrases: list[str] = []
        self.update_known_actions(known_actions)
        self.update_reset_phrases(reset_phrases)

    @property
    def config(self) -> LogParserConfig:
        return self._config

    def update_config(self, **kwargs) -> None:
        self._config = replace(self._config, **kwargs)

    def update_known_actions(
        self, actions: list[str], aliases: dict[str, list[str]] | None = None
    ) -> None:
        if aliases is not None:
            self._aliases = dict(aliases)
        self._known_actions = list(actions)

        # (normalized term, canonical name), names before aliases
        vocabulary = [(normalize(name), name) for name in self._known_actions]
        for name in self._known_actions:
            for alias in self._aliases.get(name, ()):
                vocabulary.append((normalize(alias), name))
        self._vocabulary = [(term, name) for term, name in vocabulary if term]

    def update_reset_phrases(self, phrases: list[str]) -> None:
        self._reset_phrases = [normalize(p) for p in phrases if normalize(p)]

    def parse(self, lines: list[OcrLine], now: int | None = None) -> list[EnemyEvent]:
        if now is None:
            now = self._clock()

        events = []
        for line in lines:
            if now - line.timestamp_ms > self._config.max_line_age_ms:
                continue

            key = (line.text, line.timestamp_ms // 1000)
            if key in self._processed:
                continue

            event = self._parse_line(line)
            if event is None:
                continue

            logger.debug(f"Parsed {event.kind.value} event {event.name!r} from {line.text!r}")
            self._processed[key] = None
            events.append(event)

        self._trim_cache()
        return events

    def _parse_line(self, line: OcrLine) -> EnemyEvent | None:
        normalized = normalize(line.text)
        if not normalized:
            return None

        if self._is_ai_reset(normalized):
            return EnemyEvent(EventKind.AI_RESET, line.timestamp_ms, raw=line.text)

        action = self.extract_action(normalized)
        if action is not None:
            return EnemyEvent(EventKind.ACTION, line.timestamp_ms, name=action, raw=line.text)

        mode = self._extract_mode(normalized)
        if mode is not None:
            return EnemyEvent(EventKind.MODE, line.timestamp_ms, name=mode, raw=line.text)

        if any(keyword in normalized for keyword in SUMMON_KEYWORDS):
            return EnemyEvent(EventKind.SUMMON, line.timestamp_ms, raw=line.text)

        return None

    def _is_ai_reset(self, normalized: str) -> bool:
        return any(phrase in normalized for phrase in self._reset_phrases)

    def extract_action(self, normalized: str) -> str | None:
        """Find the canonical action name in a normalized line, if any."""
        for action in FORCED_ACTIONS:
            if normalize(action) in normalized:
                return action

        for pattern in ACTION_PATTERNS:
            match = pattern.search(normalized)
            if match and match.group(1):
                best = self.find_best_match(match.group(1))
                if best is not None:
                    return best

        for term, name in self._vocabulary:
            if term in normalized:
                return name

        return None

    def find_best_match(self, text: str) -> str | None:
        best_name = None
        best_score = 0.0
        for term, name in self._vocabulary:
            score = self._score(text, term)
            if score > best_score and score >= self._config.similarity_threshold:
                best_score = score
                best_name = name
        return best_name

    def _score(self, a: str, b: str) -> float:
        if a == b:
            return 1.0
        if not a or not b:
            return 0.0
        if a in b or b in a:
            return CONTAINMENT_SCORE
        return self._similarity(a, b)

    @staticmethod
    def _extract_mode(normalized: str) -> str | None:
        for keyword, mode in MODE_KEYWORDS:
            if keyword in normalized:
                return mode
        return None

    def _trim_cache(self) -> None:
        if len(self._processed) > _CACHE_LIMIT:
            keys = list(self._processed)[-_CACHE_KEEP:]
            self._processed = dict.fromkeys(keys)

    def reset(self) -> None:
        self._processed.clear()
