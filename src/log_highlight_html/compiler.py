# Copyright (C) 2025 Torsten Knodt and contributors
# GNU General Public License
# SPDX-License-Identifier: GPL-3.0-or-later
"""Compile keyword rules into one combined matcher per highlight scope."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import NamedTuple

from .models import KeywordRule, MatchOptions, Scope
from .renderer import escape_html

LOGGER = logging.getLogger(__name__)

BLACK = "#000000"

_HEX_DIGITS = re.compile(r"[0-9A-Fa-f]+")

# CSS color keywords are plain letters; anything else could break out of the
# style attribute or the style block.
_COLOR_NAME = re.compile(r"[A-Za-z]+")

# Entities produced by escape_html. The word matcher consumes them whole so
# no keyword can match inside one.
_ENTITY = r"&(?:amp|lt|gt|quot|#39);"


def _parse_color(value: str | None) -> str | None:
    if value is None or not value.strip():
        return None
    color = value.strip()
    if not color.startswith("#"):
        return color if _COLOR_NAME.fullmatch(color) else None
    digits = color[1:]
    if not _HEX_DIGITS.fullmatch(digits):
        return None
    if len(digits) in (3, 6):
        return color
    if len(digits) == 8:
        return "#" + digits[2:]
    return None


def is_valid_color(value: str | None) -> bool:
    """Return whether ``value`` is a usable color (see :func:`normalize_color`)."""
    return _parse_color(value) is not None


def normalize_color(value: str | None) -> str:
    """Normalize a rule or theme color for use in CSS.

    ``#RRGGBB`` and ``#RGB`` pass through, ``#AARRGGBB`` loses its alpha
    pair, letter-only values are kept as named colors and anything else
    (including blank input) becomes black.
    """
    color = _parse_color(value)
    if color is None:
        if value is not None and value.strip():
            LOGGER.debug("Malformed color %r replaced by %s", value, BLACK)
        return BLACK
    return color


def _literal_pattern(text: str, whole_word: bool, case_sensitive: bool) -> str:
    body = re.escape(text)
    if whole_word:
        body = rf"(?<!\w){body}(?!\w)"
    flag = "-i" if case_sensitive else "i"
    return f"(?{flag}:{body})"


class CompiledRule(NamedTuple):
    """One rule of a scope bucket; ``index`` is its priority (0 is highest)."""

    index: int
    pattern: str
    color: str
    rule: KeywordRule


@dataclass(frozen=True)
class CompiledRuleSet:
    """Read-only matchers for one conversion job."""

    word_rules: tuple[CompiledRule, ...] = ()
    line_rules: tuple[CompiledRule, ...] = ()
    _word_regex: re.Pattern[str] | None = field(init=False, repr=False, compare=False)
    _line_regex: re.Pattern[str] | None = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        word_regex = None
        if self.word_rules:
            branches = [f"({r.pattern})" for r in self.word_rules]
            branches.append(f"(?:{_ENTITY})")
            word_regex = re.compile("|".join(branches))
        line_regex = None
        if self.line_rules:
            # Each look-ahead scans the whole line, so branch order alone
            # decides which rule wins, regardless of where it matched.
            branches = [f"(?=.*?({r.pattern}))" for r in self.line_rules]
            line_regex = re.compile("|".join(branches), re.DOTALL)
        object.__setattr__(self, "_word_regex", word_regex)
        object.__setattr__(self, "_line_regex", line_regex)

    @property
    def has_word_rules(self) -> bool:
        return self._word_regex is not None

    @property
    def has_line_rules(self) -> bool:
        return self._line_regex is not None

    def line_color(self, raw_line: str) -> str | None:
        """Return the color of the first Line rule occurring in ``raw_line``."""
        if self._line_regex is None:
            return None
        m = self._line_regex.match(raw_line)
        if m is None or m.lastindex is None:
            return None
        return self.line_rules[m.lastindex - 1].color

    def first_word_match(self, escaped_line: str) -> tuple[int, int, int] | None:
        """Return ``(rule index, start, end)`` of the leftmost Word match."""
        if self._word_regex is None:
            return None
        for m in self._word_regex.finditer(escaped_line):
            if m.lastindex is not None:
                return (self.word_rules[m.lastindex - 1].index, m.start(), m.end())
        return None

    def highlight_words(self, escaped_line: str) -> str:
        """Wrap every Word match of already escaped text in a colored span."""
        if self._word_regex is None:
            return escaped_line

        def _wrap(m: re.Match[str]) -> str:
            if m.lastindex is None:
                return m.group(0)
            color = escape_html(self.word_rules[m.lastindex - 1].color)
            return f'<span style="color:{color}">{m.group(0)}</span>'

        return self._word_regex.sub(_wrap, escaped_line)


def compile_rules(
    rules: Iterable[KeywordRule], options: MatchOptions | None = None
) -> CompiledRuleSet:
    """Compile ``rules`` (order is priority) into a :class:`CompiledRuleSet`.

    Blank keywords are skipped. Keywords are always literals; Word rules are
    compiled against the HTML-escaped keyword since they run on escaped text.
    """
    options = options or MatchOptions()
    word: list[CompiledRule] = []
    line: list[CompiledRule] = []

    for rule in rules:
        if not rule.keyword or not rule.keyword.strip():
            LOGGER.debug("Skipping rule with blank keyword: %r", rule)
            continue
        case_sensitive = (
            rule.case_sensitive
            if rule.case_sensitive is not None
            else not options.ignore_case
        )
        color = normalize_color(rule.color)
        scope = Scope(rule.scope)
        if scope is Scope.LINE:
            pattern = _literal_pattern(rule.keyword, options.whole_word, case_sensitive)
            line.append(CompiledRule(len(line), pattern, color, rule))
        else:
            pattern = _literal_pattern(
                escape_html(rule.keyword), options.whole_word, case_sensitive
            )
            word.append(CompiledRule(len(word), pattern, color, rule))
        LOGGER.debug(
            "Compiled %s rule %r -> %s (color %s)", scope.value, rule.keyword, pattern, color
        )

    LOGGER.info("Compiled %d word rule(s) and %d line rule(s)", len(word), len(line))
    return CompiledRuleSet(word_rules=tuple(word), line_rules=tuple(line))
