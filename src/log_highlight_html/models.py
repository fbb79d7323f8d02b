# Copyright (C) 2025 Torsten Knodt and contributors
# GNU General Public License
# SPDX-License-Identifier: GPL-3.0-or-later
"""Value types shared by the compiler, renderer and conversion job."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path


class Scope(str, enum.Enum):
    """How much text a matching rule colors."""

    WORD = "word"
    LINE = "line"


@dataclass(frozen=True)
class KeywordRule:
    """A literal keyword with its display color and scope.

    ``case_sensitive`` of ``None`` means the rule follows the global
    ``MatchOptions.ignore_case`` flag.
    """

    keyword: str
    color: str = "#FF0000"
    scope: Scope = Scope.WORD
    case_sensitive: bool | None = None


@dataclass(frozen=True)
class MatchOptions:
    """Global matching flags applied to every rule."""

    whole_word: bool = False
    ignore_case: bool = True


@dataclass(frozen=True)
class Theme:
    """Page colors of the generated document."""

    background: str = "#111111"
    foreground: str = "#DDDDDD"


@dataclass(eq=False)
class ConversionRecord:
    """Outcome of one conversion job.

    Records compare by identity: a re-conversion refreshes ``output_path``
    and ``converted_at`` on the same object.
    """

    original_path: Path
    output_path: Path
    converted_at: datetime = field(default_factory=datetime.now)
