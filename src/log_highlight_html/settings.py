# Copyright (C) 2025 Torsten Knodt and contributors
# GNU General Public License
# SPDX-License-Identifier: GPL-3.0-or-later

"""Persisted rules, options and conversion history."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

import typer

from .converter import ConversionHistory
from .errors import SettingsError
from .models import ConversionRecord, KeywordRule, MatchOptions, Scope, Theme

LOGGER = logging.getLogger(__name__)

APP_NAME = "log-highlight-html"

DEFAULT_PALETTE = [
    "#FF0000", "#FFA500", "#FFFF00", "#008000", "#00CED1", "#1E90FF", "#800080", "#FF1493",
    "#FFFFFF", "#C0C0C0", "#808080", "#000000", "#8B4513", "#00FF00", "#ADD8E6", "#FFD700",
]


def default_rules() -> list[KeywordRule]:
    return [
        KeywordRule("ERROR", "#FF0000"),
        KeywordRule("WARN", "#FFA500"),
        KeywordRule("INFO", "#008000"),
    ]


def default_settings_path() -> Path:
    """Return the per-user settings file location."""
    return Path(typer.get_app_dir(APP_NAME)) / "settings.json"


@dataclass
class Settings:
    """Global options shared by every conversion."""

    whole_word: bool = False
    ignore_case: bool = True
    background_color: str = "#111111"
    default_text_color: str = "#DDDDDD"
    palette: list[str] = field(default_factory=lambda: list(DEFAULT_PALETTE))

    def match_options(self) -> MatchOptions:
        return MatchOptions(whole_word=self.whole_word, ignore_case=self.ignore_case)

    def theme(self) -> Theme:
        return Theme(background=self.background_color, foreground=self.default_text_color)


class SettingsProvider(Protocol):
    """Anything that can load and save rules, options and history."""

    def load_rules(self) -> list[KeywordRule]: ...

    def load_options(self) -> Settings: ...

    def save(
        self, rules: list[KeywordRule], settings: Settings, history: ConversionHistory
    ) -> None: ...


# --------------------------------------------------------------------------- #
# JSON (de)serialization                                                       #
# --------------------------------------------------------------------------- #


def _rule_from_dict(data: dict[str, Any]) -> KeywordRule:
    case_sensitive = data.get("case_sensitive")
    return KeywordRule(
        keyword=str(data.get("keyword", "")),
        color=str(data.get("color", "#FF0000")),
        scope=Scope(str(data.get("scope", Scope.WORD.value)).lower()),
        case_sensitive=None if case_sensitive is None else bool(case_sensitive),
    )


def _rule_to_dict(rule: KeywordRule) -> dict[str, Any]:
    return {
        "keyword": rule.keyword,
        "color": rule.color,
        "scope": Scope(rule.scope).value,
        "case_sensitive": rule.case_sensitive,
    }


def _record_from_dict(data: dict[str, Any]) -> ConversionRecord:
    try:
        converted_at = datetime.fromisoformat(data["converted_at"])
    except (KeyError, TypeError, ValueError):
        converted_at = datetime.now()
    return ConversionRecord(
        original_path=Path(data.get("original_path", "")),
        output_path=Path(data.get("output_path", "")),
        converted_at=converted_at,
    )


def _record_to_dict(record: ConversionRecord) -> dict[str, Any]:
    return {
        "original_path": str(record.original_path),
        "output_path": str(record.output_path),
        "converted_at": record.converted_at.isoformat(),
    }


class JsonSettingsStore:
    """Settings provider backed by one JSON document.

    A missing file yields defaults. A file that cannot be read or parsed also
    yields defaults, with a warning, so a broken store never blocks a run.
    Saving over such a file is refused.
    """

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else default_settings_path()

    def _read_document(self) -> dict[str, Any]:
        try:
            document = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise SettingsError(f"Cannot read settings {self.path} ({exc})") from exc
        if not isinstance(document, dict):
            raise SettingsError(f"Settings {self.path} is not a JSON object")
        return document

    def _load_document(self) -> dict[str, Any] | None:
        if not self.path.exists():
            LOGGER.debug("No settings file at %s, using defaults", self.path)
            return None
        try:
            return self._read_document()
        except SettingsError as exc:
            LOGGER.warning("%s; using defaults", exc)
            return None

    def load_rules(self) -> list[KeywordRule]:
        document = self._load_document()
        if document is None or "rules" not in document:
            return default_rules()
        rules: list[KeywordRule] = []
        for i, item in enumerate(document.get("rules") or []):
            try:
                rules.append(_rule_from_dict(item))
            except (AttributeError, ValueError) as exc:
                LOGGER.warning("Ignoring invalid rule #%d in %s: %s", i + 1, self.path, exc)
        return rules

    def load_options(self) -> Settings:
        document = self._load_document()
        if document is None:
            return Settings()
        defaults = Settings()
        return Settings(
            whole_word=bool(document.get("whole_word", defaults.whole_word)),
            ignore_case=bool(document.get("ignore_case", defaults.ignore_case)),
            background_color=str(document.get("background_color", defaults.background_color)),
            default_text_color=str(
                document.get("default_text_color", defaults.default_text_color)
            ),
            palette=[str(c) for c in document.get("palette", defaults.palette)],
        )

    def load_history(self) -> ConversionHistory:
        document = self._load_document()
        if document is None:
            return ConversionHistory()
        records = []
        for item in document.get("history") or []:
            if isinstance(item, dict):
                records.append(_record_from_dict(item))
        return ConversionHistory(records)

    def save(
        self, rules: list[KeywordRule], settings: Settings, history: ConversionHistory
    ) -> None:
        """Write the whole document, replacing the previous file.

        Raises:
            SettingsError: If the existing file cannot be read; it is left as is
        """
        if self.path.exists():
            try:
                self._read_document()
            except SettingsError as exc:
                raise SettingsError(f"{exc}; fix or remove it before saving") from exc
        document = asdict(settings)
        document["rules"] = [_rule_to_dict(r) for r in rules]
        document["history"] = [_record_to_dict(r) for r in history]
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(document, indent=2) + "\n", encoding="utf-8")
        os.replace(tmp, self.path)
        LOGGER.debug("Saved %d rule(s) and %d record(s) to %s", len(rules), len(history), self.path)
