# Copyright (C) 2025 Torsten Knodt and contributors
# GNU General Public License
# SPDX-License-Identifier: GPL-3.0-or-later
"""Convert plain-text log files into keyword-highlighted HTML."""

from .compiler import CompiledRuleSet, compile_rules, normalize_color
from .converter import ConversionHistory, convert_file, convert_many, reconvert
from .errors import ConversionError, ConversionIOError, InputNotFoundError, SettingsError
from .models import ConversionRecord, KeywordRule, MatchOptions, Scope, Theme
from .renderer import escape_html, render_line

__version__ = "0.1.0"

__all__ = [
    "CompiledRuleSet",
    "ConversionError",
    "ConversionHistory",
    "ConversionIOError",
    "ConversionRecord",
    "InputNotFoundError",
    "KeywordRule",
    "MatchOptions",
    "Scope",
    "SettingsError",
    "Theme",
    "__version__",
    "compile_rules",
    "convert_file",
    "convert_many",
    "escape_html",
    "normalize_color",
    "reconvert",
    "render_line",
]
