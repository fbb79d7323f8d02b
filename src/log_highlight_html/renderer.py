# Copyright (C) 2025 Torsten Knodt and contributors
# GNU General Public License
# SPDX-License-Identifier: GPL-3.0-or-later
"""Render log lines and the surrounding HTML document."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .compiler import CompiledRuleSet
    from .models import Theme

_HTML_ESCAPES = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#39;",
    }
)


def escape_html(text: str) -> str:
    """Escape the five HTML-special characters of ``text``."""
    if not text:
        return ""
    return text.translate(_HTML_ESCAPES)


def render_line(raw_line: str, ruleset: CompiledRuleSet) -> str:
    """Render one raw log line (without newline) as a ``<div class="l">``.

    Line rules are evaluated on the raw text, then the text is escaped and
    Word rules are applied to the escaped result. A line color styles the
    whole container; word spans inside it keep their own color.
    """
    line_color = ruleset.line_color(raw_line)
    body = ruleset.highlight_words(escape_html(raw_line))
    if line_color:
        return f'<div class="l" style="color:{escape_html(line_color)}">{body}</div>'
    return f'<div class="l">{body}</div>'


def html_header(title: str, theme: Theme) -> str:
    """Return the document head and body opening for ``title``.

    Callers normalize the theme colors first; they are escaped here as well
    so no value can close the style element.
    """
    name = escape_html(title)
    bg = escape_html(theme.background)
    fg = escape_html(theme.foreground)
    return "\n".join(
        [
            "<!DOCTYPE html>",
            '<html lang="en">',
            "<head>",
            '<meta charset="utf-8" />',
            f"<title>{name}</title>",
            f"<style>body{{font-family:Consolas,monospace;background:{bg};color:{fg};margin:0}}"
            " .l{white-space:pre; padding:0 8px;}</style>",
            "</head>",
            "<body>",
            f'<h3 style="margin:8px">{name}</h3>',
            "",
        ]
    )


def html_footer() -> str:
    return "</body></html>\n"
