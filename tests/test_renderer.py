# Copyright (C) 2025 Torsten Knodt and contributors
# GNU General Public License
# SPDX-License-Identifier: GPL-3.0-or-later
"""Tests for line rendering and the HTML shell."""

from bs4 import BeautifulSoup

from log_highlight_html.compiler import compile_rules
from log_highlight_html.models import KeywordRule, MatchOptions, Scope, Theme
from log_highlight_html.renderer import escape_html, html_footer, html_header, render_line


def test_escape_html() -> None:
    """Test that all five special characters are escaped."""
    assert escape_html("<a href=\"x\">'&'</a>") == (
        "&lt;a href=&quot;x&quot;&gt;&#39;&amp;&#39;&lt;/a&gt;"
    )
    assert escape_html("") == ""
    assert escape_html("plain text") == "plain text"


def test_line_without_matches_is_escaped_only() -> None:
    """Test that a line matching no rule renders as its escaped form."""
    rs = compile_rules([KeywordRule("zzz", "red"), KeywordRule("yyy", "blue", Scope.LINE)])

    assert render_line("a < b & 'c'", rs) == '<div class="l">a &lt; b &amp; &#39;c&#39;</div>'


def test_empty_line() -> None:
    """Test that an empty line renders an empty unstyled container."""
    rs = compile_rules([KeywordRule("ERROR", "red", Scope.LINE)])

    assert render_line("", rs) == '<div class="l"></div>'


def test_empty_ruleset_passthrough() -> None:
    """Test rendering with no usable rules at all."""
    rs = compile_rules([KeywordRule(" ")])

    assert render_line("<b>", rs) == '<div class="l">&lt;b&gt;</div>'


def test_line_and_word_scope_combine() -> None:
    """Test that a line color does not suppress word spans."""
    rs = compile_rules(
        [
            KeywordRule("ERROR", "red", Scope.WORD),
            KeywordRule("ERROR LOG", "blue", Scope.LINE),
        ],
        MatchOptions(whole_word=False),
    )

    assert render_line("ERROR LOG seen", rs) == (
        '<div class="l" style="color:blue">'
        '<span style="color:red">ERROR</span> LOG seen</div>'
    )


def test_script_markup_is_escaped_and_highlighted() -> None:
    """Test that markup in the log is neutralized while keywords still match."""
    rs = compile_rules([KeywordRule("ERROR", "#FF0000")])

    html = render_line("<script>ERROR</script>", rs)

    assert html == (
        '<div class="l">&lt;script&gt;'
        '<span style="color:#FF0000">ERROR</span>&lt;/script&gt;</div>'
    )
    soup = BeautifulSoup(html, "lxml")
    assert soup.find("script") is None
    assert soup.find("span").get_text() == "ERROR"


def test_colors_cannot_break_out_of_attributes() -> None:
    """Test that colors with markup characters are replaced by black."""
    rs = compile_rules(
        [
            KeywordRule("x", 'red" onclick="alert(1)', Scope.LINE),
            KeywordRule("x", 'blue" onmouseover="alert(1)'),
        ]
    )

    html = render_line("x", rs)

    assert 'onclick="' not in html
    assert 'onmouseover="' not in html
    div = BeautifulSoup(html, "lxml").find("div")
    assert div.attrs == {"class": ["l"], "style": "color:#000000"}
    assert div.span["style"] == "color:#000000"


def test_html_header_and_footer() -> None:
    """Test the document shell around the rendered lines."""
    header = html_header("a<b>.log", Theme("#000", "#FFFFFF"))

    assert header.startswith("<!DOCTYPE html>\n")
    assert '<meta charset="utf-8" />' in header
    assert "<title>a&lt;b&gt;.log</title>" in header
    assert "background:#000;color:#FFFFFF" in header
    assert ".l{white-space:pre;" in header
    assert header.endswith("\n")
    assert html_footer() == "</body></html>\n"


def test_html_header_escapes_theme_colors() -> None:
    """Test that unnormalized theme colors are still escaped in the style block."""
    header = html_header("a.log", Theme("x</style><script>", "#FFFFFF"))

    assert "</style><script>" not in header
    assert "background:x&lt;/style&gt;&lt;script&gt;;" in header
