# Copyright (C) 2025 Torsten Knodt and contributors
# GNU General Public License
# SPDX-License-Identifier: GPL-3.0-or-later
"""Basic tests for the log_highlight_html package."""

from log_highlight_html import __version__


def test_version() -> None:
    """Test that version is defined."""
    assert __version__
    assert isinstance(__version__, str)
    assert len(__version__) > 0


def test_import() -> None:
    """Test that the public API can be imported."""
    from log_highlight_html import compile_rules, convert_file, render_line  # noqa: F401

    assert callable(compile_rules)
