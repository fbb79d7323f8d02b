# Copyright (C) 2025 Torsten Knodt and contributors
# GNU General Public License
# SPDX-License-Identifier: GPL-3.0-or-later
"""Exceptions raised by conversion jobs and the settings store."""


class ConversionError(Exception):
    """A conversion job failed."""


class InputNotFoundError(ConversionError, FileNotFoundError):
    """The input log file does not exist; no output was produced."""


class ConversionIOError(ConversionError, OSError):
    """Reading or writing failed mid-stream; a partial output file may remain."""


class SettingsError(Exception):
    """The settings file exists but cannot be read as a settings document."""
