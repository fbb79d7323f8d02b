# Copyright (C) 2025 Torsten Knodt and contributors
# GNU General Public License
# SPDX-License-Identifier: GPL-3.0-or-later

"""Log file to HTML conversion jobs and conversion history."""

from __future__ import annotations

import codecs
import errno
import glob
import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from datetime import datetime
from pathlib import Path

from .compiler import CompiledRuleSet, normalize_color
from .errors import ConversionError, ConversionIOError, InputNotFoundError
from .models import ConversionRecord, Theme
from .renderer import html_footer, html_header, render_line

LOGGER = logging.getLogger(__name__)

# Longest BOMs first: the UTF-32 LE mark starts with the UTF-16 LE mark.
_BOMS: tuple[tuple[bytes, str], ...] = (
    (codecs.BOM_UTF32_LE, "utf-32"),
    (codecs.BOM_UTF32_BE, "utf-32"),
    (codecs.BOM_UTF8, "utf-8-sig"),
    (codecs.BOM_UTF16_LE, "utf-16"),
    (codecs.BOM_UTF16_BE, "utf-16"),
)

OUTPUT_ENCODING = "utf-8-sig"


# --------------------------------------------------------------------------- #
# Input decoding                                                               #
# --------------------------------------------------------------------------- #


def detect_encoding(path: Path) -> str:
    """Pick a codec from the byte-order mark of ``path``; UTF-8 without one."""
    with open(path, "rb") as fh:
        head = fh.read(4)
    for bom, encoding in _BOMS:
        if head.startswith(bom):
            LOGGER.debug("%s: byte-order mark found, reading as %s", path, encoding)
            return encoding
    return "utf-8"


def iter_lines(path: Path) -> Iterator[str]:
    """Yield the lines of ``path`` one at a time, without line terminators."""
    encoding = detect_encoding(path)
    with open(path, encoding=encoding, errors="replace", newline=None) as fh:
        for line in fh:
            yield line[:-1] if line.endswith("\n") else line


# --------------------------------------------------------------------------- #
# Single conversion job                                                        #
# --------------------------------------------------------------------------- #


def output_path_for(input_path: Path, output_dir: Path) -> Path:
    """Return the output file for ``input_path``; reruns overwrite it."""
    return Path(output_dir) / f"{Path(input_path).stem}.html"


def convert_file(
    input_path: Path | str,
    output_dir: Path | str,
    ruleset: CompiledRuleSet,
    theme: Theme | None = None,
) -> ConversionRecord:
    """Convert one log file into a highlighted HTML document.

    Args:
        input_path: Plain-text log file
        output_dir: Directory receiving ``<stem>.html`` (created if missing)
        ruleset: Matchers compiled for this job
        theme: Page background and default text color

    Returns:
        A new record describing the written file

    Raises:
        InputNotFoundError: If ``input_path`` is not an existing file
        ConversionIOError: If reading or writing fails part way
    """
    source = Path(input_path)
    if not source.is_file():
        LOGGER.error("Input file not found: %s", source)
        raise InputNotFoundError(errno.ENOENT, "Input file not found", str(source))

    theme = theme or Theme()
    theme = Theme(normalize_color(theme.background), normalize_color(theme.foreground))
    out = output_path_for(source, Path(output_dir))
    LOGGER.info("Converting %s -> %s", source, out)

    line_count = 0
    try:
        out.parent.mkdir(parents=True, exist_ok=True)
        with open(out, "w", encoding=OUTPUT_ENCODING, newline="\n") as writer:
            writer.write(html_header(source.name, theme))
            for raw_line in iter_lines(source):
                writer.write(render_line(raw_line, ruleset))
                writer.write("\n")
                line_count += 1
            writer.write(html_footer())
    except OSError as exc:
        LOGGER.error(
            "I/O failure converting %s after %d line(s): %s", source, line_count, exc, exc_info=True
        )
        raise ConversionIOError(f"I/O failure converting {source} -> {out}: {exc}") from exc

    LOGGER.info("Wrote %d line(s) to %s", line_count, out)
    return ConversionRecord(original_path=source, output_path=out, converted_at=datetime.now())


def reconvert(
    record: ConversionRecord,
    ruleset: CompiledRuleSet,
    theme: Theme | None = None,
    output_dir: Path | str | None = None,
) -> ConversionRecord:
    """Convert ``record.original_path`` again and refresh ``record`` in place.

    Output goes next to the previous output unless ``output_dir`` is given.
    The record is left untouched when the job fails.
    """
    target_dir = Path(output_dir) if output_dir is not None else Path(record.output_path).parent
    fresh = convert_file(record.original_path, target_dir, ruleset, theme)
    record.output_path = fresh.output_path
    record.converted_at = fresh.converted_at
    LOGGER.debug("Refreshed record for %s", record.original_path)
    return record


# --------------------------------------------------------------------------- #
# Conversion history                                                           #
# --------------------------------------------------------------------------- #


class ConversionHistory:
    """Ordered records of past conversions, newest added first."""

    def __init__(self, records: Iterable[ConversionRecord] = ()) -> None:
        self._records: list[ConversionRecord] = list(records)

    def __iter__(self) -> Iterator[ConversionRecord]:
        return iter(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, record: object) -> bool:
        return any(r is record for r in self._records)

    def add(self, record: ConversionRecord) -> ConversionRecord:
        self._records.insert(0, record)
        return record

    def refresh(self, record: ConversionRecord) -> ConversionRecord:
        """Keep an updated record; adds it if it is not tracked yet."""
        if record not in self:
            self.add(record)
        return record

    def remove(self, record: ConversionRecord, delete_output: bool = False) -> None:
        """Forget ``record``, optionally deleting its output file."""
        self._records = [r for r in self._records if r is not record]
        if delete_output:
            try:
                Path(record.output_path).unlink()
            except FileNotFoundError:
                LOGGER.debug("Output already gone: %s", record.output_path)

    def newest_first(self) -> list[ConversionRecord]:
        return sorted(self._records, key=lambda r: r.converted_at, reverse=True)


# --------------------------------------------------------------------------- #
# Path expansion & batch conversion                                            #
# --------------------------------------------------------------------------- #


def expand_paths(inputs: Sequence[str]) -> list[Path]:
    """Expand glob patterns in input paths and return deduplicated resolved paths.

    Existing paths are taken literally even if they contain glob characters.
    Plain paths that match nothing are kept so the job reports them missing.
    """
    LOGGER.debug("Expanding %d input patterns: %s", len(inputs), inputs)

    expanded: list[Path] = []
    for p in inputs:
        if Path(p).exists():
            matches = [p]
        else:
            matches = sorted(glob.glob(p))
        if not matches and glob.escape(p) == p:
            matches = [p]
        LOGGER.debug("Pattern '%s' matched %d files", p, len(matches))
        expanded.extend(Path(m).resolve() for m in matches)

    # de-dup while preserving order
    seen: set[Path] = set()
    uniq: list[Path] = []
    for path_item in expanded:
        if path_item not in seen:
            uniq.append(path_item)
            seen.add(path_item)
        else:
            LOGGER.debug("Skipping duplicate path: %s", path_item)
    return uniq


def convert_many(
    inputs: Sequence[str],
    output_dir: Path | None,
    ruleset: CompiledRuleSet,
    theme: Theme | None = None,
    history: ConversionHistory | None = None,
    on_start: Callable[[Path], None] | None = None,
    on_done: Callable[[Path, ConversionRecord | None, Exception | None], None] | None = None,
) -> list[ConversionRecord]:
    """Convert every expanded input in turn, one job after the other.

    Output lands in ``output_dir`` or next to each input. Successful records
    are added to ``history`` as they complete; failures are collected and
    raised together once all inputs were tried.

    ``on_start(path)`` runs before each job and ``on_done(path, record,
    error)`` after it, with exactly one of ``record`` and ``error`` set.
    """
    files = expand_paths(inputs)
    LOGGER.info("Path expansion completed: %d input patterns -> %d files", len(inputs), len(files))
    if not files:
        LOGGER.warning("No files found after path expansion")
        return []

    records: list[ConversionRecord] = []
    failures: list[str] = []
    for i, path in enumerate(files, start=1):
        if on_start is not None:
            on_start(path)
        try:
            record = convert_file(path, output_dir or path.parent, ruleset, theme)
        except (ConversionError, OSError) as exc:
            failures.append(f"{path}: {exc}")
            LOGGER.error("Conversion failed (%d/%d): %s", i, len(files), path)
            if on_done is not None:
                on_done(path, None, exc)
            continue
        records.append(record)
        if history is not None:
            history.add(record)
        LOGGER.info("Conversion completed (%d/%d): %s", i, len(files), record.output_path)
        if on_done is not None:
            on_done(path, record, None)

    if failures:
        LOGGER.critical("Failed files:\n%s", "\n".join(failures))
        raise ConversionError("Some files failed:\n" + "\n".join(failures))
    return records
