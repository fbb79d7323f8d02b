# Copyright (C) 2025 Torsten Knodt and contributors
# GNU General Public License
# SPDX-License-Identifier: GPL-3.0-or-later
"""CLI interface for the log to HTML highlighter."""

import dataclasses
import logging
from enum import Enum
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from . import __version__
from .compiler import compile_rules, is_valid_color, normalize_color
from .converter import convert_many, reconvert as reconvert_record
from .errors import ConversionError, SettingsError
from .models import KeywordRule, Scope
from .settings import APP_NAME, JsonSettingsStore, Settings

LOGGER = logging.getLogger(__name__)

app = typer.Typer(
    name=APP_NAME,
    help="Convert plain-text log files to HTML with colored keywords.",
    no_args_is_help=True,
)

console = Console()


class _WarningTracker(logging.Handler):
    """Handler to track if any warnings were logged."""

    def __init__(self) -> None:
        super().__init__()
        self.warnings_shown = False

    def emit(self, record: logging.LogRecord) -> None:
        if record.levelno >= logging.WARNING:
            self.warnings_shown = True


_warning_tracker = _WarningTracker()


def _parse_log_level(log_level_str: str) -> int:
    """Parse log level from string (name or non-negative integer).

    Raises:
        ValueError: If log level is invalid
    """
    try:
        level_int = int(log_level_str)
    except ValueError:
        level_int = None
    if level_int is not None:
        if level_int < 0:
            raise ValueError("Log level must be non-negative")
        return level_int

    level_map = {
        "CRITICAL": logging.CRITICAL,
        "ERROR": logging.ERROR,
        "WARNING": logging.WARNING,
        "INFO": logging.INFO,
        "DEBUG": logging.DEBUG,
    }
    level_name = log_level_str.upper()
    if level_name in level_map:
        return level_map[level_name]

    raise ValueError(
        f"Invalid log level '{log_level_str}'. "
        f"Use log level names (CRITICAL, ERROR, WARNING, INFO, DEBUG) "
        f"or non-negative integers."
    )


def _setup_logging(verbose: int, quiet: int, log_level: Optional[str]) -> int:
    """Configure logging from -v/-q counts and an optional explicit level.

    Returns:
        The final log level that was set
    """
    base_level = _parse_log_level(log_level) if log_level is not None else logging.WARNING

    # 10-point steps, like the predefined levels
    level = max(0, base_level - (verbose - quiet) * 10)

    logging.basicConfig(level=level, format="%(levelname)s: %(message)s", force=True)
    _warning_tracker.warnings_shown = False
    logging.getLogger().addHandler(_warning_tracker)

    LOGGER.info("Log level set to %d (%s)", level, logging.getLevelName(level))
    return level


def _configure(verbose: int, quiet: int, log_level: Optional[str]) -> int:
    try:
        return _setup_logging(verbose, quiet, log_level)
    except ValueError as exc:
        console.print(f"[red]Error: {escape(str(exc))}[/red]")
        raise typer.Exit(1)


def _parse_rule(text: str) -> KeywordRule:
    """Parse ``KEYWORD=COLOR[:line|:word][:case]`` into a rule."""
    keyword, sep, rest = text.rpartition("=")
    if not sep:
        raise typer.BadParameter(f"expected KEYWORD=COLOR[:line][:case], got '{text}'")
    color, *flags = rest.split(":")
    scope = Scope.WORD
    case_sensitive = None
    for flag in flags:
        flag = flag.strip().lower()
        if flag in (Scope.LINE.value, Scope.WORD.value):
            scope = Scope(flag)
        elif flag == "case":
            case_sensitive = True
        elif flag == "nocase":
            case_sensitive = False
        else:
            raise typer.BadParameter(f"unknown rule flag '{flag}' in '{text}'")
    return KeywordRule(keyword=keyword, color=color, scope=scope, case_sensitive=case_sensitive)


SETTINGS_OPTION = typer.Option(
    None, "--settings", "-s", help="Settings file (default: per-user app directory)."
)
VERBOSE_OPTION = typer.Option(
    0, "-v", "--verbose", count=True, help="Increase verbosity (-v: INFO, -vv: DEBUG)."
)
QUIET_OPTION = typer.Option(
    0, "-q", "--quiet", count=True, help="Decrease verbosity (-q: ERROR, -qq: CRITICAL)."
)
LOG_LEVEL_OPTION = typer.Option(
    None, "-l", "--log-level", help="Explicit log level name or non-negative integer."
)


def _save(store: JsonSettingsStore, rules: List[KeywordRule], settings: Settings, history) -> None:
    try:
        store.save(rules, settings, history)
    except SettingsError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)


def _resolve_color(value: str, palette: List[str]) -> str:
    """Accept a color or a 1-based palette number and return a normalized color."""
    text = value.strip()
    if text.isdigit():
        number = int(text)
        if not 1 <= number <= len(palette):
            raise typer.BadParameter(f"palette has {len(palette)} color(s), got {number}")
        text = palette[number - 1]
    if not is_valid_color(text):
        raise typer.BadParameter(
            f"'{value}' is not a color (use #RGB, #RRGGBB, #AARRGGBB, a name or a palette number)"
        )
    return normalize_color(text)


def _check_index(index: int, count: int, what: str) -> None:
    if not 1 <= index <= count:
        console.print(f"[red]Error: no {what} {index} ({count} available)[/red]")
        raise typer.Exit(1)


@app.command()
def run(
    files: List[str] = typer.Argument(..., help="Input log files. Shell globs allowed."),
    outdir: Optional[Path] = typer.Option(
        None, "-o", "--outdir", help="Output directory (default: next to each input)."
    ),
    rule: Optional[List[str]] = typer.Option(
        None,
        "--rule",
        "-r",
        help="KEYWORD=COLOR[:line|:word][:case|:nocase]; replaces stored rules (repeatable).",
    ),
    whole_word: Optional[bool] = typer.Option(
        None, "--whole-word/--no-whole-word", help="Match keywords as whole tokens only."
    ),
    ignore_case: Optional[bool] = typer.Option(
        None, "--ignore-case/--match-case", help="Default case handling for rules."
    ),
    record_history: bool = typer.Option(
        True, "--history/--no-history", help="Add conversions to the stored history."
    ),
    settings_path: Optional[Path] = SETTINGS_OPTION,
    verbose: int = VERBOSE_OPTION,
    quiet: int = QUIET_OPTION,
    log_level: Optional[str] = LOG_LEVEL_OPTION,
) -> None:
    """Convert log files to highlighted HTML."""
    level = _configure(verbose, quiet, log_level)
    store = JsonSettingsStore(settings_path)
    stored_rules = store.load_rules()
    stored_settings = store.load_options()

    rules = [_parse_rule(r) for r in rule] if rule else stored_rules
    settings = dataclasses.replace(
        stored_settings,
        whole_word=stored_settings.whole_word if whole_word is None else whole_word,
        ignore_case=stored_settings.ignore_case if ignore_case is None else ignore_case,
    )
    ruleset = compile_rules(rules, settings.match_options())
    history = store.load_history()

    attempted = 0
    success_count = 0
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        console=console,
    ) as progress:
        tasks = {}

        def _started(path: Path) -> None:
            nonlocal attempted
            attempted += 1
            tasks[path] = progress.add_task(f"Converting {escape(path.name)}...", total=None)

        def _finished(path: Path, record, error) -> None:
            nonlocal success_count
            progress.remove_task(tasks.pop(path))
            if error is not None:
                console.print(
                    f"[red]Error converting {escape(path.name)}: {escape(str(error))}[/red]"
                )
                return
            success_count += 1
            console.print(
                f"[green]✓[/green] {escape(path.name)} → {escape(record.output_path.name)}"
            )

        try:
            convert_many(
                files,
                outdir,
                ruleset,
                settings.theme(),
                history,
                on_start=_started,
                on_done=_finished,
            )
        except ConversionError:
            LOGGER.debug("Batch finished with failures")

    if not attempted:
        console.print("[red]Error: no input files matched[/red]")
        raise typer.Exit(1)

    console.print(f"\n[green]Converted {success_count}/{attempted} files[/green]")

    if record_history and success_count:
        _save(store, stored_rules, stored_settings, history)

    if _warning_tracker.warnings_shown and level > logging.DEBUG:
        LOGGER.info("Issues detected. For detailed diagnostics, rerun with -vv or -l DEBUG.")

    if success_count < attempted:
        raise typer.Exit(1)


def _pick_record(store: JsonSettingsStore, index: int):
    history = store.load_history()
    ordered = history.newest_first()
    _check_index(index, len(ordered), "history entry")
    return history, ordered[index - 1]


@app.command()
def reconvert(
    index: int = typer.Argument(..., help="History entry to convert again (1 = newest)."),
    outdir: Optional[Path] = typer.Option(
        None, "-o", "--outdir", help="Output directory (default: previous output directory)."
    ),
    settings_path: Optional[Path] = SETTINGS_OPTION,
    verbose: int = VERBOSE_OPTION,
    quiet: int = QUIET_OPTION,
    log_level: Optional[str] = LOG_LEVEL_OPTION,
) -> None:
    """Convert a previously converted file again with the current rules."""
    _configure(verbose, quiet, log_level)
    store = JsonSettingsStore(settings_path)
    history, record = _pick_record(store, index)
    rules = store.load_rules()
    settings = store.load_options()
    ruleset = compile_rules(rules, settings.match_options())

    try:
        reconvert_record(record, ruleset, settings.theme(), outdir)
    except (ConversionError, OSError) as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    history.refresh(record)
    console.print(f"[green]✓[/green] Converted to {escape(str(record.output_path))}")
    _save(store, rules, settings, history)


@app.command()
def forget(
    index: int = typer.Argument(..., help="History entry to remove (1 = newest)."),
    delete_output: bool = typer.Option(
        False, "--delete-output", help="Also delete the generated HTML file."
    ),
    settings_path: Optional[Path] = SETTINGS_OPTION,
) -> None:
    """Remove an entry from the conversion history."""
    store = JsonSettingsStore(settings_path)
    history, record = _pick_record(store, index)
    rules = store.load_rules()
    settings = store.load_options()
    history.remove(record, delete_output=delete_output)
    _save(store, rules, settings, history)
    console.print(f"Removed {escape(record.original_path.name)} from history")


# --------------------------------------------------------------------------- #
# Stored rules                                                                 #
# --------------------------------------------------------------------------- #

rules_app = typer.Typer(help="Show and edit the stored keyword rules.")
app.add_typer(rules_app, name="rules")


def _print_rules(store: JsonSettingsStore) -> None:
    settings = store.load_options()
    table = Table(title="Keyword rules")
    table.add_column("#", justify="right")
    table.add_column("Keyword")
    table.add_column("Color")
    table.add_column("Scope")
    table.add_column("Case")
    for i, r in enumerate(store.load_rules(), start=1):
        if r.case_sensitive is None:
            case = "ignore" if settings.ignore_case else "match"
        else:
            case = "match" if r.case_sensitive else "ignore"
        table.add_row(str(i), escape(r.keyword), escape(r.color), Scope(r.scope).value, case)
    console.print(table)
    console.print(f"whole word: {settings.whole_word}, ignore case: {settings.ignore_case}")


@rules_app.callback(invoke_without_command=True)
def rules_main(ctx: typer.Context, settings_path: Optional[Path] = SETTINGS_OPTION) -> None:
    """Show and edit the stored keyword rules; lists them without a subcommand."""
    if ctx.invoked_subcommand is None:
        _print_rules(JsonSettingsStore(settings_path))


@rules_app.command("list")
def list_rules(settings_path: Optional[Path] = SETTINGS_OPTION) -> None:
    """Show the stored keyword rules in priority order."""
    _print_rules(JsonSettingsStore(settings_path))


@rules_app.command("add")
def add_rule(
    keyword: str = typer.Argument(..., help="Literal text to match."),
    color: str = typer.Argument("#FF0000", help="Color or palette number."),
    line: bool = typer.Option(False, "--line", help="Color the whole line instead of the word."),
    case_sensitive: Optional[bool] = typer.Option(
        None, "--case/--nocase", help="Override the global case handling for this rule."
    ),
    at: Optional[int] = typer.Option(
        None, "--at", help="Insert at this position (1 = highest priority); default appends."
    ),
    settings_path: Optional[Path] = SETTINGS_OPTION,
) -> None:
    """Add a keyword rule."""
    if not keyword.strip():
        raise typer.BadParameter("keyword must not be blank")
    store = JsonSettingsStore(settings_path)
    rules = store.load_rules()
    settings = store.load_options()
    new_rule = KeywordRule(
        keyword=keyword,
        color=_resolve_color(color, settings.palette),
        scope=Scope.LINE if line else Scope.WORD,
        case_sensitive=case_sensitive,
    )
    position = len(rules) + 1 if at is None else at
    _check_index(position, len(rules) + 1, "rule position")
    rules.insert(position - 1, new_rule)
    _save(store, rules, settings, store.load_history())
    console.print(f"Added rule {position}: {escape(keyword)} ({new_rule.color})")


@rules_app.command("remove")
def remove_rule(
    index: int = typer.Argument(..., help="Rule number as listed by 'rules'."),
    settings_path: Optional[Path] = SETTINGS_OPTION,
) -> None:
    """Remove a keyword rule."""
    store = JsonSettingsStore(settings_path)
    rules = store.load_rules()
    _check_index(index, len(rules), "rule")
    removed = rules.pop(index - 1)
    _save(store, rules, store.load_options(), store.load_history())
    console.print(f"Removed rule {index}: {escape(removed.keyword)}")


@rules_app.command("move")
def move_rule(
    index: int = typer.Argument(..., help="Rule number to move."),
    to: int = typer.Argument(..., help="New position (1 = highest priority)."),
    settings_path: Optional[Path] = SETTINGS_OPTION,
) -> None:
    """Change the priority of a keyword rule."""
    store = JsonSettingsStore(settings_path)
    rules = store.load_rules()
    _check_index(index, len(rules), "rule")
    _check_index(to, len(rules), "rule position")
    moved = rules.pop(index - 1)
    rules.insert(to - 1, moved)
    _save(store, rules, store.load_options(), store.load_history())
    console.print(f"Moved {escape(moved.keyword)} to position {to}")


@rules_app.command("color")
def recolor_rule(
    index: int = typer.Argument(..., help="Rule number to recolor."),
    color: str = typer.Argument(..., help="Color or palette number."),
    settings_path: Optional[Path] = SETTINGS_OPTION,
) -> None:
    """Change the color of a keyword rule."""
    store = JsonSettingsStore(settings_path)
    rules = store.load_rules()
    settings = store.load_options()
    _check_index(index, len(rules), "rule")
    rule = dataclasses.replace(rules[index - 1], color=_resolve_color(color, settings.palette))
    rules[index - 1] = rule
    _save(store, rules, settings, store.load_history())
    console.print(f"Rule {index} ({escape(rule.keyword)}) is now {rule.color}")


# --------------------------------------------------------------------------- #
# Stored options                                                               #
# --------------------------------------------------------------------------- #

config_app = typer.Typer(help="Show and change the stored options.")
app.add_typer(config_app, name="config")


class ConfigKey(str, Enum):
    WHOLE_WORD = "whole-word"
    IGNORE_CASE = "ignore-case"
    BACKGROUND = "background"
    FOREGROUND = "foreground"


_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(value: str) -> bool:
    text = value.strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    raise typer.BadParameter(f"expected true or false, got '{value}'")


@config_app.command("show")
def show_config(settings_path: Optional[Path] = SETTINGS_OPTION) -> None:
    """Show the stored options and the color palette."""
    store = JsonSettingsStore(settings_path)
    settings = store.load_options()
    console.print(f"settings file: {escape(str(store.path))}")
    console.print(f"whole-word: {settings.whole_word}")
    console.print(f"ignore-case: {settings.ignore_case}")
    console.print(f"background: {escape(settings.background_color)}")
    console.print(f"foreground: {escape(settings.default_text_color)}")
    table = Table(title="Palette")
    table.add_column("#", justify="right")
    table.add_column("Color")
    for i, color in enumerate(settings.palette, start=1):
        table.add_row(str(i), escape(color))
    console.print(table)


@config_app.command("set")
def set_config(
    key: ConfigKey = typer.Argument(..., help="Option to change."),
    value: str = typer.Argument(..., help="true/false, or a color or palette number."),
    settings_path: Optional[Path] = SETTINGS_OPTION,
) -> None:
    """Change one stored option."""
    store = JsonSettingsStore(settings_path)
    settings = store.load_options()
    if key is ConfigKey.WHOLE_WORD:
        settings.whole_word = _parse_bool(value)
    elif key is ConfigKey.IGNORE_CASE:
        settings.ignore_case = _parse_bool(value)
    elif key is ConfigKey.BACKGROUND:
        settings.background_color = _resolve_color(value, settings.palette)
    else:
        settings.default_text_color = _resolve_color(value, settings.palette)
    _save(store, store.load_rules(), settings, store.load_history())
    console.print(f"{key.value} set")


@app.command("history")
def show_history(settings_path: Optional[Path] = SETTINGS_OPTION) -> None:
    """List past conversions, newest first."""
    records = JsonSettingsStore(settings_path).load_history().newest_first()
    table = Table(title="Conversion history")
    table.add_column("#", justify="right")
    table.add_column("Converted")
    table.add_column("Original")
    table.add_column("Output")
    for i, rec in enumerate(records, start=1):
        table.add_row(
            str(i),
            rec.converted_at.strftime("%Y-%m-%d %H:%M:%S"),
            escape(str(rec.original_path)),
            escape(str(rec.output_path)),
        )
    console.print(table)
    console.print(f"{len(records)} record(s)")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"{APP_NAME} {__version__}")


if __name__ == "__main__":
    app()
