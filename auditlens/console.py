#!python3
"""
Rich-based console output for AuditLens.

This module provides styled terminal output using the Rich library:
- Console output with colors and formatting
- Category badges and distribution table
- Summary dashboard with rankings and key events
"""

import logging
from typing import List, Optional, Sequence, Tuple

from rich.bar import Bar
from rich.console import Console, Group
from rich.logging import RichHandler
from rich.panel import Panel
from rich.rule import Rule
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from .models import AuditRecord, AuditSummary, Category, category_label

# Custom AuditLens theme
AUDITLENS_THEME = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
    "file": "cyan",
    "count": "bold magenta",
    "time": "yellow",
    "header": "bold cyan",
    "category.file_missing": "bold red",
    "category.file_deleted": "bold magenta",
    "category.file_operations": "bold yellow",
    "category.security_events": "bold cyan",
    "category.system_events": "green",
    "category.other": "dim",
    "stat.label": "dim",
    "stat.value": "bold cyan",
})

# Global console instance for consistent output
console = Console(theme=AUDITLENS_THEME, highlight=False)


# ============================================================================
# QUIET MODE SUPPORT
# ============================================================================

_quiet_mode: bool = False


def set_quiet_mode(quiet: bool = True):
    """Enable/disable quiet mode globally.

    When quiet mode is active, non-essential output (banner, step lines,
    key event listing) is suppressed. Errors, warnings, and the summary
    panel still display.
    """
    global _quiet_mode
    _quiet_mode = quiet


def is_quiet() -> bool:
    """Check if quiet mode is active."""
    return _quiet_mode


# ============================================================================
# BANNER
# ============================================================================

_BANNER = """\
[bold cyan] █████╗ ██╗   ██╗██████╗ ██╗████████╗██╗     ███████╗███╗   ██╗███████╗[/]
[cyan]██╔══██╗██║   ██║██╔══██╗██║╚══██╔══╝██║     ██╔════╝████╗  ██║██╔════╝[/]
[bold blue]███████║██║   ██║██║  ██║██║   ██║   ██║     █████╗  ██╔██╗ ██║███████╗[/]
[blue]██╔══██║██║   ██║██║  ██║██║   ██║   ██║     ██╔══╝  ██║╚██╗██║╚════██║[/]
[bold magenta]██║  ██║╚██████╔╝██████╔╝██║   ██║   ███████╗███████╗██║ ╚████║███████║[/]
[magenta]╚═╝  ╚═╝ ╚═════╝ ╚═════╝ ╚═╝   ╚═╝   ╚══════╝╚══════╝╚═╝  ╚═══╝╚══════╝[/]
[dim]-= Audit trail parser and investigation summary for document-management exports =-[/]"""


def print_banner(version: str):
    """Print the AuditLens ASCII banner with version number."""
    if _quiet_mode:
        return
    console.print()
    console.print(_BANNER)
    console.print(f"                              [dim]v{version}[/]\n")


# ============================================================================
# SECTION SEPARATORS
# ============================================================================

def print_section(title: str = ""):
    """Print a section separator with an optional centered title. Suppressed in quiet mode."""
    if _quiet_mode:
        return
    if title:
        console.print(Rule(f"[bold cyan]{title}[/]", style="dim"))
    else:
        console.print(Rule(style="dim"))


# ============================================================================
# ERROR PANEL
# ============================================================================

def print_error_panel(title: str, message: str, suggestion: str = ""):
    """Display a fatal error inside a prominent red-bordered panel.

    Always shown regardless of quiet mode.

    Args:
        title: Short error category (e.g. "Missing File")
        message: Detailed error description
        suggestion: Optional remediation hint shown below the message
    """
    content = f"[bold red]{message}[/]"
    if suggestion:
        content += f"\n\n[dim]Suggestion: {suggestion}[/]"
    console.print()
    console.print(
        Panel(
            content,
            title=f"[bold red]Error: {title}[/]",
            border_style="red",
            padding=(1, 2),
        )
    )


def print_no_records():
    """Display a zero-state panel when the export holds no audit rows."""
    if _quiet_mode:
        return
    console.print()
    console.print(
        Panel(
            "[bold yellow]No audit entries found[/]\n"
            "[dim]The input contains no data rows after the header.[/]",
            border_style="yellow",
            padding=(1, 2),
        )
    )


# ============================================================================
# CLI-STYLE HELPER FUNCTIONS
# ============================================================================

def print_step(message: str):
    """Print a step message with [+] prefix. Suppressed in quiet mode."""
    if not _quiet_mode:
        console.print(f"[bold white]\\[+][/] {message}")


def print_substep(message: str, style: str = "dim"):
    """Print a sub-step message with indentation. Suppressed in quiet mode."""
    if not _quiet_mode:
        console.print(f"    [{style}]\\[>][/] {message}")


def print_success(message: str):
    """Print a success message with checkmark. Suppressed in quiet mode."""
    if not _quiet_mode:
        console.print(f"[green]\\[✓][/] {message}")


def print_warning(message: str):
    """Print a warning message with [!] prefix. Always shown."""
    console.print(f"[yellow]\\[!][/] {message}")


def print_error(message: str):
    """Print an error message with [-] prefix. Always shown."""
    console.print(f"[red]\\[-][/] {message}")


def print_file(label: str, path: str):
    """Print a file path with label. Suppressed in quiet mode."""
    if not _quiet_mode:
        console.print(f"[cyan]\\[+][/] {label}: [cyan]{path}[/]")


def print_count(label: str, count: int, style: str = "magenta"):
    """Print a count with label. Suppressed in quiet mode."""
    if not _quiet_mode:
        console.print(f"[cyan]\\[+][/] {label}: [{style}]{count:,}[/]")


def get_rich_logger(name: str = "auditlens", debug: bool = False, log_file: Optional[str] = None) -> logging.Logger:
    """
    Create a logger with Rich handler for styled console output.

    Args:
        name: Logger name
        debug: Enable debug level logging
        log_file: Optional file path for persistent logging

    Returns:
        Configured logger with Rich handler
    """
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    rich_handler = RichHandler(
        console=console,
        show_path=False,
        show_time=False,
        show_level=False,
        markup=True,
        rich_tracebacks=True,
    )
    rich_handler.setLevel(logging.DEBUG if debug else logging.INFO)
    rich_handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(rich_handler)

    if log_file:
        file_format = "%(asctime)s %(levelname)-8s %(message)s"
        if debug:
            file_format = "%(asctime)s %(levelname)-8s %(module)s:%(lineno)s %(funcName)s %(message)s"
        file_handler = logging.FileHandler(log_file)
        file_handler.setLevel(logging.DEBUG if debug else logging.INFO)
        file_handler.setFormatter(logging.Formatter(file_format, datefmt='%Y-%m-%d %H:%M:%S'))
        logger.addHandler(file_handler)

    return logger


# ============================================================================
# CATEGORY STYLES AND FORMATTERS
# ============================================================================

_BADGES = {
    Category.MISSING_RESOURCE: ("MISSING", "bold white on red"),
    Category.DELETION:         ("DELETED", "bold white on magenta"),
    Category.FILE_OPERATION:   ("FILE OP", "bold black on yellow"),
    Category.SECURITY_EVENT:   ("SECURITY", "bold black on cyan"),
    Category.SYSTEM_EVENT:     ("SYSTEM", "bold white on green"),
    Category.OTHER:            ("OTHER", "white on bright_black"),
}


def make_category_badge(category: Category) -> Text:
    """Return a fixed-width, styled category badge."""
    label, style = _BADGES.get(category, (category.value.upper(), ""))
    return Text(f" {label} ", style=style, justify="center")


def format_timestamp(record: AuditRecord) -> str:
    if record.timestamp is None:
        return "[dim]N/A[/]"
    return record.timestamp.strftime("%Y-%m-%d %H:%M:%S")


# ============================================================================
# SUMMARY TABLES
# ============================================================================

def build_category_table(summary: AuditSummary) -> Table:
    """Build the category distribution table with proportional bars."""
    table = Table(show_header=False, box=None, padding=(0, 1), expand=True)
    table.add_column("Category", width=12, no_wrap=True)
    table.add_column("Label", style="cyan", width=18, no_wrap=True)
    table.add_column("Bar", width=20)
    table.add_column("Count", justify="right", style="magenta", width=8)

    total = max(summary.total_entries, 1)
    for category in Category:
        count = summary.count(category)
        bar = Bar(size=total, begin=0, end=count, width=16, color="yellow", bgcolor="bright_black")
        table.add_row(make_category_badge(category), category_label(category), bar, f"{count:,}")

    return table


def build_ranking_table(title: str, column: str, rows: Sequence[Tuple[str, int]]) -> Table:
    """Build a ranked (value, count) table."""
    table = Table(
        show_header=True,
        header_style="bold",
        border_style="dim",
        padding=(0, 1),
        title=f"[bold cyan]{title}[/]",
        expand=True,
    )
    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column(column, ratio=1)
    table.add_column("Events", justify="right", style="magenta", width=8)

    for rank, (value, count) in enumerate(rows, start=1):
        table.add_row(str(rank), value, f"{count:,}")

    return table


def build_key_event_table(records: List[AuditRecord], title: Optional[str] = None) -> Table:
    """Build a table of key events with category badge, time, user and action."""
    table = Table(
        show_header=True,
        header_style="bold",
        border_style="dim",
        padding=(0, 1),
        title=f"[bold cyan]{title}[/]" if title else None,
        expand=True,
    )
    table.add_column("Category", justify="center", width=12, no_wrap=True)
    table.add_column("Timestamp", style="time", width=19, no_wrap=True)
    table.add_column("User", style="cyan", width=20)
    table.add_column("Action", ratio=1)
    table.add_column("Document", style="dim", ratio=1)

    for record in records:
        table.add_row(
            make_category_badge(record.category),
            format_timestamp(record),
            record.actor,
            record.action,
            record.resource,
        )

    return table


def build_summary_panel(summary: AuditSummary) -> Panel:
    """Build the headline statistics panel."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Label", style="stat.label")
    table.add_column("Value", style="stat.value")

    table.add_row("Entries", f"{summary.total_entries:,}")
    if summary.time_range.is_sentinel:
        table.add_row("Time range", "[dim]no valid timestamps[/]")
    else:
        start = summary.time_range.start.strftime("%Y-%m-%d %H:%M:%S")
        end = summary.time_range.end.strftime("%Y-%m-%d %H:%M:%S")
        table.add_row("Time range", f"[time]{start}[/] -> [time]{end}[/]")
    table.add_row("Key events", f"{len(summary.key_events):,}")

    return Panel(
        Group(table, Text(""), build_category_table(summary)),
        title="[bold]Audit Trail Summary[/]",
        border_style="cyan",
        padding=(0, 1),
        expand=True,
    )


def print_summary_dashboard(summary: AuditSummary):
    """Print the summary panel, rankings and, outside quiet mode, key events."""
    console.print()
    console.print(build_summary_panel(summary))

    if summary.top_actors:
        console.print(build_ranking_table("Most Active Users", "User", summary.top_actors))
    if summary.top_resources:
        console.print(build_ranking_table("Most Affected Documents", "Document", summary.top_resources))

    if summary.key_events and not _quiet_mode:
        console.print(build_key_event_table(summary.key_events, title="Key Events"))
