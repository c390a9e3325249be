#!python3
"""
Row tokenization and header layout detection for AuditLens.

Audit trail exports arrive tab-separated, comma-separated with quoting,
space-aligned, or as a single column of free text. This module provides:
- Line splitting
- Delimiter selection (tab, quote-aware comma, whitespace runs)
- Header layout detection (single-column, headerless, mapped columns)
- Header-to-field mapping through an ordered keyword table
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from .exceptions import ConfigError
from .timestamps import TimestampNormalizer


class Delimiter(str, Enum):
    """Field delimiter strategy."""

    TAB = "tab"
    COMMA = "comma"
    WHITESPACE = "whitespace"


# Record fields a header column can be mapped to
FIELD_SLOTS = ("timestamp", "action", "detail", "container", "actor", "application", "resource")

# Ordered keyword table: a header maps to the first slot with a keyword
# contained in its lower-cased text. Detail and container come before actor
# and resource so that "User Description" and "File Path" land on the more
# specific slot.
HEADER_KEYWORDS: List[Tuple[str, Tuple[str, ...]]] = [
    ("timestamp", ("date", "time", "timestamp", "when")),
    ("action", ("action", "event", "operation", "activity")),
    ("detail", ("detail", "comment", "description", "additional", "note", "message")),
    ("container", ("folder", "path", "location", "directory")),
    ("actor", ("user", "person", "who", "actor", "account")),
    ("application", ("application", "app", "program", "object type", "type", "source")),
    ("resource", ("document", "file", "name", "resource", "object")),
]

# Whitespace-aligned rows with fewer fields than this are split on every run
MIN_ALIGNED_FIELDS = 5

_RE_MULTI_SPACE = re.compile(r'\s{2,}')
_RE_LINE_BREAK = re.compile(r'\r\n|\r|\n')


@dataclass
class FileLayout:
    """Layout of an audit export as detected from its first line."""

    delimiter: Delimiter
    single_column: bool
    # slot name -> column indices, in column order
    column_map: Dict[str, List[int]] = field(default_factory=dict)
    # True when the first line is a data row rather than a header
    header_is_data: bool = False
    headers: List[str] = field(default_factory=list)

    @property
    def positional(self) -> bool:
        return not self.single_column and not self.header_is_data and bool(self.column_map)


def split_lines(content: str) -> List[str]:
    """Split content into lines, dropping blank ones."""
    return [line for line in _RE_LINE_BREAK.split(content) if line.strip()]


def detect_delimiter(row: str) -> Delimiter:
    """Select the delimiter strategy for a row."""
    if "\t" in row:
        return Delimiter.TAB
    if "," in row:
        return Delimiter.COMMA
    return Delimiter.WHITESPACE


def _unwrap_quoted(value: str) -> str:
    """Strip wrapping quotes and collapse doubled quotes inside them."""
    if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
        return value[1:-1].replace('""', '"')
    return value


def split_quoted_csv(row: str) -> List[str]:
    """
    Split a row on commas outside double quotes.

    A double quote toggles the inside-quotes state and is kept in the value,
    so an escaped quote ("") toggles twice and leaves the state unchanged.
    Values are trimmed, then fully quoted values are unwrapped.
    """
    values = []
    current = []
    in_quotes = False

    for char in row:
        if char == '"':
            in_quotes = not in_quotes
            current.append(char)
        elif char == "," and not in_quotes:
            values.append("".join(current))
            current = []
        else:
            current.append(char)
    values.append("".join(current))

    return [_unwrap_quoted(value.strip()) for value in values]


def split_whitespace(row: str) -> List[str]:
    """Split on runs of 2+ whitespace, falling back to any whitespace run."""
    parts = [part.strip() for part in _RE_MULTI_SPACE.split(row.strip())]
    parts = [part for part in parts if part]
    if len(parts) < MIN_ALIGNED_FIELDS:
        return row.split()
    return parts


def tokenize_row(row: str, delimiter: Optional[Delimiter] = None) -> List[str]:
    """
    Split a row into an ordered list of field values.

    Args:
        row: Raw row text
        delimiter: Forced delimiter strategy (selected from the row if None)

    Returns:
        List of trimmed field values
    """
    if delimiter is None:
        delimiter = detect_delimiter(row)

    if delimiter is Delimiter.TAB:
        return [segment.strip() for segment in row.split("\t")]
    if delimiter is Delimiter.COMMA:
        return split_quoted_csv(row)
    return split_whitespace(row)


def map_headers(
    headers: Sequence[str],
    keywords: Optional[Sequence[Tuple[str, Sequence[str]]]] = None,
) -> Dict[str, List[int]]:
    """
    Map header columns to record fields by keyword containment.

    Args:
        headers: Tokenized header row
        keywords: Ordered (slot, keywords) table, HEADER_KEYWORDS if None

    Returns:
        Dict of slot name -> column indices (only mapped slots are present)
    """
    table = keywords if keywords is not None else HEADER_KEYWORDS
    column_map: Dict[str, List[int]] = {}

    for index, header in enumerate(headers):
        header_lower = header.lower().strip()
        if not header_lower:
            continue
        for slot, slot_keywords in table:
            if any(keyword in header_lower for keyword in slot_keywords):
                column_map.setdefault(slot, []).append(index)
                break

    return column_map


def build_keyword_table(
    overrides: Optional[Dict[str, Sequence[str]]] = None
) -> List[Tuple[str, Tuple[str, ...]]]:
    """
    Merge keyword overrides into the header keyword table.

    Slot order is kept; an overridden slot has its keywords replaced.

    Raises:
        ConfigError: If an override names an unknown slot
    """
    if not overrides:
        return HEADER_KEYWORDS

    unknown = sorted(set(overrides) - set(FIELD_SLOTS))
    if unknown:
        raise ConfigError(
            f"Unknown header mapping slot(s): {', '.join(unknown)}. "
            f"Valid slots: {', '.join(FIELD_SLOTS)}"
        )

    return [
        (slot, tuple(keyword.lower() for keyword in overrides.get(slot, keywords)))
        for slot, keywords in HEADER_KEYWORDS
    ]


class LayoutDetector:
    """
    Detect the layout of an audit export from its first line.

    Usage:
        detector = LayoutDetector()
        layout = detector.detect("Date,Action,User,Document,Folder,Details")
        layout.delimiter     # Delimiter.COMMA
        layout.column_map    # {'timestamp': [0], 'action': [1], ...}
    """

    def __init__(
        self,
        normalizer: Optional[TimestampNormalizer] = None,
        keywords: Optional[Sequence[Tuple[str, Sequence[str]]]] = None,
        *,
        logger: Optional[logging.Logger] = None
    ):
        self.logger = logger or logging.getLogger(__name__)
        self.normalizer = normalizer or TimestampNormalizer(logger=self.logger)
        self.keywords = keywords

    def detect(self, header_row: str) -> FileLayout:
        delimiter = detect_delimiter(header_row)
        headers = tokenize_row(header_row, delimiter)
        single_column = len(headers) <= 1 or all(not value for value in headers[1:])

        # A first line that leads with a timestamp is data, not a header
        if self.normalizer.match_prefix(self._unquote(header_row.strip())) is not None:
            self.logger.debug("Layout: first line starts with a timestamp, treating input as headerless")
            return FileLayout(delimiter, single_column, header_is_data=True, headers=headers)

        if single_column:
            self.logger.debug("Layout: single-column header, using heuristic extraction")
            return FileLayout(delimiter, True, headers=headers)

        column_map = map_headers(headers, self.keywords)
        if not column_map:
            self.logger.debug("Layout: no header column recognized, using heuristic extraction")
            return FileLayout(delimiter, False, headers=headers)

        self.logger.debug(f"Layout: {delimiter.value}-delimited, column map {column_map}")
        return FileLayout(delimiter, False, column_map=column_map, headers=headers)

    @staticmethod
    def _unquote(row: str) -> str:
        if len(row) >= 2 and row[0] == '"' and row[-1] == '"':
            return row[1:-1]
        return row


def detect_layout(header_row: str) -> FileLayout:
    """Detect a file layout with default settings."""
    return LayoutDetector().detect(header_row)
