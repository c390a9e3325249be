#!python3
"""
Field extraction for AuditLens.

Turns a tokenized or raw audit row into an AuditRecord. Two modes exist:

- Positional: the header was mapped to record fields, each slot is read by
  column index.
- Heuristic: no usable header (single-column or headerless input). A leading
  timestamp is consumed, then an ordered table of regex probes recovers the
  remaining fields from free text.

The heuristic mode has two strategies, selected through
ExtractorConfig.heuristic_strategy:

- ``probe``: the generic probe table (default)
- ``anchor``: a ProjectWise positional guesser keyed on a date-time anchor
  and a fixed action vocabulary, falling back to ``probe`` for rows without
  an anchor
"""

import logging
import re
from typing import Dict, List, Optional, Sequence, Tuple

from .config import ExtractorConfig, HEURISTIC_STRATEGIES
from .exceptions import ConfigError
from .models import AuditRecord
from .timestamps import TimestampNormalizer
from .tokenizer import split_quoted_csv


_TOKEN = r'([\w.\-]+)'
_PATH_TOKEN = r'([\w.\-/\\]+)'

# Ordered probe table: (field, compiled pattern). For each field the first
# pattern that matches wins, fields are probed independently.
FIELD_PROBES: List[Tuple[str, re.Pattern]] = [
    # Action
    ("action", re.compile(r'\b(delet(?:e|ed|es|ing)|remov(?:e|ed|es|ing)|purg(?:e|ed|es|ing))\b', re.IGNORECASE)),
    ("action", re.compile(r'\b(mov(?:e|ed|es|ing)|relocat(?:e|ed|es|ing)|transferr?(?:ed|s|ing)?)\b', re.IGNORECASE)),
    ("action", re.compile(r'\b(export(?:ed|s|ing)?|sent to folder)\b', re.IGNORECASE)),
    ("action", re.compile(r'\b(check(?:ed|s|ing)?[\s\-]?(?:out|in)|fre(?:e|ed|es|eing))\b', re.IGNORECASE)),
    ("action", re.compile(r'\b(replac(?:e|ed|es|ing)|overwr(?:ite|ote|itten|ites|iting)|updat(?:e|ed|es|ing))\b', re.IGNORECASE)),
    ("action", re.compile(r'\b(creat(?:e|ed|es|ing)|add(?:ed|s|ing)?)\b', re.IGNORECASE)),
    ("action", re.compile(r'\b(modif(?:y|ied|ies|ying)|chang(?:e|ed|es|ing)|edit(?:ed|s|ing)?)\b', re.IGNORECASE)),
    ("action", re.compile(r'\b(cop(?:y|ied|ies|ying)|duplicat(?:e|ed|es|ing))\b', re.IGNORECASE)),
    ("action", re.compile(r'\b(access(?:ed|es|ing)?|open(?:ed|s|ing)?|view(?:ed|s|ing)?)\b', re.IGNORECASE)),
    # Actor
    ("actor", re.compile(r'\bby\s+' + _TOKEN, re.IGNORECASE)),
    ("actor", re.compile(r'\buser:\s*' + _TOKEN, re.IGNORECASE)),
    ("actor", re.compile(_TOKEN + r'\s+performed\b', re.IGNORECASE)),
    ("actor", re.compile(_TOKEN + r'\s+(?:deleted|moved|created|modified)\b', re.IGNORECASE)),
    # Resource
    ("resource", re.compile(r'\bdocument:\s*' + _TOKEN, re.IGNORECASE)),
    ("resource", re.compile(r'\bfile:\s*' + _TOKEN, re.IGNORECASE)),
    ("resource", re.compile(r'"([^"]+\.[A-Za-z0-9]{2,5})"')),
    # Extension must be all lower or all upper case so "Calum.Kay" is not a file
    ("resource", re.compile(r'(?<![\w.\-])(?<!by )([\w\-]+(?:\.[\w\-]+)*\.(?:[a-z0-9]{2,5}|[A-Z0-9]{2,5}))(?![\w.\-])')),
    # Container
    ("container", re.compile(r'\bfolder:\s*' + _PATH_TOKEN, re.IGNORECASE)),
    ("container", re.compile(r'\bpath:\s*' + _PATH_TOKEN, re.IGNORECASE)),
    ("container", re.compile(r'\bin\s+(?!by\b)' + _PATH_TOKEN, re.IGNORECASE)),
    ("container", re.compile(r'\bfrom\s+' + _PATH_TOKEN, re.IGNORECASE)),
    ("container", re.compile(r'\bto\s+' + _PATH_TOKEN, re.IGNORECASE)),
    # Application
    ("application", re.compile(r'\bapplication:\s*' + _TOKEN, re.IGNORECASE)),
    ("application", re.compile(r'\bapp:\s*' + _TOKEN, re.IGNORECASE)),
    ("application", re.compile(r'\bvia\s+' + _TOKEN, re.IGNORECASE)),
]

# Action vocabulary of the anchor strategy, matched case-insensitively
ANCHOR_ACTIONS = (
    "Freed", "Deleted", "Moved", "Checked Out", "Checked In",
    "Created", "Modified", "Exported", "Copied",
)

# Date-time anchor of the anchor strategy, searched anywhere in the row
_RE_ANCHOR = re.compile(r'(\d{1,2}/\d{1,2}/\d{4}\s+\d{1,2}:\d{2}:\d{2}(?:\s*(?:AM|PM)\b)?)', re.IGNORECASE)

# Minimum comma-separated parts for the comma fallback to apply
MIN_FALLBACK_PARTS = 3


def probe_fields(text: str) -> Dict[str, str]:
    """
    Run the probe table over text.

    Returns:
        Dict of field -> first captured value, only for fields that matched
    """
    found: Dict[str, str] = {}
    for field_name, pattern in FIELD_PROBES:
        if field_name in found:
            continue
        match = pattern.search(text)
        if match:
            found[field_name] = match.group(1)
    return found


def _strip_wrapping_quotes(row: str) -> str:
    if len(row) >= 2 and row[0] == '"' and row[-1] == '"':
        return row[1:-1]
    return row


class FieldExtractor:
    """
    Build AuditRecord instances from audit rows.

    Records are emitted with the placeholder category; classification is
    applied by the caller in the same pass.
    """

    def __init__(
        self,
        config: Optional[ExtractorConfig] = None,
        normalizer: Optional[TimestampNormalizer] = None,
        *,
        logger: Optional[logging.Logger] = None
    ):
        self.config = config or ExtractorConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.normalizer = normalizer or TimestampNormalizer(logger=self.logger)

        if self.config.heuristic_strategy not in HEURISTIC_STRATEGIES:
            raise ConfigError(
                f"Unknown heuristic strategy '{self.config.heuristic_strategy}', "
                f"expected one of {', '.join(HEURISTIC_STRATEGIES)}"
            )

    # =========================================================================
    # Positional mode
    # =========================================================================

    def extract_positional(
        self,
        values: Sequence[str],
        column_map: Dict[str, List[int]],
        raw_row: str,
        ordinal: int
    ) -> Optional[AuditRecord]:
        """
        Build a record by reading mapped columns.

        Args:
            values: Tokenized row values
            column_map: Slot name -> column indices from the header
            raw_row: Original source line
            ordinal: Record id

        Returns:
            AuditRecord, or None when the row is empty after trimming
        """
        trimmed = [value.strip() for value in values]
        if not any(trimmed):
            return None

        def column_values(slot: str) -> List[str]:
            return [
                trimmed[index]
                for index in column_map.get(slot, [])
                if index < len(trimmed) and trimmed[index]
            ]

        def first(slot: str) -> str:
            found = column_values(slot)
            return found[0] if found else ""

        timestamp = None
        for candidate in column_values("timestamp"):
            timestamp = self.normalizer.parse(candidate)
            if timestamp is not None:
                break

        return AuditRecord(
            id=ordinal,
            timestamp=timestamp,
            actor=first("actor") or self.config.unknown_actor,
            action=first("action") or self.config.unknown_action,
            resource=first("resource"),
            container=first("container"),
            detail=self.config.detail_separator.join(column_values("detail")),
            application=first("application") or None,
            raw=raw_row,
        )

    # =========================================================================
    # Heuristic mode
    # =========================================================================

    def extract_fields(self, raw_row: str, ordinal: int) -> Optional[AuditRecord]:
        """
        Build a record from an unstructured row.

        Args:
            raw_row: Original source line
            ordinal: Record id

        Returns:
            AuditRecord, or None for blank rows
        """
        if not raw_row.strip():
            return None
        row = _strip_wrapping_quotes(raw_row.strip()).strip() or raw_row.strip()

        if self.config.heuristic_strategy == "anchor":
            record = self._extract_anchored(row, raw_row, ordinal)
            if record is not None:
                return record
            self.logger.debug(f"Row {ordinal}: no date-time anchor, using probe extraction")

        return self._extract_probed(row, raw_row, ordinal)

    def _extract_probed(self, row: str, raw_row: str, ordinal: int) -> AuditRecord:
        fields = {
            "timestamp": None,
            "actor": self.config.unknown_actor,
            "action": self.config.unknown_action,
            "resource": "",
            "container": "",
            "detail": row,
            "application": None,
        }

        remaining_text = row
        prefix = self.normalizer.match_prefix(row)
        if prefix is not None:
            fields["timestamp"], end = prefix
            remaining_text = row[end:].strip()
            fields["detail"] = remaining_text

        fields.update(probe_fields(remaining_text))

        if fields["action"] == self.config.unknown_action and fields["actor"] == self.config.unknown_actor:
            self._apply_comma_fallback(row, fields)

        return AuditRecord(id=ordinal, raw=raw_row, **fields)

    def _apply_comma_fallback(self, row: str, fields: dict) -> None:
        """Map comma-separated parts positionally when the probes found nothing."""
        parts = split_quoted_csv(row)
        if len(parts) < MIN_FALLBACK_PARTS:
            return
        timestamp = self.normalizer.parse(parts[0])
        if timestamp is None:
            return

        fields["timestamp"] = timestamp
        for field_name, value in zip(("action", "actor", "resource", "container"), parts[1:5]):
            if value:
                fields[field_name] = value
        if len(parts) > 5:
            fields["detail"] = ", ".join(parts[5:])

    def _extract_anchored(self, row: str, raw_row: str, ordinal: int) -> Optional[AuditRecord]:
        """
        ProjectWise layout guesser.

        Expected order: Object Type, Object Name, Action, Date/Time, User,
        Object Description, Path, User Description.
        """
        anchor = _RE_ANCHOR.search(row)
        if not anchor:
            return None

        before_parts = row[:anchor.start()].split()
        after_parts = row[anchor.end():].split()

        object_type = before_parts[0] if before_parts else ""
        action, action_index = self._find_anchor_action(before_parts)

        if action_index > 1:
            object_name = " ".join(before_parts[1:action_index])
        elif action_index == -1:
            object_name = " ".join(before_parts[1:])
            # Action follows the date-time when it is not before it
            if after_parts:
                action, after_parts = after_parts[0], after_parts[1:]
        else:
            object_name = ""

        user = after_parts[0] if after_parts else ""
        path_index = next(
            (index for index, part in enumerate(after_parts) if part.startswith("/")), -1
        )

        object_description = ""
        path = ""
        user_description = ""
        if path_index >= 1:
            object_description = " ".join(after_parts[1:path_index])
            path_parts = after_parts[path_index:]
            if len(path_parts) > 1:
                path = " ".join(path_parts[:-1])
                user_description = path_parts[-1]
            else:
                path = path_parts[0]
        else:
            object_description = " ".join(after_parts[1:])

        detail = self.config.detail_separator.join(
            part for part in (object_description, user_description) if part
        )

        return AuditRecord(
            id=ordinal,
            timestamp=self.normalizer.parse(anchor.group(1)),
            actor=user or self.config.unknown_actor,
            action=action or self.config.unknown_action,
            resource=object_name,
            container=path,
            detail=detail,
            application=object_type or None,
            raw=raw_row,
        )

    @staticmethod
    def _find_anchor_action(parts: List[str]) -> Tuple[str, int]:
        """Find the last vocabulary action in parts; two-word actions span two tokens."""
        vocabulary = {action.lower() for action in ANCHOR_ACTIONS}
        for index in range(len(parts) - 1, -1, -1):
            if index > 0:
                pair = f"{parts[index - 1]} {parts[index]}"
                if pair.lower() in vocabulary:
                    return pair, index - 1
            if parts[index].lower() in vocabulary:
                return parts[index], index
        return "", -1
