#!python3
"""
Audit trail parsing facade for AuditLens.

AuditTrailParser wires the pipeline stages in a single pass:

    raw text -> tokenizer -> field extractor -> classifier -> sort

It never raises for malformed text: unusable rows still produce a record
with default fields, and layout problems fall back to heuristic extraction.
Parsing is silent by default; progress is reported through the standard
logger and an optional event hook receiving ParseEvent objects.
"""

import logging
from dataclasses import replace
from typing import Callable, List, Optional, Union

from .aggregator import sort_records
from .classifier import classify
from .config import ParserConfig
from .exceptions import InvalidContentError
from .extractor import FieldExtractor
from .models import AuditRecord, ParseEvent
from .timestamps import TimestampNormalizer
from .tokenizer import FileLayout, LayoutDetector, build_keyword_table, split_lines, tokenize_row
from .utils import decode_content


EventHook = Callable[[ParseEvent], None]


class AuditTrailParser:
    """
    Parse audit trail exports into classified, sorted records.

    Usage:
        parser = AuditTrailParser()
        records = parser.parse(content)

        # With an observability hook
        parser = AuditTrailParser(event_hook=lambda event: print(event.stage))
    """

    def __init__(
        self,
        config: Optional[ParserConfig] = None,
        *,
        logger: Optional[logging.Logger] = None,
        event_hook: Optional[EventHook] = None
    ):
        self.config = config or ParserConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.event_hook = event_hook

        self.normalizer = TimestampNormalizer(self.config.timestamps, logger=self.logger)
        self.detector = LayoutDetector(
            self.normalizer,
            build_keyword_table(self.config.extractor.header_keywords),
            logger=self.logger,
        )
        self.extractor = FieldExtractor(self.config.extractor, self.normalizer, logger=self.logger)

    def _emit(self, stage: str, message: str, **data) -> None:
        if self.event_hook is not None:
            self.event_hook(ParseEvent(stage=stage, message=message, data=data))

    def parse(self, content: Union[str, bytes]) -> List[AuditRecord]:
        """
        Parse an audit export.

        Args:
            content: Complete export text, or raw bytes to decode

        Returns:
            Records sorted newest first, undated records last

        Raises:
            InvalidContentError: If content is neither str nor bytes
        """
        if isinstance(content, (bytes, bytearray)):
            content = decode_content(bytes(content), logger=self.logger)
        elif not isinstance(content, str):
            raise InvalidContentError(
                f"Audit content must be str or bytes, got {type(content).__name__}"
            )

        lines = split_lines(content)
        if not lines:
            self.logger.debug("No non-blank lines in audit content")
            self._emit("complete", "No audit rows found", records=0, fallbacks=0)
            return []

        layout = self.detector.detect(lines[0])
        self._emit(
            "layout",
            "Detected file layout",
            delimiter=layout.delimiter.value,
            single_column=layout.single_column,
            header_is_data=layout.header_is_data,
            column_map=layout.column_map,
        )

        data_rows = lines if layout.header_is_data else lines[1:]
        records = []
        fallbacks = 0

        for ordinal, row in enumerate(data_rows):
            record = None
            if layout.positional:
                record = self._extract_positional(row, layout, ordinal)
                if record is None:
                    fallbacks += 1
                    self.logger.debug(f"Row {ordinal}: does not fit the header layout, using heuristic extraction")
                    self._emit("row_fallback", "Row parsed heuristically", ordinal=ordinal)
            if record is None:
                record = self.extractor.extract_fields(row, ordinal)
            records.append(replace(record, category=classify(record.action, record.detail)))

        self.logger.debug(f"Parsed {len(records)} audit records ({fallbacks} heuristic fallbacks)")
        self._emit("complete", "Parsing complete", records=len(records), fallbacks=fallbacks)

        return sort_records(records)

    def _extract_positional(self, row: str, layout: FileLayout, ordinal: int) -> Optional[AuditRecord]:
        values = tokenize_row(row, layout.delimiter)
        # A free-text row inside a delimited file
        if len(values) == 1 and len(layout.headers) > 1:
            return None
        return self.extractor.extract_positional(values, layout.column_map, row, ordinal)


def parse(content: Union[str, bytes], config: Optional[ParserConfig] = None) -> List[AuditRecord]:
    """Parse an audit export with a one-off AuditTrailParser."""
    return AuditTrailParser(config).parse(content)
