#!python3
"""
AuditLens - Audit trail parser and investigation summary for document-management exports.

This package normalizes loosely structured audit trail exports (CSV, TSV,
space-aligned or free text) into uniform records and summarizes them:

Modules:
- tokenizer: Row splitting and header layout detection
- timestamps: Timestamp normalization with a plausibility window
- extractor: Positional and heuristic field extraction
- classifier: Category assignment and key event flagging
- aggregator: Summary statistics, ordering and grouping
- parser: AuditTrailParser facade wiring all stages
- export: CSV and JSON export
- remote: Optional remote text-completion parsing
- config / config_loader: Configuration dataclasses and YAML support
"""

import logging

from .config import (
    TimestampConfig,
    ExtractorConfig,
    SummaryConfig,
    RemoteConfig,
    ParserConfig,
)
from .exceptions import (
    AuditLensError,
    InvalidContentError,
    ConfigError,
    RemoteParseError,
)
from .models import (
    AuditRecord,
    AuditSummary,
    Category,
    CATEGORY_LABELS,
    EPOCH_SENTINEL,
    ParseEvent,
    TimeRange,
    category_label,
)
from .timestamps import TimestampNormalizer, parse_timestamp
from .tokenizer import (
    Delimiter,
    FileLayout,
    HEADER_KEYWORDS,
    LayoutDetector,
    detect_layout,
    split_lines,
    tokenize_row,
)
from .extractor import FieldExtractor, FIELD_PROBES
from .classifier import CATEGORY_RULES, classify, is_key_event, identify_key_events
from .aggregator import summarize, sort_records, group_by_category
from .parser import AuditTrailParser, parse
from .export import export_csv, export_json
from .remote import RemoteAuditParser, RemoteParseResult
from .utils import (
    init_logger,
    decode_content,
    read_audit_file,
    load_header_mappings,
)
from .console import (
    console,
    get_rich_logger,
    # Quiet mode
    set_quiet_mode,
    is_quiet,
    # Banner
    print_banner,
    # Section separators & panels
    print_section,
    print_error_panel,
    print_no_records,
    print_summary_dashboard,
    # Category badges and tables
    make_category_badge,
    build_category_table,
    build_ranking_table,
    build_key_event_table,
    build_summary_panel,
    # CLI helper functions
    print_step,
    print_substep,
    print_success,
    print_warning,
    print_error,
    print_file,
    print_count,
)
from .config_loader import (
    ConfigLoader,
    AuditLensConfig,
    InputConfig,
    OutputConfig,
    ProcessingConfig,
    create_default_config_file,
)

# Configure NullHandler for library-safe logging
# This prevents "No handler found" warnings when the package is used as a library
# without explicit logging configuration by the consuming application
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    # Configuration dataclasses
    'TimestampConfig',
    'ExtractorConfig',
    'SummaryConfig',
    'RemoteConfig',
    'ParserConfig',
    # Exceptions
    'AuditLensError',
    'InvalidContentError',
    'ConfigError',
    'RemoteParseError',
    # Data model
    'AuditRecord',
    'AuditSummary',
    'Category',
    'CATEGORY_LABELS',
    'EPOCH_SENTINEL',
    'ParseEvent',
    'TimeRange',
    'category_label',
    # Parsing stages
    'TimestampNormalizer',
    'parse_timestamp',
    'Delimiter',
    'FileLayout',
    'HEADER_KEYWORDS',
    'LayoutDetector',
    'detect_layout',
    'split_lines',
    'tokenize_row',
    'FieldExtractor',
    'FIELD_PROBES',
    'CATEGORY_RULES',
    'classify',
    'is_key_event',
    'identify_key_events',
    'summarize',
    'sort_records',
    'group_by_category',
    # Entry points
    'AuditTrailParser',
    'parse',
    'export_csv',
    'export_json',
    'RemoteAuditParser',
    'RemoteParseResult',
    # Utility functions
    'init_logger',
    'decode_content',
    'read_audit_file',
    'load_header_mappings',
    # YAML configuration
    'ConfigLoader',
    'AuditLensConfig',
    'InputConfig',
    'OutputConfig',
    'ProcessingConfig',
    'create_default_config_file',
    # Rich console output
    'console',
    'get_rich_logger',
    'set_quiet_mode',
    'is_quiet',
    'print_banner',
    'print_section',
    'print_error_panel',
    'print_no_records',
    'print_summary_dashboard',
    'make_category_badge',
    'build_category_table',
    'build_ranking_table',
    'build_key_event_table',
    'build_summary_panel',
    'print_step',
    'print_substep',
    'print_success',
    'print_warning',
    'print_error',
    'print_file',
    'print_count',
]

__version__ = "1.0.0"
