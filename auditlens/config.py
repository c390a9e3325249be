#!python3
"""
Configuration dataclasses for AuditLens.

This module provides typed configuration containers using dataclasses
for the parsing engine, the aggregator and the remote parsing collaborator.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional


# Environment variable consulted when no API key is configured explicitly
API_KEY_ENV_VAR = "AUDITLENS_API_KEY"

HEURISTIC_STRATEGIES = ("probe", "anchor")


@dataclass
class TimestampConfig:
    """
    Plausibility window for parsed timestamps.

    Used by TimestampNormalizer. Both bounds are inclusive calendar years.
    """
    year_min: int = 2020
    year_max: int = 2030


@dataclass
class ExtractorConfig:
    """
    Configuration for field extraction.

    Used by FieldExtractor and the header mapping in the tokenizer.
    """
    unknown_actor: str = "Unknown"
    unknown_action: str = "Unknown Action"
    detail_separator: str = " | "

    # Strategy used for single-column / unstructured rows: 'probe' or 'anchor'
    heuristic_strategy: str = "probe"

    # Optional override of the header keyword table (slot -> keywords)
    header_keywords: Optional[Dict[str, List[str]]] = None


@dataclass
class SummaryConfig:
    """
    Configuration for summary generation.

    Both caps exist for display purposes; None disables the key event cap.
    """
    top_n: int = 10
    key_event_limit: Optional[int] = 50


@dataclass
class RemoteConfig:
    """
    Configuration for the optional remote text-completion parser.
    """
    endpoint: str = "https://generativelanguage.googleapis.com/v1beta"
    model: str = "gemini-2.0-flash"
    api_key: Optional[str] = None
    timeout: float = 120.0

    # Maximum number of characters of audit content sent in one request
    max_content_chars: int = 500_000

    def __post_init__(self):
        """Pick up the API key from the environment if not specified."""
        if self.api_key is None:
            self.api_key = os.environ.get(API_KEY_ENV_VAR)


@dataclass
class ParserConfig:
    """
    Aggregate configuration for AuditTrailParser.
    """
    timestamps: TimestampConfig = field(default_factory=TimestampConfig)
    extractor: ExtractorConfig = field(default_factory=ExtractorConfig)
