#!python3
"""
Utility functions for AuditLens.

This module contains:
- Logging initialization
- Encoding detection and audit file reading
- Header mappings loader (JSON/YAML support)
"""

import logging
from pathlib import Path
from typing import Dict, List, Optional

import chardet
import orjson
import yaml

from .console import get_rich_logger
from .tokenizer import FIELD_SLOTS


# Encodings tried in order when detection gives no usable answer
FALLBACK_ENCODINGS = ("utf-8", "cp1252", "latin-1")


def load_header_mappings(config_file: str, *, logger: Optional[logging.Logger] = None) -> Dict[str, List[str]]:
    """
    Load header keyword overrides from a JSON or YAML file.

    The file format is auto-detected based on file extension. The root must
    be a mapping of record field -> list of header keywords, for example:

        actor: ["user", "login name"]
        resource: ["document", "object name"]

    Args:
        config_file: Path to the header mappings file
        logger: Optional logger instance for debug messages

    Returns:
        Dictionary of field -> lower-cased keywords

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the format is unsupported or parsing fails
    """
    logger = logger or logging.getLogger(__name__)
    config_path = Path(config_file)

    if not config_path.exists():
        raise FileNotFoundError(f"Header mappings file not found: {config_file}")

    suffix = config_path.suffix.lower()

    if suffix == '.json':
        with open(config_path, 'rb') as f:
            try:
                mappings = orjson.loads(f.read())
            except orjson.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in header mappings file: {e}")
    elif suffix in ('.yaml', '.yml'):
        with open(config_path, 'r', encoding='utf-8') as f:
            try:
                mappings = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in header mappings file: {e}")
    else:
        raise ValueError(
            f"Unsupported header mappings file: {config_file}. "
            f"Supported formats: .json, .yaml, .yml"
        )

    if mappings is None:
        mappings = {}

    if not isinstance(mappings, dict):
        raise ValueError(
            f"Invalid header mappings file format: {config_file}. "
            f"Expected a dictionary/object at root level."
        )

    result = {}
    for slot, keywords in mappings.items():
        if slot not in FIELD_SLOTS:
            raise ValueError(f"Unknown field '{slot}' in header mappings. Valid fields: {', '.join(FIELD_SLOTS)}")
        if isinstance(keywords, str):
            keywords = [keywords]
        if not isinstance(keywords, list) or not all(isinstance(k, str) for k in keywords):
            raise ValueError(f"Keywords for '{slot}' must be a string or a list of strings")
        result[slot] = [keyword.lower() for keyword in keywords]
        logger.debug(f"Header mapping override for '{slot}': {result[slot]}")

    return result


def decode_content(data: bytes, *, logger: Optional[logging.Logger] = None) -> str:
    """
    Decode raw audit file bytes to text.

    A UTF-8 byte order mark is honoured first; otherwise the encoding is
    detected with chardet, then common encodings are tried in order.
    """
    logger = logger or logging.getLogger(__name__)

    if data.startswith(b'\xef\xbb\xbf'):
        return data[3:].decode('utf-8', errors='replace')

    detected = chardet.detect(data).get('encoding') if data else None
    candidates = ([detected] if detected else []) + list(FALLBACK_ENCODINGS)

    for encoding in candidates:
        try:
            text = data.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            continue
        logger.debug(f"Decoded audit content as {encoding}")
        return text

    return data.decode('utf-8', errors='replace')


def read_audit_file(path, *, logger: Optional[logging.Logger] = None) -> str:
    """Read an audit export from disk and decode it."""
    with open(path, 'rb') as f:
        data = f.read()
    return decode_content(data, logger=logger)


def init_logger(debug_mode, log_file=None, name='auditlens'):
    """Initialize logger with appropriate configuration.

    Args:
        debug_mode: Enable debug-level logging with verbose format
        log_file: Optional path to log file for persistent logging
        name: Logger name (default: 'auditlens')

    Returns:
        Configured logger instance
    """
    return get_rich_logger(name=name, debug=debug_mode, log_file=log_file)
