#!python3
"""
YAML configuration file loader for AuditLens.

This module provides:
- YAML configuration file parsing
- Configuration validation
- Merging of file config with CLI arguments
- Default value handling
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .config import (
    HEURISTIC_STRATEGIES,
    ExtractorConfig,
    ParserConfig,
    RemoteConfig,
    SummaryConfig,
    TimestampConfig,
)


@dataclass
class InputConfig:
    """Configuration for the audit export to read."""
    path: Optional[str] = None
    encoding: Optional[str] = None  # None = auto-detect
    header_mappings: Optional[str] = None  # JSON/YAML header keyword overrides


@dataclass
class OutputConfig:
    """Configuration for output files."""
    csv_file: Optional[str] = None
    json_file: Optional[str] = None
    log_file: Optional[str] = None


@dataclass
class ProcessingConfig:
    """Configuration for processing options."""
    remote: bool = False
    debug: bool = False
    quiet: bool = False


@dataclass
class AuditLensConfig:
    """Complete AuditLens configuration."""
    input: InputConfig = field(default_factory=InputConfig)
    timestamps: TimestampConfig = field(default_factory=TimestampConfig)
    extractor: ExtractorConfig = field(default_factory=ExtractorConfig)
    summary: SummaryConfig = field(default_factory=SummaryConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    processing: ProcessingConfig = field(default_factory=ProcessingConfig)
    remote: RemoteConfig = field(default_factory=RemoteConfig)

    def parser_config(self) -> ParserConfig:
        return ParserConfig(timestamps=self.timestamps, extractor=self.extractor)


class ConfigLoader:
    """
    Load and validate AuditLens configuration from YAML files.

    Supports:
    - Full YAML configuration files
    - Merging with CLI arguments (CLI takes precedence)
    - Default value handling
    - Configuration validation
    """

    def __init__(self, *, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def load_yaml(self, config_path: str) -> Dict[str, Any]:
        """
        Load YAML configuration file.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            Dictionary with configuration values

        Raises:
            FileNotFoundError: If config file doesn't exist
            yaml.YAMLError: If YAML is invalid
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_file, 'r', encoding='utf-8') as f:
            config_dict = yaml.safe_load(f)

        if config_dict is None:
            config_dict = {}

        self.logger.info(f"[cyan][+] Loaded configuration from: {config_path}[/]")
        return config_dict

    def parse_config(self, config_dict: Dict[str, Any]) -> AuditLensConfig:
        """
        Parse configuration dictionary into AuditLensConfig dataclass.

        Args:
            config_dict: Raw configuration dictionary

        Returns:
            AuditLensConfig instance
        """
        config = AuditLensConfig()

        # Parse input section
        if 'input' in config_dict:
            inp = config_dict['input'] or {}
            config.input = InputConfig(
                path=inp.get('path'),
                encoding=inp.get('encoding'),
                header_mappings=inp.get('header_mappings')
            )

        # Parse parsing section (timestamp window and extraction defaults)
        if 'parsing' in config_dict:
            par = config_dict['parsing'] or {}
            config.timestamps = TimestampConfig(
                year_min=par.get('year_min', 2020),
                year_max=par.get('year_max', 2030)
            )
            config.extractor = ExtractorConfig(
                unknown_actor=par.get('unknown_actor', "Unknown"),
                unknown_action=par.get('unknown_action', "Unknown Action"),
                detail_separator=par.get('detail_separator', " | "),
                heuristic_strategy=par.get('heuristic_strategy', "probe"),
                header_keywords=par.get('header_keywords')
            )

        # Parse summary section
        if 'summary' in config_dict:
            summ = config_dict['summary'] or {}
            config.summary = SummaryConfig(
                top_n=summ.get('top_n', 10),
                key_event_limit=summ.get('key_event_limit', 50)
            )

        # Parse output section
        if 'output' in config_dict:
            out = config_dict['output'] or {}
            config.output = OutputConfig(
                csv_file=out.get('csv_file'),
                json_file=out.get('json_file'),
                log_file=out.get('log_file')
            )

        # Parse processing section
        if 'processing' in config_dict:
            proc = config_dict['processing'] or {}
            config.processing = ProcessingConfig(
                remote=proc.get('remote', False),
                debug=proc.get('debug', False),
                quiet=proc.get('quiet', False)
            )

        # Parse remote section
        if 'remote' in config_dict:
            rem = config_dict['remote'] or {}
            config.remote = RemoteConfig(
                endpoint=rem.get('endpoint', RemoteConfig.endpoint),
                model=rem.get('model', RemoteConfig.model),
                api_key=rem.get('api_key'),
                timeout=rem.get('timeout', RemoteConfig.timeout),
                max_content_chars=rem.get('max_content_chars', RemoteConfig.max_content_chars)
            )

        return config

    def load(self, config_path: str) -> AuditLensConfig:
        """
        Load and parse YAML configuration file.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            AuditLensConfig instance
        """
        config_dict = self.load_yaml(config_path)
        return self.parse_config(config_dict)

    def validate_config(self, config: AuditLensConfig) -> List[str]:
        """
        Validate configuration and return list of issues.

        Args:
            config: Configuration to validate

        Returns:
            List of validation error messages (empty if valid)
        """
        issues = []

        # Validate input
        if config.input.path and not Path(config.input.path).is_file():
            issues.append(f"Input file does not exist: {config.input.path}")
        if config.input.header_mappings and not Path(config.input.header_mappings).is_file():
            issues.append(f"Header mappings file not found: {config.input.header_mappings}")

        # Validate parsing
        if config.timestamps.year_min > config.timestamps.year_max:
            issues.append(
                f"year_min ({config.timestamps.year_min}) must not exceed year_max ({config.timestamps.year_max})"
            )
        if config.extractor.heuristic_strategy not in HEURISTIC_STRATEGIES:
            issues.append(
                f"Invalid heuristic strategy: {config.extractor.heuristic_strategy}. "
                f"Must be one of: {list(HEURISTIC_STRATEGIES)}"
            )
        if not config.extractor.unknown_actor:
            issues.append("unknown_actor must not be empty")

        # Validate summary
        if config.summary.top_n < 1:
            issues.append("top_n must be at least 1")
        if config.summary.key_event_limit is not None and config.summary.key_event_limit < 0:
            issues.append("key_event_limit must not be negative")

        # Validate remote
        if config.processing.remote:
            if not config.remote.api_key:
                issues.append("Remote parsing is enabled but no API key is configured")
            if config.remote.timeout <= 0:
                issues.append("remote timeout must be positive")

        return issues

    def merge_with_args(self, config: AuditLensConfig, args) -> AuditLensConfig:
        """
        Merge YAML config with CLI arguments. CLI arguments take precedence.

        Args:
            config: Base configuration from YAML
            args: argparse namespace with CLI arguments

        Returns:
            Merged configuration
        """
        # Input overrides
        if hasattr(args, 'auditfile') and args.auditfile:
            config.input.path = args.auditfile
        if hasattr(args, 'encoding') and args.encoding:
            config.input.encoding = args.encoding
        if hasattr(args, 'header_mappings') and args.header_mappings:
            config.input.header_mappings = args.header_mappings

        # Parsing overrides
        if hasattr(args, 'strategy') and args.strategy:
            config.extractor.heuristic_strategy = args.strategy
        if hasattr(args, 'year_min') and args.year_min is not None:
            config.timestamps.year_min = args.year_min
        if hasattr(args, 'year_max') and args.year_max is not None:
            config.timestamps.year_max = args.year_max

        # Summary overrides
        if hasattr(args, 'top') and args.top is not None:
            config.summary.top_n = args.top
        if hasattr(args, 'key_events') and args.key_events is not None:
            # 0 on the command line removes the cap
            config.summary.key_event_limit = args.key_events or None

        # Output overrides
        if hasattr(args, 'csv') and args.csv:
            config.output.csv_file = args.csv
        if hasattr(args, 'json') and args.json:
            config.output.json_file = args.json
        if hasattr(args, 'logfile') and args.logfile:
            config.output.log_file = args.logfile

        # Processing overrides
        if hasattr(args, 'remote') and args.remote:
            config.processing.remote = True
        if hasattr(args, 'debug') and args.debug:
            config.processing.debug = True
        if hasattr(args, 'quiet') and args.quiet:
            config.processing.quiet = True

        # Remote overrides
        if hasattr(args, 'model') and args.model:
            config.remote.model = args.model

        return config


def create_default_config_file(output_path: str = "auditlens_config.yaml"):
    """
    Create a default configuration file with all options documented.

    Args:
        output_path: Path to write the configuration file
    """
    default_config = """# AuditLens Configuration File
# All options can be overridden by command-line arguments

# Input configuration
input:
  # Path to the audit trail export (CSV, TSV, space-aligned or free text)
  path: null  # Required: set this or pass the file on the command line

  # File encoding (null = auto-detect)
  encoding: null

  # JSON/YAML file overriding header keywords per record field
  header_mappings: null

# Parsing configuration
parsing:
  # Plausibility window for timestamps (inclusive calendar years)
  year_min: 2020
  year_max: 2030

  # Defaults for missing fields
  unknown_actor: Unknown
  unknown_action: Unknown Action

  # Separator used when several columns contribute to the details field
  detail_separator: " | "

  # Extraction strategy for single-column or headerless exports: probe, anchor
  heuristic_strategy: probe

  # Header keyword overrides (field -> list of keywords)
  header_keywords: null
  # Example:
  # header_keywords:
  #   actor: ["user", "login name"]

# Summary configuration
summary:
  # Length of the most active users / most affected documents rankings
  top_n: 10

  # Maximum number of key events (null = no limit)
  key_event_limit: 50

# Output configuration
output:
  # CSV export path (null = no CSV export)
  csv_file: null

  # JSON export path (null = no JSON export)
  json_file: null

  # Log file path (null = no log file)
  log_file: null

# Processing configuration
processing:
  # Parse through the remote text-completion service instead of locally
  remote: false

  # Enable debug logging
  debug: false

  # Only show the summary, warnings and errors
  quiet: false

# Remote parsing service
remote:
  endpoint: https://generativelanguage.googleapis.com/v1beta
  model: gemini-2.0-flash

  # API key (null = read from the AUDITLENS_API_KEY environment variable)
  api_key: null

  # HTTP timeout in seconds
  timeout: 120.0

  # Maximum number of characters sent in one request
  max_content_chars: 500000
"""

    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(default_config)

    print(f"Created default configuration file: {output_path}")
