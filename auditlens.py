#!python3
"""
AuditLens command-line interface.

Parse an audit trail export, print an investigation summary and optionally
export the normalized records as CSV and JSON.
"""

import argparse
import signal
import sys
import time
from pathlib import Path

import yaml

from auditlens import (
    AuditTrailParser,
    ConfigError,
    ConfigLoader,
    RemoteAuditParser,
    RemoteParseError,
    __version__,
    create_default_config_file,
    export_csv,
    export_json,
    init_logger,
    load_header_mappings,
    read_audit_file,
    summarize,
)
from auditlens.config import HEURISTIC_STRATEGIES
from auditlens.console import (
    console,
    print_banner,
    print_count,
    print_error,
    print_error_panel,
    print_file,
    print_no_records,
    print_section,
    print_step,
    print_substep,
    print_success,
    print_summary_dashboard,
    set_quiet_mode,
)


def signal_handler(sig, frame):
    console.print("[red][-] Execution interrupted ![/]")
    sys.exit(1)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="auditlens",
        description="Parse audit trail exports and summarize them for investigation",
    )
    parser.add_argument("auditfile", nargs="?", help="Audit trail export to parse (CSV, TSV, space-aligned or free text)")

    # Input options
    inputArgs = parser.add_argument_group("INPUT OPTIONS")
    inputArgs.add_argument("-c", "--config", help="YAML configuration file", type=str)
    inputArgs.add_argument("-E", "--encoding", help="Encoding of the audit file (auto-detected by default)", type=str)
    inputArgs.add_argument("-H", "--header-mappings", help="JSON/YAML file overriding header keywords per field", type=str)

    # Parsing options
    parsingArgs = parser.add_argument_group("PARSING OPTIONS")
    parsingArgs.add_argument("-s", "--strategy", help="Extraction strategy for single-column or headerless exports", choices=HEURISTIC_STRATEGIES)
    parsingArgs.add_argument("--year-min", help="Earliest plausible timestamp year", type=int)
    parsingArgs.add_argument("--year-max", help="Latest plausible timestamp year", type=int)
    parsingArgs.add_argument("--remote", help="Parse with the remote text-completion service (needs an API key)", action="store_true")
    parsingArgs.add_argument("--model", help="Model used for remote parsing", type=str)

    # Summary options
    summaryArgs = parser.add_argument_group("SUMMARY OPTIONS")
    summaryArgs.add_argument("-t", "--top", help="Length of the user and document rankings", type=int)
    summaryArgs.add_argument("-k", "--key-events", help="Maximum number of key events, 0 for no limit", type=int)

    # Output options
    outputArgs = parser.add_argument_group("OUTPUT OPTIONS")
    outputArgs.add_argument("-o", "--csv", help="Export records to this CSV file", type=str)
    outputArgs.add_argument("-j", "--json", help="Export records and statistics to this JSON file", type=str)
    outputArgs.add_argument("-l", "--logfile", help="Log file name", type=str)
    outputArgs.add_argument("-q", "--quiet", help="Only show the summary, warnings and errors", action="store_true")
    outputArgs.add_argument("--debug", help="Activate debug logging", action="store_true")

    # Miscellaneous
    miscArgs = parser.add_argument_group("MISC OPTIONS")
    miscArgs.add_argument("--generate-config", help="Write a documented default configuration file and exit", type=str, metavar="PATH")
    miscArgs.add_argument("-v", "--version", help="Show AuditLens version", action="store_true")

    return parser


def main():
    args = build_arg_parser().parse_args()

    signal.signal(signal.SIGINT, signal_handler)

    # Print version and quit
    if args.version:
        console.print(f"AuditLens - v{__version__}")
        sys.exit(0)

    if args.generate_config:
        create_default_config_file(args.generate_config)
        sys.exit(0)

    # Load and merge configuration
    loader = ConfigLoader()
    try:
        config = loader.load(args.config) if args.config else loader.parse_config({})
    except (FileNotFoundError, yaml.YAMLError) as e:
        print_error_panel("Configuration", str(e), "Check the path and YAML syntax of the configuration file")
        sys.exit(1)
    config = loader.merge_with_args(config, args)

    set_quiet_mode(config.processing.quiet)
    logger = init_logger(config.processing.debug, config.output.log_file)

    if config.input.header_mappings:
        try:
            config.extractor.header_keywords = load_header_mappings(config.input.header_mappings, logger=logger)
        except (FileNotFoundError, ValueError) as e:
            print_error_panel("Header Mappings", str(e))
            sys.exit(1)

    issues = loader.validate_config(config)
    if issues:
        for issue in issues:
            print_error(issue)
        sys.exit(1)

    if not config.input.path:
        print_error_panel("Missing Input", "No audit file provided", "Pass the audit export path as the first argument")
        sys.exit(1)

    print_banner(__version__)
    start_time = time.time()

    # Read input
    print_section("Input")
    audit_path = Path(config.input.path)
    print_file("Audit file", str(audit_path))
    if config.input.encoding:
        content = audit_path.read_text(encoding=config.input.encoding, errors="replace")
    else:
        content = read_audit_file(audit_path, logger=logger)

    # Parse
    print_section("Parsing")
    if config.processing.remote:
        print_step(f"Parsing remotely with model [cyan]{config.remote.model}[/]")
        remote_parser = RemoteAuditParser(
            config.remote,
            timestamps=config.timestamps,
            extractor=config.extractor,
            summary=config.summary,
            logger=logger,
        )
        try:
            result = remote_parser.parse(content)
        except RemoteParseError as e:
            print_error_panel("Remote Parsing", str(e), "Retry without --remote to parse locally")
            sys.exit(1)
        records, summary = result.records, result.summary
    else:
        strategy = config.extractor.heuristic_strategy
        print_step(f"Parsing locally ([cyan]{strategy}[/] strategy for unstructured rows)")
        try:
            parser = AuditTrailParser(config.parser_config(), logger=logger)
        except ConfigError as e:
            print_error_panel("Configuration", str(e))
            sys.exit(1)
        records = parser.parse(content)
        summary = summarize(
            records,
            top_n=config.summary.top_n,
            key_event_limit=config.summary.key_event_limit,
            normalizer=parser.normalizer,
        )
    print_count("Audit entries", len(records))

    # Exports
    if config.output.csv_file or config.output.json_file:
        print_section("Export")
    if config.output.csv_file:
        with open(config.output.csv_file, "w", encoding="utf-8", newline="") as f:
            f.write(export_csv(records))
        print_substep(f"CSV written to [cyan]{config.output.csv_file}[/]")
    if config.output.json_file:
        with open(config.output.json_file, "wb") as f:
            f.write(export_json(records, summary))
        print_substep(f"JSON written to [cyan]{config.output.json_file}[/]")

    if records:
        print_summary_dashboard(summary)
    else:
        print_no_records()

    print_success(f"Finished in {int(time.time() - start_time)} seconds")


if __name__ == "__main__":
    main()
