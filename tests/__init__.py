"""
AuditLens Test Suite

This package contains tests for the AuditLens parsing engine and CLI.

Test Modules:
- test_tokenizer: Tests for row splitting and header layout detection
- test_timestamps: Tests for timestamp normalization
- test_extractor: Tests for positional and heuristic field extraction
- test_classifier: Tests for categories and key events
- test_aggregator: Tests for summary statistics and ordering
- test_parser: End-to-end parsing tests
- test_export: Tests for CSV and JSON export
- test_remote: Tests for the remote parsing path
- test_config_loader: Tests for YAML configuration
- test_console: Tests for Rich console output
- test_utility_functions: Tests for utility/helper functions
- test_cli: Tests for the command-line interface
"""
