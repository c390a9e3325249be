"""
Shared pytest fixtures for AuditLens test suite.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from auditlens import (
    AuditRecord,
    AuditTrailParser,
    Category,
    TimestampNormalizer,
    set_quiet_mode,
)


# =============================================================================
# Audit content fixtures
# =============================================================================

@pytest.fixture
def csv_audit_content():
    """Comma-separated export with a recognizable header."""
    return (
        "Date,Action,User,Document,Folder,Details\n"
        "2025-01-15 10:30:00,File Deleted,john.doe,report.pdf,/proj/docs,Permanently removed\n"
        "2025-01-15 11:00:00,Checked Out,jane.smith,plan.dwg,/proj/cad,\n"
        "2025-01-14 09:15:00,User Login,john.doe,,,\n"
        "2025-01-16 14:45:00,Modified,jane.smith,report.pdf,/proj/docs,\"Updated title, revision B\"\n"
    )


@pytest.fixture
def projectwise_tsv_content():
    """Tab-separated ProjectWise audit trail export."""
    header = "\t".join([
        "Object Type", "Object Name", "Action Name", "Date/Time", "User Name",
        "Object Description", "Additional Data", "Comments", "Path", "User Description",
    ])
    rows = [
        "\t".join([
            "Document", "Q64157-CI0001", "Freed", "6/3/2025 3:54:15 PM", "Calum.Kay@aecom.com",
            "Cwm Taf LiDAR", "", "", "/60650514-Cwm Taf WTW/900-Work/CAD", "Kay",
        ]),
        "\t".join([
            "Document", "Q64157-CI0002", "Deleted", "6/4/2025 9:01:00 AM", "Ann.Lee@aecom.com",
            "Drainage layout", "Version 3", "Removed duplicate", "/60650514-Cwm Taf WTW/900-Work/CAD", "Lee",
        ]),
    ]
    return "\n".join([header] + rows) + "\n"


@pytest.fixture
def freetext_audit_content():
    """Single-column export of free-text audit lines."""
    return (
        "Message\n"
        "6/3/2025 3:54:15 PM Freed by Calum.Kay in /60650514/CAD\n"
        "2025-02-01 08:00:00 Document deleted by ann.lee from /proj/archive\n"
        "System maintenance window announced\n"
    )


# =============================================================================
# Record and component fixtures
# =============================================================================

@pytest.fixture
def make_record():
    """Factory building AuditRecord instances with sensible defaults."""
    def _make(ordinal=0, timestamp=None, actor="Unknown", action="Unknown Action",
              resource="", container="", detail="", category=Category.OTHER, application=None):
        return AuditRecord(
            id=ordinal,
            timestamp=timestamp,
            actor=actor,
            action=action,
            resource=resource,
            container=container,
            detail=detail,
            application=application,
            category=category,
            raw=f"row {ordinal}",
        )
    return _make


@pytest.fixture
def sample_records(make_record):
    """A small mixed record sequence."""
    return [
        make_record(0, datetime(2025, 1, 15, 10, 30), "john.doe", "File Deleted", "report.pdf",
                    category=Category.DELETION),
        make_record(1, datetime(2025, 1, 16, 14, 45), "jane.smith", "Modified", "report.pdf",
                    category=Category.FILE_OPERATION),
        make_record(2, None, "bob", "Unknown", category=Category.OTHER),
        make_record(3, datetime(2025, 1, 14, 9, 15), "john.doe", "User Login",
                    category=Category.SECURITY_EVENT),
    ]


@pytest.fixture
def test_logger():
    """Logger with debug level for tests."""
    logger = logging.getLogger("test_auditlens")
    logger.setLevel(logging.DEBUG)
    return logger


@pytest.fixture
def normalizer():
    """TimestampNormalizer with the default window."""
    return TimestampNormalizer()


@pytest.fixture
def audit_parser(test_logger):
    """AuditTrailParser with default configuration."""
    return AuditTrailParser(logger=test_logger)


@pytest.fixture
def audit_file(tmp_path, csv_audit_content):
    """CSV audit export written to disk."""
    path = tmp_path / "audit_trail.csv"
    path.write_text(csv_audit_content, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def reset_quiet_mode():
    """Make sure quiet mode never leaks between tests."""
    set_quiet_mode(False)
    yield
    set_quiet_mode(False)
