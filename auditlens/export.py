#!python3
"""
Export of parsed audit records.

- CSV: one row per record with a fixed header, readable back through the
  comma tokenizer
- JSON: ``entries`` / ``statistics`` document, the same shape the remote
  parser exchanges
"""

import csv
from io import StringIO
from typing import Callable, Optional, Sequence

import orjson

from .models import AuditRecord, AuditSummary, Category, category_label as default_category_label


CSV_FIELDNAMES = ["Timestamp", "Category", "Action", "User", "Document", "Folder", "Details"]

CSV_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def export_csv(
    records: Sequence[AuditRecord],
    category_label: Optional[Callable[[Category], str]] = None
) -> str:
    """
    Render records as CSV text.

    Fields containing a comma, quote or newline are quoted with embedded
    quotes doubled. Missing timestamps are written as N/A.

    Args:
        records: Records to export, in output order
        category_label: Category -> display text (human-readable labels if None)
    """
    label = category_label or default_category_label

    buffer = StringIO()
    writer = csv.DictWriter(buffer, fieldnames=CSV_FIELDNAMES, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writeheader()
    for record in records:
        writer.writerow({
            "Timestamp": record.timestamp.strftime(CSV_TIMESTAMP_FORMAT) if record.timestamp else "N/A",
            "Category": label(record.category),
            "Action": record.action,
            "User": record.actor,
            "Document": record.resource,
            "Folder": record.container,
            "Details": record.detail,
        })
    return buffer.getvalue()


def export_json(records: Sequence[AuditRecord], summary: AuditSummary) -> bytes:
    """Serialize records and their summary as an indented JSON document."""
    document = {
        "entries": [record.to_dict() for record in records],
        "statistics": summary.to_dict(),
    }
    return orjson.dumps(document, option=orjson.OPT_INDENT_2)
