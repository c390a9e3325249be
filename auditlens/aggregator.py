#!python3
"""
Aggregation over parsed audit records.

Provides summary statistics, the canonical newest-first ordering and
grouping by category. Every function is total over any record sequence,
including an empty one.
"""

from collections import Counter
from operator import itemgetter
from typing import Dict, List, Optional, Sequence, Tuple

from .classifier import identify_key_events
from .models import AuditRecord, AuditSummary, Category, TimeRange
from .timestamps import TimestampNormalizer


def _rank(counter: Counter, top_n: int) -> List[Tuple[str, int]]:
    # Counter keeps insertion order and sorted() is stable, so ties stay in
    # first-seen order
    return sorted(counter.items(), key=itemgetter(1), reverse=True)[:top_n]


def summarize(
    records: Sequence[AuditRecord],
    top_n: int = 10,
    key_event_limit: Optional[int] = 50,
    normalizer: Optional[TimestampNormalizer] = None
) -> AuditSummary:
    """
    Compute aggregate statistics over records.

    Args:
        records: Parsed records
        top_n: Length of the actor and resource rankings
        key_event_limit: Key event cap, None for no cap
        normalizer: Supplies the plausibility window for the time range

    Returns:
        AuditSummary; the time range is the sentinel when no record carries
        a timestamp inside the window
    """
    normalizer = normalizer or TimestampNormalizer()

    category_counts = {category: 0 for category in Category}
    actors: Counter = Counter()
    resources: Counter = Counter()
    start = end = None

    for record in records:
        category_counts[record.category] += 1
        actors[record.actor] += 1
        if record.resource:
            resources[record.resource] += 1

        timestamp = record.timestamp
        if normalizer.in_window(timestamp):
            if start is None or timestamp < start:
                start = timestamp
            if end is None or timestamp > end:
                end = timestamp

    time_range = TimeRange(start, end) if start is not None else TimeRange.sentinel()

    return AuditSummary(
        total_entries=len(records),
        category_counts=category_counts,
        top_actors=_rank(actors, top_n),
        top_resources=_rank(resources, top_n),
        time_range=time_range,
        key_events=identify_key_events(records, key_event_limit),
    )


def sort_records(records: Sequence[AuditRecord]) -> List[AuditRecord]:
    """Order records newest first; records without a timestamp go last."""
    timestamped = [record for record in records if record.timestamp is not None]
    undated = [record for record in records if record.timestamp is None]
    timestamped.sort(key=lambda record: record.timestamp, reverse=True)
    return timestamped + undated


def group_by_category(records: Sequence[AuditRecord]) -> Dict[Category, List[AuditRecord]]:
    """Bucket records by category, every category present."""
    groups: Dict[Category, List[AuditRecord]] = {category: [] for category in Category}
    for record in records:
        groups[record.category].append(record)
    return groups
