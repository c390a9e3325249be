#!python3
"""
Event classification for AuditLens.

Categories are assigned from an ordered rule table so that new buckets can be
added as data. Key events are an orthogonal flag marking records worth a
manual review, independently of their category.
"""

from typing import Iterable, List, Optional, Sequence, Tuple

from .models import AuditRecord, Category


# Ordered rule table: the first rule with a keyword contained in the
# lower-cased text assigns the category.
CATEGORY_RULES: List[Tuple[Tuple[str, ...], Category]] = [
    (("missing", "not found", "cannot find"), Category.MISSING_RESOURCE),
    (("delete", "purge", "remove"), Category.DELETION),
    (("create", "modif", "update", "move", "copy", "copie", "check", "free", "lock", "export"), Category.FILE_OPERATION),
    (("login", "logout", "auth", "permission", "access", "grant"), Category.SECURITY_EVENT),
    (("start", "stop", "restart", "shutdown", "init"), Category.SYSTEM_EVENT),
]

# Action terms flagging a record for review
KEY_ACTION_TERMS = (
    "deleted", "purge", "moved", "exported", "sent to folder",
    "replaced", "freed", "version",
)

# Detail terms flagging a record for review whatever its action
KEY_DETAIL_TERMS = ("error", "failed", "corrupt", "missing")


def _match_rules(text: str, rules: Sequence[Tuple[Tuple[str, ...], Category]]) -> Category:
    lowered = text.lower()
    for keywords, category in rules:
        if any(keyword in lowered for keyword in keywords):
            return category
    return Category.OTHER


def classify(action: str, detail: str = "", rules=None) -> Category:
    """
    Assign exactly one category to an event.

    The action decides first; the detail is consulted only when the action
    alone falls through to 'other'.
    """
    table = rules if rules is not None else CATEGORY_RULES
    category = _match_rules(action or "", table)
    if category is Category.OTHER and detail:
        category = _match_rules(detail, table)
    return category


def is_key_event(record: AuditRecord) -> bool:
    """Check whether a record deserves priority review."""
    action = record.action.lower()
    detail = record.detail.lower()

    if any(term in action for term in KEY_ACTION_TERMS):
        return True
    # Check-out without a matching check-in
    if "checked out" in action and "checked in" not in detail:
        return True
    return any(term in detail for term in KEY_DETAIL_TERMS)


def identify_key_events(records: Iterable[AuditRecord], limit: Optional[int] = 50) -> List[AuditRecord]:
    """
    Select key events in input order.

    Args:
        records: Records to scan
        limit: Maximum number of key events returned, None for no cap
    """
    key_events = []
    for record in records:
        if limit is not None and len(key_events) >= limit:
            break
        if is_key_event(record):
            key_events.append(record)
    return key_events
