#!python3
"""
Remote audit trail parsing for AuditLens.

Sends the audit export to a Gemini-style text-completion endpoint and turns
the returned JSON into records. The response is never trusted as-is:

- wrapper text around the JSON object (markdown fences, prose) is stripped
- the ``entries`` / ``statistics`` shape is validated
- entries are repaired with the same defaults as local parsing
- timestamps go through the local plausibility window
- unknown categories are re-derived locally
- the summary is recomputed locally, the reported statistics are kept aside

Any transport, HTTP, envelope or JSON failure raises RemoteParseError.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import orjson
import requests

from .aggregator import sort_records, summarize
from .classifier import classify
from .config import API_KEY_ENV_VAR, ExtractorConfig, RemoteConfig, SummaryConfig, TimestampConfig
from .exceptions import RemoteParseError
from .models import AuditRecord, AuditSummary, Category
from .timestamps import TimestampNormalizer


# Outermost JSON object in a completion, wrapper text excluded
_RE_JSON_OBJECT = re.compile(r'\{[\s\S]*\}')

_CATEGORY_VALUES = {category.value for category in Category}

PROMPT_TEMPLATE = """You are an audit trail parser for document-management systems. Analyze this audit trail export and extract structured data.

INSTRUCTIONS:
1. Parse ALL entries from the file.
2. Extract these fields for each entry (use null if not present):
   - timestamp: ISO 8601 date-time string (YYYY-MM-DDTHH:mm:ss.sssZ) or null
   - user: username or user ID who performed the action
   - action: the action type (e.g. "File Deleted", "Checked Out", "User Login")
   - resource: the resource affected (document or file name)
   - folder: the folder or path containing the resource
   - details: additional details about the action
3. Assign each entry one category:
   - file_missing: files that are missing or cannot be found
   - file_deleted: files that were explicitly deleted
   - file_operations: general file operations (create, modify, move, copy, check in/out, export)
   - security_events: authentication, authorization and access control events
   - system_events: system-level operations
   - other: anything else
4. Compute statistics: total entry count, count per category, most active
   users, most affected resources, time range.
5. Return ONLY valid JSON in this exact format:
{
  "entries": [
    {
      "timestamp": "2025-01-15T10:30:00.000Z",
      "user": "john.doe",
      "action": "File Deleted",
      "resource": "document.pdf",
      "folder": "/project/docs",
      "details": "Permanently deleted from system",
      "category": "file_deleted"
    }
  ],
  "statistics": {
    "totalEntries": 1,
    "fileMissingCount": 0,
    "fileDeletedCount": 1,
    "fileOperationsCount": 0,
    "securityEventsCount": 0,
    "systemEventsCount": 0,
    "mostActiveUsers": [{"user": "john.doe", "count": 1}],
    "mostAffectedResources": [{"resource": "document.pdf", "count": 1}],
    "timeRange": {"start": "2025-01-15T10:30:00.000Z", "end": "2025-01-15T10:30:00.000Z"}
  }
}

AUDIT TRAIL CONTENT:
{content}

Return ONLY the JSON object, no markdown, no explanations."""


@dataclass
class RemoteParseResult:
    """Records rebuilt from a remote response."""

    records: List[AuditRecord]
    summary: AuditSummary
    # Statistics as reported by the service, for comparison only
    reported_statistics: Dict[str, Any] = field(default_factory=dict)


def build_prompt(content: str) -> str:
    return PROMPT_TEMPLATE.replace("{content}", content)


def extract_json_payload(text: str) -> Dict[str, Any]:
    """
    Decode the JSON object embedded in a completion text.

    Raises:
        RemoteParseError: If no JSON object is found or it does not decode
    """
    match = _RE_JSON_OBJECT.search(text or "")
    if not match:
        raise RemoteParseError("No JSON object found in remote response")
    try:
        payload = orjson.loads(match.group(0))
    except orjson.JSONDecodeError as e:
        raise RemoteParseError("Remote response contains invalid JSON", e) from e
    if not isinstance(payload, dict):
        raise RemoteParseError("Remote response JSON is not an object")
    return payload


def _text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


class RemoteAuditParser:
    """
    Parse audit exports through a remote text-completion service.

    Usage:
        parser = RemoteAuditParser(RemoteConfig(api_key="..."))
        result = parser.parse(content)
        result.records, result.summary
    """

    def __init__(
        self,
        config: Optional[RemoteConfig] = None,
        *,
        timestamps: Optional[TimestampConfig] = None,
        extractor: Optional[ExtractorConfig] = None,
        summary: Optional[SummaryConfig] = None,
        logger: Optional[logging.Logger] = None,
        session: Optional[requests.Session] = None
    ):
        self.config = config or RemoteConfig()
        self.extractor_config = extractor or ExtractorConfig()
        self.summary_config = summary or SummaryConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.session = session or requests.Session()
        self.normalizer = TimestampNormalizer(timestamps, logger=self.logger)

    @property
    def url(self) -> str:
        return f"{self.config.endpoint.rstrip('/')}/models/{self.config.model}:generateContent"

    def parse(self, content: str) -> RemoteParseResult:
        """
        Parse content remotely and rebuild validated records.

        Raises:
            RemoteParseError: On any transport, HTTP or response format failure
        """
        completion = self._request_completion(content)
        payload = extract_json_payload(completion)

        entries = payload.get("entries")
        if not isinstance(entries, list):
            raise RemoteParseError("Remote response has no 'entries' list")

        statistics = payload.get("statistics")
        if not isinstance(statistics, dict):
            self.logger.debug("Remote response has no 'statistics' object")
            statistics = {}

        records = self._build_records(entries)
        self.logger.debug(f"Remote parser returned {len(entries)} entries, {len(records)} kept")

        summary = summarize(
            records,
            top_n=self.summary_config.top_n,
            key_event_limit=self.summary_config.key_event_limit,
            normalizer=self.normalizer,
        )
        return RemoteParseResult(records=records, summary=summary, reported_statistics=statistics)

    def _request_completion(self, content: str) -> str:
        if not self.config.api_key:
            raise RemoteParseError(
                f"No API key configured for remote parsing (set {API_KEY_ENV_VAR} or remote.api_key)"
            )

        if len(content) > self.config.max_content_chars:
            self.logger.warning(
                f"Audit content truncated to {self.config.max_content_chars} characters for remote parsing"
            )
            content = content[:self.config.max_content_chars]

        body = {
            "contents": [{"parts": [{"text": build_prompt(content)}]}],
            "generationConfig": {"temperature": 0},
        }

        self.logger.debug(f"Sending {len(content)} characters to {self.url}")
        try:
            resp = self.session.post(
                self.url,
                params={"key": self.config.api_key},
                data=orjson.dumps(body),
                headers={"Content-Type": "application/json"},
                timeout=self.config.timeout,
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            raise RemoteParseError("Remote parsing request failed", e) from e

        try:
            envelope = orjson.loads(resp.content)
            parts = envelope["candidates"][0]["content"]["parts"]
            return "".join(part.get("text", "") for part in parts)
        except orjson.JSONDecodeError as e:
            raise RemoteParseError("Remote service returned a non-JSON envelope", e) from e
        except (KeyError, IndexError, TypeError, AttributeError) as e:
            raise RemoteParseError("Remote service returned an unexpected envelope", e) from e

    def _build_records(self, entries: List[Any]) -> List[AuditRecord]:
        cfg = self.extractor_config
        records = []

        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                self.logger.debug(f"Skipping remote entry {index}: not an object")
                continue

            action = _text(entry.get("action")) or cfg.unknown_action
            detail = _text(entry.get("details"))

            category_value = _text(entry.get("category"))
            if category_value in _CATEGORY_VALUES:
                category = Category(category_value)
            else:
                category = classify(action, detail)

            records.append(AuditRecord(
                id=len(records),
                timestamp=self.normalizer.parse(entry.get("timestamp")),
                actor=_text(entry.get("user")) or cfg.unknown_actor,
                action=action,
                resource=_text(entry.get("resource")),
                container=_text(entry.get("folder")),
                detail=detail,
                application=_text(entry.get("application")) or None,
                category=category,
                raw=orjson.dumps(entry).decode("utf-8"),
            ))

        return sort_records(records)
