"""
Tests for RemoteAuditParser - the remote text-completion parsing path.

The HTTP session is always mocked; no request leaves the test process.
"""

from datetime import datetime
from unittest.mock import MagicMock

import orjson
import pytest
import requests

from auditlens.config import API_KEY_ENV_VAR, RemoteConfig, SummaryConfig
from auditlens.exceptions import RemoteParseError
from auditlens.models import Category
from auditlens.remote import RemoteAuditParser, build_prompt, extract_json_payload


REMOTE_ENTRIES = {
    "entries": [
        {
            "timestamp": "2025-01-15T10:30:00.000Z",
            "user": "john.doe",
            "action": "File Deleted",
            "resource": "report.pdf",
            "folder": "/proj/docs",
            "details": "Permanently removed",
            "category": "file_deleted",
        },
        {
            "timestamp": "2025-01-16T08:00:00.000Z",
            "user": None,
            "action": "Checked Out",
            "resource": "plan.dwg",
            "folder": None,
            "details": None,
            "category": "made_up_category",
        },
        {
            "timestamp": "1999-01-01T00:00:00.000Z",
            "user": "bob",
            "action": "",
            "details": "File not found",
        },
        "not an entry",
    ],
    "statistics": {"totalEntries": 99},
}


def make_session(completion_text=None, envelope=None, status_error=None):
    """Build a mocked requests session returning a completion envelope."""
    if envelope is None:
        envelope = {"candidates": [{"content": {"parts": [{"text": completion_text}]}}]}
    response = MagicMock()
    response.content = orjson.dumps(envelope) if not isinstance(envelope, bytes) else envelope
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    session = MagicMock()
    session.post.return_value = response
    return session


@pytest.fixture
def remote_config():
    return RemoteConfig(api_key="test-key")


# =============================================================================
# Helpers
# =============================================================================

class TestHelpers:
    """Tests for prompt building and payload extraction."""

    def test_prompt_embeds_content(self):
        prompt = build_prompt("Date,Action\n2025-01-15 10:30:00,Login")
        assert "2025-01-15 10:30:00,Login" in prompt
        assert "{content}" not in prompt

    def test_prompt_keeps_braces_in_content(self):
        assert "{not a placeholder}" in build_prompt("{not a placeholder}")

    def test_plain_json(self):
        assert extract_json_payload('{"entries": []}') == {"entries": []}

    def test_markdown_fences_stripped(self):
        text = 'Here you go:\n```json\n{"entries": [], "statistics": {}}\n```\nDone.'
        assert extract_json_payload(text) == {"entries": [], "statistics": {}}

    @pytest.mark.parametrize("text", ["", None, "no json here", "{broken json"])
    def test_no_object(self, text):
        with pytest.raises(RemoteParseError):
            extract_json_payload(text)

    def test_invalid_json_keeps_cause(self):
        with pytest.raises(RemoteParseError) as excinfo:
            extract_json_payload("{'single': 'quotes'}")
        assert excinfo.value.cause is not None
        assert isinstance(excinfo.value.__cause__, orjson.JSONDecodeError)


# =============================================================================
# Parsing
# =============================================================================

class TestRemoteParse:
    """Tests for RemoteAuditParser.parse."""

    def test_records_rebuilt(self, remote_config, test_logger):
        session = make_session(orjson.dumps(REMOTE_ENTRIES).decode())
        parser = RemoteAuditParser(remote_config, logger=test_logger, session=session)

        result = parser.parse("Date,Action\n...")

        assert len(result.records) == 3
        newest, deleted, undated = result.records

        assert newest.timestamp == datetime(2025, 1, 16, 8, 0, 0)
        assert newest.actor == "Unknown"
        assert newest.container == ""
        assert newest.detail == ""
        # Unknown category re-derived locally
        assert newest.category is Category.FILE_OPERATION

        assert deleted.timestamp == datetime(2025, 1, 15, 10, 30, 0)
        assert deleted.category is Category.DELETION
        assert deleted.resource == "report.pdf"
        assert orjson.loads(deleted.raw)["user"] == "john.doe"

        # Out-of-window timestamp dropped, empty action defaulted
        assert undated.timestamp is None
        assert undated.action == "Unknown Action"
        assert undated.category is Category.MISSING_RESOURCE

    def test_summary_recomputed(self, remote_config, test_logger):
        session = make_session(orjson.dumps(REMOTE_ENTRIES).decode())
        parser = RemoteAuditParser(remote_config, logger=test_logger, session=session)

        result = parser.parse("content")

        assert result.summary.total_entries == 3
        assert result.reported_statistics == {"totalEntries": 99}
        assert result.summary.time_range.start == datetime(2025, 1, 15, 10, 30, 0)

    def test_summary_config(self, remote_config, test_logger):
        session = make_session(orjson.dumps(REMOTE_ENTRIES).decode())
        parser = RemoteAuditParser(remote_config, summary=SummaryConfig(top_n=1), logger=test_logger,
                                   session=session)
        assert len(parser.parse("content").summary.top_actors) == 1

    def test_missing_statistics(self, remote_config, test_logger):
        session = make_session('{"entries": []}')
        result = RemoteAuditParser(remote_config, logger=test_logger, session=session).parse("content")
        assert result.records == []
        assert result.reported_statistics == {}
        assert result.summary.time_range.is_sentinel is True

    def test_missing_entries(self, remote_config, test_logger):
        session = make_session('{"statistics": {}}')
        with pytest.raises(RemoteParseError):
            RemoteAuditParser(remote_config, logger=test_logger, session=session).parse("content")

    def test_request(self, remote_config, test_logger):
        session = make_session('{"entries": []}')
        parser = RemoteAuditParser(remote_config, logger=test_logger, session=session)
        parser.parse("Date,Action")

        args, kwargs = session.post.call_args
        assert args[0] == parser.url
        assert parser.url.endswith("/models/gemini-2.0-flash:generateContent")
        assert kwargs["params"] == {"key": "test-key"}
        assert kwargs["timeout"] == remote_config.timeout
        body = orjson.loads(kwargs["data"])
        assert "Date,Action" in body["contents"][0]["parts"][0]["text"]

    def test_content_truncated(self, test_logger):
        config = RemoteConfig(api_key="test-key", max_content_chars=10)
        session = make_session('{"entries": []}')
        RemoteAuditParser(config, logger=test_logger, session=session).parse("x" * 50)

        body = orjson.loads(session.post.call_args[1]["data"])
        prompt = body["contents"][0]["parts"][0]["text"]
        assert "x" * 10 in prompt
        assert "x" * 11 not in prompt


# =============================================================================
# Failures
# =============================================================================

class TestRemoteFailures:
    """Every failure surfaces as RemoteParseError, never as empty records."""

    def test_no_api_key(self, monkeypatch, test_logger):
        monkeypatch.delenv(API_KEY_ENV_VAR, raising=False)
        session = make_session('{"entries": []}')
        with pytest.raises(RemoteParseError):
            RemoteAuditParser(RemoteConfig(), logger=test_logger, session=session).parse("content")
        session.post.assert_not_called()

    def test_api_key_from_environment(self, monkeypatch):
        monkeypatch.setenv(API_KEY_ENV_VAR, "env-key")
        assert RemoteConfig().api_key == "env-key"

    def test_transport_error(self, remote_config, test_logger):
        session = MagicMock()
        session.post.side_effect = requests.ConnectionError("connection refused")
        with pytest.raises(RemoteParseError) as excinfo:
            RemoteAuditParser(remote_config, logger=test_logger, session=session).parse("content")
        assert isinstance(excinfo.value.cause, requests.ConnectionError)
        assert "connection refused" in str(excinfo.value)

    def test_http_error(self, remote_config, test_logger):
        session = make_session('{"entries": []}', status_error=requests.HTTPError("403 Forbidden"))
        with pytest.raises(RemoteParseError) as excinfo:
            RemoteAuditParser(remote_config, logger=test_logger, session=session).parse("content")
        assert isinstance(excinfo.value.cause, requests.HTTPError)

    def test_non_json_envelope(self, remote_config, test_logger):
        session = make_session(envelope=b"<html>Bad gateway</html>")
        with pytest.raises(RemoteParseError):
            RemoteAuditParser(remote_config, logger=test_logger, session=session).parse("content")

    @pytest.mark.parametrize("envelope", [
        {},
        {"candidates": []},
        {"candidates": [{"content": {}}]},
        {"error": {"message": "quota exceeded"}},
    ])
    def test_unexpected_envelope(self, remote_config, test_logger, envelope):
        session = make_session(envelope=envelope)
        with pytest.raises(RemoteParseError):
            RemoteAuditParser(remote_config, logger=test_logger, session=session).parse("content")

    def test_completion_without_json(self, remote_config, test_logger):
        session = make_session("Sorry, I cannot parse this file.")
        with pytest.raises(RemoteParseError):
            RemoteAuditParser(remote_config, logger=test_logger, session=session).parse("content")
