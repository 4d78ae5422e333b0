from unittest.mock import MagicMock

import pytest
import requests

from sparetime.memory.client import MemoryClient, MemoryServiceError, extract_memory_texts
from sparetime.memory.config import MemoryConfig
from sparetime.memory.mirror import MemoryMirror
from sparetime.memory.records import EXCLUDED_QUERY, forget_category_records, restore_category_records

CONFIG = MemoryConfig(api_key="test-key", base_url="https://memory.test/", agent_id="agent-1")


def _client(json_body=None, error=None):
    session = MagicMock()
    response = MagicMock()
    response.json.return_value = json_body if json_body is not None else {}
    if error is not None:
        response.raise_for_status.side_effect = error
    session.post.return_value = response
    return MemoryClient(CONFIG, session=session), session


# ── Client ───────────────────────────────────────────────────────────────


def test_memorize_posts_conversation():
    client, session = _client({"status": "queued"})

    result = client.memorize([{"role": "user", "content": "hi"}], "u1")

    assert result == {"status": "queued"}
    args, kwargs = session.post.call_args
    assert args[0] == "https://memory.test/api/v3/memory/memorize"
    assert kwargs["json"]["user_id"] == "u1"
    assert kwargs["json"]["agent_id"] == "agent-1"
    assert kwargs["headers"]["Authorization"] == "Bearer test-key"
    assert kwargs["timeout"] == CONFIG.timeout


def test_retrieve_posts_query():
    client, session = _client({"items": []})

    client.retrieve("what was forgotten?", "u1")

    args, kwargs = session.post.call_args
    assert args[0].endswith("/api/v3/memory/retrieve")
    assert kwargs["json"]["query"] == "what was forgotten?"


def test_http_error_raises_service_error():
    client, _ = _client(error=requests.exceptions.HTTPError("500 Server Error"))

    with pytest.raises(MemoryServiceError):
        client.retrieve("q", "u1")


def test_connection_error_raises_service_error():
    client, session = _client()
    session.post.side_effect = requests.exceptions.ConnectionError("refused")

    with pytest.raises(MemoryServiceError):
        client.memorize([], "u1")


def test_bad_json_raises_service_error():
    client, session = _client()
    session.post.return_value.json.side_effect = ValueError("not json")

    with pytest.raises(MemoryServiceError):
        client.retrieve("q", "u1")


def test_config_active_needs_key():
    assert CONFIG.active is True
    assert MemoryConfig(api_key="").active is False
    assert MemoryConfig(api_key="k", enabled=False).active is False


# ── Response parsing ─────────────────────────────────────────────────────


def test_extract_memory_texts():
    result = {"items": [{"content": "likes tea"}, {"text": "hates queues"}, "plain", {"other": 1}, 42]}

    assert extract_memory_texts(result) == ["likes tea", "hates queues", "plain"]


def test_extract_memory_texts_malformed():
    assert extract_memory_texts(None) == []
    assert extract_memory_texts({"items": "nope"}) == []
    assert extract_memory_texts([]) == []


# ── Records and mirror ───────────────────────────────────────────────────


def test_forget_records_carry_marker():
    records = forget_category_records("cafe", "Cafés", ["Blue Bottle"])

    assert [r["role"] for r in records] == ["user", "assistant"]
    assert "Blue Bottle" in records[0]["content"]
    assert records[1]["content"].endswith("excluded_categories: cafe")


def test_restore_records_carry_marker():
    records = restore_category_records("cafe", "Cafés")

    assert records[1]["content"].endswith("restored_categories: cafe")


def test_mirror_recall_excluded():
    client = MagicMock()
    client.retrieve.return_value = {"items": [{"content": "excluded_categories: cafe"}]}
    mirror = MemoryMirror(client, "u1")

    assert mirror.recall_excluded() == ["excluded_categories: cafe"]
    client.retrieve.assert_called_once_with(EXCLUDED_QUERY, "u1")


def test_mirror_record_forget():
    client = MagicMock()
    mirror = MemoryMirror(client, "u1")

    mirror.record_forget("museum", "Museums", [])

    conversation, user_id = client.memorize.call_args.args
    assert user_id == "u1"
    assert "excluded_categories: museum" in conversation[1]["content"]
