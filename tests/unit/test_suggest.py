import keyring
import pytest
import requests

from fantrack import suggest as suggest_mod
from fantrack.core.errors import SuggestionError
from fantrack.core.models import Language, TrackerKind
from fantrack.suggest import build_instruction, parse_suggestions, resolve_credential, suggest


class FakeResponse:
    def __init__(self, payload, status=200):
        self._payload = payload
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self._payload


def _payload(text):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


@pytest.fixture
def no_stored_key(tmp_fantrack_dir):
    return tmp_fantrack_dir


def test_missing_key_returns_localized_placeholder(no_stored_key):
    assert suggest("trip to rome", TrackerKind.TRAVEL) == [
        suggest_mod.missing_key_message(Language.EN)
    ]
    ru = suggest("поездка", TrackerKind.TRAVEL, language=Language.RU)
    assert ru == [suggest_mod.missing_key_message(Language.RU)]


def test_blank_prompt_returns_empty(no_stored_key):
    assert suggest("   ", TrackerKind.TODO, credential="k") == []


def test_suggest_posts_and_parses(no_stored_key, monkeypatch):
    seen = {}

    def fake_post(url, json, headers, timeout):
        seen.update(url=url, body=json, headers=headers, timeout=timeout)
        return FakeResponse(_payload('["passport", "tickets"]'))

    monkeypatch.setattr(requests, "post", fake_post)

    result = suggest("trip", TrackerKind.TRAVEL, credential=" secret ", language=Language.EN)

    assert result == ["passport", "tickets"]
    assert seen["headers"] == {"x-goog-api-key": "secret"}
    assert seen["url"].endswith(":generateContent")
    assert seen["body"]["contents"][0]["parts"][0]["text"] == "trip"
    assert seen["timeout"] == 30.0


def test_http_failure_degrades_to_empty(no_stored_key, monkeypatch):
    monkeypatch.setattr(requests, "post", lambda *a, **kw: FakeResponse({}, status=500))
    assert suggest("trip", TrackerKind.TODO, credential="k") == []


def test_network_error_degrades_to_empty(no_stored_key, monkeypatch):
    def boom(*args, **kwargs):
        raise requests.ConnectionError("offline")

    monkeypatch.setattr(requests, "post", boom)
    assert suggest("trip", TrackerKind.TODO, credential="k") == []


def test_resolve_credential_order(tmp_fantrack_dir, monkeypatch):
    monkeypatch.setattr(keyring, "get_password", lambda service, name: "from-keyring")
    monkeypatch.setenv("GEMINI_API_KEY", "from-env")
    assert resolve_credential("explicit") == "explicit"
    assert resolve_credential(None) == "from-keyring"


def test_resolve_credential_env_fallback(no_stored_key, monkeypatch):
    monkeypatch.setenv("API_KEY", "from-env")
    assert resolve_credential("  ") == "from-env"


def test_parse_suggestions_skips_blanks():
    assert parse_suggestions(_payload('["a", "", 3, null]')) == ["a", "3"]


def test_parse_suggestions_empty_text():
    assert parse_suggestions(_payload("")) == []


@pytest.mark.parametrize(
    "payload",
    [{}, {"candidates": []}, {"candidates": [{"content": {}}]}, _payload("not json"), _payload('{"a": 1}')],
)
def test_parse_suggestions_rejects_bad_shape(payload):
    with pytest.raises(SuggestionError):
        parse_suggestions(payload)


def test_build_instruction_note_asks_for_paragraphs():
    text = build_instruction(TrackerKind.NOTE, Language.RU)
    assert "Russian" in text
    assert "paragraph" in text


def test_build_instruction_shopping():
    text = build_instruction(TrackerKind.SHOPPING, Language.EN)
    assert "English" in text
    assert "shopping" in text
