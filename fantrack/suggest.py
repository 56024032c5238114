"""One-shot AI suggestions: free-text prompt in, ordered list of strings out."""

import json
import logging
import os
from typing import Any

import keyring
import requests
from fncli import UsageError, cli
from keyring.errors import KeyringError

from . import config
from .core.errors import SuggestionError
from .core.models import Language, TrackerKind
from .lib.errors import echo

__all__ = [
    "build_instruction",
    "missing_key_message",
    "parse_suggestions",
    "resolve_credential",
    "suggest",
]

logger = logging.getLogger(__name__)

SERVICE = "fantrack"
KEY_NAME = "gemini_api_key"
_ENV_KEYS = ("GEMINI_API_KEY", "API_KEY")

_MISSING_KEY = {
    Language.RU: "API ключ не найден. Укажите его в настройках.",
    Language.EN: "API Key missing. Please set it in settings.",
}

_KIND_INSTRUCTIONS = {
    TrackerKind.SHOPPING: "Suggest a shopping list. List only item names.",
    TrackerKind.TRAVEL: "Suggest a travel packing checklist.",
    TrackerKind.HABIT: "Suggest good habits to track related to the request.",
    TrackerKind.TODO: "Suggest subtasks for a goal/todo.",
}


def missing_key_message(language: Language) -> str:
    return _MISSING_KEY[language]


def resolve_credential(credential: str | None = None) -> str | None:
    """Explicit key, then the keyring entry, then the environment."""
    if credential and credential.strip():
        return credential.strip()
    try:
        stored = keyring.get_password(SERVICE, KEY_NAME)
    except KeyringError as e:
        logger.debug("keyring unavailable: %s", e)
        stored = None
    if stored:
        return stored
    for name in _ENV_KEYS:
        value = os.environ.get(name)
        if value:
            return value
    return None


def build_instruction(kind: TrackerKind, language: Language) -> str:
    lang_name = "Russian" if language is Language.RU else "English"
    instruction = f"You are a helpful assistant. Answer in {lang_name}. "
    if kind is TrackerKind.NOTE:
        return instruction + (
            "Write a detailed note, recipe, or guide based on the user request. "
            "Return the content as a JSON array of strings, where each string is a paragraph or a section."
        )
    instruction += "Reply ONLY with a JSON array of strings (list items). "
    return instruction + _KIND_INSTRUCTIONS.get(kind, "Suggest list items.")


def _request_body(prompt: str, kind: TrackerKind, language: Language) -> dict[str, Any]:
    return {
        "systemInstruction": {"parts": [{"text": build_instruction(kind, language)}]},
        "contents": [{"role": "user", "parts": [{"text": prompt}]}],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": {"type": "ARRAY", "items": {"type": "STRING"}},
        },
    }


def parse_suggestions(payload: dict[str, Any]) -> list[str]:
    """Pull the JSON string array out of a generateContent response."""
    candidates = payload.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        raise SuggestionError("response has no candidates")
    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        raise SuggestionError("response candidate has no content parts")
    text = "".join(p.get("text", "") for p in parts if isinstance(p, dict))
    if not text.strip():
        return []
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise SuggestionError(f"response text is not JSON: {e.msg}") from e
    if not isinstance(parsed, list):
        raise SuggestionError("response JSON is not an array")
    return [str(item) for item in parsed if isinstance(item, (str, int, float)) and str(item).strip()]


def _generate(prompt: str, kind: TrackerKind, api_key: str, language: Language) -> list[str]:
    url = f"{config.get_ai_endpoint()}/{config.get_ai_model()}:generateContent"
    try:
        resp = requests.post(
            url,
            json=_request_body(prompt, kind, language),
            headers={"x-goog-api-key": api_key},
            timeout=config.get_ai_timeout(),
        )
        resp.raise_for_status()
        payload = resp.json()
    except requests.RequestException as e:
        raise SuggestionError(f"request failed: {e}") from e
    except ValueError as e:
        raise SuggestionError(f"response is not JSON: {e}") from e
    if not isinstance(payload, dict):
        raise SuggestionError("response is not a JSON object")
    return parse_suggestions(payload)


def suggest(
    prompt: str,
    kind: TrackerKind,
    credential: str | None = None,
    language: Language = Language.EN,
) -> list[str]:
    """Never raises. Missing key yields a single localized placeholder; failures yield []."""
    if not prompt or not prompt.strip():
        return []
    api_key = resolve_credential(credential)
    if not api_key:
        logger.warning("no AI credential configured")
        return [missing_key_message(language)]
    try:
        return _generate(prompt.strip(), kind, api_key, language)
    except SuggestionError as e:
        logger.error("suggestion failed: %s", e)
        return []


# ── cli ──────────────────────────────────────────────────────────────────────


@cli("fantrack", name="suggest", flags={"prompt": [], "tracker": ["-t", "--tracker"]})
def suggest_cmd(prompt: list[str], tracker: str | None = None) -> None:
    """Ask the AI for items and add them to a tracker"""
    from .lib.resolve import require_tracker_ref, resolve_tracker
    from .settings import get_settings
    from .tasks import apply_suggestions
    from .trackers import get_repository

    t = resolve_tracker(require_tracker_ref(tracker))
    s = get_settings().get()
    suggestions = suggest(" ".join(prompt), t.kind, s.user_api_key, s.language)
    if not suggestions:
        echo("no suggestions")
        return
    if resolve_credential(s.user_api_key) is None:
        echo(suggestions[0])
        return
    updated, added = apply_suggestions(t, suggestions)
    get_repository().update(updated)
    if t.kind is TrackerKind.NOTE:
        echo(f"~ {t.title}  +{len(suggestions)} paragraphs")
        return
    for task in added:
        echo(f"+ {task.text}")


@cli("fantrack ai", name="setup")
def setup(key: str) -> None:
    """Store the AI API key in the system keyring"""
    if not key.strip():
        raise UsageError("Usage: fantrack ai setup <key>")
    keyring.set_password(SERVICE, KEY_NAME, key.strip())
    echo("key stored")
