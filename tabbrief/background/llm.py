"""Chat-completion client used for tab categorization and summaries."""

import json
import os
import socket
import subprocess
import threading
import urllib.error
import urllib.request
from pathlib import Path
from typing import Optional

from tabbrief.config import Settings

SECURITY = "/usr/bin/security"
API_KEY_ENV_VARS = ("TABBRIEF_API_KEY", "OPENROUTER_API_KEY")


class LLMError(RuntimeError):
    pass


class RequestCancelled(LLMError):
    pass


class CancelToken:
    """Cancellation flag for one outbound call; safe to set from another thread."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise RequestCancelled("LLM request cancelled")


def key_from_keychain(service: str, account: str) -> Optional[str]:
    if not Path(SECURITY).exists():
        return None

    cmd = [SECURITY, "find-generic-password", "-s", service, "-a", account, "-w"]
    try:
        proc = subprocess.run(cmd, capture_output=True, text=True, timeout=10)
    except (OSError, subprocess.TimeoutExpired):
        return None
    if proc.returncode != 0:
        return None

    value = proc.stdout.strip()
    return value or None


def resolve_api_key(settings: Settings) -> Optional[str]:
    value = key_from_keychain(settings.keychain_service, settings.keychain_account)
    if value:
        return value

    for name in API_KEY_ENV_VARS:
        value = (os.environ.get(name) or "").strip()
        if value:
            return value

    return settings.api_key.strip() or None


def build_payload(prompt: str, system: str, settings: Settings) -> dict:
    return {
        "model": settings.model,
        "messages": [
            {"role": "system", "content": system},
            {"role": "user", "content": prompt},
        ],
        "temperature": settings.temperature,
        "max_tokens": settings.max_tokens,
    }


def _http_error_detail(exc: urllib.error.HTTPError) -> str:
    try:
        body = exc.read().decode("utf-8", errors="replace")
    except (OSError, AttributeError):
        body = ""
    return body[:500]


def _post_chat_completion(endpoint: str, payload: dict, api_key: str, timeout: float) -> str:
    req = urllib.request.Request(
        endpoint,
        data=json.dumps(payload).encode("utf-8"),
        headers={
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        },
        method="POST",
    )
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            return resp.read().decode("utf-8", errors="replace")
    except urllib.error.HTTPError as exc:
        raise LLMError(f"LLM API error {exc.code}: {_http_error_detail(exc)}") from exc
    except urllib.error.URLError as exc:
        if isinstance(exc.reason, (TimeoutError, socket.timeout)):
            raise LLMError(f"LLM request timed out after {timeout:g}s") from exc
        raise LLMError(f"LLM request failed: {exc.reason}") from exc
    except (TimeoutError, socket.timeout) as exc:
        raise LLMError(f"LLM request timed out after {timeout:g}s") from exc


def extract_content(data: object) -> str:
    """Return `choices[0].message.content`, or "" when any step is missing."""
    if not isinstance(data, dict):
        return ""
    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return ""
    first = choices[0]
    if not isinstance(first, dict):
        return ""
    message = first.get("message")
    if not isinstance(message, dict):
        return ""
    content = message.get("content")
    if content is None:
        return ""
    return content if isinstance(content, str) else str(content)


def chat_completion_text(
    prompt: str,
    system: str,
    settings: Settings,
    *,
    cancel: Optional[CancelToken] = None,
    api_key: Optional[str] = None,
) -> str:
    api_key = api_key or resolve_api_key(settings)
    if not api_key:
        raise LLMError(
            "LLM API key not found. Checked: "
            f"Keychain (service={settings.keychain_service}, account={settings.keychain_account}), "
            f"env {', '.join(API_KEY_ENV_VARS)}, config apiKey."
        )

    if cancel is not None:
        cancel.raise_if_cancelled()

    payload = build_payload(prompt, system, settings)
    body = _post_chat_completion(settings.endpoint, payload, api_key, settings.timeout)

    if cancel is not None:
        cancel.raise_if_cancelled()

    try:
        data = json.loads(body)
    except ValueError as exc:
        raise LLMError(f"LLM response is not valid JSON: {body[:500]}") from exc

    return extract_content(data)
