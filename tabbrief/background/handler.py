"""Background message handler: tabs in, text export or LLM markdown out.

Every request is a dict with an `action`; every reply is a dict carrying
either the action's result or an `error` string. Exceptions never cross
this boundary.
"""

import sys
from typing import Callable, List, Optional, TextIO

from tabbrief.config import Settings
from tabbrief.popup.export import ExportWriter
from tabbrief.tabs import TabRecord, collect_tabs, format_tab_list

from .llm import CancelToken, chat_completion_text
from .prompts import CATEGORIZE, SUMMARIZE, build_prompt

SAVE_TABS = "save_tabs"
CATEGORIZE_TABS = "categorize_tabs"
SUMMARIZE_TABS = "summarize_tabs"
ACTIONS = (SAVE_TABS, CATEGORIZE_TABS, SUMMARIZE_TABS)

TAB_LIST_FILENAME = "open_tabs.txt"

CollectFn = Callable[[Settings], List[TabRecord]]
ChatFn = Callable[..., str]


def save_tabs(settings: Settings, writer: ExportWriter, collect_tabs_fn: CollectFn) -> dict:
    tabs = collect_tabs_fn(settings)
    path = writer.download(format_tab_list(tabs, separator=" - "), TAB_LIST_FILENAME, save_as=settings.save_as)
    return {"ok": True, "path": str(path)}


def _ask_llm(
    mode: str,
    settings: Settings,
    collect_tabs_fn: CollectFn,
    chat_fn: ChatFn,
    cancel: Optional[CancelToken],
) -> str:
    tabs = collect_tabs_fn(settings)
    prompt, system = build_prompt(tabs, mode)
    return chat_fn(prompt, system, settings, cancel=cancel) or ""


def handle_message(
    message: Optional[dict],
    settings: Settings,
    writer: ExportWriter,
    *,
    collect_tabs_fn: Optional[CollectFn] = None,
    chat_fn: Optional[ChatFn] = None,
    cancel: Optional[CancelToken] = None,
    stderr: Optional[TextIO] = None,
) -> dict:
    stderr = stderr if stderr is not None else sys.stderr
    collect_tabs_fn = collect_tabs_fn or collect_tabs
    chat_fn = chat_fn or chat_completion_text
    action = message.get("action") if isinstance(message, dict) else None
    if not action:
        return {"error": "No action provided"}
    if action not in ACTIONS:
        return {"error": f"Unknown action: {action}"}

    try:
        if action == SAVE_TABS:
            return save_tabs(settings, writer, collect_tabs_fn)
        if action == CATEGORIZE_TABS:
            return {"result": _ask_llm(CATEGORIZE, settings, collect_tabs_fn, chat_fn, cancel)}
        return {"summary": _ask_llm(SUMMARIZE, settings, collect_tabs_fn, chat_fn, cancel)}
    except Exception as exc:
        print(f"{action} error: {exc}", file=stderr)
        return {"error": str(exc)}
