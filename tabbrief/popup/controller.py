"""Popup controller: wires the five actions to the background handler.

Session states: idle -> loading -> rendered | error. Each action runs to
completion before returning; nothing coordinates two controllers sharing a
store, so the last successful write wins.
"""

import sys
from pathlib import Path
from typing import Callable, Optional, TextIO

from .export import ExportError, ExportWriter
from .markdown import EMPTY_PLACEHOLDER, render_markdown
from .storage import CATEGORIZATION_KEY, SUMMARY_KEY, KeyValueStore

IDLE = "idle"
LOADING = "loading"
RENDERED = "rendered"
ERROR = "error"

GET_STARTED = "Click 'AI Categorize' or 'Summarize Session' to get started."
SAVING = "Saving open tabs... a download should appear."
CATEGORIZING = "Analyzing tabs and generating markdown categories..."
SUMMARIZING = "Generating a short summary of your browsing session..."

CATEGORIZATION_FILENAME = "tab_categorization.md"
SUMMARY_FILENAME = "browsing_summary.md"

SendFn = Callable[[dict], dict]


class PopupController:
    def __init__(
        self,
        store: KeyValueStore,
        send_message: SendFn,
        writer: ExportWriter,
        view,
        *,
        save_as: bool = True,
        stderr: Optional[TextIO] = None,
    ):
        self.store = store
        self.send_message = send_message
        self.writer = writer
        self.view = view
        self.save_as = save_as
        self.stderr = stderr if stderr is not None else sys.stderr
        self.state = IDLE

    def render(self, md: str) -> None:
        if not md:
            self.view.show_text(EMPTY_PLACEHOLDER)
            return
        self.view.show_html(render_markdown(md))

    def _fail(self, text: str) -> None:
        self.view.show_text(text)
        self.state = ERROR

    def activate(self) -> None:
        """Show the last stored result; a categorization wins over a summary."""
        saved_categorization = self.store.get(CATEGORIZATION_KEY)
        saved_summary = self.store.get(SUMMARY_KEY)

        if saved_categorization:
            self.render(saved_categorization)
            self.view.reveal_download("categorization")
            self.state = RENDERED
        elif saved_summary:
            self.render(saved_summary)
            self.view.reveal_download("summary")
            self.state = RENDERED
        else:
            self.view.show_text(GET_STARTED)
            self.state = IDLE

    def save_tabs(self) -> dict:
        self.state = LOADING
        resp = self.send_message({"action": "save_tabs"})
        if resp and resp.get("error"):
            self._fail(f"Save failed: {resp['error']}")
        else:
            self.view.show_text(SAVING)
            self.state = IDLE
        return resp

    def _ask(self, action: str, loading: str, field: str, key: str, empty: str, which: str) -> dict:
        self.view.show_text(loading)
        self.state = LOADING
        resp = self.send_message({"action": action})
        if resp and resp.get("error"):
            self._fail(f"Error: {resp['error']}")
            return resp

        md = (resp or {}).get(field) or ""
        if not md:
            self._fail(empty)
            return resp

        self.store.set(key, md)
        self.render(md)
        self.view.reveal_download(which)
        self.state = RENDERED
        return resp

    def categorize(self) -> dict:
        return self._ask(
            "categorize_tabs",
            CATEGORIZING,
            "result",
            CATEGORIZATION_KEY,
            "No result returned from LLM.",
            "categorization",
        )

    def summarize(self) -> dict:
        return self._ask(
            "summarize_tabs",
            SUMMARIZING,
            "summary",
            SUMMARY_KEY,
            "No summary returned from LLM.",
            "summary",
        )

    def _download(self, key: str, filename: str, missing: str) -> Optional[Path]:
        md = self.store.get(key)
        if not md:
            self.view.alert(missing)
            return None
        try:
            return self.writer.download(md, filename, save_as=self.save_as)
        except ExportError as exc:
            print(f"download error: {exc}", file=self.stderr)
            return None

    def download_categorization(self) -> Optional[Path]:
        return self._download(CATEGORIZATION_KEY, CATEGORIZATION_FILENAME, "No categorization saved.")

    def download_summary(self) -> Optional[Path]:
        return self._download(SUMMARY_KEY, SUMMARY_FILENAME, "No summary saved.")
