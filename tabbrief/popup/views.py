"""Output surfaces for the popup: console text or a static HTML page."""

import sys
from pathlib import Path
from typing import Optional, Set, TextIO

from .markdown import html_to_text

DOWNLOAD_LABELS = {
    "categorization": "Download Categorization",
    "summary": "Download Summary",
}

PAGE_TEMPLATE = """<!doctype html>
<html>
<head>
<meta charset="utf-8">
<title>TabBrief</title>
</head>
<body>
<div id="actions">
<button id="saveTabs">Save Tabs</button>
<button id="categorizeTabs">AI Categorize</button>
<button id="summarizeTabs">Summarize Session</button>
{downloads}
</div>
<div id="result">{result}</div>
</body>
</html>
"""


class TerminalView:
    def __init__(self, stdout: Optional[TextIO] = None, stderr: Optional[TextIO] = None):
        self.stdout = stdout if stdout is not None else sys.stdout
        self.stderr = stderr if stderr is not None else sys.stderr
        self.downloads: Set[str] = set()

    def show_text(self, text: str) -> None:
        print(text, file=self.stdout)

    def show_html(self, html: str) -> None:
        print(html_to_text(html), file=self.stdout)

    def reveal_download(self, which: str) -> None:
        if which in self.downloads:
            return
        self.downloads.add(which)
        print(f"Download available: tabbrief download-{which}", file=self.stderr)

    def alert(self, message: str) -> None:
        print(message, file=self.stderr)


def _escape_text(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace("\n", "<br>")


class HtmlPageView:
    """Writes the popup output area to an HTML file on every update."""

    def __init__(self, path: Path, stderr: Optional[TextIO] = None):
        self.path = path
        self.stderr = stderr if stderr is not None else sys.stderr
        self.result_html = ""
        self.downloads: Set[str] = set()

    def _write(self) -> None:
        buttons = "\n".join(
            f'<button id="download-{which}">{DOWNLOAD_LABELS.get(which, which)}</button>'
            for which in sorted(self.downloads)
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(PAGE_TEMPLATE.format(downloads=buttons, result=self.result_html), encoding="utf-8")

    def show_text(self, text: str) -> None:
        self.result_html = _escape_text(text)
        self._write()

    def show_html(self, html: str) -> None:
        self.result_html = html
        self._write()

    def reveal_download(self, which: str) -> None:
        self.downloads.add(which)
        self._write()

    def alert(self, message: str) -> None:
        print(message, file=self.stderr)
