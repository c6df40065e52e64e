"""Minimal markdown-to-HTML conversion for the popup output area.

Only headings (`#`, `##`, `###`), `-` bullets and line breaks are recognized.
Everything else passes through as literal text.
"""

import re

EMPTY_PLACEHOLDER = "No result to display."

RULES = (
    (re.compile(r"^### ([^\r\n]*)", re.MULTILINE), r"<h4>\1</h4>"),
    (re.compile(r"^## ([^\r\n]*)", re.MULTILINE), r"<h3>\1</h3>"),
    (re.compile(r"^# ([^\r\n]*)", re.MULTILINE), r"<h2>\1</h2>"),
    (re.compile(r"^- ([^\r\n]*)", re.MULTILINE), "• \\1"),
)

HEADING_TAG_RE = re.compile(r"</?h[234]>")


def render_markdown(md: str) -> str:
    html = md
    for pattern, replacement in RULES:
        html = pattern.sub(replacement, html)
    return html.replace("\n", "<br>")


def html_to_text(html: str) -> str:
    """Undo the line-break and heading markup from `render_markdown` for console output."""
    return HEADING_TAG_RE.sub("", html.replace("<br>", "\n"))
