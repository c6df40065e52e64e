import json
import subprocess
import urllib.error
from pathlib import Path
from types import SimpleNamespace

import pytest

from tabbrief.tabs import sources
from tabbrief.tabs.models import TabRecord


class DummyResp:
    def __init__(self, body: bytes):
        self._body = body

    def __enter__(self):
        return self

    def __exit__(self, *_args):
        return False

    def read(self):
        return self._body


def test_fetch_cdp_tabs_keeps_pages_in_reported_order(monkeypatch):
    captured = {}
    targets = [
        {"type": "page", "title": "B", "url": "https://b.example/"},
        {"type": "service_worker", "title": "sw", "url": "https://sw.example/"},
        {"type": "page", "title": "", "url": "https://a.example/"},
        {"type": "page", "title": "No url"},
    ]

    def fake_urlopen(req, timeout):
        captured["url"] = req.full_url
        captured["timeout"] = timeout
        return DummyResp(json.dumps(targets).encode("utf-8"))

    monkeypatch.setattr(sources.urllib.request, "urlopen", fake_urlopen)

    tabs = sources.fetch_cdp_tabs("http://127.0.0.1:9222/", timeout=3)

    assert captured == {"url": "http://127.0.0.1:9222/json/list", "timeout": 3}
    assert tabs == [
        TabRecord(title="B", url="https://b.example/", browser="chromium"),
        TabRecord(title=None, url="https://a.example/", browser="chromium"),
        TabRecord(title="No url", url=None, browser="chromium"),
    ]


def test_fetch_cdp_tabs_wraps_connection_errors(monkeypatch):
    def fake_urlopen(req, timeout):
        raise urllib.error.URLError("connection refused")

    monkeypatch.setattr(sources.urllib.request, "urlopen", fake_urlopen)

    with pytest.raises(sources.TabSourceError) as exc:
        sources.fetch_cdp_tabs("http://127.0.0.1:9222")

    assert "unreachable" in str(exc.value)


def test_fetch_cdp_tabs_rejects_non_list_payload(monkeypatch):
    monkeypatch.setattr(
        sources.urllib.request,
        "urlopen",
        lambda req, timeout: DummyResp(b'{"not": "a list"}'),
    )

    with pytest.raises(sources.TabSourceError):
        sources.fetch_cdp_tabs("http://127.0.0.1:9222")


def test_parse_applescript_output_splits_on_last_tab():
    out = "Docs\thttps://docs.example/\nWeird\ttitle\thttps://w.example/\n\nOrphan title\n"

    tabs = sources.parse_applescript_output(out, "safari")

    assert [(t.title, t.url) for t in tabs] == [
        ("Docs", "https://docs.example/"),
        ("Weird\ttitle", "https://w.example/"),
        ("Orphan title", None),
    ]
    assert {t.browser for t in tabs} == {"safari"}


def test_fetch_applescript_tabs_requires_osascript(monkeypatch):
    monkeypatch.setattr(sources.Path, "exists", lambda _self: False)

    with pytest.raises(sources.TabSourceError):
        sources.fetch_applescript_tabs()


def test_fetch_applescript_tabs_collects_each_browser(monkeypatch):
    monkeypatch.setattr(sources.Path, "exists", lambda _self: True)
    outputs = iter(["Chrome tab\thttps://c.example/\n", "Safari tab\thttps://s.example/\n"])
    monkeypatch.setattr(
        sources.subprocess,
        "run",
        lambda *_args, **_kwargs: SimpleNamespace(returncode=0, stdout=next(outputs), stderr=""),
    )

    tabs = sources.fetch_applescript_tabs()

    assert [(t.browser, t.title) for t in tabs] == [("chrome", "Chrome tab"), ("safari", "Safari tab")]


def test_fetch_applescript_tabs_surfaces_script_failure(monkeypatch):
    monkeypatch.setattr(sources.Path, "exists", lambda _self: True)
    monkeypatch.setattr(
        sources.subprocess,
        "run",
        lambda *_args, **_kwargs: SimpleNamespace(returncode=1, stdout="", stderr="not authorized"),
    )

    with pytest.raises(sources.TabSourceError) as exc:
        sources.fetch_applescript_tabs()

    assert "not authorized" in str(exc.value)


def test_fetch_applescript_tabs_wraps_timeout(monkeypatch):
    monkeypatch.setattr(sources.Path, "exists", lambda _self: True)

    def fake_run(*_args, **_kwargs):
        raise subprocess.TimeoutExpired(cmd="osascript", timeout=30)

    monkeypatch.setattr(sources.subprocess, "run", fake_run)

    with pytest.raises(sources.TabSourceError):
        sources.fetch_applescript_tabs()


def test_parse_markdown_link_handles_nested_brackets_and_parentheses():
    line = "- [A [nested] title](https://example.com/a_(b)/c)"
    assert sources.parse_markdown_link(line) == ("A [nested] title", "https://example.com/a_(b)/c")


def test_parse_markdown_link_rejects_malformed_lines():
    assert sources.parse_markdown_link("- [Example](https://example.com) trailing") is None
    assert sources.parse_markdown_link("- [Missing close(https://example.com)") is None
    assert sources.parse_markdown_link("- [Title] https://example.com") is None
    assert sources.parse_markdown_link("just text") is None


def test_parse_plain_line_accepts_exported_separators_and_bare_urls():
    assert sources.parse_plain_line("Home - https://example.com") == ("Home", "https://example.com")
    assert sources.parse_plain_line("- A - B — https://x.example/") == ("A - B", "https://x.example/")
    assert sources.parse_plain_line("https://bare.example/") == ("", "https://bare.example/")
    assert sources.parse_plain_line("not a tab - at all") is None


def test_parse_tabs_text_reads_tabdump_note_with_frontmatter():
    md = (
        "---\n"
        "tabdump_id: abc\n"
        "- [Not a tab](https://frontmatter.example)\n"
        "---\n"
        "# TabDump\n"
        "## Chrome\n"
        "### Window 1\n"
        "- [One](https://example.com/a)\n"
        "## Safari\n"
        "- [Two](https://example.com/b)\n"
    )

    tabs = sources.parse_tabs_text(md)

    assert tabs == [
        TabRecord(title="One", url="https://example.com/a", browser="chrome"),
        TabRecord(title="Two", url="https://example.com/b", browser="safari"),
    ]


def test_parse_tabs_text_reads_own_plain_export():
    text = "(no title) - https://a.example/\nDocs - https://docs.example/\n"

    tabs = sources.parse_tabs_text(text)

    assert [(t.title, t.url) for t in tabs] == [
        ("(no title)", "https://a.example/"),
        ("Docs", "https://docs.example/"),
    ]


def test_read_tabs_file_missing_raises(tmp_path: Path):
    with pytest.raises(sources.TabSourceError):
        sources.read_tabs_file(tmp_path / "missing.md")
