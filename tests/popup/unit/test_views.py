from io import StringIO
from pathlib import Path

from tabbrief.popup.views import HtmlPageView, TerminalView


def test_terminal_view_prints_rendered_markdown_as_text():
    out, err = StringIO(), StringIO()
    view = TerminalView(stdout=out, stderr=err)

    view.show_text("Loading")
    view.show_html("<h3>A</h3><br>• b")
    view.alert("No summary saved.")

    assert out.getvalue() == "Loading\nA\n• b\n"
    assert err.getvalue() == "No summary saved.\n"


def test_html_page_view_writes_result_area_and_download_buttons(tmp_path: Path):
    page = tmp_path / "popup.html"
    view = HtmlPageView(page, stderr=StringIO())

    view.show_html("<h3>A</h3><br>• b")
    view.reveal_download("summary")
    html = page.read_text(encoding="utf-8")

    assert '<div id="result"><h3>A</h3><br>• b</div>' in html
    assert '<button id="download-summary">Download Summary</button>' in html
    assert "download-categorization" not in html


def test_html_page_view_escapes_plain_text(tmp_path: Path):
    page = tmp_path / "popup.html"
    view = HtmlPageView(page, stderr=StringIO())

    view.show_text("Error: <500>\nretry")

    assert '<div id="result">Error: &lt;500&gt;<br>retry</div>' in page.read_text(encoding="utf-8")


def test_terminal_view_announces_download_once():
    out, err = StringIO(), StringIO()
    view = TerminalView(stdout=out, stderr=err)

    view.reveal_download("summary")
    view.reveal_download("summary")
    view.reveal_download("categorization")

    assert out.getvalue() == ""
    assert err.getvalue() == (
        "Download available: tabbrief download-summary\n"
        "Download available: tabbrief download-categorization\n"
    )
