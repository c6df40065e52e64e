"""Enumerate open tabs and format them as one line per tab."""

from typing import Iterable, List

from tabbrief.config import Settings

from .models import TabRecord
from .sources import TabSourceError, fetch_applescript_tabs, fetch_cdp_tabs, read_tabs_file

NO_TITLE = "(no title)"


def collect_tabs(settings: Settings) -> List[TabRecord]:
    """Return every open tab in the order the configured source reports them."""
    source = settings.tab_source
    if source == "cdp":
        return fetch_cdp_tabs(settings.cdp_url, timeout=min(settings.timeout, 10.0))
    if source == "applescript":
        return fetch_applescript_tabs()
    if source == "file":
        if settings.tabs_file is None:
            raise TabSourceError("tabSource=file requires tabsFile (or --tabs-file).")
        return read_tabs_file(settings.tabs_file)
    raise TabSourceError(f"Unknown tab source: {source}")


def format_tab_line(tab: TabRecord, separator: str, prefix: str = "") -> str:
    return f"{prefix}{tab.title or NO_TITLE}{separator}{tab.url or ''}"


def format_tab_list(tabs: Iterable[TabRecord], separator: str = " - ", prefix: str = "") -> str:
    return "\n".join(format_tab_line(tab, separator, prefix) for tab in tabs)
