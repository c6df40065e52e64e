"""Open-tab enumeration shared by the background handler and the CLI."""

from .collect import NO_TITLE, collect_tabs, format_tab_line, format_tab_list
from .models import TabRecord
from .sources import (
    TabSourceError,
    fetch_applescript_tabs,
    fetch_cdp_tabs,
    parse_tabs_text,
    read_tabs_file,
)

__all__ = [
    "NO_TITLE",
    "TabRecord",
    "TabSourceError",
    "collect_tabs",
    "fetch_applescript_tabs",
    "fetch_cdp_tabs",
    "format_tab_line",
    "format_tab_list",
    "parse_tabs_text",
    "read_tabs_file",
]
