"""Tab sources: Chromium DevTools, macOS AppleScript, and tab dump files."""

import json
import subprocess
import urllib.error
import urllib.request
from pathlib import Path
from typing import List, Optional, Tuple

from .models import TabRecord

OSASCRIPT = "/usr/bin/osascript"

CHROME_SCRIPT = """
if application "Google Chrome" is running then
  tell application "Google Chrome"
    set out to ""
    repeat with w in windows
      repeat with t in tabs of w
        set out to out & (title of t) & tab & (URL of t) & linefeed
      end repeat
    end repeat
    return out
  end tell
end if
return ""
"""

SAFARI_SCRIPT = """
if application "Safari" is running then
  tell application "Safari"
    set out to ""
    repeat with w in windows
      repeat with t in tabs of w
        set out to out & (name of t) & tab & (URL of t) & linefeed
      end repeat
    end repeat
    return out
  end tell
end if
return ""
"""

APPLESCRIPT_BROWSERS = (
    ("chrome", CHROME_SCRIPT),
    ("safari", SAFARI_SCRIPT),
)

URL_SCHEMES = ("http://", "https://", "file://", "about:", "chrome://", "edge://", "safari://")


class TabSourceError(RuntimeError):
    pass


def _optional_str(value: object) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def fetch_cdp_tabs(cdp_url: str, timeout: float = 5.0) -> List[TabRecord]:
    """List page targets from a Chromium browser started with --remote-debugging-port."""
    endpoint = f"{cdp_url.rstrip('/')}/json/list"
    req = urllib.request.Request(endpoint, headers={"Accept": "application/json"}, method="GET")
    try:
        with urllib.request.urlopen(req, timeout=timeout) as resp:
            data = json.loads(resp.read().decode("utf-8"))
    except urllib.error.URLError as exc:
        raise TabSourceError(f"DevTools endpoint unreachable at {endpoint}: {exc}") from exc
    except ValueError as exc:
        raise TabSourceError(f"DevTools endpoint returned invalid JSON: {endpoint}") from exc

    if not isinstance(data, list):
        raise TabSourceError(f"DevTools endpoint returned unexpected payload: {endpoint}")

    tabs: List[TabRecord] = []
    for target in data:
        if not isinstance(target, dict) or target.get("type") != "page":
            continue
        tabs.append(
            TabRecord(
                title=_optional_str(target.get("title")),
                url=_optional_str(target.get("url")),
                browser="chromium",
            )
        )
    return tabs


def parse_applescript_output(output: str, browser: str) -> List[TabRecord]:
    tabs: List[TabRecord] = []
    for line in output.splitlines():
        if not line.strip():
            continue
        if "\t" in line:
            title, url = line.rsplit("\t", 1)
        else:
            title, url = line, ""
        tabs.append(TabRecord(title=_optional_str(title.strip()), url=_optional_str(url.strip()), browser=browser))
    return tabs


def fetch_applescript_tabs(timeout: float = 30.0) -> List[TabRecord]:
    if not Path(OSASCRIPT).exists():
        raise TabSourceError("AppleScript tab source requires macOS (osascript not found).")

    tabs: List[TabRecord] = []
    for browser, script in APPLESCRIPT_BROWSERS:
        try:
            proc = subprocess.run(
                [OSASCRIPT, "-e", script],
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise TabSourceError(f"osascript timed out reading {browser} tabs") from exc
        if proc.returncode != 0:
            raise TabSourceError(f"osascript failed for {browser}: {proc.stderr.strip()}")
        tabs.extend(parse_applescript_output(proc.stdout, browser))
    return tabs


def _scan_bracketed(text: str, start: int, opener: str, closer: str) -> Tuple[Optional[str], int]:
    """Read a balanced `opener ... closer` group starting at `start`, honoring backslash escapes."""
    if start >= len(text) or text[start] != opener:
        return None, start
    depth = 0
    chars: List[str] = []
    idx = start
    escaped = False
    while idx < len(text):
        ch = text[idx]
        idx += 1
        if escaped:
            chars.append(ch)
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == opener:
            depth += 1
            if depth > 1:
                chars.append(ch)
        elif ch == closer:
            depth -= 1
            if depth == 0:
                return "".join(chars), idx
            chars.append(ch)
        else:
            chars.append(ch)
    return None, start


def parse_markdown_link(line: str) -> Optional[Tuple[str, str]]:
    stripped = line.strip()
    if not stripped.startswith("- ["):
        return None

    title, idx = _scan_bracketed(stripped, 2, "[", "]")
    if title is None:
        return None
    while idx < len(stripped) and stripped[idx].isspace():
        idx += 1
    url, idx = _scan_bracketed(stripped, idx, "(", ")")
    if url is None or stripped[idx:].strip():
        return None
    return title.strip(), url.strip()


def parse_plain_line(line: str) -> Optional[Tuple[str, str]]:
    stripped = line.strip()
    if stripped.startswith("- "):
        stripped = stripped[2:].strip()
    if not stripped:
        return None
    if stripped.startswith(URL_SCHEMES):
        return "", stripped
    for separator in (" - ", " — "):
        if separator not in stripped:
            continue
        title, url = stripped.rsplit(separator, 1)
        url = url.strip()
        if url.startswith(URL_SCHEMES):
            return title.strip(), url
    return None


def parse_tabs_text(text: str) -> List[TabRecord]:
    """Parse a TabDump-style markdown note or a plain `Title - url` export."""
    tabs: List[TabRecord] = []
    current_browser: Optional[str] = None
    in_frontmatter = False

    for idx, line in enumerate(text.splitlines()):
        stripped = line.strip()
        if idx == 0 and stripped == "---":
            in_frontmatter = True
            continue
        if in_frontmatter:
            if stripped == "---":
                in_frontmatter = False
            continue
        if line.startswith("## "):
            current_browser = line[3:].strip().lower() or None
            continue
        if line.startswith("#"):
            continue

        parsed = parse_markdown_link(line) or parse_plain_line(line)
        if parsed is None:
            continue
        title, url = parsed
        tabs.append(TabRecord(title=_optional_str(title), url=_optional_str(url), browser=current_browser))

    return tabs


def read_tabs_file(path: Path) -> List[TabRecord]:
    try:
        text = path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise TabSourceError(f"Cannot read tabs file {path}: {exc}") from exc
    return parse_tabs_text(text)
