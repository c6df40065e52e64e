#!/usr/bin/env python3
"""TabBrief command line: the popup's five actions plus `show`.

Usage:
  tabbrief [show|save-tabs|categorize|summarize|download-categorization|download-summary]
           [--verbose] [--json] [--html PATH] [--yes]
           [--source cdp|applescript|file] [--tabs-file PATH] [--cdp-url URL] [--model NAME]

Exit codes: 0 ok, 1 action failed, 2 usage/config error, 130 interrupted.
"""

import json
import sys
import threading
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional

from tabbrief.background.handler import handle_message
from tabbrief.background.llm import CancelToken
from tabbrief.config import VALID_TAB_SOURCES, load_settings
from tabbrief.popup.controller import ERROR, PopupController
from tabbrief.popup.export import ExportWriter
from tabbrief.popup.storage import KeyValueStore
from tabbrief.popup.views import HtmlPageView, TerminalView

COMMANDS = (
    "show",
    "save-tabs",
    "categorize",
    "summarize",
    "download-categorization",
    "download-summary",
)

USAGE = (
    "usage: tabbrief [show|save-tabs|categorize|summarize|download-categorization|download-summary] "
    "[--verbose] [--json] [--html PATH] [--yes] [--source cdp|applescript|file] "
    "[--tabs-file PATH] [--cdp-url URL] [--model NAME]"
)

VALUE_FLAGS = {
    "--html": "html",
    "--source": "source",
    "--tabs-file": "tabs_file",
    "--cdp-url": "cdp_url",
    "--model": "model",
}


def log(msg: str, verbose: bool) -> None:
    if not verbose:
        return
    ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    print(f"[tabbrief] {ts} {msg}", file=sys.stderr)


def parse_args(argv: List[str]) -> Dict:
    opts: Dict = {
        "command": "show",
        "verbose": False,
        "json": False,
        "yes": False,
        "html": None,
        "source": None,
        "tabs_file": None,
        "cdp_url": None,
        "model": None,
    }
    positional = []
    args = list(argv[1:])
    idx = 0
    while idx < len(args):
        arg = args[idx]
        if arg in ("-v", "--verbose"):
            opts["verbose"] = True
        elif arg == "--json":
            opts["json"] = True
        elif arg in ("-y", "--yes"):
            opts["yes"] = True
        elif arg in VALUE_FLAGS:
            if idx + 1 >= len(args):
                raise SystemExit(f"{arg} requires a value")
            idx += 1
            opts[VALUE_FLAGS[arg]] = args[idx]
        elif arg.split("=", 1)[0] in VALUE_FLAGS and "=" in arg:
            flag, value = arg.split("=", 1)
            opts[VALUE_FLAGS[flag]] = value
        elif arg in ("-h", "--help"):
            print(USAGE, file=sys.stderr)
            raise SystemExit(0)
        elif arg.startswith("-"):
            raise SystemExit(f"unknown option: {arg}")
        else:
            positional.append(arg)
        idx += 1

    if len(positional) > 1:
        raise SystemExit(f"unknown args: {' '.join(positional[1:])}")
    if positional:
        command = positional[0].strip().lower()
        if command not in COMMANDS:
            raise SystemExit(f"invalid command: {command}")
        opts["command"] = command

    source = opts["source"]
    if source is not None:
        source = source.strip().lower()
        if source not in VALID_TAB_SOURCES:
            raise SystemExit(f"invalid --source value: {source}")
        opts["source"] = source
    if opts["tabs_file"] and source is None:
        opts["source"] = "file"
    return opts


def settings_overrides(opts: Dict) -> Dict:
    overrides = {}
    if opts["source"]:
        overrides["tabSource"] = opts["source"]
    if opts["tabs_file"]:
        overrides["tabsFile"] = opts["tabs_file"]
    if opts["cdp_url"]:
        overrides["cdpUrl"] = opts["cdp_url"]
    if opts["model"]:
        overrides["model"] = opts["model"]
    if opts["yes"]:
        overrides["saveAs"] = False
    return overrides


def run_cancellable(fn: Callable[[CancelToken], dict], cancel: CancelToken) -> dict:
    """Run `fn` on a worker thread so Ctrl-C cancels the request instead of hanging."""
    box: Dict[str, dict] = {}

    def _target() -> None:
        box["resp"] = fn(cancel)

    worker = threading.Thread(target=_target, name="tabbrief-request", daemon=True)
    worker.start()
    try:
        while worker.is_alive():
            worker.join(0.1)
    except KeyboardInterrupt:
        cancel.cancel()
        raise
    return box.get("resp") or {"error": "request produced no reply"}


def main(argv: List[str]) -> int:
    try:
        opts = parse_args(argv)
    except SystemExit as exc:
        if exc.code in (0, None):
            return 0
        if isinstance(exc.code, str):
            print(exc.code, file=sys.stderr)
        return 2
    verbose = opts["verbose"]

    try:
        settings = load_settings(settings_overrides(opts))
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 2
    log(f"tab source={settings.tab_source} endpoint={settings.endpoint} model={settings.model}", verbose)

    writer = ExportWriter(settings.download_dir)
    store = KeyValueStore(settings.state_path)
    view = HtmlPageView(Path(opts["html"]).expanduser()) if opts["html"] else TerminalView()

    def send(message: dict) -> dict:
        log(f"send {message.get('action')}", verbose)
        resp = run_cancellable(
            lambda cancel: handle_message(message, settings, writer, cancel=cancel),
            CancelToken(),
        )
        log(f"reply keys={sorted(resp)}", verbose)
        return resp

    controller = PopupController(store, send, writer, view, save_as=settings.save_as)
    command = opts["command"]

    try:
        if command == "show":
            controller.activate()
            return 0

        if command in ("download-categorization", "download-summary"):
            if command == "download-categorization":
                path: Optional[Path] = controller.download_categorization()
            else:
                path = controller.download_summary()
            if path is None:
                return 1
            print(str(path))
            return 0

        actions = {
            "save-tabs": controller.save_tabs,
            "categorize": controller.categorize,
            "summarize": controller.summarize,
        }
        resp = actions[command]()
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        return 130

    if opts["json"]:
        print(json.dumps(resp, sort_keys=True))
    return 1 if controller.state == ERROR else 0


def run() -> int:
    return main(sys.argv)


if __name__ == "__main__":
    raise SystemExit(main(sys.argv))
