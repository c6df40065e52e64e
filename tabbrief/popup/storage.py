"""Local key-value store for the last categorization and summary."""

import json
import os
import sys
import tempfile
from pathlib import Path
from typing import Dict, Optional, TextIO

CATEGORIZATION_KEY = "aiResult"
SUMMARY_KEY = "llmSummary"


def _valid_key(key: object) -> bool:
    return isinstance(key, str) and bool(key)


class KeyValueStore:
    """String-to-string mapping persisted as one JSON object.

    Reads and writes never raise: failures are reported on `stderr` and a read
    behaves like a missing key. Writes replace the whole file, so concurrent
    writers resolve as last writer wins.
    """

    def __init__(self, path: Path, stderr: Optional[TextIO] = None):
        self.path = path
        self.stderr = stderr

    def _warn(self, msg: str) -> None:
        print(msg, file=self.stderr if self.stderr is not None else sys.stderr)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            self._warn(f"Storage get error: {exc}")
            return {}
        if not isinstance(data, dict):
            self._warn(f"Storage get error: {self.path} is not a JSON object")
            return {}
        return data

    def get(self, key: str) -> Optional[str]:
        if not _valid_key(key):
            return None
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        if not _valid_key(key):
            return
        data = self._load()
        data[key] = value
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=".state-", suffix=".json", dir=str(self.path.parent))
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, sort_keys=True, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            self._warn(f"Storage set error: {exc}")
