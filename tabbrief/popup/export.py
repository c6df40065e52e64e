"""Write text exports to disk the way a browser download would."""

from pathlib import Path
from typing import Callable, Optional


class ExportError(RuntimeError):
    pass


def unique_path(path: Path) -> Path:
    """Append ` (1)`, ` (2)`, ... to the stem until the path is free."""
    if not path.exists():
        return path
    n = 1
    while True:
        candidate = path.with_name(f"{path.stem} ({n}){path.suffix}")
        if not candidate.exists():
            return candidate
        n += 1


class ExportWriter:
    def __init__(self, download_dir: Path, prompt_fn: Optional[Callable[[str], str]] = None):
        self.download_dir = download_dir
        self.prompt_fn = prompt_fn if prompt_fn is not None else input

    def _choose_path(self, suggested: Path) -> Path:
        try:
            answer = self.prompt_fn(f"Save as [{suggested}]: ")
        except EOFError:
            answer = ""
        answer = (answer or "").strip()
        if not answer:
            return suggested
        chosen = Path(answer).expanduser()
        if chosen.is_dir():
            chosen = chosen / suggested.name
        return unique_path(chosen)

    def download(self, content: str, filename: str, save_as: bool = True) -> Path:
        suggested = unique_path(self.download_dir / filename)
        target = self._choose_path(suggested) if save_as else suggested
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise ExportError(f"Download failed for {target}: {exc}") from exc
        return target
