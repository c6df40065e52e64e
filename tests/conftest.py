"""Shared fixtures: settings rooted in a temporary home directory."""

from pathlib import Path

import pytest

from tabbrief.background import llm
from tabbrief.config import build_settings, merge_cfg


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch, tmp_path: Path):
    for name in ("TABBRIEF_API_KEY", "OPENROUTER_API_KEY", "TABBRIEF_CONFIG_PATH"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("TABBRIEF_HOME", str(tmp_path / "home"))
    monkeypatch.setattr(llm, "key_from_keychain", lambda *_args: None)


@pytest.fixture
def make_settings(tmp_path: Path):
    def _make(**cfg):
        merged = merge_cfg(
            {
                "apiKey": "test-key",
                "downloadDir": str(tmp_path / "downloads"),
                "saveAs": False,
                "endpoint": "https://llm.example.test/v1/chat/completions",
            },
            cfg,
        )
        return build_settings(merged, home=tmp_path / "home")

    return _make
