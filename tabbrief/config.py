"""Runtime settings: defaults, config.json, then environment overrides."""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Optional

DEFAULT_HOME = Path("~/.tabbrief")

DEFAULT_CFG: Dict = {
    "endpoint": "https://openrouter.ai/api/v1/chat/completions",
    "apiKey": "",
    "model": "gpt-3.5-turbo",
    "temperature": 0.6,
    "maxTokens": 800,
    "timeoutSeconds": 60.0,
    "keychainService": "TabBrief",
    "keychainAccount": "llm",
    "tabSource": "cdp",
    "cdpUrl": "http://127.0.0.1:9222",
    "tabsFile": "",
    "downloadDir": "~/Downloads",
    "saveAs": True,
}

VALID_TAB_SOURCES = {"cdp", "applescript", "file"}

ENV_OVERRIDES = {
    "TABBRIEF_ENDPOINT": "endpoint",
    "TABBRIEF_MODEL": "model",
    "TABBRIEF_TEMPERATURE": "temperature",
    "TABBRIEF_MAX_TOKENS": "maxTokens",
    "TABBRIEF_TIMEOUT": "timeoutSeconds",
    "TABBRIEF_TAB_SOURCE": "tabSource",
    "TABBRIEF_CDP_URL": "cdpUrl",
    "TABBRIEF_TABS_FILE": "tabsFile",
    "TABBRIEF_DOWNLOAD_DIR": "downloadDir",
    "TABBRIEF_SAVE_AS": "saveAs",
}


@dataclass
class Settings:
    endpoint: str
    api_key: str
    model: str
    temperature: float
    max_tokens: int
    timeout: float
    keychain_service: str
    keychain_account: str
    tab_source: str
    cdp_url: str
    tabs_file: Optional[Path]
    download_dir: Path
    save_as: bool
    home: Path

    @property
    def state_path(self) -> Path:
        return self.home / "state.json"


def home_dir() -> Path:
    return Path(os.environ.get("TABBRIEF_HOME", str(DEFAULT_HOME))).expanduser()


def config_path() -> Path:
    return Path(os.environ.get("TABBRIEF_CONFIG_PATH", str(home_dir() / "config.json"))).expanduser()


def merge_cfg(file_cfg: Dict | None, override_cfg: Dict | None) -> Dict:
    merged = dict(DEFAULT_CFG)
    if file_cfg:
        merged.update(file_cfg)
    if override_cfg:
        merged.update(override_cfg)
    return merged


def load_cfg_file(path: Path) -> Dict:
    if not path.exists():
        return {}
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise ValueError(f"Config is not valid JSON: {path}") from exc
    if not isinstance(raw, dict):
        raise ValueError(f"Config must be a JSON object: {path}")
    return raw


def env_overrides(environ: Optional[Dict[str, str]] = None) -> Dict:
    environ = os.environ if environ is None else environ
    out = {}
    for env_name, key in ENV_OVERRIDES.items():
        value = environ.get(env_name)
        if value is None or not value.strip():
            continue
        out[key] = value.strip()
    return out


def cfg_bool(value: object, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    v = str(value).strip().lower()
    if v in {"1", "true", "yes", "y", "on"}:
        return True
    if v in {"0", "false", "no", "n", "off"}:
        return False
    return default


def cfg_float(value: object, default: float, *, minimum: Optional[float] = None, maximum: Optional[float] = None) -> float:
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if minimum is not None and number < minimum:
        number = minimum
    if maximum is not None and number > maximum:
        number = maximum
    return number


def cfg_int(value: object, default: int, *, minimum: int = 1) -> int:
    try:
        number = int(value)
    except (TypeError, ValueError):
        return default
    return max(minimum, number)


def cfg_choice(value: object, allowed: set, default: str) -> str:
    candidate = str(value or "").strip().lower()
    if candidate in allowed:
        return candidate
    return default


def build_settings(cfg: Dict, home: Optional[Path] = None) -> Settings:
    home = home if home is not None else home_dir()
    tabs_file = str(cfg.get("tabsFile") or "").strip()
    return Settings(
        endpoint=str(cfg.get("endpoint") or DEFAULT_CFG["endpoint"]).strip(),
        api_key=str(cfg.get("apiKey") or "").strip(),
        model=str(cfg.get("model") or DEFAULT_CFG["model"]).strip(),
        temperature=cfg_float(cfg.get("temperature"), DEFAULT_CFG["temperature"], minimum=0.0, maximum=2.0),
        max_tokens=cfg_int(cfg.get("maxTokens"), DEFAULT_CFG["maxTokens"]),
        timeout=cfg_float(cfg.get("timeoutSeconds"), DEFAULT_CFG["timeoutSeconds"], minimum=1.0),
        keychain_service=str(cfg.get("keychainService") or DEFAULT_CFG["keychainService"]),
        keychain_account=str(cfg.get("keychainAccount") or DEFAULT_CFG["keychainAccount"]),
        tab_source=cfg_choice(cfg.get("tabSource"), VALID_TAB_SOURCES, DEFAULT_CFG["tabSource"]),
        cdp_url=str(cfg.get("cdpUrl") or DEFAULT_CFG["cdpUrl"]).strip().rstrip("/"),
        tabs_file=Path(tabs_file).expanduser() if tabs_file else None,
        download_dir=Path(str(cfg.get("downloadDir") or DEFAULT_CFG["downloadDir"])).expanduser(),
        save_as=cfg_bool(cfg.get("saveAs"), default=True),
        home=home,
    )


def load_settings(override_cfg: Dict | None = None) -> Settings:
    """Resolve settings once at startup.

    Precedence, lowest first: DEFAULT_CFG, config.json, TABBRIEF_* environment,
    then `override_cfg` (command-line flags).
    """
    overrides = env_overrides()
    if override_cfg:
        overrides.update(override_cfg)
    cfg = merge_cfg(load_cfg_file(config_path()), overrides)
    return build_settings(cfg)
