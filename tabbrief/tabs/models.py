"""Data models for open tabs."""

from dataclasses import dataclass
from typing import Optional


@dataclass
class TabRecord:
    title: Optional[str]
    url: Optional[str]
    browser: Optional[str] = None
