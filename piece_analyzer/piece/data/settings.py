"""Application settings for PIECE Analyzer.

Settings come from dataclass defaults, optionally overridden by a JSON file
and then by environment variables:

    PIECE_STORE_DIR   record store directory
    PIECE_LOG_LEVEL   logging level name (DEBUG, INFO, ...)
    PIECE_REPORT_DIR  default directory for exported reports
"""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

_DEFAULT_STORE_DIR = Path.home() / ".piece_analyzer" / "store"

_ENV_OVERRIDES = {
    "store_dir": "PIECE_STORE_DIR",
    "log_level": "PIECE_LOG_LEVEL",
    "report_dir": "PIECE_REPORT_DIR",
}


@dataclass
class Settings:
    """Runtime settings.

    Attributes:
        store_dir: Root directory of the JSON record store.
        log_level: Logging level name.
        report_dir: Directory for Excel and PDF exports.
        currency_prefix: Symbol used when formatting currency.
    """

    store_dir: str = field(default_factory=lambda: str(_DEFAULT_STORE_DIR))
    log_level: str = "INFO"
    report_dir: str = "."
    currency_prefix: str = "$"

    def __post_init__(self):
        self.log_level = self.log_level.upper()
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ValueError(f"log_level must be a logging level name, got {self.log_level}")

    def to_dict(self) -> dict:
        return {
            "store_dir": self.store_dir,
            "log_level": self.log_level,
            "report_dir": self.report_dir,
            "currency_prefix": self.currency_prefix,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Settings":
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in valid_fields}
        return cls(**filtered)


def load_settings(path: Optional[str] = None) -> Settings:
    """Load settings from an optional JSON file plus environment overrides.

    Args:
        path: JSON settings file. Unknown keys are ignored; a missing file
            is an error only when a path is given explicitly.

    Returns:
        Settings instance.
    """
    data = {}
    if path:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)

    for key, env_var in _ENV_OVERRIDES.items():
        value = os.getenv(env_var)
        if value:
            data[key] = value

    return Settings.from_dict(data)
