"""Tests for settings loading and formatting helpers."""

import json

import pytest

from piece.data.settings import Settings, load_settings
from piece.utils.formatters import (
    format_currency,
    format_currency_short,
    format_number,
    format_percent,
    format_periods,
)


class TestSettings:
    def test_defaults(self, monkeypatch):
        """Without file or environment, defaults apply."""
        for var in ("PIECE_STORE_DIR", "PIECE_LOG_LEVEL", "PIECE_REPORT_DIR"):
            monkeypatch.delenv(var, raising=False)
        settings = load_settings()
        assert settings.log_level == "INFO"
        assert settings.store_dir.endswith("store")
        assert settings.report_dir == "."

    def test_file_then_env(self, tmp_path, monkeypatch):
        """Environment variables override the settings file."""
        path = tmp_path / "settings.json"
        path.write_text(json.dumps({"store_dir": "/from/file", "log_level": "debug",
                                    "unknown": 1}), encoding="utf-8")
        monkeypatch.setenv("PIECE_STORE_DIR", "/from/env")
        monkeypatch.delenv("PIECE_LOG_LEVEL", raising=False)

        settings = load_settings(str(path))
        assert settings.store_dir == "/from/env"
        assert settings.log_level == "DEBUG"

    def test_bad_level(self):
        with pytest.raises(ValueError):
            Settings(log_level="LOUD")

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_settings(str(tmp_path / "nope.json"))


class TestFormatters:
    def test_currency(self):
        assert format_currency(1234567) == "$1,234,567"
        assert format_currency(-45.45) == "-$45"
        assert format_currency(-45.454, decimals=2) == "-$45.45"

    def test_currency_short(self):
        assert format_currency_short(12_500_000) == "$12.5M"
        assert format_currency_short(-3_000) == "-$3.0K"
        assert format_currency_short(2.5e9) == "$2.5B"
        assert format_currency_short(950) == "$950"

    def test_percent(self):
        assert format_percent(0.08) == "8.0%"
        assert format_percent(None) == "N/A"

    def test_number_and_periods(self):
        assert format_number(1234.4) == "1,234"
        assert format_periods(2.54, "periods") == "2.5 periods"
        assert format_periods(None) == "N/A"
