"""Tests for config loading and logging setup."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from groq_format.config import Settings, load_config, resolve_settings, validate_config
from groq_format.logging_config import LOGGER_NAME, configure_logging


class TestLoadConfig:
    def test_missing_file(self, tmp_path: Path) -> None:
        assert load_config(str(tmp_path / "missing.json")) == ({}, False)

    def test_valid_file(self, tmp_path: Path) -> None:
        path = tmp_path / "config.json"
        path.write_text(json.dumps({"width": 100, "verbose": True}))
        assert load_config(str(path)) == ({"width": 100, "verbose": True}, False)

    @pytest.mark.parametrize(
        "content",
        [
            pytest.param("{not json", id="invalid_json"),
            pytest.param("[1, 2]", id="not_an_object"),
        ],
    )
    def test_malformed_file(self, tmp_path: Path, content: str) -> None:
        path = tmp_path / "config.json"
        path.write_text(content)
        assert load_config(str(path)) == ({}, True)

    def test_directory_is_malformed(self, tmp_path: Path) -> None:
        assert load_config(str(tmp_path)) == ({}, True)


class TestValidateConfig:
    def test_valid(self) -> None:
        assert validate_config({"width": 100, "verbose": True}) == []

    @pytest.mark.parametrize(
        ("config", "fragment"),
        [
            pytest.param({"width": 0}, "'width'", id="zero_width"),
            pytest.param({"width": "80"}, "'width'", id="string_width"),
            pytest.param({"width": True}, "'width'", id="bool_width"),
            pytest.param({"verbose": "yes"}, "'verbose'", id="string_verbose"),
        ],
    )
    def test_invalid(self, config: dict[str, object], fragment: str) -> None:
        problems = validate_config(config)
        assert len(problems) == 1
        assert fragment in problems[0]

    def test_unknown_key_is_ignored(
        self, caplog: pytest.LogCaptureFixture, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(logging.getLogger(LOGGER_NAME), "propagate", True)
        with caplog.at_level(logging.WARNING, logger="groq_format.config"):
            assert validate_config({"indent": 4}) == []
        assert "ignoring unknown config key 'indent'" in caplog.text


class TestResolveSettings:
    def test_defaults(self) -> None:
        assert resolve_settings({}) == Settings(width=80, verbose=False)

    def test_config_values(self) -> None:
        assert resolve_settings({"width": 100, "verbose": True}) == Settings(100, True)

    def test_flags_win(self) -> None:
        settings = resolve_settings({"width": 100}, width=40, verbose=True)
        assert settings == Settings(width=40, verbose=True)


def _installed(logger: logging.Logger) -> list[logging.Handler]:
    return [handler for handler in logger.handlers if handler.get_name() == LOGGER_NAME]


class TestConfigureLogging:
    def test_verbose_enables_debug(self) -> None:
        configure_logging(True)
        logger = logging.getLogger(LOGGER_NAME)
        try:
            assert logger.level == logging.DEBUG
            assert len(_installed(logger)) == 1
            configure_logging(True)
            assert len(_installed(logger)) == 1
        finally:
            configure_logging(False)

    def test_quiet_removes_stderr_handler(self) -> None:
        configure_logging(True)
        configure_logging(False)
        logger = logging.getLogger(LOGGER_NAME)
        assert logger.level == logging.WARNING
        assert _installed(logger) == []

    def test_foreign_handlers_are_kept(self) -> None:
        logger = logging.getLogger(LOGGER_NAME)
        foreign = logging.StreamHandler()
        logger.addHandler(foreign)
        try:
            configure_logging(True)
            assert len(_installed(logger)) == 1
            configure_logging(False)
            assert foreign in logger.handlers
            assert _installed(logger) == []
        finally:
            logger.removeHandler(foreign)
