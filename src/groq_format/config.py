"""Configuration file handling for the groq-format CLI."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from groq_format.formatter import DEFAULT_WIDTH


logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = ".groq-format.json"


@dataclass(frozen=True)
class Settings:
    """Effective settings after merging the config file and CLI flags."""

    width: int = DEFAULT_WIDTH
    verbose: bool = False


def load_config(filepath: str) -> tuple[dict[str, object], bool]:
    """Load config from JSON file.

    A missing file is not an error and yields an empty config.

    Args:
        filepath: Path to config file

    Returns:
        Tuple of (config dict, malformed flag)
    """
    try:
        with open(filepath, encoding="utf-8") as f:
            config = json.load(f)
    except FileNotFoundError:
        return ({}, False)
    except OSError:
        return ({}, True)
    except json.JSONDecodeError:
        return ({}, True)

    if not isinstance(config, dict):
        return ({}, True)

    return (config, False)


def validate_config(config: dict[str, object]) -> list[str]:
    """Return a description of every invalid entry in ``config``."""
    problems: list[str] = []
    width = config.get("width")
    if "width" in config and (
        not isinstance(width, int) or isinstance(width, bool) or width < 1
    ):
        problems.append(f"'width' must be a positive integer, got {width!r}")
    verbose = config.get("verbose")
    if "verbose" in config and not isinstance(verbose, bool):
        problems.append(f"'verbose' must be true or false, got {verbose!r}")
    for key in sorted(set(config) - {"width", "verbose"}):
        logger.warning("ignoring unknown config key %r", key)
    return problems


def resolve_settings(
    config: dict[str, object],
    *,
    width: int | None = None,
    verbose: bool = False,
) -> Settings:
    """Merge a validated config with command-line values.

    Command-line values win; ``width=None`` means the flag was not given.
    """
    config_width = config.get("width")
    if width is None:
        width = config_width if isinstance(config_width, int) else DEFAULT_WIDTH
    return Settings(width=width, verbose=verbose or config.get("verbose") is True)
