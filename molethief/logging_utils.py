"""Logging utilities for MoleThief runs.

Provides color-coded output to distinguish local computation (map updates,
searches) from calls to the game oracle.
"""

import os
from enum import Enum


class Color(Enum):
    """ANSI color codes for terminal output."""

    # Colors for operation types
    BLUE = "\033[94m"      # Deterministic operations (map, search)
    YELLOW = "\033[93m"    # Oracle calls (observe, move, collect, finish)
    RED = "\033[91m"       # Errors, rejections and retries
    GREEN = "\033[92m"     # Success/completion
    CYAN = "\033[96m"      # Info/metadata

    # Formatting
    BOLD = "\033[1m"
    RESET = "\033[0m"


# Markers for operation types (color-blind accessible)
LOG_TAG_DETERMINISTIC = "[•]"
LOG_TAG_ORACLE = "[→]"
LOG_TAG_ERROR = "[!]"
LOG_TAG_SUCCESS = "[✓]"
LOG_TAG_INFO = "[i]"

_LEVELS = {"DEBUG": 10, "INFO": 20, "WARNING": 30, "ERROR": 40, "QUIET": 50}


def _threshold() -> int:
    return _LEVELS.get(os.getenv("LOG_LEVEL", "INFO").upper(), 20)


def colored(text: str, color: Color, bold: bool = False) -> str:
    """Wrap text in ANSI color codes if colors are enabled.

    Args:
        text: Text to colorize
        color: Color to apply
        bold: Whether to make text bold

    Returns:
        Colorized text if MOLETHIEF_NO_COLOR is not set, otherwise plain text
    """
    if os.getenv("MOLETHIEF_NO_COLOR"):
        return text

    prefix = color.value
    if bold:
        prefix = Color.BOLD.value + prefix

    return f"{prefix}{text}{Color.RESET.value}"


def log_debug(message: str) -> None:
    """Per-step detail, only printed with LOG_LEVEL=DEBUG."""
    if _threshold() <= _LEVELS["DEBUG"]:
        print(colored(f"{LOG_TAG_DETERMINISTIC} {message}", Color.BLUE))


def log_deterministic(message: str) -> None:
    """Log a local computation (blue)."""
    if _threshold() <= _LEVELS["INFO"]:
        print(colored(f"{LOG_TAG_DETERMINISTIC} {message}", Color.BLUE))


def log_oracle(message: str) -> None:
    """Log an oracle call (yellow)."""
    if _threshold() <= _LEVELS["INFO"]:
        print(colored(f"{LOG_TAG_ORACLE} {message}", Color.YELLOW))


def log_error(message: str) -> None:
    """Log an error, rejection or retry (red). Printed at every level."""
    print(colored(f"{LOG_TAG_ERROR} {message}", Color.RED))


def log_success(message: str) -> None:
    """Log a success (green)."""
    if _threshold() <= _LEVELS["INFO"]:
        print(colored(f"{LOG_TAG_SUCCESS} {message}", Color.GREEN))


def log_info(message: str) -> None:
    """Log metadata/info (cyan)."""
    if _threshold() <= _LEVELS["INFO"]:
        print(colored(f"{LOG_TAG_INFO} {message}", Color.CYAN))
