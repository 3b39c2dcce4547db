"""Timestamped logging helpers."""

from __future__ import annotations

import builtins
import sys
import time
from typing import Any

from utils.settings_store import get_settings

_LEVELS = {"DEBUG": 10, "INFO": 20, "WARN": 30, "ERROR": 40}
_ALIASES = {"DEEP": "DEBUG", "WARNING": "WARN"}


def _normalize_level(value: str | None) -> str | None:
    if not value:
        return None
    upper = value.strip().upper()
    upper = _ALIASES.get(upper, upper)
    return upper if upper in _LEVELS else None


def _split_tags(message: str) -> tuple[list[str], str]:
    tags: list[str] = []
    remaining = message.lstrip()
    while remaining.startswith("["):
        end = remaining.find("]")
        if end == -1:
            break
        tag = remaining[1:end].strip()
        if not tag:
            break
        tags.append(tag)
        remaining = remaining[end + 1 :].lstrip()
    return tags, remaining


def _format_message(message: str) -> tuple[str, str]:
    """Return (level, formatted) with the system tag first and level second."""
    tags, remaining = _split_tags(message)
    system = "APP"
    level = "INFO"
    extra_tags: list[str] = []
    if tags:
        first = _normalize_level(tags[0])
        if first:
            level = first
            system = tags[1] if len(tags) > 1 else "APP"
            extra_tags = tags[2:]
        else:
            system = tags[0]
            second = _normalize_level(tags[1]) if len(tags) > 1 else None
            if second:
                level = second
                extra_tags = tags[2:]
            else:
                extra_tags = tags[1:]
    extra = f" [{' '.join(extra_tags)}]" if extra_tags else ""
    suffix = f" {remaining}" if remaining else ""
    return level, f"[{system}][{level}]{extra}{suffix}"


def _threshold() -> int:
    configured = _normalize_level(str(get_settings().get("log_level", "INFO")))
    return _LEVELS[configured or "INFO"]


def tprint(*args: Any, **kwargs: Any) -> None:
    """Print with a timestamp prefix and normalized tag order.

    Lines below the configured ``log_level`` are dropped; WARN and ERROR go to
    stderr unless a ``file`` is given.
    """
    message = " ".join(str(arg) for arg in args)
    level, formatted = _format_message(message)
    if _LEVELS[level] < _threshold():
        return
    if "file" not in kwargs and _LEVELS[level] >= _LEVELS["WARN"]:
        kwargs["file"] = sys.stderr
    timestamp = time.strftime("%Y-%m-%d %H:%M:%S")
    builtins.print(f"[{timestamp}]{formatted}", **kwargs)


def log(system: str, message: str, variant: str | None = None) -> None:
    """Log with explicit system and optional level."""
    if variant:
        tprint(f"[{system}][{variant}] {message}")
    else:
        tprint(f"[{system}] {message}")
