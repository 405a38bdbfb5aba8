"""Registry of request paths that skip authentication middleware."""

from __future__ import annotations

import functools
import logging
import re
import threading
from collections.abc import Callable
from typing import Any

logger = logging.getLogger(__name__)

_lock = threading.Lock()
_bypass_paths: set[str] = set()


class BadPatternError(ValueError):
    """Raised for a malformed path pattern."""


def _get_esc(pattern: str, pos: int) -> tuple[str, int]:
    end = len(pattern)
    if pos >= end or pattern[pos] in "-]":
        raise BadPatternError(f"syntax error in pattern: {pattern!r}")
    if pattern[pos] == "\\":
        pos += 1
        if pos >= end:
            raise BadPatternError(f"syntax error in pattern: {pattern!r}")
    char = pattern[pos]
    pos += 1
    if pos >= end:
        raise BadPatternError(f"syntax error in pattern: {pattern!r}")
    return char, pos


def _translate_class(pattern: str, pos: int) -> tuple[str, int]:
    negated = pos < len(pattern) and pattern[pos] == "^"
    if negated:
        pos += 1
    ranges: list[tuple[str, str]] = []
    while True:
        if pos < len(pattern) and pattern[pos] == "]" and ranges:
            pos += 1
            break
        low, pos = _get_esc(pattern, pos)
        high = low
        if pattern[pos] == "-":
            high, pos = _get_esc(pattern, pos + 1)
        ranges.append((low, high))
    usable = [f"{re.escape(low)}-{re.escape(high)}" for low, high in ranges if low <= high]
    if not usable:
        return ("(?s:.)" if negated else "(?!)"), pos
    return "[" + ("^" if negated else "") + "".join(usable) + "]", pos


@functools.lru_cache(maxsize=256)
def _compile(pattern: str) -> re.Pattern[str]:
    parts: list[str] = []
    pos, end = 0, len(pattern)
    while pos < end:
        char = pattern[pos]
        if char == "*":
            parts.append("[^/]*")
            pos += 1
        elif char == "?":
            parts.append("[^/]")
            pos += 1
        elif char == "\\":
            if pos + 1 >= end:
                raise BadPatternError(f"syntax error in pattern: {pattern!r}")
            parts.append(re.escape(pattern[pos + 1]))
            pos += 2
        elif char == "[":
            regex, pos = _translate_class(pattern, pos + 1)
            parts.append(regex)
        else:
            parts.append(re.escape(char))
            pos += 1
    return re.compile("".join(parts), re.DOTALL)


def path_match(pattern: str, name: str) -> bool:
    """Match ``name`` against a shell pattern where ``*`` and ``?`` stop at ``/``.

    Raises BadPatternError when the pattern is malformed.
    """
    return _compile(pattern).fullmatch(name) is not None


def add_bypass_path(path: str) -> None:
    """Register a path or pattern (e.g. ``/api/*``) that bypasses middleware."""
    try:
        _compile(path)
    except BadPatternError as err:
        raise BadPatternError(f"validate: {err}") from None
    with _lock:
        _bypass_paths.add(path)


def remove_path(path: str) -> None:
    """Unregister a bypass path."""
    with _lock:
        _bypass_paths.discard(path)


def get_list() -> list[str]:
    """Return all registered bypass paths."""
    with _lock:
        return list(_bypass_paths)


def should_bypass(request_path: str, handler: Callable[..., Any], *args: Any) -> bool:
    """If ``request_path`` matches a bypass path, call ``handler(*args)`` and return True."""
    with _lock:
        patterns = list(_bypass_paths)
    for pattern in patterns:
        try:
            matched = path_match(pattern, request_path)
        except BadPatternError as err:
            logger.error(
                "Error matching path %s with %s from %s: %s", pattern, request_path, patterns, err
            )
            continue
        if matched:
            handler(*args)
            return True
    return False