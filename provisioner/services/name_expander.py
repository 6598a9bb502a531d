from __future__ import annotations

import os
from datetime import datetime
from typing import Mapping, Optional

from provisioner.services.errors import ProvisionerError


_MARKER_OPEN = "${"
_MARKER_CLOSE = "}"
_ENV_PREFIX = "env."


class ExpansionError(ProvisionerError):
    def __init__(self, message: str, *, pattern: str) -> None:
        super().__init__(message)
        self.pattern = pattern


class UnrecognizedExpression(ExpansionError):
    def __init__(self, expression: str, *, pattern: str) -> None:
        message = f"Unrecognized expression {expression!r} in project name pattern {pattern!r}"
        # Legacy patterns used ${USER}; point at the replacement syntax.
        if expression and expression.isupper() and expression.replace("_", "").isalnum():
            message += f" (did you mean ${{env.{expression}}}?)"
        super().__init__(message, pattern=pattern)
        self.expression = expression


class UnclosedSubstitution(ExpansionError):
    def __init__(self, *, pattern: str) -> None:
        super().__init__(f"Unclosed '${{' in project name pattern {pattern!r}", pattern=pattern)


class EmptyExpansion(ExpansionError):
    def __init__(self, *, pattern: str) -> None:
        super().__init__(f"Project name pattern {pattern!r} expanded to an empty string", pattern=pattern)


def _evaluate(expression: str, *, pattern: str, now: datetime, environ: Mapping[str, str]) -> str:
    if expression == "today":
        return now.strftime("%Y%m%d")
    if expression.startswith(_ENV_PREFIX):
        return environ.get(expression[len(_ENV_PREFIX):], "")
    raise UnrecognizedExpression(expression, pattern=pattern)


def expand_project_name(
    pattern: str,
    *,
    now: Optional[datetime] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> str:
    """Expand ``${...}`` markers in a project name pattern.

    Supported expressions:
    - ``${today}``: the current date as ``YYYYMMDD``.
    - ``${env.NAME}``: the environment variable ``NAME`` (empty if unset).

    The result is lowercased. No other sanitization is done; the pattern author is
    responsible for producing a valid project id (letters, digits, hyphens).

    Raises:
        UnrecognizedExpression: for any other expression.
        UnclosedSubstitution: if a ``${`` has no closing ``}``.
        EmptyExpansion: if the expanded name is empty.
    """

    if now is None:
        now = datetime.now()
    if environ is None:
        environ = os.environ

    parts: list[str] = []
    pos = 0
    while True:
        start = pattern.find(_MARKER_OPEN, pos)
        if start < 0:
            parts.append(pattern[pos:])
            break

        parts.append(pattern[pos:start])
        end = pattern.find(_MARKER_CLOSE, start + len(_MARKER_OPEN))
        if end < 0:
            raise UnclosedSubstitution(pattern=pattern)

        expression = pattern[start + len(_MARKER_OPEN):end]
        parts.append(_evaluate(expression, pattern=pattern, now=now, environ=environ))
        pos = end + len(_MARKER_CLOSE)

    expanded = "".join(parts)
    if not expanded:
        raise EmptyExpansion(pattern=pattern)
    return expanded.lower()


def uses_legacy_syntax(pattern: str) -> bool:
    """True if the pattern relies on the deprecated literal ``YYYYMMDD`` token."""

    return "YYYYMMDD" in pattern
