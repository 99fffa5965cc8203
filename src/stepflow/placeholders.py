"""
Placeholder substitution.

Two token styles exist:

- ``<<name>>`` is applied once to the whole workflow document before it is
  parsed.
- ``{{name}}`` is applied to a single command right before it runs, so each
  task can resolve it against its own variables.

Replacement is plain substring replacement. Unknown tokens are left as they
are and replaced values are never expanded a second time.
"""

from __future__ import annotations

import re
from typing import Dict, List, Mapping, Optional

ANGLE = ("<<", ">>")
CURLY = ("{{", "}}")

_NAME = r"(.+?)"


def resolve_variables(
    overrides: Optional[Mapping[str, object]] = None,
    defaults: Optional[Mapping[str, object]] = None,
) -> Dict[str, str]:
    """Merge variables; a key in overrides always beats the same key in defaults."""
    merged: Dict[str, str] = {}
    for key, value in (defaults or {}).items():
        merged[str(key)] = _as_text(value)
    for key, value in (overrides or {}).items():
        merged[str(key)] = _as_text(value)
    return merged


def _as_text(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def token(name: str, style: tuple[str, str] = CURLY) -> str:
    open_, close = style
    return f"{open_}{name}{close}"


def substitute(text: str, variables: Mapping[str, str], style: tuple[str, str] = CURLY) -> str:
    """
    Replace every literal token of the given style whose name is in variables.

    All tokens are matched against the original text in a single pass, so a
    value that itself contains a token comes out literally.
    """
    if not variables or style[0] not in text:
        return text

    lookup = {token(name, style): value for name, value in variables.items()}
    # longest first so a token is never shadowed by a shorter alternative
    alternatives = sorted(lookup, key=len, reverse=True)
    pattern = re.compile("|".join(re.escape(t) for t in alternatives))
    return pattern.sub(lambda m: lookup[m.group(0)], text)


def substitute_document(text: str, variables: Mapping[str, str]) -> str:
    return substitute(text, variables, ANGLE)


def substitute_command(command: str, variables: Mapping[str, str]) -> str:
    return substitute(command, variables, CURLY)


def find_placeholders(text: str, style: tuple[str, str] = CURLY) -> List[str]:
    """Names of the tokens of the given style still present in text, in order, no repeats."""
    pattern = re.compile(re.escape(style[0]) + _NAME + re.escape(style[1]))
    seen: List[str] = []
    for match in pattern.finditer(text):
        if match.group(1) not in seen:
            seen.append(match.group(1))
    return seen
