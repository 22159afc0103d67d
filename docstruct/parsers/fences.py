"""Helpers for pulling JSON out of markdown code fences in model output."""

from __future__ import annotations

import re

_FENCED_BLOCK = re.compile(r"```[ \t]*(?:json|JSON)?[ \t]*\r?\n?(.*?)```", re.DOTALL)
_OPENING_FENCE = re.compile(r"\A```(?:[^\n]*\n|(?:json|JSON)?)")


def extract_fenced_block(text: str) -> str | None:
    """Return the body of the first complete ``` fenced block, or None."""
    match = _FENCED_BLOCK.search(text)
    if match is None:
        return None
    return match.group(1).strip()


def strip_fence(text: str) -> str:
    """Remove a single leading and/or trailing fence line around a document."""
    stripped = _OPENING_FENCE.sub("", text.strip(), count=1)
    if stripped.rstrip().endswith("```"):
        stripped = stripped.rstrip()[:-3]
    return stripped.strip()


def skip_opening_fence(text: str) -> str | None:
    """Drop a leading fence line from text that may still be streaming in.

    Returns None while the fence line itself is incomplete.
    """
    stripped = text.lstrip()
    if not stripped.startswith("`"):
        return text
    newline = stripped.find("\n")
    if newline == -1:
        return None
    return stripped[newline + 1:]
