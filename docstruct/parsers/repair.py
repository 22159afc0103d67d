"""
Repair of truncated JSON text.

`repair` turns the prefix of a JSON document into a syntactically closed
document holding only the values that can no longer change as more text
arrives. It never decodes anything itself; `json.loads` on the result is left
to the caller.

Closeable truncations:
- Inside a string value: the string is closed. A dangling backslash or an
  incomplete \\uXXXX escape is dropped first, as is a high surrogate whose
  low half has not arrived yet.
- Anywhere else: the text is cut back to the last cut point and every open
  object/array is closed. Cut points are right after an opening bracket and
  right after a complete value in value position.

So partial keys, keys waiting for a value, trailing commas, partial literals
(`tru`) and numbers at the very end of the text (which may still grow) are
dropped. Text after the first malformed character is ignored, as is anything
following a complete top-level value (such as a closing fence). Nesting deeper
than MAX_DEPTH counts as malformed.
"""

from __future__ import annotations

import re

from docstruct.parsers.fences import skip_opening_fence

MAX_DEPTH = 512

_WHITESPACE = " \t\r\n"
_VALUE_END = _WHITESPACE + ",]}"
_LITERALS = ("true", "false", "null")
_NUMBER = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?")
_HEX = frozenset("0123456789abcdefABCDEF")
_SIMPLE_ESCAPES = frozenset('"\\/bfnrt')

# Container states
_KEY_OR_END = "key_or_end"
_KEY = "key"
_COLON = "colon"
_VALUE = "value"
_VALUE_OR_END = "value_or_end"
_COMMA_OR_END = "comma_or_end"

_VALUE_STATES = (_VALUE, _VALUE_OR_END)
_CLOSEABLE_STATES = (_KEY_OR_END, _VALUE_OR_END, _COMMA_OR_END)


def _awaits_low_surrogate(rest: str) -> bool:
    """True when `rest` could still grow into the \\uXXXX low half of a surrogate pair."""
    if len(rest) >= 6:
        return False
    return "\\u".startswith(rest[:2]) and all(c in _HEX for c in rest[2:])


def _scan_string(text: str, start: int) -> tuple[str, int]:
    """Scan the string opening at `start`.

    Returns ("closed", index after the closing quote), ("open", index where a
    safe truncation of the unterminated string ends) or ("bad", start).
    """
    n = len(text)
    i = start + 1
    while i < n:
        ch = text[i]
        if ch == '"':
            return "closed", i + 1
        if ch == "\\":
            if i + 1 >= n:
                return "open", i
            esc = text[i + 1]
            if esc == "u":
                digits = text[i + 2:i + 6]
                if not all(c in _HEX for c in digits):
                    return "bad", start
                if len(digits) < 4:
                    return "open", i
                if 0xD800 <= int(digits, 16) <= 0xDBFF and _awaits_low_surrogate(text[i + 6:]):
                    return "open", i
                i += 6
                continue
            if esc not in _SIMPLE_ESCAPES:
                return "bad", start
            i += 2
            continue
        if ord(ch) < 0x20:
            return "bad", start
        i += 1
    return "open", n


def repair(text: str) -> str | None:
    """Close a possibly truncated JSON document.

    Returns None when no part of the text is decodable yet.
    """
    body = skip_opening_fence(text)
    if body is None:
        return None

    # Each frame is [opening bracket, state].
    frames: list[list[str]] = []
    top_done = False
    cut: tuple[int, str] | None = None

    def closers() -> str:
        return "".join("}" if kind == "{" else "]" for kind, _ in reversed(frames))

    def value_done(end: int) -> None:
        nonlocal top_done, cut
        if frames:
            frames[-1][1] = _COMMA_OR_END
        else:
            top_done = True
        cut = (end, closers())

    n = len(body)
    i = 0
    while i < n:
        ch = body[i]
        if ch in _WHITESPACE:
            i += 1
            continue
        if top_done:
            break
        state = frames[-1][1] if frames else _VALUE

        if ch == '"':
            is_key = state in (_KEY, _KEY_OR_END)
            if not is_key and state not in _VALUE_STATES:
                break
            status, end = _scan_string(body, i)
            if status == "bad":
                break
            if status == "open":
                if is_key:
                    break
                return body[:end] + '"' + closers()
            i = end
            if is_key:
                frames[-1][1] = _COLON
            else:
                value_done(i)
            continue

        if ch in "{[":
            if state not in _VALUE_STATES or len(frames) >= MAX_DEPTH:
                break
            frames.append([ch, _KEY_OR_END if ch == "{" else _VALUE_OR_END])
            i += 1
            cut = (i, closers())
            continue

        if ch in "}]":
            if not frames or state not in _CLOSEABLE_STATES:
                break
            if (frames[-1][0] == "{") != (ch == "}"):
                break
            frames.pop()
            i += 1
            value_done(i)
            continue

        if ch == ":":
            if state != _COLON:
                break
            frames[-1][1] = _VALUE
            i += 1
            continue

        if ch == ",":
            if state != _COMMA_OR_END:
                break
            frames[-1][1] = _KEY if frames[-1][0] == "{" else _VALUE
            i += 1
            continue

        if state not in _VALUE_STATES:
            break

        if ch == "-" or ch.isdigit():
            match = _NUMBER.match(body, i)
            if match is None:
                break
            end = match.end()
            if end >= n or body[end] not in _VALUE_END:
                break
            i = end
            value_done(i)
            continue

        literal = next((lit for lit in _LITERALS if body.startswith(lit, i)), None)
        if literal is None:
            break
        i += len(literal)
        value_done(i)

    if cut is None:
        return None
    end, close = cut
    return body[:end].strip() + close
