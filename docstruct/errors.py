"""Error taxonomy shared by the dataset loader and the output parsers.

Each error carries a stable `error_code` so callers can branch on the failure
kind without string matching. Errors are raised where they are detected and
are never retried locally.
"""

from __future__ import annotations

from typing import Any


class DocstructError(Exception):
    """Base class for all docstruct errors."""

    error_code = "docstruct_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:  # pragma: no cover - trivial
        return f"{self.error_code}: {self.message}"


class ConfigurationError(DocstructError):
    """Invalid or ambiguous configuration, detected at construction time."""

    error_code = "configuration_error"


class NotFoundError(DocstructError):
    """A dataset selector resolved to nothing."""

    error_code = "not_found"


class TransportError(DocstructError):
    """The dataset service call failed (network, HTTP status, auth).

    The originating httpx exception is chained as `__cause__`; this class only
    adds the call context.
    """

    error_code = "transport_error"

    def __init__(
        self,
        message: str,
        *,
        method: str,
        url: str,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.url = url
        self.status_code = status_code


class ParseError(DocstructError):
    """Model output could not be decoded or did not match the schema.

    `raw_text` is always the full offending text so the failure can be
    diagnosed after the fact.
    """

    error_code = "parse_error"

    def __init__(
        self,
        message: str,
        raw_text: str,
        parse_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.raw_text = raw_text
        self.parse_error = parse_error

    @property
    def details(self) -> dict[str, Any]:
        return {
            "error_code": self.error_code,
            "message": self.message,
            "raw_excerpt": self.raw_text[:200],
        }
