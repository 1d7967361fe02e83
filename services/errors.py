"""Errors raised while talking to, or interpreting, the upstream API."""

from __future__ import annotations

from typing import Optional


class UpstreamError(Exception):
    """Base error for upstream failures; the message is shown to clients."""

    def __init__(self, message: str, upstream_path: Optional[str] = None) -> None:
        super().__init__(message)
        self.upstream_path = upstream_path


class UpstreamStatusError(UpstreamError):
    """Raised when upstream answers with a non-2xx status."""

    def __init__(self, status_code: int, body: str, upstream_path: Optional[str] = None) -> None:
        super().__init__(f"Upstream responded {status_code}: {body}", upstream_path)
        self.status_code = status_code
        self.body = body


class UpstreamUnavailableError(UpstreamError):
    """Raised when the request never produced a response."""


class MalformedPayloadError(UpstreamError):
    """Raised when an upstream body cannot be interpreted."""


class EmptyReadingsError(MalformedPayloadError):
    """Raised when a measurements payload carries no readings."""

    def __init__(self, upstream_path: Optional[str] = None) -> None:
        super().__init__("Upstream measurements payload contains no readings.", upstream_path)
