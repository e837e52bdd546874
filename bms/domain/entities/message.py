"""Value objects exchanged between templates and channel senders."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RenderedMessage:
    """Channel-ready rendering of a notification."""

    subject: str
    body: str
    html_body: str | None = None
    link: str | None = None


@dataclass(frozen=True)
class SendResult:
    """Outcome reported by a channel sender."""

    success: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> "SendResult":
        return cls(success=True)

    @classmethod
    def failed(cls, error: str) -> "SendResult":
        return cls(success=False, error=error)


__all__ = ["RenderedMessage", "SendResult"]
