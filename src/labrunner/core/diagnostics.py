"""Diagnostic abstractions shared across the journal pipeline."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from typing import Any, Protocol, runtime_checkable


logger = logging.getLogger(__name__)


@runtime_checkable
class DiagnosticEmitter(Protocol):
    """Interface used to surface warnings, errors, and structured events."""

    debug_enabled: bool

    def warning(self, message: str, exc: BaseException | None = None) -> None: ...

    def error(self, message: str, exc: BaseException | None = None) -> None: ...

    def event(self, name: str, payload: Mapping[str, Any]) -> None: ...


class NullEmitter:
    """Emitter that ignores every diagnostic."""

    debug_enabled: bool = False

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        return

    def error(self, message: str, exc: BaseException | None = None) -> None:
        return

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        return


class LoggingEmitter:
    """Emitter that forwards diagnostics to the standard logging module."""

    def __init__(
        self, *, logger_obj: logging.Logger | None = None, debug_enabled: bool = False
    ) -> None:
        self._logger = logger_obj or logger
        self.debug_enabled = debug_enabled

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        if exc is not None:
            self._logger.warning(message, exc_info=exc)
        else:
            self._logger.warning(message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        if exc is not None:
            self._logger.error(message, exc_info=exc)
        else:
            self._logger.error(message)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        message = format_event_message(name, payload)
        if message:
            self._logger.info(message)
            return
        self._logger.debug("diagnostic event %s: %s", name, dict(payload))


def ensure_emitter(candidate: Any) -> DiagnosticEmitter:
    """Return a usable emitter, defaulting to logging."""
    if isinstance(candidate, DiagnosticEmitter):
        return candidate
    return LoggingEmitter()


def format_event_message(name: str, payload: Mapping[str, Any]) -> str | None:
    """Return a human-friendly summary for selected diagnostic events."""
    data = dict(payload)

    if name == "document_generate":
        return f"Generating '{data.get('output') or '<unknown>'}'"

    if name == "document_skip":
        return f"Up to date: '{data.get('source') or '<unknown>'}'"

    if name == "document_failed":
        source = data.get("source") or "<unknown>"
        reason = data.get("reason")
        suffix = f": {reason}" if reason else ""
        return f"Skipped '{source}' after evaluation failure{suffix}"

    if name == "asset_fetch":
        url = data.get("url") or "<unknown>"
        target = data.get("target")
        suffix = f" -> {target}" if target else ""
        return f"Fetching: {url}{suffix}"

    if name == "landing_page":
        page = data.get("page") or "<unknown>"
        reason = data.get("reason")
        suffix = f" ({reason})" if reason else ""
        return f"Entry page: {page}{suffix}"

    return None


__all__ = [
    "DiagnosticEmitter",
    "LoggingEmitter",
    "NullEmitter",
    "ensure_emitter",
    "format_event_message",
]
