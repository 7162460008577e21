# Overview: Observer interface for domain events (creation, publish, void, ...).

"""
Workflow event notifications.

Services call notify() after a state change has been written. The default
observer writes one line per event to the "layup.events" logger; tests and
embedding code can install any object with a matching notify() method.

Observers run after commit and must not raise into the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from flask import current_app, has_app_context


EXTENSION_KEY = "layup.event_observer"

events_logger = logging.getLogger("layup.events")


class EventObserver(Protocol):
    def notify(self, event_type: str, **fields: Any) -> None:
        ...


class LoggingObserver:
    """Writes events as key=value lines to a logger."""

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.INFO):
        self.logger = logger or events_logger
        self.level = level

    def notify(self, event_type: str, **fields: Any) -> None:
        payload = " ".join(f"{key}={fields[key]!r}" for key in sorted(fields))
        self.logger.log(self.level, "%s %s", event_type, payload)


class RecordingObserver:
    """Keeps events in memory, in order."""

    def __init__(self):
        self.events: list[tuple[str, dict[str, Any]]] = []

    def notify(self, event_type: str, **fields: Any) -> None:
        self.events.append((event_type, dict(fields)))

    def types(self) -> list[str]:
        return [event_type for event_type, _ in self.events]

    def clear(self) -> None:
        self.events.clear()


def install_observer(app, observer: EventObserver | None = None) -> EventObserver:
    observer = observer or LoggingObserver()
    app.extensions[EXTENSION_KEY] = observer
    return observer


def get_observer() -> EventObserver | None:
    if not has_app_context():
        return None
    return current_app.extensions.get(EXTENSION_KEY)


def emit(event_type: str, *, observer: EventObserver | None = None, **fields: Any) -> None:
    """Deliver an event to the given observer, or the app's installed one."""
    target = observer or get_observer()
    if target is None:
        return
    try:
        target.notify(event_type, **fields)
    except Exception:
        events_logger.exception("Event observer failed for %s", event_type)
