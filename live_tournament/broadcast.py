"""Bracket-changed notifications for connected Socket.IO clients."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Final, Protocol

from flask_socketio import SocketIO

TOURNAMENT_STARTED: Final = "tournament_started"
TOURNAMENT_UPDATED: Final = "tournament_updated"
TOURNAMENT_RESET: Final = "tournament_reset"
TOURNAMENT_COMPLETED: Final = "tournament_completed"
QUESTIONS_UPDATED: Final = "tournament_questions_updated"
QUESTION_PHASE_STARTED: Final = "tournament_match_question_phase_started"
ANSWERS_SUBMITTED: Final = "tournament_match_answers_submitted"
MATCH_COMPLETED: Final = "tournament_match_completed"


class Broadcaster(Protocol):
    def emit(self, event: str, payload: dict[str, object] | None = None) -> None: ...


class SocketIOBroadcaster:
    """Fan events out to every client through a Flask-SocketIO server."""

    def __init__(self, socketio: SocketIO, *, namespace: str | None = None) -> None:
        self._socketio = socketio
        self._namespace = namespace

    def emit(self, event: str, payload: dict[str, object] | None = None) -> None:
        if payload is None:
            self._socketio.emit(event, namespace=self._namespace)
        else:
            self._socketio.emit(event, payload, namespace=self._namespace)


@dataclass
class RecordingBroadcaster:
    events: list[tuple[str, dict[str, object] | None]] = field(default_factory=list)

    def emit(self, event: str, payload: dict[str, object] | None = None) -> None:
        self.events.append((event, payload))

    def names(self) -> list[str]:
        return [name for name, _ in self.events]


__all__ = [
    "Broadcaster",
    "SocketIOBroadcaster",
    "RecordingBroadcaster",
    "TOURNAMENT_STARTED",
    "TOURNAMENT_UPDATED",
    "TOURNAMENT_RESET",
    "TOURNAMENT_COMPLETED",
    "QUESTIONS_UPDATED",
    "QUESTION_PHASE_STARTED",
    "ANSWERS_SUBMITTED",
    "MATCH_COMPLETED",
]
