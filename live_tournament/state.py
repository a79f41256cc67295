"""Process-wide audience feature toggles behind explicit accessors."""

from __future__ import annotations

import threading
from dataclasses import asdict, dataclass

from .config import env_bool

FLAG_NAMES: tuple[str, ...] = (
    "audience_qa_active",
    "word_cloud_active",
    "ranking_visible",
    "audience_data_active",
)


@dataclass(slots=True)
class SessionFlags:
    audience_qa_active: bool = False
    word_cloud_active: bool = False
    ranking_visible: bool = False
    audience_data_active: bool = False


class SessionState:
    def __init__(self, flags: SessionFlags | None = None) -> None:
        self._flags = flags or SessionFlags()
        self._lock = threading.Lock()

    @classmethod
    def from_env(cls) -> SessionState:
        return cls(
            SessionFlags(
                audience_qa_active=env_bool("AUDIENCE_QA_ACTIVE"),
                word_cloud_active=env_bool("WORD_CLOUD_ACTIVE"),
                ranking_visible=env_bool("RANKING_VISIBLE"),
                audience_data_active=env_bool("AUDIENCE_DATA_ACTIVE"),
            )
        )

    def get(self, name: str) -> bool:
        self._check(name)
        with self._lock:
            return bool(getattr(self._flags, name))

    def set(self, name: str, value: bool) -> bool:
        """Set a flag and return its previous value."""
        self._check(name)
        with self._lock:
            previous = bool(getattr(self._flags, name))
            setattr(self._flags, name, bool(value))
            return previous

    def snapshot(self) -> dict[str, bool]:
        with self._lock:
            return asdict(self._flags)

    @staticmethod
    def _check(name: str) -> None:
        if name not in FLAG_NAMES:
            raise KeyError(f"Unknown session flag: {name}")


__all__ = ["FLAG_NAMES", "SessionFlags", "SessionState"]
