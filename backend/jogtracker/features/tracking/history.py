"""
Session history.

Ordered collection of completed sessions. Insertion order is completion
order; entries are never removed by the tracker.
"""

import threading
from typing import Iterable, Iterator, List

from .schemas import Session


class SessionHistory:
    """Append-only, thread-safe list of completed sessions."""

    def __init__(self, sessions: Iterable[Session] = ()):
        self._lock = threading.Lock()
        self._sessions: List[Session] = []
        for session in sessions:
            self.append(session)

    def append(self, session: Session) -> None:
        if not session.is_completed:
            raise ValueError(f"Session {session.id} is not completed")
        with self._lock:
            self._sessions.append(session)

    def all(self) -> List[Session]:
        """Copy of the sessions in completion order."""
        with self._lock:
            return list(self._sessions)

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __iter__(self) -> Iterator[Session]:
        return iter(self.all())
