"""
Live position feed contract.

A feed delivers Fix events one at a time. The tracking service starts and
stops it in lockstep with the session lifecycle.
"""

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Iterable, Optional

from pydantic import TypeAdapter, ValidationError

from jogtracker.features.tracking.schemas import Fix

logger = logging.getLogger(__name__)

FixCallback = Callable[[Fix], None]
ErrorCallback = Callable[[str], None]

_FIX_LIST = TypeAdapter(list[Fix])


class LocationFeed(ABC):
    """Source of live fixes."""

    @abstractmethod
    def start(self, on_fix: FixCallback, on_error: ErrorCallback) -> None:
        ...

    @abstractmethod
    def stop(self) -> None:
        ...

    @property
    @abstractmethod
    def is_running(self) -> bool:
        ...


class ReplayLocationFeed(LocationFeed):
    """
    Feed backed by a recorded list of fixes.

    Fixes are delivered synchronously through `deliver()`, one per call, so
    the caller controls pacing (and the clock).
    """

    def __init__(self, fixes: Iterable[Fix]):
        self._fixes = list(fixes)
        self._cursor = 0
        self._on_fix: Optional[FixCallback] = None
        self._on_error: Optional[ErrorCallback] = None

    @classmethod
    def from_file(cls, path: Path) -> "ReplayLocationFeed":
        """
        Load a JSON array of fixes ({latitude, longitude, timestampMs}).

        Raises:
            ValueError: file is not a valid fix list
        """
        try:
            fixes = _FIX_LIST.validate_json(Path(path).read_bytes())
        except ValidationError as e:
            raise ValueError(f"{path}: not a list of fixes ({e.error_count()} errors)") from e
        return cls(fixes)

    @property
    def is_running(self) -> bool:
        return self._on_fix is not None

    @property
    def remaining(self) -> int:
        return len(self._fixes) - self._cursor

    def peek(self) -> Optional[Fix]:
        """Next fix to be delivered, without consuming it."""
        if self._cursor >= len(self._fixes):
            return None
        return self._fixes[self._cursor]

    def start(self, on_fix: FixCallback, on_error: ErrorCallback) -> None:
        self._on_fix = on_fix
        self._on_error = on_error

    def stop(self) -> None:
        self._on_fix = None
        self._on_error = None

    def deliver(self) -> bool:
        """
        Push the next recorded fix to the subscriber.

        Returns:
            False when stopped or exhausted
        """
        if self._on_fix is None or self._cursor >= len(self._fixes):
            return False
        fix = self._fixes[self._cursor]
        self._cursor += 1
        self._on_fix(fix)
        return True

    def fail(self, message: str) -> None:
        """Report a feed error to the subscriber."""
        if self._on_error is not None:
            self._on_error(message)


def dump_fixes(fixes: Iterable[Fix]) -> str:
    """Serialize fixes in the format `from_file` reads."""
    return json.dumps([f.to_json_dict() for f in fixes], indent=2)
