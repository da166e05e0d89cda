"""
Persistence gateways.

Durable key/value storage for the three tracker records (session list,
app snapshot, backup). Values are JSON text; validation happens one layer
up in SessionStore.

Implementations:
- SqlKeyValueGateway: SQLAlchemy table (default)
- JsonFileGateway: one <key>.json file per record
- InMemoryGateway: dict, for tests and throwaway runs

Every backend failure surfaces as PersistenceError so callers have one
thing to catch.
"""

import logging
import os
import tempfile
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from jogtracker.config import Settings
from jogtracker.db import create_db_engine, create_session_factory, init_db
from jogtracker.models import KeyValueRecord

logger = logging.getLogger(__name__)


class PersistenceError(Exception):
    """Storage backend failed to read or write a record."""

    def __init__(self, key: str, message: str):
        self.key = key
        super().__init__(f"{key}: {message}")


class PersistenceGateway(ABC):
    """
    Key/value store contract.

    `get` returns None for an absent key. Failures raise PersistenceError.
    """

    @abstractmethod
    def put(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def delete(self, key: str) -> None:
        ...

    @abstractmethod
    def keys(self) -> list[str]:
        ...


# =============================================================================
# In-memory
# =============================================================================

class InMemoryGateway(PersistenceGateway):
    """Dict-backed gateway."""

    def __init__(self, initial: Optional[dict[str, str]] = None):
        self._data: dict[str, str] = dict(initial or {})
        self._lock = threading.Lock()

    def put(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def delete(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._data)


# =============================================================================
# JSON files
# =============================================================================

class JsonFileGateway(PersistenceGateway):
    """
    One file per key under `directory`.

    Writes go to a temp file in the same directory and are moved into place
    with os.replace, so a crash mid-write leaves the previous value intact.
    """

    SUFFIX = ".json"

    def __init__(self, directory: Path):
        self.directory = Path(directory)
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / f"{key}{self.SUFFIX}"

    def put(self, key: str, value: str) -> None:
        try:
            fd, tmp = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    f.write(value)
                os.replace(tmp, self._path(key))
            except BaseException:
                if os.path.exists(tmp):
                    os.unlink(tmp)
                raise
        except OSError as e:
            raise PersistenceError(key, str(e)) from e

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceError(key, str(e)) from e

    def delete(self, key: str) -> None:
        try:
            self._path(key).unlink(missing_ok=True)
        except OSError as e:
            raise PersistenceError(key, str(e)) from e

    def keys(self) -> list[str]:
        try:
            with os.scandir(self.directory) as entries:
                names = [e.name for e in entries if e.is_file()]
        except OSError as e:
            raise PersistenceError("*", str(e)) from e
        return sorted(
            n[: -len(self.SUFFIX)] for n in names
            if n.endswith(self.SUFFIX) and not n.startswith(".")
        )


# =============================================================================
# SQLAlchemy
# =============================================================================

class SqlKeyValueGateway(PersistenceGateway):
    """
    Records stored in the `kv_store` table.

    Usage:
        engine = create_db_engine("sqlite:///./jogtracker.db")
        init_db(engine)
        gateway = SqlKeyValueGateway(create_session_factory(engine))
    """

    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def put(self, key: str, value: str) -> None:
        try:
            with self.session_factory() as db:
                record = db.get(KeyValueRecord, key)
                if record is None:
                    db.add(KeyValueRecord(key=key, value=value))
                else:
                    record.value = value
                db.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(key, str(e)) from e

    def get(self, key: str) -> Optional[str]:
        try:
            with self.session_factory() as db:
                record = db.get(KeyValueRecord, key)
                return record.value if record else None
        except SQLAlchemyError as e:
            raise PersistenceError(key, str(e)) from e

    def delete(self, key: str) -> None:
        try:
            with self.session_factory() as db:
                record = db.get(KeyValueRecord, key)
                if record is not None:
                    db.delete(record)
                    db.commit()
        except SQLAlchemyError as e:
            raise PersistenceError(key, str(e)) from e

    def keys(self) -> list[str]:
        try:
            with self.session_factory() as db:
                return list(db.scalars(select(KeyValueRecord.key).order_by(KeyValueRecord.key)))
        except SQLAlchemyError as e:
            raise PersistenceError("*", str(e)) from e


def create_gateway(settings: Settings) -> PersistenceGateway:
    """Build the gateway selected by `settings.storage_backend`."""
    if settings.storage_backend == "memory":
        logger.info("Using in-memory storage")
        return InMemoryGateway()

    if settings.storage_backend == "json":
        logger.info(f"Using JSON file storage in {settings.storage_dir}")
        return JsonFileGateway(settings.storage_dir)

    engine = create_db_engine(settings.database_url)
    init_db(engine)
    logger.info(f"Using database storage: {engine.url.render_as_string(hide_password=True)}")
    return SqlKeyValueGateway(create_session_factory(engine))
