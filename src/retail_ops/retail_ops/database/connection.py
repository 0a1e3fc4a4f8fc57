from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, Optional

import mysql.connector

from ..core.exceptions import PersistenceError


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    isolation_level: str = "SERIALIZABLE"


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Repositories open short-lived connections per operation, unless a
    ``transaction()`` block is open on the current thread, in which case every
    repository call inside it shares that block's connection.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config
        self._local = threading.local()

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        return cls._instance

    def connect(self):
        try:
            return mysql.connector.connect(
                host=self._config.host,
                port=int(self._config.port),
                user=self._config.user,
                password=self._config.password,
                database=self._config.database,
            )
        except mysql.connector.Error as exc:
            raise PersistenceError(str(exc), cause=exc) from exc

    def current(self):
        """Connection of the open transaction on this thread, or None."""
        return getattr(self._local, "conn", None)

    @contextmanager
    def transaction(self) -> Iterator[None]:
        # Nested blocks join the outer transaction.
        if self.current() is not None:
            yield
            return

        conn = self.connect()
        self._local.conn = conn
        try:
            try:
                conn.start_transaction(isolation_level=self._config.isolation_level)
                yield
                conn.commit()
            except mysql.connector.Error as exc:
                conn.rollback()
                raise PersistenceError(str(exc), cause=exc) from exc
            except BaseException:
                conn.rollback()
                raise
        finally:
            self._local.conn = None
            conn.close()
