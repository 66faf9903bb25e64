from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import mysql.connector

from ..core.constants import DEFAULT_CONNECT_TIMEOUT, DEFAULT_LOCK_WAIT_TIMEOUT


@dataclass
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT
    lock_wait_timeout: int = DEFAULT_LOCK_WAIT_TIMEOUT

    @classmethod
    def from_dict(cls, db_config: dict, *, lock_wait_timeout: Optional[int] = None) -> "DBConfig":
        return cls(
            host=str(db_config["host"]),
            port=int(db_config.get("port", 3306)),
            user=str(db_config["user"]),
            password=str(db_config["password"]),
            database=str(db_config["database"]),
            connect_timeout=int(db_config.get("connect_timeout", DEFAULT_CONNECT_TIMEOUT)),
            lock_wait_timeout=int(lock_wait_timeout or DEFAULT_LOCK_WAIT_TIMEOUT),
        )


class DatabaseConnection:
    """Singleton-like DB connection factory.

    Note: We create short-lived connections per unit of work. Every connection
    gets a bounded connect timeout and row-lock wait, so a stuck writer for one
    employee surfaces as an error instead of blocking the caller forever.
    """

    _instance: Optional["DatabaseConnection"] = None

    def __init__(self, config: DBConfig):
        self._config = config

    @classmethod
    def get_instance(cls, config: DBConfig) -> "DatabaseConnection":
        if cls._instance is None:
            cls._instance = DatabaseConnection(config)
        elif cls._instance.config != config:
            raise ValueError("DatabaseConnection already configured for a different database")
        return cls._instance

    @property
    def config(self) -> DBConfig:
        return self._config

    def connect(self):
        conn = mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
            connection_timeout=int(self._config.connect_timeout),
            autocommit=False,
        )
        cur = conn.cursor()
        try:
            cur.execute(f"SET SESSION innodb_lock_wait_timeout = {int(self._config.lock_wait_timeout)}")
        finally:
            cur.close()
        return conn
