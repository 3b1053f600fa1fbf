from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

import mysql.connector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    charset: str = "utf8mb4"
    connection_timeout: int = 10

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "workforce_payroll")),
            charset=str(db_config.get("charset", "utf8mb4")),
            connection_timeout=int(db_config.get("connection_timeout", 10)),
        )

    def describe(self) -> str:
        """``user@host:port/database``, safe to log."""
        return f"{self.user}@{self.host}:{self.port}/{self.database}"

    def connect_kwargs(self, *, with_database: bool = True) -> dict[str, Any]:
        # Pure-python driver so JSON columns decode the same way everywhere.
        kwargs: dict[str, Any] = dict(
            host=self.host,
            port=self.port,
            user=self.user,
            password=self.password,
            charset=self.charset,
            connection_timeout=self.connection_timeout,
            use_pure=True,
            autocommit=False,
        )
        if with_database:
            kwargs["database"] = self.database
        return kwargs


class DatabaseConnection:
    """Hands out one short-lived connection per unit of work.

    Repositories open a connection inside ``db_cursor``, so the row locks taken
    by upserts and invoice numbering live exactly as long as that transaction.
    """

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def target(self) -> str:
        return self._config.describe()

    def connect(self):
        try:
            return mysql.connector.connect(**self._config.connect_kwargs())
        except mysql.connector.Error:
            logger.error("Could not connect to %s", self.target)
            raise
