from __future__ import annotations

from dataclasses import dataclass

import mysql.connector


@dataclass(frozen=True)
class DBConfig:
    host: str = "localhost"
    port: int = 3306
    user: str = "root"
    password: str = ""
    database: str = "erp_attendance"
    connect_timeout: int = 10

    @classmethod
    def from_dict(cls, db_config: dict) -> "DBConfig":
        defaults = cls()
        return cls(
            host=str(db_config.get("host") or defaults.host),
            port=int(db_config.get("port") or defaults.port),
            user=str(db_config.get("user") or defaults.user),
            password=str(db_config.get("password") or ""),
            database=str(db_config.get("database") or defaults.database),
            connect_timeout=int(db_config.get("connect_timeout") or defaults.connect_timeout),
        )

    def connect_kwargs(self, *, with_database: bool = True) -> dict:
        kwargs = {
            "host": self.host,
            "port": self.port,
            "user": self.user,
            "password": self.password,
            "connection_timeout": self.connect_timeout,
            "use_pure": True,
        }
        if with_database:
            kwargs["database"] = self.database
        return kwargs

    def describe(self) -> str:
        """user@host:port/db, safe for logs."""
        return f"{self.user}@{self.host}:{self.port}/{self.database}"


class DatabaseConnection:
    """Connection factory shared by the MySQL repositories.

    Every repository call opens and closes its own connection, so no attendance
    state is held between requests or between batch steps.
    """

    def __init__(self, config: DBConfig):
        self.config = config

    @classmethod
    def from_dict(cls, db_config: dict) -> "DatabaseConnection":
        return cls(DBConfig.from_dict(db_config))

    def connect(self):
        return mysql.connector.connect(autocommit=False, **self.config.connect_kwargs())
