"""Database configuration for :class:`~condql.dao.Dao`.

``DBConfig`` is usually read from the ``"DB"`` section of a JSON settings
file::

    {
      "DB": {
        "Debug": true,
        "MasterConnection": "mysql+pymysql://app@db-master/shop",
        "SlaveConnections": ["mysql+pymysql://app@db-replica-1/shop"]
      }
    }

``set_db_config`` installs the process-wide default picked up by ``Dao()``.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from condql.errors import ConfigurationError


class DBConfig(BaseModel):
    """Connection URLs and the SQL trace switch.

    Attributes:
        debug: Log every statement and its parameters at DEBUG level.
        master_connection: SQLAlchemy URL used for writes and default reads.
        slave_connections: Read-replica URLs; one is picked at random for
            reads issued with ``use_slave=True``.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    debug: bool = Field(default=False, alias="Debug")
    master_connection: str | None = Field(default=None, alias="MasterConnection")
    slave_connections: list[str] = Field(default_factory=list, alias="SlaveConnections")

    @classmethod
    def from_dict(cls, data: dict[str, Any], section: str | None = "DB") -> DBConfig:
        """Build a config from ``data[section]`` (or ``data`` itself)."""
        if section and section in data:
            data = data[section]
        return cls.model_validate(data)

    @classmethod
    def from_json(cls, path: str | Path, section: str | None = "DB") -> DBConfig:
        """Load the config from a JSON settings file.

        Raises:
            ConfigurationError: If the file is not valid JSON.
        """
        text = Path(path).read_text(encoding="utf-8")
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"Invalid JSON in {path}: {exc}") from exc
        return cls.from_dict(data, section)


_db_config: DBConfig | None = None


def set_db_config(config: DBConfig | None) -> None:
    """Install (or clear, with ``None``) the process-wide default config."""
    global _db_config
    _db_config = config


def get_db_config() -> DBConfig | None:
    return _db_config
