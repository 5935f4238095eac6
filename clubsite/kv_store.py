"""
Local key-value persistence used when no remote backend is configured.

Values are opaque strings (the fallback collections store JSON arrays).
Three implementations: an in-memory dict for tests, a SQLAlchemy table
(SQLite file by default) for single-host demo deployments, and Redis.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol

import redis
from sqlalchemy import Column, Float, String, Text, create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker


class KeyValueStore(Protocol):
    """Defines the operations the fallback collections need."""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: str) -> None:
        ...


@dataclass
class InMemoryKeyValueStore:
    """Test double for local persistence."""

    entries: Dict[str, str] = field(default_factory=dict)

    def get(self, key: str) -> Optional[str]:
        return self.entries.get(key)

    def set(self, key: str, value: str) -> None:
        self.entries[key] = value

    def reset(self) -> None:
        self.entries.clear()


Base = declarative_base()


class KeyValueRow(Base):
    __tablename__ = "kv_entries"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(Float, nullable=False)


class SqlKeyValueStore:
    """
    SQLAlchemy-backed implementation. Accepts any SQLAlchemy URL (SQLite for the
    default demo deployment, Postgres if a shared host database is preferred).
    """

    def __init__(self, database_url: str):
        if not database_url:
            raise ValueError("database_url is required for SqlKeyValueStore")
        self.engine = create_engine(database_url, future=True, pool_pre_ping=True)
        self.Session = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False, future=True
        )
        Base.metadata.create_all(self.engine)

    def get(self, key: str) -> Optional[str]:
        with self.Session() as session:
            row = session.get(KeyValueRow, key)
            return row.value if row else None

    def set(self, key: str, value: str) -> None:
        with self.Session() as session:
            row = session.get(KeyValueRow, key)
            if row:
                row.value = value
                row.updated_at = time.time()
            else:
                session.add(KeyValueRow(key=key, value=value, updated_at=time.time()))
            session.commit()


@dataclass
class RedisKeyValueStore:
    """Redis-backed implementation; keys are prefixed with a namespace."""

    url: str
    namespace: str = "clubsite"

    def __post_init__(self):
        self.client = redis.Redis.from_url(self.url)

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get(self, key: str) -> Optional[str]:
        value = self.client.get(self._key(key))
        if value is None:
            return None
        return value.decode("utf-8") if isinstance(value, bytes) else value

    def set(self, key: str, value: str) -> None:
        self.client.set(self._key(key), value)
