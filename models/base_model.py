#!/usr/bin/env python3
"""
Shared SQLAlchemy base and mixin for the User Auth API.

- UUID primary key (String(36)), assigned at construction
- created_at / updated_at stamped in UTC by the application, with a
  server-side default for rows inserted outside the ORM
- save() and delete() that go through the DBStorage singleton

SQLite hands timezone-aware columns back naive, so compare them through as_utc().
"""

from __future__ import annotations

from datetime import datetime, timezone
import uuid

# Importing 'models' gives access to the global 'storage' instance (DBStorage)
# defined in models/__init__.py
import models

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

# Declarative base for all models
Base = declarative_base()


def _uuid_str() -> str:
    """Return a canonical UUIDv4 string (36 chars, with hyphens)."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes read back from the database."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class BaseModel:
    """
    Base mixin for all persistent models: id, created_at, updated_at and
    storage-backed save()/delete().
    """

    id = Column(String(36), primary_key=True, default=_uuid_str, nullable=False)
    # microsecond stamps keep createdAt ordering stable for rows created in the same second
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False)
    updated_at = Column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), onupdate=utcnow, nullable=False
    )

    def __init__(self, *args, **kwargs):
        for key, value in kwargs.items():
            if key != "__class__":
                setattr(self, key, value)
        # tokens reference the id before the first flush
        if getattr(self, "id", None) is None:
            self.id = _uuid_str()

    def __str__(self) -> str:
        return f"[{self.__class__.__name__}] ({self.id})"

    def save(self):
        """Add the instance to the session and commit."""
        models.storage.new(self)
        models.storage.save()

    def delete(self):
        """Hard delete; the caller decides when to commit."""
        models.storage.delete(self)
