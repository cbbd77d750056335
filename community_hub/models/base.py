"""Declarative base shared by all models."""

from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base

Base = declarative_base()

def utc_now() -> datetime:
    """Naive UTC timestamp used for created_at bookkeeping columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)

def local_now() -> datetime:
    """Naive local wall-clock time, the way event start times are stored."""
    return datetime.now()
