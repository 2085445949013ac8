"""Request-scoped dependencies."""

from typing import Iterator

from sqlalchemy.orm import Session

from animalert.db.session import SessionLocal


def get_db() -> Iterator[Session]:
    """One session per request; closing it returns the connection to the pool."""
    with SessionLocal() as db:
        yield db
