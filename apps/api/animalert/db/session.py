"""Engine and session factory."""

from sqlalchemy import create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker

from animalert.core.config import settings


def _connect_args(database_url: str) -> dict:
    backend = make_url(database_url).get_backend_name()
    if backend.startswith("postgresql"):
        return {"options": "-c timezone=utc"}
    if backend == "sqlite":
        # Worker threads share connections; writers wait on the file lock.
        return {"check_same_thread": False, "timeout": 30}
    return {}


engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=_connect_args(settings.DATABASE_URL),
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
