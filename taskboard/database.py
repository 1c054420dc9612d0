"""Engine, session factory and declarative base for the board store."""
import logging
import os
from typing import Optional

from sqlalchemy import create_engine, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from taskboard.config import settings

logger = logging.getLogger(__name__)

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(os.path.abspath(__file__)), ".."))
FALLBACK_SQLITE_URL = f"sqlite:///{os.path.join(PROJECT_ROOT, 'taskboard.db')}"


def build_engine(database_url: str, **kwargs) -> Engine:
    """Create an engine; SQLite connections are shared with the transition worker threads."""
    if database_url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return create_engine(database_url, **kwargs)


def _engine_from_settings(database_url: Optional[str]) -> Engine:
    if database_url:
        try:
            engine = build_engine(database_url)
            with engine.connect():
                pass
            return engine
        except ModuleNotFoundError:
            logger.warning("Driver for DATABASE_URL is not installed, using %s", FALLBACK_SQLITE_URL)
        except Exception:
            logger.warning("DATABASE_URL is unreachable, using %s", FALLBACK_SQLITE_URL, exc_info=True)
    return build_engine(FALLBACK_SQLITE_URL)


engine = _engine_from_settings(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def init_db(bind: Optional[Engine] = None) -> None:
    """Create missing tables; existing ones are left as they are."""
    from taskboard import models  # noqa: F401  (registers tables on Base.metadata)

    bind = bind if bind is not None else engine
    missing = [name for name in Base.metadata.tables if not inspect(bind).has_table(name)]
    if missing:
        logger.info("Creating tables: %s", ", ".join(sorted(missing)))
    Base.metadata.create_all(bind=bind)


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
