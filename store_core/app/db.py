import os
import logging
from pathlib import Path
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, declarative_base

logger = logging.getLogger(__name__)


def resolve_database_url() -> str:
    """
    DATABASE_URL wins. Otherwise use a SQLite file in a `data/` folder next
    to the package, or an in-memory database when that folder can't be made.
    """
    url = os.getenv("DATABASE_URL")
    if url:
        return url

    data_dir = Path(__file__).resolve().parents[1] / "data"
    try:
        data_dir.mkdir(parents=True, exist_ok=True)
    except OSError:
        return "sqlite:///:memory:"
    # POSIX path style keeps the URL valid on Windows as well
    return f"sqlite:///{(data_dir / 'store_core.db').as_posix()}"


DATABASE_URL = resolve_database_url()

engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def create_db_and_tables(bind=None):
    from . import models  # noqa: F401  registers the tables on Base.metadata

    bind = bind or engine
    logger.info("Creating tables on %s", bind.url.render_as_string(hide_password=True))
    Base.metadata.create_all(bind=bind)
