import logging
import time

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(database_url: str) -> Engine:
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Request handlers run on a thread pool
        connect_args["check_same_thread"] = False
        # Concurrent writers wait on the file lock instead of failing at once
        connect_args["timeout"] = 30
    return create_engine(database_url, pool_pre_ping=True, connect_args=connect_args)


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def seed_counters(engine: Engine) -> None:
    """Make sure every counter row exists so writers always have a row to lock."""
    from app.infrastructure.tables import BATCH_ID_COUNTER, CounterRow

    with Session(engine) as session:
        if session.get(CounterRow, BATCH_ID_COUNTER) is not None:
            return
        session.add(CounterRow(name=BATCH_ID_COUNTER, value=0))
        try:
            session.commit()
        except IntegrityError:
            # Another instance seeded it first
            session.rollback()


def init_db(engine: Engine, max_retries: int = 10, wait_seconds: float = 3) -> bool:
    """Create tables, retrying while the database is still starting up."""
    # Tables must be registered on Base before create_all
    from app.infrastructure import tables  # noqa: F401

    for attempt in range(max_retries):
        try:
            logger.info(f"🔄 Attempting DB connection ({attempt + 1}/{max_retries})...")
            Base.metadata.create_all(bind=engine)
            seed_counters(engine)
            logger.info("✅ DB Connected and Tables Created.")
            return True
        except OperationalError as e:
            logger.warning(f"⚠️ DB not ready yet ({e.__class__.__name__}). Waiting {wait_seconds}s...")
            time.sleep(wait_seconds)

    logger.error("❌ Could not connect to DB after retries.")
    return False
