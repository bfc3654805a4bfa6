import logging
import time

from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from config import DATABASE_URL, DB_MAX_RETRIES, DB_RETRY_INTERVAL

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            # single shared connection so an in-memory database survives across sessions
            options["poolclass"] = StaticPool
        return options
    return {"pool_pre_ping": True, "pool_recycle": 300}


def wait_for_db(max_retries=DB_MAX_RETRIES, retry_interval=DB_RETRY_INTERVAL):
    logger.info("Waiting for database connection...")

    for attempt in range(max_retries):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info("Database is available")
            return True
        except OperationalError as e:
            logger.warning("Attempt %s/%s: database not available yet: %s", attempt + 1, max_retries, e)
            if attempt < max_retries - 1:
                time.sleep(retry_interval)

    logger.error("Could not connect to the database after %s attempts", max_retries)
    return False


engine = create_engine(DATABASE_URL, echo=False, **_engine_options(DATABASE_URL))

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db():
    import models  # noqa: F401  registers tables on Base.metadata
    Base.metadata.create_all(bind=engine)
