# server/database.py

import logging
from pathlib import Path
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from core.config import DATABASE_URL, DB_POOL_SIZE, DB_SSL
from models import Base


logger = logging.getLogger(__name__)


def make_engine(url: str = DATABASE_URL) -> Engine:
    """
    Builds the process-wide engine. SQLite is used for local runs and tests;
    any other backend gets a fixed-size connection pool with no overflow.
    """
    parsed = make_url(url)

    if parsed.get_backend_name() == "sqlite":
        if parsed.database and parsed.database != ":memory:":
            Path(parsed.database).parent.mkdir(parents=True, exist_ok=True)
        return create_engine(url, connect_args={"check_same_thread": False})

    connect_args = {}
    if DB_SSL and parsed.get_backend_name() == "mysql":
        connect_args["ssl"] = {"check_hostname": False}

    return create_engine(
        url,
        pool_size=DB_POOL_SIZE,
        max_overflow=0,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


engine = make_engine()

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


def init_db(bind: Engine | None = None):
    """Creates the users table when it is missing. Safe to run on every start."""
    logger.info("Initializing database schema...")
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Users table ready")


def check_connection(bind: Engine | None = None) -> bool:
    try:
        with (bind or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error("Database connection error: %s", e)
        return False
    logger.info("Connected to database %s", (bind or engine).url.render_as_string(hide_password=True))
    return True


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
