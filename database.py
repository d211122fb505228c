"""Database engine and session management."""

from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from config import settings
from logging_config import get_logger

logger = get_logger(__name__)

Base = declarative_base()


def build_engine(database_url: str, timeout_seconds: float = 5.0, echo: bool = False) -> Engine:
    """Create an engine whose queries and pool checkouts are bounded by ``timeout_seconds``."""
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False, "timeout": timeout_seconds},
        )
    connect_args = {}
    if database_url.startswith("postgresql"):
        connect_args["options"] = f"-c statement_timeout={int(timeout_seconds * 1000)}"
        connect_args["connect_timeout"] = max(int(timeout_seconds), 1)
    return create_engine(
        database_url,
        echo=echo,
        pool_pre_ping=True,
        pool_timeout=timeout_seconds,
        connect_args=connect_args,
    )


engine = build_engine(
    settings.computed_database_url,
    timeout_seconds=settings.store_timeout_seconds,
    echo=settings.env == "development",
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(bind: Engine = engine) -> None:
    """Create tables and make sure the database answers; raises if it does not."""
    import models  # noqa: F401  registers the tables on Base

    Base.metadata.create_all(bind=bind)
    with bind.connect() as connection:
        connection.execute(text("SELECT 1"))
    logger.info("database_initialized", dialect=bind.dialect.name)


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
