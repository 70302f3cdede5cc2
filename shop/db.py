import logging

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import get_settings

logger = logging.getLogger(__name__)

DATABASE_URL = get_settings().database_url

# For SQLite, enable check_same_thread=False for multithreading in FastAPI.
# Foreign keys stay off: raw statements are not checked against references.
connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args, future=True)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
Base = declarative_base()


# Dependency to get DB session per request
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def query_rows(db: Session, sql: str) -> list[dict]:
    """Run a raw SQL string exactly as given and return its rows as dicts.

    The string goes to the driver untouched (no bind parameters, no text()
    parsing). Statements that produce no rows return an empty list. Every
    call commits on its own.
    """
    logger.debug("raw query: %s", sql)
    try:
        result = db.connection().exec_driver_sql(sql)
        rows = [dict(row._mapping) for row in result] if result.returns_rows else []
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return rows


def execute_raw(db: Session, sql: str) -> int:
    logger.debug("raw statement: %s", sql)
    try:
        result = db.connection().exec_driver_sql(sql)
        count = result.rowcount
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    return count
