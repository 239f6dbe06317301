import json
import logging

from sqlalchemy import create_engine, Text
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.types import TypeDecorator

from app.core.config import settings

logger = logging.getLogger(__name__)

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    pool_size=settings.DATABASE_POOL_SIZE,
    max_overflow=settings.DATABASE_MAX_OVERFLOW,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


class JSONText(TypeDecorator):
    """JSON array stored as serialized text.

    Values that cannot be parsed back (or that are not lists) read as an
    empty list instead of failing the whole row.
    """

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return "[]"
        return json.dumps(value, default=str)

    def process_result_value(self, value, dialect):
        if value is None or not str(value).strip():
            return []
        try:
            parsed = json.loads(value)
        except (TypeError, ValueError):
            logger.warning("Unparseable JSON column value, reading as empty list")
            return []
        return parsed if isinstance(parsed, list) else []


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
