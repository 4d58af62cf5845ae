import logging
from contextlib import contextmanager
from typing import Generator, Iterator
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from attribute_engine.core.config import settings
from attribute_engine.core.errors import StorageError

logger = logging.getLogger(__name__)

connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, connect_args=connect_args, pool_pre_ping=True)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db() -> Generator:
    try:
        db = SessionLocal()
        yield db
    finally:
        db.close()

@contextmanager
def transaction(db: Session) -> Iterator[Session]:
    """
    Run one logical attribute operation as a single unit of work.

    Storage failures roll the whole unit back and surface as StorageError;
    anything else is rolled back and re-raised untouched.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("Attribute transaction rolled back: %s", e)
        raise StorageError(str(e)) from e
    except Exception:
        db.rollback()
        raise
