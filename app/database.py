import logging
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from app.config import config
from app.errors.session_block_errors import ConcurrencyConflict

logger = logging.getLogger(__name__)

_connect_args = {"check_same_thread": False} if config.SQLALCHEMY_DATABASE_URI.startswith("sqlite") else {}

engine = create_engine(config.SQLALCHEMY_DATABASE_URI, connect_args=_connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Base class for all models
Base = declarative_base()


@contextmanager
def transactional(db: Session):
    """
    A context manager wrapping one unit of work.

    Commits when the block exits cleanly and rolls back on any exception,
    so a failure half way through a multi-row update leaves nothing behind.
    Lock and serialization failures from the database are re-raised as
    ConcurrencyConflict so callers can tell them apart from invariant errors.
    """
    try:
        yield db
        db.commit()
    except OperationalError as e:
        db.rollback()
        logger.error(f"Transaction rolled back after database conflict: {e.orig}")
        raise ConcurrencyConflict(f"Database rejected the transaction: {e.orig}") from e
    except Exception:
        db.rollback()
        raise
