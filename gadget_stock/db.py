import logging
from contextlib import contextmanager
from typing import Iterator

from sqlmodel import SQLModel, Session, create_engine

from gadget_stock.config import get_settings
from gadget_stock.errors import DomainError

logger = logging.getLogger(__name__)


def _make_engine(url: str):
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, connect_args=connect_args)


engine = _make_engine(get_settings().database_url)


def create_db_and_tables() -> None:
    SQLModel.metadata.create_all(engine)


def get_session():
    session = Session(engine)
    try:
        yield session
    except DomainError:
        # business/auth errors: the transaction() block already rolled back
        raise
    except Exception as e:
        # anything else looks like a program or DB error
        session.rollback()
        logger.warning("rollback: %s: %s", type(e).__name__, e)
        raise
    finally:
        session.close()


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """Commit everything done inside the block, or nothing at all.

    Any exception, business errors included, rolls the whole unit of work
    back before propagating so no partial write is ever left behind.
    """
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.info("transaction rolled back: %s: %s", type(e).__name__, e)
        raise
