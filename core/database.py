from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, SQLModel, create_engine

from core.config import settings
from core.errors import StoreUnavailableError
from core.logger import get_logger

logger = get_logger(__name__)

connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(settings.DATABASE_URL, echo=settings.DB_ECHO, connect_args=connect_args)


def create_db_and_tables(bind=None):
    import models  # noqa: F401  registers the tables on SQLModel.metadata

    SQLModel.metadata.create_all(bind or engine)


def get_session() -> Iterator[Session]:
    with Session(engine) as session:
        yield session


@contextmanager
def store_errors(session: Session, message: str):
    """Turn driver/ORM failures into ``StoreUnavailableError(message)``.

    The session is rolled back and the original error is logged with its
    traceback; the caller only ever sees ``message``.
    """
    try:
        yield
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"{message}: {e}", exc_info=True)
        raise StoreUnavailableError(message) from e
