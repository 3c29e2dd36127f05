import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import Request
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class Database:
    """Engine + session factory for one backing store.

    Built once at process start (see ``hydrohub.main``) and handed to the
    request layer through ``app.state.db``; ``close()`` disposes the pool.
    """

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        self.echo = echo
        self._engine: Engine | None = None
        self._factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("database is not open")
        return self._engine

    def open(self) -> "Database":
        if self._engine is not None:
            return self
        kwargs: dict = {"echo": self.echo, "future": True}
        if self.url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if self.url in ("sqlite://", "sqlite:///:memory:"):
                kwargs["poolclass"] = StaticPool
        else:
            kwargs["pool_pre_ping"] = True
        self._engine = create_engine(self.url, **kwargs)
        self._factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        logger.info("database opened: %s", self._engine.url.render_as_string(hide_password=True))
        return self

    def create_all(self) -> None:
        # Importing the models registers their tables with Base
        import hydrohub.models  # noqa: F401
        Base.metadata.create_all(bind=self.engine)

    def session(self) -> Session:
        if self._factory is None:
            raise RuntimeError("database is not open")
        return self._factory()

    def close(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            logger.info("database closed")
        self._engine = None
        self._factory = None


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.db.session()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """Commit everything done inside the block, or roll all of it back."""
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
