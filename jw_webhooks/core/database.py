"""SQLAlchemy engine and declarative base for the webhook registry."""

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool


class Base(DeclarativeBase):
    pass


def make_engine(url: str) -> Engine:
    """Build a synchronous engine.

    SQLite connections are shared across threads because the receive path runs
    in the request threadpool.  In-memory SQLite additionally needs a single
    static connection or every checkout would see an empty database.
    """
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    kwargs: dict = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        kwargs["poolclass"] = StaticPool
    return create_engine(url, **kwargs)


def init_db(engine: Engine) -> None:
    # Imported for its side effect of registering the table on Base.metadata.
    from jw_webhooks.models import hook_record  # noqa: F401

    Base.metadata.create_all(engine)
