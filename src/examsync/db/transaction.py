"""
Explicit transaction scope for mirror-store writes.

    result = with_transaction(engine, lambda session: reconcile(session, batch))

Everything `fn` writes through `session` is committed together when it
returns, or rolled back together when it raises.
"""
from contextlib import contextmanager
from typing import Callable, Iterator, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from examsync.errors import ReconciliationError

T = TypeVar("T")


@contextmanager
def transaction(engine) -> Iterator[Session]:
    """Yield a session; commit on clean exit, roll back on any exception."""
    with Session(engine) as session:
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise


def with_transaction(engine, fn: Callable[[Session], T]) -> T:
    """
    Run fn(session) inside one transaction and return its result.

    Raises:
        ReconciliationError: if any database operation (including the
            commit) fails. Other exceptions from fn propagate unchanged
            after the rollback.
    """
    try:
        with transaction(engine) as session:
            return fn(session)
    except SQLAlchemyError as exc:
        raise ReconciliationError(f"Mirror store write failed: {exc}") from exc
