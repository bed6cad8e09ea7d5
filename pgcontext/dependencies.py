"""Shared FastAPI dependency helpers."""

from __future__ import annotations

from typing import Annotated, Callable, Hashable, Iterator

from fastapi import Depends
from sqlalchemy.orm import Session

from .db.session import DEFAULT_CONTEXT, get_session


def session_dependency(key: Hashable = DEFAULT_CONTEXT) -> Callable[[], Iterator[Session]]:
    """Build a dependency that yields a session from the context ``key``."""

    def _dependency() -> Iterator[Session]:
        session = get_session(key)
        try:
            yield session
        finally:
            session.close()

    return _dependency


db_session_dependency = session_dependency(DEFAULT_CONTEXT)

SessionDep = Annotated[Session, Depends(db_session_dependency)]
