"""Shared repository helpers for SQLModel session work."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, TypeVar

from sqlmodel import Session

from movie_survey.core.errors import ConstraintError, ReferentialError, SurveyError

if TYPE_CHECKING:
    from sqlalchemy import Engine
    from sqlalchemy.exc import IntegrityError

T = TypeVar("T")


def translate_integrity_error(error: IntegrityError, subject: str) -> SurveyError:
    """Map an engine-level IntegrityError to the matching survey error."""
    message = str(error.orig)
    if "FOREIGN KEY" in message.upper():
        return ReferentialError(f"{subject} rejected by the store ({message})")
    return ConstraintError(f"{subject} rejected by the store ({message})")


class Repository:
    """Run session work against one engine, one session per call."""

    def __init__(self, engine: Engine) -> None:
        self._engine = engine

    @property
    def engine(self) -> Engine:
        return self._engine

    def _run_session(self, fn: Callable[[Session], T]) -> T:
        """Run a function inside a Session."""
        with Session(self._engine) as session:
            return fn(session)

    def _run_transaction(self, fn: Callable[[Session], T]) -> T:
        """Run a function inside a Session, committing on success.

        Any exception rolls the whole unit back before it propagates.
        """
        with Session(self._engine) as session:
            try:
                result = fn(session)
                session.commit()
            except Exception:
                session.rollback()
                raise
            return result
