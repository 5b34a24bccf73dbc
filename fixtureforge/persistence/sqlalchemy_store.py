"""
SQLAlchemy implementation of :class:`~fixtureforge.persistence.base.Store`.

Persistence-only, like a repository:

* ``save`` adds and flushes (or commits, when configured) so primary keys are
  materialized immediately.
* Criteria are equality filters on mapped attributes; results are ordered by
  primary key so ``first``/``last``/sampling are deterministic.
* Transactions belong to the caller: the store never rolls back.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import Select, and_, delete, func, inspect, select
from sqlalchemy.exc import InvalidRequestError
from sqlalchemy.orm import Mapper, Session

from fixtureforge.core.config import get_config
from fixtureforge.persistence.base import Store

log = logging.getLogger(__name__)

PERSISTENCE_MODES = ("flush", "commit")


class SQLAlchemyStore(Store):
    """Store backed by a SQLAlchemy :class:`~sqlalchemy.orm.Session`.

    :param session: Session shared with the code under test.
    :type session: :class:`sqlalchemy.orm.Session`
    :param persistence: ``"flush"`` or ``"commit"``; defaults to the
        configured ``SESSION_PERSISTENCE``.
    :type persistence: str | None
    """

    def __init__(self, session: Session, *, persistence: str | None = None) -> None:
        persistence = persistence or get_config().SESSION_PERSISTENCE
        if persistence not in PERSISTENCE_MODES:
            raise ValueError(f"persistence must be one of {PERSISTENCE_MODES}, got {persistence!r}")
        self.session = session
        self.persistence = persistence

    # ------------------------------ Internals --------------------------------

    @staticmethod
    def _mapper(model: type) -> Mapper[Any]:
        return inspect(model)

    def _finalize(self) -> None:
        if self.persistence == "commit":
            self.session.commit()
        else:
            self.session.flush()

    def _apply_equality_filters(
        self,
        stmt: Select[Any],
        model: type,
        criteria: Mapping[str, Any] | None,
    ) -> Select[Any]:
        """Apply ``attribute == value`` clauses for each criterion.

        :raises AttributeError: If a key is not an attribute of ``model``.
        """
        if not criteria:
            return stmt
        clauses = [getattr(model, key) == value for key, value in criteria.items()]
        return stmt.where(and_(*clauses))

    def _order_by_pk(self, stmt: Select[Any], model: type) -> Select[Any]:
        return stmt.order_by(*self._mapper(model).primary_key)

    # --------------------------------- Store ---------------------------------

    def save(self, obj: Any) -> Any:
        """Add ``obj`` to the session, flush/commit and return its identity."""
        self.session.add(obj)
        self._finalize()
        identity = self.identity_of(obj)
        log.debug(
            "Saved %s %r",
            type(obj).__qualname__,
            identity,
            extra={"model": type(obj).__qualname__, "identity": identity},
        )
        return identity

    def identity_of(self, obj: Any) -> Any | None:
        """Return the primary key (scalar for single-column keys)."""
        state = inspect(obj, raiseerr=False)
        key = getattr(state, "identity", None)
        if key is None:
            return None
        return key[0] if len(key) == 1 else key

    def find(self, model: type, identity: Any) -> Any | None:
        """Reload the row behind ``identity``.

        An instance already in the session is refreshed in place; pending
        in-memory changes are discarded rather than flushed.
        """
        with self.session.no_autoflush:
            instance = self.session.get(model, identity)
            if instance is None:
                return None
            try:
                self.session.refresh(instance)
            except InvalidRequestError:
                # row deleted behind the session's back
                log.debug("Row %s %r vanished during refresh", model.__qualname__, identity)
                return None
        return instance

    def exists(self, model: type, identity: Any) -> bool:
        """Check for the row behind ``identity`` without flushing pending changes."""
        values = identity if isinstance(identity, tuple) else (identity,)
        pk = self._mapper(model).primary_key
        stmt = select(func.count()).select_from(model).where(
            and_(*(column == value for column, value in zip(pk, values)))
        )
        with self.session.no_autoflush:
            return bool(self.session.execute(stmt).scalar_one())

    def find_by(self, model: type, criteria: Mapping[str, Any]) -> list[Any]:
        stmt: Select[Any] = select(model)
        stmt = self._apply_equality_filters(stmt, model, criteria)
        stmt = self._order_by_pk(stmt, model)
        return list(self.session.execute(stmt).scalars().all())

    def count(self, model: type, criteria: Mapping[str, Any]) -> int:
        stmt: Select[Any] = select(func.count()).select_from(model)
        stmt = self._apply_equality_filters(stmt, model, criteria)
        return int(self.session.execute(stmt).scalar_one())

    def delete(self, model: type, identity: Any) -> None:
        instance = self.session.get(model, identity)
        if instance is None:
            return
        self.session.delete(instance)
        self._finalize()

    def truncate(self, model: type) -> None:
        """Delete every row of ``model`` and forget its loaded instances."""
        self.session.execute(delete(model))
        for instance in list(self.session.identity_map.values()):
            if isinstance(instance, model):
                self.session.expunge(instance)
        self._finalize()
        log.debug("Truncated %s", model.__qualname__, extra={"model": model.__qualname__})
