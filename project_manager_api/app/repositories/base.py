"""
Shared repository behaviour.

A repository wraps one ORM model and owns every query against its
table.  Reads see active rows only: a row whose ``deleted_at`` is set
is invisible to ``get`` and ``find`` exactly as if it had been removed.
Store exceptions never leave this layer untranslated; callers see the
domain kinds from :mod:`project_manager_api.app.core.errors`.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Type

from sqlalchemy import Select, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from project_manager_api.app.core.db import Base
from project_manager_api.app.core.errors import (
    DataViolateConstraintError,
    DatabaseFailError,
    NotFoundError,
)


logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the ``DateTime`` columns."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class BaseRepository:
    """CRUD over one model with tombstone-aware reads.

    Subclasses set ``model`` and ``not_found_error`` and may override
    ``_load_options`` (relations to load with ``get``) and
    ``_apply_filters`` (translation of a filter object into WHERE
    clauses).
    """

    model: Type[Base] = None
    not_found_error: Type[NotFoundError] = NotFoundError

    def __init__(self, db: Session) -> None:
        self.db = db

    @property
    def entity_name(self) -> str:
        return self.model.__name__.lower()

    # ------------------------------------------------------------------
    # Query helpers
    # ------------------------------------------------------------------
    def _active(self) -> Select:
        # Bulk UPDATEs bypass the identity map, so every read refreshes
        # instances the session already holds.
        return (
            select(self.model)
            .where(self.model.deleted_at.is_(None))
            .execution_options(populate_existing=True)
        )

    def _load_options(self) -> list:
        return []

    def _apply_filters(self, stmt: Select, filters: Any) -> Select:
        return stmt

    def _not_found(self, entity_id: int) -> NotFoundError:
        return self.not_found_error(f"{self.entity_name} {entity_id} does not exist")

    def _commit(self, action: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            logger.warning("Constraint violated while trying to %s %s: %s", action, self.entity_name, exc.orig)
            raise DataViolateConstraintError(f"cannot {action} {self.entity_name}: data violates constraints") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Database failure while trying to %s %s: %s", action, self.entity_name, exc)
            raise DatabaseFailError(f"cannot {action} {self.entity_name}: database failure") from exc

    def _scalars(self, stmt: Select) -> list:
        try:
            return list(self.db.execute(stmt).scalars().unique().all())
        except SQLAlchemyError as exc:
            logger.error("Database failure while reading %s rows: %s", self.entity_name, exc)
            raise DatabaseFailError(f"cannot read {self.entity_name}: database failure") from exc

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------
    def create(self, entity: Base) -> Base:
        self.db.add(entity)
        self._commit("create")
        self.db.refresh(entity)
        return entity

    def get(self, entity_id: int) -> Base:
        """Return the active row with ``entity_id``.

        Parameters
        ----------
        entity_id : int
            Primary key of the row.

        Raises
        ------
        NotFoundError
            The entity-specific kind when no active row matches.
        DatabaseFailError
            Any other store failure.
        """
        stmt = self._active().where(self.model.id == entity_id).options(*self._load_options())
        rows = self._scalars(stmt)
        if not rows:
            raise self._not_found(entity_id)
        return rows[0]

    def find(self, filters: Any = None) -> List[Base]:
        stmt = self._active().options(*self._load_options())
        if filters is not None:
            stmt = self._apply_filters(stmt, filters)
        return self._scalars(stmt.order_by(self.model.id))

    def _execute_write(self, stmt, action: str) -> int:
        """Run a bulk UPDATE, commit it and return the affected row count."""
        try:
            result = self.db.execute(stmt.execution_options(synchronize_session=False))
        except IntegrityError as exc:
            self.db.rollback()
            raise DataViolateConstraintError(f"cannot {action} {self.entity_name}: data violates constraints") from exc
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Database failure while trying to %s %s: %s", action, self.entity_name, exc)
            raise DatabaseFailError(f"cannot {action} {self.entity_name}: database failure") from exc
        self._commit(action)
        return result.rowcount

    def _update_active(self, entity_id: int, values: Dict[str, Any], action: str) -> int:
        stmt = (
            update(self.model)
            .where(self.model.id == entity_id, self.model.deleted_at.is_(None))
            .values(**values)
        )
        return self._execute_write(stmt, action)

    def update(self, entity_id: int, fields: Optional[Dict[str, Any]]) -> Base:
        """Write only ``fields`` to the active row and return it reloaded.

        An empty field map performs no write and returns the current
        row.
        """
        if not fields:
            return self.get(entity_id)
        values = dict(fields)
        values["updated_at"] = utcnow()
        if self._update_active(entity_id, values, "update") == 0:
            raise self._not_found(entity_id)
        return self.get(entity_id)

    def delete(self, entity_id: int) -> None:
        """Soft delete: stamp ``deleted_at`` on the active row.

        Zero rows affected means the row was already gone, which is
        reported as the entity's not-found kind.
        """
        now = utcnow()
        if self._update_active(entity_id, {"deleted_at": now, "updated_at": now}, "delete") == 0:
            raise self._not_found(entity_id)
