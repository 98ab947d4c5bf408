"""
Generic history-tracked entity store.

Contacts, blobs, drafts and messages all follow one pattern: a mutable row
with a trash tri-state (``last_stmt``), the device that last touched it, and a
history id taken from the per-user sequence on every write. Hard deletes leave
a tombstone row so other devices learn about them on their next sync.

Subclasses only declare their tables and which columns clients may set.
"""
from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Type
from uuid import uuid4

from sqlalchemy import or_, text, true
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session

from ..config import Settings, settings as default_settings
from ..database import Base, LastStmt, utcnow
from ..errors import (
    CargomailError,
    DuplicateKeyError,
    NotFoundError,
    StorageTimeoutError,
    classify_storage_error,
)
from ..models import AuthenticatedUser
from .history import HistoryEntity, HistorySequencer

logger = logging.getLogger(__name__)


@dataclass
class ListResult:
    last_history_id: int
    records: List[Any] = field(default_factory=list)


@dataclass
class SyncResult:
    last_history_id: int
    inserted: List[Any] = field(default_factory=list)
    updated: List[Any] = field(default_factory=list)
    trashed: List[Any] = field(default_factory=list)
    deleted: List[Any] = field(default_factory=list)


def _unique_keys(keys: Optional[Iterable[str]]) -> List[str]:
    seen = []
    for key in keys or ():
        if key and key not in seen:
            seen.append(key)
    return seen


class EntityStore:
    model: Type[Base] = None
    tombstone: Type[Base] = None
    entity: HistoryEntity = None
    key_name: str = "id"

    creatable_fields: Tuple[str, ...] = ()
    editable_fields: Tuple[str, ...] = ()

    # Newest first unless the entity type opts out
    order_by_created: bool = True

    duplicate_signatures: Tuple[str, ...] = ()
    duplicate_message: str = "Record already exists"
    not_found_message: str = "Record not found"

    def __init__(
        self,
        db: Session,
        user: AuthenticatedUser,
        settings: Optional[Settings] = None,
    ):
        self.db = db
        self.user = user
        self.settings = settings or default_settings
        self.sequencer = HistorySequencer(db)

    # Scoping --------------------------------------------------------------------------
    @property
    def key_column(self):
        return getattr(self.model, self.key_name)

    @property
    def attributed_device(self) -> Optional[str]:
        return self.user.device_id or None

    def _scope_filters(self, model) -> list:
        """Extra filters narrowing both the entity and tombstone tables."""
        return []

    def _owned(self, model) -> Query:
        return self.db.query(model).filter(
            model.user_id == self.user.user_id, *self._scope_filters(model)
        )

    def _live(self) -> Query:
        return self._owned(self.model).filter(self.model.last_stmt < LastStmt.TRASHED)

    def _newest_first(self, query: Query) -> Query:
        return query.order_by(
            self.model.created_at.desc(), self.model.history_id.desc()
        )

    def _not_from_caller(self, model):
        """Rows whose last mutation came from another device, or from none.

        NULL attribution is tested explicitly so the result does not depend
        on how the engine compares NULL with a value. A caller without a
        device id sees every row.
        """
        device = self.attributed_device
        if device is None:
            return true()
        return or_(model.device_id.is_(None), model.device_id != device)

    # Transactions ---------------------------------------------------------------------
    @contextmanager
    def _transaction(self, timeout: float, read_only: bool = False):
        # Start from a clean transaction so the snapshot and the deadline
        # cover only this operation.
        if self.db.in_transaction():
            self.db.commit()

        deadline = time.monotonic() + timeout
        try:
            self._begin(timeout, read_only)
            yield
            if not read_only:
                self.db.flush()
            if time.monotonic() > deadline:
                raise StorageTimeoutError(
                    f"{self.entity.value} operation exceeded its {timeout:g}s deadline"
                )
            self.db.commit()
        except CargomailError:
            self.db.rollback()
            raise
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise classify_storage_error(
                exc,
                self.duplicate_signatures,
                DuplicateKeyError(self.duplicate_message),
            ) from exc

    def _begin(self, timeout: float, read_only: bool) -> None:
        if self.db.get_bind().dialect.name != "postgresql":
            return
        if read_only:
            # Rows and high-water-mark must come from one snapshot
            self.db.connection(execution_options={"isolation_level": "REPEATABLE READ"})
        self.db.execute(text(f"SET LOCAL statement_timeout = {int(timeout * 1000)}"))

    def _next_history_id(self) -> int:
        return self.sequencer.next_history_id(self.user.user_id, self.entity)

    def _current_history_id(self) -> int:
        return self.sequencer.current_history_id(self.user.user_id, self.entity)

    def _stamp(self, record, last_stmt: LastStmt) -> None:
        record.last_stmt = int(last_stmt)
        record.device_id = self.attributed_device
        record.history_id = self._next_history_id()

    # Writes ---------------------------------------------------------------------------
    def _creation_defaults(self) -> Dict[str, Any]:
        return {}

    def create(self, **fields):
        values = self._creation_defaults()
        values.update(
            {
                name: value
                for name, value in fields.items()
                if name in self.creatable_fields and value is not None
            }
        )
        with self._transaction(self.settings.WRITE_TIMEOUT):
            record = self.model(**values)
            if getattr(record, self.key_name) is None:
                setattr(record, self.key_name, str(uuid4()))
            record.user_id = self.user.user_id
            self._stamp(record, LastStmt.ACTIVE)
            self.db.add(record)

        logger.info(
            f"Created {self.entity.value} {getattr(record, self.key_name)} "
            f"for user {self.user.user_id} (history {record.history_id})"
        )
        return record

    def update(self, key: str, **fields):
        with self._transaction(self.settings.WRITE_TIMEOUT):
            record = (
                self._live()
                .filter(self.key_column == key)
                .with_for_update()
                .first()
            )
            if record is None:
                raise NotFoundError(self.not_found_message)

            for name, value in fields.items():
                if name in self.editable_fields:
                    setattr(record, name, value)
            record.modified_at = utcnow()
            self._stamp(record, LastStmt.UPDATED)

        logger.info(
            f"Updated {self.entity.value} {key} for user {self.user.user_id} "
            f"(history {record.history_id})"
        )
        return record

    def trash(self, keys: Iterable[str]) -> int:
        return self._flip(
            keys, LastStmt.TRASHED, self.model.last_stmt < LastStmt.TRASHED
        )

    def untrash(self, keys: Iterable[str]) -> int:
        return self._flip(
            keys, LastStmt.ACTIVE, self.model.last_stmt == LastStmt.TRASHED
        )

    def _flip(self, keys: Iterable[str], target: LastStmt, condition) -> int:
        keys = _unique_keys(keys)
        if not keys:
            return 0

        with self._transaction(self.settings.WRITE_TIMEOUT):
            records = (
                self._owned(self.model)
                .filter(self.key_column.in_(keys), condition)
                .order_by(self.model.created_at.asc())
                .with_for_update()
                .all()
            )
            for record in records:
                self._stamp(record, target)

        logger.info(
            f"Set {len(records)}/{len(keys)} {self.entity.value} rows to "
            f"{target.name.lower()} for user {self.user.user_id}"
        )
        return len(records)

    def _tombstone_fields(self, record) -> Dict[str, Any]:
        return {self.key_name: getattr(record, self.key_name)}

    def delete(self, keys: Iterable[str]) -> List[Any]:
        """Hard delete; returns the removed records."""
        keys = _unique_keys(keys)
        if not keys:
            return []

        with self._transaction(self.settings.WRITE_TIMEOUT):
            records = (
                self._owned(self.model)
                .filter(self.key_column.in_(keys))
                .order_by(self.model.created_at.asc())
                .with_for_update()
                .all()
            )
            for record in records:
                self.db.merge(
                    self.tombstone(
                        user_id=self.user.user_id,
                        history_id=self._next_history_id(),
                        device_id=self.attributed_device,
                        **self._tombstone_fields(record),
                    )
                )
                self.db.delete(record)

        logger.info(
            f"Deleted {len(records)}/{len(keys)} {self.entity.value} rows "
            f"for user {self.user.user_id}"
        )
        return records

    # Reads ----------------------------------------------------------------------------
    def get(self, key: str):
        """Live record by key, or None when there is no such record."""
        with self._transaction(self.settings.READ_TIMEOUT, read_only=True):
            return self._live().filter(self.key_column == key).first()

    def list(self) -> ListResult:
        with self._transaction(self.settings.READ_TIMEOUT, read_only=True):
            query = self._live()
            if self.order_by_created:
                query = self._newest_first(query)
            else:
                query = query.order_by(self.key_column.asc())
            records = query.all()
            last_history_id = self._current_history_id()

        logger.debug(
            f"Listed {len(records)} {self.entity.value} rows for user "
            f"{self.user.user_id} at history {last_history_id}"
        )
        return ListResult(last_history_id=last_history_id, records=records)

    def sync(self, since_history_id: int) -> SyncResult:
        since = max(int(since_history_id or 0), 0)

        with self._transaction(self.settings.READ_TIMEOUT, read_only=True):
            changed = self._owned(self.model).filter(
                self.model.history_id > since, self._not_from_caller(self.model)
            )
            inserted = self._newest_first(
                changed.filter(self.model.last_stmt == LastStmt.ACTIVE)
            ).all()
            updated = self._newest_first(
                changed.filter(self.model.last_stmt == LastStmt.UPDATED)
            ).all()
            trashed = self._newest_first(
                changed.filter(self.model.last_stmt == LastStmt.TRASHED)
            ).all()
            deleted = (
                self._owned(self.tombstone)
                .filter(
                    self.tombstone.history_id > since,
                    self._not_from_caller(self.tombstone),
                )
                .order_by(self.tombstone.history_id.asc())
                .all()
            )
            last_history_id = self._current_history_id()

        logger.debug(
            f"Synced {self.entity.value} for user {self.user.user_id} device "
            f"{self.attributed_device} since {since}: {len(inserted)} inserted, "
            f"{len(updated)} updated, {len(trashed)} trashed, {len(deleted)} deleted"
        )
        return SyncResult(
            last_history_id=last_history_id,
            inserted=inserted,
            updated=updated,
            trashed=trashed,
            deleted=deleted,
        )
