"""
Per-user, per-entity-type history sequence.

Every mutating write on a syncable entity takes its history id from here, in
the same transaction as the write. The counter lives in a one-row-per-user
table for each entity type and is advanced with an in-place
``UPDATE ... SET last_history_id = last_history_id + 1``, so the storage
engine's row lock orders concurrent writers for the same user.
"""
from __future__ import annotations

import enum
import logging
from typing import Dict, Type

from sqlalchemy import insert, select, update
from sqlalchemy.orm import Session

from ..database import (
    Base,
    BlobHistorySeq,
    ContactHistorySeq,
    DraftHistorySeq,
    MessageHistorySeq,
)

logger = logging.getLogger(__name__)


class HistoryEntity(str, enum.Enum):
    CONTACT = "contact"
    BLOB = "blob"
    DRAFT = "draft"
    MESSAGE = "message"


SEQUENCE_TABLES: Dict[HistoryEntity, Type[Base]] = {
    HistoryEntity.CONTACT: ContactHistorySeq,
    HistoryEntity.BLOB: BlobHistorySeq,
    HistoryEntity.DRAFT: DraftHistorySeq,
    HistoryEntity.MESSAGE: MessageHistorySeq,
}


class HistorySequencer:
    def __init__(self, db: Session):
        self.db = db

    def ensure_sequences(self, user_id: int) -> None:
        """Create the zeroed counter rows for a new user."""
        for seq in SEQUENCE_TABLES.values():
            exists = self.db.execute(
                select(seq.user_id).where(seq.user_id == user_id)
            ).first()
            if exists is None:
                self.db.execute(insert(seq).values(user_id=user_id, last_history_id=0))

    def next_history_id(self, user_id: int, entity: HistoryEntity) -> int:
        seq = SEQUENCE_TABLES[entity]
        result = self.db.execute(
            update(seq)
            .where(seq.user_id == user_id)
            .values(last_history_id=seq.last_history_id + 1)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            # No counter yet (user predates registration-time seeding)
            self.db.execute(insert(seq).values(user_id=user_id, last_history_id=1))
            logger.debug(f"Started {entity.value} history for user {user_id}")
            return 1

        return self.db.execute(
            select(seq.last_history_id).where(seq.user_id == user_id)
        ).scalar_one()

    def current_history_id(self, user_id: int, entity: HistoryEntity) -> int:
        """High-water-mark: the last id handed out, 0 if none yet."""
        seq = SEQUENCE_TABLES[entity]
        value = self.db.execute(
            select(seq.last_history_id).where(seq.user_id == user_id)
        ).scalar_one_or_none()
        return value or 0
