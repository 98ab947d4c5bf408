from __future__ import annotations

import logging
from typing import Optional
from uuid import uuid4

from ..database import Draft, DraftDeleted
from .entity_store import EntityStore
from .history import HistoryEntity

logger = logging.getLogger(__name__)


class DraftService(EntityStore):
    model = Draft
    tombstone = DraftDeleted
    entity = HistoryEntity.DRAFT

    creatable_fields = ("parent_uid", "thread_uid", "starred", "payload", "label_ids")
    editable_fields = ("parent_uid", "starred", "payload", "label_ids")

    not_found_message = "Draft not found"

    def _creation_defaults(self) -> dict:
        # A draft is never unread; a fresh one starts its own thread
        return {
            "message_uid": str(uuid4()),
            "thread_uid": str(uuid4()),
            "unread": False,
        }

    def create_draft(self, data: dict) -> Draft:
        return self.create(**data)

    def update_draft(self, draft_id: str, data: dict) -> Draft:
        return self.update(draft_id, **data)

    def get_draft(self, draft_id: str) -> Optional[Draft]:
        return self.get(draft_id)
