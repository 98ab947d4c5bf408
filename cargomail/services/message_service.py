from __future__ import annotations

import logging
from typing import Optional
from uuid import uuid4

from ..database import Message, MessageDeleted
from .entity_store import EntityStore
from .history import HistoryEntity

logger = logging.getLogger(__name__)


class MessageService(EntityStore):
    """Mailbox messages.

    Messages arrive through delivery rather than from the owning client, so
    clients may only change their flags and labels.
    """

    model = Message
    tombstone = MessageDeleted
    entity = HistoryEntity.MESSAGE

    creatable_fields = (
        "message_uid",
        "parent_uid",
        "thread_uid",
        "unread",
        "starred",
        "payload",
        "label_ids",
    )
    editable_fields = ("unread", "starred", "label_ids")

    not_found_message = "Message not found"

    def _creation_defaults(self) -> dict:
        return {
            "message_uid": str(uuid4()),
            "thread_uid": str(uuid4()),
            "unread": True,
        }

    def store_message(self, data: dict) -> Message:
        """Persist a delivered message; called by delivery, not by the API."""
        return self.create(**data)

    def update_message(self, message_id: str, data: dict) -> Message:
        return self.update(message_id, **data)

    def get_message(self, message_id: str) -> Optional[Message]:
        return self.get(message_id)
