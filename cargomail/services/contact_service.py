from __future__ import annotations

import logging
from typing import Optional

from ..database import Contact, ContactDeleted
from .entity_store import EntityStore
from .history import HistoryEntity

logger = logging.getLogger(__name__)


class ContactService(EntityStore):
    model = Contact
    tombstone = ContactDeleted
    entity = HistoryEntity.CONTACT

    creatable_fields = ("email_address", "firstname", "lastname")
    editable_fields = ("email_address", "firstname", "lastname")

    # Identity of a contact is (owner, email, first name, last name)
    duplicate_signatures = (
        "uq_contact_identity",
        "contacts.email_address, contacts.firstname, contacts.lastname",
    )
    duplicate_message = "Contact already exists"
    not_found_message = "Contact not found"

    def create_contact(
        self,
        email_address: Optional[str] = None,
        firstname: Optional[str] = None,
        lastname: Optional[str] = None,
    ) -> Contact:
        return self.create(
            email_address=self._normalize_email(email_address),
            firstname=firstname or "",
            lastname=lastname or "",
        )

    def update_contact(self, contact_id: str, data: dict) -> Contact:
        data = {name: value or "" for name, value in data.items()}
        if "email_address" in data:
            data["email_address"] = self._normalize_email(data["email_address"])
        return self.update(contact_id, **data)

    def get_contact(self, contact_id: str) -> Optional[Contact]:
        return self.get(contact_id)

    def _normalize_email(self, email_address: Optional[str]) -> str:
        # Missing and blank addresses are the same identity
        return (email_address or "").strip()
