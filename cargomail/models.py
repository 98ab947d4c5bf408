from datetime import datetime
from typing import Any, ClassVar, Dict, List, Optional, Type

from pydantic import BaseModel, EmailStr, Field


# User Models
class UserBase(BaseModel):
    username: str = Field(..., min_length=1, max_length=64)
    email: EmailStr
    full_name: Optional[str] = None


class UserCreate(UserBase):
    password: str = Field(..., min_length=1)


class UserResponse(UserBase):
    id: int
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ProfileUpdate(BaseModel):
    email: Optional[EmailStr] = None
    full_name: Optional[str] = None


class UserLogin(BaseModel):
    username: str
    password: str
    device_id: Optional[str] = None


# Token Models
class Token(BaseModel):
    access_token: str
    token_type: str
    device_id: str


class TokenData(BaseModel):
    username: Optional[str] = None
    device_id: Optional[str] = None


class AuthenticatedUser(BaseModel):
    """What the authentication layer hands to entity handlers."""

    user_id: int
    username: str
    device_id: Optional[str] = None


# Request payloads shared by every syncable entity
class HistoryIn(BaseModel):
    history_id: int = Field(0, ge=0, alias="historyId")

    class Config:
        populate_by_name = True


class IdList(BaseModel):
    ids: List[str] = []


class UriList(BaseModel):
    uris: List[str] = []


class BulkResult(BaseModel):
    affected: int = 0


class DeletedResponse(BaseModel):
    id: str

    class Config:
        from_attributes = True


class HistoryEnvelope(BaseModel):
    last_history_id: int = Field(..., alias="lastHistoryId")

    class Config:
        populate_by_name = True


class ListEnvelope(HistoryEnvelope):
    item_model: ClassVar[Type[BaseModel]]
    records_field: ClassVar[str]

    @classmethod
    def from_result(cls, result):
        return cls(
            last_history_id=result.last_history_id,
            **{
                cls.records_field: [
                    cls.item_model.model_validate(record) for record in result.records
                ]
            },
        )


class SyncEnvelope(HistoryEnvelope):
    item_model: ClassVar[Type[BaseModel]]
    deleted_model: ClassVar[Type[BaseModel]] = DeletedResponse

    @classmethod
    def from_result(cls, result):
        def items(records):
            return [cls.item_model.model_validate(record) for record in records]

        return cls(
            last_history_id=result.last_history_id,
            inserted=items(result.inserted),
            updated=items(result.updated),
            trashed=items(result.trashed),
            deleted=[cls.deleted_model.model_validate(row) for row in result.deleted],
        )


# Contact Models
class ContactBase(BaseModel):
    email_address: Optional[str] = None
    firstname: Optional[str] = None
    lastname: Optional[str] = None


class ContactCreate(ContactBase):
    pass


class ContactUpdate(ContactBase):
    id: str


class ContactResponse(ContactBase):
    id: str
    created_at: datetime
    modified_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ContactList(ListEnvelope):
    item_model: ClassVar[Type[BaseModel]] = ContactResponse
    records_field: ClassVar[str] = "contacts"

    contacts: List[ContactResponse] = []


class ContactSync(SyncEnvelope):
    item_model: ClassVar[Type[BaseModel]] = ContactResponse

    inserted: List[ContactResponse] = []
    updated: List[ContactResponse] = []
    trashed: List[ContactResponse] = []
    deleted: List[DeletedResponse] = []


# Blob Models (message bodies and files)
class BlobUpdate(BaseModel):
    uri: str
    name: Optional[str] = None
    snippet: Optional[str] = None
    content_type: Optional[str] = None


class BlobResponse(BaseModel):
    uri: str
    kind: str
    name: str
    snippet: str
    size: int
    content_type: str
    created_at: datetime
    modified_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BlobDeletedResponse(BaseModel):
    uri: str

    class Config:
        from_attributes = True


class BlobList(ListEnvelope):
    item_model: ClassVar[Type[BaseModel]] = BlobResponse
    records_field: ClassVar[str] = "blobs"

    blobs: List[BlobResponse] = []


class BlobSync(SyncEnvelope):
    item_model: ClassVar[Type[BaseModel]] = BlobResponse
    deleted_model: ClassVar[Type[BaseModel]] = BlobDeletedResponse

    inserted: List[BlobResponse] = []
    updated: List[BlobResponse] = []
    trashed: List[BlobResponse] = []
    deleted: List[BlobDeletedResponse] = []


# Draft and Message Models
class DraftCreate(BaseModel):
    parent_uid: Optional[str] = None
    thread_uid: Optional[str] = None
    starred: bool = False
    payload: Optional[Dict[str, Any]] = None
    label_ids: Optional[str] = None


class DraftUpdate(BaseModel):
    id: str
    parent_uid: Optional[str] = None
    starred: Optional[bool] = None
    payload: Optional[Dict[str, Any]] = None
    label_ids: Optional[str] = None


class MessageUpdate(BaseModel):
    id: str
    unread: Optional[bool] = None
    starred: Optional[bool] = None
    label_ids: Optional[str] = None


class MessageResponse(BaseModel):
    id: str
    message_uid: str
    parent_uid: Optional[str] = None
    thread_uid: str
    unread: bool
    starred: bool
    payload: Optional[Dict[str, Any]] = None
    label_ids: Optional[str] = None
    created_at: datetime
    modified_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class DraftList(ListEnvelope):
    item_model: ClassVar[Type[BaseModel]] = MessageResponse
    records_field: ClassVar[str] = "drafts"

    drafts: List[MessageResponse] = []


class DraftSync(SyncEnvelope):
    item_model: ClassVar[Type[BaseModel]] = MessageResponse

    inserted: List[MessageResponse] = []
    updated: List[MessageResponse] = []
    trashed: List[MessageResponse] = []
    deleted: List[DeletedResponse] = []


class MessageList(ListEnvelope):
    item_model: ClassVar[Type[BaseModel]] = MessageResponse
    records_field: ClassVar[str] = "messages"

    messages: List[MessageResponse] = []


class MessageSync(SyncEnvelope):
    item_model: ClassVar[Type[BaseModel]] = MessageResponse

    inserted: List[MessageResponse] = []
    updated: List[MessageResponse] = []
    trashed: List[MessageResponse] = []
    deleted: List[DeletedResponse] = []
