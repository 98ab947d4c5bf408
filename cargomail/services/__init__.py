from .blob_service import BlobService
from .contact_service import ContactService
from .draft_service import DraftService
from .entity_store import EntityStore, ListResult, SyncResult
from .history import HistoryEntity, HistorySequencer
from .message_service import MessageService
from .user_service import UserService

__all__ = [
    "BlobService",
    "ContactService",
    "DraftService",
    "EntityStore",
    "HistoryEntity",
    "HistorySequencer",
    "ListResult",
    "MessageService",
    "SyncResult",
    "UserService",
]
