from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..auth import authenticate, get_authenticated_user
from ..database import get_db
from ..models import (
    AuthenticatedUser,
    BulkResult,
    HistoryIn,
    IdList,
    MessageList,
    MessageResponse,
    MessageSync,
    MessageUpdate,
)
from ..services.message_service import MessageService

router = APIRouter(
    prefix="/messages", tags=["messages"], dependencies=[Depends(authenticate)]
)


def _service(
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_authenticated_user),
) -> MessageService:
    return MessageService(db, user)


@router.get("", response_model=MessageList)
def list_messages(service: MessageService = Depends(_service)):
    return MessageList.from_result(service.list())


@router.put("", response_model=MessageResponse)
def update_message(payload: MessageUpdate, service: MessageService = Depends(_service)):
    """Flags and labels only; content is fixed once delivered."""
    data = payload.model_dump(exclude_none=True, exclude={"id"})
    return service.update_message(payload.id, data)


@router.post("/sync", response_model=MessageSync)
def sync_messages(payload: HistoryIn, service: MessageService = Depends(_service)):
    return MessageSync.from_result(service.sync(payload.history_id))


@router.post("/trash", response_model=BulkResult)
def trash_messages(payload: IdList, service: MessageService = Depends(_service)):
    return BulkResult(affected=service.trash(payload.ids))


@router.post("/untrash", response_model=BulkResult)
def untrash_messages(payload: IdList, service: MessageService = Depends(_service)):
    return BulkResult(affected=service.untrash(payload.ids))


@router.delete("/delete", response_model=BulkResult)
def delete_messages(payload: IdList, service: MessageService = Depends(_service)):
    return BulkResult(affected=len(service.delete(payload.ids)))
