from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth import authenticate, get_authenticated_user
from ..database import get_db
from ..models import (
    AuthenticatedUser,
    BulkResult,
    DraftCreate,
    DraftList,
    DraftSync,
    DraftUpdate,
    HistoryIn,
    IdList,
    MessageResponse,
)
from ..services.draft_service import DraftService

router = APIRouter(
    prefix="/drafts", tags=["drafts"], dependencies=[Depends(authenticate)]
)


def _service(
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_authenticated_user),
) -> DraftService:
    return DraftService(db, user)


@router.post("", response_model=MessageResponse, status_code=status.HTTP_201_CREATED)
def create_draft(payload: DraftCreate, service: DraftService = Depends(_service)):
    return service.create_draft(payload.model_dump())


@router.get("", response_model=DraftList)
def list_drafts(service: DraftService = Depends(_service)):
    return DraftList.from_result(service.list())


@router.put("", response_model=MessageResponse)
def update_draft(payload: DraftUpdate, service: DraftService = Depends(_service)):
    data = payload.model_dump(exclude_none=True, exclude={"id"})
    return service.update_draft(payload.id, data)


@router.post("/sync", response_model=DraftSync)
def sync_drafts(payload: HistoryIn, service: DraftService = Depends(_service)):
    return DraftSync.from_result(service.sync(payload.history_id))


@router.post("/trash", response_model=BulkResult)
def trash_drafts(payload: IdList, service: DraftService = Depends(_service)):
    return BulkResult(affected=service.trash(payload.ids))


@router.post("/untrash", response_model=BulkResult)
def untrash_drafts(payload: IdList, service: DraftService = Depends(_service)):
    return BulkResult(affected=service.untrash(payload.ids))


@router.delete("/delete", response_model=BulkResult)
def delete_drafts(payload: IdList, service: DraftService = Depends(_service)):
    return BulkResult(affected=len(service.delete(payload.ids)))
