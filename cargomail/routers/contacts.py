from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..auth import authenticate, get_authenticated_user
from ..database import get_db
from ..models import (
    AuthenticatedUser,
    BulkResult,
    ContactCreate,
    ContactList,
    ContactResponse,
    ContactSync,
    ContactUpdate,
    HistoryIn,
    IdList,
)
from ..services.contact_service import ContactService

router = APIRouter(
    prefix="/contacts", tags=["contacts"], dependencies=[Depends(authenticate)]
)


def _service(
    db: Session = Depends(get_db),
    user: AuthenticatedUser = Depends(get_authenticated_user),
) -> ContactService:
    return ContactService(db, user)


@router.post("", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
def create_contact(payload: ContactCreate, service: ContactService = Depends(_service)):
    return service.create_contact(
        email_address=payload.email_address,
        firstname=payload.firstname,
        lastname=payload.lastname,
    )


@router.get("", response_model=ContactList)
def list_contacts(service: ContactService = Depends(_service)):
    return ContactList.from_result(service.list())


@router.put("", response_model=ContactResponse)
def update_contact(payload: ContactUpdate, service: ContactService = Depends(_service)):
    data = payload.model_dump(exclude_unset=True, exclude={"id"})
    return service.update_contact(payload.id, data)


@router.post("/sync", response_model=ContactSync)
def sync_contacts(payload: HistoryIn, service: ContactService = Depends(_service)):
    return ContactSync.from_result(service.sync(payload.history_id))


@router.post("/trash", response_model=BulkResult)
def trash_contacts(payload: IdList, service: ContactService = Depends(_service)):
    return BulkResult(affected=service.trash(payload.ids))


@router.post("/untrash", response_model=BulkResult)
def untrash_contacts(payload: IdList, service: ContactService = Depends(_service)):
    return BulkResult(affected=service.untrash(payload.ids))


@router.delete("/delete", response_model=BulkResult)
def delete_contacts(payload: IdList, service: ContactService = Depends(_service)):
    return BulkResult(affected=len(service.delete(payload.ids)))
