"""
Bodies and files.

Both surfaces are the same Blob entity scoped to a different ``kind``, so the
routers are built by one factory.
"""
import os

from fastapi import APIRouter, Depends, File, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from ..auth import authenticate, get_authenticated_user
from ..database import BlobKind, get_db
from ..errors import NotFoundError
from ..models import (
    AuthenticatedUser,
    BlobList,
    BlobResponse,
    BlobSync,
    BlobUpdate,
    BulkResult,
    HistoryIn,
    UriList,
)
from ..services.blob_service import BlobService


def build_blob_router(prefix: str, kind: str) -> APIRouter:
    router = APIRouter(
        prefix=prefix, tags=[prefix.strip("/")], dependencies=[Depends(authenticate)]
    )

    def _service(
        db: Session = Depends(get_db),
        user: AuthenticatedUser = Depends(get_authenticated_user),
    ) -> BlobService:
        return BlobService(db, user, kind=kind)

    @router.post(
        "/upload", response_model=BlobResponse, status_code=status.HTTP_201_CREATED
    )
    def upload(file: UploadFile = File(...), service: BlobService = Depends(_service)):
        return service.upload(file.filename, file.content_type, file.file)

    @router.get("", response_model=BlobList)
    def list_blobs(service: BlobService = Depends(_service)):
        return BlobList.from_result(service.list())

    @router.put("", response_model=BlobResponse)
    def update_blob(payload: BlobUpdate, service: BlobService = Depends(_service)):
        data = payload.model_dump(exclude_none=True, exclude={"uri"})
        return service.update(payload.uri, **data)

    @router.post("/sync", response_model=BlobSync)
    def sync_blobs(payload: HistoryIn, service: BlobService = Depends(_service)):
        return BlobSync.from_result(service.sync(payload.history_id))

    @router.post("/trash", response_model=BulkResult)
    def trash_blobs(payload: UriList, service: BlobService = Depends(_service)):
        return BulkResult(affected=service.trash(payload.uris))

    @router.post("/untrash", response_model=BulkResult)
    def untrash_blobs(payload: UriList, service: BlobService = Depends(_service)):
        return BulkResult(affected=service.untrash(payload.uris))

    @router.delete("/delete", response_model=BulkResult)
    def delete_blobs(payload: UriList, service: BlobService = Depends(_service)):
        return BulkResult(affected=len(service.delete(payload.uris)))

    @router.api_route("/{uri}", methods=["GET", "HEAD"])
    def download(uri: str, service: BlobService = Depends(_service)):
        blob = service.get_by_uri(uri)
        if blob is None or not os.path.exists(blob.path):
            raise NotFoundError("Blob not found")
        return FileResponse(
            path=blob.path,
            media_type=blob.content_type,
            filename=blob.name,
            headers={"ETag": f'"{blob.hash}"'},
        )

    return router


bodies_router = build_blob_router("/bodies", BlobKind.BODY)
files_router = build_blob_router("/files", BlobKind.FILE)
