from __future__ import annotations

import hashlib
import logging
import os
from typing import BinaryIO, Iterable, List, Optional
from uuid import uuid4

from ..config import Settings
from ..database import Blob, BlobDeleted, BlobKind
from ..models import AuthenticatedUser
from .entity_store import EntityStore
from .history import HistoryEntity

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024
SNIPPET_LENGTH = 200


class BlobService(EntityStore):
    """Message bodies and attached files.

    Both kinds share one history sequence; each service instance is scoped to
    a single kind so the bodies and files surfaces never see each other's rows.
    """

    model = Blob
    tombstone = BlobDeleted
    entity = HistoryEntity.BLOB
    key_name = "uri"

    creatable_fields = ("uri", "hash", "name", "snippet", "path", "size", "content_type")
    editable_fields = ("name", "snippet", "content_type")

    order_by_created = False
    not_found_message = "Blob not found"

    def __init__(
        self,
        db,
        user: AuthenticatedUser,
        kind: str = BlobKind.FILE,
        settings: Optional[Settings] = None,
    ):
        super().__init__(db, user, settings)
        self.kind = kind

    def _scope_filters(self, model) -> list:
        return [model.kind == self.kind]

    def _creation_defaults(self) -> dict:
        return {"kind": self.kind}

    def _tombstone_fields(self, record) -> dict:
        return {"uri": record.uri, "kind": record.kind}

    # Storage --------------------------------------------------------------------------
    def _user_dir(self) -> str:
        path = os.path.join(self.settings.BLOB_STORAGE_PATH, str(self.user.user_id))
        os.makedirs(path, exist_ok=True)
        return path

    def upload(
        self,
        filename: str,
        content_type: Optional[str],
        stream: BinaryIO,
    ) -> Blob:
        uri = str(uuid4())
        path = os.path.join(self._user_dir(), uri)
        digest = hashlib.sha256()
        size = 0
        head = b""

        with open(path, "wb") as out:
            while True:
                chunk = stream.read(CHUNK_SIZE)
                if not chunk:
                    break
                digest.update(chunk)
                size += len(chunk)
                if len(head) < SNIPPET_LENGTH:
                    head += chunk[: SNIPPET_LENGTH - len(head)]
                out.write(chunk)

        content_type = content_type or "application/octet-stream"
        try:
            return self.create(
                uri=uri,
                hash=digest.hexdigest(),
                name=filename or uri,
                snippet=self._snippet(head, content_type),
                path=path,
                size=size,
                content_type=content_type,
            )
        except Exception:
            self._remove_file(path)
            raise

    def _snippet(self, head: bytes, content_type: str) -> str:
        if not content_type.startswith("text/"):
            return ""
        return " ".join(head.decode("utf-8", errors="ignore").split())

    def _remove_file(self, path: str) -> None:
        try:
            os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning(f"Could not remove blob file {path}: {exc}")

    # Entity overrides -----------------------------------------------------------------
    def get_by_uri(self, uri: str) -> Optional[Blob]:
        return self.get(uri)

    def delete(self, keys: Iterable[str]) -> List[Blob]:
        records = super().delete(keys)
        # Content goes only once the rows and tombstones are committed
        for record in records:
            self._remove_file(record.path)
        return records
