import logging
from datetime import datetime, timezone
from enum import IntEnum
from uuid import uuid4

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.orm import declarative_base, declared_attr, sessionmaker

from .config import settings

logger = logging.getLogger(__name__)


def make_engine(database_url: str, **kwargs):
    """Create an engine; SQLite connections are shared across request threads."""
    if database_url.startswith("sqlite"):
        connect_args = kwargs.pop("connect_args", {})
        connect_args.setdefault("check_same_thread", False)
        kwargs["connect_args"] = connect_args
    else:
        kwargs.setdefault("pool_pre_ping", True)
    return create_engine(database_url, **kwargs)


def make_sessionmaker(bind):
    # List/Sync results are read after their snapshot transaction commits; a
    # reload per row would both cost a query and leak newer values in.
    return sessionmaker(
        autocommit=False, autoflush=False, expire_on_commit=False, bind=bind
    )


engine = make_engine(settings.DATABASE_URL)
SessionLocal = make_sessionmaker(engine)
Base = declarative_base()


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def _new_uuid() -> str:
    return str(uuid4())


class LastStmt(IntEnum):
    """Trash tri-state; drives both liveness and the sync bucket of a row."""

    ACTIVE = 0
    UPDATED = 1
    TRASHED = 2


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(64), unique=True, index=True, nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255))
    hashed_password = Column(String, nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=utcnow)


# Shared column sets ---------------------------------------------------------------


class OwnedMixin:
    @declared_attr
    def user_id(cls):
        return Column(
            Integer,
            ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
        )


class SyncColumnsMixin(OwnedMixin):
    """Bookkeeping every syncable entity row carries."""

    created_at = Column(DateTime, default=utcnow, nullable=False)
    modified_at = Column(DateTime, nullable=True)
    history_id = Column(BigInteger, nullable=False, default=0)
    last_stmt = Column(Integer, nullable=False, default=LastStmt.ACTIVE)
    device_id = Column(String(255), nullable=True)


class TombstoneMixin(OwnedMixin):
    history_id = Column(BigInteger, nullable=False, index=True)
    device_id = Column(String(255), nullable=True)


class HistorySeqMixin:
    @declared_attr
    def user_id(cls):
        return Column(
            Integer,
            ForeignKey("users.id", ondelete="CASCADE"),
            primary_key=True,
        )

    last_history_id = Column(BigInteger, nullable=False, default=0)


class MessageColumnsMixin:
    message_uid = Column(String(36), nullable=False, default=_new_uuid)
    parent_uid = Column(String(36), nullable=True)
    thread_uid = Column(String(36), nullable=False, default=_new_uuid)
    unread = Column(Boolean, nullable=False, default=False)
    starred = Column(Boolean, nullable=False, default=False)
    payload = Column(JSON, nullable=True)
    label_ids = Column(Text, nullable=True)


# Contacts -------------------------------------------------------------------------


class Contact(SyncColumnsMixin, Base):
    __tablename__ = "contacts"

    id = Column(String(36), primary_key=True, default=_new_uuid)
    # Identity columns are never NULL so the unique constraint covers blanks
    email_address = Column(String(255), nullable=False, default="")
    firstname = Column(String(255), nullable=False, default="")
    lastname = Column(String(255), nullable=False, default="")

    __table_args__ = (
        UniqueConstraint(
            "user_id",
            "email_address",
            "firstname",
            "lastname",
            name="uq_contact_identity",
        ),
        Index("ix_contacts_user_history", "user_id", "history_id"),
    )


class ContactDeleted(TombstoneMixin, Base):
    __tablename__ = "contacts_deleted"

    id = Column(String(36), primary_key=True)


class ContactHistorySeq(HistorySeqMixin, Base):
    __tablename__ = "contact_history_seq"


# Blobs (message bodies and files) -------------------------------------------------


class BlobKind:
    BODY = "body"
    FILE = "file"


class Blob(SyncColumnsMixin, Base):
    __tablename__ = "blobs"

    uri = Column(String(36), primary_key=True, default=_new_uuid)
    kind = Column(String(16), nullable=False, default=BlobKind.FILE, index=True)
    hash = Column(String(64), nullable=False)
    name = Column(String(255), nullable=False)
    snippet = Column(Text, nullable=False, default="")
    path = Column(String(1024), nullable=False)
    size = Column(BigInteger, nullable=False, default=0)
    content_type = Column(String(255), nullable=False, default="application/octet-stream")

    __table_args__ = (Index("ix_blobs_user_history", "user_id", "history_id"),)


class BlobDeleted(TombstoneMixin, Base):
    __tablename__ = "blobs_deleted"

    uri = Column(String(36), primary_key=True)
    kind = Column(String(16), nullable=False, default=BlobKind.FILE)


class BlobHistorySeq(HistorySeqMixin, Base):
    __tablename__ = "blob_history_seq"


# Drafts ---------------------------------------------------------------------------


class Draft(SyncColumnsMixin, MessageColumnsMixin, Base):
    __tablename__ = "drafts"

    id = Column(String(36), primary_key=True, default=_new_uuid)

    __table_args__ = (Index("ix_drafts_user_history", "user_id", "history_id"),)


class DraftDeleted(TombstoneMixin, Base):
    __tablename__ = "drafts_deleted"

    id = Column(String(36), primary_key=True)


class DraftHistorySeq(HistorySeqMixin, Base):
    __tablename__ = "draft_history_seq"


# Messages -------------------------------------------------------------------------


class Message(SyncColumnsMixin, MessageColumnsMixin, Base):
    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=_new_uuid)

    __table_args__ = (Index("ix_messages_user_history", "user_id", "history_id"),)


class MessageDeleted(TombstoneMixin, Base):
    __tablename__ = "messages_deleted"

    id = Column(String(36), primary_key=True)


class MessageHistorySeq(HistorySeqMixin, Base):
    __tablename__ = "message_history_seq"


def create_tables(bind=None):
    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables created/verified")


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
