import pytest

from cargomail.database import LastStmt
from cargomail.errors import NotFoundError
from cargomail.services.draft_service import DraftService
from cargomail.services.message_service import MessageService


@pytest.fixture
def drafts(db_session, as_device):
    return lambda device_id="D1": DraftService(db_session, as_device(device_id))


@pytest.fixture
def messages(db_session, as_device):
    return lambda device_id="D1": MessageService(db_session, as_device(device_id))


def test_new_draft_starts_a_thread(drafts):
    draft = drafts().create_draft({"payload": {"subject": "Hi"}, "starred": True})

    assert draft.unread is False
    assert draft.starred is True
    assert draft.message_uid and draft.thread_uid
    assert draft.payload == {"subject": "Hi"}
    assert draft.history_id == 1


def test_reply_draft_keeps_thread(drafts):
    draft = drafts().create_draft({"parent_uid": "p-1", "thread_uid": "t-1"})
    assert (draft.parent_uid, draft.thread_uid) == ("p-1", "t-1")


def test_draft_update_and_sync(drafts):
    draft = drafts("D1").create_draft({"payload": {"subject": "Hi"}})
    drafts("D1").update_draft(draft.id, {"payload": {"subject": "Hello"}})

    result = drafts("D2").sync(0)
    assert [d.id for d in result.updated] == [draft.id]
    assert result.updated[0].payload == {"subject": "Hello"}
    assert result.last_history_id == 2


def test_draft_delete_writes_tombstone(drafts):
    draft = drafts("D1").create_draft({})
    drafts("D1").delete([draft.id])

    result = drafts("D2").sync(0)
    assert [row.id for row in result.deleted] == [draft.id]
    assert drafts("D2").list().records == []


def test_draft_and_message_sequences_are_independent(drafts, messages):
    drafts().create_draft({})
    drafts().create_draft({})
    assert messages().store_message({"payload": {"subject": "In"}}).history_id == 1


def test_delivered_message_is_unread(messages):
    message = messages().store_message({"payload": {"subject": "In"}})
    assert message.unread is True
    assert message.last_stmt == LastStmt.ACTIVE


def test_message_update_only_touches_flags(messages):
    message = messages("D1").store_message({"payload": {"subject": "In"}})

    updated = messages("D2").update_message(
        message.id, {"unread": False, "payload": {"subject": "Tampered"}}
    )

    assert updated.unread is False
    assert updated.payload == {"subject": "In"}
    assert updated.last_stmt == LastStmt.UPDATED


def test_message_trash_untrash_delete(messages):
    store = messages("D1")
    message = store.store_message({})

    assert store.trash([message.id]) == 1
    with pytest.raises(NotFoundError):
        store.update_message(message.id, {"starred": True})
    assert [m.id for m in messages("D2").sync(0).trashed] == [message.id]

    assert store.untrash([message.id]) == 1
    assert [m.id for m in store.list().records] == [message.id]

    store.delete([message.id])
    result = messages("D2").sync(0)
    assert result.inserted == [] and result.trashed == []
    assert [row.id for row in result.deleted] == [message.id]
