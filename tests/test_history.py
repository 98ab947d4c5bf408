from cargomail.database import User
from cargomail.services.history import HistoryEntity, HistorySequencer


def test_registration_seeds_every_sequence_at_zero(db_session, user):
    sequencer = HistorySequencer(db_session)
    for entity in HistoryEntity:
        assert sequencer.current_history_id(user.id, entity) == 0


def test_next_history_id_is_strictly_increasing(db_session, user):
    sequencer = HistorySequencer(db_session)
    ids = [sequencer.next_history_id(user.id, HistoryEntity.CONTACT) for _ in range(3)]
    db_session.commit()

    assert ids == [1, 2, 3]
    assert sequencer.current_history_id(user.id, HistoryEntity.CONTACT) == 3


def test_entity_types_have_independent_sequences(db_session, user):
    sequencer = HistorySequencer(db_session)
    sequencer.next_history_id(user.id, HistoryEntity.CONTACT)
    sequencer.next_history_id(user.id, HistoryEntity.CONTACT)
    assert sequencer.next_history_id(user.id, HistoryEntity.BLOB) == 1
    db_session.commit()

    assert sequencer.current_history_id(user.id, HistoryEntity.DRAFT) == 0


def test_users_have_independent_sequences(db_session, user, other_user):
    sequencer = HistorySequencer(db_session)
    sequencer.next_history_id(user.id, HistoryEntity.MESSAGE)
    assert sequencer.next_history_id(other_user.id, HistoryEntity.MESSAGE) == 1


def test_missing_counter_row_starts_at_one(db_session):
    legacy = User(username="legacy", email="legacy@example.com", hashed_password="x")
    db_session.add(legacy)
    db_session.commit()

    sequencer = HistorySequencer(db_session)
    assert sequencer.current_history_id(legacy.id, HistoryEntity.CONTACT) == 0
    assert sequencer.next_history_id(legacy.id, HistoryEntity.CONTACT) == 1
    assert sequencer.next_history_id(legacy.id, HistoryEntity.CONTACT) == 2


def test_rolled_back_write_does_not_consume_ids(db_session, user):
    sequencer = HistorySequencer(db_session)
    sequencer.next_history_id(user.id, HistoryEntity.CONTACT)
    db_session.rollback()

    assert sequencer.current_history_id(user.id, HistoryEntity.CONTACT) == 0
