"""
Store foundation: database schema, envelope DAO and sessions.
"""

from datetime import datetime, timedelta

import pytest

from cms.core import dao
from cms.core.db import health_check, init_db
from cms.core.schema import FormEnvelope, Session


def test_database_health(fresh_db):
    """Test that database initializes correctly."""
    assert health_check() is True, "Database should be healthy"


def test_init_db_is_idempotent(fresh_db):
    init_db()
    init_db()
    assert health_check() is True


def test_list_missing_type_is_empty(fresh_db):
    assert dao.list_envelopes("faq") == []


def test_upsert_creates_envelope(fresh_db):
    values = [{"question": "Q1", "answer": "A1"}]
    envelope = dao.upsert_envelope("faq", values)

    assert envelope.type == "faq"
    assert envelope.values == values
    assert envelope.id
    assert isinstance(envelope.created_at, datetime)

    stored = dao.get_envelope(envelope.id)
    assert stored is not None
    assert stored.values == values


def test_upsert_replaces_values_of_existing_type(fresh_db):
    first = dao.upsert_envelope("faq", [{"question": "Q1", "answer": "A1"}])
    second = dao.upsert_envelope("faq", [{"question": "Q2", "answer": "A2"}])

    assert second.id == first.id, "One envelope per type"
    assert second.values == [{"question": "Q2", "answer": "A2"}]
    assert len(dao.list_envelopes("faq")) == 1
    assert dao.get_envelope_count() == 1


def test_types_are_isolated(fresh_db):
    dao.upsert_envelope("faq", [{"question": "Q", "answer": "A"}])
    dao.upsert_envelope("details", [{"title": "T", "description": "D"}])

    assert [e.type for e in dao.list_envelopes("faq")] == ["faq"]
    assert [e.type for e in dao.list_envelopes("details")] == ["details"]
    assert dao.get_envelope_count() == 2


def test_replace_values_overwrites_whole_array(fresh_db):
    envelope = dao.upsert_envelope("faq", [{"question": "Q1", "answer": "A1"}, {"question": "Q2", "answer": "A2"}])

    updated = dao.replace_values(envelope.id, [{"question": "Q3", "answer": "A3"}])

    assert updated.id == envelope.id
    assert updated.values == [{"question": "Q3", "answer": "A3"}]
    assert updated.updated_at >= envelope.updated_at


def test_replace_values_unknown_id_raises(fresh_db):
    with pytest.raises(dao.EnvelopeNotFoundError):
        dao.replace_values("missing-id", [])


def test_delete_envelope(fresh_db):
    envelope = dao.upsert_envelope("faq", [])
    dao.delete_envelope(envelope.id)

    assert dao.get_envelope(envelope.id) is None
    with pytest.raises(dao.EnvelopeNotFoundError):
        dao.delete_envelope(envelope.id)


def test_get_envelope_blank_id(fresh_db):
    assert dao.get_envelope("") is None
    assert dao.get_envelope("   ") is None


def test_envelope_dict_round_trip():
    now = datetime(2024, 5, 1, 12, 0, 0)
    envelope = FormEnvelope(id="e1", type="faq", values=[{"question": "Q"}], created_at=now, updated_at=now)

    data = envelope.to_dict()
    assert data["created_at"] == "2024-05-01T12:00:00"

    restored = FormEnvelope.from_dict(dict(data, extra="ignored"))
    assert restored == envelope


def test_envelope_from_dict_tolerates_missing_timestamps():
    envelope = FormEnvelope.from_dict({"id": 7, "values": None})
    assert envelope.id == "7"
    assert envelope.type == ""
    assert envelope.values == []


def test_session_lifecycle(fresh_db):
    session = dao.create_session("admin@example.com", 60)

    loaded = dao.get_session(session.token)
    assert loaded is not None
    assert loaded.email == "admin@example.com"

    assert dao.delete_session(session.token) is True
    assert dao.get_session(session.token) is None
    assert dao.delete_session(session.token) is False


def test_expired_session_is_removed(fresh_db):
    session = dao.create_session("admin@example.com", -1)

    assert dao.get_session(session.token) is None
    assert dao.delete_session(session.token) is False, "Expired row should already be gone"


def test_session_is_expired():
    now = datetime(2024, 1, 1)
    session = Session(token="t", email="e", created_at=now, expires_at=now + timedelta(seconds=10))
    assert not session.is_expired(now)
    assert session.is_expired(now + timedelta(seconds=10))
