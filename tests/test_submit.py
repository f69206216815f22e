"""
Submit and delete-persist round trips through the API.
"""

import pytest
from unittest.mock import MagicMock

from cms.core import dao
from cms.core.content import FAQ, SectorItem, Service, get_content_type
from cms.core.schema import PendingUpload
from cms.editor.client import FormStoreClient, StoreRequestError
from cms.editor.engine import ListManager
from cms.editor.submit import make_persist_fn, submit_collection, submittable


@pytest.fixture
def store(admin_client):
    """Editor client talking to the in-process API."""
    return FormStoreClient(base_url="", session=admin_client)


def manager_for(form_type, client):
    return ListManager(get_content_type(form_type), client)


class TestFormStoreClient:

    def test_fetch_missing_type(self, store):
        assert store.fetch("faq") == []

    def test_error_body_becomes_exception(self, store):
        with pytest.raises(StoreRequestError) as exc_info:
            store.replace("faq", "missing", {"values[0][question]": "Q"})
        assert exc_info.value.status_code == 404
        assert str(exc_info.value) == "Record not found"

    def test_login_failure(self, api_client):
        client = FormStoreClient(base_url="", session=api_client)
        with pytest.raises(StoreRequestError) as exc_info:
            client.login("admin@example.com", "wrong")
        assert exc_info.value.status_code == 401
        assert str(exc_info.value) == "Invalid credentials"

    def test_unauthenticated_write(self, api_client):
        client = FormStoreClient(base_url="", session=api_client)
        with pytest.raises(StoreRequestError, match="Authentication required"):
            client.create("faq", {"values[0][question]": "Q"})

    def test_base_url_from_config(self):
        client = FormStoreClient(session=MagicMock())
        assert client.base_url == "http://localhost:8000"


class TestSubmitCollection:

    def test_first_submit_posts_and_reload_round_trips(self, store):
        manager = manager_for("faq", store)
        manager.replace_items([FAQ(question=f"Q{i}", answer=f"A{i}") for i in range(3)])

        assert submit_collection(manager, store) is True

        assert manager.success is True
        assert manager.loading is False
        assert manager.exists is not None
        assert [r.question for r in manager.items] == ["Q0", "Q1", "Q2"]

        reloaded = manager_for("faq", store)
        reloaded.load()
        assert reloaded.items == manager.items
        assert reloaded.exists.id == manager.exists.id

    def test_second_submit_puts(self, store):
        manager = manager_for("faq", store)
        manager.replace_items([FAQ(question="Q1", answer="A1")])
        submit_collection(manager, store)
        envelope_id = manager.exists.id

        manager.add_item(FAQ(question="Q2", answer="A2"))
        submit_collection(manager, store)

        assert manager.exists.id == envelope_id
        assert dao.get_envelope(envelope_id).values == [
            {"question": "Q1", "answer": "A1"},
            {"question": "Q2", "answer": "A2"},
        ]

    def test_incomplete_records_are_not_sent(self, store):
        manager = manager_for("faq", store)
        manager.replace_items([FAQ(question="Q1", answer="A1"), FAQ(question="draft")])

        submit_collection(manager, store)

        assert [r.question for r in manager.items] == ["Q1"]

    def test_nothing_to_submit(self, store):
        manager = manager_for("details", store)

        assert submit_collection(manager, store) is False

        assert manager.error_msg == "Add at least one complete service."
        assert dao.list_envelopes("details") == []

    def test_upload_replaced_by_url(self, store):
        manager = manager_for("details", store)
        upload = PendingUpload("logo.png", b"png", "image/png")
        manager.replace_items([Service(title="T", description="D", file=upload)])

        submit_collection(manager, store)

        saved = manager.items[0]
        assert saved.file is None
        assert saved.image.endswith("-logo.png")

    def test_sector_filter(self, store):
        manager = manager_for("setors", store)
        manager.replace_items([SectorItem(), SectorItem(link="https://example.com")])

        submit_collection(manager, store)

        assert manager.items == [SectorItem(link="https://example.com")]

    def test_server_error_shown(self, store):
        manager = manager_for("faq", store)
        manager.replace_items([FAQ(question="Q", answer="A")])
        store.create = MagicMock(side_effect=StoreRequestError("Error saving", 500))

        assert submit_collection(manager, store) is False

        assert manager.error_msg == "Error saving"
        assert manager.loading is False
        assert manager.exists is None


class TestPersistDelete:

    def test_delete_persists_shrunken_list(self, store):
        manager = manager_for("faq", store)
        manager.replace_items([FAQ(question="Q1", answer="A1"), FAQ(question="Q2", answer="A2")])
        submit_collection(manager, store)

        manager.open_delete_single_modal(0, "Q1")
        assert manager.confirm_delete(make_persist_fn(manager, store)) is True

        assert dao.get_envelope(manager.exists.id).values == [{"question": "Q2", "answer": "A2"}]

    def test_deleting_everything_removes_envelope(self, store):
        manager = manager_for("faq", store)
        manager.replace_items([FAQ(question="Q1", answer="A1")])
        submit_collection(manager, store)
        envelope_id = manager.exists.id

        manager.open_delete_all_modal()
        manager.confirm_delete(make_persist_fn(manager, store))

        assert manager.exists is None
        assert dao.get_envelope(envelope_id) is None
        assert manager.items == [FAQ()]

    def test_persisted_upload_not_sent_again(self, store, upload_dir):
        manager = manager_for("details", store)
        manager.replace_items([Service(title="A", description="D"), Service(title="B", description="D")])
        submit_collection(manager, store)
        manager.add_item(Service(title="C", description="D", file=PendingUpload("c.png", b"png", "image/png")))
        added_key = manager.items[-1].key

        manager.open_delete_single_modal(0, "A")
        assert manager.confirm_delete(make_persist_fn(manager, store)) is True

        kept = manager.items[-1]
        assert kept.file is None
        assert kept.image.endswith("-c.png")
        assert kept.key == added_key

        submit_collection(manager, store)

        assert len(list(upload_dir.iterdir())) == 1
        assert [r.title for r in manager.items] == ["B", "C"]

    def test_unsent_drafts_survive_persist(self, store):
        manager = manager_for("faq", store)
        manager.replace_items([FAQ(question="Q1", answer="A1"), FAQ(question="Q2", answer="A2")])
        submit_collection(manager, store)
        manager.add_item(FAQ(question="draft"))

        manager.open_delete_single_modal(0, "Q1")
        manager.confirm_delete(make_persist_fn(manager, store))

        assert [r.question for r in manager.items] == ["Q2", "draft"]
        assert dao.get_envelope(manager.exists.id).values == [{"question": "Q2", "answer": "A2"}]

    def test_failed_persist_reverts(self, store):
        manager = manager_for("faq", store)
        manager.replace_items([FAQ(question="Q1", answer="A1"), FAQ(question="Q2", answer="A2")])
        submit_collection(manager, store)
        dao.delete_envelope(manager.exists.id)

        manager.open_delete_single_modal(0, "Q1")
        assert manager.confirm_delete(make_persist_fn(manager, store)) is False

        assert [r.question for r in manager.items] == ["Q1", "Q2"]
        assert manager.error_msg == "Record not found"


def test_submittable_uses_filter():
    manager = ListManager(get_content_type("setors"))
    manager.replace_items([SectorItem(), SectorItem(title="x")])
    assert submittable(manager) == [SectorItem(title="x")]
