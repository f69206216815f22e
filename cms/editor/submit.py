"""Submitting an edited collection back to the form store."""

from dataclasses import replace
from typing import Any, Callable, List

from util.logging import logger
from ..core.content import clear_uploads
from ..core.form_codec import encode_records
from ..core.schema import FormEnvelope
from .client import FormStoreClient
from .engine import ListManager


def submittable(manager: ListManager, records: List[Any] = None) -> List[Any]:
    """Records the content type considers worth sending."""
    records = manager.items if records is None else records
    return [r for r in records if manager.content_type.should_submit(r)]


def _apply_saved(manager: ListManager, body: dict) -> None:
    envelope = FormEnvelope.from_dict(body)
    manager.exists = envelope
    saved = [clear_uploads(manager.content_type.from_values(v)) for v in envelope.values if isinstance(v, dict)]
    manager.replace_items(saved)


def submit_collection(manager: ListManager, client: FormStoreClient) -> bool:
    """
    Save the collection: POST when nothing is stored yet, otherwise PUT
    against the stored envelope. The stored values come back as the new
    list (fresh keys, uploads cleared).
    """
    content_type = manager.content_type
    manager.loading = True
    manager.clear_success()
    manager.clear_error()
    try:
        records = submittable(manager)
        if not records:
            manager.set_error(f"Add at least one complete {content_type.label}.")
            return False

        data, files = encode_records(records)
        if manager.exists is not None:
            body = client.replace(content_type.name, manager.exists.id, data, files)
        else:
            body = client.create(content_type.name, data, files)

        _apply_saved(manager, body)
        manager.show_success()
        logger.log_editor_event("submit", content_type.name, {"count": len(records)})
        return True
    except Exception as e:
        logger.error(f"Submit failed for '{content_type.name}': {e}")
        manager.set_error(str(e) or "Unknown error")
        return False
    finally:
        manager.loading = False


def make_persist_fn(manager: ListManager, client: FormStoreClient) -> Callable[[List[Any]], None]:
    """Build the callback ``confirm_delete`` uses to push a shrunken list."""

    def persist(new_items: List[Any]) -> None:
        if manager.exists is None:
            return

        content_type = manager.content_type
        records = submittable(manager, new_items)
        if not records:
            client.delete(content_type.name, manager.exists.id)
            manager.exists = None
            return

        data, files = encode_records(records)
        body = client.replace(content_type.name, manager.exists.id, data, files)
        envelope = FormEnvelope.from_dict(body)
        manager.exists = envelope
        manager.replace_items(_merge_saved(manager, new_items, envelope.values))

    return persist


def _merge_saved(manager: ListManager, records: List[Any], saved_values: List[Any]) -> List[Any]:
    """
    Swap the stored values into the records that were sent, keeping their
    keys and dropping their uploads. Records held back from the submit stay
    as they are.
    """
    content_type = manager.content_type
    saved = iter(v for v in saved_values if isinstance(v, dict))
    merged = []
    for record in records:
        values = next(saved, None) if content_type.should_submit(record) else None
        if values is None:
            merged.append(record)
        else:
            merged.append(replace(content_type.from_values(values), key=record.key))
    return merged
