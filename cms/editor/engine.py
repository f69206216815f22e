"""
List-editing state for one content collection.

``ListManager`` owns the in-memory collection the editor works on: loading
it from the store, gating new items on the last one being complete,
searching and ordering a presentation view, and the two-step delete flow.
Every mutation replaces the list with a new one; records themselves are
immutable, so no two entries can share a default object.

User-facing messages are transient: they expire after the configured
timeout, measured with an injectable clock.
"""

import time
from dataclasses import dataclass, replace
from typing import Any, Callable, Iterable, List, NamedTuple, Optional

from util.logging import logger
from ..core import config
from ..core.content import ContentType, searchable_text
from ..core.schema import ClientKey, FormEnvelope

CLEAR_SEARCH_MESSAGE = "Clear the search before adding a new item."
COMPLETE_ITEM_MESSAGE = "Complete the current item before adding a new one."
UNTITLED_ITEM = "Untitled item"

SORT_ORDERS = ("asc", "desc")


class TransientNotice:
    """A value that reads as unset once its timeout has passed."""

    def __init__(self, clock: Callable[[], float]):
        self._clock = clock
        self._value = None
        self._expires_at = 0.0

    def show(self, value: Any, timeout: float) -> None:
        self._value = value
        self._expires_at = self._clock() + timeout

    def clear(self) -> None:
        self._value = None

    def get(self, default: Any = None) -> Any:
        if self._value is None or self._clock() >= self._expires_at:
            return default
        return self._value


class FilteredItem(NamedTuple):
    original_index: int
    record: Any


@dataclass(frozen=True)
class DeleteModalState:
    is_open: bool = False
    kind: Optional[str] = None  # 'single' | 'all'
    index: Optional[int] = None
    title: str = ""


class ListManager:
    """State engine for editing one content type's collection."""

    def __init__(self, content_type: ContentType, client=None,
                 clock: Callable[[], float] = time.monotonic, message_timeout: float = None):
        self.content_type = content_type
        self.client = client
        self.message_timeout = config.MESSAGE_TIMEOUT_SEC if message_timeout is None else message_timeout

        self._items: List[Any] = [content_type.new_record()]
        self._revision = 0
        self._search = ""
        self._sort_order = "asc"
        self._filtered_cache = None
        self._scroll_target: Optional[ClientKey] = None

        self.exists: Optional[FormEnvelope] = None
        self.loading = False
        self.show_validation = False
        self.delete_modal = DeleteModalState()

        self._error = TransientNotice(clock)
        self._success = TransientNotice(clock)

    # State

    @property
    def items(self) -> List[Any]:
        return list(self._items)

    @property
    def search(self) -> str:
        return self._search

    @search.setter
    def search(self, value: str) -> None:
        self._search = value or ""

    @property
    def sort_order(self) -> str:
        return self._sort_order

    @sort_order.setter
    def sort_order(self, value: str) -> None:
        if value not in SORT_ORDERS:
            raise ValueError(f"sort_order must be one of: {SORT_ORDERS}")
        self._sort_order = value

    @property
    def error_msg(self) -> str:
        return self._error.get("")

    @property
    def success(self) -> bool:
        return self._success.get(False)

    def set_error(self, message: str) -> None:
        self._error.show(message, self.message_timeout)

    def clear_error(self) -> None:
        self._error.clear()

    def show_success(self) -> None:
        self._success.show(True, self.message_timeout)

    def clear_success(self) -> None:
        self._success.clear()

    def replace_items(self, records: Iterable[Any]) -> None:
        """Swap in a new collection; an empty one becomes a single fresh record."""
        new_items = list(records)
        self._items = new_items or [self.content_type.new_record()]
        self._revision += 1

    def update_item(self, index: int, **changes) -> None:
        new_items = list(self._items)
        new_items[index] = replace(new_items[index], **changes)
        self.replace_items(new_items)

    def is_valid(self, record: Any) -> bool:
        return self.content_type.is_valid(record)

    # Loading

    def load(self) -> bool:
        """Fetch the stored collection; on failure the current state is kept."""
        form_type = self.content_type.name
        try:
            data = self.client.fetch(form_type)
        except Exception as e:
            logger.error(f"Failed to load '{form_type}': {e}")
            return False

        envelope = None
        raw_items = []
        if isinstance(data, list) and data:
            first = data[0]
            if isinstance(first, dict) and "values" in first:
                envelope = FormEnvelope.from_dict(first)
                raw_items = envelope.values
            else:
                raw_items = data

        records = [self.content_type.from_values(v) for v in raw_items if isinstance(v, dict)]
        if records:
            self.exists = envelope
            self.replace_items(records)
        else:
            self.exists = None
            self.replace_items([self.content_type.new_record()])

        logger.log_editor_event("load", form_type, {"count": len(records), "exists": envelope is not None})
        return True

    # Adding

    def can_add_new_item(self) -> bool:
        if self._search:
            return False
        return self.is_valid(self._items[-1])

    def add_item(self, item: Any = None) -> bool:
        """Append a record after the last one passes validation."""
        if self._search:
            self.set_error(CLEAR_SEARCH_MESSAGE)
            return False

        if not self.is_valid(self._items[-1]):
            self.show_validation = True
            self.set_error(COMPLETE_ITEM_MESSAGE)
            return False

        new_item = item if item is not None else self.content_type.new_record()
        self.replace_items(self._items + [new_item])
        self.show_validation = False
        self._scroll_target = new_item.key
        return True

    def take_scroll_target(self) -> Optional[ClientKey]:
        """Key of the record to scroll into view after the next render, once."""
        target, self._scroll_target = self._scroll_target, None
        return target

    # Presentation view

    def filtered_items(self) -> List[FilteredItem]:
        cache_key = (self._revision, self._search, self._sort_order)
        if self._filtered_cache is None or self._filtered_cache[0] != cache_key:
            needle = self._search.lower()
            view = [
                FilteredItem(index, record)
                for index, record in enumerate(self._items)
                if not needle or any(needle in text.lower() for text in searchable_text(record))
            ]
            if self._sort_order == "desc":
                view.reverse()
            self._filtered_cache = (cache_key, tuple(view))
        return list(self._filtered_cache[1])

    def clear_filters(self) -> None:
        self._search = ""
        self._sort_order = "asc"

    def complete_count(self) -> int:
        return sum(1 for record in self._items if self.is_valid(record))

    # Deleting

    def open_delete_single_modal(self, index: int, title: str = "") -> None:
        self.delete_modal = DeleteModalState(True, "single", index, title or UNTITLED_ITEM)

    def open_delete_all_modal(self) -> None:
        self.delete_modal = DeleteModalState(True, "all", None, "")

    def close_delete_modal(self) -> None:
        self.delete_modal = DeleteModalState()

    def confirm_delete(self, persist_fn: Callable[[List[Any]], None] = None) -> bool:
        """
        Carry out the staged delete, then push the new list to the store.

        Persisting happens only when an envelope already exists. If it
        fails, the list reverts to its pre-delete contents and an error is
        shown. The modal is closed in every case.
        """
        modal = self.delete_modal
        previous = self._items
        previous_view = (self._search, self._sort_order, self.show_validation)
        try:
            if modal.kind == "all":
                new_items = [self.content_type.new_record()]
                self._search = ""
                self._sort_order = "asc"
                self.show_validation = False
            elif modal.kind == "single" and modal.index is not None and 0 <= modal.index < len(previous):
                if len(previous) == 1:
                    new_items = [self.content_type.new_record()]
                else:
                    new_items = [r for i, r in enumerate(previous) if i != modal.index]
            else:
                return False

            self.replace_items(new_items)

            if self.exists is not None and persist_fn is not None:
                try:
                    persist_fn(self.items)
                except Exception as e:
                    logger.error(f"Failed to persist delete for '{self.content_type.name}': {e}")
                    self.replace_items(previous)
                    self._search, self._sort_order, self.show_validation = previous_view
                    self.set_error(str(e) or "Failed to delete item.")
                    return False

            logger.log_editor_event("delete", self.content_type.name, {"kind": modal.kind})
            return True
        finally:
            self.close_delete_modal()
