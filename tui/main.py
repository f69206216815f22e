"""
Content editor - terminal interface over the list-editing engine.
"""

import mimetypes
import sys
from dataclasses import fields
from pathlib import Path
from typing import Any, List, Optional

from textual.app import App, ComposeResult
from textual.containers import Container, Horizontal, Vertical
from textual.screen import ModalScreen, Screen
from textual.widgets import Button, Footer, Header, Input, Label, ListItem, ListView, Static

from cms.core.content import (
    CONTENT_TYPES,
    ContentType,
    HighlightItem,
    add_text_line,
    is_upload_field,
    remove_text_line,
    value_fields,
)
from cms.core.schema import PendingUpload
from cms.core.uploads import resolve_media_url
from cms.editor.client import FormStoreClient
from cms.editor.engine import UNTITLED_ITEM, ListManager
from cms.editor.submit import make_persist_fn, submit_collection
from util.logging import logger
from .auth import authenticate, validate_editor_config

TEXT_LINE_SEPARATOR = "|"


def format_field(value: Any) -> str:
    if isinstance(value, tuple):
        return f" {TEXT_LINE_SEPARATOR} ".join(value)
    return "" if value is None else str(value)


def parse_field(default: Any, text: str) -> Any:
    """Turn an input's text back into the field's type."""
    if isinstance(default, tuple):
        return tuple(part.strip() for part in text.split(TEXT_LINE_SEPARATOR))
    if isinstance(default, int):
        stripped = text.strip()
        return int(stripped) if stripped.lstrip("-").isdigit() else 0
    return text


def record_label(content_type: ContentType, index: int, record: Any, flag_invalid: bool = False) -> str:
    """One-line summary of a record for the list view."""
    valid = content_type.is_valid(record)
    marker = "✔" if valid else ("!" if flag_invalid else "○")
    title = content_type.title_of(record).strip() or UNTITLED_ITEM
    media = getattr(record, "image", "") or getattr(record, "video", "")
    suffix = f"  [{resolve_media_url(media)}]" if media else ""
    return f"{marker} #{index + 1} {title}{suffix}"


class ConfirmScreen(ModalScreen[bool]):
    """Yes/no confirmation for deletes."""

    def __init__(self, message: str):
        super().__init__()
        self.message = message

    def compose(self) -> ComposeResult:
        yield Container(
            Label(self.message, classes="subtitle"),
            Horizontal(
                Button("Delete", id="confirm-yes", variant="error"),
                Button("Cancel", id="confirm-no"),
            ),
            id="confirm-container",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "confirm-yes")


class LoginScreen(Screen):
    """Login screen for editor access."""

    def compose(self) -> ComposeResult:
        yield Container(
            Static("Content Editor", classes="title"),
            Static("Restricted access", classes="subtitle"),
            Label("Email:", classes="label"),
            Input(id="login-email", placeholder="admin@example.com"),
            Label("Password:", classes="label"),
            Input(id="login-password", password=True),
            Button("Sign in", id="login-button", variant="primary"),
            id="auth-container",
        )

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "login-button":
            self.handle_login()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        if event.input.id == "login-password":
            self.handle_login()

    def handle_login(self) -> None:
        email = self.query_one("#login-email", Input).value
        password = self.query_one("#login-password", Input).value

        if authenticate(self.app.client, email, password):
            self.app.switch_screen(TypePickerScreen())
        else:
            self.query_one("#login-password", Input).value = ""
            self.notify("Invalid credentials", title="Login failed", severity="error")


class TypePickerScreen(Screen):
    """Choose which collection to edit."""

    def compose(self) -> ComposeResult:
        yield Header()
        yield Container(
            Static("Collections", classes="title"),
            *[
                Button(content_type.label.capitalize(), id=f"type-{name}", variant="primary")
                for name, content_type in CONTENT_TYPES.items()
            ],
            id="picker-container",
        )
        yield Footer()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id or ""
        if button_id.startswith("type-"):
            content_type = CONTENT_TYPES[button_id[len("type-"):]]
            self.app.push_screen(CollectionScreen(content_type, self.app.client))


class CollectionScreen(Screen):
    """Search, edit, add, delete and save one collection."""

    BINDINGS = [("escape", "back", "Back")]

    def __init__(self, content_type: ContentType, client: FormStoreClient):
        super().__init__()
        self.content_type = content_type
        self.client = client
        self.manager = ListManager(content_type, client)
        self.persist = make_persist_fn(self.manager, client)
        self._view = []
        self._selected: Optional[int] = None
        self._value_fields = value_fields(content_type.record_cls)
        self._upload_fields = [f for f in fields(content_type.record_cls) if is_upload_field(f)]

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static(self.content_type.label.capitalize(), classes="title")
        yield Horizontal(
            Input(id="search", placeholder=f"Search {self.content_type.label}..."),
            Button("Sort: asc", id="sort"),
            Button("Clear filters", id="clear"),
            id="search-bar",
        )
        yield Static("", id="counts")
        yield ListView(id="records")
        editor_rows: List = []
        for f in self._value_fields:
            editor_rows.append(Label(f.name.replace("_", " ").capitalize(), classes="label"))
            editor_rows.append(Input(id=f"field-{f.name}"))
        for f in self._upload_fields:
            editor_rows.append(Label(f"{f.name.replace('_', ' ').capitalize()} (path, Enter to attach)", classes="label"))
            editor_rows.append(Input(id=f"upload-{f.name}"))
        if self.content_type.record_cls is HighlightItem:
            editor_rows.append(Horizontal(
                Button("Add line", id="add-line"),
                Button("Remove last line", id="remove-line"),
            ))
        yield Vertical(*editor_rows, id="editor")
        yield Horizontal(
            Button("Add", id="add", variant="success"),
            Button("Delete", id="delete", variant="warning"),
            Button("Delete all", id="delete-all", variant="error"),
            Button("Save", id="save", variant="primary"),
            id="action-bar",
        )
        yield Static("", id="feedback")
        yield Footer()

    def on_mount(self) -> None:
        self.manager.load()
        self.refresh_list()
        self.set_interval(0.5, self.refresh_status)

    def action_back(self) -> None:
        self.app.pop_screen()

    # Rendering

    def refresh_list(self) -> None:
        """Rebuild the list view from the engine's filtered view."""
        self._view = self.manager.filtered_items()
        items = self.manager.items
        last = len(items) - 1
        list_view = self.query_one("#records", ListView)
        list_view.clear()
        list_view.extend([
            ListItem(Label(record_label(
                self.content_type, entry.original_index, entry.record,
                flag_invalid=self.manager.show_validation and entry.original_index == last
            )))
            for entry in self._view
        ])

        target = self.manager.take_scroll_target()
        if target is not None:
            position = next((i for i, e in enumerate(self._view) if e.record.key == target), None)
            if position is not None:
                self.call_after_refresh(self._focus_position, position)

        self.query_one("#sort", Button).label = f"Sort: {self.manager.sort_order}"
        self.refresh_status()

    def _focus_position(self, position: int) -> None:
        list_view = self.query_one("#records", ListView)
        list_view.index = position
        list_view.focus()

    def refresh_status(self) -> None:
        manager = self.manager
        self.query_one("#counts", Static).update(
            f"Showing {len(self._view)} of {len(manager.items)} | "
            f"{manager.complete_count()} complete"
            + (" | Search active - adding disabled" if manager.search else "")
        )
        self.query_one("#add", Button).disabled = not manager.can_add_new_item()
        self.query_one("#save", Button).disabled = manager.loading

        if manager.error_msg:
            feedback = f"✖ {manager.error_msg}"
        elif manager.success:
            feedback = "✔ Saved"
        else:
            feedback = ""
        self.query_one("#feedback", Static).update(feedback)

    def load_editor(self) -> None:
        """Copy the selected record's values into the edit inputs."""
        if self._selected is None:
            return
        record = self.manager.items[self._selected]
        for f in self._value_fields:
            self.query_one(f"#field-{f.name}", Input).value = format_field(getattr(record, f.name))
        for f in self._upload_fields:
            upload = getattr(record, f.name)
            self.query_one(f"#upload-{f.name}", Input).value = upload.filename if upload else ""

    # Events

    def on_list_view_highlighted(self, event: ListView.Highlighted) -> None:
        index = event.list_view.index
        if index is None or index >= len(self._view):
            self._selected = None
            return
        self._selected = self._view[index].original_index
        self.load_editor()

    def on_input_changed(self, event: Input.Changed) -> None:
        input_id = event.input.id or ""
        if input_id == "search":
            self.manager.search = event.value
            self.refresh_list()
            return

        if not input_id.startswith("field-") or self._selected is None:
            return

        name = input_id[len("field-"):]
        f = next(f for f in self._value_fields if f.name == name)
        record = self.manager.items[self._selected]
        new_value = parse_field(f.default, event.value)
        if new_value == getattr(record, name):
            return

        self.manager.update_item(self._selected, **{name: new_value})
        self._relabel_selected()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        input_id = event.input.id or ""
        if not input_id.startswith("upload-") or self._selected is None:
            return

        name = input_id[len("upload-"):]
        path = Path(event.value.strip()).expanduser()
        if not event.value.strip():
            self.manager.update_item(self._selected, **{name: None})
        elif not path.is_file():
            self.notify(f"File not found: {path}", title="Upload", severity="error")
            return
        else:
            content_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
            upload = PendingUpload(filename=path.name, content=path.read_bytes(), content_type=content_type)
            self.manager.update_item(self._selected, **{name: upload})
            self.notify(f"Attached {path.name}", title="Upload", severity="information")
        self._relabel_selected()

    def _relabel_selected(self) -> None:
        list_view = self.query_one("#records", ListView)
        item = list_view.highlighted_child
        if item is not None and self._selected is not None:
            record = self.manager.items[self._selected]
            item.query_one(Label).update(record_label(self.content_type, self._selected, record))
        self.refresh_status()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        manager = self.manager

        if button_id == "add":
            manager.add_item()
            self.refresh_list()
        elif button_id == "sort":
            manager.sort_order = "desc" if manager.sort_order == "asc" else "asc"
            self.refresh_list()
        elif button_id == "clear":
            manager.clear_filters()
            self.query_one("#search", Input).value = ""
            self.refresh_list()
        elif button_id in ("add-line", "remove-line") and self._selected is not None:
            record = manager.items[self._selected]
            if button_id == "add-line":
                record = add_text_line(record)
            else:
                record = remove_text_line(record, len(record.text_lists) - 1)
            manager.update_item(self._selected, text_lists=record.text_lists)
            self.load_editor()
            self._relabel_selected()
        elif button_id == "save":
            submit_collection(manager, self.client)
            self._selected = None
            self.refresh_list()
        elif button_id == "delete":
            if self._selected is None:
                self.notify("Select an item first", title="Delete", severity="warning")
                return
            record = manager.items[self._selected]
            manager.open_delete_single_modal(self._selected, self.content_type.title_of(record))
            self.app.push_screen(
                ConfirmScreen(f"Delete \"{manager.delete_modal.title}\"?"),
                self._on_delete_confirmed
            )
        elif button_id == "delete-all":
            manager.open_delete_all_modal()
            self.app.push_screen(
                ConfirmScreen(f"Delete all {len(manager.items)} {self.content_type.label} items?"),
                self._on_delete_confirmed
            )

    def _on_delete_confirmed(self, confirmed: bool) -> None:
        if confirmed:
            self.manager.confirm_delete(self.persist)
            self._selected = None
            self.query_one("#search", Input).value = self.manager.search
        else:
            self.manager.close_delete_modal()
        self.refresh_list()


class ContentEditorApp(App):
    """Content editor TUI application."""

    CSS = """
    .title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
        color: blue;
    }

    .subtitle {
        text-align: center;
        margin-bottom: 1;
        color: gray;
    }

    .label {
        margin-top: 1;
    }

    #records {
        height: 12;
        border: solid white;
    }

    #editor {
        height: auto;
        padding: 0 1;
    }

    #search-bar, #action-bar, #editor Horizontal {
        height: auto;
    }

    #search {
        width: 1fr;
    }

    #feedback {
        color: yellow;
    }

    #auth-container, #picker-container {
        width: 60;
        height: auto;
        align: center middle;
    }

    #confirm-container {
        width: 50;
        height: auto;
        border: thick red;
        padding: 1;
    }
    """

    TITLE = "Content Editor"

    BINDINGS = [("ctrl+q", "quit", "Quit")]

    def __init__(self, client: FormStoreClient = None):
        super().__init__()
        self.client = client or FormStoreClient()

    def on_mount(self) -> None:
        logger.info("Content editor started")
        editor_config = validate_editor_config()
        if isinstance(editor_config, str):
            self.exit(message=editor_config)
            return

        if editor_config["auth_required"]:
            self.push_screen(LoginScreen())
        else:
            self.push_screen(TypePickerScreen())


def main():
    """Main editor entry point."""
    try:
        editor_config = validate_editor_config()
        if isinstance(editor_config, str):
            print(f"❌ Editor configuration error: {editor_config}")
            sys.exit(1)

        print(f"🚀 Starting content editor against {editor_config['api_url']}...")
        ContentEditorApp().run()

    except KeyboardInterrupt:
        print("\nℹ️  Editor interrupted by user")
        logger.info("Editor exited via keyboard interrupt")
    except Exception as e:
        error_msg = f"Editor startup failed: {e}"
        print(f"❌ {error_msg}")
        logger.error(error_msg)
        sys.exit(1)


if __name__ == "__main__":
    main()
