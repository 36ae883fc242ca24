"""
Drawer Controller.

Drives the notebook drawer: the note list, the note view, the add and
edit forms and the delete confirmation. State changes follow the
TRANSITIONS table. Operations are serialized; an operation that fails
leaves the drawer where it was and shows an error notification.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Literal

import httpx

from notebook.backend.core.logging import get_logger, log_with_source
from notebook.backend.schemas.note import NoteDetail
from notebook.backend.schemas.scope import Scope
from notebook.drawer.bus import PubSub
from notebook.drawer.client import NotebookApiError, NotebookClient
from notebook.drawer.form import NoteForm
from notebook.drawer.states import DrawerEvent, DrawerState, InvalidTransitionError, next_state

logger = get_logger(__name__)

MESSAGE_SAVED = "notesaved"
MESSAGE_DELETED = "notedeleted"
MESSAGE_DELETED_MULTIPLE = "notedeletedmultiple"


@dataclass
class DrawerConfig:
    """Where the drawer is mounted and which bus topics it listens to."""

    scope: Scope = field(default_factory=Scope)
    page_size: int = 20
    competing_topics: tuple[str, ...] = ("message-drawer-shown",)
    show_topic: str = "notebook-drawer-show"
    hide_topic: str = "notebook-drawer-hide"
    toggle_topic: str = "notebook-drawer-toggle"


@dataclass
class Notification:
    """A dismissible message shown at the top of the drawer."""

    kind: Literal["success", "error"]
    message: str
    code: str | None = None


class DrawerController:
    """
    Single controller for the notebook drawer.

    Rendering reads the public attributes: state, visible, notes, total,
    current_note, selection, form, notification and focus. After every
    create, update or delete the list is reloaded from the server.
    """

    def __init__(
        self,
        client: NotebookClient,
        config: DrawerConfig | None = None,
        bus: PubSub | None = None,
    ) -> None:
        self.client = client
        self.config = config or DrawerConfig()
        self.bus = bus or PubSub()

        self.state = DrawerState.LIST
        self.visible = False
        self.notes: list[NoteDetail] = []
        self.total = 0
        self.offset = 0
        self.current_note: NoteDetail | None = None
        self.selection: set[int] = set()
        self.form = NoteForm()
        self.notification: Notification | None = None
        self.focus: str | None = None

        self._previous_state: DrawerState | None = None
        self._opener: str | None = None
        self._pending_delete: list[int] = []
        self._lock = asyncio.Lock()
        self._unsubscribe = [
            self.bus.subscribe(self.config.show_topic, lambda _: self.open()),
            self.bus.subscribe(self.config.hide_topic, lambda _: self.hide()),
            self.bus.subscribe(self.config.toggle_topic, self._on_toggle),
            *[
                self.bus.subscribe(topic, self._on_competing_panel)
                for topic in self.config.competing_topics
            ],
        ]

    # Derived view state

    @property
    def action_bar_visible(self) -> bool:
        return bool(self.selection)

    @property
    def footer_visible(self) -> bool:
        return not self.action_bar_visible

    @property
    def save_enabled(self) -> bool:
        return self.form.save_enabled

    @property
    def page(self) -> int:
        return self.offset // self.config.page_size

    # Plumbing

    async def _run(
        self,
        operation: str,
        action: Callable[[DrawerState | None], Awaitable[bool | None]],
        event: DrawerEvent | None = None,
    ) -> bool:
        """
        Run one operation under the lock; failures become a notification.

        The transition for event is checked once the lock is held, against
        the state left by the previous operation. An operation the drawer
        has moved past, or one whose action returns False, is skipped
        without touching the server.
        """
        async with self._lock:
            target = None
            if event is not None:
                try:
                    target = next_state(self.state, event)
                except InvalidTransitionError:
                    log_with_source(
                        logger, "drawer", "debug", "Drawer operation skipped",
                        operation=operation, state=str(self.state),
                    )
                    return False
            try:
                if await action(target) is False:
                    return False
            except (NotebookApiError, httpx.HTTPError) as e:
                code = getattr(e, "code", None)
                self.notification = Notification(kind="error", message=str(e), code=code)
                log_with_source(
                    logger, "drawer", "warning", "Drawer operation failed",
                    operation=operation, state=str(self.state), error=str(e), code=code,
                )
                return False
        log_with_source(logger, "drawer", "debug", "Drawer operation", operation=operation, state=str(self.state))
        return True

    async def _reload(self) -> None:
        notes, total = await self.client.list_notes(
            self.config.scope, limit=self.config.page_size, offset=self.offset,
        )
        if not notes and self.offset and total:
            self.offset = max(0, (total - 1) // self.config.page_size * self.config.page_size)
            notes, total = await self.client.list_notes(
                self.config.scope, limit=self.config.page_size, offset=self.offset,
            )
        self.notes = notes
        self.total = total
        self.selection.clear()

    # Visibility

    async def open(self) -> bool:
        """Show the drawer on the note list and load it."""
        self.visible = True

        async def action(_target: DrawerState | None) -> None:
            await self._reload()
            self.state = DrawerState.LIST
            self.current_note = None
            self._previous_state = None

        return await self._run("open", action)

    def hide(self) -> None:
        self.visible = False

    async def _on_toggle(self, opener: str | None) -> None:
        if self.visible:
            self.hide()
        else:
            self._opener = opener
            await self.open()

    def _on_competing_panel(self, _payload: object) -> None:
        if self.visible:
            log_with_source(logger, "drawer", "debug", "Competing panel shown, hiding drawer")
            self.hide()

    def close(self) -> None:
        """Detach from the bus."""
        for unsubscribe in self._unsubscribe:
            unsubscribe()
        self._unsubscribe = []

    # List

    async def refresh(self) -> bool:
        async def action(_target: DrawerState | None) -> None:
            await self._reload()

        return await self._run("refresh", action)

    async def go_to_page(self, page: int) -> bool:
        """Load another page of the list."""
        offset = max(0, page) * self.config.page_size

        async def action(_target: DrawerState | None) -> None:
            notes, total = await self.client.list_notes(
                self.config.scope, limit=self.config.page_size, offset=offset,
            )
            self.offset = offset
            self.notes = notes
            self.total = total
            self.selection.clear()

        return await self._run("go_to_page", action)

    def toggle_selection(self, note_id: int, selected: bool) -> None:
        """Tick or untick a note in the list."""
        self.state = next_state(self.state, DrawerEvent.SELECTION_CHANGE)
        if selected:
            self.selection.add(note_id)
            self.notification = None
        else:
            self.selection.discard(note_id)

    # View

    async def select(self, note_id: int) -> bool:
        """Open a note from the list."""
        async def action(target: DrawerState | None) -> None:
            note = await self.client.read_note(note_id)
            self.current_note = note
            self.selection.clear()
            self.state = target
            self.focus = "back-to-list"

        return await self._run("select", action, DrawerEvent.SELECT)

    def back(self) -> None:
        """Return from a note to the list."""
        note = self.current_note
        self.state = next_state(self.state, DrawerEvent.BACK)
        self.current_note = None
        self.focus = f"note-{note.id}" if note else None

    # Forms

    async def add(self) -> bool:
        """Open the add form with a fresh default subject."""
        async def action(target: DrawerState | None) -> None:
            subject = await self.client.form_subject(self.config.scope)
            self.form.reset(subject)
            self.selection.clear()
            self.state = target

        return await self._run("add", action, DrawerEvent.ADD)

    def edit(self) -> None:
        """Open the edit form on the current note."""
        self.state = next_state(self.state, DrawerEvent.EDIT)
        note = self.current_note
        self.form.prefill(note.id, note.subject, note.body)

    def set_subject(self, subject: str) -> None:
        self.form.set_subject(subject)

    def set_body(self, body: str) -> None:
        self.form.set_body(body)

    async def submit(self, attachment_area_id: int = 0) -> bool:
        """
        Save the form, then show the saved note.

        Returns False without calling the server while saving is blocked,
        or when the form was already saved by an earlier submit.
        """

        async def action(target: DrawerState | None) -> bool:
            if not self.form.save_enabled:
                return False
            if self.state is DrawerState.ADD:
                note_id = await self.client.create_note(
                    self.config.scope,
                    subject=self.form.subject,
                    body=self.form.body,
                    attachment_area_id=attachment_area_id,
                )
            else:
                note_id = self.form.note_id
                await self.client.update_note(
                    note_id,
                    subject=self.form.subject,
                    body=self.form.body,
                    attachment_area_id=attachment_area_id,
                )
            note = await self.client.read_note(note_id)
            await self._reload()
            self.current_note = note
            self.state = target
            self.notification = Notification(kind="success", message=MESSAGE_SAVED)
            return True

        return await self._run("submit", action, DrawerEvent.SUBMIT)

    def cancel(self) -> None:
        """Leave the add or edit form, or dismiss the delete confirmation."""
        if self.state is DrawerState.CONFIRM_DELETE:
            self.cancel_delete()
            return
        self.state = next_state(self.state, DrawerEvent.CANCEL)

    # Delete

    def request_delete(self, opener: str | None = None) -> None:
        """
        Ask for confirmation before deleting.

        From the list the selected notes are deleted, from the view the
        current note.
        """
        if self.state is DrawerState.VIEW and self.current_note is not None:
            ids = [self.current_note.id]
        else:
            ids = sorted(self.selection)
        target = next_state(self.state, DrawerEvent.DELETE_REQUEST)
        if not ids:
            return
        self._previous_state = self.state
        self._opener = opener
        self._pending_delete = ids
        self.state = target

    def cancel_delete(self) -> None:
        """Close the confirmation and give focus back to its opener."""
        self.state = next_state(self.state, DrawerEvent.CANCEL, self._previous_state)
        self.focus = self._opener
        self._previous_state = None
        self._pending_delete = []

    async def confirm_delete(self) -> bool:
        """Delete the pending notes and return to the refreshed list."""

        async def action(target: DrawerState | None) -> bool:
            ids = list(self._pending_delete)
            if not ids:
                return False
            await self.client.delete_notes(ids)
            await self._reload()
            self.current_note = None
            self.state = target
            self._previous_state = None
            self._pending_delete = []
            message = MESSAGE_DELETED_MULTIPLE if len(ids) > 1 else MESSAGE_DELETED
            self.notification = Notification(kind="success", message=message)
            return True

        return await self._run("confirm_delete", action, DrawerEvent.CONFIRM)

    def dismiss_notification(self) -> None:
        self.notification = None
