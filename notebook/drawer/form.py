"""
Note Form.

Subject and body being edited in the drawer, and whether the save
control is enabled.
"""

from dataclasses import dataclass
from enum import StrEnum

from notebook.backend.core.utils import has_visible_content


class FormMode(StrEnum):
    ADD = "add"
    EDIT = "edit"


@dataclass
class NoteForm:
    """
    Drawer note form.

    save_enabled is recomputed on every change. Saving is blocked while
    the subject is empty, while the body shows nothing (no text once
    markup is stripped, and no image), and in edit mode while the content
    is identical to the note being edited.
    """

    mode: FormMode = FormMode.ADD
    note_id: int = 0
    subject: str = ""
    body: str = ""
    original_subject: str = ""
    original_body: str = ""
    save_enabled: bool = False

    def reset(self, subject: str) -> None:
        """Start a new note with a default subject and an empty body."""
        self.mode = FormMode.ADD
        self.note_id = 0
        self.subject = subject
        self.body = ""
        self.original_subject = subject
        self.original_body = ""
        self._recompute()

    def prefill(self, note_id: int, subject: str, body: str) -> None:
        """Start editing an existing note."""
        self.mode = FormMode.EDIT
        self.note_id = note_id
        self.subject = subject
        self.body = body
        self.original_subject = subject
        self.original_body = body
        self._recompute()

    def set_subject(self, subject: str) -> None:
        self.subject = subject
        self._recompute()

    def set_body(self, body: str) -> None:
        self.body = body
        self._recompute()

    def is_empty(self) -> bool:
        return not self.subject.strip() or not has_visible_content(self.body)

    def is_unchanged(self) -> bool:
        return (
            self.mode is FormMode.EDIT
            and self.subject == self.original_subject
            and self.body == self.original_body
        )

    def _recompute(self) -> None:
        self.save_enabled = not (self.is_empty() or self.is_unchanged())
