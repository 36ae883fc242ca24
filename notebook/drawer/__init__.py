# Notebook drawer: client-side controller for the notes side panel
from notebook.drawer.bus import PubSub
from notebook.drawer.client import NotebookApiError, NotebookClient
from notebook.drawer.controller import DrawerConfig, DrawerController, Notification
from notebook.drawer.form import FormMode, NoteForm
from notebook.drawer.states import TRANSITIONS, DrawerEvent, DrawerState, InvalidTransitionError

__all__ = [
    "TRANSITIONS",
    "DrawerConfig",
    "DrawerController",
    "DrawerEvent",
    "DrawerState",
    "FormMode",
    "InvalidTransitionError",
    "NoteForm",
    "NotebookApiError",
    "NotebookClient",
    "Notification",
    "PubSub",
]
