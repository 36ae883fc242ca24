"""
Drawer States.

States and events of the notebook drawer and the table of allowed
transitions between them. CONFIRM_DELETE is an overlay: cancelling it
returns to whichever state opened it.
"""

from enum import StrEnum

from notebook.backend.core.exceptions import ApplicationError


class DrawerState(StrEnum):
    LIST = "list"
    VIEW = "view"
    ADD = "add"
    EDIT = "edit"
    CONFIRM_DELETE = "confirm_delete"


class DrawerEvent(StrEnum):
    SELECT = "select"
    BACK = "back"
    ADD = "add"
    EDIT = "edit"
    SUBMIT = "submit"
    CANCEL = "cancel"
    DELETE_REQUEST = "delete_request"
    CONFIRM = "confirm"
    SELECTION_CHANGE = "selection_change"


# None as a target means "back to the state the overlay was opened from".
PREVIOUS = None

TRANSITIONS: dict[tuple[DrawerState, DrawerEvent], DrawerState | None] = {
    (DrawerState.LIST, DrawerEvent.SELECT): DrawerState.VIEW,
    (DrawerState.LIST, DrawerEvent.ADD): DrawerState.ADD,
    (DrawerState.LIST, DrawerEvent.SELECTION_CHANGE): DrawerState.LIST,
    (DrawerState.LIST, DrawerEvent.DELETE_REQUEST): DrawerState.CONFIRM_DELETE,
    (DrawerState.VIEW, DrawerEvent.BACK): DrawerState.LIST,
    (DrawerState.VIEW, DrawerEvent.EDIT): DrawerState.EDIT,
    (DrawerState.VIEW, DrawerEvent.DELETE_REQUEST): DrawerState.CONFIRM_DELETE,
    (DrawerState.ADD, DrawerEvent.SUBMIT): DrawerState.VIEW,
    (DrawerState.ADD, DrawerEvent.CANCEL): DrawerState.LIST,
    (DrawerState.EDIT, DrawerEvent.SUBMIT): DrawerState.VIEW,
    (DrawerState.EDIT, DrawerEvent.CANCEL): DrawerState.VIEW,
    (DrawerState.CONFIRM_DELETE, DrawerEvent.CONFIRM): DrawerState.LIST,
    (DrawerState.CONFIRM_DELETE, DrawerEvent.CANCEL): PREVIOUS,
}


class InvalidTransitionError(ApplicationError):
    """Raised when an event is not allowed in the current drawer state."""

    def __init__(self, state: DrawerState, event: DrawerEvent) -> None:
        self.state = state
        self.event = event
        super().__init__(
            f"Cannot handle '{event}' in drawer state '{state}'",
            code="DRAWER_INVALID_TRANSITION",
        )


def next_state(
    state: DrawerState,
    event: DrawerEvent,
    previous: DrawerState | None = None,
) -> DrawerState:
    """
    Look up the state an event leads to.

    Args:
        state: Current state
        event: Event to apply
        previous: State that opened the current overlay, if any

    Raises:
        InvalidTransitionError: If the table has no entry for (state, event)
    """
    try:
        target = TRANSITIONS[(state, event)]
    except KeyError:
        raise InvalidTransitionError(state, event) from None

    if target is PREVIOUS:
        if previous is None:
            raise InvalidTransitionError(state, event)
        return previous
    return target
