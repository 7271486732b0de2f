"""Per-instance widget state machine."""

from enum import Enum
from typing import Any

from ..core.exceptions import WidgetStateError
from .document import WidgetElement


class WidgetState(str, Enum):
    IDLE = "idle"
    RESOLVING = "resolving"
    SETTINGS_SHOWN = "settings_shown"
    ERROR_SHOWN = "error_shown"
    SUBMITTING = "submitting"
    RESULTS_SHOWN = "results_shown"


# IDLE -> ERROR_SHOWN covers elements rejected before any request (missing uid)
ALLOWED_TRANSITIONS: dict[WidgetState, frozenset[WidgetState]] = {
    WidgetState.IDLE: frozenset({WidgetState.RESOLVING, WidgetState.SUBMITTING, WidgetState.ERROR_SHOWN}),
    WidgetState.RESOLVING: frozenset({WidgetState.SETTINGS_SHOWN, WidgetState.ERROR_SHOWN}),
    WidgetState.SETTINGS_SHOWN: frozenset({WidgetState.SUBMITTING}),
    WidgetState.SUBMITTING: frozenset({WidgetState.RESULTS_SHOWN, WidgetState.ERROR_SHOWN}),
    WidgetState.RESULTS_SHOWN: frozenset({WidgetState.IDLE}),
    WidgetState.ERROR_SHOWN: frozenset({WidgetState.IDLE}),
}


class WidgetInstance:
    """One discovered widget element and where it is in its lifecycle."""

    def __init__(self, element: WidgetElement, uid: str | None = None):
        self.element = element
        self.uid = uid
        self.state = WidgetState.IDLE
        self.settings: dict[str, Any] | None = None
        self.history: list[WidgetState] = [WidgetState.IDLE]

    def transition(self, target: WidgetState) -> None:
        if target not in ALLOWED_TRANSITIONS[self.state]:
            raise WidgetStateError(self.state.value, target.value)
        if target is WidgetState.SUBMITTING and self.state is WidgetState.IDLE and self.settings is None:
            raise WidgetStateError(self.state.value, target.value)
        self.state = target
        self.history.append(target)

    def begin_submit(self) -> None:
        """Move to SUBMITTING, passing through IDLE after a previous search."""
        if self.state in (WidgetState.RESULTS_SHOWN, WidgetState.ERROR_SHOWN) and self.settings is not None:
            self.transition(WidgetState.IDLE)
        self.transition(WidgetState.SUBMITTING)

    @property
    def can_submit(self) -> bool:
        return self.settings is not None and self.state is not WidgetState.SUBMITTING
