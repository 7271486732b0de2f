"""Unit tests for the widget instance state machine."""

import pytest

from embedsearch.core.exceptions import WidgetStateError
from embedsearch.widget.document import SoupDocument
from embedsearch.widget.state import ALLOWED_TRANSITIONS, WidgetInstance, WidgetState


@pytest.fixture
def instance() -> WidgetInstance:
    [element] = SoupDocument('<ai-search uid="u1"></ai-search>').find_elements("ai-search")
    return WidgetInstance(element, "u1")


class TestWidgetInstance:
    def test_happy_path(self, instance) -> None:
        instance.transition(WidgetState.RESOLVING)
        instance.settings = {"title": "AI Search"}
        instance.transition(WidgetState.SETTINGS_SHOWN)
        instance.begin_submit()
        instance.transition(WidgetState.RESULTS_SHOWN)

        assert instance.history == [
            WidgetState.IDLE,
            WidgetState.RESOLVING,
            WidgetState.SETTINGS_SHOWN,
            WidgetState.SUBMITTING,
            WidgetState.RESULTS_SHOWN,
        ]

    def test_illegal_transition_raises(self, instance) -> None:
        with pytest.raises(WidgetStateError) as exc_info:
            instance.transition(WidgetState.RESULTS_SHOWN)

        assert exc_info.value.error_code == "WIDGET_STATE_ERROR"
        assert instance.state is WidgetState.IDLE

    def test_submit_requires_settings(self, instance) -> None:
        with pytest.raises(WidgetStateError):
            instance.transition(WidgetState.SUBMITTING)

    def test_begin_submit_passes_through_idle(self, instance) -> None:
        instance.transition(WidgetState.RESOLVING)
        instance.settings = {}
        instance.transition(WidgetState.SETTINGS_SHOWN)
        instance.begin_submit()
        instance.transition(WidgetState.ERROR_SHOWN)

        instance.begin_submit()

        assert instance.history[-2:] == [WidgetState.IDLE, WidgetState.SUBMITTING]

    def test_cannot_submit_while_submitting(self, instance) -> None:
        instance.transition(WidgetState.RESOLVING)
        instance.settings = {}
        instance.transition(WidgetState.SETTINGS_SHOWN)
        assert instance.can_submit

        instance.begin_submit()

        assert not instance.can_submit
        with pytest.raises(WidgetStateError):
            instance.begin_submit()

    def test_every_state_has_an_exit(self) -> None:
        assert set(ALLOWED_TRANSITIONS) == set(WidgetState)
        assert all(ALLOWED_TRANSITIONS[state] for state in WidgetState)
