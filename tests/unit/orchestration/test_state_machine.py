from __future__ import annotations

import pytest

from app.orchestration.state_machine import InvalidTransitionError, StateMachine


def test_state_machine_allows_valid_transition():
    sm = StateMachine({"idle": {"awaiting"}, "awaiting": {"idle"}}, initial="idle")
    assert sm.can_transition("idle", "awaiting") is True
    assert sm.move("awaiting") == "awaiting"
    assert sm.state == "awaiting"


def test_state_machine_rejects_invalid_transition():
    sm = StateMachine({"idle": {"awaiting"}, "awaiting": set()}, initial="idle")
    with pytest.raises(InvalidTransitionError):
        sm.move("committing")
    assert sm.state == "idle"


def test_initial_state_must_be_in_table():
    with pytest.raises(ValueError):
        StateMachine({"idle": set()}, initial="committing")
