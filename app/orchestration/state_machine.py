"""Canonical state transition helpers for pipeline entities."""

from __future__ import annotations

from collections.abc import Hashable


class InvalidTransitionError(ValueError):
    """Raised when a disallowed state transition is attempted."""


class StateMachine:
    """Simple in-memory state machine over an explicit transition table."""

    def __init__(self, transitions: dict[Hashable, set[Hashable]], initial: Hashable) -> None:
        if initial not in transitions:
            raise ValueError(f"Initial state {initial!r} missing from transition table")
        self._transitions = transitions
        self.state = initial

    def can_transition(self, current: Hashable, target: Hashable) -> bool:
        return target in self._transitions.get(current, set())

    def assert_transition(self, current: Hashable, target: Hashable) -> None:
        if not self.can_transition(current=current, target=target):
            raise InvalidTransitionError(f"Transition not allowed: {current} -> {target}")

    def move(self, target: Hashable) -> Hashable:
        self.assert_transition(self.state, target)
        self.state = target
        return target
