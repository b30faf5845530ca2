"""Stage-change state machine for contacts moving through the sales pipeline.

A stage change either commits straight away (plain update or pure phase
transition) or parks in ``AWAITING_SIDE_EFFECT`` until the operator supplies
the input the stage needs. Nothing is computed against the contact until the
commit, so cancelling from the awaiting state cannot leave a partial change.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from app.core.config import get_config
from app.core.enums import Phase, SalesStage, SideEffectKind
from app.core.exceptions import InvalidStageError, ValidationError
from app.orchestration.state_machine import InvalidTransitionError, StateMachine
from app.pipeline.notes import PAYMENT_TAG, REJECTION_TAG, append_note_block, format_amount
from app.pipeline.stages import StageVocabulary, get_vocabulary
from app.sync.normalize import normalize_text, parse_amount

logger = logging.getLogger(__name__)


class MachineState(str, Enum):
    IDLE = "idle"
    AWAITING_SIDE_EFFECT = "awaiting_side_effect"
    COMMITTING = "committing"


SESSION_TRANSITIONS = {
    MachineState.IDLE: {MachineState.AWAITING_SIDE_EFFECT, MachineState.COMMITTING},
    MachineState.AWAITING_SIDE_EFFECT: {MachineState.COMMITTING, MachineState.IDLE},
    MachineState.COMMITTING: {MachineState.IDLE},
}


@dataclass(frozen=True)
class SideEffectInput:
    """Operator-supplied payload; only the fields for the pending kind are read."""

    instructions: str | None = None
    assigned_to: str | None = None
    reason: str | None = None
    price: Any = None
    amount: Any = None


@dataclass(frozen=True)
class PendingSideEffect:
    contact_id: str
    requested_stage: str
    kind: SideEffectKind


@dataclass(frozen=True)
class StageChangeOutcome:
    contact_id: str
    from_phase: int
    from_stage: str
    patch: dict[str, Any] = field(default_factory=dict)
    transitioned: bool = False
    archived: bool = False

    @property
    def to_phase(self) -> int:
        return int(self.patch.get("current_phase", self.from_phase))

    @property
    def to_stage(self) -> str:
        return self.patch.get("sales_stage", self.from_stage)

    @property
    def removed_from_view(self) -> bool:
        return self.transitioned or self.archived


class PipelineStateMachine:
    """Decides what a requested stage change writes; never persists anything itself."""

    def __init__(self, vocabulary: StageVocabulary | None = None, currency_symbol: str | None = None) -> None:
        self.vocabulary = vocabulary or get_vocabulary()
        self.currency_symbol = currency_symbol if currency_symbol is not None else get_config().CURRENCY_SYMBOL
        self._session = StateMachine(SESSION_TRANSITIONS, initial=MachineState.IDLE)
        self._pending: PendingSideEffect | None = None
        self._pending_contact: Any = None

    @property
    def state(self) -> MachineState:
        return self._session.state

    @property
    def pending(self) -> PendingSideEffect | None:
        return self._pending

    def side_effect_for(self, phase: int, stage: str) -> SideEffectKind | None:
        if phase == Phase.PRESENTATION:
            if stage == SalesStage.REQUEST_DEMO.value:
                return SideEffectKind.DEMO_REQUEST
            if stage == self.vocabulary.approval_stage:
                return SideEffectKind.NEGOTIATED_PRICE
            if stage == SalesStage.REJECTED.value:
                return SideEffectKind.REJECTION_REASON
        if phase == Phase.CONVERSION and stage == SalesStage.CLOSED_WON.value:
            return SideEffectKind.PAYMENT
        return None

    def request_stage_change(self, contact: Any, requested_stage: str) -> PendingSideEffect | StageChangeOutcome:
        """Validate and either commit or park awaiting operator input.

        Raises InvalidStageError (no state change) when the stage is outside the
        contact's phase vocabulary.
        """
        if self.state is not MachineState.IDLE:
            raise InvalidTransitionError(f"Stage change already in progress ({self.state.value}).")

        phase = int(contact.current_phase)
        if not self.vocabulary.is_valid(phase, requested_stage):
            logger.warning(
                "pipeline.stage.rejected",
                extra={
                    "event": "pipeline.stage.rejected",
                    "contact_id": contact.id,
                    "phase": phase,
                    "stage": requested_stage,
                },
            )
            raise InvalidStageError(stage=requested_stage, phase=phase)

        kind = self.side_effect_for(phase, requested_stage)
        if kind is not None:
            self._session.move(MachineState.AWAITING_SIDE_EFFECT)
            self._pending = PendingSideEffect(contact_id=contact.id, requested_stage=requested_stage, kind=kind)
            self._pending_contact = contact
            return self._pending

        self._session.move(MachineState.COMMITTING)
        try:
            return self._build(contact, requested_stage, self._plain_patch(requested_stage))
        finally:
            self._session.move(MachineState.IDLE)

    def supply(self, payload: SideEffectInput) -> StageChangeOutcome:
        """Commit the pending change with operator input.

        An unusable payload raises ValidationError and leaves the change pending.
        """
        if self.state is not MachineState.AWAITING_SIDE_EFFECT or self._pending is None:
            raise InvalidTransitionError("No stage change is awaiting input.")

        pending, contact = self._pending, self._pending_contact
        patch = self._side_effect_patch(pending, contact, payload)

        self._session.move(MachineState.COMMITTING)
        try:
            return self._build(contact, pending.requested_stage, patch)
        finally:
            self._pending = None
            self._pending_contact = None
            self._session.move(MachineState.IDLE)

    def cancel(self) -> None:
        if self.state is MachineState.AWAITING_SIDE_EFFECT:
            logger.info(
                "pipeline.side_effect.cancelled",
                extra={"event": "pipeline.side_effect.cancelled", "contact_id": self._pending.contact_id},
            )
            self._session.move(MachineState.IDLE)
        self._pending = None
        self._pending_contact = None

    def _plain_patch(self, stage: str) -> dict[str, Any]:
        transition = self.vocabulary.transition_for(stage)
        if transition is not None:
            return {"current_phase": transition.target_phase.value, "sales_stage": transition.entry_stage}
        return {"sales_stage": stage}

    def _side_effect_patch(self, pending: PendingSideEffect, contact: Any, payload: SideEffectInput) -> dict[str, Any]:
        if pending.kind is SideEffectKind.DEMO_REQUEST:
            assignee = normalize_text("assigned_to", payload.assigned_to)
            if not assignee:
                raise ValidationError("A developer must be assigned to the demo request.")
            return {
                "sales_stage": pending.requested_stage,
                "demo_instructions": normalize_text("demo_instructions", payload.instructions),
                "assigned_to": assignee,
            }

        if pending.kind is SideEffectKind.NEGOTIATED_PRICE:
            patch = self._plain_patch(pending.requested_stage)
            patch["value"] = parse_amount(payload.price)
            return patch

        if pending.kind is SideEffectKind.REJECTION_REASON:
            reason = normalize_text("notes", payload.reason) or "Not specified"
            return {
                "sales_stage": pending.requested_stage,
                "notes": append_note_block(contact.notes, REJECTION_TAG, reason),
            }

        amount = parse_amount(payload.amount)
        if amount is None or amount <= 0:
            raise ValidationError("Payment amount must be a positive number.")
        return {
            "sales_stage": pending.requested_stage,
            "value": amount,
            "notes": append_note_block(contact.notes, PAYMENT_TAG, format_amount(amount, self.currency_symbol)),
        }

    def _build(self, contact: Any, requested_stage: str, patch: dict[str, Any]) -> StageChangeOutcome:
        from_phase = int(contact.current_phase)
        transitioned = int(patch.get("current_phase", from_phase)) > from_phase
        outcome = StageChangeOutcome(
            contact_id=contact.id,
            from_phase=from_phase,
            from_stage=contact.sales_stage,
            patch=patch,
            transitioned=transitioned,
            archived=self.vocabulary.is_archived(patch.get("sales_stage", contact.sales_stage)),
        )
        logger.info(
            "pipeline.stage.committed",
            extra={
                "event": "pipeline.stage.committed",
                "contact_id": contact.id,
                "requested_stage": requested_stage,
                "from_phase": from_phase,
                "to_phase": outcome.to_phase,
                "to_stage": outcome.to_stage,
                "archived": outcome.archived,
            },
        )
        return outcome
