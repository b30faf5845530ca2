from __future__ import annotations

import pytest

from app.core.enums import SideEffectKind
from app.core.exceptions import InvalidStageError, ValidationError
from app.orchestration.pipeline_machine import (
    MachineState,
    PendingSideEffect,
    PipelineStateMachine,
    SideEffectInput,
    StageChangeOutcome,
)
from app.orchestration.state_machine import InvalidTransitionError
from app.pipeline.stages import StageVocabulary


def test_plain_stage_change_commits_only_the_stage(machine, record_factory):
    contact = record_factory("c1", sales_stage="Lead")

    outcome = machine.request_stage_change(contact, "Approached")

    assert isinstance(outcome, StageChangeOutcome)
    assert outcome.patch == {"sales_stage": "Approached"}
    assert outcome.transitioned is False
    assert outcome.removed_from_view is False
    assert machine.state is MachineState.IDLE


def test_demo_stage_moves_contact_to_phase_two(machine, record_factory):
    outcome = machine.request_stage_change(record_factory("c1"), "Demo Stage")

    assert outcome.patch == {"current_phase": 2, "sales_stage": "Request Demo"}
    assert outcome.transitioned is True
    assert outcome.to_phase == 2
    assert outcome.removed_from_view is True


def test_not_interested_archives_without_transition(machine, record_factory):
    outcome = machine.request_stage_change(record_factory("c1", sales_stage="Approached"), "Not Interested")

    assert outcome.archived is True
    assert outcome.transitioned is False
    assert outcome.removed_from_view is True


def test_stage_outside_phase_vocabulary_is_rejected(machine, record_factory):
    with pytest.raises(InvalidStageError) as exc:
        machine.request_stage_change(record_factory("c1"), "Closed Won")

    assert exc.value.phase == 1
    assert machine.state is MachineState.IDLE


@pytest.mark.parametrize(
    ("phase", "stage", "kind"),
    [
        (2, "Request Demo", SideEffectKind.DEMO_REQUEST),
        (2, "Approved", SideEffectKind.NEGOTIATED_PRICE),
        (2, "Rejected", SideEffectKind.REJECTION_REASON),
        (3, "Closed Won", SideEffectKind.PAYMENT),
    ],
)
def test_gated_stages_wait_for_operator_input(machine, record_factory, phase, stage, kind):
    current = "Decision Pending" if phase == 2 else "Negotiating"
    pending = machine.request_stage_change(record_factory("c1", current_phase=phase, sales_stage=current), stage)

    assert isinstance(pending, PendingSideEffect)
    assert pending.kind is kind
    assert machine.state is MachineState.AWAITING_SIDE_EFFECT


def test_cancel_returns_to_idle_without_a_patch(machine, record_factory):
    contact = record_factory("c1", current_phase=2, sales_stage="Demo Created")
    machine.request_stage_change(contact, "Rejected")

    machine.cancel()

    assert machine.state is MachineState.IDLE
    assert machine.pending is None
    with pytest.raises(InvalidTransitionError):
        machine.supply(SideEffectInput(reason="late"))


def test_second_request_while_awaiting_is_refused(machine, record_factory):
    contact = record_factory("c1", current_phase=2, sales_stage="Demo Created")
    machine.request_stage_change(contact, "Rejected")

    with pytest.raises(InvalidTransitionError):
        machine.request_stage_change(contact, "Undecided")


def test_demo_request_records_instructions_and_assignee(machine, record_factory):
    contact = record_factory("c1", current_phase=2, sales_stage="Decision Pending")
    machine.request_stage_change(contact, "Request Demo")

    outcome = machine.supply(SideEffectInput(instructions=" Use the red logo ", assigned_to="Migs"))

    assert outcome.patch == {
        "sales_stage": "Request Demo",
        "demo_instructions": "Use the red logo",
        "assigned_to": "Migs",
    }
    assert outcome.removed_from_view is False


def test_demo_request_without_assignee_stays_pending(machine, record_factory):
    machine.request_stage_change(record_factory("c1", current_phase=2, sales_stage="Demo Created"), "Request Demo")

    with pytest.raises(ValidationError):
        machine.supply(SideEffectInput(instructions="anything"))

    assert machine.state is MachineState.AWAITING_SIDE_EFFECT


def test_approval_records_price_and_moves_to_phase_three(machine, record_factory):
    contact = record_factory("c1", current_phase=2, sales_stage="Decision Pending")
    machine.request_stage_change(contact, "Approved")

    outcome = machine.supply(SideEffectInput(price="₱15,000"))

    assert outcome.patch == {"current_phase": 3, "sales_stage": "Negotiating", "value": 15000.0}
    assert outcome.transitioned is True


def test_approval_with_blank_price_leaves_value_empty(machine, record_factory):
    machine.request_stage_change(record_factory("c1", current_phase=2, sales_stage="Undecided"), "Approved")

    outcome = machine.supply(SideEffectInput(price=""))

    assert outcome.patch["value"] is None


def test_rejection_appends_reason_to_notes(machine, record_factory):
    contact = record_factory("c1", current_phase=2, sales_stage="Demo Created", notes="Liked the menu page.")
    machine.request_stage_change(contact, "Rejected")

    outcome = machine.supply(SideEffectInput(reason="Too expensive"))

    assert outcome.patch["notes"] == "Liked the menu page.\n\n[Rejection Reason] Too expensive"
    assert outcome.archived is True


def test_rejection_without_reason_is_recorded_as_not_specified(machine, record_factory):
    machine.request_stage_change(record_factory("c1", current_phase=2, sales_stage="Undecided"), "Rejected")

    outcome = machine.supply(SideEffectInput(reason="   "))

    assert outcome.patch["notes"] == "[Rejection Reason] Not specified"


def test_payment_sets_value_and_appends_receipt(machine, record_factory):
    contact = record_factory("c1", current_phase=3, sales_stage="Fully Paid", value=10000.0)
    machine.request_stage_change(contact, "Closed Won")

    outcome = machine.supply(SideEffectInput(amount="12,000"))

    assert outcome.patch == {
        "sales_stage": "Closed Won",
        "value": 12000.0,
        "notes": "[Payment Received] ₱12,000.00",
    }
    assert outcome.removed_from_view is False


@pytest.mark.parametrize("amount", [None, "", "zero", "0"])
def test_payment_needs_positive_amount(machine, record_factory, amount):
    machine.request_stage_change(record_factory("c1", current_phase=3, sales_stage="Negotiating"), "Closed Won")

    with pytest.raises(ValidationError):
        machine.supply(SideEffectInput(amount=amount))

    assert machine.pending is not None


def test_legacy_spelling_drives_the_approval_gate(record_factory):
    machine = PipelineStateMachine(
        vocabulary=StageVocabulary(approval_stage="Demo Approved", phase3_entry_stage="Deposit Paid"),
        currency_symbol="₱",
    )
    machine.request_stage_change(record_factory("c1", current_phase=2, sales_stage="Decision Pending"), "Demo Approved")

    outcome = machine.supply(SideEffectInput(price=9000))

    assert outcome.to_phase == 3
    assert outcome.to_stage == "Deposit Paid"


def test_phase_never_decreases(machine, record_factory):
    contact = record_factory("c1", current_phase=3, sales_stage="Negotiating")
    for stage in machine.vocabulary.stages_for_phase(3):
        result = machine.request_stage_change(contact, stage)
        if isinstance(result, PendingSideEffect):
            result = machine.supply(SideEffectInput(amount=1))
        assert result.to_phase >= contact.current_phase
