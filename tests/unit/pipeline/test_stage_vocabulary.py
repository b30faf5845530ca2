from __future__ import annotations

import pytest

from app.core.enums import Phase
from app.pipeline.stages import StageVocabulary


def test_each_phase_has_its_own_ordered_vocabulary(vocabulary):
    assert vocabulary.stages_for_phase(1) == ("Lead", "Approached", "Not Interested", "Demo Stage")
    assert vocabulary.stages_for_phase(2) == (
        "Request Demo",
        "Demo Created",
        "Decision Pending",
        "Approved",
        "Undecided",
        "Rejected",
    )
    assert vocabulary.stages_for_phase(3) == (
        "Negotiating",
        "Fully Paid",
        "Closed Won",
        "In Development",
        "Completed",
        "Closed Lost",
    )


def test_stage_from_another_phase_is_not_valid(vocabulary):
    assert vocabulary.is_valid(1, "Approached") is True
    assert vocabulary.is_valid(1, "Closed Won") is False
    assert vocabulary.is_valid(3, "Rejected") is False
    assert vocabulary.is_valid(4, "Lead") is False


def test_trigger_stages_map_to_next_phase_entry(vocabulary):
    demo = vocabulary.transition_for("Demo Stage")
    assert demo.target_phase is Phase.PRESENTATION
    assert demo.entry_stage == "Request Demo"

    approved = vocabulary.transition_for("Approved")
    assert approved.target_phase is Phase.CONVERSION
    assert approved.entry_stage == "Negotiating"

    assert vocabulary.transition_for("Decision Pending") is None


def test_configured_spellings_replace_defaults():
    vocabulary = StageVocabulary(approval_stage="Demo Approved", phase3_entry_stage="Deposit Paid")

    assert "Demo Approved" in vocabulary.stages_for_phase(2)
    assert "Approved" not in vocabulary.stages_for_phase(2)
    assert vocabulary.initial_stage(3) == "Deposit Paid"
    assert vocabulary.transition_for("Demo Approved").entry_stage == "Deposit Paid"


def test_unknown_spelling_is_rejected():
    with pytest.raises(ValueError):
        StageVocabulary(approval_stage="Green Light")


def test_archived_and_active_stages_split_each_phase(vocabulary):
    assert vocabulary.archived_stages(1) == ("Not Interested",)
    assert vocabulary.archived_stages(2) == ("Rejected",)
    assert vocabulary.archived_stages(3) == ("Completed", "Closed Lost")
    assert "Closed Won" in vocabulary.active_stages(3)


def test_canonical_stage_recovers_legacy_labels(vocabulary):
    assert vocabulary.canonical_stage(2, "Decision Pending") == "Decision Pending"
    assert vocabulary.canonical_stage(2, "Demo Approved") == "Approved"
    assert vocabulary.canonical_stage(3, "Deposit Paid") == "Negotiating"
    # Approval label written into a phase 3 row.
    assert vocabulary.canonical_stage(3, "Approved") == "Negotiating"
    assert vocabulary.canonical_stage(1, "Closed Won") is None


def test_phase_of_finds_the_owning_phase(vocabulary):
    assert vocabulary.phase_of("Approached") is Phase.LEAD
    assert vocabulary.phase_of("Undecided") is Phase.PRESENTATION
    assert vocabulary.phase_of("Closed Lost") is Phase.CONVERSION
    # Unconfigured spelling belongs to no phase.
    assert vocabulary.phase_of("Demo Approved") is None
