"""Per-phase sales-stage vocabularies and the trigger-stage transition map."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from app.core.config import (
    APPROVAL_STAGE_SPELLINGS,
    PHASE3_ENTRY_SPELLINGS,
    Config,
    get_config,
)
from app.core.enums import ARCHIVED_STAGES, Phase, SalesStage


@dataclass(frozen=True)
class StageTransition:
    target_phase: Phase
    entry_stage: str


class StageVocabulary:
    """Legal stage labels per phase.

    The approval trigger and the phase-3 entry stage have two spellings in
    stored data, so both are injected rather than hardcoded. Tuple order is
    presentation order only.
    """

    def __init__(
        self,
        approval_stage: str = SalesStage.APPROVED.value,
        phase3_entry_stage: str = SalesStage.NEGOTIATING.value,
    ) -> None:
        if approval_stage not in APPROVAL_STAGE_SPELLINGS:
            raise ValueError(f"Unknown approval stage spelling: {approval_stage!r}")
        if phase3_entry_stage not in PHASE3_ENTRY_SPELLINGS:
            raise ValueError(f"Unknown phase 3 entry stage spelling: {phase3_entry_stage!r}")

        self.approval_stage = approval_stage
        self.phase3_entry_stage = phase3_entry_stage
        self._stages: dict[Phase, tuple[str, ...]] = {
            Phase.LEAD: (
                SalesStage.LEAD.value,
                SalesStage.APPROACHED.value,
                SalesStage.NOT_INTERESTED.value,
                SalesStage.DEMO_STAGE.value,
            ),
            Phase.PRESENTATION: (
                SalesStage.REQUEST_DEMO.value,
                SalesStage.DEMO_CREATED.value,
                SalesStage.DECISION_PENDING.value,
                approval_stage,
                SalesStage.UNDECIDED.value,
                SalesStage.REJECTED.value,
            ),
            Phase.CONVERSION: (
                phase3_entry_stage,
                SalesStage.FULLY_PAID.value,
                SalesStage.CLOSED_WON.value,
                SalesStage.IN_DEVELOPMENT.value,
                SalesStage.COMPLETED.value,
                SalesStage.CLOSED_LOST.value,
            ),
        }
        self._transitions = {
            SalesStage.DEMO_STAGE.value: StageTransition(Phase.PRESENTATION, SalesStage.REQUEST_DEMO.value),
            approval_stage: StageTransition(Phase.CONVERSION, phase3_entry_stage),
        }

    @classmethod
    def from_config(cls, config: Config | None = None) -> "StageVocabulary":
        cfg = config or get_config()
        return cls(approval_stage=cfg.APPROVAL_STAGE_LABEL, phase3_entry_stage=cfg.PHASE3_ENTRY_STAGE)

    def stages_for_phase(self, phase: int) -> tuple[str, ...]:
        return self._stages[Phase(phase)]

    def initial_stage(self, phase: int) -> str:
        return self.stages_for_phase(phase)[0]

    def is_valid(self, phase: int, stage: str) -> bool:
        try:
            return stage in self.stages_for_phase(phase)
        except ValueError:
            return False

    def phase_of(self, stage: str) -> Phase | None:
        for phase, stages in self._stages.items():
            if stage in stages:
                return phase
        return None

    def transition_for(self, stage: str) -> StageTransition | None:
        return self._transitions.get(stage)

    @staticmethod
    def is_archived(stage: str | None) -> bool:
        return stage in ARCHIVED_STAGES

    def archived_stages(self, phase: int) -> tuple[str, ...]:
        return tuple(stage for stage in self.stages_for_phase(phase) if self.is_archived(stage))

    def active_stages(self, phase: int) -> tuple[str, ...]:
        return tuple(stage for stage in self.stages_for_phase(phase) if not self.is_archived(stage))

    def legacy_aliases(self) -> dict[str, str]:
        """Map the unconfigured spelling of each ambiguous label to the configured one."""
        aliases: dict[str, str] = {}
        for spelling in APPROVAL_STAGE_SPELLINGS:
            if spelling != self.approval_stage:
                aliases[spelling] = self.approval_stage
        for spelling in PHASE3_ENTRY_SPELLINGS:
            if spelling != self.phase3_entry_stage:
                aliases[spelling] = self.phase3_entry_stage
        return aliases

    def canonical_stage(self, phase: int, stage: str) -> str | None:
        """Return the label a stored (phase, stage) pair should carry, or None if unrecoverable.

        Older tables wrote the approval label into phase 3 rows; those map to the
        phase-3 entry stage.
        """
        if self.is_valid(phase, stage):
            return stage
        stage = self.legacy_aliases().get(stage, stage)
        if self.is_valid(phase, stage):
            return stage
        transition = self.transition_for(stage)
        if transition is not None and transition.target_phase == phase:
            return transition.entry_stage
        return None


@lru_cache(maxsize=1)
def get_vocabulary() -> StageVocabulary:
    return StageVocabulary.from_config()
