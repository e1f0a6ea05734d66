"""
Workflow state machine.

Tracks which of the nine stages have completed and keeps an append-only
revision log. The dispatch table maps every Stage to the function that
runs it.
"""

from dataclasses import fields, replace
from datetime import datetime, timezone
from typing import Callable, Optional

from .models import STAGE_ORDER, RevisionEntry, Stage, WorkflowState
from .scoring.common import round_half_up
from .stages.brief import ingest_brief
from .stages.compose import compose_all_sections
from .stages.macro_structure import draft_macro_structure
from .stages.mix_spatial import assemble_mix_design
from .stages.motif_seed import build_motif_seed_set
from .stages.palette import assemble_sound_palette
from .stages.style_prior import build_style_prior
from .stages.time_base import generate_and_rank_grooves
from .stages.variation import run_variation_pass


STAGE_HANDLERS: dict[Stage, Callable] = {
    Stage.BRIEF_INGESTION: ingest_brief,
    Stage.STYLE_PRIOR: build_style_prior,
    Stage.TIME_BASE: generate_and_rank_grooves,
    Stage.PALETTE: assemble_sound_palette,
    Stage.MOTIF_SEED: build_motif_seed_set,
    Stage.MACRO_STRUCTURE: draft_macro_structure,
    Stage.COMPOSE_ORCHESTRATE: compose_all_sections,
    Stage.VARIATION_OPERATORS: run_variation_pass,
    Stage.MIX_SPATIAL: assemble_mix_design,
}


def missing_handlers(handlers: dict = STAGE_HANDLERS) -> list[Stage]:
    return [stage for stage in STAGE_ORDER if stage not in handlers]


def check_dispatch_table(handlers: dict = STAGE_HANDLERS) -> None:
    """
    Raises:
        RuntimeError: if any stage has no handler
    """
    missing = missing_handlers(handlers)
    if missing:
        raise RuntimeError(f"No handler for stages: {', '.join(s.value for s in missing)}")


check_dispatch_table()


def dispatch(stage: Stage, *args, **kwargs):
    """Run the handler registered for a stage."""
    if not isinstance(stage, Stage):
        raise ValueError(f"Unknown stage: {stage}")
    return STAGE_HANDLERS[stage](*args, **kwargs)


def create_revision_entry(stage: Stage, action: str, summary: str) -> RevisionEntry:
    return RevisionEntry(
        stage=stage,
        timestamp=datetime.now(timezone.utc).isoformat(),
        action=action,
        summary=summary,
    )


def get_next_stage(state: WorkflowState) -> Optional[Stage]:
    """First stage in canonical order that has not completed, or None when all have."""
    for stage in STAGE_ORDER:
        if stage not in state.stages_completed:
            return stage
    return None


def complete_stage(
    state: WorkflowState,
    stage: Stage,
    action: str = "completed",
    summary: str = "",
    **artifacts
) -> WorkflowState:
    """
    Return a new state with a stage marked complete.

    Completing an already-completed stage leaves the completed list
    unchanged but still records the revision. Artifacts are keyword
    arguments named after WorkflowState fields (brief=..., palette=...).
    """
    completed = list(state.stages_completed)
    if stage not in completed:
        completed.append(stage)

    updated = replace(
        state,
        stages_completed=completed,
        revision_history=state.revision_history + [create_revision_entry(stage, action, summary)],
        **artifacts,
    )
    return replace(updated, current_stage=get_next_stage(updated) or stage)


def merge_state(state: WorkflowState, update: dict) -> WorkflowState:
    """
    Merge a partial update into a state.

    Completed stages are unioned, revision history is appended in order
    and every other field in the update replaces the current value.

    Raises:
        ValueError: if the update names a field WorkflowState does not have
    """
    known = {f.name for f in fields(WorkflowState)}
    unknown = set(update) - known
    if unknown:
        raise ValueError(f"Unknown workflow state fields: {', '.join(sorted(unknown))}")

    completed = list(state.stages_completed)
    for stage in update.get("stages_completed", []):
        if stage not in completed:
            completed.append(stage)

    others = {k: v for k, v in update.items() if k not in ("stages_completed", "revision_history")}
    return replace(
        state,
        stages_completed=completed,
        revision_history=state.revision_history + list(update.get("revision_history", [])),
        **others,
    )


def is_stage_completed(state: WorkflowState, stage: Stage) -> bool:
    return stage in state.stages_completed


def get_workflow_progress(state: WorkflowState) -> int:
    """Completed stages as a rounded percentage."""
    return round_half_up(len(state.stages_completed) / len(STAGE_ORDER) * 100)
