"""Tests for the workflow state machine."""

from datetime import datetime

import pytest

from vibeflow.models import STAGE_ORDER, Stage, WorkflowState
from vibeflow.stages.style_prior import build_style_prior
from vibeflow.workflow import (
    STAGE_HANDLERS,
    check_dispatch_table,
    complete_stage,
    create_revision_entry,
    dispatch,
    get_next_stage,
    get_workflow_progress,
    is_stage_completed,
    merge_state,
    missing_handlers,
)


class TestStageProgress:
    """Tests for stage completion."""

    def test_fresh_state(self):
        state = WorkflowState()
        assert state.current_stage == Stage.BRIEF_INGESTION
        assert get_next_stage(state) == Stage.BRIEF_INGESTION
        assert get_workflow_progress(state) == 0

    def test_complete_advances(self, house_brief):
        state = complete_stage(WorkflowState(), Stage.BRIEF_INGESTION, summary="brief in", brief=house_brief)
        assert state.stages_completed == [Stage.BRIEF_INGESTION]
        assert state.current_stage == Stage.STYLE_PRIOR
        assert state.brief is house_brief
        assert state.revision_history[0].summary == "brief in"

    def test_complete_is_idempotent(self):
        state = complete_stage(WorkflowState(), Stage.BRIEF_INGESTION)
        again = complete_stage(state, Stage.BRIEF_INGESTION, action="revised")
        assert again.stages_completed == [Stage.BRIEF_INGESTION]
        assert [r.action for r in again.revision_history] == ["completed", "revised"]

    def test_history_is_append_only(self):
        state = complete_stage(WorkflowState(), Stage.BRIEF_INGESTION)
        first_entry = state.revision_history[0]
        later = complete_stage(state, Stage.STYLE_PRIOR)
        assert later.revision_history[0] is first_entry
        assert len(state.revision_history) == 1

    def test_original_state_untouched(self):
        state = WorkflowState()
        complete_stage(state, Stage.BRIEF_INGESTION)
        assert state.stages_completed == []
        assert state.revision_history == []

    def test_out_of_order_completion(self):
        state = complete_stage(WorkflowState(), Stage.TIME_BASE)
        assert state.current_stage == Stage.BRIEF_INGESTION
        assert is_stage_completed(state, Stage.TIME_BASE)
        assert not is_stage_completed(state, Stage.BRIEF_INGESTION)

    def test_all_stages_complete(self):
        state = WorkflowState()
        for stage in STAGE_ORDER:
            state = complete_stage(state, stage)
        assert get_next_stage(state) is None
        assert state.current_stage == Stage.MIX_SPATIAL
        assert get_workflow_progress(state) == 100

    @pytest.mark.parametrize("count,progress", [(1, 11), (3, 33), (5, 56), (8, 89)])
    def test_progress_rounding(self, count, progress):
        state = WorkflowState(stages_completed=STAGE_ORDER[:count])
        assert get_workflow_progress(state) == progress

    def test_revision_timestamp_is_iso(self):
        entry = create_revision_entry(Stage.PALETTE, "completed", "palette")
        assert datetime.fromisoformat(entry.timestamp).tzinfo is not None


class TestMergeState:
    """Tests for partial state merges."""

    def test_union_and_append(self):
        state = complete_stage(WorkflowState(), Stage.BRIEF_INGESTION)
        entry = create_revision_entry(Stage.STYLE_PRIOR, "imported", "")
        merged = merge_state(state, {
            "stages_completed": [Stage.BRIEF_INGESTION, Stage.STYLE_PRIOR],
            "revision_history": [entry],
        })
        assert merged.stages_completed == [Stage.BRIEF_INGESTION, Stage.STYLE_PRIOR]
        assert merged.revision_history[-1] is entry
        assert len(merged.revision_history) == 2

    def test_other_fields_replace(self, house_brief):
        merged = merge_state(WorkflowState(), {"brief": house_brief, "current_stage": Stage.PALETTE})
        assert merged.brief is house_brief
        assert merged.current_stage == Stage.PALETTE

    def test_unknown_field_raises(self):
        with pytest.raises(ValueError, match="Unknown workflow state fields: tempo"):
            merge_state(WorkflowState(), {"tempo": 128})


class TestDispatch:
    """Tests for the stage dispatch table."""

    def test_every_stage_has_handler(self):
        assert missing_handlers() == []
        assert set(STAGE_HANDLERS) == set(Stage)
        check_dispatch_table()

    def test_incomplete_table_raises(self):
        partial = {Stage.BRIEF_INGESTION: lambda brief: brief}
        assert len(missing_handlers(partial)) == 8
        with pytest.raises(RuntimeError, match="No handler for stages"):
            check_dispatch_table(partial)

    def test_dispatch_runs_handler(self, house_brief, house_spec):
        prior = dispatch(Stage.STYLE_PRIOR, house_brief, house_spec)
        assert prior == build_style_prior(house_brief, house_spec)

    def test_dispatch_rejects_non_stage(self):
        with pytest.raises(ValueError, match="Unknown stage"):
            dispatch("stylePrior")
