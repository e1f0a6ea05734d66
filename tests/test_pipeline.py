"""Tests for the end-to-end arrangement pipeline."""

import json
import sys

import pytest

from vibeflow.models import Brief, Stage
from vibeflow.pipeline import PipelineConfig, PipelineResult, PipelineStage, VibePipeline, main
from vibeflow.workflow import get_workflow_progress


@pytest.fixture
def short_brief():
    return Brief(genres=["house"], mood=["uplifting"], target_duration_bars=32)


class TestPipelineDataclasses:
    """Tests for pipeline result containers."""

    def test_stage_defaults(self):
        stage = PipelineStage(name="palette")
        assert stage.status == "pending"
        assert stage.error is None

    def test_result_to_dict(self):
        result = PipelineResult(success=False, stages={"briefIngestion": PipelineStage("briefIngestion")})
        data = result.to_dict()
        assert data["progress"] == 0
        assert data["stages"]["briefIngestion"]["status"] == "pending"
        assert data["state"]["current_stage"] == "briefIngestion"


class TestVibePipeline:
    """Tests for running the pipeline."""

    def test_full_run(self, short_brief):
        result = VibePipeline(PipelineConfig(seed=7)).run(short_brief)
        assert result.success, result.errors
        assert list(result.stages) == [stage.value for stage in Stage]
        assert all(s.status == "completed" for s in result.stages.values())
        assert get_workflow_progress(result.state) == 100
        assert result.state.mix_design is not None
        assert result.state.macro_structure.total_bars == 32

    def test_seed_reproduces_run(self, short_brief):
        first = VibePipeline(PipelineConfig(seed=11)).run(short_brief)
        second = VibePipeline(PipelineConfig(seed=11)).run(short_brief)
        assert {k: v.data for k, v in first.stages.items()} == {k: v.data for k, v in second.stages.items()}
        assert first.state.compositions == second.state.compositions

    def test_revision_per_stage(self, short_brief):
        result = VibePipeline(PipelineConfig(seed=1)).run(short_brief)
        assert [r.stage for r in result.state.revision_history] == list(Stage)

    def test_save_json(self, short_brief, tmp_path):
        result = VibePipeline(PipelineConfig(seed=3)).run(short_brief)
        result.save(tmp_path / "nested" / "result.json")
        with open(tmp_path / "nested" / "result.json") as f:
            data = json.load(f)
        assert data["success"] is True
        assert data["progress"] == 100
        assert data["state"]["brief"]["genres"] == ["house"]

    def test_stops_at_first_error(self, short_brief):
        result = VibePipeline(PipelineConfig(seed=1, archetype="sonata")).run(short_brief)
        assert not result.success
        assert result.stages["macroStructure"].status == "error"
        assert "Unknown archetype" in result.stages["macroStructure"].error
        assert "composeOrchestrate" not in result.stages
        assert result.errors == [f"macroStructure failed: {result.stages['macroStructure'].error}"]
        assert get_workflow_progress(result.state) == 56

    def test_stage_requires_previous_output(self):
        stage = VibePipeline().stage_style_prior()
        assert stage.status == "error"
        assert "Run stage_brief first" in stage.error

    def test_export_before_run_raises(self):
        with pytest.raises(ValueError, match="Nothing to export"):
            VibePipeline().export_midi()

    def test_midi_export(self, short_brief, tmp_path):
        config = PipelineConfig(seed=5, export_midi=True, output_dir=str(tmp_path))
        result = VibePipeline(config).run(short_brief)
        assert result.midi_path == str(tmp_path / "arrangement.mid")
        assert (tmp_path / "arrangement.mid").exists()

    def test_options_flow_through(self, short_brief):
        config = PipelineConfig(
            seed=2,
            key="A",
            archetype="verse-chorus",
            progression_template="i-VI-III-VII",
            spatial_style="epic",
            variation_passes=2,
        )
        result = VibePipeline(config).run(short_brief)
        assert result.success, result.errors
        assert result.state.macro_structure.archetype == "verseChorus"
        assert len(result.state.variation_passes) == 2
        assert result.state.compositions[0].harmony_progression[0].chord == "Amin"
        assert result.state.mix_design.spatial_scene.depth_layers[2].decay_time == 4


class TestCli:
    """Tests for the command line entry point."""

    def test_main_writes_result(self, tmp_path, monkeypatch):
        monkeypatch.setattr(sys, "argv", [
            "vibeflow", "--genre", "techno", "--bars", "32", "--seed", "1", "--output", str(tmp_path),
        ])
        assert main() == 0
        assert (tmp_path / "pipeline_result.json").exists()

    def test_brief_file(self, tmp_path, monkeypatch):
        brief_path = tmp_path / "brief.json"
        brief_path.write_text(json.dumps({"genres": ["ambient"], "mood": ["chill"], "target_duration_bars": 48}))
        monkeypatch.setattr(sys, "argv", [
            "vibeflow", "--brief", str(brief_path), "--seed", "4", "--output", str(tmp_path),
        ])
        assert main() == 0

    def test_invalid_brief_exit_code(self, tmp_path, monkeypatch):
        monkeypatch.setattr(sys, "argv", ["vibeflow", "--bars", "0", "--output", str(tmp_path)])
        assert main() == 2
