"""Tests for the mix and spatial design stage."""

import pytest

from vibeflow.models import LevelingPlan, SectionComposition, StemGroup, TrackLevel, Voice, VoiceRole
from vibeflow.stages.mix_spatial import (
    assemble_mix_design,
    build_master_chain,
    create_leveling_plan,
    design_spatial_scene,
    plan_automation,
    suggest_eq_comp,
)
from vibeflow.stages.palette import assemble_sound_palette


@pytest.fixture
def compositions():
    voices = [
        Voice(VoiceRole.BASS, "bass-drop-2", "clip"),
        Voice(VoiceRole.TOPLINE, "topline-drop-2", "clip"),
        Voice(VoiceRole.PAD, "pad-drop-2", "clip"),
        Voice(VoiceRole.RHYTHM, "rhythm-drop-2", "clip"),
    ]
    return [
        SectionComposition("drop-2", voices),
        SectionComposition("drop-2", [Voice(VoiceRole.BASS, "bass-drop-2", "again")]),
    ]


@pytest.fixture
def leveling():
    return LevelingPlan(tracks=[
        TrackLevel("Kick", StemGroup.DRUMS, -6, 0),
        TrackLevel("Lead", StemGroup.SYNTHS, -10, 0),
        TrackLevel("Pad", StemGroup.PADS, -16, 20),
    ])


class TestLeveling:
    """Tests for the leveling plan."""

    def test_tracks_by_role(self, compositions):
        plan = create_leveling_plan(compositions)
        assert [(t.track_name, t.stem_group, t.target_db) for t in plan.tracks] == [
            ("bass-drop-2", StemGroup.BASS, -8),
            ("topline-drop-2", StemGroup.SYNTHS, -10),
            ("pad-drop-2", StemGroup.PADS, -16),
            ("rhythm-drop-2", StemGroup.DRUMS, -6),
        ]

    def test_palette_adds_unnamed_roles(self, compositions, house_prior, house_spec):
        palette = assemble_sound_palette(house_prior, house_spec)
        plan = create_leveling_plan(compositions, palette)
        names = [t.track_name for t in plan.tracks]
        assert "Synth Bass" not in names
        assert "Kick Drum" in names
        assert len(plan.tracks) == 10
        kick = next(t for t in plan.tracks if t.track_name == "Kick Drum")
        assert kick.stem_group == StemGroup.BASS
        assert kick.target_db == -12


class TestEqComp:
    """Tests for EQ and dynamics suggestions."""

    def test_all_groups_by_default(self):
        assert [s.stem_group for s in suggest_eq_comp()] == [
            StemGroup.DRUMS, StemGroup.BASS, StemGroup.SYNTHS, StemGroup.PADS, StemGroup.FX,
        ]

    def test_selected_groups_and_unknown_skipped(self):
        assert [s.stem_group for s in suggest_eq_comp([StemGroup.BASS, StemGroup.VOCALS])] == [StemGroup.BASS]

    def test_suggestions_are_copies(self):
        first = suggest_eq_comp([StemGroup.DRUMS])[0]
        first.compression.ratio = 100
        assert suggest_eq_comp([StemGroup.DRUMS])[0].compression.ratio == 4


class TestSpatialScene:
    """Tests for spatial design."""

    def test_layers_and_assignments(self, leveling):
        scene = design_spatial_scene(leveling)
        assert [(l.name, l.decay_time) for l in scene.depth_layers] == [
            ("Room", 0.8), ("Plate", 1.2), ("Hall", 2.5),
        ]
        assert scene.depth_layers[0].assigned_tracks == ["Kick"]
        assert scene.delays[0].time == "1/8"
        assert scene.delays[0].assigned_tracks == ["Lead"]
        assert [(w.track_name, w.technique, w.amount) for w in scene.width_processing] == [("Pad", "mid-side", 60)]

    def test_epic_hall(self, leveling):
        assert design_spatial_scene(leveling, "epic").depth_layers[2].decay_time == 4

    def test_unknown_style(self, leveling):
        with pytest.raises(ValueError, match="Unknown spatial style: cavernous"):
            design_spatial_scene(leveling, "cavernous")


class TestAutomation:
    """Tests for automation planning."""

    def test_passes_per_group(self, leveling):
        passes = plan_automation(leveling, 64)
        assert [(p.parameter, p.track_name, p.purpose) for p in passes] == [
            ("filter_cutoff", "Lead", "filter_sweep"),
            ("volume", "Kick", "drop_impact"),
        ]
        assert [k.bar for k in passes[0].keyframes] == [0, 16, 32, 48, 64]
        assert [(k.bar, k.value) for k in passes[1].keyframes] == [(0, 0.8), (28, 0.0), (32, 1.0)]

    def test_master_chain_order(self):
        chain = build_master_chain()
        assert [d.order for d in chain] == [1, 2, 3, 4]
        assert chain[-1].device == "Limiter"
        assert chain[-1].settings == {"ceiling": -0.3}


class TestAssembleMixDesign:
    """Tests for the assembled mix design."""

    def test_design_and_score(self, compositions, house_prior, house_spec):
        palette = assemble_sound_palette(house_prior, house_spec)
        design, score = assemble_mix_design(compositions, palette, 64)
        assert len(design.master_chain) == 4
        assert len(design.eq_comp_suggestions) == 5
        assert design.automation_passes
        assert 0 <= score.overall <= 100

    def test_without_palette(self, compositions):
        design, score = assemble_mix_design(compositions, None, 32, "intimate")
        assert design.spatial_scene.depth_layers[0].decay_time == 0.4
        assert isinstance(score.overall, int)
