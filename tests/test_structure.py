"""Tests for arrangement archetypes and macro-structure generation."""

import pytest

from vibeflow.models import EnergyCurvePoint, SectionType
from vibeflow.structure import (
    ARCHETYPES,
    fit_lengths,
    generate_macro_structure,
    get_transition_type,
    resolve_archetype,
    score_energy_curve_smoothness,
    suggest_archetype_for_genre,
    validate_structure,
)


def assert_contiguous(structure):
    bar = 0
    for section in structure.sections:
        assert section.start_bar == bar
        assert section.length_bars >= 1
        bar += section.length_bars
    assert bar == structure.total_bars


class TestArchetypes:
    """Tests for archetype lookup."""

    def test_aliases(self):
        assert resolve_archetype("build-drop") == "buildDrop"
        assert resolve_archetype("aba") == "ternary"
        assert resolve_archetype("aaba") == "aaba"

    def test_unknown_archetype_raises(self):
        with pytest.raises(ValueError, match="Unknown archetype"):
            resolve_archetype("sonata")
        with pytest.raises(ValueError):
            generate_macro_structure("sonata")

    @pytest.mark.parametrize("genre,expected", [
        ("house", "buildDrop"),
        ("Techno", "buildDrop"),
        ("ambient", "throughComposed"),
        ("country", "verseChorus"),
        ("polka", "verseChorus"),
    ])
    def test_suggest_archetype(self, genre, expected):
        assert suggest_archetype_for_genre(genre) == expected

    def test_transition_labels(self):
        assert get_transition_type(SectionType.BUILD, SectionType.DROP) == "riser + impact"
        assert get_transition_type(SectionType.INTRO, SectionType.OUTRO) == "crossfade"


class TestMacroStructure:
    """Tests for macro structure generation."""

    @pytest.mark.parametrize("archetype", list(ARCHETYPES))
    def test_sections_are_contiguous(self, archetype):
        assert_contiguous(generate_macro_structure(archetype))

    def test_natural_length(self):
        structure = generate_macro_structure("buildDrop")
        assert structure.total_bars == 72
        assert [s.type for s in structure.sections] == ARCHETYPES["buildDrop"].sections

    @pytest.mark.parametrize("total", [32, 64, 100, 128, 256])
    def test_rescaled_to_exact_total(self, total):
        structure = generate_macro_structure("buildDrop", total_bars=total)
        assert structure.total_bars == total
        assert_contiguous(structure)

    def test_ids_and_names(self):
        structure = generate_macro_structure("buildDrop")
        assert [s.id for s in structure.sections][:3] == ["intro-0", "build-1", "drop-2"]
        assert [s.name for s in structure.sections][3:6] == ["Breakdown", "Build 2", "Drop 2"]

    def test_transitions_at_edges(self):
        sections = generate_macro_structure("buildDrop").sections
        assert sections[0].transition_in is None
        assert sections[-1].transition_out is None
        assert sections[1].transition_out == "riser + impact"
        assert sections[2].transition_in == "riser + impact"

    def test_key_moments(self):
        structure = generate_macro_structure("buildDrop")
        assert [(m.bar, m.description) for m in structure.key_moments][:2] == [
            (8, "build starts"),
            (16, "drop starts"),
        ]

    def test_step_energy_curve(self):
        structure = generate_macro_structure("binary")
        assert len(structure.energy_curve) == 2 * len(structure.sections)
        assert structure.energy_curve[0] == EnergyCurvePoint(0, 30)

    def test_scale_factor(self):
        assert generate_macro_structure("binary", scale_factor=2).total_bars == 96


class TestFitLengths:
    """Tests for section length rescaling."""

    def test_sum_matches(self):
        assert sum(fit_lengths([8, 8, 16, 8], 30)) == 30

    def test_unchanged_when_already_fitting(self):
        assert fit_lengths([8, 8], 16) == [8, 8]

    def test_minimum_one_bar(self):
        assert all(length >= 1 for length in fit_lengths([8] * 7, 3))

    def test_short_target_is_exceeded_with_warning(self, caplog):
        with caplog.at_level("WARNING", logger="vibeflow.structure"):
            lengths = fit_lengths([8] * 7, 3)
        assert sum(lengths) == 7
        assert "too short for 7 sections" in caplog.text

    def test_reachable_target_does_not_warn(self, caplog):
        with caplog.at_level("WARNING", logger="vibeflow.structure"):
            fit_lengths([8, 8, 16, 8], 30)
        assert caplog.text == ""


class TestStructureChecks:
    """Tests for smoothness and constraint checks."""

    def test_smoothness(self):
        assert score_energy_curve_smoothness([]) == 100
        assert score_energy_curve_smoothness([EnergyCurvePoint(0, 30), EnergyCurvePoint(4, 90)]) == 95

    def test_step_curves_ignore_zero_width_segments(self):
        curve = [EnergyCurvePoint(0, 30), EnergyCurvePoint(8, 30), EnergyCurvePoint(8, 95)]
        assert score_energy_curve_smoothness(curve) == 100

    def test_validate_structure(self):
        structure = generate_macro_structure("aaba")
        assert validate_structure(structure).valid
        report = validate_structure(structure, min_sections=6, must_have_drop=True)
        assert not report.valid
        assert len(report.issues) == 2


class TestTransitionCatalog:
    """Tests for the transition technique catalog."""

    def test_techniques_have_positive_duration(self):
        from vibeflow.structure import TRANSITION_TECHNIQUES

        assert all(t["duration"] > 0 for t in TRANSITION_TECHNIQUES.values())
        assert TRANSITION_TECHNIQUES["silence"]["energy_change"] < 0
