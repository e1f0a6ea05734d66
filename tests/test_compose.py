"""Tests for section composition and orchestration."""

import pytest

from vibeflow.models import (
    ArrangementSection,
    MotifSeed,
    MotifType,
    Note,
    SectionType,
    Voice,
    VoiceRole,
)
from vibeflow.stages.compose import (
    analyze_register_distribution,
    build_harmony,
    compose_all_sections,
    compose_section,
    density_from_energy,
    tile_motif,
    voice_from_motif,
)
from vibeflow.structure import generate_macro_structure


def seed(motif_type, pitches, length_bars=1, name=None):
    return MotifSeed(
        id=f"motif-{motif_type.value}-{pitches[0]}",
        type=motif_type,
        name=name or f"{motif_type.value} seed",
        notes=[Note(p, float(i), 1.0, 100) for i, p in enumerate(pitches)],
        length_bars=length_bars,
    )


@pytest.fixture
def motif_set():
    return [
        seed(MotifType.MELODIC, [72, 74, 76, 77]),
        seed(MotifType.RHYTHMIC, [36, 36, 36, 36], name="Kick seed"),
        seed(MotifType.HARMONIC, [60, 64, 67]),
        seed(MotifType.TEXTURAL, [67, 71]),
        seed(MotifType.RHYTHMIC, [42, 42], name="Hat seed"),
    ]


class TestTiling:
    """Tests for motif tiling."""

    def test_tiles_every_bar(self):
        motif = MotifSeed("m", MotifType.RHYTHMIC, "m", [Note(36, 0, 1, 100), Note(36, 3, 1, 100)], 1)
        tiled = tile_motif(motif, 3)
        assert [n.time for n in tiled] == [0, 3, 4, 7, 8, 11]

    def test_drops_notes_past_section_end(self):
        motif = MotifSeed("m", MotifType.MELODIC, "m", [Note(60, 0, 1, 100), Note(62, 4, 1, 100)], 2)
        tiled = tile_motif(motif, 3)
        assert [n.time for n in tiled] == [0, 4, 8]

    def test_zero_length_motif_tiles_per_bar(self):
        motif = MotifSeed("m", MotifType.TEXTURAL, "m", [Note(60, 0, 1, 100)], 0)
        assert len(tile_motif(motif, 4)) == 4


class TestVoices:
    """Tests for voice construction helpers."""

    def test_voice_names(self, drop_section, motif_set):
        voice = voice_from_motif(motif_set[1], drop_section, VoiceRole.BASS)
        assert voice.track_name == "bass-drop-2"
        assert voice.clip_name == "Kick seed-Drop"
        assert voice.palette_entry_id is None
        assert len(voice.notes) == 4 * 8

    def test_voice_palette_binding(self, drop_section, motif_set, house_prior, house_spec):
        from vibeflow.stages.palette import assemble_sound_palette

        palette = assemble_sound_palette(house_prior, house_spec)
        assert voice_from_motif(motif_set[0], drop_section, VoiceRole.TOPLINE, palette).palette_entry_id == "lead-1"
        assert voice_from_motif(motif_set[3], drop_section, VoiceRole.TEXTURE, palette).palette_entry_id is None

    @pytest.mark.parametrize("energy,level", [(10, 2), (30, 4), (50, 6), (84, 8), (85, 10), (100, 10)])
    def test_density_from_energy(self, energy, level):
        assert density_from_energy(energy) == level

    def test_register_distribution(self):
        voices = [
            Voice(VoiceRole.BASS, "b", "b", [Note(36, 0, 1, 100)]),
            Voice(VoiceRole.PAD, "p", "p", [Note(60, 0, 1, 100), Note(62, 1, 1, 100)]),
            Voice(VoiceRole.TOPLINE, "t", "t", [Note(90, 0, 1, 100)]),
            Voice(VoiceRole.FX, "fx", "fx", []),
        ]
        assert analyze_register_distribution(voices) == {"sub": 1, "bass": 0, "low": 1, "mid": 0, "high": 1}


class TestHarmony:
    """Tests for section harmony."""

    def test_default_vamp(self):
        assert [(c.start_beat, c.chord) for c in build_harmony("A")] == [(0, "Amin"), (4, "Amin")]

    def test_named_template(self):
        chords = [c.chord for c in build_harmony("A", "i-VI-III-VII")]
        assert chords == ["Amin", "Fmaj", "Cmaj", "Gmaj"]

    def test_unknown_template_falls_back(self):
        assert build_harmony("C", "no-such-template") == build_harmony("C")


class TestComposeSection:
    """Tests for section orchestration gating."""

    def roles(self, composition):
        return [v.role for v in composition.voices]

    def test_drop_is_full(self, drop_section, motif_set):
        composition = compose_section(drop_section, motif_set)
        assert self.roles(composition) == [VoiceRole.BASS, VoiceRole.TOPLINE, VoiceRole.PAD, VoiceRole.RHYTHM]
        assert composition.density_level == 10
        assert composition.section_id == "drop-2"

    def test_rhythm_uses_second_rhythmic_motif(self, drop_section, motif_set):
        composition = compose_section(drop_section, motif_set)
        assert composition.voices[-1].clip_name == "Hat seed-Drop"
        assert composition.voices[0].clip_name == "Kick seed-Drop"

    def test_breakdown_gets_harmony_without_bass(self, motif_set):
        breakdown = ArrangementSection("breakdown-3", SectionType.BREAKDOWN, "Breakdown", 32, 8, 35)
        assert self.roles(compose_section(breakdown, motif_set)) == [
            VoiceRole.HARMONY, VoiceRole.PAD, VoiceRole.RHYTHM,
        ]

    def test_quiet_intro_is_empty(self, motif_set):
        intro = ArrangementSection("intro-0", SectionType.INTRO, "Intro", 0, 8, 15)
        composition = compose_section(intro, motif_set)
        assert composition.voices == []
        assert composition.density_level == 2

    def test_no_motifs(self, drop_section):
        assert compose_section(drop_section, []).voices == []

    def test_notes_stay_inside_section(self, drop_section, motif_set):
        composition = compose_section(drop_section, motif_set)
        limit = drop_section.length_bars * 4
        assert all(n.time < limit for v in composition.voices for n in v.notes)


class TestComposeAll:
    """Tests for composing a whole structure."""

    def test_one_composition_per_section(self, motif_set):
        structure = generate_macro_structure("buildDrop", total_bars=64)
        compositions, scores, coherence = compose_all_sections(structure.sections, motif_set, "C")
        assert [c.section_id for c in compositions] == [s.id for s in structure.sections]
        assert [s.section_id for s in scores] == [s.id for s in structure.sections]
        assert 0 <= coherence <= 100
