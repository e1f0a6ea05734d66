"""Tests for groove, motif, harmony and rhythm pattern generators."""

import random

import pytest

from vibeflow.generators.groove import (
    dnb_groove,
    generate_groove_candidates,
    hiphop_groove,
    house_groove,
    humanize_pattern,
    mutate_groove,
    techno_groove,
)
from vibeflow.generators.harmony import (
    analyze_progression_mood,
    degree_to_chord,
    extend_progression,
    generate_progression_candidates,
    generate_progression_from_template,
    generate_random_progression,
    transpose_progression,
)
from vibeflow.generators.motif import (
    create_motif_seed,
    generate_arpeggio_motif,
    generate_bass_motif,
    generate_chord_motif,
    generate_contour_motif,
    generate_motif_candidates,
    generate_scale_motif,
    generate_textural_motif,
    vary_motif,
)
from vibeflow.generators.patterns import (
    RhythmPattern,
    clave_pattern,
    combine_patterns,
    double_time,
    euclidean_pattern,
    generate_genre_rhythm,
    generate_rhythm_candidates,
    half_time,
    humanize_rhythm,
    invert_pattern,
    pattern_to_notes,
    rotate_rhythm_pattern,
    subtract_pattern,
    swing_rhythm,
)
from vibeflow.models import ChordEvent, Guardrails, MotifType, Note


class TestGrooveTemplates:
    """Tests for groove templates."""

    def test_house_groove_four_on_floor(self):
        groove = house_groove(124)
        assert groove.kick_pattern == [0, 4, 8, 12]
        assert groove.snare_pattern == [4, 12]
        assert groove.meter == "4/4"

    def test_unknown_techno_variant_falls_back(self):
        assert techno_groove(130, "polka").id == techno_groove(130, "driving").id

    def test_dnb_two_step(self):
        assert dnb_groove().kick_pattern == [0, 10]

    def test_hiphop_swing(self):
        assert hiphop_groove(90, "lo-fi").swing_amount == 40

    def test_all_steps_on_grid(self):
        for groove in (house_groove(), techno_groove(variant="industrial"), hiphop_groove()):
            for step in groove.kick_pattern + groove.snare_pattern + groove.hat_pattern:
                assert 0 <= step < 16


class TestGrooveCandidates:
    """Tests for genre-conditioned groove candidates."""

    def test_house_prior_gives_house_grooves(self, house_prior):
        candidates = generate_groove_candidates(house_prior)
        assert candidates[0].id.startswith("house-groove")
        assert candidates[0].tempo == house_prior.bpm_signature.typical

    def test_unknown_genre_fallback_trio(self, neutral_prior):
        neutral_prior.guardrails = Guardrails(energy_profile="polka")
        candidates = generate_groove_candidates(neutral_prior)
        assert len(candidates) == 3

    def test_count_limits_candidates(self, neutral_prior):
        neutral_prior.guardrails = Guardrails(energy_profile="techno house")
        assert len(generate_groove_candidates(neutral_prior, count=2)) == 2

    def test_mutation_is_seeded(self):
        groove = house_groove()
        a = mutate_groove(groove, 0.5, random.Random(7))
        b = mutate_groove(groove, 0.5, random.Random(7))
        assert a.kick_pattern == b.kick_pattern
        assert a.hat_pattern == b.hat_pattern
        assert a.id == f"{groove.id}-mutated"

    def test_mutation_keeps_steps_on_grid(self, rng):
        mutated = mutate_groove(house_groove(), 1.0, rng)
        assert all(0 <= s < 16 for s in mutated.kick_pattern + mutated.hat_pattern)
        assert mutated.snare_pattern == [4, 12]

    def test_humanize_pattern(self, rng):
        result = humanize_pattern([0, 4, 8], rng=rng)
        assert len(result) == 3
        assert all(1 <= r["velocity"] <= 127 for r in result)


class TestMotifGenerators:
    """Tests for motif generators."""

    def test_scale_motif(self):
        notes = generate_scale_motif("C", "major", length_notes=4)
        assert [n.pitch for n in notes] == [60, 62, 64, 65]
        assert [n.time for n in notes] == [0, 0.5, 1.0, 1.5]

    def test_arpeggio_updown(self):
        notes = generate_arpeggio_motif(60, "updown", [0, 4, 7, 12])
        assert [n.pitch for n in notes] == [60, 64, 67, 72, 67, 64]
        assert notes[0].velocity == 100

    def test_contour_arch_rises_then_falls(self):
        pitches = [n.pitch for n in generate_contour_motif("C", "major", "arch", 8)]
        assert pitches[4] == max(pitches)
        assert pitches[0] < pitches[4] > pitches[-1]

    def test_chord_motif_stacks(self):
        notes = generate_chord_motif([48, 53], "minor", 2)
        assert [n.pitch for n in notes] == [48, 51, 55, 53, 56, 60]
        assert [n.time for n in notes] == [0, 0, 0, 2, 2, 2]

    def test_textural_motif_is_seeded_and_valid(self):
        a = generate_textural_motif("C", "minor", "dense", 2, random.Random(3))
        b = generate_textural_motif("C", "minor", "dense", 2, random.Random(3))
        assert a == b
        assert len(a) == 16
        assert all(n.is_valid() for n in a)

    def test_bass_patterns(self):
        assert len(generate_bass_motif("C", "minor", "walking")) == 8
        assert generate_bass_motif("C", "minor", "unknown") == generate_bass_motif("C", "minor", "root")

    @pytest.mark.parametrize("motif_type", list(MotifType))
    def test_candidates_are_valid_notes(self, motif_type, neutral_prior, rng):
        seeds = generate_motif_candidates(neutral_prior, motif_type, "C", "minor", 5, rng)
        assert 0 < len(seeds) <= 5
        for seed in seeds:
            assert seed.type == motif_type
            assert all(n.is_valid() for n in seed.notes)

    def test_create_motif_seed_length_and_id(self):
        notes = [Note(60, 0, 1, 100), Note(62, 4, 1, 100)]
        seed = create_motif_seed(notes, MotifType.MELODIC, "C", "major", "Two bar")
        assert seed.length_bars == 2
        assert seed.id == create_motif_seed(notes, MotifType.MELODIC, "C", "major", "Two bar").id
        assert seed.id.startswith("motif-melodic-")

    def test_create_motif_seed_empty(self):
        assert create_motif_seed([], MotifType.TEXTURAL, "C", "minor").length_bars == 0


class TestVaryMotif:
    """Tests for pure variation transforms."""

    def test_transpose(self, c_major_notes):
        varied = vary_motif(c_major_notes, "transpose", 5)
        assert [n.pitch for n in varied] == [n.pitch + 5 for n in c_major_notes]

    def test_transpose_clamps(self):
        assert vary_motif([Note(125, 0, 1, 100)], "transpose", 12)[0].pitch == 127

    @pytest.mark.parametrize("factor", [2, 0.5, 3])
    def test_augment_scales_time_and_duration(self, c_major_notes, factor):
        varied = vary_motif(c_major_notes, "augment", factor)
        for original, new in zip(c_major_notes, varied):
            assert new.time == original.time * factor
            assert new.duration == original.duration * factor
            assert new.pitch == original.pitch

    def test_non_positive_augment_uses_default(self, c_major_notes):
        varied = vary_motif(c_major_notes, "augment", 0)
        assert [n.duration for n in varied] == [2.0] * len(c_major_notes)

    def test_retrograde_reverses_pitches_keeps_times(self, c_major_notes):
        varied = vary_motif(c_major_notes, "retrograde")
        assert [n.pitch for n in varied] == [n.pitch for n in reversed(c_major_notes)]
        assert [n.time for n in varied] == [n.time for n in c_major_notes]

    def test_transpose_by_zero_is_identity(self, c_major_notes):
        assert vary_motif(c_major_notes, "transpose", 0) == c_major_notes

    def test_transpose_defaults_to_octave(self, c_major_notes):
        varied = vary_motif(c_major_notes, "transpose")
        assert [n.pitch for n in varied] == [n.pitch + 12 for n in c_major_notes]

    def test_invert_about_first_note(self):
        varied = vary_motif([Note(60, 0, 1, 100), Note(64, 1, 1, 100)], "invert")
        assert [n.pitch for n in varied] == [60, 56]

    def test_invert_about_explicit_pivot(self):
        varied = vary_motif([Note(60, 0, 1, 100), Note(64, 1, 1, 100)], "invert", 62)
        assert [n.pitch for n in varied] == [64, 60]

    def test_invert_about_zero_pivot(self):
        varied = vary_motif([Note(10, 0, 1, 100), Note(12, 1, 1, 100)], "invert", 0)
        assert [n.pitch for n in varied] == [0, 0]

    def test_unknown_operation_is_identity(self, c_major_notes):
        assert vary_motif(c_major_notes, "shuffle") == c_major_notes


class TestHarmony:
    """Tests for chord progression generation."""

    def test_pop_template_in_c(self):
        chords = [c.chord for c in generate_progression_from_template("I-V-vi-IV", "C", "major")]
        assert chords == ["Cmaj", "Gmaj", "Amin", "Fmaj"]

    def test_template_timing(self):
        progression = generate_progression_from_template("ii-V-I", "C", "major", 2)
        assert [(c.start_beat, c.duration) for c in progression] == [(0, 2), (2, 2), (4, 2)]

    def test_unknown_template_raises(self):
        with pytest.raises(ValueError, match="Unknown progression template"):
            generate_progression_from_template("I-II-III", "C")

    def test_minor_degree_quality(self):
        assert degree_to_chord(1, "A", "minor") == "Amin"
        assert degree_to_chord(3, "A", "minor") == "Cmaj"

    def test_extend_progression_covers_bars(self):
        base = [ChordEvent(0, "Cmaj", 4), ChordEvent(4, "Gmaj", 4)]
        extended = extend_progression(base, 4)
        assert [c.chord for c in extended] == ["Cmaj", "Gmaj", "Cmaj", "Gmaj"]
        assert extended[-1].start_beat == 12

    def test_transpose_progression(self):
        moved = transpose_progression([ChordEvent(0, "Amin", 4), ChordEvent(4, "?", 4)], 3)
        assert moved[0].chord == "Cmin"
        assert moved[1].chord == "?"

    def test_transpose_progression_flat_roots(self):
        moved = transpose_progression([ChordEvent(0, "Bbmaj", 4), ChordEvent(4, "Ebmin", 4)], 2)
        assert [c.chord for c in moved] == ["Cmaj", "Fmin"]

    def test_transpose_progression_keeps_flat_spelling(self):
        moved = transpose_progression([ChordEvent(0, "Abmin", 4), ChordEvent(4, "F#maj", 4)], 1)
        assert [c.chord for c in moved] == ["Amin", "Gmaj"]
        assert transpose_progression([ChordEvent(0, "Ebmaj7", 4)], 1)[0].chord == "Emaj7"
        assert transpose_progression([ChordEvent(0, "Dbm", 4)], 1)[0].chord == "Dm"
        assert transpose_progression([ChordEvent(0, "Bbmin", 4)], 1)[0].chord == "Bmin"
        assert transpose_progression([ChordEvent(0, "Gbmaj", 4)], 3)[0].chord == "Amaj"

    def test_random_progression_starts_on_tonic(self, rng):
        progression = generate_random_progression("C", "minor", 6, rng=rng)
        assert len(progression) == 6
        assert progression[0].chord == "Cmin"

    def test_candidates_for_house(self, house_prior, rng):
        candidates = generate_progression_candidates(house_prior, "A", 5, rng)
        assert len(candidates) == 5
        assert candidates[0]["name"] == "Dark house"

    def test_mood_analysis(self):
        minor = [ChordEvent(i * 4, "Amin", 4) for i in range(4)]
        assert analyze_progression_mood(minor)["mood"] == "melancholy"
        assert analyze_progression_mood([])["mood"] == "neutral"


class TestRhythmPatterns:
    """Tests for rhythm pattern algebra."""

    def test_euclidean_pattern_hits(self):
        pattern = euclidean_pattern(5, 16)
        assert len(pattern.steps) == 5
        assert pattern.accents == pattern.steps[:1]

    def test_rotate_is_cyclic(self):
        pattern = RhythmPattern([0, 4, 14], [0], 0.25, 16)
        rotated = rotate_rhythm_pattern(pattern, 3)
        assert rotated.steps == [1, 3, 7]
        assert rotated.accents == [3]

    def test_rotate_matches_euclidean_rotation(self):
        base = euclidean_pattern(7, 16)
        assert rotate_rhythm_pattern(base, 16).steps == base.steps

    def test_combine_and_subtract(self):
        a = RhythmPattern([0, 8], [0])
        b = RhythmPattern([4, 8, 12], [12])
        combined = combine_patterns(a, b)
        assert combined.steps == [0, 4, 8, 12]
        assert combined.accents == [0, 12]
        assert subtract_pattern(combined, b).steps == [0]

    def test_invert_is_complement(self):
        inverted = invert_pattern(RhythmPattern([0, 4, 8, 12]))
        assert len(inverted.steps) == 12
        assert not set(inverted.steps) & {0, 4, 8, 12}

    def test_double_and_half_time(self):
        pattern = RhythmPattern([0, 4, 8, 12], [0])
        assert double_time(pattern).steps == [0, 2, 4, 6]
        assert double_time(pattern).length == 8
        assert half_time(pattern).steps == [0, 8, 16, 24]
        assert half_time(pattern).subdivision == 0.5

    def test_pattern_to_notes_accents(self):
        notes = pattern_to_notes(clave_pattern("3-2"), pitch=75)
        assert [n.time for n in notes] == [0, 0.75, 1.75, 3.0, 3.5]
        assert notes[0].velocity == 110
        assert notes[1].velocity == 90

    def test_straight_swing_leaves_notes(self):
        notes = pattern_to_notes(euclidean_pattern(8, 16))
        assert swing_rhythm(notes, 50) == notes

    def test_swing_moves_sixteenth_offbeats(self):
        notes = [Note(60, 0.0, 0.25, 90), Note(60, 0.25, 0.25, 90)]
        swung = swing_rhythm(notes, 100)
        assert swung[0].time == 0.0
        assert swung[1].time == pytest.approx(0.375)

    def test_zero_swing_pulls_offbeats_early(self):
        swung = swing_rhythm([Note(60, 0.25, 0.25, 90)], 0)
        assert swung[0].time == pytest.approx(0.125)

    def test_swing_empty(self):
        assert swing_rhythm([], 70) == []

    def test_humanize_rhythm_is_seeded_and_valid(self):
        notes = pattern_to_notes(euclidean_pattern(5, 16))
        first = humanize_rhythm(notes, 20, 15, random.Random(9))
        second = humanize_rhythm(notes, 20, 15, random.Random(9))
        assert first == second
        assert all(n.time >= 0 and 1 <= n.velocity <= 127 for n in first)
        assert [n.pitch for n in first] == [n.pitch for n in notes]

    def test_humanize_rhythm_without_jitter(self):
        notes = pattern_to_notes(euclidean_pattern(4, 16))
        assert humanize_rhythm(notes, 0, 0, random.Random(1)) == notes

    def test_humanize_rhythm_empty(self):
        assert humanize_rhythm([], rng=random.Random(1)) == []

    def test_genre_rhythm_fallbacks(self):
        assert generate_genre_rhythm("polka", "kick").steps == [0, 4, 8, 12]
        assert generate_genre_rhythm("dnb", "kick").steps == [0, 10]

    def test_rhythm_candidates(self, house_prior, rng):
        candidates = generate_rhythm_candidates(house_prior, "kick", 5, rng)
        assert len(candidates) == 5
        assert candidates[0].steps == [0, 4, 8, 12]
