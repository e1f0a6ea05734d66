"""
Composition coherence scoring.

Evaluates an orchestrated section:
- Voice leading: parallel fifths / octaves and voice independence
- Density: notes per bar against energy-banded targets
- Register collisions: cross-role notes within a minor third at the same time
- Harmonic clarity: bass alignment with chord starts

overall = 0.3 * voice_leading + 0.25 * density
          + 0.2 * (100 - min(5 * collisions, 50)) + 0.25 * harmonic_clarity
"""

from typing import Optional

import numpy as np

from ..models import ArrangementSection, CompositionScore, Note, SectionComposition, Voice, VoiceRole
from .common import clamp, round_half_up


TIME_TOLERANCE = 0.1  # Beats

# (upper energy bound, min notes/bar, max notes/bar)
DENSITY_BANDS = [
    (30, 2, 10),
    (70, 10, 30),
    (float("inf"), 30, 60),
]


def _nearest_in_time(notes: list[Note], time: float) -> Optional[Note]:
    """First note (in time order) within the tolerance of `time`."""
    for note in notes:
        if abs(note.time - time) < TIME_TOLERANCE:
            return note
    return None


def _count_parallel(voice1: list[Note], voice2: list[Note], interval: int) -> int:
    if len(voice1) < 2 or len(voice2) < 2:
        return 0

    sorted1 = sorted(voice1, key=lambda n: n.time)
    sorted2 = sorted(voice2, key=lambda n: n.time)
    count = 0

    for note1a, note1b in zip(sorted1, sorted1[1:]):
        note2a = _nearest_in_time(sorted2, note1a.time)
        note2b = _nearest_in_time(sorted2, note1b.time)
        if note2a is None or note2b is None:
            continue

        if abs(note1a.pitch - note2a.pitch) % 12 != interval:
            continue
        if abs(note1b.pitch - note2b.pitch) % 12 != interval:
            continue

        motion1 = note1b.pitch - note1a.pitch
        motion2 = note2b.pitch - note2a.pitch
        # Similar motion only; contrary or oblique motion is fine
        if (motion1 > 0 and motion2 > 0) or (motion1 < 0 and motion2 < 0):
            count += 1

    return count


def check_parallel_fifths(voice1: list[Note], voice2: list[Note]) -> int:
    return _count_parallel(voice1, voice2, 7)


def check_parallel_octaves(voice1: list[Note], voice2: list[Note]) -> int:
    """Parallel octaves and unisons."""
    return _count_parallel(voice1, voice2, 0)


def _onset_grid(voice: Voice) -> set[float]:
    return {round(n.time * 16) / 16 for n in voice.notes}


def analyze_voice_independence(voices: list[Voice]) -> int:
    """100 = no shared onsets between voices; fully shared onsets bottom out at 50."""
    if len(voices) < 2:
        return 100

    overlaps = []
    for i, voice1 in enumerate(voices):
        for voice2 in voices[i + 1:]:
            times1 = _onset_grid(voice1)
            times2 = _onset_grid(voice2)
            max_notes = max(len(times1), len(times2))
            if max_notes > 0:
                overlaps.append(len(times1 & times2) / max_notes)

    if not overlaps:
        return 100

    return round_half_up((1 - float(np.mean(overlaps)) * 0.5) * 100)


def score_voice_leading(composition: SectionComposition) -> float:
    voices = composition.voices
    if len(voices) < 2:
        return 100

    fifths = 0
    octaves = 0
    for i, voice1 in enumerate(voices):
        for voice2 in voices[i + 1:]:
            fifths += check_parallel_fifths(voice1.notes, voice2.notes)
            octaves += check_parallel_octaves(voice1.notes, voice2.notes)

    score = 100 - fifths * 5 - octaves * 10
    score = score * 0.7 + analyze_voice_independence(voices) * 0.3
    return clamp(score)


def calculate_density(voices: list[Voice], length_bars: float) -> float:
    """Notes per bar across all voices."""
    if length_bars <= 0:
        return 0.0
    return sum(len(v.notes) for v in voices) / length_bars


def expected_density_range(energy_level: float) -> tuple[float, float]:
    for upper, low, high in DENSITY_BANDS:
        if energy_level < upper:
            return low, high
    return DENSITY_BANDS[-1][1], DENSITY_BANDS[-1][2]


def score_density(composition: SectionComposition, section: ArrangementSection) -> float:
    density = calculate_density(composition.voices, section.length_bars)
    low, high = expected_density_range(section.energy_level)

    if low <= density <= high:
        return 100

    if density < low:
        penalty = (low - density) * 5
    else:
        penalty = (density - high) * 3
    return max(0.0, 100 - penalty)


def detect_register_collisions(composition: SectionComposition) -> int:
    """Count cross-role note pairs sounding together within 1-3 semitones."""
    voices = composition.voices
    if len(voices) < 2:
        return 0

    collisions = 0
    for i, voice1 in enumerate(voices):
        for voice2 in voices[i + 1:]:
            if voice1.role == voice2.role:
                continue
            for note1 in voice1.notes:
                for note2 in voice2.notes:
                    overlaps = (
                        abs(note1.time - note2.time) < TIME_TOLERANCE
                        or (note1.time < note2.time + note2.duration and note2.time < note1.time + note1.duration)
                    )
                    if overlaps and 0 < abs(note1.pitch - note2.pitch) <= 3:
                        collisions += 1

    return collisions


def score_harmonic_clarity(composition: SectionComposition) -> float:
    """Without a declared progression the score is a fixed 70."""
    progression = composition.harmony_progression
    if not progression:
        return 70

    score = 80.0
    bass = next((v for v in composition.voices if v.role == VoiceRole.BASS), None)
    if bass is not None:
        aligned = 0
        total = 0
        for chord in progression:
            chord_end = chord.start_beat + chord.duration
            for note in bass.notes:
                if chord.start_beat <= note.time < chord_end:
                    total += 1
                    if abs(note.time - chord.start_beat) < TIME_TOLERANCE:
                        aligned += 1
        if total > 0:
            score += aligned / total * 20 - 10

    score = score * 0.7 + analyze_voice_independence(composition.voices) * 0.3
    return clamp(score)


def calculate_composition_score(
    composition: SectionComposition,
    section: ArrangementSection
) -> CompositionScore:
    voice_leading = score_voice_leading(composition)
    density = score_density(composition, section)
    collisions = detect_register_collisions(composition)
    clarity = score_harmonic_clarity(composition)

    register_score = 100 - min(collisions * 5, 50)
    overall = round_half_up(
        voice_leading * 0.3
        + density * 0.25
        + register_score * 0.2
        + clarity * 0.25
    )

    return CompositionScore(
        section_id=composition.section_id,
        voice_leading_sanity=voice_leading,
        density_score=density,
        register_collisions=collisions,
        harmonic_clarity=clarity,
        overall=overall,
    )


def evaluate_overall_coherence(
    compositions: list[SectionComposition],
    sections: list[ArrangementSection]
) -> int:
    """Mean overall score; a composition without a matching section counts as 50."""
    if not compositions:
        return 0

    by_id = {s.id: s for s in sections}
    scores = []
    for composition in compositions:
        section = by_id.get(composition.section_id)
        if section is None:
            scores.append(50)
        else:
            scores.append(calculate_composition_score(composition, section).overall)

    return round_half_up(float(np.mean(scores)))
