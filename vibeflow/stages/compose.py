"""
Stage 7: compose and orchestrate.

Turns motif seeds into per-section voices:
- Voice gating by section type and energy level
- Motif tiling across the section length
- Harmony progression, density level and register distribution
"""

import logging
from dataclasses import replace
from typing import Optional

import numpy as np

from ..generators.harmony import PROGRESSION_TEMPLATES, generate_progression_from_template
from ..models import (
    ArrangementSection,
    ChordEvent,
    CompositionScore,
    MotifSeed,
    MotifType,
    SectionComposition,
    SectionType,
    SoundPalette,
    Voice,
    VoiceRole,
)
from ..scoring.coherence import calculate_composition_score, evaluate_overall_coherence

logger = logging.getLogger(__name__)

BEATS_PER_BAR = 4

# (upper energy bound, density level)
DENSITY_LEVELS = [(30, 2), (50, 4), (70, 6), (85, 8)]
MAX_DENSITY_LEVEL = 10

# (upper mean pitch bound, register bucket)
REGISTER_BUCKETS = [(40, "sub"), (55, "bass"), (65, "low"), (80, "mid")]

# Palette element that voices each role
ROLE_PALETTE_IDS = {
    VoiceRole.BASS: "bass-1",
    VoiceRole.TOPLINE: "lead-1",
    VoiceRole.HARMONY: "pad-1",
    VoiceRole.PAD: "pad-1",
    VoiceRole.RHYTHM: "snare-1",
}


def tile_motif(motif: MotifSeed, length_bars: int) -> list:
    """Repeat a motif at bar-aligned offsets, dropping notes that start past the section end."""
    motif_bars = max(1, motif.length_bars)
    section_beats = length_bars * BEATS_PER_BAR
    repetitions = -(-length_bars // motif_bars)  # ceil

    notes = []
    for rep in range(repetitions):
        offset = rep * motif_bars * BEATS_PER_BAR
        for note in motif.notes:
            if note.time + offset < section_beats:
                notes.append(replace(note, time=note.time + offset))
    return notes


def voice_from_motif(
    motif: MotifSeed,
    section: ArrangementSection,
    role: VoiceRole,
    palette: Optional[SoundPalette] = None
) -> Voice:
    palette_entry_id = None
    if palette is not None:
        wanted = ROLE_PALETTE_IDS.get(role)
        if any(e.id == wanted for e in palette.entries):
            palette_entry_id = wanted

    return Voice(
        role=role,
        track_name=f"{role.value}-{section.id}",
        clip_name=f"{motif.name}-{section.name}",
        notes=tile_motif(motif, section.length_bars),
        palette_entry_id=palette_entry_id,
    )


def density_from_energy(energy: float) -> int:
    for upper, level in DENSITY_LEVELS:
        if energy < upper:
            return level
    return MAX_DENSITY_LEVEL


def analyze_register_distribution(voices: list[Voice]) -> dict[str, int]:
    """Count voices per register bucket by mean pitch; silent voices are skipped."""
    distribution = {"sub": 0, "bass": 0, "low": 0, "mid": 0, "high": 0}
    for voice in voices:
        if not voice.notes:
            continue
        mean_pitch = float(np.mean([n.pitch for n in voice.notes]))
        bucket = next((name for upper, name in REGISTER_BUCKETS if mean_pitch < upper), "high")
        distribution[bucket] += 1
    return distribution


def build_harmony(key: str, progression_template: Optional[str] = None) -> list[ChordEvent]:
    """Named template in the minor mode, or a two-chord tonic vamp."""
    if progression_template:
        if progression_template in PROGRESSION_TEMPLATES:
            return generate_progression_from_template(progression_template, key, "minor", 4)
        logger.warning(f"Unknown progression template '{progression_template}', using tonic vamp")
    return [
        ChordEvent(0, f"{key}min", 4),
        ChordEvent(4, f"{key}min", 4),
    ]


def _first_of_type(motifs: list[MotifSeed], motif_type: MotifType) -> list[MotifSeed]:
    return [m for m in motifs if m.type == motif_type]


def compose_section(
    section: ArrangementSection,
    motifs: list[MotifSeed],
    key: str = "C",
    progression_template: Optional[str] = None,
    palette: Optional[SoundPalette] = None
) -> SectionComposition:
    """
    Orchestrate one section from the given motifs.

    Motifs are taken in the order given; the first motif of a matching
    type is used for each voice. Gating:
    - bass (rhythmic motif) when energy >= 40
    - topline (melodic) in verse and drop sections
    - harmony (harmonic) in breakdowns
    - pad (textural) when energy >= 30
    - rhythm (second rhythmic motif if any) when energy >= 20
    """
    melodic = _first_of_type(motifs, MotifType.MELODIC)
    rhythmic = _first_of_type(motifs, MotifType.RHYTHMIC)
    harmonic = _first_of_type(motifs, MotifType.HARMONIC)
    textural = _first_of_type(motifs, MotifType.TEXTURAL)
    energy = section.energy_level
    voices = []

    if rhythmic and energy >= 40:
        voices.append(voice_from_motif(rhythmic[0], section, VoiceRole.BASS, palette))
    if melodic and section.type in (SectionType.VERSE, SectionType.DROP):
        voices.append(voice_from_motif(melodic[0], section, VoiceRole.TOPLINE, palette))
    if harmonic and section.type == SectionType.BREAKDOWN:
        voices.append(voice_from_motif(harmonic[0], section, VoiceRole.HARMONY, palette))
    if textural and energy >= 30:
        voices.append(voice_from_motif(textural[0], section, VoiceRole.PAD, palette))
    if rhythmic and energy >= 20:
        voices.append(voice_from_motif(rhythmic[min(1, len(rhythmic) - 1)], section, VoiceRole.RHYTHM, palette))

    return SectionComposition(
        section_id=section.id,
        voices=voices,
        harmony_progression=build_harmony(key, progression_template),
        density_level=density_from_energy(energy),
        register_distribution=analyze_register_distribution(voices),
    )


def score_section_composition(composition: SectionComposition, section: ArrangementSection) -> CompositionScore:
    return calculate_composition_score(composition, section)


def compose_all_sections(
    sections: list[ArrangementSection],
    motifs: list[MotifSeed],
    key: str = "C",
    progression_template: Optional[str] = None,
    palette: Optional[SoundPalette] = None
) -> tuple[list[SectionComposition], list[CompositionScore], int]:
    """
    Compose every section.

    Returns:
        (compositions, per-section scores, overall coherence 0-100)
    """
    compositions = []
    scores = []
    for section in sections:
        composition = compose_section(section, motifs, key, progression_template, palette)
        compositions.append(composition)
        scores.append(score_section_composition(composition, section))
        logger.debug(f"Composed {section.id}: {len(composition.voices)} voices, score {scores[-1].overall}")

    coherence = evaluate_overall_coherence(compositions, sections)
    logger.info(f"Composed {len(compositions)} sections, overall coherence {coherence}")
    return compositions, scores, coherence
