"""Candidate generators: grooves, motifs, chord progressions and rhythm patterns."""

from .groove import generate_groove_candidates, mutate_groove
from .harmony import extend_progression, generate_progression_candidates, generate_progression_from_template
from .motif import create_motif_seed, generate_motif_candidates, vary_motif
from .patterns import RhythmPattern, generate_rhythm_candidates

__all__ = [
    "generate_groove_candidates",
    "mutate_groove",
    "extend_progression",
    "generate_progression_candidates",
    "generate_progression_from_template",
    "create_motif_seed",
    "generate_motif_candidates",
    "vary_motif",
    "RhythmPattern",
    "generate_rhythm_candidates",
]
