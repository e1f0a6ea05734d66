"""Closed-form scoring engines for grooves, motifs, compositions and mixes."""

from .coherence import calculate_composition_score, evaluate_overall_coherence
from .groove import calculate_groove_score, measure_syncopation, rank_grooves
from .mix import calculate_mix_score
from .motif import calculate_motif_score, rank_motifs

__all__ = [
    "calculate_composition_score",
    "evaluate_overall_coherence",
    "calculate_groove_score",
    "measure_syncopation",
    "rank_grooves",
    "calculate_mix_score",
    "calculate_motif_score",
    "rank_motifs",
]
