"""
The nine workflow stages.

Each module turns the previous stages' artifacts into a new one:
brief -> style_prior -> time_base -> palette -> motif_seed ->
macro_structure -> compose -> variation -> mix_spatial
"""

from .brief import ingest_brief, lock_intent, parse_brief
from .compose import compose_all_sections, compose_section
from .macro_structure import adjust_section, draft_macro_structure, validate_energy_curve
from .mix_spatial import assemble_mix_design
from .motif_seed import build_motif_seed_set, select_top_motifs
from .palette import assemble_sound_palette, validate_palette_coverage
from .style_prior import build_style_prior
from .time_base import generate_and_rank_grooves, select_time_base
from .variation import generate_transition_fill, run_variation_pass

__all__ = [
    "ingest_brief",
    "lock_intent",
    "parse_brief",
    "compose_all_sections",
    "compose_section",
    "adjust_section",
    "draft_macro_structure",
    "validate_energy_curve",
    "assemble_mix_design",
    "build_motif_seed_set",
    "select_top_motifs",
    "assemble_sound_palette",
    "validate_palette_coverage",
    "build_style_prior",
    "generate_and_rank_grooves",
    "select_time_base",
    "generate_transition_fill",
    "run_variation_pass",
]
