"""
Stage 5: motif seeds.

Generates motif candidates per type, ranks them with the motif scorer
and keeps the top N that clear a minimum score.
"""

import logging
import random
from typing import Optional

from ..generators.motif import generate_motif_candidates
from ..models import MotifSeed, MotifSeedSet, MotifType, RankedMotif, StylePrior
from ..scoring.motif import rank_motifs

logger = logging.getLogger(__name__)


def generate_and_score_motifs(
    style_prior: StylePrior,
    motif_type: MotifType,
    key: str = "C",
    scale: str = "minor",
    count: int = 5,
    rng: Optional[random.Random] = None
) -> list[RankedMotif]:
    candidates = generate_motif_candidates(style_prior, motif_type, key, scale, count, rng)
    return rank_motifs(candidates, style_prior)


def generate_all_motif_types(
    style_prior: StylePrior,
    key: str = "C",
    scale: str = "minor",
    count_per_type: int = 3,
    rng: Optional[random.Random] = None
) -> dict[MotifType, list[MotifSeed]]:
    rng = rng or random.Random()
    return {
        motif_type: generate_motif_candidates(style_prior, motif_type, key, scale, count_per_type, rng)
        for motif_type in MotifType
    }


def select_top_motifs(ranked: list[RankedMotif], top_n: int = 3, minimum_score: float = 50) -> MotifSeedSet:
    """Keep up to top_n ranked motifs scoring at least minimum_score, in rank order."""
    selected = [r for r in ranked if r.score.overall >= minimum_score][:top_n]
    return MotifSeedSet(
        total_generated=len(ranked),
        seeds=[r.motif for r in selected],
        scores=[r.score for r in selected],
        top_n=len(selected),
        candidates=[r.motif for r in ranked],
    )


def build_motif_seed_set(
    style_prior: StylePrior,
    key: str = "C",
    scale: str = "minor",
    count_per_type: int = 5,
    top_n: int = 3,
    minimum_score: float = 50,
    rng: Optional[random.Random] = None
) -> MotifSeedSet:
    """
    Select motif seeds for every motif type.

    Each type is ranked and filtered on its own; a type with no motif
    above the threshold still contributes its best candidate so that
    later stages have material of every type.

    Returns:
        Combined MotifSeedSet; seeds are grouped by type in rank order
    """
    rng = rng or random.Random()
    seeds = []
    scores = []
    candidates = []

    for motif_type in MotifType:
        ranked = generate_and_score_motifs(style_prior, motif_type, key, scale, count_per_type, rng)
        candidates += [r.motif for r in ranked]
        selection = select_top_motifs(ranked, top_n, minimum_score)

        if not selection.seeds and ranked:
            logger.warning(
                f"No {motif_type.value} motif scored >= {minimum_score:g}; "
                f"keeping best ({ranked[0].score.overall})"
            )
            selection = select_top_motifs(ranked, 1, float("-inf"))

        seeds += selection.seeds
        scores += selection.scores

    logger.info(f"Selected {len(seeds)} of {len(candidates)} motif candidates")
    return MotifSeedSet(
        total_generated=len(candidates),
        seeds=seeds,
        scores=scores,
        top_n=len(seeds),
        candidates=candidates,
    )
