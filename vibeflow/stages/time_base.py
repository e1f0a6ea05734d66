"""
Stage 3: time base.

Generates groove candidates, ranks them and locks tempo, meter and the
selected groove (with up to three alternates).
"""

import logging
import random
from typing import Optional

from ..generators.groove import generate_groove_candidates, mutate_groove
from ..models import GrooveCandidate, RankedGroove, StylePrior, TimeBase
from ..scoring.groove import rank_grooves

logger = logging.getLogger(__name__)

MAX_ALTERNATES = 3


def generate_and_rank_grooves(
    style_prior: StylePrior,
    count: int = 5,
    mutations: int = 0,
    rng: Optional[random.Random] = None
) -> list[RankedGroove]:
    """
    Generate genre grooves, optionally add mutated variants, and rank them.

    Args:
        style_prior: Style prior
        count: Maximum number of template grooves
        mutations: Number of mutated variants of the template grooves to add
        rng: Random source for mutation

    Returns:
        Ranked grooves, best first
    """
    rng = rng or random.Random()
    candidates = generate_groove_candidates(style_prior, count)
    for i in range(min(mutations, len(candidates))):
        candidates.append(mutate_groove(candidates[i], rng=rng))

    ranked = rank_grooves(candidates, style_prior)
    if ranked:
        best = ranked[0]
        logger.info(f"Ranked {len(ranked)} grooves, best {best.groove.id} ({best.score.overall})")
    return ranked


def select_time_base(ranked: list[RankedGroove], index: int = 0) -> TimeBase:
    """
    Lock the time base from the ranked grooves.

    Raises:
        ValueError: if index does not address a ranked groove
    """
    if not 0 <= index < len(ranked):
        raise ValueError(f"Invalid selection index: {index}")

    selected = ranked[index].groove
    alternates = [r.groove for i, r in enumerate(ranked) if i != index][:MAX_ALTERNATES]

    logger.info(f"Time base: {selected.tempo:g} BPM {selected.meter} ({selected.id})")
    return TimeBase(
        final_tempo=selected.tempo,
        final_meter=selected.meter,
        selected_groove=selected,
        alternate_grooves=alternates,
    )


def mutate_selected_groove(
    time_base: TimeBase,
    mutation_amount: float = 0.2,
    rng: Optional[random.Random] = None
) -> TimeBase:
    """New time base whose selected groove is a mutation; the original becomes the first alternate."""
    mutated: GrooveCandidate = mutate_groove(time_base.selected_groove, mutation_amount, rng)
    alternates = [time_base.selected_groove] + list(time_base.alternate_grooves)
    return TimeBase(
        final_tempo=mutated.tempo,
        final_meter=mutated.meter,
        selected_groove=mutated,
        alternate_grooves=alternates[:MAX_ALTERNATES],
    )
