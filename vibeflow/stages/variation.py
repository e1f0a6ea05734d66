"""
Stage 8: variation pass and ear candy.

Applies operator transforms to motifs, keeps the ones that do not score
much worse than their source, and decorates transitions with risers,
impacts and drum fills.
"""

import logging
import math
import random
from dataclasses import replace
from typing import Optional

from ..generators.motif import clamp_pitch, create_motif_seed, vary_motif
from ..models import (
    ArrangementSection,
    BpmSignature,
    EarCandy,
    EarCandyType,
    Guardrails,
    MotifSeed,
    Note,
    StylePrior,
    TransitionEnhancement,
    Variation,
    VariationPass,
)
from ..scoring.motif import calculate_motif_score

logger = logging.getLogger(__name__)

VARIATION_OPERATORS = [
    "transpose",
    "invert",
    "retrograde",
    "augment",
    "diminish",
    "thin",
    "thicken",
    "randomize",
]

# Operators drawn from during an automatic pass
PASS_OPERATORS = ["transpose", "invert", "thin"]
PASS_TRANSPOSE_SEMITONES = 5
MIN_IMPROVEMENT_DELTA = -10

# Default length of each ear-candy event, in bars
EAR_CANDY_DURATIONS = {
    EarCandyType.RISER: 4,
    EarCandyType.DOWNLIFTER: 2,
    EarCandyType.IMPACT: 0.25,
    EarCandyType.SWEEP: 2,
    EarCandyType.STUTTER: 0.5,
    EarCandyType.VOCAL_CHOP: 0.5,
    EarCandyType.REVERSE: 1,
    EarCandyType.WHITE_NOISE: 4,
}

# Scores variations independently of any genre
NEUTRAL_STYLE_PRIOR = StylePrior(
    bpm_signature=BpmSignature(typical=128, variance=5),
    guardrails=Guardrails(energy_profile="neutral"),
)

SNARE_PITCH = 38
ROLL_STEPS_PER_BAR = 16
FILL_BARS = 1


def apply_variation_operator(
    notes: list[Note],
    operator: str,
    param: Optional[float] = None,
    rng: Optional[random.Random] = None
) -> list[Note]:
    """
    Transform notes with a named operator.

    Pitch-order and timing transforms come from the motif generator;
    thin keeps every other note, thicken layers an octave above and
    randomize nudges each pitch by up to two semitones.

    Raises:
        ValueError: if the operator is unknown
    """
    if operator == "transpose":
        return vary_motif(notes, "transpose", param if param is not None else PASS_TRANSPOSE_SEMITONES)
    if operator in ("invert", "retrograde", "augment", "diminish"):
        return vary_motif(notes, operator, param)
    if operator == "thin":
        return notes[::2]
    if operator == "thicken":
        octave_up = [replace(n, pitch=clamp_pitch(n.pitch + 12)) for n in notes]
        return sorted(list(notes) + octave_up, key=lambda n: n.time)
    if operator == "randomize":
        rng = rng or random.Random()
        return [replace(n, pitch=clamp_pitch(n.pitch + rng.randint(-2, 2))) for n in notes]
    raise ValueError(f"Unknown variation operator: {operator}")


def create_variation(
    motif: MotifSeed,
    operator: str,
    param: Optional[float] = None,
    rng: Optional[random.Random] = None
) -> Variation:
    """Apply an operator and score the result against the source motif."""
    notes = apply_variation_operator(motif.notes, operator, param, rng)
    result = create_motif_seed(notes, motif.type, motif.key, motif.scale, f"{motif.name} ({operator})")

    original_score = calculate_motif_score(motif, NEUTRAL_STYLE_PRIOR).overall
    new_score = calculate_motif_score(result, NEUTRAL_STYLE_PRIOR).overall

    return Variation(
        id=f"variation-{motif.id}-{operator}",
        source_id=motif.id,
        operator=operator,
        result=result,
        coherence_score=new_score,
        improvement_delta=new_score - original_score,
    )


def generate_ear_candy(candy_type: EarCandyType, position: float, duration: Optional[float] = None) -> EarCandy:
    if duration is None:
        duration = EAR_CANDY_DURATIONS[candy_type]
    return EarCandy(type=candy_type, position=position, duration=duration)


def run_variation_pass(
    candidates: list[MotifSeed],
    transition_bars: list[float],
    pass_number: int = 1,
    rng: Optional[random.Random] = None
) -> VariationPass:
    """
    One variation pass over the candidate motifs.

    Args:
        candidates: Motifs to vary
        transition_bars: Bars at which sections change
        pass_number: Ordinal of this pass
        rng: Random source for operator choice

    Returns:
        VariationPass with the kept variations, a riser four bars before
        and an impact on every transition bar
    """
    rng = rng or random.Random()
    variations = []

    for motif in candidates:
        operator = rng.choice(PASS_OPERATORS)
        param = PASS_TRANSPOSE_SEMITONES if operator == "transpose" else None
        variation = create_variation(motif, operator, param, rng)
        if variation.improvement_delta >= MIN_IMPROVEMENT_DELTA:
            variations.append(variation)
        else:
            logger.debug(f"Dropped {variation.id} (delta {variation.improvement_delta})")

    ear_candy = []
    enhancements = []
    for bar in transition_bars:
        riser = generate_ear_candy(EarCandyType.RISER, max(0, bar - 4), 4)
        impact = generate_ear_candy(EarCandyType.IMPACT, bar, 0.25)
        ear_candy += [riser, impact]
        enhancements.append(TransitionEnhancement(bar=bar, ear_candy=[riser, impact]))

    logger.info(
        f"Variation pass {pass_number}: kept {len(variations)}/{len(candidates)} variations, "
        f"{len(ear_candy)} ear candy events"
    )
    return VariationPass(
        pass_number=pass_number,
        variations=variations,
        ear_candy=ear_candy,
        transition_enhancements=enhancements,
    )


def generate_transition_fill(
    from_section: ArrangementSection,
    to_section: ArrangementSection,
    duration_bars: float = 1
) -> tuple[list[EarCandy], list[Note]]:
    """
    Ear candy and fill notes leading from one section into the next.

    Rising energy gets a riser and a 16th-note snare roll with a velocity
    crescendo; falling or equal energy gets a downlifter and a reverse hit
    in the last half beat.
    """
    if to_section.energy_level > from_section.energy_level:
        steps = math.floor(duration_bars * ROLL_STEPS_PER_BAR)
        roll = [
            Note(
                pitch=SNARE_PITCH,
                time=i * 0.25,
                duration=0.0625,
                velocity=min(127, 80 + math.floor(i / steps * 40)),
            )
            for i in range(steps)
        ]
        return [generate_ear_candy(EarCandyType.RISER, 0, duration_bars)], roll

    return [
        generate_ear_candy(EarCandyType.DOWNLIFTER, 0, duration_bars),
        generate_ear_candy(EarCandyType.REVERSE, duration_bars - 0.5, 0.5),
    ], []


def attach_transition_fills(variation_pass: VariationPass, sections: list[ArrangementSection]) -> VariationPass:
    """
    Return a copy of the pass whose transition enhancements carry the fill
    into each section.

    The fill occupies the bar before the transition; its ear candy is moved
    to absolute bar positions while fill note times stay relative to the
    start of that bar.
    """
    previous = {cur.start_bar: prev for prev, cur in zip(sections, sections[1:])}
    by_start = {s.start_bar: s for s in sections}

    enhancements = []
    for enhancement in variation_pass.transition_enhancements:
        bar = enhancement.bar
        if bar in previous and bar in by_start:
            candy, fill = generate_transition_fill(previous[bar], by_start[bar], FILL_BARS)
            candy = [replace(c, position=max(0, bar - FILL_BARS) + c.position) for c in candy]
            enhancement = replace(enhancement, ear_candy=enhancement.ear_candy + candy, fill_pattern=fill)
        enhancements.append(enhancement)

    return replace(variation_pass, transition_enhancements=enhancements)
