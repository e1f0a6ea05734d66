"""
Groove pattern generation.

Builds kick / snare / hat step patterns on a 16-step bar:
- Fixed genre templates (four-on-the-floor, backbeat, offbeat hats)
- Euclidean distributions for kicks and hats
- Genre-conditioned candidate sets chosen by keyword matching
- Random mutation for groove variations
"""

import random
from dataclasses import replace
from typing import Optional

from ..models import GrooveCandidate, Humanization, StylePrior
from ..rhythm import STEPS_PER_BAR, euclidean_rhythm, humanize_velocity


def four_on_floor_kick() -> list[int]:
    return [0, 4, 8, 12]


def syncopated_kick(density: str = "medium") -> list[int]:
    """Kick with offbeat syncopation. density: sparse, medium, dense."""
    patterns = {
        "sparse": [0, 10],
        "medium": [0, 6, 10],
        "dense": [0, 3, 6, 10, 14],
    }
    return list(patterns.get(density, patterns["medium"]))


def euclidean_kick(hits: int, steps: int = STEPS_PER_BAR, rotation: int = 0) -> list[int]:
    return euclidean_rhythm(hits, steps, rotation)


def backbeat_snare() -> list[int]:
    return [4, 12]


def sparse_snare() -> list[int]:
    return [12]


def syncopated_snare() -> list[int]:
    return [4, 10, 12]


def breakbeat_snare() -> list[int]:
    return [4, 7, 12, 15]


def eighth_hats() -> list[int]:
    return list(range(0, STEPS_PER_BAR, 2))


def sixteenth_hats() -> list[int]:
    return list(range(STEPS_PER_BAR))


def offbeat_hats() -> list[int]:
    return [2, 6, 10, 14]


def euclidean_hats(hits: int, steps: int = STEPS_PER_BAR, rotation: int = 0) -> list[int]:
    return euclidean_rhythm(hits, steps, rotation)


def _fmt_tempo(tempo: float) -> str:
    return f"{tempo:g}"


def house_groove(tempo: float = 124, swing_amount: float = 0) -> GrooveCandidate:
    return GrooveCandidate(
        id=f"house-groove-{_fmt_tempo(tempo)}-{_fmt_tempo(swing_amount)}",
        tempo=tempo,
        meter="4/4",
        swing_amount=swing_amount,
        kick_pattern=four_on_floor_kick(),
        snare_pattern=backbeat_snare(),
        hat_pattern=eighth_hats(),
        velocity_variance=10,
        humanization=Humanization(timing_jitter=5, velocity_jitter=8),
        description="Classic four-on-the-floor house groove",
    )


def techno_groove(tempo: float = 130, variant: str = "driving") -> GrooveCandidate:
    """Techno groove. variant: minimal, driving, industrial."""
    kick_patterns = {
        "minimal": [0, 8],
        "driving": four_on_floor_kick(),
        "industrial": [0, 3, 8, 11],
    }
    hat_patterns = {
        "minimal": offbeat_hats(),
        "driving": sixteenth_hats(),
        "industrial": euclidean_hats(12, 16),
    }
    if variant not in kick_patterns:
        variant = "driving"

    return GrooveCandidate(
        id=f"techno-groove-{variant}-{_fmt_tempo(tempo)}",
        tempo=tempo,
        meter="4/4",
        swing_amount=0,
        kick_pattern=kick_patterns[variant],
        snare_pattern=syncopated_snare() if variant == "industrial" else sparse_snare(),
        hat_pattern=hat_patterns[variant],
        velocity_variance=5 if variant == "minimal" else 15,
        humanization=Humanization(timing_jitter=3, velocity_jitter=5),
        description=f"{variant} techno groove",
    )


def dnb_groove(tempo: float = 174) -> GrooveCandidate:
    return GrooveCandidate(
        id=f"dnb-groove-{_fmt_tempo(tempo)}",
        tempo=tempo,
        meter="4/4",
        swing_amount=0,
        kick_pattern=[0, 10],  # two-step kick
        snare_pattern=[4, 12],
        hat_pattern=sixteenth_hats(),
        velocity_variance=15,
        humanization=Humanization(timing_jitter=4, velocity_jitter=10),
        description="Two-step drum and bass groove",
    )


def uk_garage_groove(tempo: float = 130) -> GrooveCandidate:
    return GrooveCandidate(
        id=f"ukg-groove-{_fmt_tempo(tempo)}",
        tempo=tempo,
        meter="4/4",
        swing_amount=35,
        kick_pattern=[0, 5, 10],
        snare_pattern=[4, 12],
        hat_pattern=euclidean_hats(9, 16, 1),
        velocity_variance=20,
        humanization=Humanization(timing_jitter=8, velocity_jitter=15),
        description="Shuffled UK garage groove",
    )


# Hip-hop variants: kick, hats, swing
HIPHOP_VARIANTS = {
    "boom-bap": ([0, 5, 8, 13], eighth_hats, 30),
    "trap": ([0, 7, 10], sixteenth_hats, 0),
    "lo-fi": ([0, 10], lambda: euclidean_hats(6, 16), 40),
}


def hiphop_groove(tempo: float = 90, variant: str = "boom-bap") -> GrooveCandidate:
    """Hip-hop groove. variant: boom-bap, trap, lo-fi."""
    if variant not in HIPHOP_VARIANTS:
        variant = "boom-bap"
    kick, hats, swing = HIPHOP_VARIANTS[variant]

    return GrooveCandidate(
        id=f"hiphop-groove-{variant}-{_fmt_tempo(tempo)}",
        tempo=tempo,
        meter="4/4",
        swing_amount=swing,
        kick_pattern=list(kick),
        snare_pattern=[4, 12],
        hat_pattern=hats(),
        velocity_variance=20,
        humanization=Humanization(timing_jitter=10, velocity_jitter=15),
        description=f"{variant} hip-hop groove",
    )


def trance_groove(tempo: float = 138) -> GrooveCandidate:
    return GrooveCandidate(
        id=f"trance-groove-{_fmt_tempo(tempo)}",
        tempo=tempo,
        meter="4/4",
        swing_amount=0,
        kick_pattern=four_on_floor_kick(),
        snare_pattern=[4, 12],
        hat_pattern=offbeat_hats(),
        velocity_variance=5,
        humanization=Humanization(timing_jitter=2, velocity_jitter=3),
        description="Classic trance groove with offbeat hats",
    )


def euclidean_groove(tempo: float, swing_amount: float = 0) -> GrooveCandidate:
    return GrooveCandidate(
        id=f"custom-groove-{_fmt_tempo(tempo)}",
        tempo=tempo,
        meter="4/4",
        swing_amount=swing_amount,
        kick_pattern=euclidean_kick(4, 16),
        snare_pattern=backbeat_snare(),
        hat_pattern=eighth_hats(),
        velocity_variance=12,
        humanization=Humanization(timing_jitter=6, velocity_jitter=10),
        description="Custom euclidean groove",
    )


def generate_groove_candidates(style_prior: StylePrior, count: int = 5) -> list[GrooveCandidate]:
    """
    Generate genre-appropriate groove candidates.

    Genre is inferred by keyword matching on the style prior's energy
    profile; a house / driving techno / euclidean trio is the fallback.

    Args:
        style_prior: Style prior carrying BPM, swing and energy profile
        count: Maximum number of candidates

    Returns:
        Candidates in generation order
    """
    keywords = style_prior.guardrails.energy_profile.lower()
    base_tempo = style_prior.bpm_signature.typical
    swing = style_prior.swing_profile.amount
    candidates = []

    if "house" in keywords:
        candidates.append(house_groove(base_tempo, swing))
        candidates.append(house_groove(base_tempo + 2, swing + 10))

    if "techno" in keywords:
        candidates.append(techno_groove(base_tempo, "driving"))
        candidates.append(techno_groove(base_tempo, "minimal"))
        candidates.append(techno_groove(base_tempo, "industrial"))

    if any(k in keywords for k in ("dnb", "drum", "bass")):
        candidates.append(dnb_groove(base_tempo))

    if "garage" in keywords or "2-step" in keywords:
        candidates.append(uk_garage_groove(base_tempo))

    if any(k in keywords for k in ("hip", "hop", "trap")):
        for variant in ("boom-bap", "trap", "lo-fi"):
            candidates.append(hiphop_groove(base_tempo, variant))

    if "trance" in keywords:
        candidates.append(trance_groove(base_tempo))

    if not candidates:
        candidates.append(house_groove(base_tempo, swing))
        candidates.append(techno_groove(base_tempo, "driving"))
        candidates.append(euclidean_groove(base_tempo, swing))

    return candidates[:count]


def humanize_pattern(
    pattern: list[int],
    timing_jitter: float = 5,
    velocity_jitter: float = 10,
    rng: Optional[random.Random] = None
) -> list[dict]:
    """
    Attach humanized offsets and velocities to step positions.

    Args:
        pattern: Step positions
        timing_jitter: Max timing variation as percent of a step
        velocity_jitter: Max velocity variation

    Returns:
        [{"step": float, "velocity": int}, ...]
    """
    rng = rng or random.Random()
    result = []
    for step in pattern:
        offset = (rng.random() - 0.5) * (timing_jitter / 50)
        result.append({
            "step": step + offset,
            "velocity": humanize_velocity(100, velocity_jitter, rng),
        })
    return result


def _mutate_pattern(pattern: list[int], amount: float, rng: random.Random) -> list[int]:
    mutated = list(pattern)
    mutations = int(len(pattern) * amount)

    for _ in range(mutations):
        action = rng.random()
        idx = int(rng.random() * len(mutated)) if mutated else 0

        if action < 0.33 and len(mutated) > 1:
            # Remove
            del mutated[idx]
        elif action < 0.66 and mutated:
            # Shift by one step either way
            direction = 1 if rng.random() < 0.5 else -1
            mutated[idx] = (mutated[idx] + direction + STEPS_PER_BAR) % STEPS_PER_BAR
        else:
            # Add
            new_step = int(rng.random() * STEPS_PER_BAR)
            if new_step not in mutated:
                mutated.append(new_step)

    return sorted(set(mutated))


def mutate_groove(
    groove: GrooveCandidate,
    mutation_amount: float = 0.2,
    rng: Optional[random.Random] = None
) -> GrooveCandidate:
    """Return a variation of a groove with kick and hat steps removed, shifted or added."""
    rng = rng or random.Random()
    return replace(
        groove,
        id=f"{groove.id}-mutated",
        kick_pattern=_mutate_pattern(groove.kick_pattern, mutation_amount, rng),
        snare_pattern=list(groove.snare_pattern),
        hat_pattern=_mutate_pattern(groove.hat_pattern, mutation_amount, rng),
        description=f"{groove.description} (mutated)",
    )
