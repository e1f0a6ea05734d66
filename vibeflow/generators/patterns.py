"""
Rhythm pattern generation and pattern algebra.

A RhythmPattern is a sorted set of step indices over a fixed-length grid.
Supports:
- Pulse, offbeat, syncopated, euclidean, clave, tresillo, shuffle, polyrhythm
- Set algebra: combine, subtract, rotate, invert
- Tempo scaling: double time, half time
- Conversion to notes with accents, humanization and swing
"""

import random
from dataclasses import dataclass, field, replace
from typing import Optional

from ..models import Note, StylePrior
from ..rhythm import apply_swing, euclidean_rhythm, humanize_velocity


@dataclass
class RhythmPattern:
    """Step pattern with accents."""
    steps: list[int]
    accents: list[int] = field(default_factory=list)
    subdivision: float = 0.25  # Beats per step
    length: int = 16           # Total steps


def pulse_pattern(notes_per_bar: int = 8, bars: int = 1) -> RhythmPattern:
    """Even pulse; quarter-note positions are accented."""
    step = 16 // notes_per_bar
    total = 16 * bars
    steps = list(range(0, total, step))
    return RhythmPattern(steps, [s for s in steps if s % 4 == 0], 0.25, total)


def offbeat_pattern(bars: int = 1) -> RhythmPattern:
    total = 16 * bars
    return RhythmPattern(list(range(2, total, 4)), [], 0.25, total)


SYNCOPATED_STEPS = {
    "light": [0, 3, 6, 10],
    "medium": [0, 3, 6, 9, 11, 14],
    "heavy": [0, 2, 5, 7, 9, 11, 13, 15],
}


def syncopated_pattern(density: str = "medium") -> RhythmPattern:
    steps = list(SYNCOPATED_STEPS.get(density, SYNCOPATED_STEPS["medium"]))
    return RhythmPattern(steps, steps[::2], 0.25, 16)


def euclidean_pattern(hits: int, steps: int = 16, rotation: int = 0) -> RhythmPattern:
    """Euclidean pattern with the first hit accented."""
    hit_steps = euclidean_rhythm(hits, steps, rotation)
    return RhythmPattern(hit_steps, hit_steps[:1], 0.25, steps)


CLAVE_STEPS = {
    "3-2": [0, 3, 7, 12, 14],
    "2-3": [0, 4, 6, 10, 12],
    "rumba": [0, 3, 7, 10, 12],
}


def clave_pattern(variant: str = "3-2") -> RhythmPattern:
    return RhythmPattern(list(CLAVE_STEPS.get(variant, CLAVE_STEPS["3-2"])), [0, 12], 0.25, 16)


def tresillo_pattern() -> RhythmPattern:
    return RhythmPattern([0, 3, 6, 8, 11, 14], [0, 8], 0.25, 16)


def shuffle_pattern(intensity: str = "full") -> RhythmPattern:
    """Triplet feel on the 16th grid."""
    steps = [0, 3, 4, 7, 8, 11, 12, 15] if intensity == "full" else [0, 3, 8, 11]
    return RhythmPattern(steps, [0, 4, 8, 12], 0.25, 16)


def polyrhythm(ratio: str = "3:4") -> tuple[RhythmPattern, RhythmPattern]:
    """Two euclidean layers for a ratio such as '3:4'."""
    a, b = (int(x) for x in ratio.split(":"))
    return euclidean_pattern(a, 16), euclidean_pattern(b, 16)


def pattern_to_notes(
    pattern: RhythmPattern,
    pitch: int = 60,
    base_velocity: int = 90,
    accent_velocity: int = 110,
    note_duration: Optional[float] = None
) -> list[Note]:
    duration = note_duration or pattern.subdivision
    return [
        Note(
            pitch,
            step * pattern.subdivision,
            duration,
            accent_velocity if step in pattern.accents else base_velocity,
        )
        for step in pattern.steps
    ]


def humanize_rhythm(
    notes: list[Note],
    timing_jitter: float = 5,
    velocity_jitter: float = 10,
    rng: Optional[random.Random] = None
) -> list[Note]:
    """Jitter timing (percent of a step) and velocity; times stay non-negative."""
    rng = rng or random.Random()
    result = []
    for note in notes:
        offset = (rng.random() - 0.5) * (timing_jitter / 50)
        result.append(replace(
            note,
            time=max(0.0, note.time + offset),
            velocity=humanize_velocity(note.velocity, velocity_jitter, rng),
        ))
    return result


def swing_rhythm(notes: list[Note], swing_amount: float, subdivision: str = "16th") -> list[Note]:
    return [replace(n, time=apply_swing(n.time, swing_amount, subdivision)) for n in notes]


def combine_patterns(first: RhythmPattern, second: RhythmPattern) -> RhythmPattern:
    """Union of steps and accents."""
    return RhythmPattern(
        steps=sorted(set(first.steps) | set(second.steps)),
        accents=sorted(set(first.accents) | set(second.accents)),
        subdivision=min(first.subdivision, second.subdivision),
        length=max(first.length, second.length),
    )


def subtract_pattern(base: RhythmPattern, removed: RhythmPattern) -> RhythmPattern:
    """Steps of base not in removed; only accents on surviving steps are kept."""
    steps = [s for s in base.steps if s not in removed.steps]
    accents = [a for a in base.accents if a in steps]
    return RhythmPattern(steps, accents, base.subdivision, base.length)


def rotate_rhythm_pattern(pattern: RhythmPattern, steps: int) -> RhythmPattern:
    """Cyclic shift of every step by `steps` within the pattern length."""
    if pattern.length <= 0:
        return replace(pattern, steps=list(pattern.steps), accents=list(pattern.accents))
    rotated = sorted((s + steps) % pattern.length for s in pattern.steps)
    accents = [(a + steps) % pattern.length for a in pattern.accents]
    return RhythmPattern(
        rotated,
        [a for a in accents if a in rotated],
        pattern.subdivision,
        pattern.length,
    )


def invert_pattern(pattern: RhythmPattern) -> RhythmPattern:
    """Complement within [0, length); every fourth resulting step is accented."""
    inverted = [s for s in range(pattern.length) if s not in pattern.steps]
    return RhythmPattern(inverted, inverted[::4], pattern.subdivision, pattern.length)


def double_time(pattern: RhythmPattern) -> RhythmPattern:
    """Halve step indices, subdivision and length; duplicate steps collapse."""
    steps = sorted({s // 2 for s in pattern.steps})
    accents = [a // 2 for a in pattern.accents if a // 2 in steps]
    return RhythmPattern(
        steps,
        list(dict.fromkeys(accents)),
        pattern.subdivision / 2,
        pattern.length // 2,
    )


def half_time(pattern: RhythmPattern) -> RhythmPattern:
    return RhythmPattern(
        [s * 2 for s in pattern.steps],
        [a * 2 for a in pattern.accents],
        pattern.subdivision * 2,
        pattern.length * 2,
    )


def _genre_rhythms() -> dict:
    return {
        "house": {
            "kick": RhythmPattern([0, 4, 8, 12], [0, 8]),
            "snare": RhythmPattern([4, 12], [4, 12]),
            "hihat": offbeat_pattern(),
            "perc": euclidean_pattern(5, 16),
        },
        "techno": {
            "kick": RhythmPattern([0, 4, 8, 12], [0, 8]),
            "snare": RhythmPattern([4, 12], [12]),
            "hihat": pulse_pattern(16),
            "perc": euclidean_pattern(7, 16),
        },
        "dnb": {
            "kick": RhythmPattern([0, 10], [0]),
            "snare": RhythmPattern([4, 12], [4, 12]),
            "hihat": pulse_pattern(16),
            "perc": syncopated_pattern("heavy"),
        },
        "hiphop": {
            "kick": RhythmPattern([0, 5, 8, 13], [0, 8]),
            "snare": RhythmPattern([4, 12], [4, 12]),
            "hihat": pulse_pattern(8),
            "perc": shuffle_pattern("light"),
        },
        "latin": {
            "kick": tresillo_pattern(),
            "snare": clave_pattern("2-3"),
            "hihat": pulse_pattern(8),
            "perc": clave_pattern("rumba"),
        },
    }


def generate_genre_rhythm(genre: str, element: str = "hihat") -> RhythmPattern:
    """Pattern for a drum element in a genre (house when unknown)."""
    rhythms = _genre_rhythms()
    genre_patterns = rhythms.get(genre.lower(), rhythms["house"])
    return genre_patterns.get(element, genre_patterns["hihat"])


def detect_rhythm_genre(style_prior: StylePrior) -> str:
    keywords = style_prior.guardrails.energy_profile.lower()
    if "techno" in keywords:
        return "techno"
    if "dnb" in keywords or "drum" in keywords:
        return "dnb"
    if "hip" in keywords or "trap" in keywords:
        return "hiphop"
    if "latin" in keywords or "salsa" in keywords:
        return "latin"
    return "house"


def generate_rhythm_candidates(
    style_prior: StylePrior,
    element: str = "hihat",
    count: int = 5,
    rng: Optional[random.Random] = None
) -> list[RhythmPattern]:
    rng = rng or random.Random()
    genre = detect_rhythm_genre(style_prior)
    base = generate_genre_rhythm(genre, element)

    candidates = [
        base,
        euclidean_pattern(int(rng.random() * 4) + 3, 16),
        syncopated_pattern("medium"),
        pulse_pattern(8),
        rotate_rhythm_pattern(base, 2),
    ]
    return candidates[:count]
