"""
Rhythm utilities.

Beat math on a quarter-note = 1.0 timeline:
- Time signatures, subdivisions and the 16th-note step grid
- Swing offsets and humanization jitter
- Euclidean hit distribution and pattern rotation
- Genre tempo ranges
"""

import random
from dataclasses import dataclass
from typing import Optional, TypeVar, Union


T = TypeVar("T")

# Subdivision lengths in beats
SUBDIVISIONS = {
    "whole": 4,
    "half": 2,
    "quarter": 1,
    "eighth": 0.5,
    "sixteenth": 0.25,
    "thirtySecond": 0.125,
    "tripletQuarter": 4 / 3,
    "tripletEighth": 2 / 3,
    "tripletSixteenth": 1 / 3,
    "dottedHalf": 3,
    "dottedQuarter": 1.5,
    "dottedEighth": 0.75,
}

STEPS_PER_BAR = 16

# Genre-specific tempo ranges (BPM)
GENRE_TEMPO_RANGES = {
    "techno": {"min": 125, "max": 145, "typical": 130},
    "house": {"min": 118, "max": 135, "typical": 124},
    "trance": {"min": 130, "max": 150, "typical": 140},
    "dubstep": {"min": 138, "max": 142, "typical": 140},
    "dnb": {"min": 160, "max": 180, "typical": 174},
    "hiphop": {"min": 70, "max": 100, "typical": 90},
    "trap": {"min": 130, "max": 170, "typical": 140},
    "downtempo": {"min": 70, "max": 110, "typical": 90},
    "ambient": {"min": 60, "max": 100, "typical": 80},
    "disco": {"min": 110, "max": 130, "typical": 120},
    "funk": {"min": 100, "max": 130, "typical": 110},
    "rock": {"min": 100, "max": 140, "typical": 120},
    "pop": {"min": 100, "max": 130, "typical": 115},
    "jazz": {"min": 80, "max": 200, "typical": 120},
    "reggae": {"min": 60, "max": 90, "typical": 75},
    "garage": {"min": 130, "max": 140, "typical": 135},
}

DEFAULT_TEMPO_RANGE = {"min": 80, "max": 140, "typical": 120}


@dataclass
class TimeSignature:
    numerator: int
    denominator: int

    def __str__(self) -> str:
        return f"{self.numerator}/{self.denominator}"


def parse_time_signature(time_sig: str) -> TimeSignature:
    """
    Parse a time signature such as '4/4' or '6/8'.

    Raises:
        ValueError: if either part is missing, zero or not a number
    """
    parts = time_sig.split("/")
    try:
        numerator = int(parts[0])
        denominator = int(parts[1])
    except (IndexError, ValueError):
        raise ValueError(f"Invalid time signature: {time_sig}")

    if numerator == 0 or denominator == 0:
        raise ValueError(f"Invalid time signature: {time_sig}")

    return TimeSignature(numerator, denominator)


def get_beats_per_bar(time_sig: Union[str, TimeSignature]) -> float:
    """Beats per bar in quarter notes."""
    sig = parse_time_signature(time_sig) if isinstance(time_sig, str) else time_sig
    return sig.numerator * 4 / sig.denominator


def get_16th_note_grid(bars: int, beats_per_bar: float = 4) -> list[int]:
    return list(range(int(bars * beats_per_bar * 4)))


def sixteenth_to_beat(sixteenth: int) -> float:
    return sixteenth / 4


def beat_to_sixteenth(beat: float) -> int:
    return int(round(beat * 4))


def apply_swing(beat: float, swing_amount: float, swing_subdivision: str = "8th") -> float:
    """
    Push off-beat grid positions by the swing amount.

    Args:
        beat: Beat position
        swing_amount: 0-100, 50 = straight
        swing_subdivision: "8th" or "16th"

    Returns:
        Swung beat position
    """
    swing_offset = (swing_amount - 50) / 100
    grid_size = 0.5 if swing_subdivision == "8th" else 0.25

    grid_position = beat / grid_size
    if abs(grid_position % 2 - 1) < 0.001:
        return beat + swing_offset * grid_size
    return beat


def humanize_timing(
    beat: float,
    jitter_ms: float,
    tempo: float,
    rng: Optional[random.Random] = None
) -> float:
    """Offset a beat by up to +/- jitter_ms milliseconds, never before beat 0."""
    rng = rng or random.Random()
    ms_per_beat = 60000 / tempo
    jitter_beats = jitter_ms / ms_per_beat
    return max(0.0, beat + (rng.random() - 0.5) * 2 * jitter_beats)


def humanize_velocity(
    velocity: float,
    variance: float,
    rng: Optional[random.Random] = None
) -> int:
    """Randomize a velocity by +/- variance, clamped to 1-127."""
    rng = rng or random.Random()
    offset = (rng.random() - 0.5) * 2 * variance
    return max(1, min(127, int(round(velocity + offset))))


def quantize(beat: float, grid_size: float, strength: float = 1.0) -> float:
    nearest = round(beat / grid_size) * grid_size
    return beat + (nearest - beat) * strength


def is_downbeat(beat: float, beats_per_bar: float = 4) -> bool:
    return abs(beat % beats_per_bar) < 0.001


def is_backbeat(beat: float, beats_per_bar: float = 4) -> bool:
    pos = beat % beats_per_bar
    if beats_per_bar == 4:
        return abs(pos - 1) < 0.001 or abs(pos - 3) < 0.001
    return abs(pos - beats_per_bar / 2) < 0.001


def is_syncopated(beat: float, grid_size: float = 1) -> bool:
    return abs(beat % grid_size) > 0.001


def get_accent_pattern(time_sig: str) -> list[float]:
    """Velocity multipliers for each beat of a bar."""
    sig = parse_time_signature(time_sig)
    meter = (sig.numerator, sig.denominator)

    if meter == (4, 4):
        return [1.0, 0.6, 0.8, 0.6]
    if meter == (3, 4):
        return [1.0, 0.6, 0.6]
    if meter == (6, 8):
        return [1.0, 0.5, 0.5, 0.8, 0.5, 0.5]
    if meter == (2, 4):
        return [1.0, 0.6]
    if meter == (5, 4):
        return [1.0, 0.6, 0.6, 0.8, 0.6]
    if meter == (7, 8):
        return [1.0, 0.6, 0.8, 0.6, 0.8, 0.5, 0.5]

    return [1.0] + [0.6] * (sig.numerator - 1)


def generate_basic_pattern(
    bars: int,
    density: float,
    time_sig: str = "4/4",
    rng: Optional[random.Random] = None
) -> list[int]:
    """Random 16th-step pattern where each step fires with probability density."""
    rng = rng or random.Random()
    total = int(round(bars * get_beats_per_bar(time_sig) * 4))
    return [i for i in range(total) if rng.random() < density]


def euclidean_rhythm_bool(hits: int, steps: int) -> list[bool]:
    """
    Distribute hits as evenly as possible across steps.

    Bucket method: each step adds `hits` to an accumulator and fires
    whenever it reaches `steps`.
    """
    hits = min(hits, steps)
    if hits <= 0:
        return [False] * steps

    pattern = []
    bucket = 0
    for _ in range(steps):
        bucket += hits
        if bucket >= steps:
            bucket -= steps
            pattern.append(True)
        else:
            pattern.append(False)
    return pattern


def rotate_pattern(pattern: list[T], steps: int) -> list[T]:
    """Cyclically shift a pattern left by `steps`."""
    n = len(pattern)
    if n == 0:
        return list(pattern)
    steps = steps % n
    return pattern[steps:] + pattern[:steps]


def euclidean_rhythm(hits: int, steps: int, rotation: int = 0) -> list[int]:
    """Euclidean rhythm as sorted step indices."""
    pattern = euclidean_rhythm_bool(hits, steps)
    if rotation:
        pattern = rotate_pattern(pattern, rotation)
    return [i for i, hit in enumerate(pattern) if hit]


def calculate_pocket_score(
    kick_positions: list[float],
    snare_positions: list[float],
    bass_positions: list[float],
    beats_per_bar: float = 4
) -> float:
    """Score kick/snare spacing and bass-to-kick alignment (positions in beats)."""
    score = 100.0

    for kick in kick_positions:
        for snare in snare_positions:
            distance = abs(kick - snare) % beats_per_bar
            # Flam territory
            if 0 < distance < 0.125:
                score -= 10

    for bass in bass_positions:
        if not kick_positions:
            break
        nearest = min(kick_positions, key=lambda k: abs(k - bass))
        if abs(bass - nearest) < 0.0625:
            score += 2

    return max(0.0, min(100.0, score))


def get_genre_tempo_range(genre: str) -> dict:
    return dict(GENRE_TEMPO_RANGES.get(genre.lower(), DEFAULT_TEMPO_RANGE))
