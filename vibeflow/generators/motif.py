"""
Motif generation module.

Implements the motif vocabulary used by every later stage:
- Scale walks and arpeggios over explicit interval lists
- Contour-shaped melodies (arch, ascending, descending, wave, valley)
- Rhythmic and euclidean single-pitch patterns with accents
- Block chords, randomized textures and bass-line templates
- Pure variation transforms (transpose, invert, retrograde, augment, diminish)
"""

import hashlib
import math
import random
from dataclasses import replace
from typing import Optional

from ..models import MotifSeed, MotifType, Note, StylePrior
from ..rhythm import euclidean_rhythm, humanize_velocity
from ..theory import get_scale_pitches, invert_melody, retrograde_melody, transpose_all


# Scale-degree index sequences for each contour shape
CONTOUR_PATTERNS = {
    "arch": [0, 1, 2, 3, 4, 3, 2, 1],
    "descending": [8, 7, 6, 5, 4, 3, 2, 1],
    "ascending": [0, 1, 2, 3, 4, 5, 6, 7],
    "wave": [0, 2, 1, 3, 2, 4, 3, 5],
    "valley": [4, 3, 2, 1, 0, 1, 2, 3],
}

CHORD_MOTIF_INTERVALS = {
    "major": [0, 4, 7],
    "minor": [0, 3, 7],
    "seventh": [0, 4, 7, 10],
    "sus4": [0, 5, 7],
}

# Texture density: notes per bar, duration range in beats
TEXTURE_DENSITY = {
    "sparse": (2, (1.0, 2.0)),
    "medium": (4, (0.5, 1.5)),
    "dense": (8, (0.25, 1.0)),
}

VARIATION_DEFAULTS = {
    "transpose": 12,
    "augment": 2,
    "diminish": 0.5,
}


def generate_scale_motif(
    key: str = "C",
    scale: str = "major",
    octave: int = 4,
    length_notes: int = 4,
    duration: float = 0.5
) -> list[Note]:
    """Ascending scale walk."""
    pitches = get_scale_pitches(key, scale, octave)[:length_notes]
    return [Note(p, i * duration, duration, 100) for i, p in enumerate(pitches)]


def generate_arpeggio_motif(
    root_pitch: int,
    pattern: str = "up",
    intervals: Optional[list[int]] = None,
    note_duration: float = 0.25,
    rng: Optional[random.Random] = None
) -> list[Note]:
    """
    Arpeggiate an interval list above a root.

    Args:
        root_pitch: MIDI root
        pattern: up, down, updown or random
        intervals: Semitones above the root (default major triad + octave)
        note_duration: Length of each note in beats
        rng: Random source for the random ordering

    Returns:
        Notes with the first one accented
    """
    if intervals is None:
        intervals = [0, 4, 7, 12]
    pitches = [root_pitch + i for i in intervals]

    if pattern == "down":
        ordered = list(reversed(pitches))
    elif pattern == "updown":
        ordered = pitches + list(reversed(pitches[1:-1]))
    elif pattern == "random":
        ordered = list(pitches)
        (rng or random.Random()).shuffle(ordered)
    else:
        ordered = pitches

    return [
        Note(p, i * note_duration, note_duration, 100 if i == 0 else 85)
        for i, p in enumerate(ordered)
    ]


def generate_contour_motif(
    key: str,
    scale: str,
    contour: str,
    length_notes: int = 8,
    base_octave: int = 4
) -> list[Note]:
    """Melody following a named contour; degree indices are clamped into the scale."""
    scale_pitches = get_scale_pitches(key, scale, base_octave)
    pattern = CONTOUR_PATTERNS.get(contour, CONTOUR_PATTERNS["arch"])[:length_notes]

    notes = []
    for i, degree in enumerate(pattern):
        index = max(0, min(degree, len(scale_pitches) - 1))
        # Phrase ends are accented
        velocity = 100 if i == 0 or i == len(pattern) - 1 else 90
        notes.append(Note(scale_pitches[index], i * 0.5, 0.5, velocity))
    return notes


def generate_rhythmic_motif(
    pitch: int = 60,
    pattern: Optional[list[int]] = None,
    subdivision: float = 0.25,
    accents: Optional[list[int]] = None
) -> list[Note]:
    """Single-pitch pattern over step indices; accented steps play louder."""
    if pattern is None:
        pattern = [0, 2, 4, 6, 8, 10, 12, 14]
    if accents is None:
        accents = [0, 4, 8, 12]
    return [
        Note(pitch, step * subdivision, subdivision, 100 if step in accents else 70)
        for step in pattern
    ]


def generate_euclidean_motif(
    pitch: int,
    hits: int,
    steps: int = 16,
    rotation: int = 0,
    subdivision: float = 0.25,
    rng: Optional[random.Random] = None
) -> list[Note]:
    rng = rng or random.Random()
    return [
        Note(pitch, step * subdivision, subdivision, humanize_velocity(90, 15, rng))
        for step in euclidean_rhythm(hits, steps, rotation)
    ]


def generate_chord_motif(
    root_pitches: list[int],
    chord_type: str = "major",
    duration: float = 1
) -> list[Note]:
    """Block chords stamped at each root's start time."""
    intervals = CHORD_MOTIF_INTERVALS.get(chord_type, CHORD_MOTIF_INTERVALS["major"])
    notes = []
    for index, root in enumerate(root_pitches):
        for interval in intervals:
            notes.append(Note(root + interval, index * duration, duration, 85))
    return notes


def generate_textural_motif(
    key: str,
    scale: str,
    density: str = "medium",
    length_bars: int = 2,
    rng: Optional[random.Random] = None
) -> list[Note]:
    """
    Soft, evenly spread scale tones with random pitch, jittered placement,
    random duration and velocity.
    """
    rng = rng or random.Random()
    scale_pitches = get_scale_pitches(key, scale, 4)
    notes_per_bar, (min_dur, max_dur) = TEXTURE_DENSITY.get(density, TEXTURE_DENSITY["medium"])
    total_notes = notes_per_bar * length_bars
    bar_length = 4

    notes = []
    for i in range(total_notes):
        pitch = scale_pitches[int(rng.random() * len(scale_pitches))]
        time = (i / total_notes) * (length_bars * bar_length) + (rng.random() * 0.5 - 0.25)
        duration = min_dur + rng.random() * (max_dur - min_dur)
        velocity = 50 + int(rng.random() * 40)
        notes.append(Note(pitch, max(0.0, time), duration, velocity))

    return sorted(notes, key=lambda n: n.time)


def generate_bass_motif(key: str, scale: str, pattern: str = "root") -> list[Note]:
    """One-bar bass line template in octave 2."""
    pitches = get_scale_pitches(key, scale, 2)
    root = pitches[0]
    third = pitches[2 % len(pitches)]
    fifth = pitches[4 % len(pitches)]
    seventh = pitches[6 % len(pitches)]
    octave = root + 12

    patterns = {
        "root": [
            (root, 0, 1, 100), (root, 1, 1, 90), (root, 2, 1, 95), (root, 3, 1, 90),
        ],
        "walking": [
            (root, 0, 0.5, 100), (third, 0.5, 0.5, 80), (fifth, 1, 0.5, 85),
            (seventh, 1.5, 0.5, 80), (octave, 2, 0.5, 90), (seventh, 2.5, 0.5, 80),
            (fifth, 3, 0.5, 85), (third, 3.5, 0.5, 80),
        ],
        "syncopated": [
            (root, 0, 0.75, 100), (root, 0.75, 0.25, 70), (fifth, 1.5, 0.5, 85),
            (root, 2, 1, 90), (fifth, 3.25, 0.75, 80),
        ],
        "arpeggiated": [
            (root, 0, 0.25, 100), (third, 0.25, 0.25, 75), (fifth, 0.5, 0.25, 80),
            (octave, 0.75, 0.25, 75), (root, 1, 0.25, 95), (third, 1.25, 0.25, 75),
            (fifth, 1.5, 0.25, 80), (octave, 1.75, 0.25, 75), (root, 2, 0.25, 100),
            (third, 2.25, 0.25, 75), (fifth, 2.5, 0.25, 80), (octave, 2.75, 0.25, 75),
            (fifth, 3, 0.25, 90), (third, 3.25, 0.25, 75), (root, 3.5, 0.5, 85),
        ],
    }

    return [Note(*row) for row in patterns.get(pattern, patterns["root"])]


def clamp_pitch(pitch: int) -> int:
    return max(0, min(127, pitch))


def vary_motif(notes: list[Note], operation: str, param: Optional[float] = None) -> list[Note]:
    """
    Apply a pure variation transform.

    Operations:
    - transpose: add `param` semitones (default 12)
    - invert: reflect about `param` (default first pitch)
    - retrograde: reverse pitch order, keep the time grid
    - augment / diminish: scale time and duration (default 2 / 0.5,
      also used for a non-positive factor)

    Unknown operations return the notes unchanged.
    """
    pitches = [n.pitch for n in notes]

    if operation == "transpose":
        semitones = param if param is not None else VARIATION_DEFAULTS["transpose"]
        shifted = transpose_all(pitches, int(semitones))
        return [replace(n, pitch=clamp_pitch(p)) for n, p in zip(notes, shifted)]

    if operation == "invert":
        inverted = invert_melody(pitches, int(param) if param is not None else None)
        return [replace(n, pitch=clamp_pitch(p)) for n, p in zip(notes, inverted)]

    if operation == "retrograde":
        reversed_pitches = retrograde_melody(pitches)
        return [replace(n, pitch=p) for n, p in zip(notes, reversed_pitches)]

    if operation in ("augment", "diminish"):
        factor = param if param is not None and param > 0 else VARIATION_DEFAULTS[operation]
        return [replace(n, time=n.time * factor, duration=n.duration * factor) for n in notes]

    return list(notes)


def motif_hash(notes: list[Note], name: str = "") -> str:
    """Short content hash used for motif ids."""
    payload = name + str([n.to_tuple() for n in notes])
    return hashlib.md5(payload.encode()).hexdigest()[:8]


def create_motif_seed(
    notes: list[Note],
    motif_type: MotifType,
    key: str,
    scale: str,
    name: Optional[str] = None
) -> MotifSeed:
    """Wrap notes as a MotifSeed; length is the last note end rounded up to whole bars."""
    max_time = max((n.time + n.duration for n in notes), default=0)
    length_bars = math.ceil(max_time / 4)
    name = name or f"{motif_type.value} motif in {key} {scale}"

    return MotifSeed(
        id=f"motif-{motif_type.value}-{motif_hash(notes, name)}",
        type=motif_type,
        name=name,
        notes=list(notes),
        length_bars=length_bars,
        key=key,
        scale=scale,
        description=f"{motif_type.value} motif with {len(notes)} notes over {length_bars} bar(s)",
    )


def generate_motif_candidates(
    style_prior: StylePrior,
    motif_type: MotifType,
    key: str = "C",
    scale: str = "minor",
    count: int = 5,
    rng: Optional[random.Random] = None
) -> list[MotifSeed]:
    """
    Generate motif candidates of one type.

    When fewer than `count` base candidates exist, transposed and
    retrograde variants of the first one are appended.
    """
    rng = rng or random.Random()
    seeds = []

    def add(notes, name):
        seeds.append(create_motif_seed(notes, motif_type, key, scale, name))

    if motif_type == MotifType.MELODIC:
        add(generate_contour_motif(key, scale, "arch", 8), "Arch melody")
        add(generate_contour_motif(key, scale, "ascending", 6), "Rising melody")
        add(generate_contour_motif(key, scale, "wave", 8), "Wave melody")
        add(generate_arpeggio_motif(60, "updown", [0, 3, 7, 12]), "Arpeggio melody")

    elif motif_type == MotifType.RHYTHMIC:
        add(generate_rhythmic_motif(60, [0, 4, 8, 12]), "Quarter note rhythm")
        add(generate_rhythmic_motif(60, [0, 2, 4, 6, 8, 10, 12, 14]), "8th note rhythm")
        add(generate_euclidean_motif(60, 5, 16, rng=rng), "Euclidean 5/16 rhythm")
        add(generate_euclidean_motif(60, 7, 16, rng=rng), "Euclidean 7/16 rhythm")

    elif motif_type == MotifType.HARMONIC:
        root = 48  # C3
        add(generate_chord_motif([root, root + 5, root + 7], "major"), "I-IV-V progression")
        add(generate_chord_motif([root, root - 2, root + 5], "minor"), "i-VII-IV progression")
        add(generate_chord_motif([root], "seventh", 2), "Seventh chord pad")

    elif motif_type == MotifType.TEXTURAL:
        add(generate_textural_motif(key, scale, "sparse", 4, rng), "Sparse texture")
        add(generate_textural_motif(key, scale, "medium", 2, rng), "Medium texture")
        add(generate_textural_motif(key, scale, "dense", 2, rng), "Dense texture")

    if seeds and len(seeds) < count:
        base = seeds[0]
        add(vary_motif(base.notes, "transpose", 5), f"{base.name} (transposed)")
        add(vary_motif(base.notes, "retrograde"), f"{base.name} (retrograde)")

    return seeds[:count]
