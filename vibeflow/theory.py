"""
Music theory utilities.

Scales, chords, intervals and pitch arithmetic used by every generator:
- Pitch <-> note-name conversion (C4 = 60)
- Scale / chord pitch construction
- Transposition, inversion, retrograde
- Scale quantization and chord-symbol parsing
"""

import re
from typing import Optional, Union


NOTE_NAMES = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]
NOTE_NAMES_FLAT = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]

# Scale intervals (semitones from root)
SCALES = {
    "major": [0, 2, 4, 5, 7, 9, 11],
    "minor": [0, 2, 3, 5, 7, 8, 10],
    "harmonicMinor": [0, 2, 3, 5, 7, 8, 11],
    "melodicMinor": [0, 2, 3, 5, 7, 9, 11],
    "dorian": [0, 2, 3, 5, 7, 9, 10],
    "phrygian": [0, 1, 3, 5, 7, 8, 10],
    "lydian": [0, 2, 4, 6, 7, 9, 11],
    "mixolydian": [0, 2, 4, 5, 7, 9, 10],
    "locrian": [0, 1, 3, 5, 6, 8, 10],
    "pentatonicMajor": [0, 2, 4, 7, 9],
    "pentatonicMinor": [0, 3, 5, 7, 10],
    "blues": [0, 3, 5, 6, 7, 10],
    "chromatic": [0, 1, 2, 3, 4, 5, 6, 7, 8, 9, 10, 11],
    "wholeTone": [0, 2, 4, 6, 8, 10],
}

# Chord patterns (intervals from root)
CHORDS = {
    "major": [0, 4, 7],
    "minor": [0, 3, 7],
    "diminished": [0, 3, 6],
    "augmented": [0, 4, 8],
    "major7": [0, 4, 7, 11],
    "minor7": [0, 3, 7, 10],
    "dominant7": [0, 4, 7, 10],
    "diminished7": [0, 3, 6, 9],
    "halfDiminished7": [0, 3, 6, 10],
    "majorAdd9": [0, 4, 7, 14],
    "minorAdd9": [0, 3, 7, 14],
    "sus2": [0, 2, 7],
    "sus4": [0, 5, 7],
    "power": [0, 7],
}

INTERVALS = {
    0: "unison",
    1: "minor 2nd",
    2: "major 2nd",
    3: "minor 3rd",
    4: "major 3rd",
    5: "perfect 4th",
    6: "tritone",
    7: "perfect 5th",
    8: "minor 6th",
    9: "major 6th",
    10: "minor 7th",
    11: "major 7th",
    12: "octave",
}

# Roman-numeral progressions by genre family
COMMON_PROGRESSIONS = {
    "pop": [
        ["I", "V", "vi", "IV"],
        ["I", "IV", "V", "V"],
        ["vi", "IV", "I", "V"],
    ],
    "electronic": [
        ["i", "VI", "III", "VII"],
        ["i", "iv", "v", "i"],
        ["i", "VII", "VI", "VII"],
    ],
    "jazz": [
        ["IIM7", "V7", "IM7", "IM7"],
        ["IM7", "VI7", "IIM7", "V7"],
    ],
    "hiphop": [
        ["i", "iv", "VI", "V"],
        ["i", "VI", "iv", "V"],
    ],
}

NOTE_NAME_PATTERN = re.compile(r"^([A-G])([#b]?)(-?\d)?$", re.IGNORECASE)
CHORD_SYMBOL_PATTERN = re.compile(
    r"^([A-G][#b]?)(m|maj|min|dim|aug|7|maj7|m7|dim7)?$", re.IGNORECASE
)

ROMAN_DEGREES = {"I": 0, "II": 1, "III": 2, "IV": 3, "V": 4, "VI": 5, "VII": 6}

Root = Union[str, int]


def note_name_to_pitch(note_name: str) -> int:
    """
    Convert a note name to a MIDI pitch (C4 = 60).

    Octave defaults to 4 when omitted.

    Accidentals move across the octave boundary: Cb4 is 59 and B#4 is 72.

    Raises:
        ValueError: if the name is not a letter, optional accidental and
            octave, or if the pitch falls outside 0-127
    """
    match = NOTE_NAME_PATTERN.match(note_name)
    if not match:
        raise ValueError(f"Invalid note name: {note_name}")

    letter, accidental, octave_str = match.groups()
    octave = int(octave_str) if octave_str else 4

    pitch = NOTE_NAMES.index(letter.upper()) + (octave + 1) * 12
    if accidental == "#":
        pitch += 1
    elif accidental.lower() == "b":
        pitch -= 1

    if not 0 <= pitch <= 127:
        raise ValueError(f"Note out of MIDI range: {note_name}")
    return pitch


def pitch_to_note_name(pitch: int, use_flats: bool = False) -> str:
    """Convert a MIDI pitch to a name such as 'C#4'."""
    names = NOTE_NAMES_FLAT if use_flats else NOTE_NAMES
    octave = pitch // 12 - 1
    return f"{names[pitch % 12]}{octave}"


def get_pitch_class(pitch: int) -> int:
    return pitch % 12


def _scale_intervals(scale: str) -> list[int]:
    intervals = SCALES.get(scale)
    if intervals is None:
        raise ValueError(f"Unknown scale: {scale}")
    return intervals


def _root_pitch(root: Root, octave: int = 4) -> int:
    if isinstance(root, str):
        return note_name_to_pitch(f"{root}{octave}")
    return root


def get_scale_pitches(root: Root, scale: str, octave: int = 4) -> list[int]:
    """Get MIDI pitches for one octave of a scale."""
    root_pitch = _root_pitch(root, octave)
    return [root_pitch + interval for interval in _scale_intervals(scale)]


def get_scale_pitch_classes(root: Root, scale: str) -> list[int]:
    """Get pitch classes (0-11) of a scale, root first."""
    if isinstance(root, str):
        root_pc = get_pitch_class(note_name_to_pitch(root))
    else:
        root_pc = get_pitch_class(root)
    return [(root_pc + interval) % 12 for interval in _scale_intervals(scale)]


def is_pitch_in_scale(pitch: int, root: Root, scale: str) -> bool:
    return get_pitch_class(pitch) in get_scale_pitch_classes(root, scale)


def get_chord_pitches(root: Root, chord: str, octave: int = 4) -> list[int]:
    """Get MIDI pitches for a chord."""
    intervals = CHORDS.get(chord)
    if intervals is None:
        raise ValueError(f"Unknown chord: {chord}")
    root_pitch = _root_pitch(root, octave)
    return [root_pitch + interval for interval in intervals]


def transpose(pitch: int, semitones: int) -> int:
    return pitch + semitones


def transpose_all(pitches: list[int], semitones: int) -> list[int]:
    return [transpose(p, semitones) for p in pitches]


def get_interval(pitch1: int, pitch2: int) -> int:
    """Absolute interval in semitones."""
    return abs(pitch2 - pitch1)


def get_interval_name(semitones: int) -> str:
    normalized = abs(semitones) % 12
    return INTERVALS.get(normalized, f"{normalized} semitones")


def invert_melody(pitches: list[int], pivot: Optional[int] = None) -> list[int]:
    """Reflect pitches about a pivot (first pitch, or 60 for an empty list)."""
    if pivot is None:
        pivot = pitches[0] if pitches else 60
    return [pivot * 2 - p for p in pitches]


def retrograde_melody(pitches: list[int]) -> list[int]:
    return list(reversed(pitches))


def quantize_to_scale(pitch: int, root: Root, scale: str) -> int:
    """Snap a pitch to the nearest pitch class of the scale (same octave)."""
    scale_pcs = get_scale_pitch_classes(root, scale)
    pitch_class = get_pitch_class(pitch)
    octave = pitch // 12

    nearest = pitch_class
    min_distance = float("inf")
    for scale_pc in scale_pcs:
        distance = min(
            abs(pitch_class - scale_pc),
            abs(pitch_class - scale_pc + 12),
            abs(pitch_class - scale_pc - 12),
        )
        if distance < min_distance:
            min_distance = distance
            nearest = scale_pc

    return octave * 12 + nearest


def parse_chord_symbol(symbol: str) -> Optional[dict]:
    """
    Parse a chord symbol such as 'Cmaj7', 'F#m' or 'Bb7'.

    Returns:
        {"root": ..., "type": ...} or None when the symbol is not recognised
    """
    match = CHORD_SYMBOL_PATTERN.match(symbol)
    if not match:
        return None

    root, quality = match.groups()
    chord_type = "major"
    if quality:
        q = quality.lower()
        chord_type = {
            "m": "minor",
            "min": "minor",
            "dim": "diminished",
            "aug": "augmented",
            "7": "dominant7",
            "maj7": "major7",
            "m7": "minor7",
            "dim7": "diminished7",
        }.get(q, "major")

    return {"root": root, "type": chord_type}


def get_diatonic_chord(root: str, scale: str, degree: int) -> dict:
    """Triad built on a 1-based scale degree of a seven-note scale."""
    pcs = get_scale_pitch_classes(root, scale)
    chord_root = pcs[(degree - 1) % 7]
    third = pcs[(degree + 1) % 7]
    fifth = pcs[(degree + 3) % 7]

    third_interval = (third - chord_root + 12) % 12
    fifth_interval = (fifth - chord_root + 12) % 12

    chord_type = "major"
    if third_interval == 3 and fifth_interval == 7:
        chord_type = "minor"
    elif third_interval == 3 and fifth_interval == 6:
        chord_type = "diminished"
    elif third_interval == 4 and fifth_interval == 8:
        chord_type = "augmented"

    return {"root": NOTE_NAMES[chord_root], "type": chord_type}


def roman_to_chord(roman: str, key: str, mode: str = "major") -> dict:
    """Resolve a roman numeral (case gives quality) to a chord in a key."""
    is_minor = roman == roman.lower()
    numeral = re.sub(r"[^IV]", "", roman.upper())

    degree = ROMAN_DEGREES.get(numeral)
    if degree is None:
        return {"root": key, "type": "major"}

    scale = "major" if mode == "major" else "minor"
    root_pc = get_scale_pitch_classes(key, scale)[degree]

    chord_type = "minor" if is_minor else "major"
    if "7" in roman:
        chord_type = "minor7" if is_minor else "dominant7"
    if "M7" in roman or "maj7" in roman:
        chord_type = "major7"
    if "dim" in roman:
        chord_type = "diminished"

    return {"root": NOTE_NAMES[root_pc], "type": chord_type}
