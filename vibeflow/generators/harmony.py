"""
Harmony generation module.

Chord progressions as (start beat, chord symbol, duration) events:
- Named scale-degree templates resolved against a key and mode
- Genre helpers (pop, EDM, trance, jazz)
- Random walks over a degree transition graph
- Tiling to a bar count and root transposition
"""

import random
from dataclasses import replace
from typing import Optional

from ..models import ChordEvent, StylePrior
from ..theory import (
    NOTE_NAMES,
    NOTE_NAMES_FLAT,
    get_pitch_class,
    get_scale_pitch_classes,
    note_name_to_pitch,
    parse_chord_symbol,
)


# Scale-degree templates (1-based degrees)
PROGRESSION_TEMPLATES = {
    # Pop / rock
    "I-V-vi-IV": {"degrees": [1, 5, 6, 4], "name": "Pop progression"},
    "I-IV-V-I": {"degrees": [1, 4, 5, 1], "name": "Classic rock"},
    "vi-IV-I-V": {"degrees": [6, 4, 1, 5], "name": "Emotional pop"},
    "I-vi-IV-V": {"degrees": [1, 6, 4, 5], "name": "50s progression"},
    # EDM / house
    "i-VI-III-VII": {"degrees": [1, 6, 3, 7], "name": "Dark house"},
    "i-VII-VI-VII": {"degrees": [1, 7, 6, 7], "name": "Driving house"},
    "i-iv-VII-III": {"degrees": [1, 4, 7, 3], "name": "Deep house"},
    # Jazz / neo-soul
    "ii-V-I": {"degrees": [2, 5, 1], "name": "Jazz ii-V-I"},
    "I-vi-ii-V": {"degrees": [1, 6, 2, 5], "name": "Jazz turnaround"},
    "IVmaj7-iii7-vi7-ii7-V7": {"degrees": [4, 3, 6, 2, 5], "name": "Neo-soul"},
    # Ambient / cinematic
    "I-III-IV-iv": {"degrees": [1, 3, 4, 4], "name": "Major to minor IV"},
    "i-VI-i-VII": {"degrees": [1, 6, 1, 7], "name": "Cinematic minor"},
    # Trance / progressive
    "i-VI-VII-i": {"degrees": [1, 6, 7, 1], "name": "Epic trance"},
    "vi-IV-I-V-uplifting": {"degrees": [6, 4, 1, 5], "name": "Uplifting trance"},
}

# Triad quality per scale degree for each mode
MODE_QUALITIES = {
    "major": ["maj", "min", "min", "maj", "maj", "min", "dim"],
    "minor": ["min", "dim", "maj", "min", "min", "maj", "maj"],
    "dorian": ["min", "min", "maj", "maj", "min", "dim", "maj"],
    "mixolydian": ["maj", "min", "dim", "maj", "min", "min", "maj"],
    "phrygian": ["min", "maj", "maj", "min", "dim", "maj", "min"],
}

# Allowed next degrees for random progressions
DEGREE_TRANSITIONS = {
    1: [4, 5, 6, 2],
    2: [5, 4, 7],
    3: [6, 4, 2],
    4: [5, 1, 2, 7],
    5: [1, 6, 4],
    6: [4, 2, 5, 3],
    7: [1, 3],
}


def chord_quality_for_degree(degree: int, mode: str) -> str:
    """Quality of the triad on a degree; unlisted minor-flavoured scales use the minor table."""
    if mode in MODE_QUALITIES:
        qualities = MODE_QUALITIES[mode]
    elif "minor" in mode.lower():
        qualities = MODE_QUALITIES["minor"]
    else:
        qualities = MODE_QUALITIES["major"]
    return qualities[(degree - 1) % 7]


def degree_to_chord(degree: int, key: str, scale: str = "major") -> str:
    """Chord symbol such as 'Cmin' for a 1-based scale degree."""
    pcs = get_scale_pitch_classes(key, scale)
    root_pc = pcs[(degree - 1) % len(pcs)]
    return f"{NOTE_NAMES[root_pc]}{chord_quality_for_degree(degree, scale)}"


def generate_progression_from_template(
    template_name: str,
    key: str,
    scale: str = "major",
    beats_per_chord: float = 4
) -> list[ChordEvent]:
    """
    Resolve a named template to chord events.

    Raises:
        ValueError: if the template name is unknown
    """
    template = PROGRESSION_TEMPLATES.get(template_name)
    if template is None:
        raise ValueError(f"Unknown progression template: {template_name}")

    return [
        ChordEvent(index * beats_per_chord, degree_to_chord(degree, key, scale), beats_per_chord)
        for index, degree in enumerate(template["degrees"])
    ]


def generate_basic_progression(key: str, scale: str = "major", beats_per_chord: float = 4) -> list[ChordEvent]:
    return generate_progression_from_template("I-IV-V-I", key, scale, beats_per_chord)


def generate_pop_progression(key: str, variant: str = "standard", beats_per_chord: float = 4) -> list[ChordEvent]:
    templates = {"standard": "I-V-vi-IV", "emotional": "vi-IV-I-V", "50s": "I-vi-IV-V"}
    return generate_progression_from_template(templates.get(variant, "I-V-vi-IV"), key, "major", beats_per_chord)


def generate_edm_progression(key: str, variant: str = "driving", beats_per_chord: float = 4) -> list[ChordEvent]:
    templates = {"dark": "i-VI-III-VII", "driving": "i-VII-VI-VII", "deep": "i-iv-VII-III"}
    return generate_progression_from_template(templates.get(variant, "i-VII-VI-VII"), key, "minor", beats_per_chord)


def generate_trance_progression(key: str, variant: str = "epic", beats_per_chord: float = 8) -> list[ChordEvent]:
    templates = {"epic": "i-VI-VII-i", "uplifting": "vi-IV-I-V"}
    scale = "minor" if variant == "epic" else "major"
    return generate_progression_from_template(templates.get(variant, "i-VI-VII-i"), key, scale, beats_per_chord)


def generate_jazz_progression(key: str, variant: str = "ii-V-I", beats_per_chord: float = 4) -> list[ChordEvent]:
    templates = {"ii-V-I": "ii-V-I", "turnaround": "I-vi-ii-V"}
    return generate_progression_from_template(templates.get(variant, "ii-V-I"), key, "major", beats_per_chord)


def generate_random_progression(
    key: str,
    scale: str = "minor",
    chord_count: int = 4,
    beats_per_chord: float = 4,
    rng: Optional[random.Random] = None
) -> list[ChordEvent]:
    """Random walk over DEGREE_TRANSITIONS starting on the tonic."""
    rng = rng or random.Random()
    progression = []
    degree = 1

    for i in range(chord_count):
        progression.append(ChordEvent(i * beats_per_chord, degree_to_chord(degree, key, scale), beats_per_chord))
        choices = DEGREE_TRANSITIONS.get(degree, [1])
        degree = choices[int(rng.random() * len(choices))]

    return progression


def extend_progression(
    progression: list[ChordEvent],
    total_bars: int,
    beats_per_bar: float = 4
) -> list[ChordEvent]:
    """Tile a progression cyclically until total_bars are covered."""
    if not progression:
        return []

    extended = []
    total_beats = total_bars * beats_per_bar
    current_beat = 0.0
    index = 0

    while current_beat < total_beats:
        chord = progression[index % len(progression)]
        if chord.duration <= 0:
            break
        extended.append(replace(chord, start_beat=current_beat))
        current_beat += chord.duration
        index += 1

    return extended


def generate_progression_candidates(
    style_prior: StylePrior,
    key: str = "C",
    count: int = 5,
    rng: Optional[random.Random] = None
) -> list[dict]:
    """
    Genre-matched progression candidates.

    Returns:
        [{"name": str, "progression": list[ChordEvent]}, ...]
    """
    rng = rng or random.Random()
    keywords = style_prior.guardrails.energy_profile.lower()
    use_major = any(k in keywords for k in ("happy", "uplifting", "bright"))
    default_scale = "major" if use_major else "minor"
    candidates = []

    if any(k in keywords for k in ("house", "techno", "edm")):
        candidates.append({"name": "Dark house", "progression": generate_edm_progression(key, "dark")})
        candidates.append({"name": "Driving house", "progression": generate_edm_progression(key, "driving")})
        candidates.append({"name": "Deep house", "progression": generate_edm_progression(key, "deep")})

    if "trance" in keywords or "progressive" in keywords:
        candidates.append({"name": "Epic trance", "progression": generate_trance_progression(key, "epic")})
        candidates.append({"name": "Uplifting trance", "progression": generate_trance_progression(key, "uplifting")})

    if "pop" in keywords or "indie" in keywords:
        candidates.append({"name": "Pop standard", "progression": generate_pop_progression(key, "standard")})
        candidates.append({"name": "Emotional pop", "progression": generate_pop_progression(key, "emotional")})
        candidates.append({"name": "50s style", "progression": generate_pop_progression(key, "50s")})

    if any(k in keywords for k in ("jazz", "lofi", "neo-soul")):
        candidates.append({"name": "Jazz ii-V-I", "progression": generate_jazz_progression(key, "ii-V-I")})
        candidates.append({"name": "Jazz turnaround", "progression": generate_jazz_progression(key, "turnaround")})

    if len(candidates) < count:
        candidates.append({"name": "Basic I-IV-V-I", "progression": generate_basic_progression(key, default_scale)})
        candidates.append({
            "name": "Random variation 1",
            "progression": generate_random_progression(key, default_scale, 4, rng=rng),
        })
        candidates.append({
            "name": "Random variation 2",
            "progression": generate_random_progression(key, default_scale, 8, 2, rng=rng),
        })

    return candidates[:count]


def transpose_progression(progression: list[ChordEvent], semitones: int) -> list[ChordEvent]:
    """
    Shift each chord root by semitones (mod 12).

    Flat roots stay spelled with flats; unparseable symbols pass through.
    """
    result = []
    for event in progression:
        parsed = parse_chord_symbol(event.chord)
        if parsed is None:
            result.append(event)
            continue
        root = parsed["root"]
        quality = event.chord[len(root):]
        names = NOTE_NAMES_FLAT if root.endswith("b") else NOTE_NAMES
        new_root = names[(get_pitch_class(note_name_to_pitch(root)) + semitones) % 12]
        result.append(replace(event, chord=f"{new_root}{quality}"))
    return result


def analyze_progression_mood(progression: list[ChordEvent]) -> dict:
    """
    Classify the emotional character of a progression.

    Returns:
        {"mood": dark|bright|melancholy|triumphant|neutral, "tension": 0-100}
    """
    if not progression:
        return {"mood": "neutral", "tension": 0.0}

    minor_count = 0
    diminished_count = 0
    for event in progression:
        chord = event.chord.lower()
        if "dim" in chord:
            diminished_count += 1
        elif "min" in chord or ("m" in chord and "maj" not in chord):
            minor_count += 1

    total = len(progression)
    minor_ratio = minor_count / total
    tension = diminished_count / total * 100

    if minor_ratio > 0.7:
        mood = "dark" if tension > 20 else "melancholy"
    elif minor_ratio < 0.3:
        mood = "triumphant" if tension > 20 else "bright"
    else:
        mood = "neutral"

    return {"mood": mood, "tension": tension}
