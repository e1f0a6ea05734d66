"""
Arrangement structure templates.

Named archetypes map to ordered section-type sequences; each section type
has a default length and energy level. Provides:
- Macro-structure generation with optional rescaling to a target length
- Transition labels between adjacent section types
- Archetype suggestion by genre
- Energy-curve smoothness and structural constraint checks
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .models import (
    ArrangementSection,
    EnergyCurvePoint,
    KeyMoment,
    MacroStructure,
    SectionType,
    ValidationReport,
)
from .scoring.common import round_half_up

logger = logging.getLogger(__name__)


@dataclass
class SectionTemplate:
    """Default shape of a section type."""
    type: SectionType
    typical_length_bars: int
    energy_level: float
    description: str


@dataclass
class Archetype:
    name: str
    sections: list[SectionType]
    description: str
    typical_genres: list[str] = field(default_factory=list)


S = SectionType

SECTION_TEMPLATES = {
    S.INTRO: SectionTemplate(S.INTRO, 8, 30, "Sets the mood and introduces key elements"),
    S.VERSE: SectionTemplate(S.VERSE, 16, 50, "Main melodic content, moderate energy"),
    S.PRE_CHORUS: SectionTemplate(S.PRE_CHORUS, 8, 65, "Builds tension before the chorus"),
    S.CHORUS: SectionTemplate(S.CHORUS, 16, 85, "Hook and highest melodic energy"),
    S.BUILDUP: SectionTemplate(S.BUILDUP, 8, 70, "Rising tension leading to drop or chorus"),
    S.DROP: SectionTemplate(S.DROP, 16, 95, "Maximum energy, full instrumentation"),
    S.BREAKDOWN: SectionTemplate(S.BREAKDOWN, 8, 35, "Stripped back section for contrast"),
    S.BUILD: SectionTemplate(S.BUILD, 8, 70, "Rising tension leading to drop or chorus"),
    S.BRIDGE: SectionTemplate(S.BRIDGE, 8, 55, "Contrasting section with new musical ideas"),
    S.OUTRO: SectionTemplate(S.OUTRO, 8, 25, "Wind down and conclusion"),
    S.TRANSITION: SectionTemplate(S.TRANSITION, 4, 50, "Bridge between major sections"),
}

ARCHETYPES = {
    "verseChorus": Archetype(
        "Verse-Chorus",
        [S.INTRO, S.VERSE, S.CHORUS, S.VERSE, S.CHORUS, S.BRIDGE, S.CHORUS, S.OUTRO],
        "Traditional pop/rock structure with alternating verses and choruses",
        ["pop", "rock", "indie", "country"],
    ),
    "buildDrop": Archetype(
        "Build-Drop",
        [S.INTRO, S.BUILD, S.DROP, S.BREAKDOWN, S.BUILD, S.DROP, S.OUTRO],
        "EDM-style structure focused on tension and release",
        ["techno", "house", "trance", "dubstep", "dnb"],
    ),
    "throughComposed": Archetype(
        "Through-Composed",
        [S.INTRO, S.VERSE, S.VERSE, S.BRIDGE, S.VERSE, S.OUTRO],
        "Continuously evolving without repeating sections",
        ["ambient", "classical", "progressive"],
    ),
    "rondo": Archetype(
        "Rondo (ABACA)",
        [S.INTRO, S.CHORUS, S.VERSE, S.CHORUS, S.BRIDGE, S.CHORUS, S.OUTRO],
        "Recurring main theme with contrasting episodes",
        ["classical", "jazz", "progressive"],
    ),
    "aaba": Archetype(
        "AABA (32-bar)",
        [S.VERSE, S.VERSE, S.BRIDGE, S.VERSE],
        "Classic jazz / tin pan alley form",
        ["jazz", "standards", "musical theater"],
    ),
    "binary": Archetype(
        "Binary (AB)",
        [S.INTRO, S.VERSE, S.CHORUS, S.OUTRO],
        "Simple two-part structure",
        ["electronic", "ambient", "minimal"],
    ),
    "ternary": Archetype(
        "Ternary (ABA)",
        [S.INTRO, S.VERSE, S.BRIDGE, S.VERSE, S.OUTRO],
        "Three-part structure with return to opening",
        ["classical", "ambient", "cinematic"],
    ),
}

ARCHETYPE_ALIASES = {
    "verse-chorus": "verseChorus",
    "build-drop": "buildDrop",
    "through-composed": "throughComposed",
    "aba": "ternary",
}

# (from, to) -> transition label; anything else crossfades
TRANSITION_TYPES = {
    (S.BUILD, S.DROP): "riser + impact",
    (S.DROP, S.BREAKDOWN): "reverse cymbal + filter close",
    (S.BREAKDOWN, S.BUILD): "gradual layer in",
    (S.VERSE, S.CHORUS): "drum fill + lift",
    (S.CHORUS, S.VERSE): "strip elements",
}
DEFAULT_TRANSITION = "crossfade"

TRANSITION_TECHNIQUES = {
    "riser": {"name": "Riser", "description": "Ascending noise or synth sweep", "duration": 4, "energy_change": 20},
    "downlifter": {"name": "Downlifter", "description": "Descending sweep", "duration": 2, "energy_change": -10},
    "impact": {"name": "Impact", "description": "Explosive hit marking section start", "duration": 0.5, "energy_change": 30},
    "reverseCymbal": {"name": "Reverse Cymbal", "description": "Reversed crash building into hit", "duration": 2, "energy_change": 10},
    "drumFill": {"name": "Drum Fill", "description": "Rhythmic break leading to new section", "duration": 1, "energy_change": 5},
    "filterSweep": {"name": "Filter Sweep", "description": "High or low pass filter movement", "duration": 4, "energy_change": 0},
    "whiteNoise": {"name": "White Noise Riser", "description": "Filtered noise sweep", "duration": 4, "energy_change": 15},
    "silence": {"name": "Silence", "description": "Brief pause for impact", "duration": 0.25, "energy_change": -40},
}

# Section types whose start is marked as a key moment
KEY_MOMENT_TYPES = {
    S.DROP: "drop starts",
    S.CHORUS: "chorus starts",
    S.BREAKDOWN: "breakdown starts",
    S.BUILD: "build starts",
}


def resolve_archetype(name: str) -> str:
    """
    Canonical archetype name for a name or alias.

    Raises:
        ValueError: if the archetype is unknown
    """
    canonical = ARCHETYPE_ALIASES.get(name, name)
    if canonical not in ARCHETYPES:
        raise ValueError(f"Unknown archetype: {name}")
    return canonical


def get_transition_type(from_type: SectionType, to_type: SectionType) -> str:
    return TRANSITION_TYPES.get((from_type, to_type), DEFAULT_TRANSITION)


def fit_lengths(lengths: list[int], total_bars: int) -> list[int]:
    """
    Rescale section lengths so they sum exactly to total_bars.

    Each length is scaled and rounded (minimum 1 bar); the last section
    absorbs the rounding remainder. When the target is too short for one
    bar per section, longer sections give up bars first and every
    section keeps at least one bar, so the result exceeds the target.
    """
    natural = sum(lengths)
    if not lengths or natural == total_bars or natural == 0:
        return list(lengths)

    ratio = total_bars / natural
    scaled = [max(1, round_half_up(length * ratio)) for length in lengths]
    scaled[-1] = max(1, total_bars - sum(scaled[:-1]))

    # Rounding up earlier sections can overshoot; trim the longest
    excess = sum(scaled) - total_bars
    while excess > 0:
        longest = max(range(len(scaled)), key=lambda i: scaled[i])
        if scaled[longest] <= 1:
            break
        scaled[longest] -= 1
        excess -= 1

    if excess > 0:
        logger.warning(
            f"Target of {total_bars} bars is too short for {len(lengths)} sections, "
            f"using {sum(scaled)} bars"
        )
    return scaled


def _section_name(section_type: SectionType, occurrence: int) -> str:
    label = section_type.value[0].upper() + section_type.value[1:]
    return f"{label} {occurrence}" if occurrence > 1 else label


def generate_macro_structure(archetype: str, total_bars: Optional[int] = None, scale_factor: float = 1) -> MacroStructure:
    """
    Build a macro structure from an archetype.

    Args:
        archetype: Archetype name or alias
        total_bars: Target length; section lengths are rescaled to match exactly
        scale_factor: Multiplier on template lengths before rescaling

    Returns:
        MacroStructure with contiguous sections, step-function energy curve
        and key moments at drop/chorus/breakdown/build starts

    Raises:
        ValueError: if the archetype is unknown
    """
    canonical = resolve_archetype(archetype)
    types = ARCHETYPES[canonical].sections

    lengths = [
        max(1, round_half_up(SECTION_TEMPLATES[t].typical_length_bars * scale_factor))
        for t in types
    ]
    if total_bars:
        lengths = fit_lengths(lengths, total_bars)

    sections = []
    energy_curve = []
    key_moments = []
    occurrences: dict[SectionType, int] = {}
    current_bar = 0

    for i, (section_type, length) in enumerate(zip(types, lengths)):
        template = SECTION_TEMPLATES[section_type]
        occurrences[section_type] = occurrences.get(section_type, 0) + 1

        sections.append(ArrangementSection(
            id=f"{section_type.value}-{i}",
            type=section_type,
            name=_section_name(section_type, occurrences[section_type]),
            start_bar=current_bar,
            length_bars=length,
            energy_level=template.energy_level,
            transition_in=get_transition_type(types[i - 1], section_type) if i > 0 else None,
            transition_out=get_transition_type(section_type, types[i + 1]) if i < len(types) - 1 else None,
        ))

        energy_curve.append(EnergyCurvePoint(current_bar, template.energy_level))
        energy_curve.append(EnergyCurvePoint(current_bar + length, template.energy_level))

        if section_type in KEY_MOMENT_TYPES:
            key_moments.append(KeyMoment(current_bar, KEY_MOMENT_TYPES[section_type]))

        current_bar += length

    return MacroStructure(
        archetype=canonical,
        total_bars=current_bar,
        sections=sections,
        energy_curve=energy_curve,
        key_moments=key_moments,
    )


def suggest_archetype_for_genre(genre: str) -> str:
    """First archetype whose typical genres match, then broad-category defaults."""
    lower = genre.lower()

    for name, archetype in ARCHETYPES.items():
        if any(g in lower or lower in g for g in archetype.typical_genres):
            return name

    if any(g in lower for g in ("techno", "house", "trance", "edm", "electronic", "dubstep", "dnb")):
        return "buildDrop"
    if any(g in lower for g in ("ambient", "drone", "experimental", "noise")):
        return "throughComposed"
    if any(g in lower for g in ("jazz", "swing", "bebop")):
        return "aaba"
    return "verseChorus"


def score_energy_curve_smoothness(energy_curve: list[EnergyCurvePoint]) -> float:
    """100 minus the excess of each segment's energy change rate over 10 per bar."""
    if len(energy_curve) < 2:
        return 100

    total_jump = 0.0
    for prev, cur in zip(energy_curve, energy_curve[1:]):
        bar_diff = cur.bar - prev.bar
        if bar_diff > 0:
            rate = abs(cur.energy - prev.energy) / bar_diff
            if rate > 10:
                total_jump += rate - 10

    return max(0.0, 100 - total_jump)


def validate_structure(
    structure: MacroStructure,
    min_sections: Optional[int] = None,
    max_sections: Optional[int] = None,
    must_have_drop: bool = False,
    must_have_breakdown: bool = False
) -> ValidationReport:
    issues = []
    count = len(structure.sections)
    types = {s.type for s in structure.sections}

    if min_sections and count < min_sections:
        issues.append(f"Too few sections: {count} < {min_sections}")
    if max_sections and count > max_sections:
        issues.append(f"Too many sections: {count} > {max_sections}")
    if must_have_drop and SectionType.DROP not in types:
        issues.append("Structure must have a drop section")
    if must_have_breakdown and SectionType.BREAKDOWN not in types:
        issues.append("Structure must have a breakdown section")

    return ValidationReport(valid=not issues, issues=issues)
