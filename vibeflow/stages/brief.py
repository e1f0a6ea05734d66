"""
Stage 1: brief ingestion and intent lock.

Turns a creative brief into a ProductionSpec:
- Tempo range widened by every matched genre
- Energy arc chosen from mood keywords
- Instrumentation hints and mix aesthetic
"""

import logging
from dataclasses import dataclass
from typing import Optional

from ..models import Brief, EnergyPoint, ProductionSpec, StructuralConstraints, TempoRange

logger = logging.getLogger(__name__)


# Tempo ranges used when deriving a production spec (BPM)
SPEC_TEMPO_RANGES = {
    "techno": (125, 145),
    "house": (118, 135),
    "trance": (130, 150),
    "dnb": (160, 180),
    "dubstep": (138, 145),
    "hiphop": (70, 100),
    "trap": (130, 170),
    "ambient": (60, 100),
    "pop": (100, 130),
    "downtempo": (70, 110),
}
DEFAULT_SPEC_TEMPO = (120, 130)

ENERGY_ARCS = {
    "build": [(0, 30), (0.25, 50), (0.5, 70), (0.75, 90), (1, 100)],
    "chill": [(0, 40), (0.5, 50), (1, 40)],
    "default": [(0, 40), (0.25, 60), (0.5, 80), (0.75, 100), (1, 70)],
}


@dataclass
class LockedIntent:
    """A brief and production spec confirmed (or not) by the user."""
    brief: Brief
    spec: ProductionSpec
    locked: bool
    summary: str


def parse_brief(
    genres: list[str],
    mood: Optional[list[str]] = None,
    references: Optional[list[str]] = None,
    use_case: Optional[str] = None,
    target_duration_bars: Optional[int] = None,
    must: Optional[list[str]] = None,
    must_not: Optional[list[str]] = None
) -> Brief:
    """Build a Brief, filling defaults (use case "general", 128 bars)."""
    return Brief(
        genres=list(genres),
        mood=list(mood or []),
        references=list(references or []),
        use_case=use_case or "general",
        target_duration_bars=target_duration_bars or 128,
        must=list(must or []),
        must_not=list(must_not or []),
    )


def _mood_has(moods: list[str], *keywords: str) -> bool:
    return any(k in m for m in moods for k in keywords)


def derive_tempo_range(genres: list[str]) -> TempoRange:
    """Union of the default range with every genre range mentioned."""
    min_tempo, max_tempo = DEFAULT_SPEC_TEMPO
    for genre in genres:
        lower = genre.lower()
        for key, (low, high) in SPEC_TEMPO_RANGES.items():
            if key in lower:
                min_tempo = min(min_tempo, low)
                max_tempo = max(max_tempo, high)
    return TempoRange(min_tempo, max_tempo)


def derive_energy_arc(moods: list[str]) -> list[EnergyPoint]:
    if _mood_has(moods, "build", "crescendo"):
        arc = ENERGY_ARCS["build"]
    elif _mood_has(moods, "chill", "ambient"):
        arc = ENERGY_ARCS["chill"]
    else:
        arc = ENERGY_ARCS["default"]
    return [EnergyPoint(position, energy) for position, energy in arc]


def derive_instrumentation(genres: list[str]) -> list[str]:
    instrumentation = []
    for genre in genres:
        lower = genre.lower()
        if "techno" in lower or "house" in lower:
            instrumentation += ["kick", "snare", "hi-hat", "bass", "synth lead", "pad"]
        elif "ambient" in lower:
            instrumentation += ["pad", "texture", "field recording", "reverb send"]
        elif "hiphop" in lower or "trap" in lower:
            instrumentation += ["808 kick", "snare", "hi-hat", "bass", "sample chops"]
        else:
            instrumentation += ["drums", "bass", "lead", "pad"]
    # Unique, first occurrence order
    return list(dict.fromkeys(instrumentation))


def derive_mix_aesthetic(moods: list[str]) -> str:
    if _mood_has(moods, "dark", "heavy"):
        return "bass-heavy, dark"
    if _mood_has(moods, "bright", "airy"):
        return "bright, spacious"
    if _mood_has(moods, "warm", "analog"):
        return "warm, analog"
    return "balanced"


def derive_production_spec(brief: Brief) -> ProductionSpec:
    """Deterministically derive technical targets from a brief."""
    moods = [m.lower() for m in brief.mood]
    return ProductionSpec(
        tempo_range=derive_tempo_range(brief.genres),
        energy_arc=derive_energy_arc(moods),
        instrumentation=derive_instrumentation(brief.genres),
        mix_aesthetic=derive_mix_aesthetic(moods),
        structural_constraints=StructuralConstraints(),
    )


def ingest_brief(brief: Brief) -> tuple[Brief, ProductionSpec]:
    spec = derive_production_spec(brief)
    logger.info(
        f"Ingested brief: genres={', '.join(brief.genres)}, "
        f"tempo {spec.tempo_range.min_bpm:g}-{spec.tempo_range.max_bpm:g} BPM, "
        f"mix '{spec.mix_aesthetic}'"
    )
    return brief, spec


def lock_intent(brief: Brief, spec: ProductionSpec, confirmed: bool) -> LockedIntent:
    if not confirmed:
        return LockedIntent(brief, spec, False, "Intent not confirmed. Please review and confirm the brief.")

    summary = "\n".join([
        "Locked production intent:",
        f"- Genres: {', '.join(brief.genres)}",
        f"- Mood: {', '.join(brief.mood)}",
        f"- Tempo: {spec.tempo_range.min_bpm:g}-{spec.tempo_range.max_bpm:g} BPM",
        f"- Duration: {brief.target_duration_bars} bars",
        f"- Mix: {spec.mix_aesthetic}",
    ])
    return LockedIntent(brief, spec, True, summary)
