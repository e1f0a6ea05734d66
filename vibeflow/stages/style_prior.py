"""
Stage 2: style prior.

Genre and mood conventions that steer every generator: BPM signature,
swing, sound-design traits, arrangement norms and guardrails.
"""

import logging

from ..models import (
    ArrangementNorms,
    BpmSignature,
    Brief,
    Guardrails,
    ProductionSpec,
    StylePrior,
    SwingProfile,
)
from ..scoring.common import round_half_up

logger = logging.getLogger(__name__)


# Checked in order; first match wins. (keywords, swing amount, subdivision)
SWING_PROFILES = [
    (("house", "garage"), 15, "8th"),
    (("hiphop", "hip-hop"), 30, "16th"),
    (("jazz", "soul"), 40, "8th"),
    (("techno", "trance"), 0, "8th"),
]

MOOD_TRAITS = [
    (("dark",), ["low-passed", "distorted", "detuned"]),
    (("bright", "airy"), ["high-passed", "reverberant", "shimmering"]),
    (("aggressive", "heavy"), ["saturated", "compressed", "punchy"]),
    (("ambient", "ethereal"), ["evolving", "padded", "atmospheric"]),
    (("minimal",), ["sparse", "clean", "focused"]),
]

GENRE_TRAITS = [
    ("techno", ["industrial", "mechanical", "hypnotic"]),
    ("house", ["groovy", "warm", "soulful"]),
    ("trance", ["euphoric", "layered", "resonant"]),
]

# genre keyword -> (intro, drop, breakdown, extra transition styles)
ARRANGEMENT_NORMS = [
    ("techno", 32, 64, 32, ["filter sweep", "gradual build"]),
    ("trance", 32, 32, 32, ["epic riser", "reverse crash"]),
    ("house", 16, 32, 16, ["snare roll", "vocal chop"]),
    ("dnb", 16, 32, 16, ["reese bass", "amen break"]),
]

# mood keywords -> energy profile prefix
ENERGY_PROFILES = [
    (("driving",), "driving"),
    (("chill", "ambient"), "ambient"),
    (("dark",), "dark"),
    (("uplifting", "euphoric"), "uplifting"),
]


def _any_contains(values: list[str], keywords: tuple) -> bool:
    return any(k in v for v in values for k in keywords)


def build_swing_profile(genres: list[str]) -> SwingProfile:
    for keywords, amount, subdivision in SWING_PROFILES:
        if _any_contains(genres, keywords):
            return SwingProfile(amount, subdivision)
    return SwingProfile(0, "8th")


def build_sound_design_traits(genres: list[str], moods: list[str]) -> list[str]:
    traits = []
    for keywords, mood_traits in MOOD_TRAITS:
        if _any_contains(moods, keywords):
            traits += mood_traits
    for keyword, genre_traits in GENRE_TRAITS:
        if _any_contains(genres, (keyword,)):
            traits += genre_traits
    return list(dict.fromkeys(traits))


def build_arrangement_norms(genres: list[str]) -> ArrangementNorms:
    transition_styles = ["riser", "drum fill"]
    for keyword, intro, drop, breakdown, extra in ARRANGEMENT_NORMS:
        if _any_contains(genres, (keyword,)):
            return ArrangementNorms(intro, drop, breakdown, transition_styles + extra)
    return ArrangementNorms(16, 32, 16, transition_styles)


def build_guardrails(brief: Brief, moods: list[str]) -> Guardrails:
    """Energy profile text is what generators keyword-match on."""
    lead_genre = brief.genres[0] if brief.genres else ""
    profile = " ".join(brief.genres)
    for keywords, prefix in ENERGY_PROFILES:
        if _any_contains(moods, keywords):
            profile = f"{prefix} {lead_genre}"
            break
    return Guardrails(energy_profile=profile, avoid_cliches=list(brief.must_not))


def build_style_prior(brief: Brief, spec: ProductionSpec) -> StylePrior:
    genres = [g.lower() for g in brief.genres]
    moods = [m.lower() for m in brief.mood]

    tempo = spec.tempo_range
    prior = StylePrior(
        bpm_signature=BpmSignature(
            typical=round_half_up((tempo.min_bpm + tempo.max_bpm) / 2),
            variance=round_half_up((tempo.max_bpm - tempo.min_bpm) / 4),
        ),
        swing_profile=build_swing_profile(genres),
        sound_design_traits=build_sound_design_traits(genres, moods),
        arrangement_norms=build_arrangement_norms(genres),
        guardrails=build_guardrails(brief, moods),
    )

    logger.info(
        f"Style prior: {prior.bpm_signature.typical:g} +/- {prior.bpm_signature.variance:g} BPM, "
        f"swing {prior.swing_profile.amount:g}, profile '{prior.guardrails.energy_profile}'"
    )
    return prior
