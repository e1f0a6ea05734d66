"""
Groove scoring.

Scores a groove candidate on three axes:
- Danceability: kick anchoring, snare backbeat, hat interest, syncopation, tempo
- Pocket: humanization, swing and kick/snare spacing
- Genre fit: tempo, swing and meter against the style prior

overall = 0.4 * danceability + 0.35 * pocket + 0.25 * genre_fit
"""

import numpy as np

from ..models import GrooveBreakdown, GrooveCandidate, GrooveScore, RankedGroove, StylePrior
from .common import clamp, round_half_up


STRONG_BEATS = (0, 4, 8, 12)


def analyze_kick_placement(kick_pattern: list[int]) -> float:
    """Reward downbeat anchoring and even spacing; empty pattern scores 0."""
    if not kick_pattern:
        return 0

    score = 0.0
    if 0 in kick_pattern:
        score += 40
    if 8 in kick_pattern:  # Beat 3
        score += 20

    spacings = np.diff(kick_pattern)
    if spacings.size > 0:
        variance = float(np.mean(np.abs(spacings - spacings.mean())))
        score += max(0.0, 30 - variance * 2)

    density = len(kick_pattern) / 16
    if density < 0.1:
        score -= 20
    if density > 0.5:
        score -= 15

    return clamp(score + 10)


def analyze_snare_backbeat(snare_pattern: list[int], meter: str = "4/4") -> float:
    """Reward hits on beats 2 and 4 (steps 4 and 12); empty pattern scores 0."""
    if not snare_pattern:
        return 0

    score = 0.0
    if meter == "4/4":
        has_beat_2 = 4 in snare_pattern
        has_beat_4 = 12 in snare_pattern
        if has_beat_2:
            score += 40
        if has_beat_4:
            score += 40
        if has_beat_2 and has_beat_4:
            score += 10
    else:
        weak = [p for p in snare_pattern if p % 16 not in (0, 8)]
        score += len(weak) / len(snare_pattern) * 80

    if 0 in snare_pattern:
        score -= 20

    return clamp(score)


def analyze_hat_groove(hat_pattern: list[int]) -> float:
    """Reward moderate density and offbeat variety; empty pattern is a neutral 30."""
    if not hat_pattern:
        return 30

    score = 50.0
    density = len(hat_pattern) / 16
    if 0.25 <= density <= 0.75:
        score += 20
    if density > 0.9:
        score -= 15
    if density < 0.1:
        score -= 10

    offbeat_ratio = len([p for p in hat_pattern if p % 2 == 1]) / len(hat_pattern)
    if 0.3 <= offbeat_ratio <= 0.7:
        score += 15

    if len(set(np.diff(hat_pattern).tolist())) >= 2:
        score += 15

    return clamp(score)


def measure_syncopation(pattern: list[int]) -> int:
    """Percent of hits off the quarter-note grid (0 = on the beat)."""
    if not pattern:
        return 0
    offbeat = len([p for p in pattern if p % 16 not in STRONG_BEATS])
    return round_half_up(offbeat / len(pattern) * 100)


def score_danceability(groove: GrooveCandidate) -> float:
    kick = analyze_kick_placement(groove.kick_pattern)
    snare = analyze_snare_backbeat(groove.snare_pattern, groove.meter)
    hats = analyze_hat_groove(groove.hat_pattern)

    avg_syncopation = (measure_syncopation(groove.kick_pattern) + measure_syncopation(groove.snare_pattern)) / 2
    syncopation_bonus = 0
    if 20 <= avg_syncopation <= 60:
        syncopation_bonus = 10
    elif avg_syncopation < 10 or avg_syncopation > 80:
        syncopation_bonus = -10

    tempo_bonus = 0
    if 115 <= groove.tempo <= 135:
        tempo_bonus = 10
    elif groove.tempo < 90 or groove.tempo > 160:
        tempo_bonus = -10

    raw = kick * 0.4 + snare * 0.35 + hats * 0.25
    return clamp(raw + syncopation_bonus + tempo_bonus)


def score_pocket(groove: GrooveCandidate) -> float:
    score = 70.0
    timing_jitter = groove.humanization.timing_jitter
    velocity_jitter = groove.humanization.velocity_jitter

    if 3 <= timing_jitter <= 15:
        score += 15
    elif timing_jitter > 25:
        score -= 15

    if 5 <= velocity_jitter <= 20:
        score += 10
    if 10 <= groove.swing_amount <= 70:
        score += 10
    if 5 <= groove.velocity_variance <= 20:
        score += 5

    if any(2 <= abs(k - s) % 16 <= 6 for k in groove.kick_pattern for s in groove.snare_pattern):
        score += 10

    return clamp(score)


def score_genre_fit(groove: GrooveCandidate, style_prior: StylePrior) -> float:
    score = 50.0

    typical = style_prior.bpm_signature.typical
    variance = style_prior.bpm_signature.variance
    tempo_diff = abs(groove.tempo - typical)
    if tempo_diff <= variance:
        score += 25
    elif tempo_diff <= variance * 2:
        score += 10
    else:
        score -= 15

    swing_diff = abs(groove.swing_amount - style_prior.swing_profile.amount)
    if swing_diff <= 15:
        score += 15
    elif swing_diff <= 30:
        score += 5
    else:
        score -= 10

    if groove.meter == "4/4":
        score += 10

    return clamp(score)


def calculate_groove_breakdown(groove: GrooveCandidate) -> GrooveBreakdown:
    return GrooveBreakdown(
        kick_placement=analyze_kick_placement(groove.kick_pattern),
        snare_backbeat=analyze_snare_backbeat(groove.snare_pattern, groove.meter),
        hat_groove=analyze_hat_groove(groove.hat_pattern),
        syncopation=measure_syncopation(groove.kick_pattern + groove.snare_pattern + groove.hat_pattern),
    )


def calculate_groove_score(groove: GrooveCandidate, style_prior: StylePrior) -> GrooveScore:
    danceability = score_danceability(groove)
    pocket = score_pocket(groove)
    genre_fit = score_genre_fit(groove, style_prior)

    return GrooveScore(
        candidate_id=groove.id,
        danceability=danceability,
        pocket=pocket,
        genre_fit=genre_fit,
        overall=round_half_up(danceability * 0.4 + pocket * 0.35 + genre_fit * 0.25),
        breakdown=calculate_groove_breakdown(groove),
    )


def rank_grooves(grooves: list[GrooveCandidate], style_prior: StylePrior) -> list[RankedGroove]:
    """Score and sort by overall, highest first; ties keep input order."""
    scored = [RankedGroove(groove, calculate_groove_score(groove, style_prior)) for groove in grooves]
    return sorted(scored, key=lambda r: -r.score.overall)
