"""
Motif scoring.

Closed-form heuristics over symbolic note data:
- Memorability: contour clarity and repetition balance
- Singability: leap ratio, range and breathing room
- Tension / relief: out-of-scale tones and final-note resolution
- Novelty: interval variety, rhythmic interest and "spicy" intervals
- Genre fit: motif type and complexity against the style prior

overall = 0.25 * memorability + 0.2 * singability + 0.2 * tension_relief
          + 0.15 * novelty + 0.2 * genre_fit
"""

from collections import Counter
from typing import Optional

from ..models import MotifBreakdown, MotifScore, MotifSeed, MotifType, Note, RankedMotif, StylePrior
from ..theory import get_pitch_class, get_scale_pitch_classes
from .common import clamp, round_half_up


SPICY_INTERVALS = {1, 6, 10, 11}  # Minor 2nd, tritone, minor 7th, major 7th
DRUM_GENRES = ("techno", "house", "dnb")
MELODIC_GENRES = ("trance", "pop", "progressive")
MINIMAL_GENRES = ("minimal", "ambient", "techno")


def _by_time(notes: list[Note]) -> list[Note]:
    return sorted(notes, key=lambda n: n.time)


def _pitch_range(notes: list[Note]) -> int:
    if not notes:
        return 0
    pitches = [n.pitch for n in notes]
    return max(pitches) - min(pitches)


def analyze_interval_variety(notes: list[Note]) -> int:
    """Unique non-unison intervals (mod 12) relative to the possible maximum."""
    if len(notes) < 2:
        return 50

    ordered = _by_time(notes)
    intervals = {abs(b.pitch - a.pitch) % 12 for a, b in zip(ordered, ordered[1:])}
    if intervals == {0}:
        return 0

    meaningful = intervals - {0}
    max_unique = min(len(ordered) - 1, 7)
    return round_half_up(len(meaningful) / max_unique * 100)


def analyze_rhythmic_interest(notes: list[Note]) -> float:
    """Duration variety, off-beat placement and note density."""
    if not notes:
        return 0
    if len(notes) == 1:
        return 30

    score = 50.0
    durations = {round(n.duration * 16) / 16 for n in notes}
    if len(durations) >= 2:
        score += 15
    if len(durations) >= 3:
        score += 10

    syncopated = [n for n in notes if n.time % 1 > 0.01]
    if 0.2 <= len(syncopated) / len(notes) <= 0.6:
        score += 15

    span = max(n.time + n.duration for n in notes) - min(n.time for n in notes)
    if span > 0 and 0.5 <= len(notes) / span <= 4:
        score += 10

    return clamp(score)


def analyze_contour(notes: list[Note]) -> float:
    if len(notes) < 3:
        return 50

    pitches = [n.pitch for n in _by_time(notes)]
    diffs = [b - a for a, b in zip(pitches, pitches[1:])]
    ascending = len([d for d in diffs if d > 0])
    descending = len([d for d in diffs if d < 0])
    direction_changes = len([
        1 for prev, cur in zip(diffs, diffs[1:])
        if (cur > 0 and prev < 0) or (cur < 0 and prev > 0)
    ])

    score = 50.0
    total = (ascending + descending) or 1
    if max(ascending, descending) / total >= 0.6:
        score += 20

    max_changes = len(pitches) - 2
    change_ratio = direction_changes / max_changes if max_changes > 0 else 0
    if 0.2 <= change_ratio <= 0.5:
        score += 15

    midpoint = len(pitches) // 2
    first_half, second_half = pitches[:midpoint], pitches[midpoint:]
    first_trend = first_half[-1] - first_half[0] if len(first_half) > 1 else 0
    second_trend = second_half[-1] - second_half[0] if len(second_half) > 1 else 0
    # Arch or valley
    if (first_trend > 2 and second_trend < -2) or (first_trend < -2 and second_trend > 2):
        score += 15

    return clamp(score)


def analyze_repetition_balance(notes: list[Note]) -> float:
    """Some repetition helps memorability; too much or too little does not."""
    if len(notes) < 4:
        return 50

    ordered = _by_time(notes)
    pitch_counts = Counter(n.pitch for n in ordered)
    repeated_pitches = sum(count - 1 for count in pitch_counts.values())

    intervals = [b.pitch - a.pitch for a, b in zip(ordered, ordered[1:])]
    interval_counts = Counter(intervals)
    repeated_intervals = sum(count - 1 for count in interval_counts.values())

    pitch_ratio = repeated_pitches / len(ordered)
    interval_ratio = repeated_intervals / len(intervals) if intervals else 0
    repetition = (pitch_ratio + interval_ratio) / 2

    if 0.2 <= repetition <= 0.5:
        return 90
    if repetition < 0.1:
        return 60
    if repetition > 0.7:
        return 40
    return 50


def score_memorability(motif: MotifSeed) -> float:
    notes = motif.notes
    length_penalty = (len(notes) - 16) * 2 if len(notes) > 16 else 0
    note_range = _pitch_range(notes)
    range_penalty = (note_range - 24) * 1.5 if note_range > 24 else 0

    raw = analyze_contour(notes) * 0.4 + analyze_repetition_balance(notes) * 0.6
    return clamp(raw - length_penalty - range_penalty)


def score_singability(motif: MotifSeed) -> float:
    notes = motif.notes
    if not notes:
        return 0
    if len(notes) == 1:
        return 70

    score = 70.0
    ordered = _by_time(notes)

    large_leaps = 0
    for a, b in zip(ordered, ordered[1:]):
        interval = abs(b.pitch - a.pitch)
        if interval > 7:
            large_leaps += 1
        if interval > 12:
            large_leaps += 1
    score -= large_leaps / (len(ordered) - 1) * 40

    note_range = _pitch_range(notes)
    if note_range <= 12:
        score += 15
    elif note_range <= 19:
        score += 5
    else:
        score -= 15

    total_duration = max(n.time + n.duration for n in notes)
    avg_rest = (total_duration - sum(n.duration for n in notes)) / len(notes)
    if avg_rest >= 0.25:
        score += 10

    return clamp(score)


def score_tension_relief(motif: MotifSeed, key: Optional[str] = None) -> float:
    """Out-of-scale tension that resolves; unknown keys or scales fall back to C major."""
    notes = motif.notes
    if len(notes) < 3:
        return 50

    try:
        pitch_classes = get_scale_pitch_classes(key or motif.key or "C", motif.scale or "major")
    except ValueError:
        pitch_classes = get_scale_pitch_classes("C", "major")

    ordered = _by_time(notes)
    non_scale = len([n for n in ordered if get_pitch_class(n.pitch) not in pitch_classes])

    score = 50.0
    tension_ratio = non_scale / len(ordered)
    if 0.1 <= tension_ratio <= 0.3:
        score += 25
    elif tension_ratio > 0.5:
        score -= 15

    last_pc = get_pitch_class(ordered[-1].pitch)
    if last_pc in pitch_classes:
        score += 15
        # Root or fifth degree
        if last_pc == pitch_classes[0] or (len(pitch_classes) > 4 and last_pc == pitch_classes[4]):
            score += 10

    return clamp(score)


def score_novelty(motif: MotifSeed) -> float:
    score = analyze_interval_variety(motif.notes) * 0.5 + analyze_rhythmic_interest(motif.notes) * 0.5

    ordered = _by_time(motif.notes)
    if len(ordered) > 1:
        spicy = len([
            1 for a, b in zip(ordered, ordered[1:])
            if abs(b.pitch - a.pitch) % 12 in SPICY_INTERVALS
        ])
        if 0.1 <= spicy / (len(ordered) - 1) <= 0.3:
            score += 15

    return clamp(score)


def score_motif_genre_fit(motif: MotifSeed, style_prior: StylePrior) -> float:
    score = 60.0
    keywords = style_prior.guardrails.energy_profile.lower()

    if motif.type == MotifType.RHYTHMIC and any(g in keywords for g in DRUM_GENRES):
        score += 20
    if motif.type == MotifType.MELODIC and any(g in keywords for g in MELODIC_GENRES):
        score += 20

    complexity = (analyze_interval_variety(motif.notes) + analyze_rhythmic_interest(motif.notes)) / 2
    if any(g in keywords for g in MINIMAL_GENRES) and complexity < 50:
        score += 15

    return clamp(score)


def calculate_motif_breakdown(motif: MotifSeed) -> MotifBreakdown:
    return MotifBreakdown(
        interval_variety=analyze_interval_variety(motif.notes),
        rhythmic_interest=analyze_rhythmic_interest(motif.notes),
        contour=analyze_contour(motif.notes),
        repetition_balance=analyze_repetition_balance(motif.notes),
    )


def calculate_motif_score(motif: MotifSeed, style_prior: StylePrior) -> MotifScore:
    memorability = score_memorability(motif)
    singability = score_singability(motif)
    tension_relief = score_tension_relief(motif, motif.key)
    novelty = score_novelty(motif)
    genre_fit = score_motif_genre_fit(motif, style_prior)

    overall = round_half_up(
        memorability * 0.25
        + singability * 0.2
        + tension_relief * 0.2
        + novelty * 0.15
        + genre_fit * 0.2
    )

    return MotifScore(
        motif_id=motif.id,
        memorability=memorability,
        singability=singability,
        tension_relief=tension_relief,
        novelty=novelty,
        genre_fit=genre_fit,
        overall=overall,
        breakdown=calculate_motif_breakdown(motif),
    )


def rank_motifs(motifs: list[MotifSeed], style_prior: StylePrior) -> list[RankedMotif]:
    """Score and sort by overall, highest first; ties keep input order."""
    scored = [RankedMotif(motif, calculate_motif_score(motif, style_prior)) for motif in motifs]
    return sorted(scored, key=lambda r: -r.score.overall)
