"""
Mix design scoring.

overall = 0.3 * balance + 0.2 * stereo + 0.2 * depth + 0.3 * translation

Balance uses palette frequency coverage when a palette is available and
falls back to stem-group level relationships otherwise.
"""

from typing import Optional

import numpy as np

from ..models import FrequencyRange, LevelingPlan, MixDesign, MixScore, SoundPalette, SpatialScene, StemGroup
from .common import clamp, round_half_up


# Frequency bands in Hz
FREQUENCY_BANDS = {
    "sub": FrequencyRange(20, 60),
    "bass": FrequencyRange(60, 200),
    "lowMid": FrequencyRange(200, 500),
    "mid": FrequencyRange(500, 2000),
    "highMid": FrequencyRange(2000, 6000),
    "presence": FrequencyRange(6000, 10000),
    "air": FrequencyRange(10000, 20000),
    "transient": FrequencyRange(2000, 10000),
}

ESSENTIAL_BANDS = ("bass", "lowMid", "mid", "highMid")
LOW_END_GROUPS = (StemGroup.BASS, StemGroup.DRUMS)


def ranges_overlap(a: FrequencyRange, b: FrequencyRange) -> bool:
    return a.low < b.high and b.low < a.high


def covered_bands(palette: SoundPalette) -> set[str]:
    return {
        band
        for entry in palette.entries
        for band, band_range in FREQUENCY_BANDS.items()
        if ranges_overlap(entry.frequency_range, band_range)
    }


def score_frequency_balance(palette: SoundPalette, leveling: LevelingPlan) -> float:
    """Essential band coverage, sub/air extension and level spread."""
    bands = covered_bands(palette)

    essential = len([b for b in ESSENTIAL_BANDS if b in bands])
    score = essential / len(ESSENTIAL_BANDS) * 60
    if "sub" in bands:
        score += 10
    if "air" in bands:
        score += 10

    levels = np.array([t.target_db for t in leveling.tracks], dtype=float)
    if levels.size > 0:
        spread = float(np.mean(np.abs(levels - levels.mean())))
        if 6 <= spread <= 15:
            score += 20
        elif spread < 6:
            score += 10

    return clamp(score)


def _group_average(leveling: LevelingPlan, group: StemGroup) -> Optional[float]:
    levels = [t.target_db for t in leveling.tracks if t.stem_group == group]
    if not levels:
        return None
    return float(np.mean(levels))


def score_leveling_balance(leveling: LevelingPlan) -> float:
    """Balance from stem-group levels alone (no palette)."""
    if not leveling.tracks:
        return 50

    score = 60.0
    groups = {t.stem_group for t in leveling.tracks}
    for group in LOW_END_GROUPS:
        if group in groups:
            score += 10

    drums = _group_average(leveling, StemGroup.DRUMS)
    bass = _group_average(leveling, StemGroup.BASS)
    synths = _group_average(leveling, StemGroup.SYNTHS)

    if drums is not None and bass is not None and abs(drums - bass) <= 6:
        score += 10
    if drums is not None and synths is not None and drums >= synths - 3:
        score += 10

    return clamp(score)


def score_stereo_field(leveling: LevelingPlan) -> float:
    tracks = leveling.tracks
    if not tracks:
        return 50

    score = 60.0
    left = len([t for t in tracks if t.pan < -20])
    right = len([t for t in tracks if t.pan > 20])
    lr_balance = abs(left - right)
    if lr_balance <= 1:
        score += 15
    elif lr_balance <= 2:
        score += 5
    else:
        score -= 10

    if all(abs(t.pan) <= 30 for t in tracks if t.stem_group in LOW_END_GROUPS):
        score += 15
    else:
        score -= 10

    if len({round_half_up(t.pan / 20) * 20 for t in tracks}) >= 3:
        score += 10

    return clamp(score)


def score_depth_layers(spatial_scene: SpatialScene) -> float:
    layers = spatial_scene.depth_layers
    if not layers:
        return 40

    score = 50.0
    if len({layer.reverb_type for layer in layers}) >= 2:
        score += 15

    decays = [layer.decay_time for layer in layers]
    if len(decays) >= 2 and max(decays) - min(decays) >= 1:
        score += 15

    if spatial_scene.delays:
        score += 10
        # Tempo-synced times look like "1/8" or "1/4d"
        if any("/" in d.time for d in spatial_scene.delays):
            score += 5

    if any(layer.predelay >= 20 for layer in layers):
        score += 5

    return clamp(score)


def score_translation(mix_design: MixDesign) -> float:
    """Mono compatibility and playback translation."""
    score = 70.0
    width = mix_design.spatial_scene.width_processing

    if len([w for w in width if w.technique == "haas"]) > 2:
        score -= 15

    critical = {t.track_name for t in mix_design.leveling.tracks if t.stem_group in LOW_END_GROUPS}
    if any(w.track_name in critical and w.amount > 50 for w in width):
        score -= 10

    for suggestion in mix_design.eq_comp_suggestions:
        has_high_pass = any(band.type == "highpass" for band in suggestion.eq)
        if has_high_pass and suggestion.stem_group != StemGroup.BASS:
            score += 2

    if any("limiter" in device.device.lower() for device in mix_design.master_chain):
        score += 10

    return clamp(score)


def score_automation_coverage(mix_design: MixDesign) -> float:
    passes = mix_design.automation_passes
    if not passes:
        return 30

    score = 50.0
    parameters = [a.parameter.lower() for a in passes]
    if any("filter" in p for p in parameters):
        score += 15
    if any("volume" in p or "level" in p for p in parameters):
        score += 10
    if any("send" in p for p in parameters):
        score += 10

    keyframes = sum(len(a.keyframes) for a in passes)
    if keyframes >= 10:
        score += 10
    if keyframes >= 20:
        score += 5

    return clamp(score)


def calculate_mix_score(mix_design: MixDesign, palette: Optional[SoundPalette] = None) -> MixScore:
    if palette is not None:
        balance = score_frequency_balance(palette, mix_design.leveling)
    else:
        balance = score_leveling_balance(mix_design.leveling)
    stereo = score_stereo_field(mix_design.leveling)
    depth = score_depth_layers(mix_design.spatial_scene)
    translation = score_translation(mix_design)

    return MixScore(
        balance=balance,
        stereo=stereo,
        depth=depth,
        translation=translation,
        overall=round_half_up(balance * 0.3 + stereo * 0.2 + depth * 0.2 + translation * 0.3),
    )
