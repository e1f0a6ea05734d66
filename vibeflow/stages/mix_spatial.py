"""
Stage 9: mix and spatial design.

Builds the mix plan handed to the DAW collaborator:
- Leveling plan (target dB and pan per track)
- EQ / compression / saturation suggestions per stem group
- Spatial scene (room, plate and hall reverbs, delays, width)
- Automation passes and the master chain
"""

import logging
import math
from copy import deepcopy
from typing import Optional

from ..models import (
    AutomationPass,
    Compression,
    DepthLayer,
    Delay,
    EqBand,
    EqCompSuggestion,
    Keyframe,
    LevelingPlan,
    MasterChainDevice,
    MixDesign,
    MixScore,
    Saturation,
    SectionComposition,
    SoundPalette,
    SoundRole,
    SpatialScene,
    StemGroup,
    TrackLevel,
    VoiceRole,
    WidthProcessing,
)
from ..scoring.mix import calculate_mix_score

logger = logging.getLogger(__name__)

# Voice role -> (stem group, target dB, pan)
ROLE_LEVELS = {
    VoiceRole.BASS: (StemGroup.BASS, -8, 0),
    VoiceRole.RHYTHM: (StemGroup.DRUMS, -6, 0),
    VoiceRole.TOPLINE: (StemGroup.SYNTHS, -10, 0),
    VoiceRole.HARMONY: (StemGroup.PADS, -14, -20),
    VoiceRole.PAD: (StemGroup.PADS, -16, 20),
    VoiceRole.FX: (StemGroup.FX, -18, 30),
}
DEFAULT_LEVEL = (StemGroup.SYNTHS, -12, 0)

PALETTE_ROLE_GROUPS = {
    SoundRole.SUB: StemGroup.BASS,
    SoundRole.BASS: StemGroup.BASS,
    SoundRole.LOW_MID: StemGroup.PADS,
    SoundRole.MID: StemGroup.PADS,
}

EQ_COMP_PRESETS = {
    StemGroup.DRUMS: EqCompSuggestion(
        stem_group=StemGroup.DRUMS,
        eq=[
            EqBand(60, 2, 1.5, "peak"),
            EqBand(200, -2, 2, "peak"),
            EqBand(3000, 1, 1, "shelf"),
        ],
        compression=Compression(threshold=-12, ratio=4, attack=10, release=100),
        saturation=Saturation(drive=10, mix=30),
    ),
    StemGroup.BASS: EqCompSuggestion(
        stem_group=StemGroup.BASS,
        eq=[
            EqBand(30, -6, 0.7, "highpass"),
            EqBand(80, 3, 1.5, "peak"),
            EqBand(800, -2, 2, "peak"),
        ],
        compression=Compression(threshold=-10, ratio=3, attack=20, release=150),
        saturation=Saturation(drive=20, mix=25),
    ),
    StemGroup.SYNTHS: EqCompSuggestion(
        stem_group=StemGroup.SYNTHS,
        eq=[
            EqBand(100, -6, 0.7, "highpass"),
            EqBand(2500, 2, 1.5, "peak"),
            EqBand(10000, 1, 0.7, "shelf"),
        ],
        compression=Compression(threshold=-15, ratio=2.5, attack=15, release=120),
    ),
    StemGroup.PADS: EqCompSuggestion(
        stem_group=StemGroup.PADS,
        eq=[
            EqBand(150, -6, 0.7, "highpass"),
            EqBand(400, -2, 2, "peak"),
            EqBand(8000, 2, 0.7, "shelf"),
        ],
        compression=Compression(threshold=-20, ratio=2, attack=30, release=200),
    ),
    StemGroup.FX: EqCompSuggestion(
        stem_group=StemGroup.FX,
        eq=[
            EqBand(200, -6, 0.7, "highpass"),
            EqBand(5000, 2, 1, "peak"),
        ],
        compression=Compression(threshold=-18, ratio=2, attack=5, release=80),
    ),
}

SPATIAL_STYLES = ("intimate", "spacious", "epic")

# Reverb decay in seconds per spatial style
ROOM_DECAY = {"intimate": 0.4, "spacious": 0.8, "epic": 0.8}
PLATE_DECAY = {"intimate": 1.2, "spacious": 1.2, "epic": 2}
HALL_DECAY = {"intimate": 1.5, "spacious": 2.5, "epic": 4}

# (position fraction, filter cutoff)
FILTER_SWEEP_SHAPE = [(0, 0.3), (0.25, 0.6), (0.5, 1.0), (0.75, 0.8), (1, 0.5)]
# (position fraction, volume)
DROP_IMPACT_SHAPE = [(0, 0.8), (0.45, 0.0), (0.5, 1.0)]


def create_leveling_plan(compositions: list[SectionComposition], palette: Optional[SoundPalette] = None) -> LevelingPlan:
    """
    Target level and pan for every distinct track.

    Voice tracks are levelled by role. Palette entries whose role is not
    named by any track get a track of their own at -12 dB.
    """
    tracks = []
    seen = set()

    for composition in compositions:
        for voice in composition.voices:
            if voice.track_name in seen:
                continue
            seen.add(voice.track_name)
            group, target_db, pan = ROLE_LEVELS.get(voice.role, DEFAULT_LEVEL)
            tracks.append(TrackLevel(voice.track_name, group, target_db, pan))

    if palette is not None:
        for entry in palette.entries:
            role = entry.role.value.lower()
            if not any(role in t.track_name.lower() for t in tracks):
                group = PALETTE_ROLE_GROUPS.get(entry.role, StemGroup.SYNTHS)
                tracks.append(TrackLevel(entry.name, group, -12, 0))

    return LevelingPlan(tracks=tracks)


def suggest_eq_comp(stem_groups: Optional[list[StemGroup]] = None) -> list[EqCompSuggestion]:
    """EQ and dynamics presets for the given stem groups (all presets by default)."""
    groups = stem_groups if stem_groups is not None else list(EQ_COMP_PRESETS)
    return [deepcopy(EQ_COMP_PRESETS[g]) for g in groups if g in EQ_COMP_PRESETS]


def _tracks_in(leveling: LevelingPlan, group: StemGroup) -> list[str]:
    return [t.track_name for t in leveling.tracks if t.stem_group == group]


def design_spatial_scene(leveling: LevelingPlan, style: str = "spacious") -> SpatialScene:
    """
    Three-layer reverb depth, synced delays and mid-side width on pads.

    Raises:
        ValueError: if the style is not intimate, spacious or epic
    """
    if style not in SPATIAL_STYLES:
        raise ValueError(f"Unknown spatial style: {style}")

    drums = _tracks_in(leveling, StemGroup.DRUMS)
    synths = _tracks_in(leveling, StemGroup.SYNTHS)
    pads = _tracks_in(leveling, StemGroup.PADS)

    depth_layers = [
        DepthLayer("Room", "room", ROOM_DECAY[style], 5, 15, drums, "tight"),
        DepthLayer("Plate", "plate", PLATE_DECAY[style], 20, 25, synths, "smooth"),
        DepthLayer("Hall", "hall", HALL_DECAY[style], 40, 30, pads, "wide"),
    ]
    delays = [
        Delay("Ping Pong", "ping-pong", "1/8", 35, list(synths)),
        Delay("Dotted", "dotted", "1/4d", 25, []),
    ]
    width = [WidthProcessing(name, "mid-side", 60) for name in pads]

    return SpatialScene(depth_layers=depth_layers, delays=delays, width_processing=width)


def _keyframes(shape: list[tuple[float, float]], total_bars: int) -> list[Keyframe]:
    return [Keyframe(math.floor(total_bars * position), value) for position, value in shape]


def plan_automation(leveling: LevelingPlan, total_bars: int) -> list[AutomationPass]:
    """Filter sweeps on synth tracks and a pre-drop volume dip on drum tracks."""
    passes = [
        AutomationPass("filter_cutoff", name, _keyframes(FILTER_SWEEP_SHAPE, total_bars), "filter_sweep")
        for name in _tracks_in(leveling, StemGroup.SYNTHS)
    ]
    passes += [
        AutomationPass("volume", name, _keyframes(DROP_IMPACT_SHAPE, total_bars), "drop_impact")
        for name in _tracks_in(leveling, StemGroup.DRUMS)
    ]
    return passes


def build_master_chain() -> list[MasterChainDevice]:
    return [
        MasterChainDevice(1, "EQ Eight", "tonal shaping", {}),
        MasterChainDevice(2, "Glue Compressor", "glue", {"threshold": -10, "ratio": 2}),
        MasterChainDevice(3, "Saturator", "warmth", {"drive": 5}),
        MasterChainDevice(4, "Limiter", "ceiling", {"ceiling": -0.3}),
    ]


def assemble_mix_design(
    compositions: list[SectionComposition],
    palette: Optional[SoundPalette],
    total_bars: int,
    spatial_style: str = "spacious"
) -> tuple[MixDesign, MixScore]:
    """
    Assemble and score the complete mix design.

    Returns:
        (MixDesign, MixScore); the balance component is palette-aware
        when a palette is given
    """
    leveling = create_leveling_plan(compositions, palette)
    design = MixDesign(
        leveling=leveling,
        eq_comp_suggestions=suggest_eq_comp(),
        spatial_scene=design_spatial_scene(leveling, spatial_style),
        automation_passes=plan_automation(leveling, total_bars),
        master_chain=build_master_chain(),
    )
    score = calculate_mix_score(design, palette)

    logger.info(
        f"Mix design: {len(leveling.tracks)} tracks, {len(design.automation_passes)} automation passes, "
        f"score {score.overall}"
    )
    return design, score
