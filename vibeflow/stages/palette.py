"""
Stage 4: sound palette.

Assembles a bounded set of sound-design elements that covers the
frequency spectrum, with role coverage counts and a forbidden list.
"""

import logging
from typing import Optional

from ..models import (
    FrequencyRange,
    PaletteEntry,
    ProductionSpec,
    SoundPalette,
    SoundRole,
    StylePrior,
    ValidationReport,
)

logger = logging.getLogger(__name__)


# Frequency band per role (Hz)
PALETTE_BANDS = {
    SoundRole.SUB: FrequencyRange(20, 80),
    SoundRole.BASS: FrequencyRange(60, 250),
    SoundRole.LOW_MID: FrequencyRange(200, 500),
    SoundRole.MID: FrequencyRange(400, 2000),
    SoundRole.HIGH_MID: FrequencyRange(2000, 6000),
    SoundRole.PRESENCE: FrequencyRange(4000, 8000),
    SoundRole.AIR: FrequencyRange(8000, 20000),
}

ESSENTIAL_ROLES = (SoundRole.SUB, SoundRole.BASS, SoundRole.MID, SoundRole.HIGH_MID)
MASKING_THRESHOLD = 3


def _entry(
    entry_id: str,
    name: str,
    role: SoundRole,
    entry_type: str,
    characteristics: list[str],
    hints: list[str],
    frequency_range: Optional[FrequencyRange] = None
) -> PaletteEntry:
    return PaletteEntry(
        id=entry_id,
        name=name,
        role=role,
        type=entry_type,
        frequency_range=frequency_range or PALETTE_BANDS[role],
        characteristics=characteristics,
        processing_hints=hints,
    )


def _bass_entry(keywords: str) -> PaletteEntry:
    if "house" in keywords or "techno" in keywords:
        return _entry("bass-1", "Synth Bass", SoundRole.BASS, "synth",
                      ["warm", "subby"], ["saturation", "side-chain compression"])
    if "dnb" in keywords or "dubstep" in keywords:
        return _entry("bass-1", "Reese Bass", SoundRole.BASS, "synth",
                      ["growling", "distorted"], ["heavy saturation", "band splitting"],
                      FrequencyRange(40, 500))
    return _entry("bass-1", "Bass", SoundRole.BASS, "synth",
                  ["solid", "foundational"], ["compression", "EQ"])


def generate_palette_entries(style_prior: StylePrior, spec: ProductionSpec) -> list[PaletteEntry]:
    """Core drum/bass/lead/pad/air elements plus genre-specific additions."""
    keywords = style_prior.guardrails.energy_profile.lower()

    entries = [
        _entry("kick-1", "Kick Drum", SoundRole.SUB, "sample", ["punchy", "tight"], ["EQ low end", "compression"]),
        _entry("snare-1", "Snare/Clap", SoundRole.MID, "sample", ["snappy", "present"], ["transient shaping", "reverb send"]),
        _entry("hihat-1", "Hi-Hat", SoundRole.HIGH_MID, "sample", ["crisp", "bright"], ["high-pass filter"]),
        _bass_entry(keywords),
        _entry("lead-1", "Lead Synth", SoundRole.PRESENCE, "synth", ["bright", "cutting"], ["delay", "chorus"]),
        _entry("pad-1", "Pad", SoundRole.LOW_MID, "synth", ["warm", "evolving"], ["reverb", "slow attack"]),
    ]

    if "trance" in keywords:
        entries.append(_entry("supersaw-1", "Supersaw", SoundRole.MID, "synth",
                              ["layered", "bright", "wide"], ["stereo widening", "reverb"],
                              FrequencyRange(300, 8000)))
    if "ambient" in keywords:
        entries.append(_entry("texture-1", "Ambient Texture", SoundRole.AIR, "sample",
                              ["ethereal", "evolving"], ["heavy reverb", "granular processing"]))

    entries.append(_entry("air-1", "Shimmer/Air", SoundRole.AIR, "synth", ["bright", "airy"], ["high-pass", "reverb"]))
    return entries


def calculate_coverage(entries: list[PaletteEntry]) -> dict[str, int]:
    """Entry count per frequency role (every role present, zero if uncovered)."""
    coverage = {role.value: 0 for role in SoundRole}
    for entry in entries:
        coverage[entry.role.value] += 1
    return coverage


def validate_palette_coverage(palette: SoundPalette) -> ValidationReport:
    coverage = calculate_coverage(palette.entries)
    issues = []
    warnings = []
    suggestions = []

    for role in ESSENTIAL_ROLES:
        if not coverage[role.value]:
            issues.append(f"Missing essential role: {role.value}")
            suggestions.append(f"Add an element covering the {role.value} range")

    if not coverage[SoundRole.AIR.value]:
        warnings.append("No air/shimmer elements - mix may lack sparkle")
    if not coverage[SoundRole.LOW_MID.value]:
        warnings.append("No low-mid elements - may lack warmth")

    for role, count in coverage.items():
        if count > MASKING_THRESHOLD:
            warnings.append(f"{count} elements in {role} range - potential frequency masking")

    if len(palette.entries) > palette.max_elements:
        warnings.append(f"Palette has {len(palette.entries)} elements, exceeding max of {palette.max_elements}")

    return ValidationReport(valid=not issues, issues=issues, warnings=warnings, suggestions=suggestions)


def assemble_sound_palette(style_prior: StylePrior, spec: ProductionSpec, max_elements: int = 12) -> SoundPalette:
    entries = generate_palette_entries(style_prior, spec)[:max_elements]
    palette = SoundPalette(
        max_elements=max_elements,
        entries=entries,
        coverage_by_role=calculate_coverage(entries),
        forbidden=list(style_prior.guardrails.avoid_cliches),
    )

    report = validate_palette_coverage(palette)
    logger.info(f"Assembled palette with {len(entries)} elements")
    for warning in report.warnings + report.issues:
        logger.warning(f"Palette: {warning}")
    return palette
