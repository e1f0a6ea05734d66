"""
Stage 6: macro structure.

Drafts the section layout from an archetype, overlays the production
spec's energy arc and checks the result for abrupt energy changes.
"""

import logging
from dataclasses import replace
from typing import Optional

from ..models import (
    Brief,
    EnergyCurvePoint,
    KeyMoment,
    MacroStructure,
    ProductionSpec,
    SectionType,
    StylePrior,
    ValidationReport,
)
from ..scoring.common import round_half_up
from ..structure import (
    generate_macro_structure,
    score_energy_curve_smoothness,
    suggest_archetype_for_genre,
    validate_structure,
)

logger = logging.getLogger(__name__)

MAX_ENERGY_JUMP = 40
MIN_ENERGY_RANGE = 30
MIN_SMOOTHNESS = 60


def draft_macro_structure(
    brief: Brief,
    spec: ProductionSpec,
    style_prior: StylePrior,
    archetype: Optional[str] = None
) -> MacroStructure:
    """
    Build the macro structure for a brief.

    The archetype is suggested from the first genre when not given. The
    energy curve follows the production spec's energy arc, and key
    moments mark arc points at or above 80.

    Raises:
        ValueError: if the archetype is unknown
    """
    archetype = archetype or suggest_archetype_for_genre(brief.genres[0] if brief.genres else "edm")
    structure = generate_macro_structure(archetype, total_bars=brief.target_duration_bars)

    energy_curve = [
        EnergyCurvePoint(round_half_up(point.position * structure.total_bars), point.energy)
        for point in spec.energy_arc
    ]
    key_moments = [
        KeyMoment(point.bar, "Peak moment" if point.energy >= 90 else "High energy section")
        for point in energy_curve
        if point.energy >= 80
    ]

    logger.info(
        f"Drafted {structure.archetype} structure: {len(structure.sections)} sections, "
        f"{structure.total_bars} bars"
    )
    return replace(structure, energy_curve=energy_curve, key_moments=key_moments)


def validate_energy_curve(structure: MacroStructure) -> ValidationReport:
    """Soft check for energy jumps, dynamic range and peak moments."""
    warnings = []
    suggestions = []

    smoothness = score_energy_curve_smoothness([
        EnergyCurvePoint(s.start_bar, s.energy_level) for s in structure.sections
    ])

    for prev, cur in zip(structure.sections, structure.sections[1:]):
        jump = abs(cur.energy_level - prev.energy_level)
        if jump > MAX_ENERGY_JUMP:
            warnings.append(f"Large energy jump ({jump:g}) between {prev.name} and {cur.name}")
            suggestions.append("Consider adding a transition section or adjusting energy levels")

    warnings += validate_structure(structure).issues

    if not structure.key_moments:
        suggestions.append("No peak moments identified - consider adding a climax section")

    levels = [s.energy_level for s in structure.sections]
    if levels and max(levels) - min(levels) < MIN_ENERGY_RANGE:
        warnings.append("Limited energy dynamic range may result in flat arrangement")
        suggestions.append("Add more contrast between sections")

    issues = []
    if smoothness < MIN_SMOOTHNESS:
        issues.append(f"Energy curve smoothness {smoothness:g} below {MIN_SMOOTHNESS}")

    for warning in warnings:
        logger.warning(f"Energy curve: {warning}")

    return ValidationReport(
        valid=not warnings and not issues,
        issues=issues,
        warnings=warnings,
        suggestions=suggestions,
    )


def adjust_section(
    structure: MacroStructure,
    section_id: str,
    length_bars: Optional[int] = None,
    energy_level: Optional[float] = None,
    name: Optional[str] = None
) -> MacroStructure:
    """
    Return a new structure with one section changed.

    Start bars, total length and the energy curve are recomputed so the
    sections stay contiguous.

    Raises:
        ValueError: if the section id is unknown or the length is not positive
    """
    if structure.get_section(section_id) is None:
        raise ValueError(f"Unknown section: {section_id}")
    if length_bars is not None and length_bars <= 0:
        raise ValueError(f"Invalid section length: {length_bars}")

    sections = []
    current_bar = 0
    for section in structure.sections:
        if section.id == section_id:
            section = replace(
                section,
                length_bars=length_bars if length_bars is not None else section.length_bars,
                energy_level=energy_level if energy_level is not None else section.energy_level,
                name=name if name is not None else section.name,
            )
        sections.append(replace(section, start_bar=current_bar))
        current_bar += sections[-1].length_bars

    return MacroStructure(
        archetype=structure.archetype,
        total_bars=current_bar,
        sections=sections,
        energy_curve=[EnergyCurvePoint(s.start_bar, s.energy_level) for s in sections],
        key_moments=list(structure.key_moments),
    )


def check_structure_constraints(structure: MacroStructure, spec: ProductionSpec) -> ValidationReport:
    """Structure check against the production spec's section count limits."""
    constraints = spec.structural_constraints
    report = validate_structure(
        structure,
        min_sections=constraints.min_sections,
        max_sections=constraints.max_sections,
    )
    sections = structure.sections
    if constraints.require_intro and (not sections or sections[0].type != SectionType.INTRO):
        report.issues.append("Structure must open with an intro")
    if constraints.require_outro and (not sections or sections[-1].type != SectionType.OUTRO):
        report.issues.append("Structure must close with an outro")
    report.valid = not report.issues

    for issue in report.issues:
        logger.warning(f"Structure: {issue}")
    return report
