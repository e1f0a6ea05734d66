"""
Input boundary validation.

Turns loosely typed dictionaries (CLI JSON, tool-call payloads) into
model objects. Bad input yields a ValidationResult with errors instead
of an exception.
"""

from dataclasses import dataclass, field
from typing import Any, Generic, Optional, TypeVar

from .models import Brief, GrooveCandidate, Humanization, Note
from .rhythm import parse_time_signature

T = TypeVar("T")


@dataclass
class ValidationResult(Generic[T]):
    ok: bool
    value: Optional[T] = None
    errors: list[str] = field(default_factory=list)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _string_list(data: dict, key: str, errors: list[str], required: bool = False) -> list[str]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        errors.append(f"{key} must be a list of strings")
        return []
    if required and not value:
        errors.append(f"{key} must not be empty")
    return list(value)


def _step_list(data: dict, key: str, steps: int, errors: list[str]) -> list[int]:
    value = data.get(key, [])
    if not isinstance(value, list) or not all(_is_int(v) for v in value):
        errors.append(f"{key} must be a list of integers")
        return []
    if any(v < 0 or v >= steps for v in value):
        errors.append(f"{key} steps must be in [0, {steps})")
    return list(value)


def validate_brief(data: Any) -> ValidationResult[Brief]:
    """Build a Brief from a dict; genres are required, everything else defaults."""
    if not isinstance(data, dict):
        return ValidationResult(False, errors=["brief must be an object"])

    errors = []
    genres = _string_list(data, "genres", errors, required=True)
    mood = _string_list(data, "mood", errors)
    references = _string_list(data, "references", errors)
    must = _string_list(data, "must", errors)
    must_not = _string_list(data, "must_not", errors)

    use_case = data.get("use_case", "general")
    if not isinstance(use_case, str):
        errors.append("use_case must be a string")

    bars = data.get("target_duration_bars", 128)
    if not _is_int(bars) or bars <= 0:
        errors.append("target_duration_bars must be a positive integer")

    if errors:
        return ValidationResult(False, errors=errors)

    return ValidationResult(True, Brief(
        genres=genres,
        mood=mood,
        references=references,
        use_case=use_case,
        target_duration_bars=bars,
        must=must,
        must_not=must_not,
    ))


def validate_note(data: Any) -> ValidationResult[Note]:
    if not isinstance(data, dict):
        return ValidationResult(False, errors=["note must be an object"])

    errors = []
    pitch = data.get("pitch")
    velocity = data.get("velocity", 100)
    time = data.get("time", 0)
    duration = data.get("duration")

    if not _is_int(pitch) or not 0 <= pitch <= 127:
        errors.append("pitch must be an integer in [0, 127]")
    if not _is_int(velocity) or not 0 <= velocity <= 127:
        errors.append("velocity must be an integer in [0, 127]")
    if not _is_number(time) or time < 0:
        errors.append("time must be a non-negative number")
    if not _is_number(duration) or duration <= 0:
        errors.append("duration must be a positive number")

    if errors:
        return ValidationResult(False, errors=errors)
    return ValidationResult(True, Note(pitch, float(time), float(duration), velocity))


def validate_groove(data: Any) -> ValidationResult[GrooveCandidate]:
    """Build a GrooveCandidate; step indices must fit the meter's 16th-note grid."""
    if not isinstance(data, dict):
        return ValidationResult(False, errors=["groove must be an object"])

    errors = []
    tempo = data.get("tempo")
    if not _is_number(tempo) or tempo <= 0:
        errors.append("tempo must be a positive number")

    meter = data.get("meter", "4/4")
    steps = 16
    try:
        sig = parse_time_signature(meter)
        steps = max(1, int(sig.numerator * 16 / sig.denominator))
    except (ValueError, AttributeError):
        errors.append(f"Invalid meter: {meter}")

    swing = data.get("swing_amount", 0)
    if not _is_number(swing) or not 0 <= swing <= 100:
        errors.append("swing_amount must be a number in [0, 100]")

    velocity_variance = data.get("velocity_variance", 0)
    if not _is_number(velocity_variance) or velocity_variance < 0:
        errors.append("velocity_variance must be a non-negative number")

    humanization = data.get("humanization", {})
    if not isinstance(humanization, dict) or not all(
        k in ("timing_jitter", "velocity_jitter") and _is_number(v) for k, v in humanization.items()
    ):
        errors.append("humanization must map timing_jitter/velocity_jitter to numbers")
        humanization = {}

    kick = _step_list(data, "kick_pattern", steps, errors)
    snare = _step_list(data, "snare_pattern", steps, errors)
    hat = _step_list(data, "hat_pattern", steps, errors)

    if errors:
        return ValidationResult(False, errors=errors)

    return ValidationResult(True, GrooveCandidate(
        id=str(data.get("id", "groove-input")),
        tempo=float(tempo),
        meter=meter,
        swing_amount=swing,
        kick_pattern=kick,
        snare_pattern=snare,
        hat_pattern=hat,
        velocity_variance=velocity_variance,
        humanization=Humanization(**humanization),
        description=str(data.get("description", "")),
    ))
