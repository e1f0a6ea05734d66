"""
Pytest configuration and shared fixtures for the arrangement workflow tests.
"""

import random
import sys
from pathlib import Path

import pytest

# Add repo root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from vibeflow.models import (  # noqa: E402
    ArrangementSection,
    Brief,
    BpmSignature,
    Guardrails,
    Note,
    SectionType,
    StylePrior,
    SwingProfile,
)
from vibeflow.stages.brief import derive_production_spec  # noqa: E402
from vibeflow.stages.style_prior import build_style_prior  # noqa: E402


@pytest.fixture
def rng():
    """Seeded random source."""
    return random.Random(42)


@pytest.fixture
def house_brief():
    return Brief(genres=["house"], mood=["uplifting"], target_duration_bars=64)


@pytest.fixture
def house_spec(house_brief):
    return derive_production_spec(house_brief)


@pytest.fixture
def house_prior(house_brief, house_spec):
    return build_style_prior(house_brief, house_spec)


@pytest.fixture
def neutral_prior():
    return StylePrior(
        bpm_signature=BpmSignature(typical=124, variance=5),
        swing_profile=SwingProfile(0, "8th"),
        guardrails=Guardrails(energy_profile="house"),
    )


@pytest.fixture
def c_major_notes():
    """C D E F G A B C quarter notes."""
    pitches = [60, 62, 64, 65, 67, 69, 71, 72]
    return [Note(p, i * 1.0, 1.0, 100) for i, p in enumerate(pitches)]


@pytest.fixture
def drop_section():
    return ArrangementSection(
        id="drop-2",
        type=SectionType.DROP,
        name="Drop",
        start_bar=16,
        length_bars=8,
        energy_level=95,
    )
