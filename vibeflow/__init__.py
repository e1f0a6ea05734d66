"""
Generative arrangement workflow

Nine-stage pipeline from a creative brief to a composed, mix-ready
arrangement:
1. Brief ingestion and style prior
2. Time base (groove), sound palette and motif seeds
3. Macro structure, section composition and variation
4. Mix and spatial design

Plus:
- Closed-form scoring engines for grooves, motifs, compositions and mixes
- Workflow state machine with an append-only revision log
- MIDI export of the finished arrangement
"""

__version__ = "0.1.0"

from .models import (
    Brief,
    MacroStructure,
    MixDesign,
    MotifSeed,
    Note,
    SectionComposition,
    Stage,
    WorkflowState,
)
from .pipeline import (
    PipelineConfig,
    PipelineResult,
    VibePipeline
)
from .validation import (
    ValidationResult,
    validate_brief
)
from .workflow import (
    complete_stage,
    get_next_stage,
    get_workflow_progress
)
from .export import compositions_to_midi
