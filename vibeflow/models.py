"""
Shared data model for the arrangement workflow.

Every stage consumes and produces these types:
- Brief / ProductionSpec / StylePrior describe intent and genre constraints
- GrooveCandidate / TimeBase carry the rhythmic foundation
- MotifSeed / SectionComposition / Voice carry note data (times in beats)
- MixDesign carries the leveling, processing and spatial plan
- WorkflowState tracks stage completion and the revision log

Values are built once and never mutated by later stages; stages return
new instances (see dataclasses.replace).
"""

from dataclasses import dataclass, field, fields, is_dataclass
from enum import Enum
from typing import Any, Optional


class Stage(Enum):
    """The nine workflow stages in canonical order."""
    BRIEF_INGESTION = "briefIngestion"
    STYLE_PRIOR = "stylePrior"
    TIME_BASE = "timeBase"
    PALETTE = "palette"
    MOTIF_SEED = "motifSeed"
    MACRO_STRUCTURE = "macroStructure"
    COMPOSE_ORCHESTRATE = "composeOrchestrate"
    VARIATION_OPERATORS = "variationOperators"
    MIX_SPATIAL = "mixSpatial"


STAGE_ORDER: list[Stage] = list(Stage)


class MotifType(Enum):
    MELODIC = "melodic"
    RHYTHMIC = "rhythmic"
    HARMONIC = "harmonic"
    TEXTURAL = "textural"


class SectionType(Enum):
    """Arrangement section types."""
    INTRO = "intro"
    VERSE = "verse"
    BUILDUP = "buildup"
    DROP = "drop"
    BREAKDOWN = "breakdown"
    BRIDGE = "bridge"
    OUTRO = "outro"
    CHORUS = "chorus"
    PRE_CHORUS = "preChorus"
    BUILD = "build"
    TRANSITION = "transition"


class VoiceRole(Enum):
    """Instrumental role of a voice within a section."""
    BASS = "bass"
    HARMONY = "harmony"
    TOPLINE = "topline"
    LEAD = "lead"
    COUNTERLINE = "counterline"
    RHYTHM = "rhythm"
    PAD = "pad"
    TEXTURE = "texture"
    FX = "fx"


class SoundRole(Enum):
    """Frequency role of a palette entry."""
    SUB = "sub"
    BASS = "bass"
    LOW_MID = "lowMid"
    MID = "mid"
    HIGH_MID = "highMid"
    PRESENCE = "presence"
    AIR = "air"


class StemGroup(Enum):
    DRUMS = "drums"
    BASS = "bass"
    SYNTHS = "synths"
    PADS = "pads"
    FX = "fx"
    VOCALS = "vocals"


class EarCandyType(Enum):
    """Transitional sound-design events."""
    RISER = "riser"
    DOWNLIFTER = "downlifter"
    IMPACT = "impact"
    SWEEP = "sweep"
    STUTTER = "stutter"
    VOCAL_CHOP = "vocal-chop"
    REVERSE = "reverse"
    WHITE_NOISE = "white-noise"


def to_plain(value: Any) -> Any:
    """Convert dataclasses, enums and containers into JSON-friendly values."""
    if isinstance(value, Enum):
        return value.value
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name: to_plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, dict):
        return {
            (k.value if isinstance(k, Enum) else k): to_plain(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple, set, frozenset)):
        return [to_plain(v) for v in value]
    return value


# --- Brief / spec / style -------------------------------------------------

@dataclass
class Brief:
    """Short creative brief supplied by the user."""
    genres: list[str]
    mood: list[str] = field(default_factory=list)
    references: list[str] = field(default_factory=list)
    use_case: str = "general"
    target_duration_bars: int = 128
    must: list[str] = field(default_factory=list)
    must_not: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return to_plain(self)


@dataclass
class TempoRange:
    min_bpm: float
    max_bpm: float


@dataclass
class EnergyPoint:
    position: float  # 0-1 through the track
    energy: float    # 0-100


@dataclass
class StructuralConstraints:
    min_sections: int = 4
    max_sections: int = 12
    require_intro: bool = True
    require_outro: bool = True


@dataclass
class ProductionSpec:
    """Technical targets derived from a Brief."""
    tempo_range: TempoRange
    energy_arc: list[EnergyPoint]
    instrumentation: list[str]
    mix_aesthetic: str
    structural_constraints: StructuralConstraints = field(default_factory=StructuralConstraints)

    def to_dict(self) -> dict:
        return to_plain(self)


@dataclass
class BpmSignature:
    typical: float
    variance: float


@dataclass
class SwingProfile:
    amount: float = 0
    subdivision: str = "8th"  # 8th, 16th


@dataclass
class ArrangementNorms:
    typical_intro_length: int = 16
    typical_drop_length: int = 32
    typical_breakdown_length: int = 16
    transition_styles: list[str] = field(default_factory=list)


@dataclass
class Guardrails:
    energy_profile: str = "neutral"
    avoid_cliches: list[str] = field(default_factory=list)


@dataclass
class StylePrior:
    """Genre-conditioned parameters guiding generation."""
    bpm_signature: BpmSignature
    swing_profile: SwingProfile = field(default_factory=SwingProfile)
    sound_design_traits: list[str] = field(default_factory=list)
    arrangement_norms: ArrangementNorms = field(default_factory=ArrangementNorms)
    guardrails: Guardrails = field(default_factory=Guardrails)

    def to_dict(self) -> dict:
        return to_plain(self)


# --- Groove / time base ----------------------------------------------------

@dataclass
class Humanization:
    timing_jitter: float = 0  # ms
    velocity_jitter: float = 0


@dataclass
class GrooveCandidate:
    """Tempo, meter, swing and drum step patterns on a 16-step grid."""
    id: str
    tempo: float
    meter: str = "4/4"
    swing_amount: float = 0
    kick_pattern: list[int] = field(default_factory=list)
    snare_pattern: list[int] = field(default_factory=list)
    hat_pattern: list[int] = field(default_factory=list)
    velocity_variance: float = 0
    humanization: Humanization = field(default_factory=Humanization)
    description: str = ""

    def to_dict(self) -> dict:
        return to_plain(self)


@dataclass
class GrooveBreakdown:
    kick_placement: float
    snare_backbeat: float
    hat_groove: float
    syncopation: float


@dataclass
class GrooveScore:
    candidate_id: str
    danceability: float
    pocket: float
    genre_fit: float
    overall: int
    breakdown: GrooveBreakdown


@dataclass
class RankedGroove:
    groove: GrooveCandidate
    score: GrooveScore


@dataclass
class TimeBase:
    final_tempo: float
    final_meter: str
    selected_groove: GrooveCandidate
    alternate_grooves: list[GrooveCandidate] = field(default_factory=list)

    def to_dict(self) -> dict:
        return to_plain(self)


# --- Palette ---------------------------------------------------------------

@dataclass
class FrequencyRange:
    low: float   # Hz
    high: float  # Hz


@dataclass
class PaletteEntry:
    id: str
    name: str
    role: SoundRole
    type: str  # sample, synth, recording
    frequency_range: FrequencyRange
    characteristics: list[str] = field(default_factory=list)
    processing_hints: list[str] = field(default_factory=list)


@dataclass
class SoundPalette:
    max_elements: int
    entries: list[PaletteEntry]
    coverage_by_role: dict[str, int] = field(default_factory=dict)
    forbidden: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return to_plain(self)


# --- Notes and motifs ------------------------------------------------------

@dataclass(frozen=True)
class Note:
    """A single note event."""
    pitch: int       # MIDI note number 0-127
    time: float      # In beats
    duration: float  # In beats
    velocity: int    # 0-127

    def to_tuple(self) -> tuple:
        return (self.pitch, self.time, self.duration, self.velocity)

    def is_valid(self) -> bool:
        return (
            0 <= self.pitch <= 127
            and 0 <= self.velocity <= 127
            and self.duration > 0
            and self.time >= 0
        )


@dataclass
class MotifSeed:
    """A short reusable note sequence."""
    id: str
    type: MotifType
    name: str
    notes: list[Note]
    length_bars: int
    key: str = "C"
    scale: str = "minor"
    description: str = ""

    def to_dict(self) -> dict:
        return to_plain(self)


@dataclass
class MotifBreakdown:
    interval_variety: float
    rhythmic_interest: float
    contour: float
    repetition_balance: float


@dataclass
class MotifScore:
    motif_id: str
    memorability: float
    singability: float
    tension_relief: float
    novelty: float
    genre_fit: float
    overall: int
    breakdown: MotifBreakdown


@dataclass
class RankedMotif:
    motif: MotifSeed
    score: MotifScore


@dataclass
class MotifSeedSet:
    total_generated: int
    seeds: list[MotifSeed]
    scores: list[MotifScore]
    top_n: int
    candidates: list[MotifSeed] = field(default_factory=list)  # Full ranked pool

    def to_dict(self) -> dict:
        return to_plain(self)


# --- Structure -------------------------------------------------------------

@dataclass
class ArrangementSection:
    id: str
    type: SectionType
    name: str
    start_bar: int
    length_bars: int
    energy_level: float
    elements: list[str] = field(default_factory=list)
    transition_in: Optional[str] = None
    transition_out: Optional[str] = None

    @property
    def end_bar(self) -> int:
        return self.start_bar + self.length_bars


@dataclass
class EnergyCurvePoint:
    bar: int
    energy: float


@dataclass
class KeyMoment:
    bar: int
    description: str


@dataclass
class MacroStructure:
    archetype: str
    total_bars: int
    sections: list[ArrangementSection]
    energy_curve: list[EnergyCurvePoint] = field(default_factory=list)
    key_moments: list[KeyMoment] = field(default_factory=list)

    def get_section(self, section_id: str) -> Optional[ArrangementSection]:
        for section in self.sections:
            if section.id == section_id:
                return section
        return None

    def to_dict(self) -> dict:
        return to_plain(self)


# --- Composition -----------------------------------------------------------

@dataclass
class ChordEvent:
    start_beat: float
    chord: str
    duration: float


@dataclass
class Voice:
    role: VoiceRole
    track_name: str
    clip_name: str
    notes: list[Note] = field(default_factory=list)
    palette_entry_id: Optional[str] = None


@dataclass
class SectionComposition:
    section_id: str
    voices: list[Voice]
    harmony_progression: list[ChordEvent] = field(default_factory=list)
    density_level: int = 5
    register_distribution: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return to_plain(self)


@dataclass
class CompositionScore:
    section_id: str
    voice_leading_sanity: float
    density_score: float
    register_collisions: int
    harmonic_clarity: float
    overall: int


# --- Variation -------------------------------------------------------------

@dataclass
class Variation:
    id: str
    source_id: str
    operator: str
    result: MotifSeed
    coherence_score: int
    improvement_delta: int


@dataclass
class EarCandy:
    type: EarCandyType
    position: float  # bars
    duration: float  # bars


@dataclass
class TransitionEnhancement:
    bar: float
    ear_candy: list[EarCandy]
    fill_pattern: Optional[list[Note]] = None


@dataclass
class VariationPass:
    pass_number: int
    variations: list[Variation] = field(default_factory=list)
    ear_candy: list[EarCandy] = field(default_factory=list)
    transition_enhancements: list[TransitionEnhancement] = field(default_factory=list)

    def to_dict(self) -> dict:
        return to_plain(self)


# --- Mix -------------------------------------------------------------------

@dataclass
class TrackLevel:
    track_name: str
    stem_group: StemGroup
    target_db: float
    pan: float  # -100 (left) to 100 (right)


@dataclass
class LevelingPlan:
    tracks: list[TrackLevel] = field(default_factory=list)


@dataclass
class EqBand:
    frequency: float
    gain: float
    q: float
    type: str  # peak, shelf, highpass, lowpass


@dataclass
class Compression:
    threshold: float
    ratio: float
    attack: float
    release: float


@dataclass
class Saturation:
    drive: float
    mix: float


@dataclass
class EqCompSuggestion:
    stem_group: StemGroup
    eq: list[EqBand]
    compression: Compression
    saturation: Optional[Saturation] = None


@dataclass
class DepthLayer:
    name: str
    reverb_type: str  # room, plate, hall, spring, shimmer
    decay_time: float
    predelay: float
    wet_level: float
    assigned_tracks: list[str] = field(default_factory=list)
    character: str = ""


@dataclass
class Delay:
    name: str
    type: str  # mono, ping-pong, tape, dotted
    time: str  # "1/8", "1/4d" or milliseconds
    feedback: float
    assigned_tracks: list[str] = field(default_factory=list)


@dataclass
class WidthProcessing:
    track_name: str
    technique: str  # stereoWidth, haas, mid-side, microshift
    amount: float


@dataclass
class SpatialScene:
    depth_layers: list[DepthLayer] = field(default_factory=list)
    delays: list[Delay] = field(default_factory=list)
    width_processing: list[WidthProcessing] = field(default_factory=list)


@dataclass
class Keyframe:
    bar: int
    value: float


@dataclass
class AutomationPass:
    parameter: str
    track_name: str
    keyframes: list[Keyframe]
    purpose: str = ""


@dataclass
class MasterChainDevice:
    order: int
    device: str
    purpose: str
    settings: dict = field(default_factory=dict)


@dataclass
class MixDesign:
    leveling: LevelingPlan
    eq_comp_suggestions: list[EqCompSuggestion] = field(default_factory=list)
    spatial_scene: SpatialScene = field(default_factory=SpatialScene)
    automation_passes: list[AutomationPass] = field(default_factory=list)
    master_chain: list[MasterChainDevice] = field(default_factory=list)

    def to_dict(self) -> dict:
        return to_plain(self)


@dataclass
class MixScore:
    balance: float
    stereo: float
    depth: float
    translation: float
    overall: int


# --- Soft checks -----------------------------------------------------------

@dataclass
class ValidationReport:
    """Outcome of a soft-quality check. Never raised."""
    valid: bool
    issues: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    suggestions: list[str] = field(default_factory=list)


# --- Workflow state --------------------------------------------------------

@dataclass
class RevisionEntry:
    stage: Stage
    timestamp: str  # ISO 8601
    action: str
    summary: str


@dataclass
class WorkflowState:
    """Stage progress plus the artifacts each stage produced."""
    current_stage: Stage = Stage.BRIEF_INGESTION
    stages_completed: list[Stage] = field(default_factory=list)
    revision_history: list[RevisionEntry] = field(default_factory=list)
    brief: Optional[Brief] = None
    spec: Optional[ProductionSpec] = None
    style_prior: Optional[StylePrior] = None
    time_base: Optional[TimeBase] = None
    palette: Optional[SoundPalette] = None
    motif_seed_set: Optional[MotifSeedSet] = None
    macro_structure: Optional[MacroStructure] = None
    compositions: Optional[list[SectionComposition]] = None
    variation_passes: Optional[list[VariationPass]] = None
    mix_design: Optional[MixDesign] = None

    def to_dict(self) -> dict:
        return to_plain(self)
