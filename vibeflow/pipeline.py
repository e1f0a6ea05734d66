"""
End-to-end arrangement pipeline.

Runs the nine stages in order on a brief:
1. Brief ingestion  2. Style prior  3. Time base
4. Palette  5. Motif seeds  6. Macro structure
7. Compose  8. Variation  9. Mix and spatial design

Every stage reports a PipelineStage; the run stops at the first stage
that fails. One seeded random source is threaded through all stages so
a seed replays a run exactly.
"""

import argparse
import json
import logging
import random
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .export import compositions_to_midi, mix_design_summary, structure_summary
from .models import STAGE_ORDER, Brief, Stage, WorkflowState
from .stages.brief import ingest_brief, lock_intent
from .stages.compose import compose_all_sections
from .stages.macro_structure import check_structure_constraints, draft_macro_structure, validate_energy_curve
from .stages.mix_spatial import SPATIAL_STYLES, assemble_mix_design
from .stages.motif_seed import build_motif_seed_set
from .stages.palette import assemble_sound_palette, validate_palette_coverage
from .stages.style_prior import build_style_prior
from .stages.time_base import generate_and_rank_grooves, select_time_base
from .stages.variation import attach_transition_fills, run_variation_pass
from .validation import validate_brief
from .workflow import complete_stage, get_workflow_progress

logger = logging.getLogger(__name__)


@dataclass
class PipelineConfig:
    """Generation knobs for a pipeline run."""
    seed: Optional[int] = None
    key: str = "C"
    scale: str = "minor"
    groove_candidates: int = 5
    groove_mutations: int = 0
    motif_candidates_per_type: int = 5
    top_n_motifs: int = 3
    minimum_motif_score: float = 50
    max_palette_elements: int = 12
    archetype: Optional[str] = None
    progression_template: Optional[str] = None
    spatial_style: str = "spacious"
    variation_passes: int = 1
    output_dir: str = "output"
    export_midi: bool = False


@dataclass
class PipelineStage:
    """Represents a stage in the pipeline."""
    name: str
    status: str = "pending"  # pending, in_progress, completed, error
    data: dict = field(default_factory=dict)
    error: Optional[str] = None


@dataclass
class PipelineResult:
    """Complete pipeline result."""
    success: bool
    stages: dict[str, PipelineStage]
    state: WorkflowState = field(default_factory=WorkflowState)
    midi_path: Optional[str] = None
    duration_seconds: float = 0.0
    errors: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "success": self.success,
            "stages": {
                name: {
                    "status": stage.status,
                    "data": stage.data,
                    "error": stage.error
                }
                for name, stage in self.stages.items()
            },
            "progress": get_workflow_progress(self.state),
            "state": self.state.to_dict(),
            "midi_path": self.midi_path,
            "duration_seconds": self.duration_seconds,
            "errors": self.errors
        }

    def save(self, path: str | Path) -> None:
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.to_dict(), f, indent=2)


class VibePipeline:
    """
    Complete arrangement pipeline.

    Stage methods may be called one by one (each requires the previous
    stage's output) or all at once through run().
    """

    def __init__(self, config: Optional[PipelineConfig] = None):
        self.config = config or PipelineConfig()
        self.rng = random.Random(self.config.seed)
        self.state = WorkflowState()

    def _complete(self, stage: Stage, summary: str, **artifacts) -> None:
        self.state = complete_stage(self.state, stage, "generated", summary, **artifacts)

    def _run_stage(self, stage: Stage, work) -> PipelineStage:
        result = PipelineStage(name=stage.value, status="in_progress")
        try:
            result.data = work()
            result.status = "completed"
        except Exception as e:
            result.status = "error"
            result.error = str(e)
            logger.error(f"Stage {stage.value} failed: {e}")
        return result

    def _require(self, value, message: str):
        if value is None:
            raise ValueError(message)
        return value

    def stage_brief(self, brief: Brief) -> PipelineStage:
        """Stage 1: derive and lock the production spec."""
        def work():
            parsed, spec = ingest_brief(brief)
            intent = lock_intent(parsed, spec, confirmed=True)
            self._complete(Stage.BRIEF_INGESTION, intent.summary, brief=parsed, spec=spec)
            return {
                "tempo_range": [spec.tempo_range.min_bpm, spec.tempo_range.max_bpm],
                "instrumentation": spec.instrumentation,
                "mix_aesthetic": spec.mix_aesthetic,
                "summary": intent.summary,
            }
        return self._run_stage(Stage.BRIEF_INGESTION, work)

    def stage_style_prior(self) -> PipelineStage:
        """Stage 2: genre-conditioned style prior."""
        def work():
            brief = self._require(self.state.brief, "No brief ingested. Run stage_brief first.")
            prior = build_style_prior(brief, self.state.spec)
            self._complete(Stage.STYLE_PRIOR, f"{prior.bpm_signature.typical:g} BPM prior", style_prior=prior)
            return {
                "bpm": prior.bpm_signature.typical,
                "swing": prior.swing_profile.amount,
                "traits": prior.sound_design_traits,
            }
        return self._run_stage(Stage.STYLE_PRIOR, work)

    def stage_time_base(self) -> PipelineStage:
        """Stage 3: rank grooves and lock the best one."""
        def work():
            prior = self._require(self.state.style_prior, "No style prior. Run stage_style_prior first.")
            ranked = generate_and_rank_grooves(
                prior,
                self.config.groove_candidates,
                self.config.groove_mutations,
                self.rng,
            )
            time_base = select_time_base(ranked)
            self._complete(Stage.TIME_BASE, f"Selected {time_base.selected_groove.id}", time_base=time_base)
            return {
                "tempo": time_base.final_tempo,
                "meter": time_base.final_meter,
                "groove": time_base.selected_groove.id,
                "scores": {r.groove.id: r.score.overall for r in ranked},
            }
        return self._run_stage(Stage.TIME_BASE, work)

    def stage_palette(self) -> PipelineStage:
        """Stage 4: sound palette."""
        def work():
            prior = self._require(self.state.style_prior, "No style prior. Run stage_style_prior first.")
            palette = assemble_sound_palette(prior, self.state.spec, self.config.max_palette_elements)
            report = validate_palette_coverage(palette)
            self._complete(Stage.PALETTE, f"{len(palette.entries)} palette entries", palette=palette)
            return {
                "entries": [e.name for e in palette.entries],
                "coverage": palette.coverage_by_role,
                "warnings": report.warnings,
            }
        return self._run_stage(Stage.PALETTE, work)

    def stage_motif_seed(self) -> PipelineStage:
        """Stage 5: motif seeds."""
        def work():
            prior = self._require(self.state.style_prior, "No style prior. Run stage_style_prior first.")
            seed_set = build_motif_seed_set(
                prior,
                self.config.key,
                self.config.scale,
                self.config.motif_candidates_per_type,
                self.config.top_n_motifs,
                self.config.minimum_motif_score,
                self.rng,
            )
            self._complete(Stage.MOTIF_SEED, f"{len(seed_set.seeds)} motif seeds", motif_seed_set=seed_set)
            return {
                "total_generated": seed_set.total_generated,
                "seeds": {s.name: sc.overall for s, sc in zip(seed_set.seeds, seed_set.scores)},
            }
        return self._run_stage(Stage.MOTIF_SEED, work)

    def stage_macro_structure(self) -> PipelineStage:
        """Stage 6: macro structure and energy checks."""
        def work():
            prior = self._require(self.state.style_prior, "No style prior. Run stage_style_prior first.")
            structure = draft_macro_structure(self.state.brief, self.state.spec, prior, self.config.archetype)
            energy = validate_energy_curve(structure)
            constraints = check_structure_constraints(structure, self.state.spec)
            self._complete(
                Stage.MACRO_STRUCTURE,
                f"{structure.archetype}, {structure.total_bars} bars",
                macro_structure=structure,
            )
            data = structure_summary(structure)
            data["warnings"] = energy.warnings + constraints.warnings
            data["issues"] = energy.issues + constraints.issues
            return data
        return self._run_stage(Stage.MACRO_STRUCTURE, work)

    def stage_compose(self) -> PipelineStage:
        """Stage 7: compose every section from the motif seeds."""
        def work():
            structure = self._require(self.state.macro_structure, "No structure. Run stage_macro_structure first.")
            seeds = self._require(self.state.motif_seed_set, "No motif seeds. Run stage_motif_seed first.")
            compositions, scores, coherence = compose_all_sections(
                structure.sections,
                seeds.seeds,
                self.config.key,
                self.config.progression_template,
                self.state.palette,
            )
            self._complete(Stage.COMPOSE_ORCHESTRATE, f"Coherence {coherence}", compositions=compositions)
            return {
                "coherence": coherence,
                "sections": {
                    c.section_id: {"voices": len(c.voices), "score": s.overall}
                    for c, s in zip(compositions, scores)
                },
            }
        return self._run_stage(Stage.COMPOSE_ORCHESTRATE, work)

    def stage_variation(self) -> PipelineStage:
        """Stage 8: variation passes and transition ear candy."""
        def work():
            structure = self._require(self.state.macro_structure, "No structure. Run stage_macro_structure first.")
            seeds = self._require(self.state.motif_seed_set, "No motif seeds. Run stage_motif_seed first.")
            transition_bars = [s.start_bar for s in structure.sections[1:]]

            passes = []
            for number in range(1, self.config.variation_passes + 1):
                variation_pass = run_variation_pass(seeds.seeds, transition_bars, number, self.rng)
                passes.append(attach_transition_fills(variation_pass, structure.sections))

            self._complete(Stage.VARIATION_OPERATORS, f"{len(passes)} variation pass(es)", variation_passes=passes)
            return {
                "passes": [
                    {
                        "pass": p.pass_number,
                        "variations": [f"{v.operator}:{v.improvement_delta:+d}" for v in p.variations],
                        "ear_candy": len(p.ear_candy),
                    }
                    for p in passes
                ],
            }
        return self._run_stage(Stage.VARIATION_OPERATORS, work)

    def stage_mix(self) -> PipelineStage:
        """Stage 9: mix and spatial design."""
        def work():
            compositions = self._require(self.state.compositions, "No compositions. Run stage_compose first.")
            structure = self.state.macro_structure
            design, score = assemble_mix_design(
                compositions,
                self.state.palette,
                structure.total_bars,
                self.config.spatial_style,
            )
            self._complete(Stage.MIX_SPATIAL, f"Mix score {score.overall}", mix_design=design)
            data = mix_design_summary(design)
            data["score"] = {
                "balance": score.balance,
                "stereo": score.stereo,
                "depth": score.depth,
                "translation": score.translation,
                "overall": score.overall,
            }
            return data
        return self._run_stage(Stage.MIX_SPATIAL, work)

    def export_midi(self, path: Optional[str | Path] = None) -> str:
        """Write the composed arrangement to MIDI."""
        if not self.state.compositions or self.state.macro_structure is None:
            raise ValueError("Nothing to export. Run the pipeline first.")
        path = path or Path(self.config.output_dir) / "arrangement.mid"
        tempo = self.state.time_base.final_tempo if self.state.time_base else 120
        return compositions_to_midi(
            self.state.compositions,
            self.state.macro_structure.sections,
            tempo,
            path,
            self.state.mix_design,
        )

    def run(self, brief: Brief) -> PipelineResult:
        """
        Run all nine stages on a brief.

        Returns:
            PipelineResult; success is True only when every stage completed
        """
        started = time.monotonic()
        result = PipelineResult(success=False, stages={})

        steps = {
            Stage.BRIEF_INGESTION: lambda: self.stage_brief(brief),
            Stage.STYLE_PRIOR: self.stage_style_prior,
            Stage.TIME_BASE: self.stage_time_base,
            Stage.PALETTE: self.stage_palette,
            Stage.MOTIF_SEED: self.stage_motif_seed,
            Stage.MACRO_STRUCTURE: self.stage_macro_structure,
            Stage.COMPOSE_ORCHESTRATE: self.stage_compose,
            Stage.VARIATION_OPERATORS: self.stage_variation,
            Stage.MIX_SPATIAL: self.stage_mix,
        }

        for index, stage in enumerate(STAGE_ORDER, start=1):
            logger.info(f"Stage {index}: {stage.value}")
            stage_result = steps[stage]()
            result.stages[stage.value] = stage_result
            if stage_result.status != "completed":
                result.errors.append(f"{stage.value} failed: {stage_result.error}")
                break
        else:
            result.success = True

        if result.success and self.config.export_midi:
            try:
                result.midi_path = self.export_midi()
                logger.info(f"Saved MIDI: {result.midi_path}")
            except Exception as e:
                result.errors.append(f"MIDI export failed: {e}")
                logger.error(f"MIDI export failed: {e}")

        result.state = self.state
        result.duration_seconds = round(time.monotonic() - started, 3)
        return result


def load_brief(args: argparse.Namespace) -> tuple[Optional[Brief], list[str]]:
    """Brief from --brief JSON or from the individual flags."""
    if args.brief:
        with open(args.brief) as f:
            data = json.load(f)
    else:
        data = {
            "genres": args.genre or ["house"],
            "mood": args.mood or [],
            "target_duration_bars": args.bars,
        }
    validated = validate_brief(data)
    return validated.value, validated.errors


def main():
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Generate a music arrangement plan from a creative brief"
    )
    parser.add_argument(
        "--brief", "-b",
        help="Path to a brief JSON file"
    )
    parser.add_argument(
        "--genre", "-g",
        action="append",
        help="Genre (repeatable)"
    )
    parser.add_argument(
        "--mood", "-m",
        action="append",
        help="Mood keyword (repeatable)"
    )
    parser.add_argument(
        "--bars",
        type=int,
        default=128,
        help="Target length in bars"
    )
    parser.add_argument(
        "--seed", "-s",
        type=int,
        help="Random seed for reproducible runs"
    )
    parser.add_argument(
        "--key",
        default="C",
        help="Key for motifs and harmony"
    )
    parser.add_argument(
        "--archetype",
        help="Structure archetype (default: suggested from genre)"
    )
    parser.add_argument(
        "--progression",
        help="Chord progression template name"
    )
    parser.add_argument(
        "--spatial-style",
        choices=SPATIAL_STYLES,
        default="spacious",
        help="Reverb and width character"
    )
    parser.add_argument(
        "--passes",
        type=int,
        default=1,
        help="Number of variation passes"
    )
    parser.add_argument(
        "--output", "-o",
        default="output",
        help="Output directory"
    )
    parser.add_argument(
        "--midi",
        action="store_true",
        help="Also export the arrangement as MIDI"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging"
    )

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s"
    )

    brief, errors = load_brief(args)
    if brief is None:
        for error in errors:
            logger.error(f"Invalid brief: {error}")
        return 2

    config = PipelineConfig(
        seed=args.seed,
        key=args.key,
        archetype=args.archetype,
        progression_template=args.progression,
        spatial_style=args.spatial_style,
        variation_passes=args.passes,
        output_dir=args.output,
        export_midi=args.midi,
    )
    result = VibePipeline(config).run(brief)

    # Print summary
    print("\n" + "=" * 50)
    print("Pipeline Complete")
    print("=" * 50)
    print(f"Success: {result.success}")
    print(f"Progress: {get_workflow_progress(result.state)}%")
    for name, stage in result.stages.items():
        print(f"  {name}: {stage.status}")

    if result.midi_path:
        print(f"\nMIDI: {result.midi_path}")

    if result.errors:
        print(f"\nErrors ({len(result.errors)}):")
        for e in result.errors:
            print(f"  - {e}")

    result.save(Path(args.output) / "pipeline_result.json")

    return 0 if result.success else 1


if __name__ == "__main__":
    exit(main())
