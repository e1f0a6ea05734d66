"""
MIDI export and summaries for the DAW-facing side.

Writes finished section compositions to a multi-track MIDI file with
midiutil and condenses structures and mix designs into plain dicts.
"""

from pathlib import Path
from typing import Optional

from .models import (
    ArrangementSection,
    MacroStructure,
    MixDesign,
    SectionComposition,
    VoiceRole,
)

BEATS_PER_BAR = 4
DRUM_CHANNEL = 9

# General MIDI programs per voice role
ROLE_PROGRAMS = {
    VoiceRole.BASS: 38,      # Synth Bass 1
    VoiceRole.TOPLINE: 81,   # Lead 2 (sawtooth)
    VoiceRole.LEAD: 81,
    VoiceRole.HARMONY: 89,   # Pad 2 (warm)
    VoiceRole.PAD: 88,       # Pad 1 (new age)
    VoiceRole.TEXTURE: 95,   # Pad 8 (sweep)
    VoiceRole.COUNTERLINE: 80,
    VoiceRole.FX: 102,       # FX 7 (echoes)
}


def pan_to_cc(pan: float) -> int:
    """Map pan in [-100, 100] to MIDI CC10 in [0, 127]."""
    return max(0, min(127, int(round((pan + 100) / 200 * 127))))


def compositions_to_midi(
    compositions: list[SectionComposition],
    sections: list[ArrangementSection],
    tempo: float,
    output_path: str | Path,
    mix_design: Optional[MixDesign] = None
) -> str:
    """
    Export compositions to a MIDI file.

    Args:
        compositions: Section compositions (note times relative to the section)
        sections: Arrangement sections providing each section's start bar
        tempo: Tempo in BPM
        output_path: Path to save file
        mix_design: Optional mix plan; track pans are written as CC10

    Returns:
        Path to saved file
    """
    try:
        from midiutil import MIDIFile
    except ImportError:
        raise ImportError("midiutil required: pip install midiutil")

    starts = {s.id: s.start_bar * BEATS_PER_BAR for s in sections}
    pans = {}
    if mix_design is not None:
        pans = {t.track_name: t.pan for t in mix_design.leveling.tracks}

    voices = [
        (starts.get(composition.section_id, 0), voice)
        for composition in compositions
        for voice in composition.voices
    ]
    midi = MIDIFile(max(1, len(voices)))
    midi.addTempo(0, 0, tempo)

    for track_idx, (offset, voice) in enumerate(voices):
        midi.addTrackName(track_idx, 0, voice.track_name)
        if voice.role == VoiceRole.RHYTHM:
            channel = DRUM_CHANNEL
        else:
            channel = track_idx % 16
            if channel == DRUM_CHANNEL:
                channel = 15
            midi.addProgramChange(track_idx, channel, 0, ROLE_PROGRAMS.get(voice.role, 0))

        if voice.track_name in pans:
            midi.addControllerEvent(track_idx, channel, 0, 10, pan_to_cc(pans[voice.track_name]))  # CC10 = pan

        for note in voice.notes:
            midi.addNote(
                track_idx,
                channel,
                note.pitch,
                offset + note.time,
                note.duration,
                note.velocity
            )

    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, "wb") as f:
        midi.writeFile(f)

    return str(output_path)


def structure_summary(structure: MacroStructure) -> dict:
    """Get summary info about a macro structure."""
    return {
        "archetype": structure.archetype,
        "total_bars": structure.total_bars,
        "num_sections": len(structure.sections),
        "sections": [
            {
                "id": s.id,
                "name": s.name,
                "start_bar": s.start_bar,
                "length_bars": s.length_bars,
                "energy": s.energy_level,
            }
            for s in structure.sections
        ],
        "key_moments": [{"bar": m.bar, "description": m.description} for m in structure.key_moments],
    }


def mix_design_summary(design: MixDesign) -> dict:
    """Get summary info about a mix design."""
    tracks_by_group: dict[str, list[str]] = {}
    for track in design.leveling.tracks:
        tracks_by_group.setdefault(track.stem_group.value, []).append(track.track_name)

    return {
        "num_tracks": len(design.leveling.tracks),
        "stem_groups": tracks_by_group,
        "reverbs": [layer.name for layer in design.spatial_scene.depth_layers],
        "delays": [delay.name for delay in design.spatial_scene.delays],
        "automation": [f"{a.track_name}:{a.parameter}" for a in design.automation_passes],
        "master_chain": [d.device for d in sorted(design.master_chain, key=lambda d: d.order)],
    }
