# temperament_components/scale_builder.py
"""
Module: scale_builder.py

Purpose:
Expands a rank-2 genome (period, generator) into concrete pitches. Two
distinct representations are produced and must not be confused:

- build_scale: the N notes of the scale as cents from the tonic, ascending,
  starting at exactly 0.0 and never containing the period itself.
- export_rank2_to_scala: a Scala-style pitch table that starts at the first
  non-zero step and ends with the period (the return to equivalence).
"""

from typing import Any, List, Sequence, Union

from .tuning_constants import (
    Genome, Individual, NoteInfo, ScalaExport, SolverOutput,
    CHROMATIC_NOTE_NAMES, DEFAULT_BASE_FREQUENCY_HZ
)
from .tuning_utils import TuningUtils

GenomeLike = Union[Individual, Genome, Sequence[float], dict]


def genes_of(genome: GenomeLike) -> Genome:
    """
    Accepts an Individual, a {"genes": [...]} mapping or a bare
    (period, generator) pair and returns the (period, generator) tuple.
    """
    if isinstance(genome, Individual):
        genes: Any = genome.genes
    elif isinstance(genome, dict):
        genes = genome["genes"]
    else:
        genes = genome
    period_cents, generator_cents = float(genes[0]), float(genes[1])
    if not period_cents > 0:
        raise ValueError(f"Period must be positive, got {period_cents}")
    return period_cents, generator_cents


def chain_positions(period_cents: float, generator_cents: float, scale_size: int) -> List[float]:
    """Wrapped generator multiples k*g mod period for k = 0..N-1, in chain order."""
    return [TuningUtils.wrap_cents(k * generator_cents, period_cents) for k in range(scale_size)]


def scale_cents(period_cents: float, generator_cents: float, scale_size: int) -> List[float]:
    """Ascending cents of the N scale notes; element 0 is always 0.0."""
    return sorted(chain_positions(period_cents, generator_cents, scale_size))


def chromatic_name(cents_from_root: float, period_cents: float) -> str:
    step = TuningUtils.round_half_up(12.0 * cents_from_root / period_cents)
    return CHROMATIC_NOTE_NAMES[step % 12]


def build_scale(period_cents: float, generator_cents: float, scale_size: int,
                include_names: bool = False,
                base_frequency_hz: float = DEFAULT_BASE_FREQUENCY_HZ) -> SolverOutput:
    """
    Builds the N-note scale generated by stacking `generator_cents` modulo
    `period_cents`.

    Args:
        period_cents (float): Equivalence interval of the scale, > 0.
        generator_cents (float): The interval that is stacked.
        scale_size (int): Number of notes N (>= 1).
        include_names (bool): When True and N == 12, notes get chromatic names
                              by nearest equal step.
        base_frequency_hz (float): Frequency of the tonic, used for `freq_hz`.

    Returns:
        SolverOutput: {"input": {"cycle_cents", "scale_size"}, "notes": [...]},
                      notes ascending, notes[0]["cents_from_root"] == 0.0.
    """
    if int(scale_size) < 1:
        raise ValueError(f"Scale size must be at least 1, got {scale_size}")
    if not period_cents > 0:
        raise ValueError(f"Period must be positive, got {period_cents}")
    size = int(scale_size)

    positions = scale_cents(period_cents, generator_cents, size)
    notes: List[NoteInfo] = []
    for degree, cents in enumerate(positions):
        freq_hz = TuningUtils.cents_to_frequency(cents, base_frequency_hz)
        note_info: NoteInfo = {
            "cents_from_root": cents,
            "degree": degree,
            "freq_hz": freq_hz,
            "pitch_label": TuningUtils.describe_frequency(freq_hz),
        }
        if include_names and size == 12:
            note_info["name"] = chromatic_name(cents, period_cents)
        notes.append(note_info)

    return {
        "input": {"cycle_cents": float(period_cents), "scale_size": size},
        "notes": notes,
    }


def export_rank2_to_scala(genome: GenomeLike, scale_size: int, name: str) -> ScalaExport:
    """
    Converts a genome into a Scala-style ascending pitch table.

    The interior pitches are the wrapped generator multiples k*g mod period
    for k = 1..N-1, sorted ascending; the period itself is appended as the
    closing pitch, so `count` is always N. A multiple that wraps onto the tonic
    is written as the period it is equivalent to, and coinciding multiples are
    kept as repeated entries.
    """
    period_cents, generator_cents = genes_of(genome)
    if int(scale_size) < 1:
        raise ValueError(f"Scale size must be at least 1, got {scale_size}")

    interior = chain_positions(period_cents, generator_cents, int(scale_size))[1:]
    pitches = sorted(c if c != 0.0 else period_cents for c in interior)
    pitches.append(period_cents)
    return {"count": len(pitches), "pitches": pitches, "name": name}
