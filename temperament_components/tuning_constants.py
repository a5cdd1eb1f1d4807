# temperament_components/tuning_constants.py
"""
Module: tuning_constants.py

Purpose:
This module is the central repository for the type definitions and the
configuration parameters used by the rank-2 temperament optimizer and the
sensory dissonance model. Keeping them here makes the behaviour of the
search and of the roughness curves easy to tune from a single place.

Key Sections:
- Type Definitions: TypedDicts for interval targets, boundary ratios, notes,
  solver output, Scala export records, spectra and dissonance curves.
- Genetic Algorithm Parameters: population size, generation cap, operator rates.
- Period Search Parameters: how far the period gene may stretch from the boundary.
- Ratio / Naming Parameters: normalization cap, chromatic name table, reference pitch.
- Dissonance Model Constants: Sethares' parametrization of the Plomp-Levelt curve.
"""

from typing import List, Tuple, Optional, NamedTuple, TypedDict

# --- Type Definitions ---

# Genome: (period_cents, generator_cents). Continuous floats, never exact ratios.
Genome = Tuple[float, float]


class Individual(NamedTuple):
    """
    One member of the GA population. Immutable: a new Individual replaces an
    old one, and `fitness` is a cached value derived from `genes`.

    Attributes:
        genes (Genome): (period_cents, generator_cents).
        fitness (float): Lower is better, 0.0 is a perfect match, inf is disqualified.
    """
    genes: Genome
    fitness: float


class BoundaryRatio(TypedDict):
    """Equivalence interval (e.g. 2/1 octave, 3/1 tritave), kept in lowest terms."""
    numerator: int
    denominator: int


class NormalizedRatio(TypedDict):
    n: int
    d: int
    adjusted: bool


class _IntervalTargetBase(TypedDict):
    id: str
    degree: int
    n: int
    d: int
    tolerance_cents: float
    priority: float


class IntervalTarget(_IntervalTargetBase, total=False):
    """
    A weighted, toleranced just-intonation target. `n/d` always lies in
    [1, boundary) and `degree` in [0, N-1]. `max_error_cents` is the hard cap
    and is omitted (or None) when the target has none.
    """
    max_error_cents: Optional[float]


class NoteInfo(TypedDict, total=False):
    cents_from_root: float
    degree: int
    name: str            # Only present for 12-note scales when names are requested.
    freq_hz: float
    pitch_label: str     # Nearest 12-TET pitch with cent deviation, e.g. "E4 -13.7c".


class SolverInputInfo(TypedDict):
    cycle_cents: float
    scale_size: int


class IntervalError(TypedDict):
    """Diagnostic row describing how well one target is realised by a genome."""
    target_id: str
    label: str
    degree: int          # The target's own scale degree.
    tonic: int           # Scale degree the interval was measured from.
    step: int
    target_cents: float
    actual_cents: float
    error_cents: float
    tolerance_cents: float
    within_tolerance: bool
    exceeds_hard_cap: bool
    priority: float
    beat_hz: float


class _SolverOutputBase(TypedDict):
    input: SolverInputInfo
    notes: List[NoteInfo]


class SolverOutput(_SolverOutputBase, total=False):
    """
    Scale produced from a genome. `notes` holds exactly `scale_size` entries,
    ascending by `cents_from_root`, with notes[0] at 0.0. The remaining keys are
    filled in by the genetic search.
    """
    period_cents: float
    generator_cents: float
    fitness: float
    generations: int
    intervals: List[IntervalError]
    max_abs_error_cents: float
    rms_error_cents: float
    period_stretch_cents: float
    period_stretch_warning: bool


class ScalaExport(TypedDict):
    count: int
    pitches: List[float]
    name: str


class Partial(TypedDict):
    frequency: float
    amplitude: float


class Spectrum(TypedDict):
    partials: List[Partial]


class DissonanceCurveData(TypedDict):
    ratios: List[float]
    dissonance: List[float]


class DissonanceMinimum(TypedDict):
    ratio: float
    cents: float
    dissonance: float
    approx_ratio: str


class SearchConfig(TypedDict, total=False):
    """Optional overrides for the genetic search; see resolve_search_config."""
    population_size: int
    max_generations: int
    plateau_generations: int
    mutation_rate: float
    crossover_rate: float
    tournament_size: int
    elite_count: int
    seed: Optional[int]
    boundary_cents: float
    period_tolerance_cents: float
    period_priority: float
    period_max_error_cents: Optional[float]
    tonic_mode: str
    base_frequency_hz: float
    include_names: bool


# --- Genetic Algorithm Parameters ---
POPULATION_SIZE: int = 60           # Genomes per generation.
MAX_GENERATIONS: int = 200          # Hard cap; the search always stops here.
PLATEAU_GENERATIONS: int = 40       # Stop early after this many generations without improvement.
MIN_IMPROVEMENT: float = 1e-9       # Smallest fitness decrease counted as an improvement.
TOURNAMENT_SIZE: int = 3            # Contestants per tournament; the lowest fitness wins.
CROSSOVER_RATE: float = 0.85        # Probability that a child is a blend of two parents.
MUTATION_RATE: float = 0.35         # Per-gene probability of a gaussian nudge.
ELITE_COUNT: int = 2                # Best genomes copied unchanged into the next generation.
GENERATOR_MUTATION_SIGMA_CENTS: float = 12.0
PERIOD_MUTATION_SIGMA_CENTS: float = 1.5
RANDOM_RESET_CHANCE: float = 0.05   # Chance that a mutated generator is redrawn uniformly.

# Valid values for SearchConfig["tonic_mode"].
TONIC_MODE_ROOT: str = "root"       # Every target measured from the tonic (notes[0]).
TONIC_MODE_DEGREE: str = "degree"   # Each target measured from its own scale degree.
TONIC_MODE_ALL: str = "all"         # Mean over every tonic rotation.
TONIC_MODES: Tuple[str, ...] = (TONIC_MODE_ROOT, TONIC_MODE_DEGREE, TONIC_MODE_ALL)

# --- Period Search Parameters ---
DEFAULT_BOUNDARY_CENTS: float = 1200.0
DEFAULT_PERIOD_TOLERANCE_CENTS: float = 5.0
DEFAULT_PERIOD_PRIORITY: float = 1.0
MIN_PERIOD_WINDOW_CENTS: float = 5.0        # Smallest half-width of the period gene range.
PERIOD_WINDOW_TOLERANCE_FACTOR: float = 4.0  # Half-width = factor * tolerance when no hard cap is set.
PERIOD_STRETCH_WARNING_CENTS: float = 10.0

# --- Interval Target Defaults ---
DEFAULT_TOLERANCE_CENTS: float = 5.0
DEFAULT_PRIORITY: float = 1.0
MIN_TOLERANCE_CENTS: float = 0.01
MIN_HARD_CAP_CENTS: float = 0.01
DEFAULT_SCALE_SIZE: int = 12
DEFAULT_BOUNDARY: BoundaryRatio = {"numerator": 2, "denominator": 1}

# --- Ratio / Naming Parameters ---
MAX_NORMALIZATION_LOOPS: int = 12   # Boundary multiplications before normalization gives up.
RATIO_TEXT_PATTERN: str = r"^\d+\s*/\s*\d+$"
CHROMATIC_NOTE_NAMES: List[str] = ['C', 'C#', 'D', 'D#', 'E', 'F', 'F#', 'G', 'G#', 'A', 'A#', 'B']
DEFAULT_BASE_FREQUENCY_HZ: float = 261.625565   # C4
A4_FREQUENCY_HZ: float = 440.0               # Concert pitch used to place frequencies on the MIDI scale.
A4_MIDI_NOTE: int = 69
DEFAULT_RATIO_MAX_DENOMINATOR: int = 128
MINIMA_RATIO_MAX_DENOMINATOR: int = 32

# --- Dissonance Model Constants (Sethares' Plomp-Levelt parametrization) ---
B1: float = 3.5
B2: float = 5.75
D_STAR: float = 0.24
S1: float = 0.0207
S2: float = 18.96

# Harmonic spectrum defaults used when no instrument spectrum is supplied.
DEFAULT_PARTIAL_COUNT: int = 8
DEFAULT_PARTIAL_ROLLOFF: float = 0.88
DEFAULT_CURVE_STEPS: int = 600
