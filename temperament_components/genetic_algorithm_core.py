# temperament_components/genetic_algorithm_core.py
"""
Module: genetic_algorithm_core.py

Purpose:
This module implements the fitness evaluation and the genetic algorithm (GA)
that searches for a rank-2 temperament (a period plus one chain generator)
best matching a list of weighted, toleranced just-intonation targets.

Fitness is a penalty: lower is better and 0.0 is a perfect match. Each target
contributes priority * error^2, where the error is the circular distance (in
cents, mod period) between the scale interval nearest to the target and the
target itself. A target with a hard cap that is exceeded disqualifies the
genome with an infinite fitness, which dominates any finite penalty.
"""

# Standard library imports
import math
import random
from typing import Any, Dict, List, Optional, Sequence, Tuple

# Local application/library specific imports
from .tuning_constants import (
    Genome, Individual, IntervalTarget, IntervalError, SearchConfig, SolverOutput,
    POPULATION_SIZE, MAX_GENERATIONS, PLATEAU_GENERATIONS, MIN_IMPROVEMENT,
    TOURNAMENT_SIZE, CROSSOVER_RATE, MUTATION_RATE, ELITE_COUNT,
    TONIC_MODE_ROOT, TONIC_MODE_DEGREE, TONIC_MODE_ALL, TONIC_MODES,
    DEFAULT_BOUNDARY_CENTS, DEFAULT_PERIOD_TOLERANCE_CENTS, DEFAULT_PERIOD_PRIORITY,
    MIN_PERIOD_WINDOW_CENTS, PERIOD_WINDOW_TOLERANCE_FACTOR, PERIOD_STRETCH_WARNING_CENTS,
    DEFAULT_BASE_FREQUENCY_HZ
)
from .tuning_utils import TuningUtils
from .scale_builder import build_scale, scale_cents
from .genome_generator import GenomeGenerator

DISQUALIFIED: float = math.inf


def resolve_search_config(config: Optional[SearchConfig] = None) -> Dict[str, Any]:
    """
    Merges user overrides over the module defaults and clamps every value into
    a usable range.

    Args:
        config (Optional[SearchConfig]): Partial overrides; None means all defaults.

    Returns:
        Dict[str, Any]: A complete configuration dictionary.
    """
    cfg: Dict[str, Any] = {
        "population_size": POPULATION_SIZE,
        "max_generations": MAX_GENERATIONS,
        "plateau_generations": PLATEAU_GENERATIONS,
        "mutation_rate": MUTATION_RATE,
        "crossover_rate": CROSSOVER_RATE,
        "tournament_size": TOURNAMENT_SIZE,
        "elite_count": ELITE_COUNT,
        "seed": None,
        "boundary_cents": DEFAULT_BOUNDARY_CENTS,
        "period_tolerance_cents": DEFAULT_PERIOD_TOLERANCE_CENTS,
        "period_priority": DEFAULT_PERIOD_PRIORITY,
        "period_max_error_cents": None,
        "tonic_mode": TONIC_MODE_ROOT,
        "base_frequency_hz": DEFAULT_BASE_FREQUENCY_HZ,
        "include_names": True,
    }
    if config:
        cfg.update({k: v for k, v in config.items() if k in cfg})

    cfg["population_size"] = max(4, int(cfg["population_size"]))
    cfg["max_generations"] = max(1, int(cfg["max_generations"]))
    cfg["plateau_generations"] = max(1, int(cfg["plateau_generations"]))
    cfg["mutation_rate"] = min(1.0, max(0.0, float(cfg["mutation_rate"])))
    cfg["crossover_rate"] = min(1.0, max(0.0, float(cfg["crossover_rate"])))
    cfg["tournament_size"] = min(cfg["population_size"], max(2, int(cfg["tournament_size"])))
    cfg["elite_count"] = min(cfg["population_size"] - 1, max(1, int(cfg["elite_count"])))
    cfg["boundary_cents"] = float(cfg["boundary_cents"])
    if not cfg["boundary_cents"] > 0:
        raise ValueError(f"Boundary must be wider than a unison, got {cfg['boundary_cents']} cents")
    cfg["period_tolerance_cents"] = max(0.0, float(cfg["period_tolerance_cents"]))
    cfg["period_priority"] = max(0.0, float(cfg["period_priority"]))
    if cfg["period_max_error_cents"] is not None:
        cfg["period_max_error_cents"] = max(0.0, float(cfg["period_max_error_cents"]))
    if cfg["tonic_mode"] not in TONIC_MODES:
        print(f"Warning (resolve_search_config): Unknown tonic mode '{cfg['tonic_mode']}'. Using '{TONIC_MODE_ROOT}'.")
        cfg["tonic_mode"] = TONIC_MODE_ROOT
    return cfg


def period_window_cents(period_tolerance_cents: float, period_max_error_cents: Optional[float]) -> float:
    """Half-width of the period gene range around the boundary."""
    if period_max_error_cents is not None:
        return period_max_error_cents
    return max(MIN_PERIOD_WINDOW_CENTS, PERIOD_WINDOW_TOLERANCE_FACTOR * period_tolerance_cents)


def target_step(target: IntervalTarget, period_cents: float, scale_size: int) -> int:
    """
    Scale step (in notes) nearest to the target interval, clamped to
    [1, N-1] so a target never degenerates into a unison or the full period.
    """
    ideal = TuningUtils.ratio_to_cents(target["n"], target["d"])
    step = TuningUtils.round_half_up(ideal / (period_cents / scale_size))
    return max(1, min(scale_size - 1, step))


def _interval_error(notes: Sequence[float], tonic: int, step: int,
                    target_cents: float, period_cents: float) -> Tuple[float, float]:
    """(actual_cents, signed_error_cents) for the interval of `step` notes above notes[tonic]."""
    size = len(notes)
    actual = TuningUtils.wrap_cents(notes[(tonic + step) % size] - notes[tonic], period_cents)
    error = TuningUtils.circular_diff(actual, TuningUtils.wrap_cents(target_cents, period_cents), period_cents)
    return actual, error


def _tonics_for(target: IntervalTarget, scale_size: int, tonic_mode: str) -> Sequence[int]:
    if tonic_mode == TONIC_MODE_DEGREE:
        return (max(0, min(scale_size - 1, int(target["degree"]))),)
    if tonic_mode == TONIC_MODE_ALL:
        return range(scale_size)
    return (0,)


def calculate_fitness(genes: Genome,
                      targets: Sequence[IntervalTarget],
                      scale_size: int,
                      tonic_mode: str = TONIC_MODE_ROOT,
                      boundary_cents: Optional[float] = None,
                      period_priority: float = 0.0,
                      period_max_error_cents: Optional[float] = None) -> float:
    """
    Scores a genome against the interval targets. Lower is better.

    Args:
        genes: (period_cents, generator_cents).
        targets: Normalized interval targets.
        scale_size: Number of notes N (>= 2).
        tonic_mode: "root" measures every target from the tonic; "degree" from
                    the target's own degree; "all" averages over every tonic.
        boundary_cents: When given, deviations of the period from it are penalised
                        with period_priority * deviation^2.
        period_priority: Weight of the period deviation penalty.
        period_max_error_cents: Hard cap on the period deviation.

    Returns:
        float: Sum of priority-weighted squared errors, or inf when any hard cap
               is exceeded.
    """
    period_cents, generator_cents = genes
    if scale_size < 2:
        raise ValueError(f"Scale size must be at least 2 to place an interval, got {scale_size}")
    notes = scale_cents(period_cents, generator_cents, scale_size)

    total = 0.0
    for target in targets:
        target_cents = TuningUtils.ratio_to_cents(target["n"], target["d"])
        step = target_step(target, period_cents, scale_size)
        hard_cap = target.get("max_error_cents")
        tonics = _tonics_for(target, scale_size, tonic_mode)

        contribution = 0.0
        for tonic in tonics:
            _, error = _interval_error(notes, tonic, step, target_cents, period_cents)
            if hard_cap is not None and abs(error) > hard_cap:
                return DISQUALIFIED
            contribution += target["priority"] * max(0.0, abs(error)) ** 2
        total += contribution / len(tonics)

    if boundary_cents is not None:
        deviation = period_cents - boundary_cents
        if period_max_error_cents is not None and abs(deviation) > period_max_error_cents:
            return DISQUALIFIED
        total += period_priority * deviation ** 2

    return total


def evaluate_interval_errors(genes: Genome,
                             targets: Sequence[IntervalTarget],
                             scale_size: int,
                             tonic_mode: str = TONIC_MODE_ROOT,
                             base_frequency_hz: float = DEFAULT_BASE_FREQUENCY_HZ) -> List[IntervalError]:
    """
    Diagnostic view of a genome: one IntervalError row per target. In "degree"
    mode the row is measured from the target's degree, otherwise from the tonic;
    `degree` is always the target's own degree and `tonic` the note measured from.
    `beat_hz` is the beat rate |n*f_low - d*f_high| of the realised interval
    with the tonic at `base_frequency_hz`.
    """
    period_cents, generator_cents = genes
    notes = scale_cents(period_cents, generator_cents, scale_size)
    rows: List[IntervalError] = []
    for target in targets:
        target_cents = TuningUtils.ratio_to_cents(target["n"], target["d"])
        step = target_step(target, period_cents, scale_size)
        tonic = _tonics_for(target, scale_size, tonic_mode)[0] if tonic_mode == TONIC_MODE_DEGREE else 0
        actual, error = _interval_error(notes, tonic, step, target_cents, period_cents)

        low_hz = TuningUtils.cents_to_frequency(notes[tonic], base_frequency_hz)
        high_hz = TuningUtils.cents_to_frequency(notes[tonic] + actual, base_frequency_hz)
        hard_cap = target.get("max_error_cents")
        rows.append({
            "target_id": target["id"],
            "label": f"{target['n']}/{target['d']}",
            "degree": target["degree"],
            "tonic": tonic,
            "step": step,
            "target_cents": target_cents,
            "actual_cents": actual,
            "error_cents": error,
            "tolerance_cents": target["tolerance_cents"],
            "within_tolerance": abs(error) <= target["tolerance_cents"],
            "exceeds_hard_cap": hard_cap is not None and abs(error) > hard_cap,
            "priority": target["priority"],
            "beat_hz": abs(target["n"] * low_hz - target["d"] * high_hz),
        })
    return rows


def summarize_errors(rows: Sequence[IntervalError]) -> Tuple[float, float]:
    """(max_abs_error_cents, priority-weighted rms_error_cents) over the rows."""
    sum_sq = 0.0
    sum_w = 0.0
    max_abs = 0.0
    for row in rows:
        weight = row["priority"]
        sum_sq += weight * row["error_cents"] ** 2
        sum_w += weight
        max_abs = max(max_abs, abs(row["error_cents"]))
    return max_abs, math.sqrt(sum_sq / max(1e-9, sum_w))


class GeneticAlgorithm:
    """
    Evolves a population of rank-2 genomes towards the lowest fitness.

    Each generation keeps the `elite_count` best genomes unchanged (so the best
    fitness never gets worse), then fills the population with children made by
    tournament selection, blend crossover and gaussian mutation. The search
    stops at `max_generations`, or earlier once the best fitness has not
    improved for `plateau_generations` generations.
    """

    def __init__(self, targets: Sequence[IntervalTarget], scale_size: int,
                 config: Optional[SearchConfig] = None, verbose: bool = False):
        """
        Initializes the GeneticAlgorithm and its first population.

        Args:
            targets: Normalized interval targets (see IntervalTargetStore).
            scale_size: Number of notes N of the scale being tuned (>= 2).
            config: Optional SearchConfig overrides.
            verbose: Print one progress line per generation.
        """
        if int(scale_size) < 2:
            raise ValueError(f"Scale size must be at least 2 to search, got {scale_size}")
        self.targets: List[IntervalTarget] = [dict(t) for t in targets]  # type: ignore[misc]
        self.scale_size: int = int(scale_size)
        self.config: Dict[str, Any] = resolve_search_config(config)
        self.verbose: bool = verbose
        self.rng: random.Random = random.Random(self.config["seed"])

        self.genome_generator: GenomeGenerator = GenomeGenerator(
            self.config["boundary_cents"],
            period_window_cents(self.config["period_tolerance_cents"], self.config["period_max_error_cents"]),
            self.rng
        )

        self.best_fitness_history: List[float] = []
        self.generations_run: int = 0
        self._stale_generations: int = 0

        self.population: List[Individual] = self._initialize_population()
        self.best_individual: Individual = self.population[0]

    def _evaluate(self, genes: Genome) -> Individual:
        fitness = calculate_fitness(
            genes, self.targets, self.scale_size,
            tonic_mode=self.config["tonic_mode"],
            boundary_cents=self.config["boundary_cents"],
            period_priority=self.config["period_priority"],
            period_max_error_cents=self.config["period_max_error_cents"]
        )
        return Individual(genes=genes, fitness=fitness)

    def _initialize_population(self) -> List[Individual]:
        """
        A quarter of the population starts on equal-division generators of the
        boundary, the rest is uniformly random. The result is sorted best first.
        """
        size = self.config["population_size"]
        genomes = self.genome_generator.equal_temperament_seeds(self.scale_size, size // 4)
        while len(genomes) < size:
            genomes.append(self.genome_generator.generate_genome())
        population = [self._evaluate(g) for g in genomes]
        population.sort(key=lambda ind: ind.fitness)
        return population

    def _select_parent(self) -> Individual:
        """Tournament selection: the lowest fitness among a random sample wins."""
        contestants = self.rng.sample(self.population, self.config["tournament_size"])
        return min(contestants, key=lambda ind: ind.fitness)

    def _make_child(self) -> Individual:
        parent1 = self._select_parent()
        parent2 = self._select_parent()
        if self.rng.random() < self.config["crossover_rate"]:
            genes = self.genome_generator.crossover_genomes(parent1.genes, parent2.genes)
        else:
            genes = parent1.genes
        genes = self.genome_generator.mutate_genome(genes, self.config["mutation_rate"])
        return self._evaluate(genes)

    def run_one_generation(self) -> List[Individual]:
        """
        Executes one generation: copy the elites, breed the rest, sort the new
        population by fitness and update the best-seen individual.

        Returns:
            List[Individual]: The new population, best first.
        """
        size = self.config["population_size"]
        next_generation = list(self.population[:self.config["elite_count"]])
        while len(next_generation) < size:
            next_generation.append(self._make_child())
        next_generation.sort(key=lambda ind: ind.fitness)
        self.population = next_generation

        previous_best = self.best_individual.fitness
        if self.population[0].fitness < previous_best:
            self.best_individual = self.population[0]
        if previous_best - self.best_individual.fitness > MIN_IMPROVEMENT or (
                math.isinf(previous_best) and not math.isinf(self.best_individual.fitness)):
            self._stale_generations = 0
        else:
            self._stale_generations += 1

        self.generations_run += 1
        self.best_fitness_history.append(self.best_individual.fitness)
        if self.verbose:
            period, generator = self.best_individual.genes
            print(f"Generation {self.generations_run}: best fitness {self.best_individual.fitness:.6f} "
                  f"(period {period:.4f}c, generator {generator:.4f}c)")
        return self.population

    def run(self) -> Individual:
        """Evolves until the generation cap or the improvement plateau is reached."""
        while self.generations_run < self.config["max_generations"]:
            self.run_one_generation()
            if self._stale_generations >= self.config["plateau_generations"]:
                break
        return self.best_individual

    def to_solver_output(self, individual: Optional[Individual] = None) -> SolverOutput:
        """Expands a genome (the best one by default) into a full SolverOutput."""
        chosen = individual if individual is not None else self.best_individual
        period_cents, generator_cents = chosen.genes
        output = build_scale(period_cents, generator_cents, self.scale_size,
                             include_names=self.config["include_names"],
                             base_frequency_hz=self.config["base_frequency_hz"])
        rows = evaluate_interval_errors(chosen.genes, self.targets, self.scale_size,
                                        tonic_mode=self.config["tonic_mode"],
                                        base_frequency_hz=self.config["base_frequency_hz"])
        max_abs, rms = summarize_errors(rows)
        stretch = period_cents - self.config["boundary_cents"]
        output.update({
            "period_cents": period_cents,
            "generator_cents": generator_cents,
            "fitness": chosen.fitness,
            "generations": self.generations_run,
            "intervals": rows,
            "max_abs_error_cents": max_abs,
            "rms_error_cents": rms,
            "period_stretch_cents": stretch,
            "period_stretch_warning": abs(stretch) > PERIOD_STRETCH_WARNING_CENTS,
        })
        return output


def search(targets: Sequence[IntervalTarget], scale_size: int,
           config: Optional[SearchConfig] = None, verbose: bool = False) -> SolverOutput:
    """
    Runs a full genetic search and returns the best genome as a SolverOutput.

    Args:
        targets: Normalized interval targets.
        scale_size: Number of notes N (>= 2).
        config: Optional SearchConfig overrides (population, generation cap, seed, ...).
        verbose: Print per-generation progress.

    Returns:
        SolverOutput: Notes of the best scale plus period, generator, fitness and
                      the per-target error report.
    """
    ga_instance = GeneticAlgorithm(targets, scale_size, config, verbose=verbose)
    ga_instance.run()
    return ga_instance.to_solver_output()
