# temperament_components/__init__.py

"""
Temperament Optimizer Components Package

This package contains the numeric core of a rank-2 temperament optimizer: a
genetic algorithm that searches for the period and generator whose chain of
stacked generators best approximates a set of just-intonation interval targets.
It includes:
- tuning_constants: Type definitions (IntervalTarget, Individual, SolverOutput, ...)
                    and every tunable constant (GA defaults, Plomp-Levelt constants).
- tuning_utils: Ratio normalization into the boundary interval, ratio text parsing,
                cents arithmetic and pitch labelling.
- interval_targets: The editable store of interval targets, boundary and scale size.
- scale_builder: Expansion of a genome into scale notes and a Scala-style pitch table.
- genome_generator: Random genome creation, mutation and crossover within gene bounds.
- genetic_algorithm_core: Fitness evaluation and the GeneticAlgorithm search loop.
- dissonance_model: Plomp-Levelt sensory dissonance, dissonance curves and their minima.
"""

# The service layer (tuning_backend.py) imports directly from the submodules,
# e.g. from temperament_components.genetic_algorithm_core import search.

__version__ = "1.0.0"
