# temperament_components/genome_generator.py
"""
Module: genome_generator.py

Purpose:
Creates and varies rank-2 genomes (period_cents, generator_cents) for the
genetic search. Genes are kept inside their bounds at all times:
- the period stays within a window around the boundary interval, so a tuning
  may be stretched or compressed slightly but never drifts to another interval;
- the generator lives on the circle [0, period). Mutation and crossover treat
  it circularly, so 10 cents and 1190 cents are neighbours in a 1200 cent period.
"""

import random
from typing import List, Optional

from .tuning_constants import (
    Genome,
    GENERATOR_MUTATION_SIGMA_CENTS, PERIOD_MUTATION_SIGMA_CENTS, RANDOM_RESET_CHANCE
)
from .tuning_utils import TuningUtils


class GenomeGenerator:
    """
    Produces random genomes and applies mutation / crossover within bounds.
    All randomness comes from the `rng` passed in, so a seeded search is
    reproducible.
    """

    def __init__(self, boundary_cents: float, period_window_cents: float,
                 rng: Optional[random.Random] = None):
        """
        Args:
            boundary_cents: Cents of the boundary ratio; the centre of the period range.
            period_window_cents: Half-width of the period range (0 locks the period).
            rng: Random source; a fresh unseeded one is used when omitted.
        """
        self.boundary_cents: float = float(boundary_cents)
        self.period_window_cents: float = max(0.0, float(period_window_cents))
        self.rng: random.Random = rng if rng is not None else random.Random()
        # Never let the period collapse to (or below) zero cents.
        self.min_period_cents: float = max(1.0, self.boundary_cents - self.period_window_cents)
        self.max_period_cents: float = max(self.min_period_cents, self.boundary_cents + self.period_window_cents)

    def clamp_period(self, period_cents: float) -> float:
        return max(self.min_period_cents, min(self.max_period_cents, period_cents))

    def repair(self, period_cents: float, generator_cents: float) -> Genome:
        """Pulls a genome back inside the gene bounds."""
        period = self.clamp_period(period_cents)
        return period, TuningUtils.wrap_cents(generator_cents, period)

    def generate_genome(self) -> Genome:
        """Uniformly random period inside the window and generator in [0, period)."""
        period = self.rng.uniform(self.min_period_cents, self.max_period_cents)
        generator = self.rng.uniform(0.0, period)
        return self.repair(period, generator)

    def equal_temperament_seeds(self, scale_size: int, limit: int) -> List[Genome]:
        """
        Genomes whose generator is k steps of N-equal division of the boundary
        (k = 1..N-1), at most `limit` of them. These give the search a few
        well-formed starting points next to the random ones.
        """
        if scale_size < 2 or limit <= 0:
            return []
        step = self.boundary_cents / scale_size
        seeds = [self.repair(self.boundary_cents, k * step) for k in range(1, scale_size)]
        self.rng.shuffle(seeds)
        return seeds[:limit]

    def mutate_genome(self, genes: Genome, mutation_rate: float) -> Genome:
        """
        Gaussian nudges on each gene with probability `mutation_rate`; a small
        share of generator mutations redraws the generator uniformly instead,
        which lets the search jump between distant chain regions.
        """
        period, generator = genes
        if self.rng.random() < mutation_rate and self.period_window_cents > 0:
            period = period + self.rng.gauss(0.0, PERIOD_MUTATION_SIGMA_CENTS)
        if self.rng.random() < mutation_rate:
            if self.rng.random() < RANDOM_RESET_CHANCE:
                generator = self.rng.uniform(0.0, period)
            else:
                generator = generator + self.rng.gauss(0.0, GENERATOR_MUTATION_SIGMA_CENTS)
        return self.repair(period, generator)

    def crossover_genomes(self, parent1: Genome, parent2: Genome) -> Genome:
        """
        Blend crossover. The period is a random convex mix of the parents'; the
        generator moves from parent1 towards parent2 along the shorter arc.
        """
        weight = self.rng.random()
        period = parent1[0] + weight * (parent2[0] - parent1[0])
        weight = self.rng.random()
        arc = TuningUtils.circular_diff(parent2[1], parent1[1], period)
        generator = parent1[1] + weight * arc
        return self.repair(period, generator)
