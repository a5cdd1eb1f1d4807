# temperament_components/dissonance_model.py
"""
Module: dissonance_model.py

Purpose:
Sensory dissonance after Plomp and Levelt, in Sethares' parametrisation.
Every pair of partials contributes a roughness that is zero at unison, peaks
near a quarter of a critical bandwidth and decays again for wide separations.
Sweeping one spectrum against another gives a dissonance curve whose local
minima are the consonant intervals of that timbre.
"""

from typing import List, Sequence

import numpy as np

from .tuning_constants import (
    Partial, Spectrum, DissonanceCurveData, DissonanceMinimum,
    B1, B2, D_STAR, S1, S2,
    DEFAULT_PARTIAL_COUNT, DEFAULT_PARTIAL_ROLLOFF, DEFAULT_CURVE_STEPS,
    MINIMA_RATIO_MAX_DENOMINATOR
)
from .tuning_utils import TuningUtils


def calculate_pair_dissonance(f1: float, a1: float, f2: float, a2: float) -> float:
    """
    Roughness of two sine partials.

    Args:
        f1, f2 (float): Frequencies in Hz.
        a1, a2 (float): Amplitudes (>= 0). A silent partial contributes nothing.

    Returns:
        float: a1 * a2 * (exp(-B1*x) - exp(-B2*x)) with x = s * |f1 - f2|.
    """
    if a1 == 0 or a2 == 0:
        return 0.0
    f_min = min(f1, f2)
    s = D_STAR / (S1 * f_min + S2)
    x = s * abs(f1 - f2)
    return float(a1 * a2 * (np.exp(-B1 * x) - np.exp(-B2 * x)))


def _partial_arrays(partials: Sequence[Partial]):
    frequencies = np.array([p["frequency"] for p in partials], dtype=float)
    amplitudes = np.array([p["amplitude"] for p in partials], dtype=float)
    return frequencies, amplitudes


def _dissonance_of_arrays(frequencies: np.ndarray, amplitudes: np.ndarray) -> float:
    """Vectorised sum of calculate_pair_dissonance over all unordered pairs."""
    if frequencies.size < 2:
        return 0.0
    i, j = np.triu_indices(frequencies.size, k=1)
    f_min = np.minimum(frequencies[i], frequencies[j])
    x = D_STAR / (S1 * f_min + S2) * np.abs(frequencies[i] - frequencies[j])
    # Silent partials multiply their pairs to exactly zero.
    pair = amplitudes[i] * amplitudes[j] * (np.exp(-B1 * x) - np.exp(-B2 * x))
    return float(np.sum(pair))


def calculate_spectrum_dissonance(spectrum: Spectrum) -> float:
    """Intrinsic roughness of one spectrum: the sum over all unordered partial pairs."""
    frequencies, amplitudes = _partial_arrays(spectrum["partials"])
    return _dissonance_of_arrays(frequencies, amplitudes)


def calculate_interval_dissonance(spectrum1: Spectrum, spectrum2: Spectrum) -> float:
    """
    Dissonance of two spectra sounding together: the roughness of the merged
    partial set, i.e. both intrinsic roughnesses plus the cross terms.
    """
    merged: Spectrum = {"partials": list(spectrum1["partials"]) + list(spectrum2["partials"])}
    return calculate_spectrum_dissonance(merged)


def harmonic_spectrum(f0: float,
                      n_partials: int = DEFAULT_PARTIAL_COUNT,
                      rolloff: float = DEFAULT_PARTIAL_ROLLOFF) -> Spectrum:
    """
    Harmonic timbre with partial k at k*f0 and amplitude rolloff**(k-1).

    Raises:
        ValueError: for a non-positive fundamental or fewer than one partial.
    """
    if not f0 > 0:
        raise ValueError(f"Fundamental must be positive, got {f0}")
    if int(n_partials) < 1:
        raise ValueError(f"At least one partial is needed, got {n_partials}")
    partials: List[Partial] = [
        {"frequency": k * float(f0), "amplitude": float(rolloff) ** (k - 1)}
        for k in range(1, int(n_partials) + 1)
    ]
    return {"partials": partials}


def generate_dissonance_curve(reference: Spectrum, sweep: Spectrum,
                              start_ratio: float = 1.0, end_ratio: float = 2.0,
                              steps: int = DEFAULT_CURVE_STEPS) -> DissonanceCurveData:
    """
    Sweeps `sweep` against the fixed `reference` spectrum.

    For i = 0..steps the sweep partials are scaled by
    ratio = start + i * (end - start) / steps (amplitudes unchanged) and the
    roughness of the merged partial set is recorded.

    Args:
        reference (Spectrum): The fixed lower tone.
        sweep (Spectrum): The transposed tone.
        start_ratio, end_ratio (float): Sweep range, start < end.
        steps (int): Number of intervals; the curve has steps + 1 points.

    Returns:
        DissonanceCurveData: Parallel `ratios` (ascending) and `dissonance` lists.
    """
    if int(steps) < 1:
        raise ValueError(f"A dissonance curve needs at least one step, got {steps}")
    if not end_ratio > start_ratio:
        raise ValueError(f"End ratio {end_ratio} must be above start ratio {start_ratio}")
    steps = int(steps)

    ref_freqs, ref_amps = _partial_arrays(reference["partials"])
    sweep_freqs, sweep_amps = _partial_arrays(sweep["partials"])
    amplitudes = np.concatenate([ref_amps, sweep_amps])

    ratios: List[float] = []
    dissonance: List[float] = []
    for i in range(steps + 1):
        ratio = start_ratio + i * (end_ratio - start_ratio) / steps
        frequencies = np.concatenate([ref_freqs, sweep_freqs * ratio])
        ratios.append(float(ratio))
        dissonance.append(_dissonance_of_arrays(frequencies, amplitudes))
    return {"ratios": ratios, "dissonance": dissonance}


def find_local_minima(curve: DissonanceCurveData) -> List[float]:
    """
    Ratios of the strict interior local minima of a curve. The first and last
    points are never reported, and a flat bottom (equal neighbours) is not a
    minimum.
    """
    return [curve["ratios"][i] for i in _minimum_indices(curve["dissonance"])]


def _minimum_indices(values: Sequence[float]) -> List[int]:
    return [
        i for i in range(1, len(values) - 1)
        if values[i] < values[i - 1] and values[i] < values[i + 1]
    ]


def label_minima(curve: DissonanceCurveData,
                 max_denominator: int = MINIMA_RATIO_MAX_DENOMINATOR) -> List[DissonanceMinimum]:
    """Interior minima with their cents value and nearest simple ratio label."""
    labelled: List[DissonanceMinimum] = []
    for i in _minimum_indices(curve["dissonance"]):
        ratio = curve["ratios"][i]
        cents = TuningUtils.ratio_to_cents(ratio, 1.0)
        labelled.append({
            "ratio": ratio,
            "cents": cents,
            "dissonance": curve["dissonance"][i],
            "approx_ratio": TuningUtils.cents_to_ratio_approx(cents, max_denominator),
        })
    return labelled
