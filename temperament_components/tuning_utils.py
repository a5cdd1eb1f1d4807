# temperament_components/tuning_utils.py
"""
Module: tuning_utils.py

Purpose:
Utility functions shared by the temperament optimizer: exact ratio
normalization into an equivalence interval ("boundary"), parsing of ratio
text typed by the user, conversions between ratios, cents and frequencies,
circular (mod-period) arithmetic on cents, and pitch labelling via music21.

Two numeric regimes are kept apart on purpose: interval targets are exact
integer ratios (Python ints never overflow), while genomes and scales are
plain floating-point cents.
"""

import math
import re
from fractions import Fraction
from typing import Tuple, Union

from music21 import pitch as m21pitch

from .tuning_constants import (
    BoundaryRatio, NormalizedRatio,
    MAX_NORMALIZATION_LOOPS, RATIO_TEXT_PATTERN,
    DEFAULT_BASE_FREQUENCY_HZ, A4_FREQUENCY_HZ, A4_MIDI_NOTE, DEFAULT_RATIO_MAX_DENOMINATOR
)

_RATIO_TEXT_RE = re.compile(RATIO_TEXT_PATTERN)


class InvalidRatio(ValueError):
    """A numerator or denominator is non-positive, non-finite or not an integer."""


class InvalidRatioSyntax(ValueError):
    """Ratio text does not look like 'integer/integer'."""


def _positive_integer(value: Union[int, float], what: str) -> int:
    if isinstance(value, int) and not isinstance(value, bool):
        if value <= 0:
            raise InvalidRatio(f"{what} must be positive, got {value}")
        return value
    try:
        as_float = float(value)
    except (TypeError, ValueError):
        raise InvalidRatio(f"{what} must be a number, got {value!r}")
    if not math.isfinite(as_float) or as_float <= 0 or not as_float.is_integer():
        raise InvalidRatio(f"{what} must be a positive integer, got {value!r}")
    return int(as_float)


class TuningUtils:
    """
    A utility class containing static methods for ratio and cents arithmetic.
    """

    @staticmethod
    def round_half_up(x: float) -> int:
        """Rounds halves upwards (2.5 -> 3), unlike Python's round()."""
        return int(math.floor(x + 0.5))

    @staticmethod
    def normalize_boundary(numerator: Union[int, float], denominator: Union[int, float]) -> BoundaryRatio:
        """
        Coerces a user-entered boundary into a valid one: both parts at least 1,
        numerator strictly greater than denominator (a degenerate boundary gets
        numerator = denominator + 1), reduced to lowest terms.
        """
        num = max(1, TuningUtils.round_half_up(float(numerator)))
        den = max(1, TuningUtils.round_half_up(float(denominator)))
        if num <= den:
            num = den + 1
        g = math.gcd(num, den)
        return {"numerator": num // g, "denominator": den // g}

    @staticmethod
    def boundary_cents(boundary: BoundaryRatio) -> float:
        return TuningUtils.ratio_to_cents(boundary["numerator"], boundary["denominator"])

    @staticmethod
    def normalize_ratio_to_boundary(n: Union[int, float], d: Union[int, float],
                                    boundary: BoundaryRatio) -> NormalizedRatio:
        """
        Folds the ratio n/d into [1, boundary) by repeatedly dividing or
        multiplying by the boundary, then reduces it by the gcd.

        At most MAX_NORMALIZATION_LOOPS boundary multiplications are applied in
        total; a ratio that needs more is returned partially folded.

        Args:
            n: Positive integer numerator.
            d: Positive integer denominator.
            boundary: The equivalence interval, numerator > denominator >= 1.

        Returns:
            NormalizedRatio: {"n", "d", "adjusted"}; adjusted is True when any
            folding took place.

        Raises:
            InvalidRatio: if n or d is non-positive, non-finite or fractional.
        """
        nn = _positive_integer(n, "numerator")
        dd = _positive_integer(d, "denominator")
        fixed = TuningUtils.normalize_boundary(boundary["numerator"], boundary["denominator"])
        bn, bd = fixed["numerator"], fixed["denominator"]

        adjusted = False
        loops = 0
        # Exact comparisons: nn/dd >= bn/bd  <=>  nn*bd >= bn*dd
        while nn * bd >= bn * dd and loops < MAX_NORMALIZATION_LOOPS:
            nn *= bd
            dd *= bn
            adjusted = True
            loops += 1
        while nn < dd and loops < MAX_NORMALIZATION_LOOPS:
            nn *= bn
            dd *= bd
            adjusted = True
            loops += 1

        g = math.gcd(nn, dd)
        return {"n": nn // g, "d": dd // g, "adjusted": adjusted}

    @staticmethod
    def parse_ratio_text(text: str) -> Tuple[int, int]:
        """
        Parses strict 'integer/integer' text (whitespace allowed around the
        slash). No reduction or validation of the values happens here.

        Raises:
            InvalidRatioSyntax: if the text does not match.
        """
        if not isinstance(text, str):
            raise InvalidRatioSyntax(f"Ratio text must be a string, got {type(text).__name__}")
        stripped = text.strip()
        if not _RATIO_TEXT_RE.match(stripped):
            raise InvalidRatioSyntax(f"Expected 'n/d', got {text!r}")
        num_text, den_text = stripped.split("/")
        return int(num_text.strip()), int(den_text.strip())

    @staticmethod
    def ratio_to_cents(n: Union[int, float], d: Union[int, float]) -> float:
        # log2 of each part separately keeps huge integers finite.
        return 1200.0 * (math.log2(n) - math.log2(d))

    @staticmethod
    def wrap_cents(x: float, modulus: float) -> float:
        """((x mod m) + m) mod m, always in [0, m)."""
        wrapped = ((x % modulus) + modulus) % modulus
        if wrapped >= modulus:  # -1e-17 % 1200.0 == 1200.0 in floating point
            wrapped = 0.0
        return wrapped

    @staticmethod
    def circular_diff(actual: float, target: float, modulus: float) -> float:
        """Signed difference actual - target folded into [-m/2, m/2]."""
        diff = (actual - target) % modulus
        if diff > modulus / 2.0:
            diff -= modulus
        return diff

    @staticmethod
    def cents_to_frequency(cents: float, base_frequency_hz: float = DEFAULT_BASE_FREQUENCY_HZ) -> float:
        return base_frequency_hz * 2.0 ** (cents / 1200.0)

    @staticmethod
    def cents_to_ratio_approx(cents: float, max_denominator: int = DEFAULT_RATIO_MAX_DENOMINATOR) -> str:
        """Closest rational label 'n/d' with d <= max_denominator for an interval in cents."""
        approx = Fraction(2.0 ** (cents / 1200.0)).limit_denominator(max(1, int(max_denominator)))
        return f"{approx.numerator}/{approx.denominator}"

    @staticmethod
    def frequency_to_midi(frequency_hz: float) -> float:
        """Fractional MIDI note number of a frequency (A4 = 440 Hz = 69.0)."""
        return A4_MIDI_NOTE + 12.0 * math.log2(frequency_hz / A4_FREQUENCY_HZ)

    @staticmethod
    def describe_frequency(frequency_hz: float) -> str:
        """
        Labels a frequency with its nearest 12-TET pitch name and the deviation
        from it, e.g. 327.03 Hz -> "E4 -13.7c".
        """
        midi_value = TuningUtils.frequency_to_midi(frequency_hz)
        nearest = TuningUtils.round_half_up(midi_value)
        # `or 0.0` turns a rounded -0.0 into +0.0
        deviation = round((midi_value - nearest) * 100.0, 1) or 0.0
        nearest_pitch = m21pitch.Pitch(midi=nearest)
        return f"{nearest_pitch.nameWithOctave} {deviation:+.1f}c"

    @staticmethod
    def describe_cents(cents: float, base_frequency_hz: float = DEFAULT_BASE_FREQUENCY_HZ) -> str:
        """Label of the pitch `cents` above a tonic sounding at `base_frequency_hz`."""
        return TuningUtils.describe_frequency(TuningUtils.cents_to_frequency(cents, base_frequency_hz))
