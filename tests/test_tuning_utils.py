import math
import random

import pytest

from temperament_components.tuning_utils import TuningUtils, InvalidRatio, InvalidRatioSyntax

OCTAVE = {"numerator": 2, "denominator": 1}


def test_pythagorean_third_folds_down_two_octaves() -> None:
    result = TuningUtils.normalize_ratio_to_boundary(81, 16, OCTAVE)
    assert result == {"n": 81, "d": 64, "adjusted": True}


def test_ratio_inside_boundary_is_untouched() -> None:
    assert TuningUtils.normalize_ratio_to_boundary(3, 2, OCTAVE) == {"n": 3, "d": 2, "adjusted": False}
    assert TuningUtils.normalize_ratio_to_boundary(1, 1, OCTAVE) == {"n": 1, "d": 1, "adjusted": False}


def test_boundary_itself_folds_to_unison() -> None:
    assert TuningUtils.normalize_ratio_to_boundary(2, 1, OCTAVE) == {"n": 1, "d": 1, "adjusted": True}


def test_ratio_below_unison_is_raised_and_reduced() -> None:
    assert TuningUtils.normalize_ratio_to_boundary(1, 3, OCTAVE) == {"n": 4, "d": 3, "adjusted": True}
    assert TuningUtils.normalize_ratio_to_boundary(10, 8, OCTAVE) == {"n": 5, "d": 4, "adjusted": False}


def test_tritave_boundary() -> None:
    tritave = {"numerator": 3, "denominator": 1}
    assert TuningUtils.normalize_ratio_to_boundary(7, 1, tritave) == {"n": 7, "d": 3, "adjusted": True}


def test_normalized_ratios_stay_in_octave_for_random_inputs() -> None:
    rng = random.Random(1234)
    for _ in range(500):
        n = rng.randint(1, 2000)
        d = rng.randint(1, 2000)
        result = TuningUtils.normalize_ratio_to_boundary(n, d, OCTAVE)
        assert result["n"] >= result["d"]
        assert result["n"] < 2 * result["d"]
        assert math.gcd(result["n"], result["d"]) == 1


def test_normalization_gives_up_after_loop_cap() -> None:
    # 2**20 needs 20 octave reductions; only 12 are applied.
    result = TuningUtils.normalize_ratio_to_boundary(2 ** 20, 1, OCTAVE)
    assert result["adjusted"] is True
    assert result == {"n": 2 ** 8, "d": 1, "adjusted": True}


@pytest.mark.parametrize("n, d", [(0, 1), (1, 0), (-3, 2), (1.5, 2), (float("nan"), 1), (float("inf"), 1)])
def test_invalid_ratio_is_rejected(n, d) -> None:
    with pytest.raises(InvalidRatio):
        TuningUtils.normalize_ratio_to_boundary(n, d, OCTAVE)


def test_integral_floats_are_accepted() -> None:
    assert TuningUtils.normalize_ratio_to_boundary(5.0, 4.0, OCTAVE) == {"n": 5, "d": 4, "adjusted": False}


def test_degenerate_boundary_is_corrected() -> None:
    assert TuningUtils.normalize_boundary(2, 2) == {"numerator": 3, "denominator": 2}
    assert TuningUtils.normalize_boundary(1, 3) == {"numerator": 4, "denominator": 3}
    assert TuningUtils.normalize_boundary(4, 2) == {"numerator": 2, "denominator": 1}
    assert TuningUtils.normalize_boundary(0, 0) == {"numerator": 2, "denominator": 1}


def test_parse_ratio_text() -> None:
    assert TuningUtils.parse_ratio_text("5/4") == (5, 4)
    assert TuningUtils.parse_ratio_text("  81 / 64 ") == (81, 64)


@pytest.mark.parametrize("text", ["", "5", "5:4", "5/", "/4", "-5/4", "5.0/4", "five/four", "5/4/3"])
def test_parse_ratio_text_rejects_malformed_text(text) -> None:
    with pytest.raises(InvalidRatioSyntax):
        TuningUtils.parse_ratio_text(text)


def test_parse_ratio_text_rejects_non_strings() -> None:
    with pytest.raises(InvalidRatioSyntax):
        TuningUtils.parse_ratio_text(None)  # type: ignore[arg-type]


def test_ratio_to_cents() -> None:
    assert TuningUtils.ratio_to_cents(2, 1) == pytest.approx(1200.0)
    assert TuningUtils.ratio_to_cents(3, 2) == pytest.approx(701.955, abs=1e-3)
    assert TuningUtils.ratio_to_cents(5, 4) == pytest.approx(386.3137, abs=1e-3)


def test_wrap_cents_is_always_in_range() -> None:
    assert TuningUtils.wrap_cents(-100.0, 1200.0) == pytest.approx(1100.0)
    assert TuningUtils.wrap_cents(1200.0, 1200.0) == 0.0
    assert TuningUtils.wrap_cents(2500.0, 1200.0) == pytest.approx(100.0)
    tiny = TuningUtils.wrap_cents(-1e-17, 1200.0)
    assert 0.0 <= tiny < 1200.0


def test_circular_diff_takes_short_way_round() -> None:
    assert TuningUtils.circular_diff(10.0, 1190.0, 1200.0) == pytest.approx(20.0)
    assert TuningUtils.circular_diff(1190.0, 10.0, 1200.0) == pytest.approx(-20.0)
    assert TuningUtils.circular_diff(700.0, 701.955, 1200.0) == pytest.approx(-1.955)
    rng = random.Random(7)
    for _ in range(200):
        diff = TuningUtils.circular_diff(rng.uniform(-3000, 3000), rng.uniform(-3000, 3000), 1200.0)
        assert -600.0 <= diff <= 600.0


def test_round_half_up() -> None:
    assert TuningUtils.round_half_up(2.5) == 3
    assert TuningUtils.round_half_up(3.5) == 4
    assert TuningUtils.round_half_up(2.49) == 2
    assert TuningUtils.round_half_up(-2.5) == -2


def test_cents_to_frequency() -> None:
    assert TuningUtils.cents_to_frequency(1200.0, 220.0) == pytest.approx(440.0)
    assert TuningUtils.cents_to_frequency(0.0, 261.625565) == pytest.approx(261.625565)


def test_cents_to_ratio_approx() -> None:
    assert TuningUtils.cents_to_ratio_approx(701.955) == "3/2"
    assert TuningUtils.cents_to_ratio_approx(386.3137) == "5/4"
    assert TuningUtils.cents_to_ratio_approx(0.0) == "1/1"


def test_describe_cents_labels_nearest_pitch() -> None:
    assert TuningUtils.describe_cents(0.0) == "C4 +0.0c"
    assert TuningUtils.describe_cents(386.3137) == "E4 -13.7c"
    assert TuningUtils.describe_cents(1200.0) == "C5 +0.0c"


def test_describe_cents_uses_tonic_frequency() -> None:
    assert TuningUtils.describe_cents(0.0, 440.0) == "A4 +0.0c"
    assert TuningUtils.describe_cents(700.0, 440.0) == "E5 +0.0c"
    assert TuningUtils.describe_frequency(110.0) == "A2 +0.0c"
    assert TuningUtils.frequency_to_midi(261.625565) == pytest.approx(60.0, abs=1e-6)
