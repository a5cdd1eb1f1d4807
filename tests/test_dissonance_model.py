import random

import pytest

from temperament_components.dissonance_model import (
    calculate_interval_dissonance, calculate_pair_dissonance, calculate_spectrum_dissonance,
    find_local_minima, generate_dissonance_curve, harmonic_spectrum, label_minima
)


def test_unison_has_no_dissonance() -> None:
    assert calculate_pair_dissonance(440.0, 1.0, 440.0, 1.0) == 0.0


@pytest.mark.parametrize("f1, f2, a2", [(440.0, 466.16, 1.0), (100.0, 3000.0, 0.5), (261.6, 262.0, 7.0)])
def test_silent_partial_is_inert(f1, f2, a2) -> None:
    assert calculate_pair_dissonance(f1, 0.0, f2, a2) == 0.0
    assert calculate_pair_dissonance(f1, a2, f2, 0.0) == 0.0


def test_pair_dissonance_is_symmetric_and_positive() -> None:
    forward = calculate_pair_dissonance(440.0, 1.0, 466.16, 0.5)
    backward = calculate_pair_dissonance(466.16, 0.5, 440.0, 1.0)
    assert forward == pytest.approx(backward)
    assert forward > 0.0


def test_roughness_fades_for_wide_separation() -> None:
    assert calculate_pair_dissonance(440.0, 1.0, 466.16, 1.0) > calculate_pair_dissonance(440.0, 1.0, 660.0, 1.0)
    assert calculate_pair_dissonance(440.0, 1.0, 8800.0, 1.0) < 1e-6


def test_minor_second_is_rougher_than_fifth() -> None:
    tonic = harmonic_spectrum(440.0, 6, 0.88)
    minor_second = calculate_interval_dissonance(tonic, harmonic_spectrum(466.16, 6, 0.88))
    fifth = calculate_interval_dissonance(tonic, harmonic_spectrum(660.0, 6, 0.88))
    assert minor_second > fifth


def test_minor_second_is_rougher_than_fifth_with_flat_spectra() -> None:
    tonic = harmonic_spectrum(440.0, 6, 1.0)
    assert [p["amplitude"] for p in tonic["partials"]] == [1.0] * 6
    minor_second = calculate_interval_dissonance(tonic, harmonic_spectrum(466.16, 6, 1.0))
    fifth = calculate_interval_dissonance(tonic, harmonic_spectrum(660.0, 6, 1.0))
    octave = calculate_interval_dissonance(tonic, harmonic_spectrum(880.0, 6, 1.0))
    assert minor_second > fifth > octave


def test_spectrum_dissonance_sums_all_pairs() -> None:
    spectrum = {"partials": [{"frequency": 440.0, "amplitude": 1.0},
                             {"frequency": 470.0, "amplitude": 0.8},
                             {"frequency": 500.0, "amplitude": 0.5}]}
    expected = (calculate_pair_dissonance(440.0, 1.0, 470.0, 0.8)
                + calculate_pair_dissonance(440.0, 1.0, 500.0, 0.5)
                + calculate_pair_dissonance(470.0, 0.8, 500.0, 0.5))
    assert calculate_spectrum_dissonance(spectrum) == pytest.approx(expected)


def test_degenerate_spectra() -> None:
    assert calculate_spectrum_dissonance({"partials": []}) == 0.0
    assert calculate_spectrum_dissonance({"partials": [{"frequency": 440.0, "amplitude": 1.0}]}) == 0.0


def test_zero_amplitude_partial_changes_nothing() -> None:
    plain = {"partials": [{"frequency": 440.0, "amplitude": 1.0}, {"frequency": 480.0, "amplitude": 1.0}]}
    padded = {"partials": plain["partials"] + [{"frequency": 455.0, "amplitude": 0.0}]}
    assert calculate_spectrum_dissonance(padded) == pytest.approx(calculate_spectrum_dissonance(plain))


def test_interval_dissonance_includes_both_spectra() -> None:
    low = harmonic_spectrum(220.0, 4)
    high = harmonic_spectrum(233.08, 4)
    total = calculate_interval_dissonance(low, high)
    assert total > calculate_spectrum_dissonance(low) + calculate_spectrum_dissonance(high)


def test_harmonic_spectrum() -> None:
    spectrum = harmonic_spectrum(100.0, 4, 0.5)
    assert [p["frequency"] for p in spectrum["partials"]] == [100.0, 200.0, 300.0, 400.0]
    assert [p["amplitude"] for p in spectrum["partials"]] == [1.0, 0.5, 0.25, 0.125]
    with pytest.raises(ValueError):
        harmonic_spectrum(0.0)
    with pytest.raises(ValueError):
        harmonic_spectrum(100.0, 0)


def test_curve_shape() -> None:
    spectrum = harmonic_spectrum(261.6, 6)
    curve = generate_dissonance_curve(spectrum, spectrum, 1.0, 2.0, 100)
    assert len(curve["ratios"]) == 101
    assert len(curve["dissonance"]) == 101
    assert curve["ratios"][0] == 1.0
    assert curve["ratios"][-1] == pytest.approx(2.0)
    assert all(b > a for a, b in zip(curve["ratios"], curve["ratios"][1:]))


def test_curve_rejects_bad_range() -> None:
    spectrum = harmonic_spectrum(261.6, 4)
    with pytest.raises(ValueError):
        generate_dissonance_curve(spectrum, spectrum, 1.0, 2.0, 0)
    with pytest.raises(ValueError):
        generate_dissonance_curve(spectrum, spectrum, 2.0, 1.0, 10)


def test_harmonic_curve_has_minimum_at_fifth() -> None:
    spectrum = harmonic_spectrum(261.6, 6)
    curve = generate_dissonance_curve(spectrum, spectrum, 1.0, 2.0, 600)
    minima = find_local_minima(curve)
    assert any(abs(ratio - 1.5) < 0.005 for ratio in minima)
    labels = [m["approx_ratio"] for m in label_minima(curve)]
    assert "3/2" in labels


def test_minima_are_strictly_interior() -> None:
    rng = random.Random(5)
    for length in range(3, 40):
        ratios = [1.0 + i / length for i in range(length)]
        values = [rng.choice([0.0, 0.5, 1.0, rng.random()]) for _ in range(length)]
        minima = find_local_minima({"ratios": ratios, "dissonance": values})
        assert ratios[0] not in minima
        assert ratios[-1] not in minima
        for ratio in minima:
            i = ratios.index(ratio)
            assert values[i] < values[i - 1] and values[i] < values[i + 1]


def test_monotonic_or_flat_curves_have_no_minima() -> None:
    ratios = [1.0, 1.1, 1.2, 1.3]
    assert find_local_minima({"ratios": ratios, "dissonance": [4.0, 3.0, 2.0, 1.0]}) == []
    assert find_local_minima({"ratios": ratios, "dissonance": [1.0, 1.0, 1.0, 1.0]}) == []
    assert find_local_minima({"ratios": ratios[:2], "dissonance": [1.0, 0.0]}) == []


def test_label_minima_fields() -> None:
    curve = {"ratios": [1.0, 1.25, 1.5], "dissonance": [1.0, 0.2, 0.9]}
    (minimum,) = label_minima(curve)
    assert minimum["ratio"] == 1.25
    assert minimum["cents"] == pytest.approx(386.3137, abs=1e-3)
    assert minimum["dissonance"] == 0.2
    assert minimum["approx_ratio"] == "5/4"
