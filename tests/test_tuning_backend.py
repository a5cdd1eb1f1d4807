import os

import pytest

import tuning_backend
from temperament_components.interval_targets import IntervalTargetStore

FAST = {"population_size": 20, "max_generations": 15, "seed": 4}


def _store(scale_size=12):
    store = IntervalTargetStore(scale_size=scale_size)
    store.add_interval("3/2")
    store.add_interval("5/4")
    return store


def test_solve_uses_store_boundary_and_size() -> None:
    store = IntervalTargetStore(scale_size=13)
    store.set_boundary_ratio(3, 1)
    store.add_interval("5/3")
    store.add_interval("7/3")
    solution = tuning_backend.solve_temperament(store, dict(FAST, boundary_cents=1200.0))
    assert solution["input"]["scale_size"] == 13
    assert len(solution["notes"]) == 13
    # Default window: max(5, 4 * 5 cents) around the tritave.
    assert abs(solution["period_cents"] - store.boundary_cents) <= 20.0
    assert solution["period_stretch_cents"] == pytest.approx(solution["period_cents"] - store.boundary_cents)


def test_solve_without_targets_warns(capsys) -> None:
    solution = tuning_backend.solve_temperament(IntervalTargetStore(scale_size=5), FAST)
    assert len(solution["notes"]) == 5
    assert "Warning (solve_temperament)" in capsys.readouterr().out


def test_export_solution_to_scala() -> None:
    solution = tuning_backend.solve_temperament(_store(), FAST)
    export = tuning_backend.export_solution_to_scala(solution, "Found")
    assert export["name"] == "Found"
    assert export["pitches"][-1] == solution["period_cents"]
    assert export["count"] == len(export["pitches"])


def test_format_tables() -> None:
    solution = tuning_backend.solve_temperament(_store(), FAST)
    notes = tuning_backend.format_solution_table(solution)
    assert len(notes) == 12
    assert all(len(row) == 5 for row in notes)
    assert notes[0][0] == 0
    assert notes[0][2] == 0.0
    errors = tuning_backend.format_error_table(solution)
    assert [row[0] for row in errors] == ["3/2", "5/4"]
    assert all(row[5] in ("yes", "no") for row in errors)


def test_compute_dissonance_curve() -> None:
    curve, minima = tuning_backend.compute_dissonance_curve(261.6, 6, 0.88, 1.0, 2.0, 300)
    assert len(curve["ratios"]) == 301
    assert minima
    assert all(1.0 < m["ratio"] < 2.0 for m in minima)


def test_save_plot_to_given_path(tmp_path) -> None:
    curve, minima = tuning_backend.compute_dissonance_curve(261.6, 4, 0.88, 1.0, 2.0, 50)
    target = str(tmp_path / "curve.png")
    assert tuning_backend.save_dissonance_curve_plot(curve, minima, target) == target
    assert os.path.getsize(target) > 0


def test_save_plot_to_temporary_file() -> None:
    curve, _ = tuning_backend.compute_dissonance_curve(261.6, 4, 0.88, 1.0, 2.0, 50)
    path = tuning_backend.save_dissonance_curve_plot(curve)
    try:
        assert path is not None and path.endswith(".png")
        assert os.path.getsize(path) > 0
    finally:
        if path and os.path.exists(path):
            os.unlink(path)


def test_save_plot_failure_returns_none(tmp_path, capsys) -> None:
    curve, _ = tuning_backend.compute_dissonance_curve(261.6, 4, 0.88, 1.0, 2.0, 50)
    missing_dir = str(tmp_path / "does" / "not" / "exist" / "curve.png")
    assert tuning_backend.save_dissonance_curve_plot(curve, None, missing_dir) is None
    assert "Error (save_dissonance_curve_plot)" in capsys.readouterr().out
