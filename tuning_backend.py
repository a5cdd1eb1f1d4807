# tuning_backend.py
"""
Module: tuning_backend.py

Purpose:
This module is the service layer of the Temperament Evolver application. It sits
between the user interface (the Gradio app) and the numeric core in
`temperament_components`, and is the only entry point the UI needs.

Key Responsibilities:
- Temperament search: runs the genetic algorithm over the targets, scale size and
  boundary held by an `IntervalTargetStore`, and returns a full `SolverOutput`.
- Scala export: turns a solution into a Scala-style pitch table.
- Dissonance curves: sweeps a harmonic timbre against itself, labels the consonant
  minima and renders the curve to a PNG image with matplotlib.
- Table formatting: flattens solutions into row lists for UI tables.

Design Philosophy:
All state is passed in explicitly; nothing here is global. Heavy side-effecting
steps (writing images) print an `Error (...)` line and return None on failure
instead of raising into the UI.
"""

# Standard library imports
import os
import tempfile  # For the temporary PNG files handed to the UI
from typing import Any, List, Optional, Tuple

# Third-party library imports for plotting
import matplotlib
matplotlib.use("Agg")  # Headless backend; figures are only ever written to files.
import matplotlib.pyplot as plt

# Local application/library specific imports
from temperament_components.tuning_constants import (
    DissonanceCurveData, DissonanceMinimum, ScalaExport, SearchConfig, SolverOutput,
    DEFAULT_PARTIAL_COUNT, DEFAULT_PARTIAL_ROLLOFF, DEFAULT_CURVE_STEPS, DEFAULT_BASE_FREQUENCY_HZ
)
from temperament_components.interval_targets import IntervalTargetStore
from temperament_components.scale_builder import export_rank2_to_scala
from temperament_components.genetic_algorithm_core import search
from temperament_components.dissonance_model import (
    harmonic_spectrum, generate_dissonance_curve, label_minima
)


def solve_temperament(store: IntervalTargetStore,
                      config: Optional[SearchConfig] = None,
                      verbose: bool = False) -> SolverOutput:
    """
    Runs the temperament search for everything held by the store.

    Args:
        store (IntervalTargetStore): Targets, scale size and boundary ratio.
        config (Optional[SearchConfig]): GA overrides. The boundary always comes
                                         from the store.
        verbose (bool): Print per-generation progress.

    Returns:
        SolverOutput: The best scale found, with its error report.
    """
    merged: SearchConfig = dict(config) if config else {}  # type: ignore[assignment]
    merged["boundary_cents"] = store.boundary_cents
    if not len(store):
        print("Warning (solve_temperament): No interval targets. Only the period constraint guides the search.")
    return search(store.targets, store.scale_size, merged, verbose=verbose)


def export_solution_to_scala(solution: SolverOutput, name: str) -> ScalaExport:
    """Scala-style pitch table for a solved temperament."""
    genes = (solution["period_cents"], solution["generator_cents"])
    return export_rank2_to_scala(genes, solution["input"]["scale_size"], name)


def compute_dissonance_curve(f0: float = DEFAULT_BASE_FREQUENCY_HZ,
                             n_partials: int = DEFAULT_PARTIAL_COUNT,
                             rolloff: float = DEFAULT_PARTIAL_ROLLOFF,
                             start_ratio: float = 1.0,
                             end_ratio: float = 2.0,
                             steps: int = DEFAULT_CURVE_STEPS
                             ) -> Tuple[DissonanceCurveData, List[DissonanceMinimum]]:
    """
    Sweeps a harmonic timbre on `f0` against a transposed copy of itself.

    Returns:
        Tuple[DissonanceCurveData, List[DissonanceMinimum]]: The curve and its
        labelled interior minima.
    """
    spectrum = harmonic_spectrum(f0, n_partials, rolloff)
    curve = generate_dissonance_curve(spectrum, spectrum, start_ratio, end_ratio, steps)
    return curve, label_minima(curve)


def save_dissonance_curve_plot(curve: DissonanceCurveData,
                               minima: Optional[List[DissonanceMinimum]] = None,
                               path: Optional[str] = None) -> Optional[str]:
    """
    Draws the dissonance curve (minima marked and labelled) into a PNG file.

    Args:
        curve (DissonanceCurveData): The curve to draw.
        minima (Optional[List[DissonanceMinimum]]): Minima to mark; none when omitted.
        path (Optional[str]): Output file. A temporary file is created when omitted;
                              the caller is responsible for deleting it.

    Returns:
        Optional[str]: The PNG path if successful, None otherwise.
    """
    figure = None
    try:
        if path is None:
            with tempfile.NamedTemporaryFile(suffix=".png", prefix="dissonance_curve_",
                                             delete=False) as tmp_png_file:
                path = tmp_png_file.name

        figure, axes = plt.subplots(figsize=(10, 4))
        axes.plot(curve["ratios"], curve["dissonance"], color="tab:blue", linewidth=1.2)
        for minimum in minima or []:
            axes.plot(minimum["ratio"], minimum["dissonance"], "o", color="tab:red", markersize=4)
            axes.annotate(minimum["approx_ratio"], (minimum["ratio"], minimum["dissonance"]),
                          textcoords="offset points", xytext=(0, -12), ha="center", fontsize=7)
        axes.set_xlabel("Frequency ratio")
        axes.set_ylabel("Sensory dissonance")
        axes.set_title("Plomp-Levelt dissonance curve")
        figure.tight_layout()
        figure.savefig(path)

        if os.path.exists(path) and os.path.getsize(path) > 0:
            return path
        print(f"Error (save_dissonance_curve_plot): Plot file '{path}' was not created or is empty.")
        return None
    except Exception as e:
        print(f"Error (save_dissonance_curve_plot): Failed to draw dissonance curve: {e}")
        return None
    finally:
        if figure is not None:
            plt.close(figure)


def format_solution_table(solution: SolverOutput) -> List[List[Any]]:
    """
    Rows for the note table: [degree, name, cents, Hz, nearest pitch].
    The name column is blank when the solution carries no chromatic names.
    """
    rows: List[List[Any]] = []
    for note_info in solution["notes"]:
        rows.append([
            note_info.get("degree"),
            note_info.get("name", ""),
            round(note_info["cents_from_root"], 3),
            round(note_info.get("freq_hz", 0.0), 3),
            note_info.get("pitch_label", ""),
        ])
    return rows


def format_error_table(solution: SolverOutput) -> List[List[Any]]:
    """Rows for the per-target error table: [ratio, step, target, actual, error, ok, beat Hz]."""
    rows: List[List[Any]] = []
    for row in solution.get("intervals", []):
        rows.append([
            row["label"],
            row["step"],
            round(row["target_cents"], 3),
            round(row["actual_cents"], 3),
            round(row["error_cents"], 3),
            "yes" if row["within_tolerance"] and not row["exceeds_hard_cap"] else "no",
            round(row["beat_hz"], 3),
        ])
    return rows
