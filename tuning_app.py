# tuning_app.py
"""
Module: tuning_app.py

Purpose:
This module defines the Gradio-based web user interface for the Temperament
Evolver application. It provides interactive components that allow users to:
- Choose the boundary ratio (the equivalence interval, 2/1 by default) and the
  number of notes of the scale.
- Enter just-intonation interval targets with a degree, a tolerance, a priority
  and an optional hard cap, and remove them again.
- Run the genetic search and inspect the resulting notes, the per-target errors
  and the Scala-style pitch table.
- Draw the Plomp-Levelt dissonance curve of a harmonic timbre and list its
  consonant minima.

It interfaces with `tuning_backend.py` for every operation. The session state
(the interval target store and the last solution) is held in `gr.State`
components; nothing is kept in module globals.

Design Philosophy:
Callbacks are plain functions that take state and widget values and return the
new state plus display values, so they can be exercised without a running server.
"""

# Standard library imports
from typing import Any, List, Optional, Tuple

# Third-party library imports
import gradio as gr

# Local application/library specific imports
import tuning_backend
from temperament_components.tuning_constants import (
    SearchConfig, SolverOutput, TONIC_MODES, TONIC_MODE_ROOT,
    POPULATION_SIZE, MAX_GENERATIONS, DEFAULT_SCALE_SIZE,
    DEFAULT_TOLERANCE_CENTS, DEFAULT_PRIORITY,
    DEFAULT_PARTIAL_COUNT, DEFAULT_PARTIAL_ROLLOFF, DEFAULT_CURVE_STEPS, DEFAULT_BASE_FREQUENCY_HZ
)
from temperament_components.interval_targets import IntervalTargetStore

TARGET_TABLE_HEADERS = ["id", "ratio", "degree", "tolerance (c)", "priority", "hard cap (c)"]
NOTE_TABLE_HEADERS = ["degree", "name", "cents", "Hz", "nearest pitch"]
ERROR_TABLE_HEADERS = ["ratio", "step", "target (c)", "actual (c)", "error (c)", "ok", "beats (Hz)"]
MINIMA_TABLE_HEADERS = ["ratio", "cents", "approx.", "dissonance"]


# --- Helpers ---

def new_store() -> IntervalTargetStore:
    return IntervalTargetStore(DEFAULT_SCALE_SIZE)


def target_rows(store: IntervalTargetStore) -> List[List[Any]]:
    rows = []
    for target in store.targets:
        cap = target.get("max_error_cents")
        rows.append([
            target["id"],
            f"{target['n']}/{target['d']}",
            target["degree"],
            target["tolerance_cents"],
            target["priority"],
            "" if cap is None else cap,
        ])
    return rows


def target_choices(store: IntervalTargetStore) -> List[str]:
    return [target["id"] for target in store.targets]


def _int_or_default(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return default


# --- Gradio Interface Callback Functions ---

def handle_set_boundary(store: Optional[IntervalTargetStore], numerator: Any, denominator: Any
                        ) -> Tuple[IntervalTargetStore, List[List[Any]], str]:
    """
    Sets the boundary ratio. A degenerate ratio is corrected by the store, and
    every target is folded into the new boundary.

    Returns:
        (store, target table rows, status message)
    """
    store = store if store is not None else new_store()
    try:
        boundary = store.set_boundary_ratio(float(numerator), float(denominator))
    except (TypeError, ValueError, OverflowError) as e:
        print(f"Warning (handle_set_boundary): Invalid boundary {numerator}/{denominator}: {e}")
        return store, target_rows(store), f"Invalid boundary: {e}"
    status = (f"Boundary set to {boundary['numerator']}/{boundary['denominator']} "
              f"({store.boundary_cents:.3f} cents).")
    return store, target_rows(store), status


def handle_set_scale_size(store: Optional[IntervalTargetStore], scale_size: Any
                          ) -> Tuple[IntervalTargetStore, List[List[Any]], str]:
    """Changes the number of notes; target degrees are clamped into range."""
    store = store if store is not None else new_store()
    size = _int_or_default(scale_size, store.scale_size)
    if size < 2:
        print(f"Warning (handle_set_scale_size): Scale size {scale_size} is below 2.")
        return store, target_rows(store), "A scale needs at least 2 notes."
    store.set_scale_size(size)
    return store, target_rows(store), f"Scale size set to {size}."


def handle_add_interval(store: Optional[IntervalTargetStore], ratio_text: str, degree: Any,
                        tolerance_cents: Any, priority: Any, hard_cap_text: Any
                        ) -> Tuple[IntervalTargetStore, List[List[Any]], Any, str]:
    """
    Adds one interval target from the entry row.

    Returns:
        (store, target table rows, removal dropdown update, status message)
    """
    store = store if store is not None else new_store()
    try:
        tolerance = float(tolerance_cents) if tolerance_cents not in (None, "") else DEFAULT_TOLERANCE_CENTS
        weight = float(priority) if priority not in (None, "") else DEFAULT_PRIORITY
    except (TypeError, ValueError):
        print(f"Warning (handle_add_interval): Non-numeric tolerance '{tolerance_cents}' or priority '{priority}'.")
        return (store, target_rows(store), gr.update(choices=target_choices(store)),
                "Tolerance and priority must be numbers.")

    cap_text = "" if hard_cap_text is None else str(hard_cap_text)
    added = store.add_interval(ratio_text or "", _int_or_default(degree, 0), tolerance, weight, cap_text)
    if added is None:
        status = f"Rejected ratio '{ratio_text}'. Enter it as n/d, e.g. 5/4."
    else:
        status = f"Added {added['n']}/{added['d']} on degree {added['degree']}."
    return store, target_rows(store), gr.update(choices=target_choices(store), value=None), status


def handle_remove_interval(store: Optional[IntervalTargetStore], target_id: Optional[str]
                           ) -> Tuple[IntervalTargetStore, List[List[Any]], Any, str]:
    """Removes the selected target; an unknown or empty selection changes nothing."""
    store = store if store is not None else new_store()
    if target_id:
        store.remove_interval(target_id)
        status = f"Removed {target_id}."
    else:
        status = "No interval selected."
    return store, target_rows(store), gr.update(choices=target_choices(store), value=None), status


def handle_solve(store: Optional[IntervalTargetStore], population_size: Any, max_generations: Any,
                 seed: Any, tonic_mode: str, scale_name: str
                 ) -> Tuple[Optional[SolverOutput], List[List[Any]], List[List[Any]], str, str]:
    """
    Runs the genetic search for the current targets.

    Returns:
        (solution, note table rows, error table rows, Scala pitch text, status message)
    """
    store = store if store is not None else new_store()
    if store.scale_size < 2:
        return None, [], [], "", "A scale needs at least 2 notes."

    config: SearchConfig = {
        "population_size": _int_or_default(population_size, POPULATION_SIZE),
        "max_generations": _int_or_default(max_generations, MAX_GENERATIONS),
        "tonic_mode": tonic_mode if tonic_mode in TONIC_MODES else TONIC_MODE_ROOT,
    }
    if seed not in (None, ""):
        config["seed"] = _int_or_default(seed, 0)

    solution = tuning_backend.solve_temperament(store, config)
    scala = tuning_backend.export_solution_to_scala(solution, scale_name or "Rank-2 temperament")
    scala_text = "\n".join(f"{pitch:.5f}" for pitch in scala["pitches"])

    status = (f"Period {solution['period_cents']:.4f} c, generator {solution['generator_cents']:.4f} c "
              f"after {solution['generations']} generations. Fitness {solution['fitness']:.6g}, "
              f"max error {solution['max_abs_error_cents']:.3f} c, RMS {solution['rms_error_cents']:.3f} c.")
    if solution["period_stretch_warning"]:
        status += f" Warning: period is stretched by {solution['period_stretch_cents']:+.2f} c."
    return (solution, tuning_backend.format_solution_table(solution),
            tuning_backend.format_error_table(solution), scala_text, status)


def handle_dissonance_curve(f0: Any, n_partials: Any, rolloff: Any, end_ratio: Any, steps: Any
                            ) -> Tuple[Optional[str], List[List[Any]], str]:
    """
    Computes and draws the dissonance curve of a harmonic timbre against itself.

    Returns:
        (PNG path or None, minima table rows, status message)
    """
    try:
        curve, minima = tuning_backend.compute_dissonance_curve(
            float(f0), _int_or_default(n_partials, DEFAULT_PARTIAL_COUNT), float(rolloff),
            1.0, float(end_ratio), _int_or_default(steps, DEFAULT_CURVE_STEPS)
        )
    except (TypeError, ValueError) as e:
        print(f"Warning (handle_dissonance_curve): Invalid curve parameters: {e}")
        return None, [], f"Invalid curve parameters: {e}"

    image_path = tuning_backend.save_dissonance_curve_plot(curve, minima)
    rows = [[round(m["ratio"], 5), round(m["cents"], 2), m["approx_ratio"], round(m["dissonance"], 5)]
            for m in minima]
    status = f"{len(minima)} local minima between 1 and {float(end_ratio):g}."
    if image_path is None:
        status += " The plot could not be drawn."
    return image_path, rows, status


# --- Gradio UI Layout Definition ---

with gr.Blocks(theme=gr.themes.Soft(primary_hue=gr.themes.colors.blue)) as demo:
    gr.Markdown("# Temperament Evolver")
    gr.Markdown(
        "Enter just intervals you want in tune, then let the genetic algorithm find the "
        "period and generator of the rank-2 temperament that fits them best."
    )

    store_state = gr.State(new_store())
    solution_state = gr.State(None)

    with gr.Row():
        with gr.Column(scale=1):
            gr.Markdown("### 1. Scale")
            with gr.Row():
                boundary_num_input = gr.Number(label="Boundary numerator", value=2, precision=0)
                boundary_den_input = gr.Number(label="Boundary denominator", value=1, precision=0)
            set_boundary_button = gr.Button("Set boundary")
            scale_size_input = gr.Number(label="Notes per period", value=DEFAULT_SCALE_SIZE, precision=0)
        with gr.Column(scale=2):
            gr.Markdown("### Status")
            status_display = gr.Textbox(label="Messages", value="Ready.", interactive=False, lines=3)

    gr.Markdown("---")
    gr.Markdown("### 2. Interval Targets")
    with gr.Row():
        ratio_input = gr.Textbox(label="Ratio (n/d)", placeholder="5/4")
        degree_input = gr.Number(label="Degree", value=0, precision=0)
        tolerance_input = gr.Number(label="Tolerance (cents)", value=DEFAULT_TOLERANCE_CENTS)
        priority_input = gr.Number(label="Priority", value=DEFAULT_PRIORITY)
        hard_cap_input = gr.Textbox(label="Hard cap (cents, optional)", value="")
    add_interval_button = gr.Button("Add interval")
    target_table = gr.Dataframe(headers=TARGET_TABLE_HEADERS, interactive=False)
    with gr.Row():
        remove_selector = gr.Dropdown(label="Interval to remove", choices=[], value=None)
        remove_interval_button = gr.Button("Remove interval")

    gr.Markdown("---")
    gr.Markdown("### 3. Solve")
    with gr.Row():
        population_input = gr.Number(label="Population size", value=POPULATION_SIZE, precision=0)
        generations_input = gr.Number(label="Max generations", value=MAX_GENERATIONS, precision=0)
        seed_input = gr.Textbox(label="Random seed (optional)", value="")
        tonic_mode_input = gr.Dropdown(label="Measure targets from", choices=list(TONIC_MODES),
                                       value=TONIC_MODE_ROOT)
        scale_name_input = gr.Textbox(label="Scale name", value="Rank-2 temperament")
    solve_button = gr.Button("Solve", variant="primary")
    note_table = gr.Dataframe(headers=NOTE_TABLE_HEADERS, interactive=False)
    error_table = gr.Dataframe(headers=ERROR_TABLE_HEADERS, interactive=False)
    scala_display = gr.Textbox(label="Scala pitches (cents)", lines=8, interactive=False)

    gr.Markdown("---")
    gr.Markdown("### 4. Dissonance Curve")
    with gr.Row():
        f0_input = gr.Number(label="Fundamental (Hz)", value=DEFAULT_BASE_FREQUENCY_HZ)
        partials_input = gr.Number(label="Partials", value=DEFAULT_PARTIAL_COUNT, precision=0)
        rolloff_input = gr.Number(label="Amplitude rolloff", value=DEFAULT_PARTIAL_ROLLOFF)
        end_ratio_input = gr.Number(label="Sweep up to ratio", value=2.0)
        steps_input = gr.Number(label="Steps", value=DEFAULT_CURVE_STEPS, precision=0)
    curve_button = gr.Button("Draw dissonance curve")
    curve_image = gr.Image(label="Dissonance curve", type="filepath", interactive=False)
    minima_table = gr.Dataframe(headers=MINIMA_TABLE_HEADERS, interactive=False)

    # --- Event Handlers ---
    set_boundary_button.click(
        fn=handle_set_boundary,
        inputs=[store_state, boundary_num_input, boundary_den_input],
        outputs=[store_state, target_table, status_display]
    )
    scale_size_input.change(
        fn=handle_set_scale_size,
        inputs=[store_state, scale_size_input],
        outputs=[store_state, target_table, status_display]
    )
    add_interval_button.click(
        fn=handle_add_interval,
        inputs=[store_state, ratio_input, degree_input, tolerance_input, priority_input, hard_cap_input],
        outputs=[store_state, target_table, remove_selector, status_display]
    )
    remove_interval_button.click(
        fn=handle_remove_interval,
        inputs=[store_state, remove_selector],
        outputs=[store_state, target_table, remove_selector, status_display]
    )
    solve_button.click(
        fn=handle_solve,
        inputs=[store_state, population_input, generations_input, seed_input, tonic_mode_input, scale_name_input],
        outputs=[solution_state, note_table, error_table, scala_display, status_display]
    )
    curve_button.click(
        fn=handle_dissonance_curve,
        inputs=[f0_input, partials_input, rolloff_input, end_ratio_input, steps_input],
        outputs=[curve_image, minima_table, status_display]
    )


if __name__ == "__main__":
    print("Launching Temperament Evolver Gradio App...")
    demo.launch(debug=True, inbrowser=True)
