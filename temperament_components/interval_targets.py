# temperament_components/interval_targets.py
"""
Module: interval_targets.py

Purpose:
Owns the editable list of just-intonation interval targets together with the
boundary ratio (equivalence interval) and the current scale size. Every edit
keeps two invariants: each target ratio lies in [1, boundary) and each
degree lies in [0, N-1].
"""

import math
import uuid
from typing import Any, Dict, List, Optional, Union

from .tuning_constants import (
    BoundaryRatio, IntervalTarget,
    DEFAULT_BOUNDARY, DEFAULT_SCALE_SIZE, DEFAULT_TOLERANCE_CENTS, DEFAULT_PRIORITY,
    MIN_TOLERANCE_CENTS, MIN_HARD_CAP_CENTS
)
from .tuning_utils import TuningUtils, InvalidRatio, InvalidRatioSyntax


def _clamp_degree(degree: Any, scale_size: int) -> int:
    try:
        value = TuningUtils.round_half_up(float(degree))
    except (TypeError, ValueError, OverflowError):
        value = 0
    return max(0, min(scale_size - 1, value))


def _parse_hard_cap(max_error_text: Union[str, float, None]) -> Optional[float]:
    """Blank or unparseable text means 'no hard cap'."""
    if max_error_text is None:
        return None
    if isinstance(max_error_text, str):
        if max_error_text.strip() == "":
            return None
        try:
            value = float(max_error_text)
        except ValueError:
            print(f"Warning (IntervalTargetStore): Ignoring unparseable hard cap '{max_error_text}'.")
            return None
    else:
        value = float(max_error_text)
    if not math.isfinite(value):
        return None
    return max(MIN_HARD_CAP_CENTS, value)


class IntervalTargetStore:
    """
    CRUD container for IntervalTarget records.

    Unknown ids in update/remove are ignored, matching the list's role as
    UI-driven state. Boundary and scale-size changes rebuild the whole list
    before swapping it in, so callers never observe a half-updated list.
    """

    def __init__(self, scale_size: int = DEFAULT_SCALE_SIZE,
                 boundary: Optional[BoundaryRatio] = None):
        if int(scale_size) < 1:
            raise ValueError(f"Scale size must be at least 1, got {scale_size}")
        self._scale_size: int = int(scale_size)
        start = boundary if boundary is not None else DEFAULT_BOUNDARY
        self._boundary: BoundaryRatio = TuningUtils.normalize_boundary(start["numerator"], start["denominator"])
        self._targets: List[IntervalTarget] = []

    # --- Read access ---

    @property
    def targets(self) -> List[IntervalTarget]:
        """Copies of the stored targets, in insertion order."""
        return [dict(t) for t in self._targets]  # type: ignore[misc]

    @property
    def boundary(self) -> BoundaryRatio:
        return dict(self._boundary)  # type: ignore[return-value]

    @property
    def boundary_ratio(self) -> float:
        return self._boundary["numerator"] / self._boundary["denominator"]

    @property
    def boundary_cents(self) -> float:
        return TuningUtils.boundary_cents(self._boundary)

    @property
    def scale_size(self) -> int:
        return self._scale_size

    def get_interval(self, target_id: str) -> Optional[IntervalTarget]:
        for target in self._targets:
            if target["id"] == target_id:
                return dict(target)  # type: ignore[return-value]
        return None

    def __len__(self) -> int:
        return len(self._targets)

    # --- Mutations ---

    def set_boundary_ratio(self, numerator: Union[int, float], denominator: Union[int, float]) -> BoundaryRatio:
        """
        Sets the equivalence interval (a degenerate one is corrected), then
        re-normalizes every target into the new boundary and re-clamps degrees.

        Returns:
            BoundaryRatio: The boundary actually stored.
        """
        new_boundary = TuningUtils.normalize_boundary(numerator, denominator)
        rebuilt = [self._renormalized(t, new_boundary, self._scale_size) for t in self._targets]
        # Swap both only after every target was rebuilt successfully.
        self._boundary = new_boundary
        self._targets = rebuilt
        return dict(new_boundary)  # type: ignore[return-value]

    def set_scale_size(self, scale_size: int) -> None:
        """Changes N and clamps every stored degree into [0, N-1]."""
        size = int(scale_size)
        if size < 1:
            raise ValueError(f"Scale size must be at least 1, got {scale_size}")
        rebuilt = []
        for target in self._targets:
            updated = dict(target)
            updated["degree"] = _clamp_degree(target["degree"], size)
            rebuilt.append(updated)
        self._scale_size = size
        self._targets = rebuilt  # type: ignore[assignment]

    def add_interval(self, raw_ratio_text: str,
                     degree: int = 0,
                     tolerance_cents: float = DEFAULT_TOLERANCE_CENTS,
                     priority: float = DEFAULT_PRIORITY,
                     max_error_cents_text: Union[str, float, None] = "") -> Optional[IntervalTarget]:
        """
        Parses `raw_ratio_text` ('n/d'), normalizes it into the current boundary
        and appends a new target.

        Returns:
            Optional[IntervalTarget]: The stored target, or None when the text
            was rejected (the list is then left unchanged).
        """
        try:
            raw_n, raw_d = TuningUtils.parse_ratio_text(raw_ratio_text)
            normalized = TuningUtils.normalize_ratio_to_boundary(raw_n, raw_d, self._boundary)
        except (InvalidRatioSyntax, InvalidRatio) as e:
            print(f"Warning (IntervalTargetStore.add_interval): Rejected ratio {raw_ratio_text!r}: {e}")
            return None

        target: IntervalTarget = {
            "id": f"adv-{uuid.uuid4().hex[:12]}",
            "degree": _clamp_degree(degree, self._scale_size),
            "n": normalized["n"],
            "d": normalized["d"],
            "tolerance_cents": max(MIN_TOLERANCE_CENTS, float(tolerance_cents)),
            "priority": max(0.0, float(priority)),
            "max_error_cents": _parse_hard_cap(max_error_cents_text),
        }
        self._targets = self._targets + [target]
        return dict(target)  # type: ignore[return-value]

    def update_interval(self, target_id: str, patch: Dict[str, Any]) -> None:
        """
        Applies a partial update to the target with `target_id`. The id itself
        cannot be changed; ratio, degree and numeric fields are re-validated so
        the store invariants survive arbitrary patches. Unknown ids are ignored.
        """
        rebuilt: List[IntervalTarget] = []
        for target in self._targets:
            if target["id"] != target_id:
                rebuilt.append(target)
                continue
            merged = dict(target)
            merged.update({k: v for k, v in patch.items() if k != "id"})
            merged["tolerance_cents"] = max(MIN_TOLERANCE_CENTS, float(merged["tolerance_cents"]))
            merged["priority"] = max(0.0, float(merged["priority"]))
            merged["max_error_cents"] = _parse_hard_cap(merged.get("max_error_cents"))
            rebuilt.append(self._renormalized(merged, self._boundary, self._scale_size))  # type: ignore[arg-type]
        self._targets = rebuilt

    def remove_interval(self, target_id: str) -> None:
        self._targets = [t for t in self._targets if t["id"] != target_id]

    def clear(self) -> None:
        self._targets = []

    # --- Internal helpers ---

    @staticmethod
    def _renormalized(target: IntervalTarget, boundary: BoundaryRatio, scale_size: int) -> IntervalTarget:
        normalized = TuningUtils.normalize_ratio_to_boundary(target["n"], target["d"], boundary)
        updated = dict(target)
        updated["n"] = normalized["n"]
        updated["d"] = normalized["d"]
        updated["degree"] = _clamp_degree(target["degree"], scale_size)
        return updated  # type: ignore[return-value]
