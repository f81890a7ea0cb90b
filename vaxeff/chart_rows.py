"""
vaxeff/chart_rows.py
====================
Turn the raw per-country OWID timelines into chart-ready rows.

For every country the chart shows one pair of bars:
  LEFT   the newest positive left-hand value (e.g. % fully vaccinated),
         drawn as a negative bar and rescaled onto the right-hand axis
  RIGHT  the newest positive right-hand value (e.g. deaths per million)

The right-hand record is the "anchor": the left-hand value is taken from the
newest record that is *not newer* than the anchor, so both bars describe the
same point in time (or the left one slightly earlier).

Steps per chart:
  1. select a data point per country           → select_point()
  2. widen the shared right-axis bound         → ScaleState.widen()
  3. emit a LEFT and a RIGHT row per country   → build_chart_data()
  4. sort, then reverse or swap the first two  → swap_leading_rows()
"""

import math
from dataclasses import asdict, dataclass, replace
from typing import Iterable, Mapping

import numpy as np
import pandas as pd

from vaxeff.metrics import MetricSpec, number_fmt, to_number


# ─────────────────────────────────────────────────────────────────────────────
# Constants
# ─────────────────────────────────────────────────────────────────────────────
DEFAULT_MAX_DATE = "9999-99-99"   # sorts after every ISO date

LEFT  = 0
RIGHT = 1


# ─────────────────────────────────────────────────────────────────────────────
# Data types
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ChartRow:
    """One bar segment: the left or the right metric of one country."""

    id: str                 # display name (OWID "location"), not the ISO code
    value: float            # signed bar length in right-axis units
    type: int               # LEFT or RIGHT
    title: str | None
    date: str
    left: float             # raw metric values, used as sort keys
    right: float


def band_bound(value: float) -> float:
    """
    Round ``value`` up to the next multiple of its leading power of ten.

        5600 → 6000     85 → 90     6000 → 6000     0.42 → 0.5
    """
    if not value > 0:
        raise ValueError(f"Cannot band a non-positive value: {value!r}")
    step = 10 ** math.floor(math.log10(value))
    return math.ceil(value / step) * step


@dataclass(frozen=True)
class ScaleState:
    """Axis bounds, threaded through the country loop."""

    max_left: float = 100
    max_right: float = 1

    @property
    def left_scale(self) -> float:
        # multiply a left-hand value by this to get right-axis units
        return self.max_right / self.max_left

    def widen(self, value: float) -> "ScaleState":
        # NaN compares False and leaves the bound alone
        if not value > self.max_right:
            return self
        return replace(self, max_right=band_bound(value))


@dataclass(frozen=True)
class ChartData:
    """Rows in render order plus the final axis bounds."""

    rows: tuple
    scale: ScaleState
    spec: MetricSpec

    @property
    def x_domain(self) -> tuple[float, float]:
        return (-self.scale.max_right, self.scale.max_right)

    def format_tick(self, value: float) -> str:
        return format_axis_tick(value, self.scale, self.spec)


def format_axis_tick(value: float, scale: ScaleState, spec: MetricSpec) -> str:
    """Negative ticks are left-hand values in disguise, so undo the scaling."""
    if value < 0:
        return spec.format_left(-value * scale.max_left / scale.max_right)
    return spec.format_right(value)


# ─────────────────────────────────────────────────────────────────────────────
# Per-country selection
# ─────────────────────────────────────────────────────────────────────────────

def static_info(entry: Mapping) -> dict:
    """Everything about a country except its daily records."""
    return {key: value for key, value in entry.items() if key != "data"}


def country_timeline(entry: Mapping, max_date: str = DEFAULT_MAX_DATE) -> pd.DataFrame:
    """Records dated strictly before ``max_date``, newest first."""
    timeline = pd.DataFrame(list(entry.get("data") or []))
    if timeline.empty or "date" not in timeline.columns:
        return pd.DataFrame(columns=["date"])

    timeline = timeline.dropna(subset=["date"]).copy()
    timeline["date"] = timeline["date"].astype(str)
    timeline = timeline[timeline["date"] < max_date]
    return (
        timeline
        .sort_values("date", ascending=False, kind="stable")
        .reset_index(drop=True)
    )


def _evaluate(extract, timeline: pd.DataFrame) -> pd.Series:
    # Extractors return a scalar NaN when a column is missing entirely,
    # so broadcast to one value per record.
    values = extract(timeline)
    if not isinstance(values, pd.Series):
        values = pd.Series(values, index=timeline.index, dtype=float)
    return to_number(values)


def _present(record: pd.Series) -> dict:
    # NaN marks a field the JSON record did not have
    return record.dropna().to_dict()


def merge_point(left_record: dict, anchor: dict, spec: MetricSpec) -> dict:
    """
    Anchor fields win, except where the anchor's own left-hand value is not
    positive: then the left record's fields are restored wherever that keeps
    the anchor's right-hand value.
    """
    point = {**left_record, **anchor}
    if to_number(spec.left(point)) > 0:
        return point

    right = to_number(spec.right(point))
    for key, value in left_record.items():
        if key == "date" or point.get(key) == value:
            continue
        trial = {**point, key: value}
        if to_number(spec.right(trial)) == right:
            point = trial
    return point


def select_point(
    entry: Mapping,
    code: str,
    spec: MetricSpec,
    max_date: str = DEFAULT_MAX_DATE,
) -> dict | None:
    """
    Merged data point for one country, or None if it cannot be charted.

    The anchor is the newest record with a positive right-hand value; the
    left-hand record is the newest one at or before the anchor's date with a
    positive left-hand value.  See merge_point() for conflicting keys.
    """
    timeline = country_timeline(entry, max_date)
    if timeline.empty:
        return None

    anchors = timeline[_evaluate(spec.right, timeline) > 0]
    if anchors.empty:
        return None
    anchor = anchors.iloc[0]

    candidates = timeline[
        (timeline["date"] <= anchor["date"]) & (_evaluate(spec.left, timeline) > 0)
    ]
    if candidates.empty:
        return None

    point = merge_point(_present(candidates.iloc[0]), _present(anchor), spec)
    return spec.process_data_point(point, code, static_info(entry))


# ─────────────────────────────────────────────────────────────────────────────
# Ordering
# ─────────────────────────────────────────────────────────────────────────────

def swap_leading_rows(rows: list) -> list:
    """
    Swap the first two rows.

    The renderer assigns colours in order of first appearance, so this flips
    which metric gets the primary colour.  Purely cosmetic.
    """
    rows = list(rows)
    if len(rows) >= 2:
        rows[0], rows[1] = rows[1], rows[0]
    return rows


def order_rows(rows: list, sort: str | None = None, reverse: bool = False) -> list:
    # sorted() stays stable with reverse=True, so each country's LEFT row
    # keeps preceding its RIGHT row
    if sort == "right":
        rows = sorted(rows, key=lambda row: row.right, reverse=True)
    else:
        rows = sorted(rows, key=lambda row: row.left, reverse=True)

    if reverse:
        return rows[::-1]
    return swap_leading_rows(rows)


# ─────────────────────────────────────────────────────────────────────────────
# Main entry point
# ─────────────────────────────────────────────────────────────────────────────

def build_chart_data(
    dataset: Mapping,
    spec: MetricSpec,
    countries: Iterable[str],
    sort: str | None = None,
    reverse: bool = False,
    max_date: str = DEFAULT_MAX_DATE,
    scale: ScaleState | None = None,
) -> ChartData:
    """
    Build the ordered rows for one chart.

    Countries missing from the dataset, or without a usable left/right pair,
    are skipped and leave the scale untouched.
    """
    scale = scale or ScaleState()
    selected = []

    for code in countries:
        entry = dataset.get(code)
        if entry is None:
            print(f"[skip]  {code}: not in dataset")
            continue

        point = select_point(entry, code, spec, max_date)
        if point is None:
            print(f"[skip]  {code}: no valid data for '{spec.label_right}'")
            continue

        left = to_number(spec.left(point))
        right = to_number(spec.right(point))
        if not (left > 0 and right > 0):
            print(f"[skip]  {code}: data point rejected after processing")
            continue

        scale = scale.widen(right)
        name = point.get("location", entry.get("location", code))
        selected.append((name, point["date"], left, right))

    # Scaling needs the final bound, so rows are emitted in a second pass
    rows = []
    for name, date, left, right in selected:
        rows.append(ChartRow(
            id=name,
            value=-left * scale.max_right / scale.max_left,
            type=LEFT,
            title=f"{number_fmt(left)}% @ {date}",
            date=date,
            left=left,
            right=right,
        ))
        rows.append(ChartRow(
            id=name,
            value=right,
            type=RIGHT,
            title=None,
            date=date,
            left=left,
            right=right,
        ))

    return ChartData(rows=tuple(order_rows(rows, sort, reverse)), scale=scale, spec=spec)


def describe_rows(data: ChartData) -> pd.DataFrame:
    """Rows as a DataFrame, handy for printing a chart's content."""
    frame = pd.DataFrame([asdict(row) for row in data.rows])
    if frame.empty:
        return frame
    frame["type"] = np.where(frame["type"] == LEFT, "left", "right")
    return frame[["id", "type", "value", "left", "right", "date"]]
