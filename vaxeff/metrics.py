"""
vaxeff/metrics.py
=================
Which OWID fields end up on the left and on the right of each chart.

A chart always compares two metrics for the same set of countries: the
left-hand metric (usually the vaccination rate, drawn as negative bars) against
a right-hand metric (deaths, excess mortality, cases...).  A ``MetricSpec``
bundles the two extraction functions together with their labels and tick
formatters.

Extraction functions only ever call ``.get(name, default)`` on their input and
do plain arithmetic on the result, so the same function works on:
  - a single record (``dict``) from the OWID JSON,
  - a single row (``pandas.Series``),
  - a whole country timeline (``pandas.DataFrame``), returning a Series.
"""

from dataclasses import dataclass
from typing import Any, Callable

import numpy as np
import pandas as pd


# ─────────────────────────────────────────────────────────────────────────────
# Numeric coercion
# ─────────────────────────────────────────────────────────────────────────────

def to_number(value: Any):
    """
    Coerce a metric value (scalar or Series) to float.

    Absent values, ``None`` and anything that does not parse as a number turn
    into NaN, which fails every ``> 0`` test downstream.
    """
    if isinstance(value, pd.Series):
        return pd.to_numeric(value, errors="coerce").astype(float)
    if value is None:
        return np.nan
    try:
        return float(pd.to_numeric(value, errors="coerce"))
    except (TypeError, ValueError):
        # lists, dicts and other non-scalars
        return np.nan


def field_value(record, name: str):
    """Numeric value of ``name`` in a record, row or timeline (NaN if absent)."""
    return to_number(record.get(name, np.nan))


def metric(name: str) -> Callable:
    """Extraction function for a single OWID field."""
    def extract(record):
        return field_value(record, name)

    extract.__name__ = name
    return extract


# ─────────────────────────────────────────────────────────────────────────────
# Formatters
# ─────────────────────────────────────────────────────────────────────────────

def percent_fmt(value: float) -> str:
    """0–100 axis ticks: 72.4 → '72%'."""
    return f"{int(value)}%"


def number_fmt(value: float) -> str:
    # 6000.0 → '6000', 0.5 → '0.5'
    return f"{value:.10g}"


def identity(point: dict, _code: str, _info: dict) -> dict:
    return point


# ─────────────────────────────────────────────────────────────────────────────
# MetricSpec
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class MetricSpec:
    """
    A left/right metric pair for one chart.

    ``process_data_point(point, code, info)`` receives the merged data point
    for a country, its ISO code and the country's static info (location,
    population, ...) and returns the point actually used for the chart.
    """

    left: Callable
    right: Callable
    label_left: str
    label_right: str
    format_left: Callable[[float], str] = percent_fmt
    format_right: Callable[[float], str] = number_fmt
    process_data_point: Callable[[dict, str, dict], dict] = identity


# ─────────────────────────────────────────────────────────────────────────────
# Published chart pairs
# ─────────────────────────────────────────────────────────────────────────────

VACCINATED = metric("people_fully_vaccinated_per_hundred")
LABEL_VACCINATED = "Percentage of population fully vaccinated"


def new_cases_weekly_per_100k(record):
    # 7-day smoothed daily cases per million → weekly cases per 100,000
    return field_value(record, "new_cases_smoothed_per_million") / 10 * 7


def vaccination_and_stringency(record):
    # equal-weight blend of the stringency index and the vaccination rate
    return (
        field_value(record, "stringency_index") * 5 / 10
        + field_value(record, "people_fully_vaccinated_per_hundred") * 5 / 10
    )


STATS = [
    MetricSpec(
        left=VACCINATED,
        right=metric("total_deaths_per_million"),
        label_left=LABEL_VACCINATED,
        label_right="Total deaths related to COVID-19 (per million)",
    ),
    MetricSpec(
        left=VACCINATED,
        right=metric("excess_mortality_cumulative_per_million"),
        label_left=LABEL_VACCINATED,
        label_right="Excess mortality since January 2020 (per million)",
    ),
    MetricSpec(
        left=VACCINATED,
        right=metric("total_cases_per_million"),
        label_left=LABEL_VACCINATED,
        label_right="Total COVID-19 cases (per million)",
    ),
    MetricSpec(
        left=VACCINATED,
        right=metric("new_cases_per_million"),
        label_left=LABEL_VACCINATED,
        label_right="New COVID-19 cases (per million)",
    ),
    MetricSpec(
        left=VACCINATED,
        right=new_cases_weekly_per_100k,
        label_left=LABEL_VACCINATED,
        label_right="New COVID-19 cases, 7-day smoothed (per 100.000)",
    ),
    MetricSpec(
        left=vaccination_and_stringency,
        right=metric("total_deaths_per_million"),
        label_left="Vaccrate + Stringency Index",
        label_right="Total deaths related to COVID-19 (per million)",
        format_left=number_fmt,
    ),
]
