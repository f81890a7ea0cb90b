"""Unit tests for metric extraction and formatting."""

import math

import pandas as pd
import pytest

from vaxeff.metrics import (
    STATS,
    field_value,
    metric,
    new_cases_weekly_per_100k,
    number_fmt,
    percent_fmt,
    to_number,
    vaccination_and_stringency,
)


@pytest.mark.parametrize("raw", [None, "abc", "", [1, 2], {"a": 1}])
def test_to_number_turns_junk_into_nan(raw) -> None:
    assert math.isnan(to_number(raw))


def test_to_number_parses_numeric_strings() -> None:
    assert to_number("12.5") == 12.5
    assert to_number(3) == 3.0


def test_metric_reads_records_and_timelines() -> None:
    deaths = metric("total_deaths_per_million")
    assert deaths.__name__ == "total_deaths_per_million"
    assert deaths({"total_deaths_per_million": 42}) == 42.0
    assert math.isnan(deaths({}))

    frame = pd.DataFrame([
        {"total_deaths_per_million": 1.5},
        {"total_deaths_per_million": "n/a"},
        {},
    ])
    values = deaths(frame)
    assert isinstance(values, pd.Series)
    assert values.iloc[0] == 1.5
    assert values.iloc[1:].isna().all()


def test_missing_column_gives_scalar_nan() -> None:
    frame = pd.DataFrame([{"date": "2021-01-01"}])
    assert math.isnan(field_value(frame, "total_deaths_per_million"))


def test_derived_metrics() -> None:
    record = {
        "new_cases_smoothed_per_million": 100.0,
        "stringency_index": 60.0,
        "people_fully_vaccinated_per_hundred": 80.0,
    }
    assert new_cases_weekly_per_100k(record) == pytest.approx(70.0)
    assert vaccination_and_stringency(record) == pytest.approx(70.0)
    # a missing part poisons the blend instead of halving it
    assert math.isnan(vaccination_and_stringency({"stringency_index": 60.0}))


def test_formatters() -> None:
    assert percent_fmt(72.9) == "72%"
    assert number_fmt(6000.0) == "6000"
    assert number_fmt(0.5) == "0.5"


def test_published_stats() -> None:
    assert len(STATS) == 6
    for spec in STATS:
        assert spec.label_left
        assert spec.label_right
        point = {"date": "2021-01-01"}
        assert spec.process_data_point(point, "DEU", {"location": "Germany"}) is point
    assert STATS[-1].format_left(55.0) == "55"
    assert STATS[-1].format_left(12.5) == "12.5"
