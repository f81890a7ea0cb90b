"""Shared fixtures: a tiny OWID-shaped dataset."""

import pytest

from vaxeff.metrics import MetricSpec, metric


@pytest.fixture
def owid_dataset() -> dict:
    return {
        # anchor on 01-02; the 01-03 vaccination value is newer than the anchor
        "AAA": {
            "continent": "Europe",
            "location": "Alphaland",
            "population": 1000,
            "data": [
                {"date": "2021-01-01", "people_fully_vaccinated_per_hundred": 10.0,
                 "total_deaths_per_million": 100.0},
                {"date": "2021-01-03", "people_fully_vaccinated_per_hundred": 30.0},
                {"date": "2021-01-02", "people_fully_vaccinated_per_hundred": 20.0,
                 "total_deaths_per_million": 5600.0},
            ],
        },
        # left value comes from an older record; stringency conflicts
        "BBB": {
            "continent": "Europe",
            "location": "Betaland",
            "population": 2000,
            "data": [
                {"date": "2021-01-01", "people_fully_vaccinated_per_hundred": 50.0,
                 "stringency_index": 10.0},
                {"date": "2021-01-02", "people_fully_vaccinated_per_hundred": None,
                 "total_deaths_per_million": 85.0, "stringency_index": 20.0},
            ],
        },
        # no positive right-hand value at all
        "CCC": {
            "continent": "Europe",
            "location": "Gammaland",
            "population": 3000,
            "data": [
                {"date": "2021-01-01", "people_fully_vaccinated_per_hundred": 70.0,
                 "total_deaths_per_million": 0},
                {"date": "2021-01-02", "total_deaths_per_million": "n/a"},
            ],
        },
        # left-hand values only after the anchor
        "DDD": {
            "continent": "Europe",
            "location": "Deltaland",
            "population": 4000,
            "data": [
                {"date": "2021-01-01", "total_deaths_per_million": 10.0},
                {"date": "2021-01-02", "people_fully_vaccinated_per_hundred": 40.0},
            ],
        },
    }


@pytest.fixture
def deaths_spec() -> MetricSpec:
    return MetricSpec(
        left=metric("people_fully_vaccinated_per_hundred"),
        right=metric("total_deaths_per_million"),
        label_left="Percentage of population fully vaccinated",
        label_right="Total deaths per million",
    )


@pytest.fixture
def countries() -> list[str]:
    return ["AAA", "BBB", "CCC", "DDD", "ZZZ"]
