"""
Pytest fixtures for the college cases tests.

Provides the raw-row scenario used throughout the suite, matching CSV text,
and forces the Agg backend so figures can be built without a display.
"""

import matplotlib

matplotlib.use("Agg")

import matplotlib.pyplot as plt  # noqa: E402
import pytest  # noqa: E402

from college_cases.io import build_dataset  # noqa: E402


SAMPLE_CSV = (
    "date,state,county,city,ipeds_id,college,cases,cases_2021,notes\n"
    "2021-05-26,NY,Bronx,Bx,1,A,10,4,\n"
    "2021-05-26,NY,Albany,Am,2,B,,7,\n"
    "2021-05-26,CA,Bronx,Bx,3,C,5,,\n"
)


@pytest.fixture
def raw_rows():
    return [
        {"college": "A", "city": "Bx", "state": "NY", "cases": "10", "cases_2021": "4"},
        {"college": "B", "city": "Am", "state": "NY", "cases": "", "cases_2021": "7"},
        {"college": "C", "city": "Bx", "state": "CA", "cases": "5", "cases_2021": ""},
    ]


@pytest.fixture
def dataset(raw_rows):
    return build_dataset(raw_rows)


@pytest.fixture
def sample_csv():
    return SAMPLE_CSV


@pytest.fixture(autouse=True)
def close_figures():
    yield
    plt.close("all")
