from __future__ import annotations
import logging
import os
from dataclasses import dataclass

DEFAULT_DATA_URL = (
    "https://raw.githubusercontent.com/nytimes/covid-19-data/master/colleges/colleges.csv"
)
DATA_URL_ENV = "COLLEGE_CASES_URL"
LOG_LEVEL_ENV = "COLLEGE_CASES_LOG_LEVEL"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

# Source CSV header -> Record field
COLUMN_MAP = {
    "institution": "college",
    "city": "city",
    "state": "state",
    "cases": "cases",
    "cases_2021": "cases_2021",
}

PAGE_TITLE = "COVID-19 Cases Reported On College And University Campuses"
DATA_CAVEAT = (
    "Data is based on reports from colleges and government sources and may lag. "
    "Cases include those of students, faculty, staff members and other college workers. "
    "Total cases include confirmed positive cases and probable cases, where available. "
    "Some colleges declined to provide data, provided partial data or did not respond "
    "to inquiries. Given the disparities in size, reopening plans and transparency among "
    "universities, it is not recommended to use this data to make campus-to-campus comparisons."
)
CHART_TITLE = "Confirmed Cases by State"
CHART_CAPTION = (
    "Each state groups the confirmed 2020 cases reported by its colleges, one bar per "
    "college. Click the button again to redraw and hover over a bar for its case count."
)
CITY_PLACEHOLDER = "Select a city"
TABLE_COLUMNS = ["College", "Covid-19 Cases 2020", "Covid-19 Cases 2021"]


@dataclass(frozen=True)
class CanvasConfig:
    width: int = 1000
    height: int = 600
    margin_top: int = 50
    margin_right: int = 30
    margin_bottom: int = 70
    margin_left: int = 100
    band_padding: float = 0.2
    y_ticks: int = 10
    x_label_rotation: float = -45.0
    y_label_size: int = 14
    tooltip_width: int = 80
    tooltip_height: int = 20
    tooltip_offset: int = 30
    dpi: int = 100

    @property
    def inner_width(self) -> int:
        return self.width - self.margin_left - self.margin_right

    @property
    def inner_height(self) -> int:
        return self.height - self.margin_top - self.margin_bottom


DEFAULT_CANVAS = CanvasConfig()


def data_url() -> str:
    raw = os.getenv(DATA_URL_ENV, "").strip()
    return raw or DEFAULT_DATA_URL


def configure_logging(level: str | None = None) -> None:
    """Set up root logging once; later calls are no-ops."""
    name = (level or os.getenv(LOG_LEVEL_ENV, "INFO")).strip().upper()
    logging.basicConfig(level=getattr(logging, name, logging.INFO), format=LOG_FORMAT)
