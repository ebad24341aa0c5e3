from __future__ import annotations

import logging
import sys
from pathlib import Path

import streamlit as st

# `streamlit run college_cases/dashboard.py` executes this file as a script.
if not __package__:
    sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from college_cases.config import (  # noqa: E402
    CHART_CAPTION, CHART_TITLE, CITY_PLACEHOLDER, DATA_CAVEAT, PAGE_TITLE,
    configure_logging, data_url,
)
from college_cases.io import load_dataset  # noqa: E402
from college_cases.models import Dataset  # noqa: E402
from college_cases.state import ViewState, request_chart, select_city  # noqa: E402
from college_cases.transform import (  # noqa: E402
    available_values, group_by, records_frame, select_category,
)
from college_cases.viz import draw_chart, fig_to_png_bytes  # noqa: E402

logger = logging.getLogger(__name__)

VIEW_KEY = "view"
CITY_KEY = "city_select"
CHART_BUTTON_KEY = "confirmed_cases"


@st.cache_data(show_spinner=False)
def _load_cached(url: str) -> Dataset:
    return load_dataset(url)


@st.cache_data(show_spinner=False)
def _city_options(url: str) -> list[str]:
    return [""] + available_values(_load_cached(url), "city")


def _view() -> ViewState:
    return st.session_state[VIEW_KEY]


def _on_chart_click() -> None:
    st.session_state[VIEW_KEY] = request_chart(_view())


def _on_city_change() -> None:
    st.session_state[VIEW_KEY] = select_city(_view(), st.session_state.get(CITY_KEY))


def _render_chart(dataset: Dataset) -> None:
    st.button("Confirmed cases", key=CHART_BUTTON_KEY, on_click=_on_chart_click)
    view = _view()
    if not view.chart_visible:
        return

    st.subheader(CHART_TITLE)
    st.caption(CHART_CAPTION)
    chart, _hover = draw_chart(group_by(dataset, "state"))
    st.pyplot(chart.fig)
    st.download_button(
        "Download chart (PNG)",
        data=fig_to_png_bytes(chart.fig),
        file_name="cases_by_state.png",
        mime="image/png",
    )
    logger.debug("Chart draw #%d", view.draws)


def _render_city_table(dataset: Dataset, url: str) -> None:
    st.subheader("Cases by city")
    st.selectbox(
        "City",
        options=_city_options(url),
        format_func=lambda v: v or CITY_PLACEHOLDER,
        key=CITY_KEY,
        on_change=_on_city_change,
    )
    rows = select_category(dataset, "city", _view().selected_city)
    table = records_frame(rows)
    st.dataframe(table, hide_index=True, use_container_width=True)
    if rows:
        st.download_button(
            "Download table (CSV)",
            data=table.to_csv(index=False).encode("utf-8"),
            file_name=f"cases_{_view().selected_city.lower().replace(' ', '_')}.csv",
            mime="text/csv",
        )
    st.caption(
        "Each row is one college in the selected city with the cases it reported for "
        "2020 and 2021. A blank cell means the college did not report that year."
    )


def main() -> None:
    configure_logging()
    st.set_page_config(page_title=PAGE_TITLE, layout="wide")
    st.title(PAGE_TITLE)
    st.write(DATA_CAVEAT)

    if VIEW_KEY not in st.session_state:
        st.session_state[VIEW_KEY] = ViewState()

    url = data_url()
    with st.spinner("Loading college case data..."):
        dataset = _load_cached(url)

    _render_chart(dataset)
    _render_city_table(dataset, url)


if __name__ == "__main__":
    main()
