from __future__ import annotations
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class ViewState:
    """Snapshot of the page's user-driven state.

    `draws` counts chart requests so the page can tell a fresh redraw from
    a plain rerun; the chart never goes back to hidden.
    """
    selected_city: str = ""
    chart_visible: bool = False
    draws: int = 0


def select_city(state: ViewState, city: str | None) -> ViewState:
    return replace(state, selected_city=(city or "").strip())


def request_chart(state: ViewState) -> ViewState:
    return replace(state, chart_visible=True, draws=state.draws + 1)
