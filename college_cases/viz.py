from __future__ import annotations
import logging
from dataclasses import dataclass, field
from io import BytesIO
from typing import Optional

import matplotlib.pyplot as plt
from matplotlib.patches import Rectangle

from .chart import (
    Axis, Bar, ChartLayout, Clear, TooltipState, build_chart, pointer_enter, pointer_leave,
)
from .config import DEFAULT_CANVAS, CanvasConfig
from .transform import GroupedAggregate

logger = logging.getLogger(__name__)

BAR_COLOR = "steelblue"
_ANCHORS = {"start": "left", "middle": "center", "end": "right"}


@dataclass
class ChartFigure:
    fig: object
    ax: object
    patches: list[tuple[Rectangle, Bar]] = field(default_factory=list)


def _drawable_axes(fig, canvas: CanvasConfig):
    ax = fig.add_axes([
        canvas.margin_left / canvas.width,
        canvas.margin_bottom / canvas.height,
        canvas.inner_width / canvas.width,
        canvas.inner_height / canvas.height,
    ])
    # Drawable coordinates: origin top-left, y grows downward.
    ax.set_xlim(0, canvas.inner_width)
    ax.set_ylim(canvas.inner_height, 0)
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    return ax


def _draw_axis(ax, axis: Axis) -> None:
    positions = [t.position for t in axis.ticks]
    labels = [t.label for t in axis.ticks]
    ax.spines[axis.orient].set_position(("data", axis.offset))
    kwargs = {"rotation": -axis.label_rotation, "ha": _ANCHORS.get(axis.label_anchor, "center")}
    if axis.font_size:
        kwargs["fontsize"] = axis.font_size
    if axis.orient == "bottom":
        ax.set_xticks(positions)
        ax.set_xticklabels(labels, rotation_mode="anchor", **kwargs)
    else:
        kwargs.pop("ha")
        ax.set_yticks(positions)
        ax.set_yticklabels(labels, **kwargs)


def render_figure(layout: ChartLayout, fig=None) -> ChartFigure:
    """Play the layout's draw commands onto a matplotlib figure.

    Passing the figure from a previous render redraws it in place.
    """
    canvas = layout.canvas
    if fig is None:
        fig = plt.figure(figsize=(canvas.width / canvas.dpi, canvas.height / canvas.dpi), dpi=canvas.dpi)
    chart = ChartFigure(fig=fig, ax=None)
    for command in layout.commands:
        if isinstance(command, Clear):
            fig.clear()
            chart.ax = _drawable_axes(fig, canvas)
            chart.patches = []
        elif isinstance(command, Axis):
            _draw_axis(chart.ax, command)
        elif isinstance(command, Bar):
            patch = Rectangle(
                (command.x, command.y), command.width, command.height,
                facecolor=BAR_COLOR, edgecolor="white", linewidth=0.5,
            )
            chart.ax.add_patch(patch)
            chart.patches.append((patch, command))
    logger.debug("Rendered %d bars", len(chart.patches))
    return chart


class HoverController:
    """Shows a value tooltip while the pointer is over a bar."""

    def __init__(self, chart: ChartFigure, layout: ChartLayout):
        self.chart = chart
        self.layout = layout
        self.state = TooltipState()
        self._artists: list = []
        canvas = chart.fig.canvas
        self._cids = [
            canvas.mpl_connect("motion_notify_event", self.on_motion),
            canvas.mpl_connect("axes_leave_event", self.on_leave),
        ]

    def on_motion(self, event) -> None:
        if event.inaxes is not self.chart.ax or event.xdata is None:
            self.on_leave(event)
            return
        bar = self.layout.bar_at(event.xdata, event.ydata)
        if bar is None:
            self.on_leave(event)
        elif bar != self.state.bar:
            self._clear()
            self._show(bar, (event.xdata, event.ydata))

    def on_leave(self, event=None) -> None:
        if self._clear():
            self.chart.fig.canvas.draw_idle()

    def disconnect(self) -> None:
        for cid in self._cids:
            self.chart.fig.canvas.mpl_disconnect(cid)
        self._cids = []

    def _show(self, bar: Bar, pointer: tuple[float, float]) -> None:
        self.state = pointer_enter(self.state, bar, pointer, self.layout.canvas)
        tip = self.state.tooltip
        ax = self.chart.ax
        box = Rectangle(
            (tip.x, tip.y), tip.width, tip.height,
            facecolor="white", edgecolor="black", zorder=10, clip_on=False,
        )
        ax.add_patch(box)
        tx, ty = tip.text_position
        label = ax.text(tx, ty, tip.text, ha="center", va="baseline", zorder=11, clip_on=False)
        self._artists = [box, label]
        self.chart.fig.canvas.draw_idle()

    def _clear(self) -> bool:
        removed = bool(self._artists)
        for artist in self._artists:
            artist.remove()
        self._artists = []
        self.state = pointer_leave(self.state)
        return removed


def draw_chart(aggregate: GroupedAggregate, canvas: CanvasConfig = DEFAULT_CANVAS, fig=None,
               previous: Optional[HoverController] = None) -> tuple[ChartFigure, HoverController]:
    """Build, render and wire hover for a chart; `previous` is unhooked first."""
    if previous is not None:
        previous.disconnect()
    layout = build_chart(aggregate, canvas)
    chart = render_figure(layout, fig)
    return chart, HoverController(chart, layout)


def fig_to_png_bytes(fig, close: bool = True) -> bytes:
    buf = BytesIO()
    fig.savefig(buf, format="png", bbox_inches="tight", dpi=200)
    if close:
        plt.close(fig)
    return buf.getvalue()
