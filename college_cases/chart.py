"""Bar chart geometry: scales and draw commands in drawable-area coordinates."""

from __future__ import annotations
import logging
from dataclasses import dataclass, replace
from typing import Optional, Sequence, Union

from matplotlib.ticker import MaxNLocator

from .config import DEFAULT_CANVAS, CanvasConfig
from .models import Count
from .transform import GroupedAggregate

logger = logging.getLogger(__name__)

TICK_STEPS = [1, 2, 2.5, 5, 10]


class BandScale:
    """Categorical keys to evenly padded horizontal bands."""

    def __init__(self, domain: Sequence[str], range_: tuple[float, float], padding: float = 0.0, align: float = 0.5):
        self.domain = tuple(domain)
        self.range = range_
        self.padding_inner = min(1.0, padding)
        self.padding_outer = padding
        start, stop = range_
        n = len(self.domain)
        self.step = (stop - start) / max(1.0, n - self.padding_inner + self.padding_outer * 2)
        start += (stop - start - self.step * (n - self.padding_inner)) * align
        self.bandwidth = self.step * (1 - self.padding_inner)
        self._positions = {key: start + self.step * i for i, key in enumerate(self.domain)}

    def __call__(self, key: str) -> Optional[float]:
        return self._positions.get(key)

    def center(self, key: str) -> Optional[float]:
        pos = self(key)
        return None if pos is None else pos + self.bandwidth / 2


class LinearScale:
    """Continuous domain to a (possibly inverted) pixel range."""

    def __init__(self, domain: tuple[float, float], range_: tuple[float, float]):
        self.domain = domain
        self.range = range_

    def __call__(self, value: float) -> float:
        d0, d1 = self.domain
        r0, r1 = self.range
        if d1 == d0:
            return r0
        return r0 + (value - d0) / (d1 - d0) * (r1 - r0)

    def ticks(self, count: int = 10) -> list[float]:
        lo, hi = self.domain
        locator = MaxNLocator(nbins=count, steps=TICK_STEPS)
        eps = (hi - lo) * 1e-9
        return [float(t) for t in locator.tick_values(lo, hi) if lo - eps <= t <= hi + eps]


def value_domain(aggregate: GroupedAggregate) -> tuple[float, float]:
    """[0, max case count]; [0, 1] when there is nothing positive to plot."""
    values = [r.cases for group in aggregate.values() for r in group if r.cases is not None]
    top = max(values, default=0)
    if top <= 0:
        return (0.0, 1.0)
    return (0.0, float(top))


def format_value(value: Count) -> str:
    if value is None:
        return ""
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,g}"


@dataclass(frozen=True)
class Clear:
    pass


@dataclass(frozen=True)
class Tick:
    position: float
    label: str


@dataclass(frozen=True)
class Axis:
    orient: str                 # "bottom" | "left"
    ticks: tuple[Tick, ...]
    offset: float = 0.0         # translate along the cross axis
    label_rotation: float = 0.0
    label_anchor: str = "middle"
    font_size: Optional[int] = None


@dataclass(frozen=True)
class Bar:
    group: str
    index: int
    institution: str
    value: float
    x: float
    y: float
    width: float
    height: float

    def contains(self, x: float, y: float) -> bool:
        return self.x <= x <= self.x + self.width and self.y <= y <= self.y + self.height


Command = Union[Clear, Axis, Bar]


@dataclass(frozen=True)
class ChartLayout:
    canvas: CanvasConfig
    x_scale: BandScale
    y_scale: LinearScale
    commands: tuple[Command, ...]

    @property
    def bars(self) -> list[Bar]:
        return [c for c in self.commands if isinstance(c, Bar)]

    @property
    def axes(self) -> list[Axis]:
        return [c for c in self.commands if isinstance(c, Axis)]

    def bar_at(self, x: float, y: float) -> Optional[Bar]:
        for bar in reversed(self.bars):
            if bar.contains(x, y):
                return bar
        return None


def build_chart(aggregate: GroupedAggregate, canvas: CanvasConfig = DEFAULT_CANVAS) -> ChartLayout:
    """Scales and draw commands for one bar per record, clustered by group key."""
    width, height = canvas.inner_width, canvas.inner_height
    x_scale = BandScale(list(aggregate), (0, width), canvas.band_padding)
    y_scale = LinearScale(value_domain(aggregate), (height, 0))

    commands: list[Command] = [Clear()]
    commands.append(Axis(
        orient="bottom",
        ticks=tuple(Tick(x_scale.center(k), k) for k in aggregate),
        offset=height,
        label_rotation=canvas.x_label_rotation,
        label_anchor="end",
    ))
    commands.append(Axis(
        orient="left",
        ticks=tuple(Tick(y_scale(t), format_value(t)) for t in y_scale.ticks(canvas.y_ticks)),
        font_size=canvas.y_label_size,
    ))

    for key, group in aggregate.items():
        if not group:
            continue
        left = x_scale(key)
        bar_width = x_scale.bandwidth / len(group)
        for i, record in enumerate(group):
            top = y_scale(record.cases)
            commands.append(Bar(
                group=key,
                index=i,
                institution=record.institution,
                value=record.cases,
                x=left + i * bar_width,
                y=top,
                width=bar_width,
                height=height - top,
            ))

    layout = ChartLayout(canvas, x_scale, y_scale, tuple(commands))
    logger.debug("Built chart: %d groups, %d bars, domain %s", len(aggregate), len(layout.bars), y_scale.domain)
    return layout


@dataclass(frozen=True)
class Tooltip:
    x: float
    y: float
    width: float
    height: float
    text: str

    @property
    def text_position(self) -> tuple[float, float]:
        return (self.x + self.width / 2, self.y + 15)


@dataclass(frozen=True)
class TooltipState:
    bar: Optional[Bar] = None
    tooltip: Optional[Tooltip] = None

    @property
    def visible(self) -> bool:
        return self.tooltip is not None


def pointer_enter(state: TooltipState, bar: Bar, pointer: tuple[float, float],
                  canvas: CanvasConfig = DEFAULT_CANVAS) -> TooltipState:
    """Show the tooltip for `bar` at the pointer, replacing any current one."""
    px, py = pointer
    tooltip = Tooltip(
        x=px,
        y=py - canvas.tooltip_offset,
        width=canvas.tooltip_width,
        height=canvas.tooltip_height,
        text=format_value(bar.value),
    )
    return replace(state, bar=bar, tooltip=tooltip)


def pointer_leave(state: TooltipState) -> TooltipState:
    return TooltipState()
