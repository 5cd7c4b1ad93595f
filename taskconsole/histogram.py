"""A small latency histogram and the widget that draws it as a mini bar chart."""

from __future__ import annotations

import itertools
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from .styles import Block, DurationLike, Style, format_debug_duration


@dataclass(frozen=True)
class Rect:
    """A rectangular area of the terminal, in cells."""

    x: int
    y: int
    width: int
    height: int

    @property
    def left(self) -> int:
        return self.x

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def top(self) -> int:
        return self.y

    @property
    def bottom(self) -> int:
        return self.y + self.height


class Buffer:
    """A grid of cells that widgets draw into."""

    def __init__(self, area: Rect) -> None:
        self.area = area
        self._cells: List[List[str]] = [[" "] * max(area.width, 0) for _ in range(max(area.height, 0))]
        self._styles: Dict[Tuple[int, int], Style] = {}

    def _contains(self, x: int, y: int) -> bool:
        return self.area.left <= x < self.area.right and self.area.top <= y < self.area.bottom

    def set_cell(self, x: int, y: int, symbol: str, style: Optional[Style] = None) -> None:
        """Put ``symbol`` at (x, y); cells outside the buffer are ignored."""
        if not self._contains(x, y):
            return
        self._cells[y - self.area.y][x - self.area.x] = symbol
        if style is not None:
            self._styles[(x, y)] = style

    def set_string(self, x: int, y: int, text: str) -> None:
        """Write ``text`` starting at (x, y), clipped to the buffer."""
        for offset, char in enumerate(text):
            if x + offset >= self.area.right:
                break
            self.set_cell(x + offset, y, char)

    def style_at(self, x: int, y: int) -> Style:
        return self._styles.get((x, y), Style())

    def row(self, y: int) -> str:
        """The text of row ``y``."""
        if not self.area.top <= y < self.area.bottom:
            raise IndexError(f"row {y} is outside the buffer")
        return "".join(self._cells[y - self.area.y])


def render_block(block: Block, area: Rect, buf: Buffer) -> Rect:
    """Draw ``block`` over ``area`` and return the area left inside it."""
    if area.width <= 0 or area.height <= 0:
        return Rect(area.x, area.y, 0, 0)

    if block.borders:
        tl, tr, bl, br = ("╭", "╮", "╰", "╯") if block.rounded else ("┌", "┐", "└", "┘")
        for x in range(area.left, area.right):
            buf.set_cell(x, area.top, "─")
            buf.set_cell(x, area.bottom - 1, "─")
        for y in range(area.top, area.bottom):
            buf.set_cell(area.left, y, "│")
            buf.set_cell(area.right - 1, y, "│")
        buf.set_cell(area.left, area.top, tl)
        buf.set_cell(area.right - 1, area.top, tr)
        buf.set_cell(area.left, area.bottom - 1, bl)
        buf.set_cell(area.right - 1, area.bottom - 1, br)

    if block.title_spans:
        margin = 1 if block.borders else 0
        available = max(area.width - 2 * margin, 0)
        buf.set_string(area.x + margin, area.y, block.title_text[:available])

    if block.borders:
        return Rect(
            min(area.x + 1, area.right),
            min(area.y + 1, area.bottom),
            max(area.width - 2, 0),
            max(area.height - 2, 0),
        )
    if block.title_spans:
        return Rect(area.x, min(area.y + 1, area.bottom), area.width, max(area.height - 1, 0))
    return area


@dataclass(frozen=True)
class BarSet:
    """Symbols for bars of zero to eight eighths of a cell."""

    empty: str
    one_eighth: str
    one_quarter: str
    three_eighths: str
    half: str
    five_eighths: str
    three_quarters: str
    seven_eighths: str
    full: str

    def symbol(self, level: int) -> str:
        """The symbol for a bar ``level`` eighths high; eight or more is full."""
        levels = (
            self.empty,
            self.one_eighth,
            self.one_quarter,
            self.three_eighths,
            self.half,
            self.five_eighths,
            self.three_quarters,
            self.seven_eighths,
            self.full,
        )
        return levels[min(max(level, 0), 8)]


NINE_LEVELS = BarSet(" ", "▁", "▂", "▃", "▄", "▅", "▆", "▇", "█")


class DurationHistogram:
    """Recorded durations in nanoseconds, plus a count of outliers left out of them."""

    def __init__(
        self,
        values: Iterable[int] = (),
        *,
        high_outliers: int = 0,
        highest_outlier: Optional[DurationLike] = None,
    ) -> None:
        self._counts: Counter = Counter()
        self.high_outliers = high_outliers
        self.highest_outlier = highest_outlier
        for value in values:
            self.record(value)

    def record(self, value: int, count: int = 1) -> None:
        if value < 0:
            raise ValueError("durations cannot be negative")
        if count < 0:
            raise ValueError("count cannot be negative")
        if count:
            self._counts[value] += count

    @property
    def total_count(self) -> int:
        return sum(self._counts.values())

    def min(self) -> int:
        return min(self._counts, default=0)

    def max(self) -> int:
        return max(self._counts, default=0)

    def value_at_percentile(self, percentile: float) -> int:
        """The smallest recorded value at or below which ``percentile``% of values fall."""
        total = self.total_count
        if total == 0:
            return 0
        clamped = min(max(float(percentile), 0.0), 100.0)
        target = max(-(-int(clamped * total * 1_000_000) // 100_000_000), 1)
        running = 0
        for value in sorted(self._counts):
            running += self._counts[value]
            if running >= target:
                return value
        return self.max()

    def iter_linear(self, step: int) -> Iterator[int]:
        """Counts of values in consecutive buckets of ``step`` starting at zero."""
        if step <= 0:
            raise ValueError("step must be positive")
        if not self._counts:
            return
        highest = self.max()
        pending = iter(sorted(self._counts.items()))
        current = next(pending, None)
        upper = step - 1
        while True:
            count = 0
            while current is not None and current[0] <= upper:
                count += current[1]
                current = next(pending, None)
            yield count
            if upper >= highest:
                return
            upper += step


@dataclass
class HistogramMetadata:
    """Labels and outlier information for a chart."""

    max_value: int = 0
    min_value: int = 0
    max_bucket: int = 0
    min_bucket: int = 0
    high_outliers: int = 0
    highest_outlier: Optional[DurationLike] = None


def chart_data(histogram: DurationHistogram, width: int) -> Tuple[List[int], HistogramMetadata]:
    """Bucket the histogram into about ``width`` columns, dropping leading empty buckets."""
    if width <= 0:
        raise ValueError("chart width must be positive")
    spread = histogram.max() - histogram.min()
    step_size = -(-spread // width) + 1
    data = list(itertools.dropwhile(lambda count: count == 0, histogram.iter_linear(step_size)))
    metadata = HistogramMetadata(
        max_value=histogram.max(),
        min_value=histogram.min(),
        max_bucket=max(data, default=0),
        min_bucket=min(data, default=0),
        high_outliers=histogram.high_outliers,
        highest_outlier=histogram.highest_outlier,
    )
    return data, metadata


def render_legend(
    area: Rect,
    buf: Buffer,
    metadata: HistogramMetadata,
    max_record_label: str,
    min_record_label: str,
    max_qty_label: str,
    min_qty_label: str,
) -> None:
    """Draw the axis labels and, if any, the outlier note."""
    if metadata.high_outliers > 0:
        if metadata.highest_outlier is None:
            raise ValueError("if there are outliers, the highest should be set")
        outliers = (
            f"{metadata.high_outliers} outliers "
            f"(highest: {format_debug_duration(metadata.highest_outlier)})"
        )
        buf.set_string(area.right - len(outliers), area.bottom - 1, outliers)
        labels_pos = 2
    else:
        labels_pos = 1

    buf.set_string(area.left, area.top, max_qty_label)
    buf.set_string(area.left, area.bottom - labels_pos, min_qty_label.rjust(len(max_qty_label)))
    buf.set_string(area.left + len(max_qty_label), area.bottom - labels_pos, min_record_label)
    buf.set_string(area.right - len(max_record_label), area.bottom - labels_pos, max_record_label)


@dataclass
class MiniHistogram:
    """A labelled bar chart of a duration histogram that fits in a small area.

    Unlike a sparkline, any non-empty bucket is drawn at least one eighth high.
    """

    block: Optional[Block] = None
    style: Style = field(default_factory=Style)
    histogram: Optional[DurationHistogram] = None
    max: Optional[int] = None
    bar_set: BarSet = NINE_LEVELS
    duration_precision: int = 4

    def render(self, area: Rect, buf: Buffer) -> None:
        inner = render_block(self.block, area, buf) if self.block is not None else area
        if inner.height < 1 or self.histogram is None:
            return

        # The label width depends on the buckets and the buckets on the width,
        # so assume a three-digit label.
        data, metadata = chart_data(self.histogram, inner.width - 3)

        max_qty_label = str(metadata.max_bucket)
        min_qty_label = str(metadata.min_bucket)
        max_record_label = format_debug_duration(metadata.max_value, self.duration_precision)
        min_record_label = format_debug_duration(metadata.min_value, self.duration_precision)
        label_width = len(max_qty_label)

        render_legend(
            inner,
            buf,
            metadata,
            max_record_label,
            min_record_label,
            max_qty_label,
            min_qty_label,
        )

        legend_height = 2 if metadata.high_outliers > 0 else 1
        bars_area = Rect(
            inner.x + label_width,
            inner.y,
            inner.width - label_width,
            inner.height - legend_height,
        )
        self._render_bars(bars_area, buf, data)

    def _render_bars(self, area: Rect, buf: Buffer, data: List[int]) -> None:
        if area.width <= 0 or area.height <= 0:
            return
        peak = self.max if self.max is not None else max(data, default=1)

        def scale(value: int) -> int:
            if peak == 0:
                return 0
            level = value * area.height * 8 // peak
            return 1 if value > 0 and level == 0 else level

        levels = [scale(value) for value in data[: area.width]]
        for row in reversed(range(area.height)):
            for column, level in enumerate(levels):
                buf.set_cell(
                    area.left + column, area.top + row, self.bar_set.symbol(level), self.style
                )
            levels = [max(level - 8, 0) for level in levels]