"""A widget listing the main percentiles of a duration histogram."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

from .histogram import Buffer, DurationHistogram, Rect, render_block
from .styles import Span, Styles, bold

_PERCENTILES = (10, 25, 50, 75, 90, 95, 99)
_DUR_LIST_PRECISION = 2


@dataclass
class Percentiles:
    """Percentile values of a histogram, one per line, inside a titled block."""

    styles: Styles
    histogram: Optional[DurationHistogram] = None
    title: str = "Percentiles"

    def lines(self) -> List[Tuple[Span, ...]]:
        """The label and formatted value for each percentile; empty without data."""
        if self.histogram is None:
            return []
        return [
            (
                bold(f"p{percentile:>2}: "),
                self.styles.time_units(
                    self.histogram.value_at_percentile(percentile), _DUR_LIST_PRECISION, None
                ),
            )
            for percentile in _PERCENTILES
        ]

    def render(self, area: Rect, buf: Buffer) -> None:
        inner = render_block(self.styles.border_block().title(self.title), area, buf)
        for row, line in zip(range(inner.height), self.lines()):
            text = "".join(span.content for span in line)
            buf.set_string(inner.x, inner.y + row, text[: inner.width])