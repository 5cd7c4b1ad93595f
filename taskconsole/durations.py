"""A widget showing duration percentiles next to a mini histogram when there is room."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .histogram import Buffer, DurationHistogram, MiniHistogram, Rect
from .percentiles import Percentiles
from .styles import Styles

# Wide enough for a legend such as "0647.17µs  909.31µs" plus the bars.
MIN_HISTOGRAM_BLOCK_WIDTH = 22


@dataclass
class Durations:
    """Percentiles of a histogram and, with UTF-8 and enough width, its chart.

    A ``percentiles_width`` of zero sizes the percentiles block to its title.
    """

    styles: Styles
    histogram: Optional[DurationHistogram] = None
    percentiles_title: str = "Percentiles"
    histogram_title: str = "Histogram"
    percentiles_width: int = 0

    def split(self, area: Rect) -> Tuple[Rect, Optional[Rect]]:
        """The percentiles area and, if the chart is drawn, the chart area."""
        if not self.styles.utf8:
            return area, None
        if self.percentiles_width > 0:
            width = self.percentiles_width
        else:
            # Room for the title or a line like "p99: 544.77µs", plus borders.
            width = max(len(self.percentiles_title), 13) + 2
        if area.width < width + MIN_HISTOGRAM_BLOCK_WIDTH:
            return area, None
        return (
            Rect(area.x, area.y, width, area.height),
            Rect(area.x + width, area.y, area.width - width, area.height),
        )

    def render(self, area: Rect, buf: Buffer) -> None:
        percentiles_area, histogram_area = self.split(area)
        Percentiles(self.styles, self.histogram, self.percentiles_title).render(
            percentiles_area, buf
        )
        if histogram_area is not None:
            MiniHistogram(
                block=self.styles.border_block().title(self.histogram_title),
                histogram=self.histogram,
                duration_precision=2,
            ).render(histogram_area, buf)