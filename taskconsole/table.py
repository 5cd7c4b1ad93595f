"""Shared state and controls for the console's sortable, scrollable tables."""

from __future__ import annotations

import enum
import weakref
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Generic,
    List,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    TypeVar,
    Union,
)

from .styles import Span, Styles, bold

R = TypeVar("R")

_MAX_COLUMN_WIDTH = 100


class KeyCode(enum.Enum):
    """Non-character keys the console reacts to."""

    LEFT = "left"
    RIGHT = "right"
    UP = "up"
    DOWN = "down"
    ENTER = "enter"
    ESC = "esc"


@dataclass(frozen=True)
class KeyEvent:
    """A key press: either a special key or a single character."""

    code: Union[KeyCode, str]


class SortBy(Protocol):
    """A sort order that knows which table column it belongs to."""

    def as_column(self) -> int: ...


@dataclass
class Width:
    """A column width that grows to fit its contents, up to a sane maximum."""

    curr: int

    def update_str(self, s: str) -> str:
        """Grow to fit ``s`` and hand it back unchanged."""
        self.update_len(len(s))
        return s

    def update_len(self, length: int) -> None:
        self.curr = min(max(self.curr, length), _MAX_COLUMN_WIDTH)

    def chars(self) -> int:
        return self.curr


class TableListState(Generic[R]):
    """Selection, sorting and scrolling state of one table.

    ``sorted_items`` holds weak references to the rows. ``sort_for_column``
    turns a column index into a sort order and raises ``ValueError`` (or
    ``KeyError``) for columns that cannot be sorted by.
    """

    def __init__(
        self,
        header: Sequence[str],
        sort_by: Any = None,
        sort_for_column: Optional[Callable[[int], Any]] = None,
    ) -> None:
        if not header:
            raise ValueError("a table needs at least one column")
        self.header: Tuple[str, ...] = tuple(header)
        self.sort_by = sort_by
        self.sort_for_column = sort_for_column
        self.selected_column: int = sort_by.as_column() if sort_by is not None else 0
        self.sort_descending = False
        self.selected: Optional[int] = None
        self.sorted_items: List["weakref.ref[R]"] = []
        self._last_key_event: Optional[KeyEvent] = None

    def __len__(self) -> int:
        return len(self.sorted_items)

    def extend(self, items) -> None:
        """Add rows, keeping only weak references to them."""
        self.sorted_items.extend(weakref.ref(item) for item in items)

    def retain_alive(self) -> None:
        """Drop references to rows that no longer exist."""
        self.sorted_items = [ref for ref in self.sorted_items if ref() is not None]

    def update_input(self, event: Any) -> None:
        if isinstance(event, KeyEvent):
            self.key_input(event)

    def key_input(self, event: KeyEvent) -> None:
        code = event.code
        last = len(self.header) - 1
        if code in (KeyCode.LEFT, "h"):
            self.selected_column = last if self.selected_column == 0 else self.selected_column - 1
        elif code in (KeyCode.RIGHT, "l"):
            self.selected_column = 0 if self.selected_column == last else self.selected_column + 1
        elif code == "i":
            self.sort_descending = not self.sort_descending
        elif code in (KeyCode.DOWN, "j"):
            self.scroll_next()
        elif code in (KeyCode.UP, "k"):
            self.scroll_prev()
        elif code == "G":
            self.scroll_to_last()
        elif code == "g" and self._last_key_event is not None and self._last_key_event.code == "g":
            self.scroll_to_first()

        if self.sort_for_column is not None:
            try:
                self.sort_by = self.sort_for_column(self.selected_column)
            except (ValueError, KeyError):
                pass

        self._last_key_event = event

    def _scroll_with(self, step: Callable[[int, int], int]) -> None:
        if not self.sorted_items:
            self.selected = None
            return
        current = self.selected if self.selected is not None else 0
        self.selected = step(len(self.sorted_items), current)

    def scroll_next(self) -> None:
        self._scroll_with(lambda n, i: 0 if i >= n - 1 else i + 1)

    def scroll_prev(self) -> None:
        self._scroll_with(lambda n, i: n - 1 if i == 0 else i - 1)

    def scroll_to_last(self) -> None:
        self._scroll_with(lambda n, _: n - 1)

    def scroll_to_first(self) -> None:
        self._scroll_with(lambda _n, _i: 0)

    def selected_item(self) -> Optional[R]:
        """The selected row, or None if nothing is selected or the row is gone."""
        if self.selected is None:
            return None
        count = len(self.sorted_items)
        index = self.selected if self.sort_descending else count - self.selected - 1
        if not 0 <= index < count:
            raise IndexError(f"selected row {self.selected} is out of range for {count} rows")
        return self.sorted_items[index]()


@dataclass(frozen=True)
class Controls:
    """The help line shown above a table, and the rows it needs."""

    spans: Tuple[Span, ...] = field(default_factory=tuple)
    height: int = 1

    @property
    def width(self) -> int:
        return sum(span.width for span in self.spans)

    @property
    def text(self) -> str:
        return "".join(span.content for span in self.spans)

    @classmethod
    def for_area(cls, width: int, styles: Styles) -> "Controls":
        """Controls for an area ``width`` columns wide, wrapped as needed."""
        spans = (
            Span.raw("controls: "),
            bold(styles.if_utf8("\u2190\u2192", "left, right")),
            Span.raw(" or "),
            bold("h, l"),
            Span.raw(" = select column (sort), "),
            bold(styles.if_utf8("\u2191\u2193", "up, down")),
            Span.raw(" or "),
            bold("k, j"),
            Span.raw(" = scroll, "),
            bold(styles.if_utf8("\u21b5", "enter")),
            Span.raw(" = view details, "),
            bold("i"),
            Span.raw(" = invert sort (highest/lowest), "),
            bold("q"),
            Span.raw(" = quit "),
            bold("gg"),
            Span.raw(" = scroll to top, "),
            bold("G"),
            Span.raw(" = scroll to bottom"),
        )
        text_width = sum(span.width for span in spans)
        height = 1
        if width < text_width:
            height, rest = divmod(text_width, width)
            if rest > 0:
                height += 1
        return cls(spans=spans, height=height)