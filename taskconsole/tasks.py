"""The task list table and the single-task detail view."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, Callable, Iterable, List, Optional, Protocol, Sequence, Tuple, Union

from .durations import Durations
from .histogram import DurationHistogram, Rect
from .table import Controls, TableListState, Width
from .styles import Block, Span, Style, Color, Modifier, Styles, bold, format_debug_duration

# Durations are only refreshed every second, so little precision is needed.
DUR_LEN = 6
DUR_LIST_PRECISION = 2
DUR_TABLE_PRECISION = 0
TABLE_HIGHLIGHT_SYMBOL = ">> "

Line = Tuple[Span, ...]
Cell = Tuple[Span, ...]
DurationValue = Union[int, timedelta]


class _RenderableState(Protocol):
    def render(self, styles: Styles) -> Span: ...


class _Task(Protocol):
    id: Any
    id_str: str
    span_id: int
    state: Any
    name: Optional[str]
    target: str
    location: str
    total_polls: int
    formatted_fields: Sequence[Sequence[Span]]
    warnings: Sequence[Any]
    waker_count: int
    waker_clones: int
    waker_drops: int
    wakes: int
    self_wakes: int
    self_wake_percent: int

    def total(self, now: Any) -> DurationValue: ...

    def busy(self, now: Any) -> DurationValue: ...

    def scheduled(self, now: Any) -> DurationValue: ...

    def idle(self, now: Any) -> DurationValue: ...

    def since_wake(self, now: Any) -> Optional[DurationValue]: ...


def _stack(area: Rect, heights: Iterable[int]) -> List[Rect]:
    """Split ``area`` top to bottom into rows of the requested heights, clipped to fit."""
    rects = []
    y = area.y
    remaining = area.height
    for height in heights:
        height = max(min(height, remaining), 0)
        rects.append(Rect(area.x, y, area.width, height))
        y += height
        remaining -= height
    return rects


def _halves(area: Rect) -> Tuple[Rect, Rect]:
    left = area.width // 2
    return (
        Rect(area.x, area.y, left, area.height),
        Rect(area.x + left, area.y, area.width - left, area.height),
    )


def _seconds(dur: DurationValue) -> float:
    if isinstance(dur, timedelta):
        return dur.total_seconds()
    return int(dur) / 1_000_000_000


def _percent_text(amount: DurationValue, total: DurationValue) -> str:
    part = _seconds(amount)
    whole = _seconds(total)
    if whole == 0:
        return "NaN" if part == 0 else "inf"
    percent = part / whole * 100
    if math.isnan(percent):
        return "NaN"
    return f"{percent:.2f}"


def _flatten(parts: Iterable[Iterable[Span]]) -> Cell:
    return tuple(span for part in parts for span in part)


def _header_style(styles: Styles) -> Style:
    if styles.color(Color.CYAN) is not None:
        base = Style()
    else:
        base = Style().add_modifier(Modifier.REVERSED)
    return base.add_modifier(Modifier.BOLD)


def _header_cells(header: Sequence[str], table_state: TableListState, styles: Styles) -> Tuple[Span, ...]:
    cells = []
    for index, value in enumerate(header):
        if index == table_state.selected_column:
            if table_state.sort_descending:
                cells.append(styles.ascending(value))
            else:
                cells.append(styles.descending(value))
        else:
            cells.append(Span.raw(value))
    return tuple(cells)


@dataclass(frozen=True)
class TableRender:
    """Everything a table draws in one frame.

    A width of None fills the rest of the line. Rows are in display order.
    """

    block: Block
    header: Tuple[Span, ...]
    header_style: Style
    rows: Tuple[Tuple[Cell, ...], ...]
    row_styles: Tuple[Style, ...]
    widths: Tuple[Optional[int], ...]
    controls: Controls
    controls_area: Rect
    table_area: Rect
    selected: Optional[int] = None
    highlight_symbol: str = TABLE_HIGHLIGHT_SYMBOL
    highlight_style: Style = field(default_factory=lambda: Style().add_modifier(Modifier.BOLD))
    warnings: Tuple[Line, ...] = ()
    warnings_block: Optional[Block] = None
    warnings_area: Optional[Rect] = None


@dataclass
class TasksTable:
    """The list of all tasks.

    ``state_type`` is the task state enumeration; it must have ``RUNNING``,
    ``IDLE`` and ``COMPLETED`` members that can render themselves.
    """

    state_type: Any

    HEADER = (
        "Warn", "ID", "State", "Name", "Total", "Busy", "Sched", "Idle", "Polls", "Target",
        "Location", "Fields",
    )
    WIDTHS = tuple(len(name) + 1 for name in HEADER)

    def render(
        self, table_state: TableListState, styles: Styles, area: Rect, state: Any
    ) -> Optional[TableRender]:
        """Lay out the task table; None until the first update has arrived."""
        now = state.last_updated_at
        if now is None:
            return None

        tasks_state = state.tasks_state
        table_state.extend(tasks_state.take_new_tasks())
        if table_state.sort_by is not None:
            table_state.sort_by.sort(now, table_state.sorted_items)

        widths = self.WIDTHS
        state_len = widths[2]
        warn_width = Width(widths[0])
        id_width = Width(widths[1])
        name_width = Width(widths[3])
        polls_width = Width(widths[7])
        target_width = Width(widths[8])
        location_width = Width(widths[9])

        def dur_cell(dur: DurationValue) -> Cell:
            return (styles.time_units(dur, DUR_TABLE_PRECISION, DUR_LEN),)

        running = self.state_type.RUNNING
        idle = self.state_type.IDLE
        completed = self.state_type.COMPLETED
        num_running = 0
        num_idle = 0
        rows: List[Tuple[Cell, ...]] = []
        row_styles: List[Style] = []

        for ref in table_state.sorted_items:
            task = ref()
            if task is None:
                continue
            task_state = task.state
            if task_state == running:
                num_running += 1
            elif task_state == idle:
                num_idle += 1

            n_warnings = len(task.warnings)
            if n_warnings > 0:
                count = str(n_warnings)
                # two more for the warning icon and a space
                warn_width.update_len(len(count) + 2)
                warn_cell: Cell = (styles.warning_narrow(), Span.raw(count))
            else:
                warn_cell = (Span.raw(""),)

            id_text = task.id_str.rjust(id_width.chars())
            cells = (
                warn_cell,
                (Span.raw(id_width.update_str(id_text)),),
                (task_state.render(styles),),
                (Span.raw(name_width.update_str(task.name or "")),),
                dur_cell(task.total(now)),
                dur_cell(task.busy(now)),
                dur_cell(task.scheduled(now)),
                dur_cell(task.idle(now)),
                (Span.raw(polls_width.update_str(str(task.total_polls))),),
                (Span.raw(target_width.update_str(task.target)),),
                (Span.raw(location_width.update_str(task.location)),),
                _flatten(task.formatted_fields),
            )
            rows.append(cells)
            row_styles.append(styles.terminated() if task_state == completed else Style())

        if not table_state.sort_descending:
            rows.reverse()
            row_styles.reverse()

        block = styles.border_block().title(
            [
                bold(f"Tasks ({len(table_state)}) "),
                running.render(styles),
                Span.raw(f" Running ({num_running}) "),
                idle.render(styles),
                Span.raw(f" Idle ({num_idle})"),
            ]
        )

        warnings = tuple(
            (styles.warning_wide(), Span.raw(f"{linter.count()} {linter.summary()}"))
            for linter in tasks_state.warnings()
        )

        controls = Controls.for_area(area.width, styles)
        if warnings:
            controls_area, warnings_area, tasks_area = _stack(
                area, (controls.height, len(warnings) + 2, area.height)
            )
            warnings_block: Optional[Block] = styles.border_block().title([bold("Warnings")])
        else:
            controls_area, tasks_area = _stack(area, (controls.height, area.height))
            warnings_area = None
            warnings_block = None

        column_widths: Tuple[Optional[int], ...] = (
            warn_width.chars(),
            id_width.chars(),
            state_len,
            name_width.chars(),
            DUR_LEN,
            DUR_LEN,
            DUR_LEN,
            DUR_LEN,
            polls_width.chars(),
            target_width.chars(),
            location_width.chars(),
            None,
        )

        result = TableRender(
            block=block,
            header=_header_cells(self.HEADER, table_state, styles),
            header_style=_header_style(styles),
            rows=tuple(rows),
            row_styles=tuple(row_styles),
            widths=column_widths,
            controls=controls,
            controls_area=controls_area,
            table_area=tasks_area,
            selected=table_state.selected,
            warnings=warnings,
            warnings_block=warnings_block,
            warnings_area=warnings_area,
        )
        table_state.retain_alive()
        return result


@dataclass(frozen=True)
class TaskDetail:
    """Everything the detail view of one task draws in one frame."""

    controls: Line
    overview: Tuple[Line, ...]
    waker_stats: Tuple[Line, ...]
    fields: Tuple[Line, ...]
    warnings: Tuple[Line, ...]
    task_block: Block
    waker_block: Block
    fields_block: Block
    warnings_block: Optional[Block]
    poll_durations: Durations
    scheduled_durations: Durations
    controls_area: Rect
    stats_areas: Tuple[Rect, Rect]
    poll_area: Rect
    scheduled_area: Rect
    fields_area: Rect
    warnings_area: Optional[Rect] = None


class TaskView:
    """Details of a single task.

    ``details`` returns the latest detail record received, if any; it is
    used only when its ``span_id`` matches the task's.
    """

    POLL_PERCENTILES_TITLE = "Poll Times Percentiles"
    SCHEDULED_PERCENTILES_TITLE = "Sched Times Percentiles"

    def __init__(self, task: Any, details: Optional[Callable[[], Any]] = None) -> None:
        self.task = task
        self._details = details if details is not None else (lambda: None)

    def update_input(self, event: Any) -> None:
        """The detail view has no controls of its own."""

    def _current_details(self) -> Any:
        details = self._details()
        if details is not None and details.span_id == self.task.span_id:
            return details
        return None

    def render(self, styles: Styles, area: Rect, now: Any) -> TaskDetail:
        task = self.task
        details = self._current_details()

        warnings = tuple(
            (styles.warning_wide(), Span.raw(linter.format(task))) for linter in task.warnings
        )

        if warnings:
            controls_area, warnings_area, stats_area, poll_area, scheduled_area, fields_area = _stack(
                area, (1, len(warnings) + 2, 10, 9, 9, area.height * 60 // 100)
            )
        else:
            controls_area, stats_area, poll_area, scheduled_area, fields_area = _stack(
                area, (1, 10, 9, 9, area.height * 60 // 100)
            )
            warnings_area = None

        controls = (
            Span.raw("controls: "),
            bold(styles.if_utf8("\u238b esc", "esc")),
            Span.raw(" = return to task list, "),
            bold("q"),
            Span.raw(" = quit"),
        )

        overview: List[Line] = [
            (bold("ID: "), Span.raw(f"{task.id} "), task.state.render(styles)),
        ]
        if task.name is not None:
            overview.append((bold("Name: "), Span.raw(task.name)))
        overview.append((bold("Target: "), Span.raw(task.target)))
        overview.append((bold("Location: "), Span.raw(task.location)))

        total = task.total(now)

        def dur_percent(name: str, amount: DurationValue) -> Line:
            return (
                bold(name),
                styles.time_units(amount, DUR_LIST_PRECISION, None),
                Span.raw(f" ({_percent_text(amount, total)}%)"),
            )

        overview.append((bold("Total Time: "), styles.time_units(total, DUR_LIST_PRECISION, None)))
        overview.append(dur_percent("Busy: ", task.busy(now)))
        overview.append(dur_percent("Scheduled: ", task.scheduled(now)))
        overview.append(dur_percent("Idle: ", task.idle(now)))

        waker_stats: List[Line] = [
            (
                bold("Current wakers: "),
                Span.raw(f"{task.waker_count} ("),
                bold("clones: "),
                Span.raw(f"{task.waker_clones}, "),
                bold("drops: "),
                Span.raw(f"{task.waker_drops})"),
            )
        ]
        wakeups = [bold("Woken: "), Span.raw(f"{task.wakes} times")]
        since = task.since_wake(now)
        if since is not None:
            wakeups.extend(
                (
                    Span.raw(", "),
                    bold("last woken:"),
                    Span.raw(f" {format_debug_duration(since)} ago"),
                )
            )
        waker_stats.append(tuple(wakeups))

        if task.self_wakes > 0:
            waker_stats.append(
                (
                    bold("Self Wakes: "),
                    Span.raw(f"{task.self_wakes} times ({task.self_wake_percent}%)"),
                )
            )

        fields = tuple(tuple(part) for part in task.formatted_fields)

        percentiles_width = (
            max(len(self.POLL_PERCENTILES_TITLE), len(self.SCHEDULED_PERCENTILES_TITLE)) + 2
        )
        poll_histogram: Optional[DurationHistogram] = (
            details.poll_times_histogram if details is not None else None
        )
        scheduled_histogram: Optional[DurationHistogram] = (
            details.scheduled_times_histogram if details is not None else None
        )

        return TaskDetail(
            controls=controls,
            overview=tuple(overview),
            waker_stats=tuple(waker_stats),
            fields=fields,
            warnings=warnings,
            task_block=styles.border_block().title("Task"),
            waker_block=styles.border_block().title("Waker"),
            fields_block=styles.border_block().title("Fields"),
            warnings_block=styles.border_block().title("Warnings") if warnings else None,
            poll_durations=Durations(
                styles,
                histogram=poll_histogram,
                percentiles_title=self.POLL_PERCENTILES_TITLE,
                histogram_title="Poll Times Histogram",
                percentiles_width=percentiles_width,
            ),
            scheduled_durations=Durations(
                styles,
                histogram=scheduled_histogram,
                percentiles_title=self.SCHEDULED_PERCENTILES_TITLE,
                histogram_title="Scheduled Times Histogram",
                percentiles_width=percentiles_width,
            ),
            controls_area=controls_area,
            stats_areas=_halves(stats_area),
            poll_area=poll_area,
            scheduled_area=scheduled_area,
            fields_area=fields_area,
            warnings_area=warnings_area,
        )