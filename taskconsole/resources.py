"""The resource list table, the async-op table and the single-resource detail view."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Tuple

from .styles import Block, Span, Style, Styles, bold
from .table import Controls, TableListState, Width
from .tasks import (
    DUR_LEN,
    DUR_TABLE_PRECISION,
    Cell,
    Line,
    TableRender,
    _flatten,
    _halves,
    _header_cells,
    _header_style,
    _stack,
)


def _display_order(table_state: TableListState) -> Iterator[Any]:
    """Live rows in the order they are shown: reversed unless sorted descending."""
    refs = table_state.sorted_items
    ordered = refs if table_state.sort_descending else reversed(refs)
    for ref in ordered:
        item = ref()
        if item is not None:
            yield item


def _sort(table_state: TableListState, now: Any) -> None:
    if table_state.sort_by is not None:
        table_state.sort_by.sort(now, table_state.sorted_items)


class ResourcesTable:
    """The list of all resources."""

    HEADER = (
        "ID",
        "Parent",
        "Kind",
        "Total",
        "Target",
        "Type",
        "Vis",
        "Location",
        "Attributes",
    )
    WIDTHS = tuple(len(name) + 1 for name in HEADER)

    def render(
        self, table_state: TableListState, styles: Styles, area: Rect, state: Any
    ) -> Optional[TableRender]:
        """Lay out the resource table; None until the first update has arrived."""
        now = state.last_updated_at
        if now is None:
            return None

        table_state.extend(state.resources_state.take_new_resources())
        _sort(table_state, now)

        widths = self.WIDTHS
        viz_len = widths[6]
        id_width = Width(widths[0])
        parent_width = Width(widths[1])
        kind_width = Width(widths[2])
        target_width = Width(widths[4])
        type_width = Width(widths[5])
        location_width = Width(widths[7])

        rows: List[Tuple[Cell, ...]] = []
        row_styles: List[Style] = []
        for resource in _display_order(table_state):
            id_text = str(resource.id).rjust(id_width.chars())
            rows.append(
                (
                    (Span.raw(id_width.update_str(id_text)),),
                    (Span.raw(parent_width.update_str(resource.parent_id)),),
                    (Span.raw(kind_width.update_str(resource.kind)),),
                    (styles.time_units(resource.total(now), DUR_TABLE_PRECISION, DUR_LEN),),
                    (Span.raw(target_width.update_str(resource.target)),),
                    (Span.raw(type_width.update_str(resource.concrete_type)),),
                    (resource.type_visibility.render(styles),),
                    (Span.raw(location_width.update_str(resource.location)),),
                    _flatten(resource.formatted_attributes),
                )
            )
            row_styles.append(styles.terminated() if resource.dropped else Style())

        block = styles.border_block().title([bold(f"Resources ({len(table_state)}) ")])
        controls = Controls.for_area(area.width, styles)
        controls_area, table_area = _stack(area, (controls.height, area.height))

        column_widths: Tuple[Optional[int], ...] = (
            id_width.chars(),
            parent_width.chars(),
            kind_width.chars(),
            DUR_LEN,
            target_width.chars(),
            type_width.chars(),
            viz_len,
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
            table_area=table_area,
            selected=table_state.selected,
        )
        table_state.retain_alive()
        return result


class AsyncOpsTable:
    """The async operations that belong to one resource.

    On the first render every known async op is considered; afterwards only
    the ones that arrived since the previous render.
    """

    HEADER = (
        "ID",
        "Parent",
        "Task",
        "Source",
        "Total",
        "Busy",
        "Idle",
        "Polls",
        "Attributes",
    )
    WIDTHS = tuple(len(name) + 1 for name in HEADER)

    def render(
        self,
        table_state: TableListState,
        styles: Styles,
        area: Rect,
        state: Any,
        initial_render: bool,
        resource_id: Any,
    ) -> Optional[TableRender]:
        """Lay out the async-op table; None until the first update has arrived."""
        now = state.last_updated_at
        if now is None:
            return None

        ops_state = state.async_ops_state
        candidates = ops_state.async_ops() if initial_render else ops_state.take_new_async_ops()
        table_state.extend(
            op for op in candidates if op is not None and op.resource_id == resource_id
        )
        _sort(table_state, now)

        widths = self.WIDTHS
        id_width = Width(widths[0])
        parent_width = Width(widths[1])
        task_width = Width(widths[2])
        source_width = Width(widths[3])
        polls_width = Width(widths[7])

        def dur_cell(dur: Any) -> Cell:
            return (styles.time_units(dur, DUR_TABLE_PRECISION, DUR_LEN),)

        rows: List[Tuple[Cell, ...]] = []
        row_styles: List[Style] = []
        for op in _display_order(table_state):
            task_id = op.task_id
            if task_id is None:
                continue
            task = state.tasks_state.task(task_id)
            task_str = task.short_desc if task is not None else op.task_id_str

            id_text = str(op.id).rjust(id_width.chars())
            rows.append(
                (
                    (Span.raw(id_width.update_str(id_text)),),
                    (Span.raw(parent_width.update_str(op.parent_id)),),
                    (Span.raw(task_width.update_str(task_str)),),
                    (Span.raw(source_width.update_str(op.source)),),
                    dur_cell(op.total(now)),
                    dur_cell(op.busy(now)),
                    dur_cell(op.idle(now)),
                    (Span.raw(polls_width.update_str(str(op.total_polls))),),
                    _flatten(op.formatted_attributes),
                )
            )
            row_styles.append(styles.terminated() if op.dropped else Style())

        block = styles.border_block().title([bold(f"Async Ops ({len(table_state)}) ")])
        controls = Controls.for_area(area.width, styles)
        controls_area, table_area = _stack(area, (controls.height, area.height))

        column_widths: Tuple[Optional[int], ...] = (
            id_width.chars(),
            parent_width.chars(),
            task_width.chars(),
            source_width.chars(),
            DUR_LEN,
            DUR_LEN,
            DUR_LEN,
            polls_width.chars(),
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
            table_area=table_area,
            selected=table_state.selected,
        )
        table_state.retain_alive()
        return result


@dataclass(frozen=True)
class ResourceDetail:
    """Everything the detail view of one resource draws in one frame."""

    controls: Line
    overview: Tuple[Line, ...]
    fields: Tuple[Line, ...]
    resource_block: Block
    fields_block: Block
    controls_area: Rect
    stats_areas: Tuple[Rect, Rect]
    async_ops_area: Rect
    async_ops: Optional[TableRender]


class ResourceView:
    """Details of a single resource and the async ops waiting on it."""

    def __init__(self, resource: Any, sort_by: Any = None, sort_for_column: Any = None) -> None:
        self.resource = resource
        self.async_ops_table: TableListState = TableListState(
            AsyncOpsTable.HEADER, sort_by, sort_for_column
        )
        self.initial_render = True
        self._async_ops = AsyncOpsTable()

    def update_input(self, event: Any) -> None:
        self.async_ops_table.update_input(event)

    def render(self, styles: Styles, area: Rect, state: Any) -> ResourceDetail:
        resource = self.resource

        controls_area, stats_area, async_ops_area = _stack(
            area, (1, 8, area.height * 60 // 100)
        )

        controls: Line = (
            Span.raw("controls: "),
            bold(styles.if_utf8("\u238b esc", "esc")),
            Span.raw(" = return to task list, "),
            bold("q"),
            Span.raw(" = quit"),
        )

        overview: Tuple[Line, ...] = (
            (bold("ID: "), Span.raw(resource.id_str)),
            (bold("Parent ID: "), Span.raw(resource.parent)),
            (bold("Kind: "), Span.raw(resource.kind)),
            (bold("Target: "), Span.raw(resource.target)),
            (
                bold("Type: "),
                Span.raw(resource.concrete_type),
                Span.raw(" "),
                resource.type_visibility.render(styles),
            ),
            (bold("Location: "), Span.raw(resource.location)),
        )

        fields = tuple(tuple(part) for part in resource.formatted_attributes)

        async_ops = self._async_ops.render(
            self.async_ops_table,
            styles,
            async_ops_area,
            state,
            self.initial_render,
            resource.id,
        )
        self.initial_render = False

        return ResourceDetail(
            controls=controls,
            overview=overview,
            fields=fields,
            resource_block=styles.border_block().title("Resource"),
            fields_block=styles.border_block().title("Attributes"),
            controls_area=controls_area,
            stats_areas=_halves(stats_area),
            async_ops_area=async_ops_area,
            async_ops=async_ops,
        )


from .histogram import Rect  # noqa: E402  (used in annotations only)