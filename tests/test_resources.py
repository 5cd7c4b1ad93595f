from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import pytest

from taskconsole.histogram import Rect
from taskconsole.resources import (
    AsyncOpsTable,
    ResourceDetail,
    ResourcesTable,
    ResourceView,
)
from taskconsole.styles import Modifier, Span, Style, Styles
from taskconsole.table import Controls, KeyEvent, TableListState
from taskconsole.tasks import DUR_LEN, DUR_TABLE_PRECISION


@dataclass(eq=False)
class FakeVisibility:
    label: str = "PUB"

    def render(self, styles):
        return Span.raw(self.label)


@dataclass(eq=False)
class FakeResource:
    id: int
    parent_id: str = ""
    parent: str = "n/a"
    kind: str = "Timer"
    target: str = "app::timer"
    concrete_type: str = "Sleep"
    location: str = "src/main.rs:1"
    type_visibility: FakeVisibility = field(default_factory=FakeVisibility)
    formatted_attributes: List[Any] = field(default_factory=list)
    dropped: bool = False
    total_nanos: int = 5_000_000_000

    @property
    def id_str(self) -> str:
        return str(self.id)

    def total(self, now):
        return self.total_nanos


@dataclass(eq=False)
class FakeAsyncOp:
    id: int
    resource_id: int
    task_id: Optional[int] = None
    task_id_str: str = "-"
    parent_id: str = ""
    source: str = "poll_fn"
    total_polls: int = 3
    formatted_attributes: List[Any] = field(default_factory=list)
    dropped: bool = False

    def total(self, now):
        return 2_000_000_000

    def busy(self, now):
        return 1_000_000_000

    def idle(self, now):
        return 1_000_000_000


@dataclass(eq=False)
class FakeTask:
    short_desc: str


class FakeResourcesState:
    def __init__(self, resources=()):
        self.pending = list(resources)

    def take_new_resources(self):
        taken, self.pending = self.pending, []
        return taken


class FakeAsyncOpsState:
    def __init__(self, ops=(), new=()):
        self.ops = list(ops)
        self.new = list(new)

    def async_ops(self):
        return iter(self.ops)

    def take_new_async_ops(self):
        taken, self.new = self.new, []
        return taken


class FakeTasksState:
    def __init__(self, tasks: Optional[Dict[int, FakeTask]] = None):
        self.tasks = tasks or {}

    def task(self, task_id):
        return self.tasks.get(task_id)


@dataclass
class FakeState:
    last_updated_at: Any = 1
    resources_state: FakeResourcesState = field(default_factory=FakeResourcesState)
    async_ops_state: FakeAsyncOpsState = field(default_factory=FakeAsyncOpsState)
    tasks_state: FakeTasksState = field(default_factory=FakeTasksState)


AREA = Rect(0, 0, 200, 40)
STYLES = Styles()


def _resources_table_state():
    return TableListState(ResourcesTable.HEADER)


def _ids(result):
    return [row[0][0].content.strip() for row in result.rows]


def test_resources_render_none_before_first_update():
    state = FakeState(last_updated_at=None, resources_state=FakeResourcesState([FakeResource(1)]))
    table_state = _resources_table_state()
    assert ResourcesTable().render(table_state, STYLES, AREA, state) is None
    assert len(table_state) == 0


def test_resources_rows_and_block_title():
    resources = [FakeResource(1), FakeResource(2)]
    state = FakeState(resources_state=FakeResourcesState(resources))
    result = ResourcesTable().render(_resources_table_state(), STYLES, AREA, state)
    assert len(result.rows) == 2
    assert result.block.title_text == "Resources (2) "
    assert result.rows[0][3] == (
        STYLES.time_units(resources[1].total_nanos, DUR_TABLE_PRECISION, DUR_LEN),
    )
    assert result.rows[0][6][0].content == "PUB"


def test_resources_display_order_follows_sort_direction():
    resources = [FakeResource(1), FakeResource(2)]
    state = FakeState(resources_state=FakeResourcesState(resources))
    table_state = _resources_table_state()
    table = ResourcesTable()
    assert _ids(table.render(table_state, STYLES, AREA, state)) == ["2", "1"]
    table_state.sort_descending = True
    assert _ids(table.render(table_state, STYLES, AREA, state)) == ["1", "2"]


def test_resources_id_padded_to_column_width():
    resource = FakeResource(7)
    state = FakeState(resources_state=FakeResourcesState([resource]))
    result = ResourcesTable().render(_resources_table_state(), STYLES, AREA, state)
    assert len(result.rows[0][0][0].content) == ResourcesTable.WIDTHS[0]


def test_resources_dropped_row_is_dimmed():
    resources = [FakeResource(1, dropped=True), FakeResource(2)]
    state = FakeState(resources_state=FakeResourcesState(resources))
    table_state = _resources_table_state()
    table_state.sort_descending = True
    result = ResourcesTable().render(table_state, STYLES, AREA, state)
    assert Modifier.DIM in result.row_styles[0].modifiers
    assert result.row_styles[1] == Style()


def test_resources_column_widths_grow_and_cap():
    resources = [FakeResource(1, target="t" * 150, kind="a-much-longer-kind")]
    state = FakeState(resources_state=FakeResourcesState(resources))
    result = ResourcesTable().render(_resources_table_state(), STYLES, AREA, state)
    assert result.widths[4] == 100
    assert result.widths[2] == len("a-much-longer-kind")
    assert result.widths[3] == DUR_LEN
    assert result.widths[6] == ResourcesTable.WIDTHS[6]
    assert result.widths[-1] is None


def test_resources_drops_dead_rows_after_render():
    keep = FakeResource(1)
    gone = FakeResource(2)
    state = FakeState(resources_state=FakeResourcesState([keep, gone]))
    table_state = _resources_table_state()
    table = ResourcesTable()
    table.render(table_state, STYLES, AREA, state)
    assert len(table_state) == 2
    del gone
    result = table.render(table_state, STYLES, AREA, state)
    assert _ids(result) == ["1"]
    assert len(table_state) == 1


def test_resources_header_marks_selected_column():
    state = FakeState(resources_state=FakeResourcesState([FakeResource(1)]))
    result = ResourcesTable().render(_resources_table_state(), STYLES, AREA, state)
    assert result.header[0].content == "ID-"
    assert result.header[1].content == "Parent"
    assert Modifier.REVERSED in result.header_style.modifiers


def test_resources_controls_area_uses_controls_height():
    state = FakeState(resources_state=FakeResourcesState([FakeResource(1)]))
    narrow = Rect(0, 0, 40, 30)
    result = ResourcesTable().render(_resources_table_state(), STYLES, narrow, state)
    expected = Controls.for_area(40, STYLES).height
    assert result.controls_area.height == expected
    assert result.table_area.y == expected
    assert result.table_area.height == 30 - expected


def test_async_ops_render_none_before_first_update():
    state = FakeState(last_updated_at=None)
    table_state = TableListState(AsyncOpsTable.HEADER)
    assert AsyncOpsTable().render(table_state, STYLES, AREA, state, True, 1) is None


def test_async_ops_initial_render_filters_by_resource():
    with_task = FakeAsyncOp(1, resource_id=1, task_id=10)
    without_task = FakeAsyncOp(2, resource_id=1)
    other = FakeAsyncOp(3, resource_id=2, task_id=10)
    state = FakeState(
        async_ops_state=FakeAsyncOpsState([with_task, without_task, other]),
        tasks_state=FakeTasksState({10: FakeTask("worker")}),
    )
    table_state = TableListState(AsyncOpsTable.HEADER)
    result = AsyncOpsTable().render(table_state, STYLES, AREA, state, True, 1)
    assert len(table_state) == 2
    assert len(result.rows) == 1
    assert result.rows[0][2][0].content == "worker"
    assert result.rows[0][7][0].content == str(with_task.total_polls)
    assert result.block.title_text == "Async Ops (2) "


def test_async_ops_unknown_task_falls_back_to_id_string():
    op = FakeAsyncOp(1, resource_id=1, task_id=11, task_id_str="11")
    state = FakeState(async_ops_state=FakeAsyncOpsState([op]))
    result = AsyncOpsTable().render(
        TableListState(AsyncOpsTable.HEADER), STYLES, AREA, state, True, 1
    )
    assert result.rows[0][2][0].content == "11"


def test_async_ops_later_renders_take_only_new_ops():
    old = FakeAsyncOp(1, resource_id=1, task_id=10)
    new = FakeAsyncOp(2, resource_id=1, task_id=10)
    state = FakeState(
        async_ops_state=FakeAsyncOpsState(ops=[old], new=[new]),
        tasks_state=FakeTasksState({10: FakeTask("worker")}),
    )
    table_state = TableListState(AsyncOpsTable.HEADER)
    result = AsyncOpsTable().render(table_state, STYLES, AREA, state, False, 1)
    assert _ids(result) == ["2"]
    assert result.rows[0][4] == (STYLES.time_units(new.total(1), DUR_TABLE_PRECISION, DUR_LEN),)


def test_resource_view_overview_and_fields():
    resource = FakeResource(5, parent="4", formatted_attributes=[[Span.raw("a=1")]])
    view = ResourceView(resource)
    detail = view.render(STYLES, AREA, FakeState())
    assert isinstance(detail, ResourceDetail)
    texts = ["".join(span.content for span in line) for line in detail.overview]
    assert texts[0] == "ID: 5"
    assert texts[1] == "Parent ID: 4"
    assert texts[4] == "Type: Sleep PUB"
    assert detail.fields == ((Span.raw("a=1"),),)
    assert detail.resource_block.title_text == "Resource"
    assert detail.fields_block.title_text == "Attributes"
    assert detail.controls[1].content == "esc"


def test_resource_view_layout():
    view = ResourceView(FakeResource(1))
    detail = view.render(STYLES, AREA, FakeState())
    assert detail.controls_area.height == 1
    left, right = detail.stats_areas
    assert left.height == 8
    assert left.width + right.width == AREA.width
    assert detail.async_ops_area.y == 9


def test_resource_view_uses_all_ops_only_on_first_render():
    resource = FakeResource(1)
    first = FakeAsyncOp(1, resource_id=1, task_id=10)
    ops_state = FakeAsyncOpsState([first])
    state = FakeState(
        async_ops_state=ops_state,
        tasks_state=FakeTasksState({10: FakeTask("worker")}),
    )
    view = ResourceView(resource)
    detail = view.render(STYLES, AREA, state)
    assert view.initial_render is False
    assert len(detail.async_ops.rows) == 1

    second = FakeAsyncOp(2, resource_id=1, task_id=10)
    ops_state.ops.append(second)
    detail = view.render(STYLES, AREA, state)
    assert len(view.async_ops_table) == 1
    assert len(detail.async_ops.rows) == 1


def test_resource_view_no_async_ops_before_update():
    view = ResourceView(FakeResource(1))
    detail = view.render(STYLES, AREA, FakeState(last_updated_at=None))
    assert detail.async_ops is None


def test_resource_view_passes_keys_to_async_ops_table():
    view = ResourceView(FakeResource(1))
    view.update_input(KeyEvent("l"))
    assert view.async_ops_table.selected_column == 1
    view.update_input(KeyEvent("i"))
    assert view.async_ops_table.sort_descending is True


def test_async_ops_table_rejects_zero_width_area():
    op = FakeAsyncOp(1, resource_id=1, task_id=10)
    state = FakeState(async_ops_state=FakeAsyncOpsState([op]))
    with pytest.raises(ZeroDivisionError):
        AsyncOpsTable().render(
            TableListState(AsyncOpsTable.HEADER), STYLES, Rect(0, 0, 0, 10), state, True, 1
        )