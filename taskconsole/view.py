"""The console's top-level view: which screen is shown and how keys move between them."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Optional, Union

from .histogram import Rect
from .resources import ResourceDetail, ResourcesTable, ResourceView
from .styles import Styles
from .table import KeyCode, KeyEvent, TableListState
from .tasks import TableRender, TaskDetail, TasksTable, TaskView

Rendered = Union[TableRender, TaskDetail, ResourceDetail, None]


class ViewState(enum.Enum):
    """The screen currently shown."""

    TASKS_LIST = "tasks_list"
    RESOURCES_LIST = "resources_list"
    TASK_INSTANCE = "task_instance"
    RESOURCE_INSTANCE = "resource_instance"


@dataclass(frozen=True)
class UpdateKind:
    """What a key press changed, as far as the rest of the console cares.

    ``id`` is the span id of the newly selected task or resource.
    """

    name: str
    id: Optional[int] = None

    OTHER: ClassVar["UpdateKind"]
    EXIT_TASK_VIEW: ClassVar["UpdateKind"]

    @classmethod
    def select_task(cls, span_id: int) -> "UpdateKind":
        return cls("select_task", span_id)

    @classmethod
    def select_resource(cls, span_id: int) -> "UpdateKind":
        return cls("select_resource", span_id)


UpdateKind.OTHER = UpdateKind("other")
UpdateKind.EXIT_TASK_VIEW = UpdateKind("exit_task_view")


def _is_key(event: Any, code: Union[KeyCode, str]) -> bool:
    return isinstance(event, KeyEvent) and event.code == code


class View:
    """Switches between the task list, the resource list and the detail views.

    The task and resource lists keep their state while a detail view is
    open, so sorting and selection are as they were on return.
    """

    def __init__(
        self,
        styles: Styles,
        task_state_type: Any,
        *,
        tasks_sort_by: Any = None,
        tasks_sort_for_column: Optional[Callable[[int], Any]] = None,
        resources_sort_by: Any = None,
        resources_sort_for_column: Optional[Callable[[int], Any]] = None,
        async_ops_sort_by: Any = None,
        async_ops_sort_for_column: Optional[Callable[[int], Any]] = None,
    ) -> None:
        self.styles = styles
        self.tasks_list: TableListState = TableListState(
            TasksTable.HEADER, tasks_sort_by, tasks_sort_for_column
        )
        self.resources_list: TableListState = TableListState(
            ResourcesTable.HEADER, resources_sort_by, resources_sort_for_column
        )
        self.detail: Union[TaskView, ResourceView, None] = None
        self._state = ViewState.TASKS_LIST
        self._tasks_table = TasksTable(task_state_type)
        self._resources_table = ResourcesTable()
        self._async_ops_sort_by = async_ops_sort_by
        self._async_ops_sort_for_column = async_ops_sort_for_column

    def _show(self, state: ViewState, detail: Union[TaskView, ResourceView, None] = None) -> None:
        self._state = state
        self.detail = detail

    def update_input(self, event: Any, state: Any) -> UpdateKind:
        """Handle one input event and report what changed."""
        if _is_key(event, "t"):
            self._show(ViewState.TASKS_LIST)
            return UpdateKind.OTHER
        if _is_key(event, "r"):
            self._show(ViewState.RESOURCES_LIST)
            return UpdateKind.OTHER

        update = UpdateKind.OTHER
        current = self._state
        if current is ViewState.TASKS_LIST:
            if _is_key(event, KeyCode.ENTER):
                task = self.tasks_list.selected_item()
                if task is not None:
                    update = UpdateKind.select_task(task.span_id)
                    self._show(
                        ViewState.TASK_INSTANCE,
                        TaskView(task, lambda: state.task_details),
                    )
            else:
                self.tasks_list.update_input(event)
        elif current is ViewState.RESOURCES_LIST:
            if _is_key(event, KeyCode.ENTER):
                resource = self.resources_list.selected_item()
                if resource is not None:
                    update = UpdateKind.select_resource(resource.span_id)
                    self._show(
                        ViewState.RESOURCE_INSTANCE,
                        ResourceView(
                            resource,
                            self._async_ops_sort_by,
                            self._async_ops_sort_for_column,
                        ),
                    )
            else:
                self.resources_list.update_input(event)
        elif current is ViewState.RESOURCE_INSTANCE:
            if _is_key(event, KeyCode.ESC):
                self._show(ViewState.RESOURCES_LIST)
            elif self.detail is not None:
                self.detail.update_input(event)
        elif current is ViewState.TASK_INSTANCE:
            if _is_key(event, KeyCode.ESC):
                self._show(ViewState.TASKS_LIST)
                update = UpdateKind.EXIT_TASK_VIEW
            elif self.detail is not None:
                self.detail.update_input(event)
        return update

    def render(self, area: Rect, state: Any) -> Rendered:
        """Lay out the current screen, then let the state drop finished entities."""
        current = self._state
        if current is ViewState.TASKS_LIST:
            result: Rendered = self._tasks_table.render(
                self.tasks_list, self.styles, area, state
            )
        elif current is ViewState.RESOURCES_LIST:
            result = self._resources_table.render(
                self.resources_list, self.styles, area, state
            )
        elif current is ViewState.TASK_INSTANCE:
            now = state.last_updated_at
            if now is None:
                raise RuntimeError("task view implies we've received an update")
            assert isinstance(self.detail, TaskView)
            result = self.detail.render(self.styles, area, now)
        else:
            assert isinstance(self.detail, ResourceView)
            result = self.detail.render(self.styles, area, state)

        state.retain_active()
        return result

    def current_view(self) -> ViewState:
        return self._state