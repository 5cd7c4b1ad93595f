import pytest

from taskconsole.styles import Styles
from taskconsole.table import Controls, KeyCode, KeyEvent, TableListState, Width

HEADER = ("ID", "Parent", "Kind", "Total")


class Item:
    def __init__(self, name):
        self.name = name


class Sort:
    def __init__(self, column):
        self.column = column

    def as_column(self):
        return self.column


def sort_for_column(column):
    if column == 2:
        raise ValueError("not sortable")
    return Sort(column)


def make_state(n_items=0, **kwargs):
    state = TableListState(HEADER, **kwargs)
    items = [Item(str(i)) for i in range(n_items)]
    state.extend(items)
    return state, items


def press(state, *codes):
    for code in codes:
        state.key_input(KeyEvent(code))


def test_width_grows_and_caps():
    w = Width(3)
    assert w.update_str("hello") == "hello"
    assert w.chars() == len("hello")
    w.update_len(2)
    assert w.chars() == len("hello")
    w.update_len(500)
    assert w.chars() == 100


def test_initial_column_from_sort():
    state, _ = make_state(sort_by=Sort(3))
    assert state.selected_column == 3
    assert state.sort_descending is False
    assert state.selected is None


def test_left_wraps_to_last_column():
    state, _ = make_state()
    press(state, KeyCode.LEFT)
    assert state.selected_column == len(HEADER) - 1
    press(state, "h")
    assert state.selected_column == len(HEADER) - 2


def test_right_wraps_to_first_column():
    state, _ = make_state(sort_by=Sort(len(HEADER) - 1))
    press(state, "l")
    assert state.selected_column == 0
    press(state, KeyCode.RIGHT)
    assert state.selected_column == 1


def test_column_change_updates_sort_and_ignores_invalid():
    state, _ = make_state(sort_by=Sort(0), sort_for_column=sort_for_column)
    press(state, "l")
    assert state.sort_by.as_column() == 1
    press(state, "l")
    assert state.selected_column == 2
    assert state.sort_by.as_column() == 1


def test_invert_sort_toggles():
    state, _ = make_state()
    press(state, "i")
    assert state.sort_descending is True
    press(state, "i")
    assert state.sort_descending is False


def test_scroll_next_and_wrap():
    state, _ = make_state(3)
    press(state, "j")
    assert state.selected == 1
    press(state, KeyCode.DOWN, "j")
    assert state.selected == 0


def test_scroll_prev_wraps_to_last():
    state, items = make_state(3)
    press(state, "k")
    assert state.selected == len(items) - 1
    press(state, KeyCode.UP)
    assert state.selected == len(items) - 2


def test_scroll_on_empty_clears_selection():
    state, _ = make_state(0)
    state.selected = 4
    press(state, "j")
    assert state.selected is None


def test_g_and_gg():
    state, items = make_state(5)
    press(state, "G")
    assert state.selected == len(items) - 1
    press(state, "g")
    assert state.selected == len(items) - 1
    press(state, "g")
    assert state.selected == 0


def test_single_g_after_other_key_does_nothing():
    state, items = make_state(5)
    press(state, "G", "j", "g")
    assert state.selected == 0
    press(state, "G", "i", "g")
    assert state.selected == len(items) - 1


def test_selected_item_ascending_reverses():
    state, items = make_state(3)
    state.selected = 0
    assert state.selected_item() is items[-1]
    state.sort_descending = True
    assert state.selected_item() is items[0]


def test_selected_item_none_when_nothing_selected():
    state, _ = make_state(2)
    assert state.selected_item() is None


def test_selected_item_dead_reference():
    state = TableListState(HEADER)
    state.extend([Item("gone")])
    state.selected = 0
    assert state.selected_item() is None
    state.retain_alive()
    assert len(state) == 0


def test_selected_item_out_of_range():
    state, _ = make_state(2)
    state.selected = 5
    with pytest.raises(IndexError):
        state.selected_item()


def test_update_input_ignores_non_key_events():
    state, _ = make_state(3)
    state.update_input("mouse")
    assert state.selected is None
    state.update_input(KeyEvent("j"))
    assert state.selected == 1


def test_empty_header_rejected():
    with pytest.raises(ValueError):
        TableListState(())


def test_controls_text_ascii_and_utf8():
    ascii_controls = Controls.for_area(1000, Styles(utf8=False))
    utf8_controls = Controls.for_area(1000, Styles(utf8=True))
    assert "left, right" in ascii_controls.text
    assert "\u2190\u2192" in utf8_controls.text
    assert ascii_controls.text.startswith("controls: ")
    assert ascii_controls.height == 1


@pytest.mark.parametrize("width", [1, 7, 20, 50, 99])
def test_controls_height_covers_text(width):
    controls = Controls.for_area(width, Styles())
    assert controls.height * width >= controls.width
    assert (controls.height - 1) * width < controls.width


def test_controls_zero_width_fails():
    with pytest.raises(ZeroDivisionError):
        Controls.for_area(0, Styles())