# taskconsole

Building blocks for a terminal console that watches the tasks, resources and
async operations of an asynchronous runtime. The package gives you
plain-Python models of what each console screen shows. You can inspect them,
test them, or pass them to a renderer of your own.

## What is inside

- `taskconsole.styles`: colour palettes (`Palette`), styled text (`Color`,
  `Modifier`, `Style`, `Span`, `Block`) and the `Styles` object.
  `Styles.time_units` formats durations such as `628.76ms`, `43m02s`,
  `12d03h` or `102d` and colours each one by its unit. `Styles.color` works
  out which colours a palette allows. `format_debug_duration` formats a
  nanosecond count with the best-fitting unit, from `ns` up to `s`.
- `taskconsole.warnings`: lints for tasks. `SelfWakePercent` flags tasks that
  wake themselves more often than a given percentage (50 by default).
  `LostWaker` flags unfinished tasks that have no waker left and are neither
  running nor awakened. A `Linter` wraps a lint. `Linter.check` hands out a
  linter for each task the lint applies to, and `Linter.count` reports how
  many of those are still alive.
- `taskconsole.table`: the state of a sortable, scrollable table
  (`TableListState`), key events (`KeyCode`, `KeyEvent`), column widths that
  grow with their contents up to 100 characters (`Width`), and the controls
  help line together with the number of rows it needs (`Controls.for_area`).
- `taskconsole.histogram`: a duration histogram (`DurationHistogram`), a
  character grid (`Buffer`, `Rect`), and `MiniHistogram`, a small labelled
  bar chart drawn into that grid.
- `taskconsole.percentiles` and `taskconsole.durations`: `Percentiles` lists
  the p10 to p99 values of a histogram. `Durations` shows that list next to
  a `MiniHistogram` when UTF-8 is on and the area is wide enough.
- `taskconsole.tasks` and `taskconsole.resources`: `TasksTable`,
  `ResourcesTable` and `AsyncOpsTable` lay out their tables as a
  `TableRender`. `TaskView` and `ResourceView` lay out the detail screens as
  a `TaskDetail` or a `ResourceDetail`.
- `taskconsole.view`: the top-level `View`. It switches between screens on
  key presses and reports what changed through `UpdateKind`. `View.render`
  returns the layout of the current screen.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## A short example

```python
from datetime import timedelta

from taskconsole.styles import Palette, Styles

styles = Styles(palette=Palette.parse("256"), utf8=True)
span = styles.time_units(timedelta(milliseconds=628.76), 2, None)
print(span.content)           # 628.76ms
print(span.style.foreground)  # the 256-colour index used for milliseconds (43)
```

`Palette.parse` accepts `0`, `8`, `16`, `256`, `all` and `off`. Any other
value raises `ValueError`.

## Keys

In a table, `h`/`l` or the left and right arrows choose the sort column,
`j`/`k` or the up and down arrows scroll, `gg` and `G` jump to the top and
the bottom, and `i` inverts the sort order. With `View`, Enter opens the
details of the selected task or resource and Esc goes back to the list. `t`
and `r` switch to the task list and the resource list from any screen.

## What it does not do

- It draws nothing on a real terminal and reads no keyboard input. You pass
  `KeyEvent` values in, and you turn the returned layouts into output.
  `Buffer` is an in-memory grid of characters.
- It does not connect to a running program or collect data. The tables and
  views read task, resource and async-op objects from a state object that
  you provide. You also supply the task state enumeration and the sort
  orders.
- It has no command-line program. The help line mentions `q` to quit, but
  the package leaves quitting to the caller.