"""View models, tables and lints for monitoring asynchronous tasks in a terminal."""

__version__ = "0.1.0"

__all__ = [
    "durations",
    "histogram",
    "percentiles",
    "resources",
    "styles",
    "table",
    "tasks",
    "view",
    "warnings",
]