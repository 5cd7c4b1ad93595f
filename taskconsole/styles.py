"""Terminal styling primitives and the console's colour/duration styling rules."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from datetime import timedelta
from typing import ClassVar, Iterable, Optional, Tuple, Union

NANOS_PER_SEC = 1_000_000_000
NANOS_PER_MILLI = 1_000_000
NANOS_PER_MICRO = 1_000

_SECS_PER_MINUTE = 60
_SECS_PER_HOUR = 60 * 60
_SECS_PER_DAY = 60 * 60 * 24


@dataclass(frozen=True)
class Color:
    """A terminal colour: a named ANSI colour, a 256-colour index or an RGB value."""

    name: str
    index: Optional[int] = None
    rgb_value: Optional[Tuple[int, int, int]] = None

    BLACK: ClassVar["Color"]
    RED: ClassVar["Color"]
    GREEN: ClassVar["Color"]
    YELLOW: ClassVar["Color"]
    BLUE: ClassVar["Color"]
    MAGENTA: ClassVar["Color"]
    CYAN: ClassVar["Color"]
    GRAY: ClassVar["Color"]
    DARK_GRAY: ClassVar["Color"]
    LIGHT_RED: ClassVar["Color"]
    LIGHT_GREEN: ClassVar["Color"]
    LIGHT_YELLOW: ClassVar["Color"]
    LIGHT_BLUE: ClassVar["Color"]
    LIGHT_MAGENTA: ClassVar["Color"]
    LIGHT_CYAN: ClassVar["Color"]
    WHITE: ClassVar["Color"]

    @classmethod
    def indexed(cls, index: int) -> "Color":
        return cls("indexed", index=index)

    @classmethod
    def rgb(cls, red: int, green: int, blue: int) -> "Color":
        return cls("rgb", rgb_value=(red, green, blue))

    @property
    def is_indexed(self) -> bool:
        return self.name == "indexed"

    @property
    def is_rgb(self) -> bool:
        return self.name == "rgb"


Color.BLACK = Color("black")
Color.RED = Color("red")
Color.GREEN = Color("green")
Color.YELLOW = Color("yellow")
Color.BLUE = Color("blue")
Color.MAGENTA = Color("magenta")
Color.CYAN = Color("cyan")
Color.GRAY = Color("gray")
Color.DARK_GRAY = Color("dark_gray")
Color.LIGHT_RED = Color("light_red")
Color.LIGHT_GREEN = Color("light_green")
Color.LIGHT_YELLOW = Color("light_yellow")
Color.LIGHT_BLUE = Color("light_blue")
Color.LIGHT_MAGENTA = Color("light_magenta")
Color.LIGHT_CYAN = Color("light_cyan")
Color.WHITE = Color("white")


class Modifier(enum.Flag):
    """Text attributes."""

    NONE = 0
    BOLD = enum.auto()
    DIM = enum.auto()
    ITALIC = enum.auto()
    UNDERLINED = enum.auto()
    SLOW_BLINK = enum.auto()
    RAPID_BLINK = enum.auto()
    REVERSED = enum.auto()
    HIDDEN = enum.auto()
    CROSSED_OUT = enum.auto()


@dataclass(frozen=True)
class Style:
    """An immutable text style; the builder methods return new styles."""

    foreground: Optional[Color] = None
    background: Optional[Color] = None
    modifiers: Modifier = Modifier.NONE
    removed: Modifier = Modifier.NONE

    def fg(self, color: Color) -> "Style":
        return replace(self, foreground=color)

    def add_modifier(self, modifier: Modifier) -> "Style":
        return replace(
            self,
            modifiers=self.modifiers | modifier,
            removed=self.removed & ~modifier,
        )

    def remove_modifier(self, modifier: Modifier) -> "Style":
        return replace(
            self,
            modifiers=self.modifiers & ~modifier,
            removed=self.removed | modifier,
        )


@dataclass(frozen=True)
class Span:
    """A run of text sharing one style."""

    content: str
    style: Style = Style()

    @classmethod
    def raw(cls, text: str) -> "Span":
        return cls(text)

    @classmethod
    def styled(cls, text: str, style: Style) -> "Span":
        return cls(text, style)

    @property
    def width(self) -> int:
        return len(self.content)


TitleLike = Union[str, Span, Iterable[Span]]


@dataclass(frozen=True)
class Block:
    """A bordered frame around a widget, with an optional title."""

    borders: bool = False
    rounded: bool = False
    title_spans: Tuple[Span, ...] = ()

    def title(self, title: TitleLike) -> "Block":
        if isinstance(title, str):
            spans: Tuple[Span, ...] = (Span.raw(title),)
        elif isinstance(title, Span):
            spans = (title,)
        else:
            spans = tuple(title)
        return replace(self, title_spans=spans)

    @property
    def title_text(self) -> str:
        return "".join(span.content for span in self.title_spans)


class Palette(enum.Enum):
    """The set of colours the terminal is allowed to use."""

    NO_COLORS = "off"
    ANSI8 = "8"
    ANSI16 = "16"
    ANSI256 = "256"
    ALL = "all"

    @classmethod
    def parse(cls, s: str) -> "Palette":
        text = s.strip()
        exact = {"0": cls.NO_COLORS, "8": cls.ANSI8, "16": cls.ANSI16, "256": cls.ANSI256}
        if text in exact:
            return exact[text]
        lowered = text.lower() if text.isascii() else text
        if lowered == "all":
            return cls.ALL
        if lowered == "off":
            return cls.NO_COLORS
        raise ValueError("invalid color palette")


class DurationKind(enum.Enum):
    """Which units a formatted duration uses, used to pick its colour."""

    DAYS = "days"
    DAYS_HOURS = "days_hours"
    HOURS_MINUTES = "hours_minutes"
    MINUTES_SECONDS = "minutes_seconds"
    DEBUG = "debug"


@dataclass(frozen=True)
class FormattedDuration:
    kind: DurationKind
    text: str


@dataclass(frozen=True)
class ColorToggles:
    """Switches for optional colouring."""

    color_durations: bool = True
    color_terminated: bool = True


DurationLike = Union[int, timedelta]


def _to_nanos(dur: DurationLike) -> int:
    if isinstance(dur, timedelta):
        nanos = ((dur.days * _SECS_PER_DAY + dur.seconds) * 1_000_000 + dur.microseconds) * 1_000
    else:
        nanos = int(dur)
    if nanos < 0:
        raise ValueError("durations cannot be negative")
    return nanos


def format_debug_duration(
    nanos: DurationLike, precision: Optional[int] = None, width: int = 0
) -> str:
    """Format a duration with the most fitting unit from ns up to s.

    With ``precision`` the fraction is rounded (half up) to that many digits;
    without it all significant digits are kept. The result is right-aligned
    to ``width`` characters.
    """
    total = _to_nanos(nanos)
    secs, sub = divmod(total, NANOS_PER_SEC)
    if secs > 0:
        integer, frac, divisor, suffix = secs, sub, NANOS_PER_SEC // 10, "s"
    elif sub >= NANOS_PER_MILLI:
        integer, frac = divmod(sub, NANOS_PER_MILLI)
        divisor, suffix = NANOS_PER_MILLI // 10, "ms"
    elif sub >= NANOS_PER_MICRO:
        integer, frac = divmod(sub, NANOS_PER_MICRO)
        divisor, suffix = NANOS_PER_MICRO // 10, "µs"
    else:
        integer, frac, divisor, suffix = sub, 0, 1, "ns"

    limit = 9 if precision is None else min(precision, 9)
    digits = []
    while frac > 0 and len(digits) < limit:
        digit, frac = divmod(frac, divisor)
        digits.append(digit)
        divisor //= 10

    if frac > 0 and frac >= divisor * 5:
        carry = True
        for pos in reversed(range(len(digits))):
            if digits[pos] < 9:
                digits[pos] += 1
                carry = False
                break
            digits[pos] = 0
        if carry:
            integer += 1

    end = len(digits) if precision is None else min(precision, 9)
    digits.extend([0] * (end - len(digits)))
    text = str(integer)
    if end:
        text += "." + "".join(str(d) for d in digits[:end])
    return (text + suffix).rjust(width)


def _fg_style(color: Color) -> Style:
    return Style().fg(color)


_DEBUG_COLORS_16 = (
    (("ps",), Color.GRAY),
    (("ns",), Color.GRAY),
    (("µs", "us"), Color.MAGENTA),
    (("ms",), Color.RED),
    (("s",), Color.YELLOW),
)

_DEBUG_COLORS_256 = (
    (("ps",), Color.indexed(40)),
    (("ns",), Color.indexed(41)),
    (("µs", "us"), Color.indexed(42)),
    (("ms",), Color.indexed(43)),
    (("s",), Color.indexed(44)),
)

_KIND_COLORS_16 = {
    DurationKind.DAYS: Color.BLUE,
    DurationKind.DAYS_HOURS: Color.BLUE,
    DurationKind.HOURS_MINUTES: Color.CYAN,
    DurationKind.MINUTES_SECONDS: Color.GREEN,
}

_KIND_COLORS_256 = {
    DurationKind.DAYS: Color.indexed(33),
    DurationKind.DAYS_HOURS: Color.indexed(33),
    DurationKind.HOURS_MINUTES: Color.indexed(39),
    DurationKind.MINUTES_SECONDS: Color.indexed(45),
}

_ANSI8_LIGHT = {
    Color.LIGHT_RED: Color.RED,
    Color.LIGHT_GREEN: Color.GREEN,
    Color.LIGHT_YELLOW: Color.YELLOW,
    Color.LIGHT_BLUE: Color.BLUE,
    Color.LIGHT_MAGENTA: Color.MAGENTA,
    Color.CYAN: Color.CYAN,
}


def _duration_style(formatted: FormattedDuration, kind_colors, debug_colors) -> Style:
    if formatted.kind is not DurationKind.DEBUG:
        return _fg_style(kind_colors[formatted.kind])
    for suffixes, color in debug_colors:
        if formatted.text.endswith(suffixes):
            return _fg_style(color)
    return Style()


@dataclass(frozen=True)
class Styles:
    """The console's styling rules for a palette and character set."""

    palette: Palette = Palette.NO_COLORS
    toggles: ColorToggles = field(default_factory=ColorToggles)
    utf8: bool = False

    def if_utf8(self, utf8: str, ascii: str) -> str:
        return utf8 if self.utf8 else ascii

    def time_units(
        self, dur: DurationLike, prec: int, width: Optional[int] = None
    ) -> Span:
        """A span with a formatted, possibly coloured duration, right-aligned to ``width``."""
        formatted = self.duration_text(dur, width or 0, prec)
        if not self.toggles.color_durations or self.palette is Palette.NO_COLORS:
            return Span.raw(formatted.text)
        if self.palette in (Palette.ANSI8, Palette.ANSI16):
            style = _duration_style(formatted, _KIND_COLORS_16, _DEBUG_COLORS_16)
        else:
            style = _duration_style(formatted, _KIND_COLORS_256, _DEBUG_COLORS_256)
        return Span.styled(formatted.text, style)

    def duration_text(self, dur: DurationLike, width: int, prec: int) -> FormattedDuration:
        nanos = _to_nanos(dur)
        secs = nanos // NANOS_PER_SEC
        leading = max(width - 4, 0)

        if secs >= _SECS_PER_DAY * 100:
            days = secs // _SECS_PER_DAY
            return FormattedDuration(DurationKind.DAYS, f"{days:>{width}}d")
        if secs >= _SECS_PER_DAY:
            hours = secs // _SECS_PER_HOUR
            return FormattedDuration(
                DurationKind.DAYS_HOURS, f"{hours // 24:>{leading}}d{hours % 24:02}h"
            )
        if secs >= _SECS_PER_HOUR:
            mins = secs // _SECS_PER_MINUTE
            return FormattedDuration(
                DurationKind.HOURS_MINUTES, f"{mins // 60:>{leading}}h{mins % 60:02}m"
            )
        if secs >= _SECS_PER_MINUTE:
            return FormattedDuration(
                DurationKind.MINUTES_SECONDS, f"{secs // 60:>{leading}}m{secs % 60:02}s"
            )

        text = format_debug_duration(nanos, prec, width)
        if not self.utf8:
            offset = text.find("µs")
            if offset >= 0:
                text = text[:offset] + "us"
        return FormattedDuration(DurationKind.DEBUG, text)

    def terminated(self) -> Style:
        if not self.toggles.color_terminated:
            return Style()
        return Style().add_modifier(Modifier.DIM)

    def fg(self, color: Color) -> Style:
        allowed = self.color(color)
        return Style().fg(allowed) if allowed is not None else Style()

    def warning_wide(self) -> Span:
        return Span.styled(
            self.if_utf8("\u26a0 ", "/!\\ "),
            self.fg(Color.LIGHT_YELLOW).add_modifier(Modifier.BOLD),
        )

    def warning_narrow(self) -> Span:
        return Span.styled(
            self.if_utf8("\u26a0 ", "! "),
            self.fg(Color.LIGHT_YELLOW).add_modifier(Modifier.BOLD),
        )

    def selected(self, value: str) -> Span:
        cyan = self.color(Color.CYAN)
        if cyan is not None:
            style = Style().fg(cyan)
        else:
            style = Style().remove_modifier(Modifier.REVERSED)
        return Span.styled(value, style)

    def ascending(self, value: str) -> Span:
        return self.selected(value + self.if_utf8("▵", "+"))

    def descending(self, value: str) -> Span:
        return self.selected(value + self.if_utf8("▿", "-"))

    def color(self, color: Color) -> Optional[Color]:
        """The colour to use for ``color`` under this palette, or None if it is not allowed."""
        palette = self.palette
        if palette is Palette.NO_COLORS:
            return None
        if palette is Palette.ALL:
            return color
        if palette is Palette.ANSI256:
            return None if color.is_rgb else color
        if color.is_rgb:
            return None
        if palette is Palette.ANSI16:
            return None if color.is_indexed else color
        return _ANSI8_LIGHT.get(color, color)

    def border_block(self) -> Block:
        if self.utf8:
            return Block(borders=True, rounded=True)
        return Block()


def bold(text: str) -> Span:
    """A span of bold text."""
    return Span.styled(text, Style().add_modifier(Modifier.BOLD))