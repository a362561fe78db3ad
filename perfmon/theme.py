"""Colour themes for the dashboard, cycled with ``t``."""

from __future__ import annotations

import curses
from dataclasses import dataclass

# Curses colour-pair IDs
C_HEADER = 1
C_ACTIVE_TAB = 2
C_INACTIVE_TAB = 3
C_SUMMARY = 4
C_INFO = 5
C_BORDER = 6
C_FOOTER = 7
C_OVERFLOW = 8

# Pairs ANSI_BASE..ANSI_BASE+15 hold the 16 ANSI foregrounds for SGR output
ANSI_BASE = 16


@dataclass(frozen=True)
class Theme:
    name: str
    accent: int
    accent_dark: int
    ink: int
    muted: int
    background: int  # -1 keeps the terminal's own background


THEMES: tuple[Theme, ...] = (
    Theme("Ocean", curses.COLOR_CYAN, curses.COLOR_BLACK, curses.COLOR_WHITE,
          curses.COLOR_BLUE, -1),
    Theme("Sand", curses.COLOR_YELLOW, curses.COLOR_BLACK, curses.COLOR_WHITE,
          curses.COLOR_YELLOW, -1),
    Theme("Day", curses.COLOR_BLUE, curses.COLOR_WHITE, curses.COLOR_BLACK,
          curses.COLOR_BLUE, curses.COLOR_WHITE),
)


def next_theme(index: int) -> int:
    return (index + 1) % len(THEMES)


def apply_theme(index: int) -> Theme:
    """(Re)initialise the colour pairs for THEMES[index]."""
    if not 0 <= index < len(THEMES):
        index = 0
    t = THEMES[index]
    curses.init_pair(C_HEADER, t.ink, t.background)
    curses.init_pair(C_ACTIVE_TAB, t.accent_dark if t.background == -1 else t.background, t.accent)
    curses.init_pair(C_INACTIVE_TAB, t.muted, t.background)
    curses.init_pair(C_SUMMARY, t.ink, t.accent_dark)
    curses.init_pair(C_INFO, t.ink, t.background)
    curses.init_pair(C_BORDER, t.muted, t.background)
    curses.init_pair(C_FOOTER, t.muted, t.background)
    curses.init_pair(C_OVERFLOW, t.muted, t.background)
    return t


def init_colors(theme_index: int = 0) -> Theme:
    curses.start_color()
    curses.use_default_colors()
    colours = min(curses.COLORS, 16)
    for i in range(colours):
        curses.init_pair(ANSI_BASE + i, i, -1)
    return apply_theme(theme_index)


# ── SGR → curses attributes ────────────────────────────────────────────────


def apply_sgr(params: list[int], fg: int | None, flags: int) -> tuple[int | None, int]:
    """Fold one SGR parameter list into (foreground colour, attribute flags).

    Handles reset, bold, dim, underline, reverse and the 16 basic
    foregrounds; everything else is ignored.
    """
    for p in params:
        if p == 0:
            fg, flags = None, 0
        elif p == 1:
            flags |= curses.A_BOLD
        elif p == 2:
            flags |= curses.A_DIM
        elif p == 4:
            flags |= curses.A_UNDERLINE
        elif p == 7:
            flags |= curses.A_REVERSE
        elif p == 22:
            flags &= ~(curses.A_BOLD | curses.A_DIM)
        elif p == 24:
            flags &= ~curses.A_UNDERLINE
        elif p == 27:
            flags &= ~curses.A_REVERSE
        elif 30 <= p <= 37:
            fg = p - 30
        elif 90 <= p <= 97:
            fg = p - 90 + 8
        elif p == 39:
            fg = None
    return fg, flags


def sgr_attr(fg: int | None, flags: int) -> int:
    if fg is None or fg >= curses.COLORS:
        return flags
    return flags | curses.color_pair(ANSI_BASE + fg)
