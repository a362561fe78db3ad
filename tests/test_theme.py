"""Tests for perfmon.theme."""

from __future__ import annotations

import curses
from unittest.mock import patch

import pytest

from perfmon.theme import (
    C_ACTIVE_TAB,
    C_HEADER,
    C_OVERFLOW,
    THEMES,
    apply_sgr,
    apply_theme,
    next_theme,
)

# ── Theme cycling ──────────────────────────────────────────────────────────


def test_next_theme_wraps() -> None:
    seen = [0]
    for _ in range(len(THEMES)):
        seen.append(next_theme(seen[-1]))
    assert seen[-1] == 0
    assert sorted(set(seen)) == list(range(len(THEMES)))


@patch("perfmon.theme.curses.init_pair")
def test_apply_theme_sets_every_pair(mock_init) -> None:
    theme = apply_theme(1)
    assert theme is THEMES[1]
    pairs = [call.args[0] for call in mock_init.call_args_list]
    assert pairs == list(range(C_HEADER, C_OVERFLOW + 1))


@patch("perfmon.theme.curses.init_pair")
def test_apply_theme_active_tab_uses_accent_background(mock_init) -> None:
    theme = apply_theme(0)
    active = next(c for c in mock_init.call_args_list if c.args[0] == C_ACTIVE_TAB)
    assert active.args[2] == theme.accent


@patch("perfmon.theme.curses.init_pair")
def test_apply_theme_bad_index_falls_back(_mock_init) -> None:
    assert apply_theme(42) is THEMES[0]
    assert apply_theme(-1) is THEMES[0]


# ── SGR folding ────────────────────────────────────────────────────────────


class TestApplySgr:
    def test_basic_foreground(self) -> None:
        assert apply_sgr([31], None, 0) == (1, 0)

    def test_bright_foreground(self) -> None:
        assert apply_sgr([92], None, 0) == (10, 0)

    def test_bold_and_colour(self) -> None:
        fg, flags = apply_sgr([1, 34], None, 0)
        assert fg == 4
        assert flags & curses.A_BOLD

    def test_reset(self) -> None:
        assert apply_sgr([0], 3, curses.A_BOLD | curses.A_UNDERLINE) == (None, 0)

    def test_default_foreground_keeps_flags(self) -> None:
        assert apply_sgr([39], 2, curses.A_REVERSE) == (None, curses.A_REVERSE)

    @pytest.mark.parametrize(
        ("on", "off", "attr"),
        [(4, 24, curses.A_UNDERLINE), (7, 27, curses.A_REVERSE), (1, 22, curses.A_BOLD)],
    )
    def test_attribute_toggles(self, on: int, off: int, attr: int) -> None:
        _, flags = apply_sgr([on], None, 0)
        assert flags & attr
        _, flags = apply_sgr([off], None, flags)
        assert not flags & attr

    def test_unknown_codes_ignored(self) -> None:
        assert apply_sgr([38, 5, 208], 1, 0) == (1, 0)
