"""Tests for perfmon.tabbar."""

from __future__ import annotations

import pytest

from perfmon.tabbar import (
    OVERFLOW,
    TabBarLayout,
    layout_tabs,
    render_tab_bar,
    tab_bar_cells,
    tab_cell,
)

TITLES = [
    "uptime",
    "vmstat",
    "mpstat -P ALL",
    "pidstat -p ALL",
    "iostat",
    "free -m",
    "sar -n DEV",
    "sar -n TCP,ETCP",
    "top -b -n 1",
    "fastfetch",
]


def _total(titles: list[str]) -> int:
    return sum(len(tab_cell(t)) for t in titles)


# ── layout_tabs ───────────────────────────────────────────────────────────


class TestLayoutTabs:
    def test_everything_fits(self) -> None:
        assert layout_tabs([3, 3, 3], 1, 9) == TabBarLayout(0, 2, False, False)

    def test_markers_force_shrink(self) -> None:
        # six 3-wide cells, active in the middle, 10 columns
        layout = layout_tabs([3] * 6, 3, 10)
        assert layout.left <= 3 <= layout.right
        assert layout.left_overflow and layout.right_overflow

    def test_active_at_left_edge(self) -> None:
        layout = layout_tabs([3] * 6, 0, 10)
        assert layout.left == 0
        assert not layout.left_overflow
        assert layout.right_overflow
        assert 3 * (layout.right + 1) + 3 <= 10

    def test_active_at_right_edge(self) -> None:
        layout = layout_tabs([3] * 6, 5, 10)
        assert layout.right == 5
        assert layout.left_overflow
        assert not layout.right_overflow


# ── tab_bar_cells / render_tab_bar ────────────────────────────────────────


class TestTabBar:
    def test_all_tabs_when_they_fit(self) -> None:
        width = _total(TITLES)
        cells = tab_bar_cells(TITLES, 4, width)
        assert [i for i, _ in cells] == list(range(len(TITLES)))
        assert OVERFLOW not in [text for _, text in cells]

    def test_six_tiny_tabs(self) -> None:
        row = render_tab_bar(list("abcdef"), 3, 10)
        assert row == OVERFLOW + " d " + OVERFLOW

    def test_zero_width(self) -> None:
        assert tab_bar_cells(TITLES, 0, 0) == []
        assert render_tab_bar(TITLES, 0, -5) == ""

    def test_no_tabs(self) -> None:
        assert tab_bar_cells([], 0, 80) == []

    def test_single_wide_tab_not_truncated(self) -> None:
        cells = tab_bar_cells(["a-very-long-title"], 0, 5)
        assert cells == [(0, " a-very-long-title ")]

    def test_active_wider_than_terminal_among_many(self) -> None:
        titles = ["a", "this-one-is-very-wide", "b"]
        cells = tab_bar_cells(titles, 1, 10)
        assert (1, " this-one-is-very-wide ") in cells

    @pytest.mark.parametrize("width", [1, 5, 12, 20, 33, 40, 64, 80, 119])
    def test_active_always_visible_with_correct_markers(self, width: int) -> None:
        n = len(TITLES)
        for active in range(n):
            cells = tab_bar_cells(TITLES, active, width)
            shown = [i for i, _ in cells if i is not None]
            texts = [text for _, text in cells]

            assert active in shown
            assert shown == list(range(shown[0], shown[-1] + 1))
            assert (texts[0] == OVERFLOW) == (shown[0] > 0)
            assert (texts[-1] == OVERFLOW) == (shown[-1] < n - 1)
            # the row fits unless it has collapsed to the active tab alone
            assert sum(len(t) for t in texts) <= width or shown == [active]

    def test_out_of_range_active_is_clamped(self) -> None:
        cells = tab_bar_cells(TITLES, 99, 30)
        assert (len(TITLES) - 1, tab_cell(TITLES[-1])) in cells
