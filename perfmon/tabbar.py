"""Fit a row of tab cells into the terminal width.

The active tab is always visible. When tabs are hidden on either side an
overflow marker is shown there; markers take width too, so the window is
shrunk until the row fits or only the active cell is left.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

OVERFLOW = " … "


@dataclass(frozen=True)
class TabBarLayout:
    left: int
    right: int
    left_overflow: bool
    right_overflow: bool


def tab_cell(title: str) -> str:
    return f" {title} "


def layout_tabs(
    widths: Sequence[int],
    active: int,
    width: int,
    marker_width: int = len(OVERFLOW),
) -> TabBarLayout:
    """Choose the visible window ``[left, right]`` around *active*."""
    n = len(widths)
    if sum(widths) <= width:
        return TabBarLayout(0, n - 1, False, False)

    # Grow outward from the active cell, left before right each round.
    left = right = active
    used = widths[active]
    grew = True
    while grew:
        grew = False
        if left > 0 and used + widths[left - 1] <= width:
            left -= 1
            used += widths[left]
            grew = True
        if right < n - 1 and used + widths[right + 1] <= width:
            right += 1
            used += widths[right]
            grew = True

    def markers() -> int:
        return marker_width * ((left > 0) + (right < n - 1))

    # Drop the cell farther from active until the markers fit too.
    while used + markers() > width and (left < active or right > active):
        if right - active >= active - left:
            used -= widths[right]
            right -= 1
        else:
            used -= widths[left]
            left += 1

    return TabBarLayout(left, right, left > 0, right < n - 1)


def tab_bar_cells(
    titles: Sequence[str], active: int, width: int
) -> list[tuple[int | None, str]]:
    """Ordered ``(tab index, text)`` cells to draw; markers have index None."""
    if width <= 0 or not titles:
        return []
    active = min(max(active, 0), len(titles) - 1)
    texts = [tab_cell(t) for t in titles]
    layout = layout_tabs([len(t) for t in texts], active, width)
    cells: list[tuple[int | None, str]] = [
        (i, texts[i]) for i in range(layout.left, layout.right + 1)
    ]
    if layout.left_overflow:
        cells.insert(0, (None, OVERFLOW))
    if layout.right_overflow:
        cells.append((None, OVERFLOW))
    return cells


def render_tab_bar(titles: Sequence[str], active: int, width: int) -> str:
    """The tab row as plain text; styling is left to the caller."""
    return "".join(text for _, text in tab_bar_cells(titles, active, width))
