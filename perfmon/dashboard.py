"""Interactive terminal dashboard: one tab per diagnostic command.

Runs each tab's command on its refresh interval and shows the (sanitized)
output, with a tab bar, a sparkline summary of load / CPU / memory /
network, and uptime / disk / network info lines above it.

Usage:
    uv run perfmon
    uv run perfmon --interval 2 --config path/to/config.toml
"""

from __future__ import annotations

import argparse
import curses
import os
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from perfmon.config import Config, Tab, dump_default_config, load_config
from perfmon.history import MetricHistory, render_summary
from perfmon.monitor import (
    COMMAND_TIMEOUT,
    CommandResult,
    MetricSample,
    NetRateState,
    SystemInfo,
    run_command,
    sample_metrics,
    sample_system,
)
from perfmon.sanitize import sanitize, split_sgr
from perfmon.tabbar import tab_bar_cells
from perfmon.theme import (
    C_ACTIVE_TAB,
    C_BORDER,
    C_FOOTER,
    C_HEADER,
    C_INACTIVE_TAB,
    C_INFO,
    C_OVERFLOW,
    C_SUMMARY,
    apply_sgr,
    apply_theme,
    init_colors,
    next_theme,
    sgr_attr,
)

VERSION = "0.1.0"

SPINNER = ("|", "/", "-", "\\")
SPINNER_MS = 200
# tab bar, summary, 3 info lines, content title, box borders, footer
FIXED_ROWS = 9
HELP = "q:quit  tab/shift+tab:next/prev  up/down/pgup/pgdn:scroll  t:theme"

KEY_ESC = 27
KEY_TAB = 9
QUIT_KEYS = (ord("q"), ord("Q"), KEY_ESC)
NEXT_KEYS = (curses.KEY_RIGHT, ord("l"), KEY_TAB)
PREV_KEYS = (curses.KEY_LEFT, ord("h"), curses.KEY_BTAB)

# one sampling job, one command job, one abandoned command still finishing
WORKERS = 3
MAX_STALE_COMMANDS = 1


# ── State ──────────────────────────────────────────────────────────────────


@dataclass
class DashboardState:
    """Everything the screen shows. Only the main loop mutates it."""

    tabs: list[Tab]
    active: int = 0
    content: str = "Loading..."
    status: str = ""
    scroll: int = 0
    page: int = 10
    theme_index: int = 0
    spinner_idx: int = 0
    history: MetricHistory = field(default_factory=MetricHistory)
    system: SystemInfo = field(default_factory=SystemInfo)
    net_state: NetRateState = field(default_factory=NetRateState)

    @property
    def active_tab(self) -> Tab:
        return self.tabs[self.active]

    def select(self, index: int) -> None:
        self.active = index % len(self.tabs)
        self.scroll = 0
        tab = self.active_tab
        if tab.enabled:
            self.content = "Loading..."
            self.status = ""
        else:
            self.content = tab.disabled_reason or ""
            self.status = "disabled"

    def apply_command_result(self, index: int, result: CommandResult) -> None:
        """Show *result* if it belongs to the active tab; late results are dropped."""
        if index != self.active or not self.active_tab.enabled:
            return
        self.content = sanitize(result.output.strip()) or "(no output)"
        if result.error is not None:
            self.status = f"error: {result.error}"
        else:
            self.status = f"updated {time.strftime('%H:%M:%S')}"

    def apply_sample(self, sample: MetricSample, info: SystemInfo) -> None:
        self.history.append(sample)
        self.system = info

    def scroll_by(self, delta: int) -> None:
        lines = len(self.content.splitlines())
        self.scroll = max(0, min(self.scroll + delta, max(0, lines - self.page)))


def handle_key(state: DashboardState, key: int) -> bool:
    """Apply a key press to *state*. Returns False when the user quits."""
    if key in QUIT_KEYS:
        return False
    if key in NEXT_KEYS:
        state.select(state.active + 1)
    elif key in PREV_KEYS:
        state.select(state.active - 1)
    elif key == ord("t"):
        state.theme_index = next_theme(state.theme_index)
    elif key == curses.KEY_DOWN:
        state.scroll_by(1)
    elif key == curses.KEY_UP:
        state.scroll_by(-1)
    elif key == curses.KEY_NPAGE:
        state.scroll_by(state.page)
    elif key == curses.KEY_PPAGE:
        state.scroll_by(-state.page)
    return True


def footer_text(status: str, spinner: str) -> str:
    if status:
        return f"{spinner}  {status}  |  {HELP}"
    if spinner:
        return f"{spinner}  {HELP}"
    return HELP


def sample_all(net_state: NetRateState) -> tuple[MetricSample, SystemInfo]:
    """One metrics tick: the sample and the info lines built from it."""
    sample = sample_metrics(net_state)
    return sample, sample_system(sample.net_rate_kb_s)


# ── Curses drawing primitives ──────────────────────────────────────────────


def _safe(win: curses.window, *args: Any) -> None:
    """addstr wrapper that swallows out-of-bounds errors."""
    try:
        win.addstr(*args)
    except curses.error:
        pass


def _draw_line(win: curses.window, y: int, width: int, text: str, attr: int) -> None:
    """Fill row *y* with *attr* and write *text* padded by one column."""
    if width <= 1:
        return
    _safe(win, y, 0, " " * (width - 1), attr)
    _safe(win, y, 1, text[: max(0, width - 3)], attr)


def _draw_tab_bar(win: curses.window, state: DashboardState, width: int) -> None:
    header = curses.color_pair(C_HEADER)
    _safe(win, 0, 0, " " * max(0, width - 1), header)
    # one column of padding each side, matching the other rows
    cells = tab_bar_cells([t.title for t in state.tabs], state.active, width - 2)
    x = 1
    for index, text in cells:
        if index is None:
            attr = curses.color_pair(C_OVERFLOW)
        elif index == state.active:
            attr = curses.color_pair(C_ACTIVE_TAB) | curses.A_BOLD
        elif not state.tabs[index].enabled:
            attr = curses.color_pair(C_INACTIVE_TAB) | curses.A_DIM
        else:
            attr = curses.color_pair(C_INACTIVE_TAB)
        _safe(win, 0, x, text[: max(0, width - x - 1)], attr)
        x += len(text)
        if x >= width - 1:
            break


def _draw_ansi_line(
    win: curses.window,
    y: int,
    x: int,
    width: int,
    line: str,
    fg: int | None,
    flags: int,
) -> tuple[int | None, int]:
    """Draw one line of SGR-coloured text; returns the style carried to the next line."""
    col = 0
    for params, chunk in split_sgr(line):
        if params is not None:
            fg, flags = apply_sgr(params, fg, flags)
        if not chunk or col >= width:
            continue
        text = chunk.expandtabs(8).replace("\r", "")[: width - col]
        _safe(win, y, x + col, text, sgr_attr(fg, flags))
        col += len(text)
    return fg, flags


def _draw_content(
    win: curses.window, y: int, h: int, w: int, state: DashboardState
) -> None:
    if h < 3 or w < 4:
        return
    try:
        box = win.subwin(h, w, y, 0)
    except curses.error:
        return
    box.attrset(curses.color_pair(C_BORDER))
    box.box()
    box.attrset(0)

    inner_h, inner_w = h - 2, w - 4
    state.page = max(1, inner_h)
    lines = state.content.splitlines()
    state.scroll = max(0, min(state.scroll, max(0, len(lines) - inner_h)))

    fg: int | None = None
    flags = 0
    # replay SGR state from the lines scrolled off the top
    for line in lines[: state.scroll]:
        for params, _ in split_sgr(line):
            if params is not None:
                fg, flags = apply_sgr(params, fg, flags)
    for row, line in enumerate(lines[state.scroll: state.scroll + inner_h]):
        fg, flags = _draw_ansi_line(box, row + 1, 2, inner_w, line, fg, flags)


def draw(stdscr: curses.window, state: DashboardState) -> None:
    max_y, max_x = stdscr.getmaxyx()
    stdscr.erase()
    if max_y < FIXED_ROWS + 1 or max_x < 20:
        _safe(stdscr, 0, 0, "Terminal too small"[: max(0, max_x - 1)])
        stdscr.refresh()
        return

    summary = curses.color_pair(C_SUMMARY)
    info = curses.color_pair(C_INFO)

    _draw_tab_bar(stdscr, state, max_x)
    _draw_line(stdscr, 1, max_x, render_summary(state.history), summary)
    _draw_line(stdscr, 2, max_x, state.system.uptime, info)
    _draw_line(stdscr, 3, max_x, state.system.disk, info)
    _draw_line(stdscr, 4, max_x, state.system.net, info)
    _draw_line(stdscr, 5, max_x, f" {state.active_tab.title} ", summary | curses.A_BOLD)
    _draw_content(stdscr, 6, max_y - 7, max_x, state)
    _draw_line(
        stdscr,
        max_y - 1,
        max_x,
        footer_text(state.status, SPINNER[state.spinner_idx]),
        curses.color_pair(C_FOOTER),
    )
    stdscr.refresh()


# ── Main loop ──────────────────────────────────────────────────────────────


def _dashboard_loop(stdscr: curses.window, config: Config) -> None:
    init_colors(0)
    curses.curs_set(0)
    stdscr.keypad(True)
    stdscr.timeout(SPINNER_MS)

    state = DashboardState(tabs=config.tabs)
    state.select(0)

    executor = ThreadPoolExecutor(max_workers=WORKERS, thread_name_prefix="perfmon")
    sample_job: Future[tuple[MetricSample, SystemInfo]] | None = None
    command_job: tuple[int, Future[CommandResult]] | None = None
    # commands abandoned by a tab switch that could not be cancelled
    stale: list[Future[CommandResult]] = []
    next_sample = 0.0
    next_command = 0.0
    theme_index = state.theme_index

    try:
        while True:
            now = time.monotonic()

            # At most one sampling job in flight, so net_state never interleaves.
            if sample_job is None and now >= next_sample:
                sample_job = executor.submit(sample_all, state.net_state)
                next_sample = now + config.global_refresh_interval
            if sample_job is not None and sample_job.done():
                error = sample_job.exception()
                if error is None:
                    state.apply_sample(*sample_job.result())
                else:
                    state.status = f"error: sampling failed: {error}"
                sample_job = None

            stale = [job for job in stale if not job.done()]
            tab = state.active_tab
            if (
                tab.enabled
                and command_job is None
                and len(stale) <= MAX_STALE_COMMANDS
                and now >= next_command
            ):
                command_job = (
                    state.active,
                    executor.submit(run_command, tab.command, COMMAND_TIMEOUT),
                )
                next_command = now + tab.refresh_interval
            if command_job is not None and command_job[1].done():
                index, job = command_job
                state.apply_command_result(index, job.result())
                command_job = None

            draw(stdscr, state)

            key = stdscr.getch()
            if key == -1:
                state.spinner_idx = (state.spinner_idx + 1) % len(SPINNER)
                continue
            if key == curses.KEY_RESIZE:
                stdscr.clear()
                continue

            previous = state.active
            if not handle_key(state, key):
                return
            if state.active != previous:
                # run the newly selected tab right away; the old result is ignored
                if command_job is not None and not command_job[1].cancel():
                    stale.append(command_job[1])
                command_job = None
                next_command = 0.0
            if state.theme_index != theme_index:
                theme_index = state.theme_index
                apply_theme(theme_index)
    finally:
        executor.shutdown(wait=False, cancel_futures=True)


# ── CLI entry point ────────────────────────────────────────────────────────


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="perfmon",
        description="Terminal dashboard for uptime, vmstat, free, sar and friends.",
    )
    parser.add_argument(
        "-v",
        "--version",
        action="version",
        version=f"perfmon {VERSION}",
        help="Print version and exit",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Seconds between refreshes (default: from config, else 5)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="PATH",
        help="Path to TOML config file",
    )
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Print the default configuration as TOML and exit",
    )
    args = parser.parse_args()

    if args.print_config:
        print(dump_default_config(), end="")
        return

    interval = args.interval if args.interval and args.interval > 0 else None
    config = load_config(args.config, interval)
    if not config.tabs:
        raise SystemExit("perfmon: no tabs configured")

    # Esc should quit promptly rather than wait for an escape sequence
    os.environ.setdefault("ESCDELAY", "25")
    try:
        curses.wrapper(_dashboard_loop, config)
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()
