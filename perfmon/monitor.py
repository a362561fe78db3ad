"""Metric sampling: fallback chains over command-line tools, plus the
subprocess boundary they run through.

Each metric has an ordered tuple of ``Source`` candidates. The first
candidate whose tool is installed and whose output parses wins; when every
candidate fails the metric is *None* for this tick.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Any

import psutil

from perfmon.parsers import (
    cpu_from_idle,
    first_interface_netstat,
    first_interface_proc_net_dev,
    is_loopback,
    parse_df_summary,
    parse_free_mem,
    parse_load_average,
    parse_mpstat_idle,
    parse_uptime_short,
    parse_vm_stat_mem,
    parse_vmstat_idle,
    sum_netstat_bytes,
    sum_proc_net_dev,
)

QUICK_TIMEOUT = 2.0
COMMAND_TIMEOUT = 4.0
PROC_NET_DEV = "/proc/net/dev"


# ── Data types ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class CommandResult:
    """Combined stdout+stderr of one command run; *error* is None on success."""

    output: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class MetricSample:
    """One tick of readings. None means unavailable, not zero."""

    load: float | None = None
    cpu_pct: float | None = None
    mem_pct: float | None = None
    net_rate_kb_s: float | None = None


@dataclass
class SystemInfo:
    """The three info lines under the metrics summary."""

    uptime: str = "UPTIME: unknown"
    disk: str = ""
    net: str = ""


@dataclass
class NetRateState:
    """Baseline for turning monotonically increasing byte counters into KB/s."""

    previous_total: int | None = None
    previous_at: float | None = None

    def update(self, total: int, now: float) -> float | None:
        """Record *total* at *now* and return KB/s since the previous call.

        Returns None on the first call, on a counter rollback and when no
        time has elapsed; each of those re-baselines.
        """
        prev_total, prev_at = self.previous_total, self.previous_at
        self.previous_total, self.previous_at = total, now
        if prev_total is None or prev_at is None:
            return None
        if total < prev_total:
            return None
        elapsed = now - prev_at
        if elapsed <= 0:
            return None
        return (total - prev_total) / 1024.0 / elapsed


@dataclass(frozen=True)
class Source:
    """One candidate in a fallback chain.

    *fetch* returns raw data (command output, file text, a psutil result) or
    None; *parse* turns it into a value or None. Candidates with a *tool* are
    skipped when that binary is not on PATH.
    """

    name: str
    fetch: Callable[[], Any]
    parse: Callable[[Any], Any]
    tool: str | None = None


# ── Subprocess boundary ─────────────────────────────────────────────────────


def run_command(argv: Sequence[str], timeout: float = COMMAND_TIMEOUT) -> CommandResult:
    """Run *argv* and capture stdout followed by stderr. Never raises."""
    if not argv:
        return CommandResult("", "no command")
    try:
        result = subprocess.run(
            list(argv),
            capture_output=True,
            text=True,
            errors="replace",
            timeout=timeout,
        )
    except FileNotFoundError:
        return CommandResult("", f"{argv[0]}: command not found")
    except subprocess.TimeoutExpired:
        return CommandResult("", f"{argv[0]}: timed out after {timeout:g}s")
    except OSError as e:
        return CommandResult("", f"{argv[0]}: {e}")

    output = (result.stdout or "") + (result.stderr or "")
    if result.returncode != 0:
        return CommandResult(output, f"exit status {result.returncode}")
    return CommandResult(output)


def _command(*argv: str, timeout: float = QUICK_TIMEOUT) -> Callable[[], str | None]:
    def fetch() -> str | None:
        result = run_command(argv, timeout)
        return result.output if result.ok else None

    return fetch


def _read_file(path: str) -> Callable[[], str | None]:
    def fetch() -> str | None:
        try:
            with open(path) as f:
                return f.read()
        except OSError:
            return None

    return fetch


# ── psutil / os candidates ──────────────────────────────────────────────────


def _os_loadavg() -> float | None:
    try:
        return os.getloadavg()[0]
    except (AttributeError, OSError):
        return None


# interval=None measures against a per-thread baseline, and the first call on
# each worker thread reports all zeros; block briefly for a real reading
PSUTIL_CPU_INTERVAL = 0.1


def _psutil_idle() -> float | None:
    try:
        return float(psutil.cpu_times_percent(interval=PSUTIL_CPU_INTERVAL).idle)
    except (AttributeError, NotImplementedError):
        return None


def _psutil_mem() -> float | None:
    try:
        return float(psutil.virtual_memory().percent)
    except (AttributeError, OSError):
        return None


def _psutil_net_bytes() -> int | None:
    try:
        counters = psutil.net_io_counters(pernic=True)
    except (AttributeError, OSError):
        return None
    found = [
        c.bytes_recv + c.bytes_sent
        for name, c in (counters or {}).items()
        if not is_loopback(name)
    ]
    return sum(found) if found else None


def _identity(value: Any) -> Any:
    return value


# ── Fallback chains ─────────────────────────────────────────────────────────

LOAD_SOURCES: tuple[Source, ...] = (
    Source("uptime", _command("uptime"), parse_load_average, tool="uptime"),
    Source("os.getloadavg", _os_loadavg, _identity),
)

# These yield idle %, converted to usage by sample_cpu.
CPU_SOURCES: tuple[Source, ...] = (
    Source("vmstat", _command("vmstat"), parse_vmstat_idle, tool="vmstat"),
    Source("mpstat", _command("mpstat", "1", "1", timeout=3.0), parse_mpstat_idle, tool="mpstat"),
    Source("psutil", _psutil_idle, _identity),
)

MEM_SOURCES: tuple[Source, ...] = (
    Source("free", _command("free", "-m"), parse_free_mem, tool="free"),
    Source("vm_stat", _command("vm_stat"), parse_vm_stat_mem, tool="vm_stat"),
    Source("psutil", _psutil_mem, _identity),
)

NET_SOURCES: tuple[Source, ...] = (
    Source("/proc/net/dev", _read_file(PROC_NET_DEV), sum_proc_net_dev),
    Source("netstat", _command("netstat", "-ib"), sum_netstat_bytes, tool="netstat"),
    Source("psutil", _psutil_net_bytes, _identity),
)


def tool_available(tool: str | None) -> bool:
    return tool is None or shutil.which(tool) is not None


def first_available(sources: Sequence[Source]) -> Any:
    """Evaluate *sources* top to bottom and return the first parsed value."""
    for source in sources:
        if not tool_available(source.tool):
            continue
        raw = source.fetch()
        if raw is None:
            continue
        value = source.parse(raw)
        if value is not None:
            return value
    return None


# ── Samplers ────────────────────────────────────────────────────────────────


def sample_load() -> float | None:
    return first_available(LOAD_SOURCES)


def sample_cpu() -> float | None:
    idle = first_available(CPU_SOURCES)
    return None if idle is None else cpu_from_idle(idle)


def sample_mem() -> float | None:
    return first_available(MEM_SOURCES)


def sample_net_rate(state: NetRateState, now: float | None = None) -> float | None:
    """KB/s across non-loopback interfaces since the previous call on *state*."""
    total = first_available(NET_SOURCES)
    if total is None:
        return None
    return state.update(total, time.monotonic() if now is None else now)


def sample_metrics(state: NetRateState) -> MetricSample:
    """Collect one MetricSample, updating the net-rate baseline in *state*."""
    return MetricSample(
        load=sample_load(),
        cpu_pct=sample_cpu(),
        mem_pct=sample_mem(),
        net_rate_kb_s=sample_net_rate(state),
    )


# ── System info lines ───────────────────────────────────────────────────────


def _uptime_short() -> str:
    if not tool_available("uptime"):
        return "unknown"
    out = _command("uptime")()
    return "unknown" if out is None else parse_uptime_short(out)


def _disk_summary() -> str:
    if not tool_available("df"):
        return ""
    out = _command("df", "-h", "/")()
    return "" if out is None else parse_df_summary(out)


def primary_interface() -> str:
    text = _read_file(PROC_NET_DEV)()
    if text is not None:
        iface = first_interface_proc_net_dev(text)
        if iface:
            return iface
    if tool_available("netstat"):
        out = _command("netstat", "-ib")()
        if out is not None:
            return first_interface_netstat(out)
    return ""


def sample_system(net_rate: float | None) -> SystemInfo:
    """Build the info lines, reusing this tick's *net_rate* rather than resampling."""
    info = SystemInfo(uptime="UPTIME: " + _uptime_short())
    disk = _disk_summary()
    if disk:
        info.disk = "DISK: " + disk
    if net_rate is not None:
        info.net = f"NET: {primary_interface() or 'iface'} {format_rate(net_rate)}"
    return info


# ── Formatting ──────────────────────────────────────────────────────────────


def format_rate(kb_per_sec: float) -> str:
    """KB/s below 1024, one-decimal MB/s from there up."""
    if kb_per_sec < 1024:
        return f"{kb_per_sec:.0f}KB/s"
    return f"{kb_per_sec / 1024:.1f}MB/s"
