"""Rolling per-metric history and the sparkline summary row built from it."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

from perfmon.monitor import MetricSample, format_rate

HISTORY_LENGTH = 30
SPARK = " ▁▂▃▄▅▆▇█"
UNAVAILABLE = "METRICS unavailable (missing commands)"


def _ring() -> deque[float]:
    return deque(maxlen=HISTORY_LENGTH)


@dataclass
class MetricHistory:
    """Four independent bounded channels. Channels only grow on valid readings."""

    load: deque[float] = field(default_factory=_ring)
    cpu: deque[float] = field(default_factory=_ring)
    mem: deque[float] = field(default_factory=_ring)
    net: deque[float] = field(default_factory=_ring)

    def append(self, sample: MetricSample) -> None:
        for channel, value in (
            (self.load, sample.load),
            (self.cpu, sample.cpu_pct),
            (self.mem, sample.mem_pct),
            (self.net, sample.net_rate_kb_s),
        ):
            if value is not None:
                channel.append(value)


def update_history(history: MetricHistory, sample: MetricSample) -> MetricHistory:
    history.append(sample)
    return history


# ── Rendering ───────────────────────────────────────────────────────────────


def sparkline(values: list[float] | deque[float], lo: float, hi: float) -> str:
    """Map each value onto SPARK after clamping it to [lo, hi]."""
    if hi <= lo:
        hi = lo + 1
    chars: list[str] = []
    for v in values:
        v = min(max(v, lo), hi)
        idx = int((v - lo) / (hi - lo) * (len(SPARK) - 1))
        chars.append(SPARK[max(0, min(idx, len(SPARK) - 1))])
    return "".join(chars)


def render_summary(history: MetricHistory) -> str:
    """``LOAD ... | CPU ... | MEM ... | NET ...`` using the latest value per channel."""
    parts: list[str] = []
    if history.load:
        top = max(max(history.load), 1.0)
        parts.append(f"LOAD {sparkline(history.load, 0, top)} {history.load[-1]:.2f}")
    if history.cpu:
        parts.append(f"CPU {sparkline(history.cpu, 0, 100)} {history.cpu[-1]:.0f}%")
    if history.mem:
        parts.append(f"MEM {sparkline(history.mem, 0, 100)} {history.mem[-1]:.0f}%")
    if history.net:
        top = max(max(history.net), 1.0)
        parts.append(f"NET {sparkline(history.net, 0, top)} {format_rate(history.net[-1])}")
    return "  |  ".join(parts) or UNAVAILABLE
