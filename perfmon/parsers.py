"""Parsers for the textual output of uptime, vmstat, mpstat, free, vm_stat,
netstat, df and /proc/net/dev.

Every parser is a pure function that returns the extracted value or *None*
when the output does not have the expected shape. None of them raise on
malformed input.
"""

from __future__ import annotations

import re


# ── Helpers ─────────────────────────────────────────────────────────────────


def _to_float(s: str) -> float | None:
    try:
        return float(s.strip().rstrip(","))
    except ValueError:
        return None


def _to_int(s: str) -> int | None:
    """Plain unsigned decimal only; signs, underscores and non-ASCII digits are rejected."""
    s = s.strip()
    if not (s.isascii() and s.isdigit()):
        return None
    return int(s)


def is_loopback(iface: str) -> bool:
    """True for ``lo``, ``lo0`` and anything else named ``lo*``."""
    return iface.startswith("lo")


def header_and_values(output: str) -> tuple[list[str], list[str]] | None:
    """Return the last two non-blank lines as (header tokens, value tokens)."""
    lines = [ln for ln in output.splitlines() if ln.strip()]
    if len(lines) < 2:
        return None
    return lines[-2].split(), lines[-1].split()


# ── Load / uptime ───────────────────────────────────────────────────────────


def parse_load_average(output: str) -> float | None:
    """1-minute load from ``uptime`` (``load average:`` or ``load averages:``)."""
    line = output.strip()
    idx = line.find("load average")
    if idx == -1:
        return None
    # "load average: 0.52, 0.58, 0.59" / "load averages: 1.92 2.04 2.10"
    parts = [p for p in re.split(r"[:,]", line[idx:]) if p.strip()]
    if len(parts) < 2:
        return None
    return _to_float(parts[1].split()[0])


def parse_uptime_short(output: str) -> str:
    """Human uptime, e.g. ``3 days, 4:12`` out of a full ``uptime`` line."""
    line = output.strip()
    idx = line.find(" up ")
    if idx == -1:
        return "unknown"
    part = line[idx + 4:]
    cut = part.find("load average")
    if cut != -1:
        part = part[:cut]
    # cut before the " 2 users," count
    match = re.search(r"\d+\s+users?\b", part)
    if match:
        part = part[:match.start()]
    part = part.strip(" ,")
    return part or "unknown"


# ── CPU ─────────────────────────────────────────────────────────────────────


def cpu_from_idle(idle: float) -> float:
    """Convert an idle percentage into usage, clamped to 0..100."""
    return min(max(100.0 - idle, 0.0), 100.0)


def parse_vmstat_idle(output: str) -> float | None:
    """Idle % from the ``id`` column of the last vmstat header/value pair."""
    if len(output.strip().splitlines()) < 3:
        return None
    pair = header_and_values(output)
    if pair is None:
        return None
    header, values = pair
    if len(header) != len(values) or "id" not in header:
        return None
    return _to_float(values[header.index("id")])


def parse_mpstat_idle(output: str) -> float | None:
    """Idle % from the last ``all`` row of ``mpstat`` (``%idle`` is the final column)."""
    for line in reversed(output.strip().splitlines()):
        line = line.strip()
        if not line or line.startswith("Linux"):
            continue
        fields = line.split()
        if len(fields) < 5 or fields[1].lower() != "all":
            continue
        idle = _to_float(fields[-1])
        if idle is not None:
            return idle
    return None


# ── Memory ──────────────────────────────────────────────────────────────────


def parse_free_mem(output: str) -> float | None:
    """Used memory % from the ``Mem:`` row of ``free``."""
    for line in output.strip().splitlines():
        if not line.startswith("Mem:"):
            continue
        fields = line.split()
        if len(fields) < 3:
            return None
        total = _to_float(fields[1])
        used = _to_float(fields[2])
        if not total or used is None:
            return None
        return used / total * 100.0
    return None


_VM_STAT_ROW = re.compile(r'^(?:Pages\s+)?"?([A-Za-z ]+?)"?:\s+(\d+)\.?\s*$')


def parse_vm_stat_mem(output: str) -> float | None:
    """Used memory % from macOS ``vm_stat`` page counters.

    used = active + wired + compressed, total = used + free + inactive + speculative.
    """
    pages: dict[str, int] = {}
    for line in output.strip().splitlines():
        match = _VM_STAT_ROW.match(line.strip())
        if match:
            pages[match.group(1).strip().lower()] = int(match.group(2))

    used = (
        pages.get("active", 0)
        + pages.get("wired down", 0)
        + pages.get("occupied by compressor", 0)
    )
    total = used + pages.get("free", 0) + pages.get("inactive", 0) + pages.get("speculative", 0)
    if total == 0:
        return None
    return used / total * 100.0


# ── Network ─────────────────────────────────────────────────────────────────


def sum_proc_net_dev(text: str) -> int | None:
    """rx + tx bytes over every non-loopback interface in ``/proc/net/dev``."""
    total = 0
    found = False
    for line in text.splitlines():
        if ":" not in line:
            continue
        iface, _, rest = line.partition(":")
        if is_loopback(iface.strip()):
            continue
        fields = rest.split()
        if len(fields) < 16:
            continue
        rx = _to_int(fields[0])
        tx = _to_int(fields[8])
        if rx is None or tx is None:
            continue
        total += rx + tx
        found = True
    return total if found else None


def sum_netstat_bytes(output: str) -> int | None:
    """Ibytes + Obytes over non-loopback rows of ``netstat -ib``."""
    lines = output.strip().splitlines()
    if len(lines) < 2:
        return None
    header = lines[0].split()
    try:
        n_idx = header.index("Name")
        i_idx = header.index("Ibytes")
        o_idx = header.index("Obytes")
    except ValueError:
        return None

    total = 0
    found = False
    for line in lines[1:]:
        fields = line.split()
        if len(fields) <= max(n_idx, i_idx, o_idx):
            continue
        if is_loopback(fields[n_idx]):
            continue
        ib = _to_int(fields[i_idx])
        ob = _to_int(fields[o_idx])
        if ib is None or ob is None:
            continue
        total += ib + ob
        found = True
    return total if found else None


def first_interface_proc_net_dev(text: str) -> str:
    for line in text.splitlines():
        if ":" not in line:
            continue
        iface = line.partition(":")[0].strip()
        if iface and not is_loopback(iface):
            return iface
    return ""


def first_interface_netstat(output: str) -> str:
    lines = output.strip().splitlines()
    if len(lines) < 2:
        return ""
    header = lines[0].split()
    if "Name" not in header:
        return ""
    n_idx = header.index("Name")
    for line in lines[1:]:
        fields = line.split()
        if len(fields) <= n_idx or is_loopback(fields[n_idx]):
            continue
        return fields[n_idx]
    return ""


# ── Disk ────────────────────────────────────────────────────────────────────


def parse_df_summary(output: str) -> str:
    """``/ 468G used 120G (26%)`` from ``df -h /``; empty if unparsable."""
    lines = output.strip().splitlines()
    if len(lines) < 2:
        return ""
    fields = lines[1].split()
    if len(fields) < 5:
        return ""
    return f"/ {fields[1]} used {fields[2]} ({fields[4]})"
