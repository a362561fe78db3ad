"""Tab configuration for perfmon.

Loads the tab list from a TOML file, falling back to built-in defaults, and
validates every tab's command against PATH.
Search order: explicit --config path → $PERFMON_CONFIG →
~/.config/perfmon/config.toml → ./perfmon.toml → defaults only.
"""

from __future__ import annotations

import os
import re
import shutil
import sys
import tomllib
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_REFRESH_INTERVAL = 5.0
ENV_VAR = "PERFMON_CONFIG"

_DEFAULT_PATH = Path.home() / ".config" / "perfmon" / "config.toml"
_LOCAL_PATH = Path("perfmon.toml")

FETCH_CANDIDATES: tuple[str, ...] = ("fastfetch", "neofetch", "screenfetch")
FETCH_MISSING = "No fetch tool found. Install fastfetch to enable this tab."

_SYSSTAT_TOOLS = ("mpstat", "pidstat", "sar", "iostat")
MISSING_HINTS: dict[str, str] = {
    "vm_stat": "Missing vm_stat. This tab requires macOS.",
    "vmstat": "Missing vmstat. Install procps/sysstat to enable this tab.",
    "free": "Missing free. Install procps to enable this tab.",
    "top": "Missing top. Install procps to enable this tab.",
    "uptime": "Missing uptime. Install coreutils to enable this tab.",
}


# ── Tab model ───────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class Tab:
    """A monitored command and its label."""

    title: str
    command: tuple[str, ...]
    refresh_interval: float = DEFAULT_REFRESH_INTERVAL

    @property
    def enabled(self) -> bool:
        return True

    @property
    def disabled_reason(self) -> str | None:
        return None


@dataclass(frozen=True)
class DisabledTab(Tab):
    """A tab whose command is unavailable; *reason* is shown instead of output."""

    reason: str = ""

    @property
    def enabled(self) -> bool:
        return False

    @property
    def disabled_reason(self) -> str | None:
        return self.reason


@dataclass
class Config:
    tabs: list[Tab]
    global_refresh_interval: float = DEFAULT_REFRESH_INTERVAL
    path: Path | None = None


# ── Validation ──────────────────────────────────────────────────────────────


def missing_hint(tool: str, title: str) -> str:
    """Remediation hint for a tab whose *tool* is not installed."""
    if tool in _SYSSTAT_TOOLS:
        return f"Missing {title}. Install sysstat to enable this tab."
    return MISSING_HINTS.get(tool, f"Missing {tool}. Install the command to enable this tab.")


def validate_tab(tab: Tab) -> Tab:
    """Return *tab* unchanged if its command exists, else a DisabledTab."""
    if not tab.command:
        return DisabledTab(tab.title, tab.command, tab.refresh_interval,
                           reason="No command configured for this tab.")
    tool = tab.command[0]
    # echo is how the fetch tab reports a missing tool; always allowed
    if tool == "echo" or shutil.which(tool) is not None:
        return tab
    return DisabledTab(tab.title, tab.command, tab.refresh_interval,
                       reason=missing_hint(tool, tab.title))


def validate_tabs(tabs: Iterable[Tab]) -> list[Tab]:
    return [validate_tab(t) for t in tabs]


# ── Defaults ────────────────────────────────────────────────────────────────


def detect_fetch_command() -> tuple[str, tuple[str, ...]]:
    """First installed system-info tool, or an echo explaining none was found."""
    for tool in FETCH_CANDIDATES:
        if shutil.which(tool) is not None:
            return tool, (tool,)
    return "fetch (missing)", ("echo", FETCH_MISSING)


def build_default_tabs(
    platform: str = sys.platform,
    interval: float = DEFAULT_REFRESH_INTERVAL,
) -> list[Tab]:
    if platform == "darwin":
        free_title, free_cmd = "vm_stat (free)", ("vm_stat",)
        top_title, top_cmd = "top -l 1", ("top", "-l", "1")
    else:
        free_title, free_cmd = "free -m", ("free", "-m")
        top_title, top_cmd = "top -b -n 1", ("top", "-b", "-n", "1")
    fetch_title, fetch_cmd = detect_fetch_command()

    entries: list[tuple[str, tuple[str, ...]]] = [
        ("uptime", ("uptime",)),
        ("vmstat", ("vmstat",)),
        ("mpstat -P ALL", ("mpstat", "-P", "ALL")),
        ("pidstat -p ALL", ("pidstat", "-p", "ALL")),
        ("iostat", ("iostat",)),
        (free_title, free_cmd),
        ("sar -n DEV", ("sar", "-n", "DEV")),
        ("sar -n TCP,ETCP", ("sar", "-n", "TCP,ETCP")),
        (top_title, top_cmd),
        (fetch_title, fetch_cmd),
    ]
    return [Tab(title, cmd, interval) for title, cmd in entries]


# ── TOML loading ────────────────────────────────────────────────────────────

_NUMBER = r"[0-9]+(?:\.[0-9]+)?"
_BARE_SECONDS = re.compile(_NUMBER)
# "ms" must be tried before "m"
_DURATION_PART = re.compile(rf"({_NUMBER})(ms|h|m|s)")
_DURATION = re.compile(rf"(?:{_NUMBER}(?:ms|h|m|s))+")
_UNIT_SECONDS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def parse_interval(value: Any) -> float | None:
    """Seconds from ``"500ms"``, ``"5s"``, ``"2m"``, ``"1h"``, compounds such
    as ``"1m30s"``, or a bare number.

    Returns None for anything unparsable or not positive.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        seconds = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if _BARE_SECONDS.fullmatch(text):
            seconds = float(text)
        elif _DURATION.fullmatch(text):
            seconds = sum(
                float(number) * _UNIT_SECONDS[unit]
                for number, unit in _DURATION_PART.findall(text)
            )
        else:
            return None
    else:
        return None
    return seconds if seconds > 0 else None


def tabs_from_toml(data: dict[str, Any], global_interval: float) -> list[Tab]:
    """Build tabs from ``[[tab]]`` entries, dropping malformed ones."""
    entries = data.get("tab", [])
    if not isinstance(entries, list):
        return []
    tabs: list[Tab] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        title = entry.get("title")
        cmd = entry.get("cmd")
        if not isinstance(title, str) or not title:
            continue
        if not isinstance(cmd, list) or not cmd or not all(isinstance(a, str) for a in cmd):
            continue
        interval = parse_interval(entry.get("refresh_interval")) or global_interval
        tabs.append(Tab(title, tuple(cmd), interval))
    return tabs


def config_paths() -> list[Path]:
    paths: list[Path] = []
    env = os.environ.get(ENV_VAR, "").strip()
    if env:
        paths.append(Path(env))
    paths.append(_DEFAULT_PATH)
    paths.append(_LOCAL_PATH)
    return paths


def _read_toml(path: Path) -> dict[str, Any]:
    return tomllib.loads(path.read_text(encoding="utf-8"))


def _from_data(
    data: dict[str, Any], path: Path, interval: float | None
) -> Config | None:
    global_interval = interval or parse_interval(
        data.get("global_refresh_interval")
    ) or DEFAULT_REFRESH_INTERVAL
    tabs = tabs_from_toml(data, global_interval)
    if not tabs:
        return None
    return Config(validate_tabs(tabs), global_interval, path)


def load_config(path: Path | None = None, interval: float | None = None) -> Config:
    """Load and validate the tab list.

    Args:
        path: Explicit config file path (from --config). If None, the
              implicit locations from config_paths() are tried in order.
        interval: Global refresh interval override (from --interval); tabs
              that set their own refresh_interval keep it.

    Returns:
        Config with validated tabs; built-in defaults when no file supplies
        a usable tab.

    Raises:
        SystemExit: If an explicit path doesn't exist or can't be parsed.
    """
    if path is not None:
        if not path.is_file():
            print(f"perfmon: config file not found: {path}", file=sys.stderr)
            raise SystemExit(1)
        try:
            data = _read_toml(path)
        except tomllib.TOMLDecodeError as e:
            print(f"perfmon: invalid TOML in {path}: {e}", file=sys.stderr)
            raise SystemExit(1) from e
        cfg = _from_data(data, path, interval)
        if cfg is not None:
            return cfg
        print(f"perfmon: warning: no usable [[tab]] in {path}, using defaults",
              file=sys.stderr)
        return default_config(interval)

    for candidate in config_paths():
        if not candidate.is_file():
            continue
        try:
            data = _read_toml(candidate)
        except (tomllib.TOMLDecodeError, OSError):
            print(f"perfmon: warning: ignoring invalid TOML in {candidate}",
                  file=sys.stderr)
            continue
        cfg = _from_data(data, candidate, interval)
        if cfg is not None:
            return cfg

    return default_config(interval)


def default_config(interval: float | None = None) -> Config:
    global_interval = interval or DEFAULT_REFRESH_INTERVAL
    return Config(validate_tabs(build_default_tabs(interval=global_interval)), global_interval)


def _format_interval(seconds: float) -> str:
    return f"{seconds:g}s"


def dump_default_config() -> str:
    """Return the default tab list as a TOML string."""
    lines = [
        "# perfmon configuration",
        "# Place this file at ~/.config/perfmon/config.toml",
        "",
        f'global_refresh_interval = "{_format_interval(DEFAULT_REFRESH_INTERVAL)}"',
        "",
    ]
    for tab in build_default_tabs():
        cmd = ", ".join(f'"{arg}"' for arg in tab.command)
        lines.append("[[tab]]")
        lines.append(f'title = "{tab.title}"')
        lines.append(f"cmd = [{cmd}]")
        lines.append("")
    return "\n".join(lines) + "\n"
