"""Strip cursor-movement and screen-clearing escape codes from captured output.

Colour/style (SGR, final byte ``m``) sequences are kept so the content pane
can still render them.
"""

from __future__ import annotations

import re

# ESC [ params final, where final is any of @..~ except m
_CONTROL = re.compile(r"\x1b\[[0-9;?]*[@-ln-~]")
_SGR = re.compile(r"\x1b\[([0-9;]*)m")


def sanitize(text: str) -> str:
    return _CONTROL.sub("", text)


def split_sgr(text: str) -> list[tuple[list[int] | None, str]]:
    """Split *text* into ``(sgr_params, chunk)`` runs.

    *sgr_params* is None for the leading run and otherwise the numeric
    parameters of the SGR sequence preceding *chunk* (``[0]`` for a bare
    ``ESC[m``). Empty chunks are kept so a trailing reset is not lost.
    """
    runs: list[tuple[list[int] | None, str]] = []
    pos = 0
    params: list[int] | None = None
    for match in _SGR.finditer(text):
        runs.append((params, text[pos:match.start()]))
        raw = [p for p in match.group(1).split(";") if p]
        params = [int(p) for p in raw] or [0]
        pos = match.end()
    runs.append((params, text[pos:]))
    return [(p, chunk) for p, chunk in runs if p is not None or chunk]
