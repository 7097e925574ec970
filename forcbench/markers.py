"""
Decoding of the `/forc-perf` lines `forc build --profile-phases` prints on
stdout. A marker is a whole line; leading whitespace is ignored, the payload
has trailing whitespace removed and nothing else.
"""
from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Optional, Union

from forcbench.errors import ProtocolError

START = "/forc-perf start "
STOP = "/forc-perf stop "
SIZE = "/forc-perf size "

_UINT = re.compile(r"[0-9]+")


@dataclass(frozen=True)
class PhaseStart:
    name: str


@dataclass(frozen=True)
class PhaseStop:
    name: str


@dataclass(frozen=True)
class BytecodeSize:
    size: int


Marker = Union[PhaseStart, PhaseStop, BytecodeSize]


def parse_marker(line: str) -> Optional[Marker]:
    """Marker carried by `line`, or None for ordinary compiler output."""
    line = line.lstrip()
    if line.startswith(START):
        return PhaseStart(line[len(START):].rstrip())
    if line.startswith(STOP):
        return PhaseStop(line[len(STOP):].rstrip())
    if line.startswith(SIZE):
        payload = line[len(SIZE):].rstrip()
        if not _UINT.fullmatch(payload):
            raise ProtocolError(f"size marker carries {payload!r}, expected a byte count")
        return BytecodeSize(int(payload))
    return None
