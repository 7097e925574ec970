from __future__ import annotations
import time
from pydantic import BaseModel, ConfigDict, Field

NANOS_PER_SEC = 1_000_000_000


def now() -> int:
    """Monotonic instant in nanoseconds."""
    return time.perf_counter_ns()


class Duration(BaseModel):
    """Span of time, serialized as whole seconds plus the sub-second remainder."""
    model_config = ConfigDict(frozen=True)

    secs: int = Field(ge=0)
    nanos: int = Field(ge=0, lt=NANOS_PER_SEC)

    @classmethod
    def from_nanos(cls, ns: int) -> Duration:
        secs, nanos = divmod(max(ns, 0), NANOS_PER_SEC)
        return cls(secs=secs, nanos=nanos)

    @classmethod
    def from_secs(cls, s: float) -> Duration:
        return cls.from_nanos(round(s * NANOS_PER_SEC))

    def as_nanos(self) -> int:
        return self.secs * NANOS_PER_SEC + self.nanos

    def as_secs(self) -> float:
        return self.as_nanos() / NANOS_PER_SEC

    def since(self, earlier: Duration) -> Duration:
        return Duration.from_nanos(self.as_nanos() - earlier.as_nanos())

    def __lt__(self, other: Duration) -> bool:
        return self.as_nanos() < other.as_nanos()

    def __le__(self, other: Duration) -> bool:
        return self.as_nanos() <= other.as_nanos()

    def __gt__(self, other: Duration) -> bool:
        return self.as_nanos() > other.as_nanos()

    def __ge__(self, other: Duration) -> bool:
        return self.as_nanos() >= other.as_nanos()

    def __str__(self) -> str:
        s = self.as_secs()
        return f"{s:.3f}s" if s >= 1 else f"{s * 1000:.3f}ms"


class Epoch:
    """Reference instant shared by every timeline of a run."""

    def __init__(self, instant: int | None = None):
        self.instant = now() if instant is None else instant

    def elapsed(self) -> Duration:
        return self.at(now())

    def at(self, instant: int) -> Duration:
        return Duration.from_nanos(instant - self.instant)
