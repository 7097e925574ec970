from __future__ import annotations
import threading
from pathlib import Path
from typing import List, Optional
from pydantic import BaseModel, Field, PrivateAttr, model_validator

from forcbench.clock import Duration


class BenchmarkFrame(BaseModel):
    """One resource sample of the compiler process."""
    timestamp: Duration
    cpu_usage: float = Field(ge=0)  # OS-reported CPU% divided by logical CPU count
    memory_usage: int = Field(ge=0)
    virtual_memory_usage: int = Field(ge=0)
    disk_total_written_bytes: int = Field(ge=0)
    disk_written_bytes: int = Field(ge=0)
    disk_total_read_bytes: int = Field(ge=0)
    disk_read_bytes: int = Field(ge=0)


class BenchmarkPhase(BaseModel):
    name: str
    start_time: Duration
    end_time: Optional[Duration] = None

    @model_validator(mode="after")
    def check_order(self):
        if self.end_time is not None and self.end_time < self.start_time:
            raise ValueError(f"phase {self.name!r} ends before it starts")
        return self

    @property
    def is_open(self) -> bool:
        return self.end_time is None

    @property
    def duration(self) -> Optional[Duration]:
        return None if self.end_time is None else self.end_time.since(self.start_time)


class Benchmark(BaseModel):
    name: str
    path: Path
    start_time: Optional[Duration] = None
    end_time: Optional[Duration] = None
    bytecode_size: Optional[int] = Field(default=None, ge=0)
    phases: List[BenchmarkPhase] = Field(default_factory=list)
    frames: List[BenchmarkFrame] = Field(default_factory=list)

    # guards `frames` while the sampler thread is appending
    _frames_lock: threading.Lock = PrivateAttr(default_factory=threading.Lock)

    @model_validator(mode="after")
    def check_order(self):
        if self.start_time is not None and self.end_time is not None and self.end_time < self.start_time:
            raise ValueError(f"benchmark {self.name!r} ends before it starts")
        return self

    def push_frame(self, frame: BenchmarkFrame) -> None:
        with self._frames_lock:
            self.frames.append(frame)

    def frame_count(self) -> int:
        with self._frames_lock:
            return len(self.frames)

    @property
    def duration(self) -> Optional[Duration]:
        if self.start_time is None or self.end_time is None:
            return None
        return self.end_time.since(self.start_time)

    def open_phases(self) -> List[BenchmarkPhase]:
        return [p for p in self.phases if p.is_open]


# ────────────────────────────── SYSTEM SPECS ──────────────────────────────
class Cpu(BaseModel):
    cpu_usage: float = Field(default=0.0, exclude=True)
    name: str = ""
    vendor_id: str = ""
    brand: str = ""
    frequency: int = 0  # MHz


class LoadAverage(BaseModel):
    one: float = 0.0
    five: float = 0.0
    fifteen: float = 0.0


class SystemSpecs(BaseModel):
    global_cpu_usage: float = Field(default=0.0, exclude=True)
    cpus: List[Cpu] = Field(default_factory=list)
    physical_core_count: int = 0
    total_memory: int = 0
    free_memory: int = 0
    available_memory: int = 0
    used_memory: int = 0
    total_swap: int = 0
    free_swap: int = 0
    used_swap: int = 0
    uptime: int = 0
    boot_time: int = 0
    load_average: LoadAverage = Field(default_factory=LoadAverage)
    name: str = ""
    kernel_version: str = ""
    os_version: str = ""
    long_os_version: str = ""
    distribution_id: str = ""
    host_name: str = ""


class Benchmarks(BaseModel):
    """The persisted report."""
    system_specs: SystemSpecs
    benchmarks: List[Benchmark] = Field(default_factory=list)
