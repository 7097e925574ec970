from __future__ import annotations
import logging, queue, threading
from typing import List, Optional, Sequence, Tuple

from forcbench import config
from forcbench.clock import Duration, Epoch
from forcbench.errors import ProtocolError
from forcbench.markers import BytecodeSize, PhaseStart, PhaseStop, parse_marker
from forcbench.models import Benchmark, BenchmarkPhase
from forcbench.process import CompilerProcess
from forcbench.reader import EOF, LineReader
from forcbench.telemetry import TelemetrySampler
from forcbench.utils import ensure_project

log = logging.getLogger(__name__)


class Reconciler:
    """
    Drives one benchmark: spawns the compiler, applies the markers the line
    reader forwards, and finalizes the record once the compiler has exited and
    both workers are done. Owns `phases` and `bytecode_size`; the sampler only
    ever touches `frames`.
    """

    def __init__(self, benchmark: Benchmark, epoch: Epoch):
        self.benchmark = benchmark
        self.epoch = epoch
        self._closed = False  # reader's EOF seen

    # ────────────────────────────── MARKERS ──────────────────────────────
    def apply(self, line: str) -> None:
        marker = parse_marker(line)
        if marker is None:
            return
        b, t = self.benchmark, self.epoch.elapsed()
        if isinstance(marker, PhaseStart):
            b.phases.append(BenchmarkPhase(name=marker.name, start_time=t))
            log.debug("%s: phase %r started at %s", b.name, marker.name, t)
        elif isinstance(marker, PhaseStop):
            phase = next((p for p in reversed(b.phases) if p.is_open and p.name == marker.name), None)
            if phase is None:
                raise ProtocolError(f"{b.name}: stop marker for {marker.name!r} matches no open phase")
            phase.end_time = t
            log.debug("%s: phase %r stopped at %s", b.name, marker.name, t)
        elif isinstance(marker, BytecodeSize):
            if b.bytecode_size is not None:
                log.warning("%s: bytecode size reported again (%d -> %d)", b.name, b.bytecode_size, marker.size)
            b.bytecode_size = marker.size
            log.debug("%s: bytecode size %d", b.name, marker.size)

    # ────────────────────────────── LIFECYCLE ──────────────────────────────
    def _poll(self, child: CompilerProcess, lines: queue.Queue) -> None:
        while child.try_wait() is None:
            try:
                line = lines.get(timeout=config.POLL_INTERVAL_S)
            except queue.Empty:
                continue
            if line is EOF:
                self._closed = True
                continue
            self.apply(line)

    def _drain(self, lines: queue.Queue, reader: LineReader, stop_reader: threading.Event) -> None:
        if not self._closed and not reader.join(config.DRAIN_TIMEOUT_S):
            log.warning("%s: stdout still open %.1fs after exit, stopping reader",
                        self.benchmark.name, config.DRAIN_TIMEOUT_S)
            stop_reader.set()
        while not self._closed:
            try:
                line = lines.get_nowait()
            except queue.Empty:
                break
            if line is EOF:
                self._closed = True
                break
            self.apply(line)

    def run(self, exe: str, args: Sequence[str]) -> Benchmark:
        b = self.benchmark
        ensure_project(b.path)
        b.start_time = self.epoch.elapsed()

        child = CompilerProcess.spawn(exe, args, b.path)
        lines: queue.Queue = queue.Queue()
        stop_reader, stop_sampler = threading.Event(), threading.Event()
        sampler = TelemetrySampler(self.epoch, child.pid, b, stop_sampler, extra_stops=(stop_reader,)).start()
        reader = LineReader(child.take_stdout(), lines, stop_reader).start()

        try:
            self._poll(child, lines)
            stop_sampler.set()
            sampler.join()
            self._drain(lines, reader, stop_reader)
        except BaseException:
            stop_sampler.set()
            stop_reader.set()
            child.kill()
            child.reap()
            sampler.join()
            raise

        status = child.reap()
        if status != 0:
            log.warning("%s: compiler exited with status %d", b.name, status)
        b.end_time = self.epoch.elapsed()

        for phase in b.open_phases():
            log.warning("%s: phase %r never stopped", b.name, phase.name)
        log.info("%s: finished in %s, %d phases, %d frames", b.name, b.duration, len(b.phases), len(b.frames))
        return b


def run_benchmark(benchmark: Benchmark, epoch: Epoch, exe: Optional[str] = None,
                  args: Optional[Sequence[str]] = None) -> Benchmark:
    return Reconciler(benchmark, epoch).run(
        exe if exe is not None else config.FORC_EXE,
        args if args is not None else config.FORC_ARGS,
    )


def run_suite(benchmarks: List[Benchmark], epoch: Epoch, exe: Optional[str] = None,
              args: Optional[Sequence[str]] = None) -> Tuple[Duration, Duration]:
    """Runs every benchmark in order, one at a time. Returns the span of the whole run."""
    start = epoch.elapsed()
    for i, b in enumerate(benchmarks, 1):
        log.info("[%d/%d] benchmarking %s (%s)", i, len(benchmarks), b.name, b.path)
        run_benchmark(b, epoch, exe, args)
    return start, epoch.elapsed()
