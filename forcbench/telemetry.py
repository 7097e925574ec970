from __future__ import annotations
import logging, threading
from typing import Optional, Sequence, Tuple
import psutil  # pip install psutil

from forcbench import config
from forcbench.clock import Epoch, now
from forcbench.models import Benchmark, BenchmarkFrame

log = logging.getLogger(__name__)

STOP_CHECK_S = 0.01  # how often extra stop signals are looked at while sleeping


class TelemetrySampler:
    """
    Samples CPU%, RSS, VMS and disk I/O of the compiler process while a
    benchmark runs, and appends frames to `benchmark.frames`.

    Sampling never runs faster than `min_frame_s`; the floor also gives the
    disk delta counters a meaningful window. The loop ends when any of `stops`
    is set or the process can no longer be observed; frames already collected
    are kept either way.
    """

    def __init__(self, epoch: Epoch, pid: int, benchmark: Benchmark,
                 stop: threading.Event, extra_stops: Sequence[threading.Event] = (),
                 min_frame_s: float = config.MIN_FRAME_DURATION_S):
        self.epoch, self.pid, self.benchmark = epoch, pid, benchmark
        self.stop = stop
        self.stops = (stop, *extra_stops)
        self.min_frame_s = min_frame_s
        self.num_cpus = psutil.cpu_count(logical=True) or 1
        self._prev_io: Tuple[int, int] = (0, 0)
        self._thr: Optional[threading.Thread] = None

    def _stopped(self) -> bool:
        return any(e.is_set() for e in self.stops)

    def _pause(self, seconds: float):
        """Sleeps out the frame, waking early on any of the stop signals."""
        deadline = now() + int(seconds * 1e9)
        while not self._stopped():
            left = (deadline - now()) / 1e9
            if left <= 0:
                return
            self.stop.wait(min(left, STOP_CHECK_S))

    def _io(self, proc: psutil.Process) -> Tuple[int, int]:
        # not every platform exposes per-process I/O counters
        if not hasattr(proc, "io_counters"):
            return 0, 0
        try:
            io = proc.io_counters()
        except psutil.AccessDenied:
            return 0, 0
        return io.write_bytes, io.read_bytes

    def _sample(self, proc: psutil.Process, frame_start: int) -> Optional[BenchmarkFrame]:
        with proc.oneshot():
            if proc.status() == psutil.STATUS_ZOMBIE:
                return None
            cpu = proc.cpu_percent(interval=None)
            mi = proc.memory_info()
            written, read = self._io(proc)
        prev_written, prev_read = self._prev_io
        self._prev_io = (written, read)
        return BenchmarkFrame(
            timestamp=self.epoch.at(frame_start),
            cpu_usage=cpu / self.num_cpus,
            memory_usage=mi.rss,
            virtual_memory_usage=mi.vms,
            disk_total_written_bytes=written,
            disk_written_bytes=max(written - prev_written, 0),
            disk_total_read_bytes=read,
            disk_read_bytes=max(read - prev_read, 0),
        )

    def _loop(self):
        try:
            proc = psutil.Process(self.pid)
        except psutil.Error as e:
            log.debug("pid %d not observable: %s", self.pid, e)
            return
        reason = "stop signal"
        while True:
            frame_start = now()
            if self._stopped():
                break
            try:
                frame = self._sample(proc, frame_start)
            except psutil.NoSuchProcess:
                reason = "process gone"
                break
            except psutil.Error as e:
                reason = f"refresh failed: {e}"
                break
            if frame is None:
                reason = "process exited"
                break
            self.benchmark.push_frame(frame)
            elapsed = (now() - frame_start) / 1e9
            if elapsed < self.min_frame_s:
                self._pause(self.min_frame_s - elapsed)
        log.debug("sampler for pid %d finished (%s), %d frames", self.pid, reason, self.benchmark.frame_count())

    def start(self) -> TelemetrySampler:
        self._thr = threading.Thread(target=self._loop, name="forcbench-sampler", daemon=True)
        self._thr.start()
        return self

    def join(self, timeout: Optional[float] = None):
        if self._thr:
            self._thr.join(timeout)

    def __enter__(self):
        return self.start()

    def __exit__(self, exc_type, exc, tb):
        self.stop.set()
        self.join()
