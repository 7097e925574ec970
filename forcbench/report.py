"""
Persistence and console rendering of a finished run.

The JSON document is written to a temporary sibling and renamed into place, so
a failed write never clobbers the previous report.
"""
from __future__ import annotations
import os, logging, tempfile
from pathlib import Path
from typing import List, Optional, Union
import pandas as pd

from forcbench.clock import Duration
from forcbench.models import Benchmark, Benchmarks

log = logging.getLogger(__name__)


def write_report(report: Benchmarks, path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    text = report.model_dump_json(indent=2)
    fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w") as f:
            f.write(text)
        os.replace(tmp, path)
    except BaseException:
        if os.path.exists(tmp):
            os.unlink(tmp)
        raise
    log.info("wrote %d benchmarks to %s", len(report.benchmarks), path)
    return path


def load_report(path: Union[str, Path]) -> Benchmarks:
    return Benchmarks.model_validate_json(Path(path).read_text())


def _secs(d: Optional[Duration]) -> Optional[float]:
    return None if d is None else d.as_secs()


def phases_frame(benchmarks: List[Benchmark]) -> pd.DataFrame:
    rows = [{
        "benchmark": b.name, "phase": p.name,
        "start_s": _secs(p.start_time), "end_s": _secs(p.end_time), "time_s": _secs(p.duration),
    } for b in benchmarks for p in b.phases]
    return pd.DataFrame(rows, columns=["benchmark", "phase", "start_s", "end_s", "time_s"])


def frames_frame(benchmark: Benchmark) -> pd.DataFrame:
    cols = list(benchmark.frames[0].model_dump()) if benchmark.frames else [
        "timestamp", "cpu_usage", "memory_usage", "virtual_memory_usage",
        "disk_total_written_bytes", "disk_written_bytes", "disk_total_read_bytes", "disk_read_bytes"]
    df = pd.DataFrame([f.model_dump() for f in benchmark.frames], columns=cols)
    df["timestamp"] = [f.timestamp.as_secs() for f in benchmark.frames]
    return df


def summary_frame(benchmarks: List[Benchmark]) -> pd.DataFrame:
    rows = []
    for b in benchmarks:
        fr = frames_frame(b)
        rows.append({
            "benchmark": b.name,
            "time_s": _secs(b.duration),
            "phases": len(b.phases),
            "open_phases": len(b.open_phases()),
            "bytecode_size": b.bytecode_size,
            "frames": len(fr),
            "peak_rss_mb": fr["memory_usage"].max() / (1024 * 1024) if len(fr) else None,
            "peak_cpu": fr["cpu_usage"].max() if len(fr) else None,
        })
    return pd.DataFrame(rows, columns=["benchmark", "time_s", "phases", "open_phases", "bytecode_size",
                                       "frames", "peak_rss_mb", "peak_cpu"])


def print_summary(benchmarks: List[Benchmark], start: Duration, end: Duration) -> None:
    print(f"Benchmarking took {end.since(start)} in total ({len(benchmarks)} benchmarks)")
    if not benchmarks:
        return
    with pd.option_context("display.float_format", "{:.3f}".format, "display.width", 120):
        print("\n== Benchmarks ==")
        print(summary_frame(benchmarks).to_string(index=False, na_rep="-"))
        phases = phases_frame(benchmarks)
        if not phases.empty:
            print("\n== Phases ==")
            print(phases.to_string(index=False, na_rep="open"))
