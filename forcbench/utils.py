from __future__ import annotations
import os, time, socket, platform, logging
from pathlib import Path
from typing import Dict, Iterator, List, Union
import psutil

from forcbench import config
from forcbench.errors import DiscoveryError, ManifestError
from forcbench.models import Benchmark, Cpu, LoadAverage, SystemSpecs

log = logging.getLogger(__name__)

PathLike = Union[str, Path]


# ────────────────────────────── DISCOVERY ──────────────────────────────
def verify_path(path: PathLike) -> bool:
    """A directory `forc build` can run in: exists, is a directory, has a manifest."""
    p = Path(path)
    return p.is_dir() and (p / config.MANIFEST_NAME).is_file()


def ensure_project(path: PathLike) -> None:
    if not verify_path(path):
        raise ManifestError(f'project directory "{path}" does not contain a {config.MANIFEST_NAME} file')


def _subdirs(path: Path) -> Iterator[Path]:
    try:
        with os.scandir(path) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as e:
        raise DiscoveryError(f"cannot read {path}: {e}") from e
    for entry in entries:
        try:
            if entry.is_dir(follow_symlinks=False):
                yield Path(entry.path)
        except OSError as e:
            raise DiscoveryError(f"cannot stat {entry.path}: {e}") from e


def generate_benchmarks(path: PathLike) -> List[Benchmark]:
    """
    Collects every project directory exactly two levels below `path`
    (e.g. `tests/<group>/<project>`) that holds a manifest. The directory name
    becomes the benchmark name.
    """
    root = Path(path)
    if not root.is_dir():
        raise DiscoveryError(f"benchmark directory {root} does not exist or is not a directory")

    targets: List[Benchmark] = []
    for group in _subdirs(root):
        for candidate in _subdirs(group):
            try:
                canonical = candidate.resolve(strict=True)
            except (OSError, RuntimeError) as e:
                raise DiscoveryError(f"cannot canonicalize {candidate}: {e}") from e
            if verify_path(canonical):
                targets.append(Benchmark(name=canonical.name, path=canonical))
            else:
                log.debug("skipping %s: no %s", canonical, config.MANIFEST_NAME)
    log.info("discovered %d benchmarks under %s", len(targets), root)
    return targets


# ────────────────────────────── SYSTEM SPECS ──────────────────────────────
def _cpuinfo() -> Dict[str, str]:
    """First processor block of /proc/cpuinfo; empty where it does not exist."""
    info: Dict[str, str] = {}
    try:
        with open("/proc/cpuinfo") as f:
            for line in f:
                if not line.strip():
                    break
                key, _, value = line.partition(":")
                info[key.strip()] = value.strip()
    except OSError:
        pass
    return info


def _os_release() -> Dict[str, str]:
    try:
        return platform.freedesktop_os_release()
    except (OSError, AttributeError):
        return {}


def system_specs() -> SystemSpecs:
    """One-shot snapshot of the host the benchmarks run on."""
    cpuinfo, release = _cpuinfo(), _os_release()
    vendor = cpuinfo.get("vendor_id", "")
    brand = cpuinfo.get("model name") or platform.processor()

    per_cpu_usage = psutil.cpu_percent(interval=0.1, percpu=True)
    try:
        freqs = psutil.cpu_freq(percpu=True) or []
    except (OSError, NotImplementedError, AttributeError):
        freqs = []
    cpus = []
    for i, usage in enumerate(per_cpu_usage):
        freq = freqs[i] if i < len(freqs) else (freqs[0] if freqs else None)
        cpus.append(Cpu(cpu_usage=usage, name=f"cpu{i}", vendor_id=vendor, brand=brand,
                        frequency=int(freq.current) if freq else 0))

    vm, swap = psutil.virtual_memory(), psutil.swap_memory()
    boot = psutil.boot_time()
    try:
        one, five, fifteen = psutil.getloadavg()
    except (OSError, AttributeError):
        one = five = fifteen = 0.0

    system = platform.system()
    return SystemSpecs(
        global_cpu_usage=sum(per_cpu_usage) / len(per_cpu_usage) if per_cpu_usage else 0.0,
        cpus=cpus,
        physical_core_count=psutil.cpu_count(logical=False) or 0,
        total_memory=vm.total,
        free_memory=vm.free,
        available_memory=vm.available,
        used_memory=vm.used,
        total_swap=swap.total,
        free_swap=swap.free,
        used_swap=swap.used,
        uptime=int(time.time() - boot),
        boot_time=int(boot),
        load_average=LoadAverage(one=one, five=five, fifteen=fifteen),
        name=release.get("NAME", system),
        kernel_version=platform.release(),
        os_version=release.get("VERSION_ID", platform.version()),
        long_os_version=release.get("PRETTY_NAME", f"{system} {platform.release()}"),
        distribution_id=release.get("ID", system.lower()),
        host_name=socket.gethostname(),
    )
