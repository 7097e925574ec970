from __future__ import annotations
import os, shutil, logging
from pathlib import Path

# ────────────────────────────── COMPILER ──────────────────────────────
FORC_EXE = os.environ.get("FORCBENCH_FORC") or shutil.which("forc") or "forc"
FORC_ARGS = ("build", "--profile-phases", "--time-phases", "--log-level", "5")
MANIFEST_NAME = "Forc.toml"

# ────────────────────────────── PATHS ──────────────────────────────
TESTS_DIR = Path(os.environ.get("FORCBENCH_TESTS_DIR", "./tests/"))
OUTPUT_JSON = Path(os.environ.get("FORCBENCH_OUTPUT", "./benchmarks.json"))

# ────────────────────────────── TIMING ──────────────────────────────
MIN_FRAME_DURATION_S = 0.1   # sampler period floor
POLL_INTERVAL_S = 0.01       # reconciler wait on the line channel
DRAIN_TIMEOUT_S = 5.0        # reader must hit EOF this long after child exit

LOG_LEVEL = os.environ.get("FORCBENCH_LOG_LEVEL", "WARNING")
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"


def setup_logging(level: str | int | None = None) -> None:
    level = level if level is not None else LOG_LEVEL
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt="%H:%M:%S")
    logging.getLogger().setLevel(level)
