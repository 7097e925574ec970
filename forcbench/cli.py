from __future__ import annotations
import argparse, logging
from pathlib import Path
from typing import List, Optional

from forcbench import config
from forcbench.clock import Epoch
from forcbench.errors import ForcBenchError
from forcbench.models import Benchmarks
from forcbench.report import print_summary, write_report
from forcbench.runner import run_suite
from forcbench.utils import generate_benchmarks, system_specs

log = logging.getLogger("forcbench")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(
        prog="forcbench",
        description="Run `forc build` on every project under the tests directory and record phase timings and resource usage.",
    )
    ap.add_argument("--forc", default=config.FORC_EXE, help="compiler executable (default: %(default)s)")
    ap.add_argument("--tests-dir", type=Path, default=config.TESTS_DIR, help="projects root, walked at depth 2 (default: %(default)s)")
    ap.add_argument("--output", type=Path, default=config.OUTPUT_JSON, help="report path (default: %(default)s)")
    ap.add_argument("--no-summary", action="store_true", help="do not print the console summary")
    ap.add_argument("-v", "--verbose", action="count", default=0, help="-v for progress, -vv for every marker")
    ap.add_argument("-q", "--quiet", action="store_true", help="only log errors")
    return ap


def _level(args: argparse.Namespace):
    if args.quiet:
        return logging.ERROR
    if args.verbose >= 2:
        return logging.DEBUG
    if args.verbose == 1:
        return logging.INFO
    return None


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config.setup_logging(_level(args))
    epoch = Epoch()
    try:
        specs = system_specs()
        benchmarks = generate_benchmarks(args.tests_dir)
        start, end = run_suite(benchmarks, epoch, exe=args.forc)
    except (ForcBenchError, OSError) as e:
        log.error("%s", e)
        return 1
    if not args.no_summary:
        print_summary(benchmarks, start, end)
    try:
        write_report(Benchmarks(system_specs=specs, benchmarks=benchmarks), args.output)
    except OSError as e:
        log.error("could not write %s: %s", args.output, e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
