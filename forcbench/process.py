from __future__ import annotations
import logging, subprocess
from pathlib import Path
from typing import IO, Optional, Sequence

from forcbench.errors import SpawnError

log = logging.getLogger(__name__)


class CompilerProcess:
    """
    Lifecycle wrapper around the compiler child. Stdin and stdout are piped,
    stderr goes to devnull. Output is never interpreted here.
    """

    def __init__(self, popen: subprocess.Popen):
        self._popen = popen
        self._stdout_taken = False

    @classmethod
    def spawn(cls, exe: str, args: Sequence[str], working_dir: Path) -> CompilerProcess:
        argv = [str(exe), *args]
        try:
            popen = subprocess.Popen(
                argv,
                cwd=str(working_dir),
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise SpawnError(f"failed to spawn {argv[0]!r} in {working_dir}: {e}") from e
        log.info("spawned pid %d: %s (cwd=%s)", popen.pid, " ".join(argv), working_dir)
        return cls(popen)

    @property
    def pid(self) -> int:
        return self._popen.pid

    def try_wait(self) -> Optional[int]:
        """Exit status if the child has exited, else None. Never blocks."""
        return self._popen.poll()

    def take_stdout(self) -> IO[bytes]:
        if self._popen.stdout is None:
            raise RuntimeError("stdout of the compiler process is not piped")
        if self._stdout_taken:
            raise RuntimeError("stdout of the compiler process was already taken")
        self._stdout_taken = True
        return self._popen.stdout

    def kill(self):
        if self._popen.poll() is None:
            self._popen.kill()

    def reap(self) -> int:
        """Close our end of stdin and collect the exit status."""
        if self._popen.stdin is not None and not self._popen.stdin.closed:
            try:
                self._popen.stdin.close()
            except BrokenPipeError:
                pass
        return self._popen.wait()
