from __future__ import annotations
import logging, queue, threading
from typing import IO, Optional

log = logging.getLogger(__name__)

# Enqueued exactly once when the reader exits; marks the channel as closed.
EOF = None


class LineReader:
    """
    Forwards the compiler's stdout to `lines` one stripped line at a time so the
    reconciler can poll process exit without blocking on an idle pipe.
    """

    def __init__(self, stream: IO[bytes], lines: queue.Queue, stop: threading.Event):
        self.stream = stream
        self.lines = lines
        self.stop = stop
        self._thr: Optional[threading.Thread] = None

    def _loop(self):
        count = 0
        try:
            for raw in iter(self.stream.readline, b""):
                try:
                    line = raw.decode("utf-8").rstrip()
                except UnicodeDecodeError as e:
                    log.warning("undecodable output after %d lines, reader exiting: %s", count, e)
                    break
                self.lines.put(line)
                count += 1
                if self.stop.is_set():
                    log.debug("reader stopped after %d lines", count)
                    break
        except (OSError, ValueError) as e:
            # ValueError: the pipe was closed under us
            log.debug("reader pipe error after %d lines: %s", count, e)
        finally:
            self.stream.close()
            self.lines.put(EOF)

    def start(self) -> LineReader:
        self._thr = threading.Thread(target=self._loop, name="forcbench-reader", daemon=True)
        self._thr.start()
        return self

    def join(self, timeout: Optional[float] = None) -> bool:
        """True once the reader has exited."""
        if self._thr:
            self._thr.join(timeout)
            return not self._thr.is_alive()
        return True
