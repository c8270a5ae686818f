import sys
import threading
import time

from dataclasses import dataclass, replace


@dataclass(frozen=True)
class CountersSnapshot:
    blocks_read: int = 0
    bytes_read: int = 0
    blocks_written: int = 0
    bytes_written: int = 0


class EncodeCounters:
    """
    Transfer counters of a single run.

    Only the encoding loop updates them, always between two blocks. Every update swaps in a new immutable snapshot,
    so a reader (e.g. a signal handler interrupting the loop) never sees half of an update and never has to wait.
    """

    def __init__(self):
        self._current = CountersSnapshot()

    def record_read(self, num_bytes: int):
        current = self._current
        blocks = current.blocks_read + 1 if num_bytes else current.blocks_read
        self._current = replace(current, blocks_read=blocks, bytes_read=current.bytes_read + num_bytes)

    def record_write(self, num_bytes: int):
        current = self._current
        self._current = replace(current, blocks_written=current.blocks_written + 1,
                                bytes_written=current.bytes_written + num_bytes)

    def snapshot(self) -> CountersSnapshot:
        return self._current

    @property
    def bytes_read(self) -> int:
        return self._current.bytes_read


class Progress:
    MEGABYTE = 1000000

    def __init__(self, counters: EncodeCounters):
        self.counters = counters
        self.start_time = time.monotonic()
        self._requested = threading.Event()
        self._request_out = None

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self.start_time

    @staticmethod
    def format(snapshot: CountersSnapshot, elapsed: float) -> str:
        rate = snapshot.bytes_read / elapsed / Progress.MEGABYTE if elapsed > 0 else 0.0
        return (f'{snapshot.blocks_read} blocks in ({snapshot.bytes_read} bytes)\n'
                f'{snapshot.blocks_written} blocks out ({snapshot.bytes_written} bytes)\n'
                f'{elapsed:.0f} s, {rate:.1f} MB/s')

    def report(self) -> str:
        return Progress.format(self.counters.snapshot(), self.elapsed)

    def print(self, out=None):
        print(self.report(), file=out if out is not None else sys.stderr, flush=True)

    def request(self, out=None):
        """ Asks for a report at the next block boundary. Safe to call from a signal handler. """
        self._request_out = out
        self._requested.set()

    def print_requested(self):
        if self._requested.is_set():
            self._requested.clear()
            self.print(self._request_out)


class StopFlag:
    """ Cooperative cancellation: set from anywhere, observed by the encoder once per block. """

    def __init__(self):
        self._event = threading.Event()

    def set(self):
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()
