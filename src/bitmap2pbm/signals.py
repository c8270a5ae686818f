import signal
import sys

from bitmap2pbm.log import Log


class SignalBridge:
    """
    Delivers OS signals to a running encoder: SIGUSR1 requests a progress report, SIGINT stops the copy loop
    cleanly. Signals that the platform does not have are skipped.
    """

    def __init__(self, encoder, out=None):
        self.encoder = encoder
        self.out = out if out is not None else sys.stderr
        self._previous = {}

    def _handlers(self):
        handlers = {'SIGUSR1': self._on_progress, 'SIGINT': self._on_cancel}
        for name, handler in handlers.items():
            signum = getattr(signal, name, None)
            if signum is not None:
                yield signum, handler

    # Handlers only raise flags, the encoder acts on them between two blocks
    def _on_progress(self, signum, frame):
        self.encoder.request_progress(self.out)

    def _on_cancel(self, signum, frame):
        self.encoder.cancel()

    def install(self):
        for signum, handler in self._handlers():
            try:
                self._previous[signum] = signal.signal(signum, handler)
            except ValueError as e:
                # Only the main thread may install handlers
                Log.debug(f'Cannot handle signal {signum}: {e}')

    def restore(self):
        for signum, previous in self._previous.items():
            if previous is not None:
                signal.signal(signum, previous)
        self._previous.clear()

    def __enter__(self):
        self.install()
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.restore()
