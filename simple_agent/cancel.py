"""Operator cancellation: a token set by SIGINT/SIGTERM and checked by the loop."""

import signal
import sys
import threading


class Cancelled(Exception):
    """Raised when the run was interrupted by the operator."""

    def __init__(self, signum: int = signal.SIGINT):
        self.signum = signum
        super().__init__(f"cancelled by {self.signal_name}")

    @property
    def signal_name(self) -> str:
        try:
            return signal.Signals(self.signum).name
        except ValueError:
            return f"signal {self.signum}"


class CancelToken:
    """Thread-safe flag recording the first cancellation signal received."""

    def __init__(self):
        self._event = threading.Event()
        self.signum: int | None = None

    def cancel(self, signum: int = signal.SIGINT) -> None:
        if not self._event.is_set():
            self.signum = signum
        self._event.set()

    def is_set(self) -> bool:
        return self._event.is_set()

    def check(self) -> None:
        """Raise Cancelled if a signal has been received."""
        if self._event.is_set():
            raise Cancelled(self.signum or signal.SIGINT)


def _handled_signals() -> list[int]:
    if sys.platform == "win32":
        return [signal.SIGINT]
    return [signal.SIGINT, signal.SIGTERM]


def install_signal_handlers(token: CancelToken):
    """Make SIGINT/SIGTERM set *token* and abandon the in-flight operation.

    The handler raises Cancelled in the main thread, so a blocking model call
    or process wait is interrupted rather than awaited. Returns a callable
    that restores the previous handlers.
    """
    previous = {}

    def _handler(signum, frame):
        token.cancel(signum)
        raise Cancelled(signum)

    for signum in _handled_signals():
        previous[signum] = signal.getsignal(signum)
        signal.signal(signum, _handler)

    def restore() -> None:
        for signum, handler in previous.items():
            signal.signal(signum, handler)

    return restore
