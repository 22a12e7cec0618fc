"""Run cancellation: the shared token plus SIGINT/SIGTERM handling."""

from __future__ import annotations

import logging
import signal
import threading
from collections.abc import Callable
from types import FrameType, TracebackType
from typing import Any

from filereader.exceptions import RunCancelledError
from filereader.types import CancelReason

LOGGER = logging.getLogger(__name__)

SignalHandler = Callable[[int, FrameType | None], None]
SignalRegistrar = Callable[[int, SignalHandler], Any]

HANDLED_SIGNALS: tuple[signal.Signals, ...] = (signal.SIGINT, signal.SIGTERM)


def signal_name(signum: int) -> str:
    try:
        return signal.Signals(signum).name
    except ValueError:
        return "?"


class CancellationHandler:
    """Owns the run's cancellation token.

    Workers receive ``token`` and stop cooperatively once it is set. The
    failure policy triggers it through ``cancel()``; SIGINT/SIGTERM trigger
    it through the installed signal handler, which also raises
    RunCancelledError in the dispatching thread so a blocking slot wait or
    drain is abandoned immediately.
    """

    def __init__(
        self,
        *,
        event_factory: Callable[[], threading.Event] | None = None,
        signal_registrar: SignalRegistrar | None = None,
    ):
        self.token = (event_factory or threading.Event)()
        self._register_signal = signal_registrar or signal.signal
        self._lock = threading.Lock()
        self._reason: CancelReason | None = None
        self._signal_number: int | None = None
        self._previous_handlers: dict[int, Any] = {}

    @property
    def reason(self) -> CancelReason | None:
        return self._reason

    @property
    def signal_number(self) -> int | None:
        return self._signal_number

    @property
    def cancelled(self) -> bool:
        return self.token.is_set()

    def cancel(self, reason: CancelReason, signal_number: int | None = None) -> bool:
        """Set the token. Returns False when the run was already cancelled."""
        with self._lock:
            if self._reason is not None:
                return False
            self._reason = reason
            self._signal_number = signal_number
        self.token.set()
        LOGGER.debug("Cancellation triggered (%s)", reason.value)
        return True

    def _handle_signal(self, signum: int, _frame: FrameType | None) -> None:
        LOGGER.info("Received signal %s (%s); cancelling run.", signum, signal_name(signum))
        if self.cancel(CancelReason.INTERRUPT, signal_number=signum):
            raise RunCancelledError(signum)
        LOGGER.debug("Run already cancelling; ignoring signal %s", signum)

    def install(self) -> None:
        """Register SIGINT/SIGTERM handlers, remembering the previous ones."""
        for sig in HANDLED_SIGNALS:
            previous = self._register_signal(sig, self._handle_signal)
            self._previous_handlers[int(sig)] = previous

    def restore(self) -> None:
        """Put back the handlers that were active before ``install()``."""
        while self._previous_handlers:
            signum, previous = self._previous_handlers.popitem()
            if previous is None:
                # Handler was installed from outside Python; fall back to the default action
                previous = signal.SIG_DFL
            self._register_signal(signum, previous)

    def __enter__(self) -> CancellationHandler:
        self.install()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.restore()
