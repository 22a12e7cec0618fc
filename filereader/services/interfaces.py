"""Service interfaces for the read path using structural typing."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Protocol, runtime_checkable


@dataclass(slots=True)
class ReadRequest:
    """Request data for a block reader."""

    path: str
    block_size: str
    block_size_bytes: int


@dataclass(slots=True)
class ReadResult:
    """Result data from a block reader."""

    bytes_read: int
    duration: float
    backend: str


@runtime_checkable
class BlockReader(Protocol):
    """Reads a whole file in fixed-size blocks and discards the data."""

    name: str

    def describe(self, request: ReadRequest) -> str:
        """Return the progress-line description of the read about to run."""
        ...

    def read(self, request: ReadRequest, cancel_event: threading.Event) -> ReadResult:
        """Read the full file.

        Raises BlockReadError when the primitive fails and ReadCancelledError
        when ``cancel_event`` is set before the read finishes.
        """
        ...


# Receives one finished progress line such as "[3/10] reading /a with block size 1M"
LineEmitter = Callable[[str], None]
