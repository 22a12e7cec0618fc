"""In-process implementation of BlockReader using unbuffered file reads."""

import logging
import threading
import time

from filereader.exceptions import BlockReadError, ReadCancelledError
from filereader.services.interfaces import ReadRequest, ReadResult

LOGGER = logging.getLogger(__name__)


class PythonBlockReader:
    """Reads files with ``readinto`` into one reusable buffer per call.

    The cancellation token is checked between blocks, so a cancelled run
    stops an in-flight read after at most one more block.
    """

    name = "python"

    def describe(self, request: ReadRequest) -> str:
        return f"reading {request.path} with block size {request.block_size}"

    def read(self, request: ReadRequest, cancel_event: threading.Event) -> ReadResult:
        start = time.time()
        try:
            buffer = bytearray(request.block_size_bytes)
        except MemoryError as exc:
            raise BlockReadError(request.path, f"cannot allocate a {request.block_size} buffer") from exc
        view = memoryview(buffer)
        total = 0

        try:
            with open(request.path, "rb", buffering=0) as handle:
                while True:
                    if cancel_event.is_set():
                        raise ReadCancelledError(request.path)
                    count = handle.readinto(view)
                    if not count:
                        break
                    total += count
        except OSError as exc:
            raise BlockReadError(request.path, exc.strerror or str(exc)) from exc
        finally:
            view.release()

        duration = time.time() - start
        LOGGER.debug("Read %d bytes from %s in %.3f s", total, request.path, duration)
        return ReadResult(bytes_read=total, duration=duration, backend=self.name)
