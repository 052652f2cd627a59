"""Unidirectional OS pipes with independently closable ends."""

from __future__ import annotations

import logging
import os

logger = logging.getLogger(__name__)


class PipeError(Exception):
    """Raised when a pipe cannot be created or an end is no longer owned."""


class PipePair:
    """An ``os.pipe()`` whose two ends are owned and closed separately.

    One end is usually handed to a child process and closed in the
    parent straight after spawning; the other is detached into an
    asyncio stream, which then owns it. Closing an end that is already
    closed or detached is a no-op.
    """

    def __init__(self) -> None:
        try:
            read_fd, write_fd = os.pipe()
        except OSError as e:
            raise PipeError(f"Cannot create pipe: {e}") from e
        self._read_fd: int | None = read_fd
        self._write_fd: int | None = write_fd

    @property
    def read_fd(self) -> int:
        if self._read_fd is None:
            raise PipeError("read end is closed")
        return self._read_fd

    @property
    def write_fd(self) -> int:
        if self._write_fd is None:
            raise PipeError("write end is closed")
        return self._write_fd

    def detach_read(self) -> int:
        """Give up ownership of the read end and return its descriptor."""
        fd = self.read_fd
        self._read_fd = None
        return fd

    def detach_write(self) -> int:
        """Give up ownership of the write end and return its descriptor."""
        fd = self.write_fd
        self._write_fd = None
        return fd

    def close_read(self) -> None:
        if self._read_fd is not None:
            fd, self._read_fd = self._read_fd, None
            _close_fd(fd)

    def close_write(self) -> None:
        if self._write_fd is not None:
            fd, self._write_fd = self._write_fd, None
            _close_fd(fd)

    def close(self) -> None:
        self.close_read()
        self.close_write()

    def __enter__(self) -> PipePair:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        self.close()


def _close_fd(fd: int) -> None:
    try:
        os.close(fd)
    except OSError as e:
        logger.debug("Closing fd %d failed: %s", fd, e)
