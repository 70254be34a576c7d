"""Tail a local log buffer as it grows.

Works like `tail -n N -f`: the last N complete lines first, then every
newly completed line. Only the file's bytes are observed, so the watcher
does not care how or how often the buffer is written.
"""

import threading
from pathlib import Path
from typing import BinaryIO, Iterator, List, Optional, Tuple


class LogNotFoundError(Exception):
    """Log buffer not found."""
    pass


class TailWatcher:
    """Emit lines appended to a local buffer file."""

    BLOCK_SIZE = 4096

    def __init__(
        self,
        buffer_path: Path,
        lines: int = 10,
        poll_interval: float = 0.2,
        stop_event: Optional[threading.Event] = None,
    ):
        """Initialize the watcher.

        Args:
            buffer_path: Local buffer written by a StreamCapture
            lines: Lines of existing content to emit first
            poll_interval: Seconds between checks for new bytes
            stop_event: Cancellation token
        """
        self.buffer_path = Path(buffer_path)
        self.lines = max(lines, 0)
        self.poll_interval = poll_interval
        self.stop_event = stop_event or threading.Event()

    @staticmethod
    def _decode(raw: bytes) -> str:
        return raw.decode("utf-8", errors="replace").rstrip("\r")

    def _tail_window(self, f: BinaryIO) -> Tuple[List[str], int]:
        """Read the last complete lines with a bounded backward seek.

        Returns:
            (last lines, offset just past the last complete line)
        """
        f.seek(0, 2)
        size = f.tell()
        if size == 0:
            return [], 0

        blocks = []
        pos = size
        newlines = 0
        # One newline more than needed so the oldest kept line is complete
        while pos > 0 and newlines <= self.lines:
            read_size = min(self.BLOCK_SIZE, pos)
            pos -= read_size
            f.seek(pos)
            block = f.read(read_size)
            blocks.append(block)
            newlines += block.count(b"\n")

        content = b"".join(reversed(blocks))
        last_newline = content.rfind(b"\n")
        if last_newline == -1:
            return [], pos

        raw_lines = content[:last_newline].split(b"\n")
        if pos > 0:
            raw_lines = raw_lines[1:]
        window = raw_lines[-self.lines:] if self.lines else []
        return [self._decode(raw) for raw in window], pos + last_newline + 1

    def watch(self) -> Iterator[str]:
        """Yield the tail window, then new lines until the stop event is set.

        Raises:
            LogNotFoundError: If the buffer does not exist
        """
        if not self.buffer_path.exists():
            raise LogNotFoundError(f"Log buffer not found: {self.buffer_path}")

        with open(self.buffer_path, "rb") as f:
            window, position = self._tail_window(f)
            for line in window:
                yield line

            f.seek(position)
            pending = b""
            while not self.stop_event.is_set():
                data = f.read()
                if not data:
                    self.stop_event.wait(self.poll_interval)
                    continue
                pending += data
                *complete, pending = pending.split(b"\n")
                for raw in complete:
                    yield self._decode(raw)
