"""Copy a remote sandbox log into a local append-only buffer file.

A StreamCapture is the only writer of its buffer. Readers (see logs.py)
poll the file and tolerate seeing any prefix of the final content.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import BinaryIO, Optional

from sparktail.cli.utils.locator import Location
from sparktail.cli.utils.remote_files import READ_CHUNK_SIZE, ReadChunk, RemoteFileReader


logger = logging.getLogger(__name__)

STDOUT = "stdout"
STDERR = "stderr"


class CaptureMode(Enum):
    SNAPSHOT = "snapshot"
    INCREMENTAL = "incremental"


@dataclass
class LogStream:
    """One logical log file of a submission and its local copy."""

    name: str
    location: Location
    buffer_path: Path
    offset: int = 0

    @property
    def remote_path(self) -> str:
        return f"{self.location.directory.rstrip('/')}/{self.name}"


class StreamCapture:
    """Drives remote reads for one LogStream.

    Args:
        reader: Remote file reader
        chunk_size: Bytes per read in incremental mode
        interval: Seconds between polls in incremental mode
        stop_event: Cancellation token; incremental capture runs until it is set
    """

    def __init__(
        self,
        reader: RemoteFileReader,
        chunk_size: int = READ_CHUNK_SIZE,
        interval: float = 1.0,
        stop_event: Optional[threading.Event] = None,
    ):
        self.reader = reader
        self.chunk_size = chunk_size
        self.interval = interval
        self.stop_event = stop_event or threading.Event()

    def capture(
        self,
        stream: LogStream,
        mode: CaptureMode,
        ready: Optional[threading.Event] = None,
    ) -> None:
        if mode is CaptureMode.SNAPSHOT:
            self.snapshot(stream)
            if ready is not None:
                ready.set()
        else:
            self.follow(stream, ready=ready)

    def _read(self, stream: LogStream, offset: int, length: int) -> ReadChunk:
        return self.reader.read(
            stream.location.agent_host,
            stream.remote_path,
            offset,
            length,
            agent_id=stream.location.agent_id,
        )

    def _append(self, f: BinaryIO, stream: LogStream, chunk: ReadChunk) -> None:
        if chunk.payload:
            f.write(chunk.payload)
            f.flush()
        stream.offset = chunk.end

    def snapshot(self, stream: LogStream) -> None:
        """Copy the whole remote file as it is right now."""
        size = self.reader.size(
            stream.location.agent_host, stream.remote_path, agent_id=stream.location.agent_id
        )
        logger.debug("%s is %d bytes", stream.remote_path, size)

        with open(stream.buffer_path, "ab") as f:
            while True:
                chunk = self._read(stream, stream.offset, size - stream.offset)
                self._append(f, stream, chunk)
                if not chunk.payload or stream.offset >= size:
                    break

    def follow(self, stream: LogStream, ready: Optional[threading.Event] = None) -> None:
        """Poll the remote file for appended bytes until cancelled.

        `ready` is set once the content present at start has been copied.
        """
        with open(stream.buffer_path, "ab") as f:
            while not self.stop_event.is_set():
                # Drain full chunks back-to-back, then wait for more output
                while not self.stop_event.is_set():
                    chunk = self._read(stream, stream.offset, self.chunk_size)
                    self._append(f, stream, chunk)
                    if len(chunk.payload) < self.chunk_size:
                        break
                if ready is not None:
                    ready.set()
                self.stop_event.wait(self.interval)
        logger.debug("Stopped capturing %s at offset %d", stream.remote_path, stream.offset)
