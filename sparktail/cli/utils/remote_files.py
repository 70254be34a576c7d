"""Chunked reads of files in an agent's sandbox."""

import logging
from dataclasses import dataclass

from sparktail.cluster_api import ClusterAPI, TransportError


logger = logging.getLogger(__name__)

# Bytes requested per read while polling
READ_CHUNK_SIZE = 100000

# offset/length sentinel: report the file size, no payload
SIZE_PROBE = -1


@dataclass(frozen=True)
class ReadChunk:
    """One remote read.

    Attributes:
        payload: Bytes returned by the agent
        offset: Offset the payload starts at, as reported by the agent
        known_length: Smallest file length this read proves. For a size
            probe it is the reported size; for a data read it is the
            payload's end offset, the file may already be longer.
    """
    payload: bytes
    offset: int
    known_length: int

    @property
    def end(self) -> int:
        """Offset the next read must start from."""
        return self.offset + len(self.payload)


class RemoteFileReader:
    """Reads windows of a remote file through the agent's files API."""

    def __init__(self, api: ClusterAPI):
        self.api = api

    def read(self, agent_host: str, path: str, offset: int, length: int, agent_id: str = "") -> ReadChunk:
        """Read up to `length` bytes of `path` starting at `offset`.

        The agent may return fewer bytes than requested; callers continue
        from `chunk.end`.

        Raises:
            TransportError: If the request fails or the response is malformed
        """
        result = self.api.read_file(agent_host, path, offset, length, agent_id=agent_id)
        data = result.get("data")
        reported_offset = result.get("offset")
        if not isinstance(data, str) or isinstance(reported_offset, bool) \
                or not isinstance(reported_offset, int):
            raise TransportError(f"Malformed files/read response for {path}: {result!r}")

        # Undecodable bytes arrive as surrogate escapes; keep them byte-exact.
        payload = data.encode("utf-8", "surrogateescape")
        if offset == SIZE_PROBE:
            return ReadChunk(payload=b"", offset=reported_offset, known_length=reported_offset)

        if reported_offset != offset:
            logger.warning("Agent returned %s from offset %d, requested %d",
                           path, reported_offset, offset)
        return ReadChunk(payload=payload, offset=reported_offset,
                         known_length=reported_offset + len(payload))

    def size(self, agent_host: str, path: str, agent_id: str = "") -> int:
        """Current length of the remote file."""
        return self.read(agent_host, path, SIZE_PROBE, SIZE_PROBE, agent_id=agent_id).known_length
