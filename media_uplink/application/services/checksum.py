"""Streaming SHA-256 digests of staged files."""

import asyncio
import hashlib
from pathlib import Path

from media_uplink.commons.telemetry import timed
from media_uplink.domain.exceptions import StagedFileException

DEFAULT_CHUNK_SIZE = 1024 * 1024


def compute_sha256(path: Path, chunk_size: int = DEFAULT_CHUNK_SIZE) -> str:
    """Digest a file in bounded chunks.

    Args:
        path: File to read.
        chunk_size: Bytes read per iteration.

    Returns:
        Lowercase hex SHA-256 of the full contents.

    Raises:
        StagedFileException: If the file cannot be opened or a read fails.
    """
    digest = hashlib.sha256()
    try:
        with path.open("rb") as f:
            while chunk := f.read(chunk_size):
                digest.update(chunk)
    except OSError as e:
        raise StagedFileException(str(path), e.strerror or str(e)) from e
    return digest.hexdigest()


class ChecksumEngine:
    """Computes file digests off the event loop."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self._chunk_size = chunk_size

    @timed
    async def checksum(self, path: Path) -> str:
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(
            None, compute_sha256, path, self._chunk_size
        )
