"""Relay the remote shell's stdout/stderr to the local process."""

import asyncio
import logging
import sys

logger = logging.getLogger(__name__)

CHUNK_SIZE = 8192


async def relay_stream(reader, writer, name, chunk_size=CHUNK_SIZE):
    """Copy bytes from *reader* to *writer* until EOF.

    Failures are logged, never raised: output relay is best-effort.

    Returns:
        Number of bytes copied.
    """
    copied = 0
    try:
        while True:
            chunk = await reader.read(chunk_size)
            if not chunk:
                break
            writer.write(chunk)
            writer.flush()
            copied += len(chunk)
    except Exception as e:
        logger.error(f"error while copying {name}: {e}")
    return copied


def start_relay(session, stdout=None, stderr=None):
    """Start one background relay task per output stream of *session*."""
    stdout = stdout or sys.stdout.buffer
    stderr = stderr or sys.stderr.buffer
    return [
        asyncio.create_task(relay_stream(session.stdout, stdout, "stdout")),
        asyncio.create_task(relay_stream(session.stderr, stderr, "stderr")),
    ]
