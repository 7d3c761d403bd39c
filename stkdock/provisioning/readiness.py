"""Readiness barrier and bounded connection retry for freshly created nodes."""

import asyncio
import logging
import time

from stkdock.errors import DialError, ReadinessTimeout

logger = logging.getLogger(__name__)


async def wait_for_node(delay, sleep=asyncio.sleep):
    """Block for *delay* seconds before the first connection attempt.

    New nodes are not reachable as soon as the provider reports them running.
    """
    if delay <= 0:
        return
    logger.info(f"Waiting {delay}s for the node to boot...")
    await sleep(delay)


async def connect_with_retry(
    connect, timeout=300, interval=5, backoff=2.0, max_interval=30, sleep=asyncio.sleep, clock=time.monotonic
):
    """Call *connect* until it succeeds or *timeout* seconds have been spent.

    Both the waits between attempts and the attempts themselves count
    against *timeout*. Only ``DialError`` (node not reachable yet) is
    retried. Any other error, notably ``AuthenticationError``, propagates
    on the first occurrence.

    Returns:
        Whatever *connect* returns.

    Raises:
        ReadinessTimeout: the next wait would exceed *timeout*.
    """
    elapsed = 0
    attempt = 0
    while True:
        attempt += 1
        started = clock()
        try:
            return await connect()
        except DialError as e:
            elapsed += clock() - started
            if elapsed + interval > timeout:
                raise ReadinessTimeout(
                    f"Node not reachable after {attempt} attempt(s) over {elapsed:.0f}s: {e}", last_error=e
                ) from e
            logger.info(f"Node not reachable yet (attempt {attempt}): {e}. Retrying in {interval}s...")
            await sleep(interval)
            elapsed += interval
            interval = min(interval * backoff, max_interval)
