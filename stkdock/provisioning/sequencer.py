"""Ordered transmission of command lines into an interactive shell."""

import logging

from stkdock.errors import TerminationError, TransmissionError

logger = logging.getLogger(__name__)


def format_command(tokens):
    """Join *tokens* with single spaces.

    No quoting or escaping is applied: tokens must be shell-safe atoms or
    intentional shell syntax (``$HOME`` is expanded by the remote shell).
    """
    return " ".join(tokens)


async def send_commands(stdin, commands):
    """Write each command as one newline-terminated line, in order.

    Lines are queued back to back; the remote shell runs them one at a time.
    stdin is half-closed after the last line so the shell exits when done.

    Raises:
        TransmissionError: a write failed. No later line is written.
    """
    for tokens in commands:
        line = format_command(tokens)
        logger.info(f"+ {line}")
        try:
            stdin.write(f"{line}\n".encode())
            await stdin.drain()
        except Exception as e:
            raise TransmissionError(f"Failed to write command '{line}': {e}", line=line) from e

    try:
        stdin.write_eof()
    except Exception as e:
        raise TransmissionError(f"Failed to close shell input: {e}") from e


async def wait_for_exit(session):
    """Block until the remote shell exits.

    Returns:
        0 on a clean exit.

    Raises:
        TerminationError: the shell exited non-zero or was killed by a signal.
    """
    result = await session.wait()
    if result.exit_signal:
        signal = result.exit_signal[0]
        raise TerminationError(f"Remote shell killed by signal {signal}", exit_signal=signal)
    if result.exit_status is None:
        raise TerminationError("Remote shell closed without reporting an exit status")
    if result.exit_status:
        raise TerminationError(f"Remote shell exited with status {result.exit_status}", exit_status=result.exit_status)
    return 0
