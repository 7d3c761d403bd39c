"""Unit tests for command formatting, ordered transmission and exit handling."""

import pytest

from stkdock.errors import TerminationError, TransmissionError
from stkdock.provisioning.sequencer import format_command, send_commands, wait_for_exit
from tests.fakes import FakeProcess, FakeWriter


class _Session:
    def __init__(self, process):
        self.process = process

    async def wait(self):
        return await self.process.wait()


# ── format_command ───────────────────────────────────────────────


def test_format_command_joins_with_single_space():
    assert format_command(["sudo", "apt-get", "-y", "update"]) == "sudo apt-get -y update"


def test_format_command_does_not_quote():
    """Tokens are passed through verbatim; the remote shell expands them."""
    assert format_command(["wget", "-O", "$HOME/a b"]) == "wget -O $HOME/a b"


# ── send_commands ────────────────────────────────────────────────


async def test_send_single_command():
    stdin = FakeWriter()
    await send_commands(stdin, [["echo", "hi"]])
    assert stdin.data == b"echo hi\n"
    assert stdin.eof


async def test_send_preserves_order_and_content():
    commands = [["mkdir", "stk"], ["cd", "stk"], ["git", "clone", "https://example.com/repo", "repo"]]
    stdin = FakeWriter()
    await send_commands(stdin, commands)
    assert stdin.data == b"mkdir stk\ncd stk\ngit clone https://example.com/repo repo\n"
    assert stdin.writes == [b"mkdir stk\n", b"cd stk\n", b"git clone https://example.com/repo repo\n"]


async def test_send_logs_each_line(caplog):
    with caplog.at_level("INFO"):
        await send_commands(FakeWriter(), [["echo", "one"], ["echo", "two"]])
    assert "+ echo one" in caplog.text
    assert "+ echo two" in caplog.text


async def test_send_stops_at_first_failed_write():
    stdin = FakeWriter(fail_on_write=1)
    with pytest.raises(TransmissionError, match="echo two") as exc_info:
        await send_commands(stdin, [["echo", "one"], ["echo", "two"], ["echo", "three"]])
    assert stdin.data == b"echo one\n"
    assert not stdin.eof
    assert exc_info.value.line == "echo two"
    assert exc_info.value.stage == "transmit"


# ── wait_for_exit ────────────────────────────────────────────────


async def test_wait_for_exit_success():
    assert await wait_for_exit(_Session(FakeProcess([], exit_status=0))) == 0


async def test_wait_for_exit_nonzero_status():
    with pytest.raises(TerminationError, match="status 2") as exc_info:
        await wait_for_exit(_Session(FakeProcess([], exit_status=2)))
    assert exc_info.value.exit_status == 2


async def test_wait_for_exit_signal():
    process = FakeProcess([], exit_status=None, exit_signal=("KILL", False, "", "en-US"))
    with pytest.raises(TerminationError, match="signal KILL") as exc_info:
        await wait_for_exit(_Session(process))
    assert exc_info.value.exit_signal == "KILL"


async def test_wait_for_exit_missing_status():
    with pytest.raises(TerminationError, match="without reporting"):
        await wait_for_exit(_Session(FakeProcess([], exit_status=None)))
