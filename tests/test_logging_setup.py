import logging

import pytest

from stkdock.logging_setup import setup_cli_logging
from stkdock.redact import SecretRedactingFilter, register_secret


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    asyncssh_level = logging.getLogger("asyncssh").level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.getLogger("asyncssh").setLevel(asyncssh_level)


def test_setup_cli_logging_levels(restore_root_logger):
    setup_cli_logging()
    assert restore_root_logger.level == logging.INFO
    assert logging.getLogger("asyncssh").level == logging.WARNING

    setup_cli_logging(verbose=True)
    assert restore_root_logger.level == logging.DEBUG
    assert logging.getLogger("asyncssh").level == logging.DEBUG
    assert len(restore_root_logger.handlers) == 1


def test_child_logger_records_are_redacted(restore_root_logger, capsys):
    setup_cli_logging()
    register_secret("hunter2pass")
    handler = restore_root_logger.handlers[0]
    assert any(isinstance(f, SecretRedactingFilter) for f in handler.filters)

    logging.getLogger("stkdock.provisioning.sequencer").info("+ supertuxkart --password=hunter2pass")

    err = capsys.readouterr().err
    assert "+ supertuxkart --password=***" in err
    assert "hunter2pass" not in err
