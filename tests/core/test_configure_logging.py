# tests/core/test_configure_logging.py
import logging

import pytest

from a11y_auditor.utils import configure_logging
from a11y_auditor.utils.configure_logging import LogWithTqdm, configure_logger


@pytest.fixture
def restore_root_logger():
    """Zet de root logger na de test terug, pytest hangt er zelf handlers aan."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_configure_logger_installs_single_handler(restore_root_logger):
    handler = configure_logger("WARNING", module_specific_levels={"a11y_auditor.engine": "DEBUG"},
                               silenced_loggers={"bs4": "ERROR"})

    assert restore_root_logger.handlers == [handler]
    assert isinstance(handler, LogWithTqdm)
    assert restore_root_logger.level == logging.WARNING
    assert logging.getLogger("a11y_auditor.engine").level == logging.DEBUG
    assert logging.getLogger("bs4").level == logging.ERROR


def test_unknown_level_names_fall_back(restore_root_logger):
    configure_logger("LUID", silenced_loggers={"urllib3": "STIL"})

    assert restore_root_logger.level == logging.INFO
    assert logging.getLogger("urllib3").level == logging.CRITICAL


def test_handler_writes_through_tqdm(restore_root_logger, monkeypatch):
    """Test dat log regels via tqdm.write gaan zodat de voortgangsbalk heel blijft."""
    written = []
    monkeypatch.setattr(configure_logging.tqdm, "write", lambda msg, file=None: written.append(msg))

    configure_logger("INFO")
    logging.getLogger("a11y_auditor.test").info("Scan gestart")

    assert len(written) == 1
    assert "INFO" in written[0]
    assert "Scan gestart" in written[0]
