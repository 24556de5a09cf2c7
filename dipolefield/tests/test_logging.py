# =============================================================================
# Test Logging: Package Logger Setup and CLI Wiring
# =============================================================================

import json
import logging

import pytest

from dipolefield.logging_config import PACKAGE_LOGGER, resolve_level, setup_logging
from dipolefield.scripts.run_viewer import main


@pytest.fixture(autouse=True)
def detach_handlers():
    yield
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


def test_resolve_level():
    assert resolve_level('debug') == logging.DEBUG
    assert resolve_level('WARNING') == logging.WARNING
    assert resolve_level(logging.ERROR) == logging.ERROR
    with pytest.raises(ValueError):
        resolve_level('loud')


def test_repeated_setup_replaces_handlers(tmp_path):
    setup_logging('INFO', str(tmp_path / 'first.log'))
    logger = setup_logging('DEBUG')

    assert logger.name == PACKAGE_LOGGER
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    assert not isinstance(logger.handlers[0], logging.FileHandler)


def test_log_file_receives_module_records(tmp_path):
    log_file = tmp_path / 'run.log'
    setup_logging('INFO', str(log_file))

    logging.getLogger('dipolefield.simulation').info("synthesized %d cells", 64)
    logging.getLogger('dipolefield.controls').debug("hidden at INFO")
    for handler in logging.getLogger(PACKAGE_LOGGER).handlers:
        handler.flush()

    text = log_file.read_text(encoding='utf-8')
    assert 'dipolefield.simulation - INFO - synthesized 64 cells' in text
    assert 'hidden at INFO' not in text


def test_noisy_third_party_loggers_are_raised():
    setup_logging('DEBUG')
    assert logging.getLogger('matplotlib').level == logging.WARNING


def test_cli_log_file(tmp_path):
    config_path = tmp_path / 'scenario.json'
    config_path.write_text(json.dumps({'scenario': 'logged', 'grid': {'nx': 12, 'ny': 12}}),
                           encoding='utf-8')
    log_file = tmp_path / 'viewer.log'

    assert main(['--config', str(config_path), '--save', str(tmp_path / 'out.png'),
                 '--log-file', str(log_file)]) == 0
    for handler in logging.getLogger(PACKAGE_LOGGER).handlers:
        handler.flush()

    text = log_file.read_text(encoding='utf-8')
    assert 'Scenario: logged (12x12)' in text
    assert 'No dipoles configured' in text
