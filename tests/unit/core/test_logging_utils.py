"""Tests for logging helpers."""

import logging

import pytest

from modeldb.utils import logging as logging_utils
from modeldb.utils.logging import ROOT_LOGGER, configure_logging, get_logger, set_component_level


@pytest.fixture(autouse=True)
def restore_levels():
    names = [ROOT_LOGGER, "modeldb.sources", "modeldb.catalog.engine", "modeldb.custom"]
    saved = {name: logging.getLogger(name).level for name in names}
    yield
    for name, level in saved.items():
        logging.getLogger(name).setLevel(level)


def test_get_logger_uses_name_as_is():
    assert get_logger("modeldb.catalog.merge").name == "modeldb.catalog.merge"


def test_configure_logging_levels():
    configure_logging(verbose=True)
    assert logging.getLogger(ROOT_LOGGER).level == logging.DEBUG

    configure_logging(level="ERROR")
    assert logging.getLogger(ROOT_LOGGER).level == logging.ERROR

    configure_logging()
    assert logging.getLogger(ROOT_LOGGER).level == logging.WARNING


def test_configure_logging_installs_one_handler():
    configure_logging()
    configure_logging(verbose=True)

    handlers = [h for h in logging.getLogger(ROOT_LOGGER).handlers if isinstance(h, logging.StreamHandler)]
    assert len(handlers) == 1
    assert logging_utils._configured


@pytest.mark.parametrize(
    "component, logger_name",
    [
        ("sources", "modeldb.sources"),
        ("engine", "modeldb.catalog.engine"),
        ("custom", "modeldb.custom"),
    ],
)
def test_set_component_level(component, logger_name):
    set_component_level(component, "ERROR")
    assert logging.getLogger(logger_name).level == logging.ERROR
