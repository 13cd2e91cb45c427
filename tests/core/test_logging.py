"""Tests for tabby.core.utils.logging."""

import os
import sys

import pytest
from loguru import logger

from tabby.core.config import Config
from tabby.core.utils.logging import setup_logging, setup_logging_from_config


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    logger.remove()
    logger.add(sys.stderr)


def test_file_sink_receives_messages(tmp_dir):
    path = os.path.join(tmp_dir, "app.log")
    setup_logging(level="info", log_file=path)
    logger.info("hello from the test")
    logger.debug("filtered out")
    logger.complete()

    with open(path) as f:
        content = f.read()
    assert "hello from the test" in content
    assert "filtered out" not in content


def test_from_config_uses_log_dir(tmp_dir):
    config = Config(data_dir=tmp_dir)
    config.ensure_directories()
    config.set("logging.file", True)
    config.set("logging.level", "DEBUG")
    setup_logging_from_config(config)
    logger.debug("into the log dir")
    logger.complete()

    with open(os.path.join(tmp_dir, "logs", "tabby.log")) as f:
        assert "into the log dir" in f.read()


def test_from_config_without_file(tmp_dir):
    setup_logging_from_config(Config(data_dir=tmp_dir))
    assert not os.path.exists(os.path.join(tmp_dir, "logs", "tabby.log"))
