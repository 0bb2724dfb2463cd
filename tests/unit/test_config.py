from __future__ import annotations

import logging

import pytest

from tiny_workflow.utils import configure_logging, logger
from tiny_workflow.utils.config import WorkflowConfig, config, override


def test_override_restores_previous_values() -> None:
    before = config.optimize_bulk
    with override(optimize_bulk=not before) as cfg:
        assert cfg is config
        assert config.optimize_bulk is (not before)
    assert config.optimize_bulk is before


def test_override_rejects_unknown_fields() -> None:
    with pytest.raises(AttributeError):
        with override(colour="blue"):
            pass


def test_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TINY_WORKFLOW_DEBUG", "yes")
    monkeypatch.setenv("TINY_WORKFLOW_OPTIMIZE", "0")
    monkeypatch.setenv("TINY_WORKFLOW_PARTITIONS", "4")
    monkeypatch.setenv("TINY_WORKFLOW_MAX_WORKERS", "")

    fresh = WorkflowConfig()
    assert fresh.debug is True
    assert fresh.optimize_bulk is False
    assert fresh.default_partitions == 4
    assert fresh.max_workers is None


def test_configure_logging_attaches_handler() -> None:
    handlers = list(logger.handlers)
    try:
        configure_logging(logging.DEBUG)
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == len(handlers) + 1
    finally:
        logger.handlers = handlers
        logger.setLevel(logging.NOTSET)
