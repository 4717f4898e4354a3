import logging

import numpy as np

from swarm_layout.logging_utils import _safe_repr, apply_debug_logging, debug_log_call


def test_debug_log_call_logs_entry_and_exit(caplog):
    logger = logging.getLogger("swarm_layout.tests.debug")

    @debug_log_call(logger)
    def add(a, b):
        return a + b

    with caplog.at_level(logging.DEBUG, logger=logger.name):
        assert add(1, 2) == 3

    messages = [record.getMessage() for record in caplog.records]
    assert any(m.startswith("Entering") and "add" in m for m in messages)
    assert any(m.startswith("Exiting") and "-> 3" in m for m in messages)


def test_debug_log_call_is_silent_above_debug(caplog):
    logger = logging.getLogger("swarm_layout.tests.quiet")

    @debug_log_call(logger)
    def noop():
        return None

    with caplog.at_level(logging.INFO, logger=logger.name):
        noop()

    assert caplog.records == []


def test_apply_debug_logging_wraps_module_functions():
    def helper():
        return 1

    helper.__module__ = "fake_module"
    namespace = {"__name__": "fake_module", "helper": helper, "other": len}

    apply_debug_logging(namespace, skip={"other"})

    assert namespace["helper"] is not helper
    assert namespace["helper"]() == 1
    assert namespace["other"] is len


def test_safe_repr_summarizes_arrays_and_long_lists():
    assert "shape=(10,)" in _safe_repr(np.arange(10))
    assert "max=9" in _safe_repr(np.arange(10))
    assert _safe_repr(list(range(100))).startswith("list(len=100")
