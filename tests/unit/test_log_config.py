from __future__ import annotations

import logging

import pytest

from fibserve.log_config import VERBOSE_LEVEL, ElapsedMsFormatter, setup_logging


@pytest.mark.unit
@pytest.mark.parametrize(
    "debug, verbose, level",
    [(False, False, logging.INFO), (False, True, VERBOSE_LEVEL), (True, False, logging.DEBUG)],
)
def test_setup_logging_levels(debug: bool, verbose: bool, level: int) -> None:
    root = logging.getLogger()
    saved_handlers, saved_level = list(root.handlers), root.level
    access = logging.getLogger("uvicorn.access")
    saved_access_level = access.level
    try:
        setup_logging(debug, verbose)
        assert root.level == level
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, ElapsedMsFormatter)
        assert access.level == (logging.DEBUG if debug else logging.WARNING)
    finally:
        root.handlers = saved_handlers
        root.setLevel(saved_level)
        access.setLevel(saved_access_level)


@pytest.mark.unit
def test_elapsed_formatter_prefix() -> None:
    formatter = ElapsedMsFormatter("%(elapsed)s %(message)s")
    record = logging.LogRecord("fibserve", logging.INFO, __file__, 1, "hello", None, None)
    text = formatter.format(record)
    assert text.endswith("ms] hello")
    assert text.startswith("[")


@pytest.mark.unit
def test_verbose_level_registered() -> None:
    assert logging.getLevelName(VERBOSE_LEVEL) == "VERBOSE"
