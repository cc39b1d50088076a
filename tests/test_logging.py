import logging

import pytest
from rich.console import Console
from rich.logging import RichHandler

from kymerabot.core.logging import resolve_level, setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    noisy = {name: logging.getLogger(name).level for name in ("discord", "httpx")}
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    for name, noisy_level in noisy.items():
        logging.getLogger(name).setLevel(noisy_level)


def test_rich_handler_installed_at_level():
    handler = setup_logging("debug", console=Console(width=80))

    root = logging.getLogger()
    assert isinstance(handler, RichHandler)
    assert root.handlers == [handler]
    assert root.level == logging.DEBUG
    assert logging.getLogger("discord").level == logging.WARNING


def test_library_loggers_follow_a_stricter_level():
    setup_logging("ERROR", console=Console(width=80))

    assert logging.getLogger("httpx").level == logging.ERROR


@pytest.mark.parametrize("name, expected", [("warning", logging.WARNING), ("chatty", logging.INFO), ("", logging.INFO)])
def test_resolve_level(name, expected):
    assert resolve_level(name) == expected
