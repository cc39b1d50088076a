"""Logging configuration"""

import logging

from rich.console import Console
from rich.logging import RichHandler

DATEFMT = "[%Y-%m-%d %H:%M:%S]"
PLAIN_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Library loggers that drown out the bot's own lines at INFO
NOISY_LOGGERS = {
    "discord": logging.WARNING,
    "discord.http": logging.WARNING,
    "discord.gateway": logging.WARNING,
    "discord.player": logging.WARNING,
    "httpx": logging.WARNING,
    "aiohttp.access": logging.WARNING,
}


def resolve_level(level_name: str) -> int:
    level = logging.getLevelName(level_name.upper())
    return level if isinstance(level, int) else logging.INFO


def _rich_handler(console: Console | None = None) -> RichHandler:
    handler = RichHandler(
        console=console or Console(width=120),
        show_time=True,
        show_level=True,
        show_path=False,
        markup=True,
        rich_tracebacks=True,
        tracebacks_show_locals=False,
        tracebacks_width=120,
    )
    handler.setFormatter(logging.Formatter(fmt="%(message)s", datefmt=DATEFMT))
    return handler


def setup_logging(level_name: str = "INFO", *, console: Console | None = None) -> logging.Handler:
    """Install a Rich handler on the root logger and return it.

    Log lines may carry rich markup (``[green]...[/green]``). If the handler
    cannot be built, plain ``basicConfig`` output is used instead.
    """
    level = resolve_level(level_name)

    failure: Exception | None = None
    try:
        handler: logging.Handler = _rich_handler(console)
    except Exception as e:
        failure = e
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(PLAIN_FORMAT, datefmt=DATEFMT))

    logging.basicConfig(level=level, handlers=[handler], force=True)
    if failure is not None:
        logging.getLogger(__name__).warning(f"Rich logging setup failed: {failure}, using standard logging")

    for name, noisy_level in NOISY_LOGGERS.items():
        logging.getLogger(name).setLevel(max(noisy_level, level))

    return handler
