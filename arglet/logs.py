"""
Arglet logging.

The library logs through the "arglet" logger hierarchy (arglet.engine,
arglet.schema) and ships silent: a NullHandler is attached to the root
"arglet" logger on import. verbose() opts into rich console output.
"""
import logging

from rich.console import Console
from rich.logging import RichHandler

logger = logging.getLogger("arglet")
logger.addHandler(logging.NullHandler())


def verbose(level=logging.DEBUG, /):
    """
    Route arglet records of the given level and above to stderr through rich.

    Calling it again only updates the level; the handler is installed once.
    """
    for handler in logger.handlers:
        if isinstance(handler, RichHandler):
            handler.setLevel(level)
            break
    else:
        logger.addHandler(RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            show_path=False,
            level=level,
            keywords=["token", "command", "argument", "option"],
        ))
    logger.setLevel(level)
    return logger


__all__ = (
    "verbose",
)
