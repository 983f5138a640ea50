"""
Default logging setup.

Every output added here writes messages at or above the configured
``logging.level`` (changeable at runtime through the configuration),
formatted with ``format`` defined in this module,
which carries the id of the current request when there is one.
"""

import sys

from loguru import logger

from serve_helpers.config import config
from serve_helpers.logging import LogLevelFilter, inject_request_id


format = (
    "<green>[{time:YYYY-MM-DD HH:mm:ss Z}]</green> <level>[{level:<8}]</level>"
    " [{process.name}({process.id})] {extra[request_id]}"
    "<cyan>{name}</cyan>: {message}")

_configured = False


def _configure():
    global _configured
    if _configured:
        return
    # drop loguru's own stderr sink, outputs are added explicitly
    logger.remove()
    logger.configure(patcher=inject_request_id)
    _configured = True


def add_output_stderr(colorize: bool = None) -> int:
    _configure()
    if colorize is None:
        colorize = config.get("logging.color")
    return logger.add(
        sys.stderr,
        format=format,
        filter=LogLevelFilter("logging.level"),
        colorize=colorize,
        level=0)


def add_output_file(path: str = None) -> int:
    _configure()
    path = path if path is not None else config.get("logging.file", "logs/serve.log")
    return logger.add(
        path,
        format=format,
        filter=LogLevelFilter("logging.level"),
        level=0,
        enqueue=True,
        rotation="10 MB")
