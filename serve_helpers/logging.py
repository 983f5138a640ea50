import sys
import time
from functools import wraps, partial
from typing import Callable, Union

import falcon
from loguru import logger

from serve_helpers import request_id
from serve_helpers.config import config

__all__ = [
    "HTTPLogger",
    "standard_http_logger",
    "format_duration",
    "inject_request_id",
    "LogLevelFilter",
    "time_and_log"
]


COLOR_GREEN = "\x1b[97;42m"
COLOR_WHITE = "\x1b[90;47m"
COLOR_YELLOW = "\x1b[97;43m"
COLOR_RED = "\x1b[97;41m"
COLOR_BLUE = "\x1b[97;44m"
COLOR_MAGENTA = "\x1b[97;45m"
COLOR_CYAN = "\x1b[97;46m"
COLOR_RESET = "\x1b[0m"

_METHOD_COLORS = {
    "GET": COLOR_BLUE,
    "POST": COLOR_CYAN,
    "PUT": COLOR_YELLOW,
    "DELETE": COLOR_RED,
    "PATCH": COLOR_GREEN,
    "HEAD": COLOR_MAGENTA,
    "OPTIONS": COLOR_WHITE,
}


def color_for_status(code: int) -> str:
    if 200 <= code < 300:
        return COLOR_GREEN
    if 300 <= code < 400:
        return COLOR_WHITE
    if 400 <= code < 500:
        return COLOR_YELLOW
    return COLOR_RED


def color_for_method(method: str) -> str:
    return _METHOD_COLORS.get(method, COLOR_RESET)


def format_duration(ns: int) -> str:
    if ns < 1_000:
        return f"{ns}ns"
    if ns < 1_000_000:
        return f"{ns / 1e3:.3f}µs"
    if ns < 1_000_000_000:
        return f"{ns / 1e6:.3f}ms"
    return f"{ns / 1e9:.3f}s"


class HTTPLogger:
    """
    Falcon middleware writing one line per request:
    status, latency, client address, method and path.

    ``log`` is anything with an ``info(str)`` method,
    the loguru logger by default.
    """

    def __init__(self, log=None, color: bool = False):
        self.log = log if log is not None else logger.bind(channel="http")
        self.color = color

    def process_request(self, req, resp):
        req.context.log_start_time = time.monotonic_ns()

    def process_response(self, req, resp, res, req_succeeded):
        # called even if no route matched
        start = getattr(req.context, "log_start_time", None)
        latency = time.monotonic_ns() - start if start is not None else 0

        status = falcon.http_status_to_code(resp.status)
        method = req.method

        if self.color:
            status_color = color_for_status(status)
            method_color = color_for_method(method)
            reset = COLOR_RESET
        else:
            status_color = method_color = reset = ""

        self.log.info(
            f"{status_color} {status:3d} {reset}"
            f"| {format_duration(latency):>13} "
            f"| {req.remote_addr} "
            f"|{method_color} {method:<7}{reset} {req.path}")


def standard_http_logger() -> HTTPLogger:
    """An ``HTTPLogger`` colored when configured so, or when stderr is a terminal."""
    color = config.get("logging.color")
    if color is None:
        color = sys.stderr.isatty()
    return HTTPLogger(color=bool(color))


def inject_request_id(record):
    """Loguru patcher adding the current request id to ``extra``."""
    if "request_id" not in record["extra"]:
        rid = request_id.get()
        record["extra"]["request_id"] = f"[{rid}] " if rid is not None else ""


class LogLevelFilter:
    """A loguru filter to allow changing log level on a sink."""

    def __init__(self, config_path):
        level = config.get(config_path, default="INFO")

        self._level = "INFO"
        self.level = level

        # allow changing log level at runtime
        def change_log_level(_, old_level, new_level):
            if new_level is None:
                return
            logger.info(f"setting log level to [{new_level}]")
            self.level = new_level
        config.on_change(config_path, change_log_level)

    @property
    def level(self):
        return self._level

    @level.setter
    def level(self, level: str):
        try:
            logger.level(level)
        except ValueError:
            logger.error(f"log level [{level}] does not exist,"
                         f" remaining at [{self.level}]")
            return
        self._level = level

    def __call__(self, record) -> bool:
        return record["level"].no >= logger.level(self.level).no


class time_and_log:
    """
    A decorator and context manager to time and log a block or function.

    The message to log with the timing information can be supplied
    as a constant string or a callable that returns a string.
    In the latter case, the callable will be invoked with no arguments
    when used as a context manager,
    and with all arguments to the decorated function when used as a decorator.
    """

    def __init__(self, msg: Union[str, Callable[..., str]]):
        self.msg = msg
        self.start_time = None

    def __enter__(self):
        self.start_time = time.monotonic_ns()

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration = time.monotonic_ns() - self.start_time
        msg = self.msg() if callable(self.msg) else self.msg
        logger.debug(f"{msg}: {format_duration(duration)}")
        return False

    def __call__(self, func):
        @wraps(func)
        def wrap(*args, **kwargs):
            if callable(self.msg):
                context = time_and_log(partial(self.msg, *args, **kwargs))
            else:
                context = time_and_log(self.msg)
            with context:
                return func(*args, **kwargs)
        return wrap
