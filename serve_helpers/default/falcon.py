from typing import Callable
from falcon import App

from loguru import logger

from serve_helpers.request_id import RequestTracer
from serve_helpers.logging import standard_http_logger


def setup_falcon(custom_routes: list[Callable[[App], None]] = ()) -> App:
    logger.info("initializing falcon app")
    # RequestTracer first so its id is still set when the request is logged
    app = App(middleware=[RequestTracer(), standard_http_logger()])

    for route in custom_routes:
        route(app)

    logger.info("initialization complete")
    return app
