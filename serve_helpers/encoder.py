"""
Response encoders for the common body formats.

Each ``encode_*`` method sets the matching content type
(only if the response has none yet) and then the body.
When encoding fails, the response is replaced with a plain text 500
describing the failure and ``EncodeError`` is raised from the cause.
"""

import json
from typing import Any

import falcon
from loguru import logger

from serve_helpers.content import (
    CONTENT_BINARY, CONTENT_JSON, CONTENT_JSONP, CONTENT_TEXT, DEFAULT_CHARSET,
    set_content_type, write_error)
from serve_helpers.errors import EncodeError

__all__ = [
    "HTTPEncoder"
]


def _dumps(model) -> str:
    # NaN and infinities are not JSON
    return json.dumps(
        model, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


class HTTPEncoder:
    """Encodes models into a falcon response in several formats."""

    def __init__(self, resp: falcon.Response):
        self.resp = resp

    def encode_json(self, model: Any):
        set_content_type(self.resp, CONTENT_JSON)
        try:
            body = _dumps(model) + "\n"
        except (TypeError, ValueError) as e:
            self._fail(f"unable to encode {model!r} as JSON data: {e}", e)
        self.resp.data = body.encode(DEFAULT_CHARSET)

    def encode_jsonp(self, callback: str, model: Any):
        set_content_type(self.resp, CONTENT_JSONP)
        try:
            body = f"{callback}({_dumps(model)})"
        except (TypeError, ValueError) as e:
            self._fail(
                f"unable to encode {model!r} as JSON"
                f" for javascript func {callback}: {e}", e)
        self.resp.data = body.encode(DEFAULT_CHARSET)

    def encode_data(self, data: bytes):
        set_content_type(self.resp, CONTENT_BINARY)
        try:
            body = bytes(memoryview(data))
        except TypeError as e:
            self._fail(f"unable to encode binary data: {e}", e)
        self.resp.data = body

    def encode_text(self, text: str):
        set_content_type(self.resp, CONTENT_TEXT)
        try:
            if not isinstance(text, str):
                raise TypeError(f"expected str, got {type(text).__name__}")
            body = text.encode(DEFAULT_CHARSET)
        except (TypeError, UnicodeError) as e:
            self._fail(f"unable to encode text {text!r}: {e}", e)
        self.resp.data = body

    def _fail(self, message: str, cause: BaseException):
        logger.debug(message)
        write_error(self.resp, message)
        raise EncodeError(message) from cause
