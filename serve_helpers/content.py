"""
Content type constants and the two header/body primitives
every encoder and renderer goes through.
"""

import falcon


CONTENT_BINARY = "application/octet-stream"
CONTENT_JSON = "application/json"
CONTENT_JSONP = "application/javascript"
CONTENT_TEXT = "text/plain"
CONTENT_HTML = "text/html"

CONTENT_TYPE = "Content-Type"
DEFAULT_CHARSET = "UTF-8"


def with_charset(content_type: str) -> str:
    return f"{content_type}; charset={DEFAULT_CHARSET}"


def set_content_type(resp: falcon.Response, content_type: str):
    """Sets the content type with the default charset unless one is already set."""
    if resp.get_header(CONTENT_TYPE):
        return
    resp.content_type = with_charset(content_type)


def write_error(resp: falcon.Response, message: str):
    """
    Replaces the response with a plain text 500 carrying ``message``.
    The content type is overwritten, whatever was set before.
    """
    resp.status = falcon.HTTP_500
    resp.content_type = with_charset(CONTENT_TEXT)
    resp.text = message
