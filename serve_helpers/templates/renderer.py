from typing import Any, Protocol

import falcon
from loguru import logger

from serve_helpers.config import config
from serve_helpers.content import CONTENT_HTML, DEFAULT_CHARSET, set_content_type, write_error
from serve_helpers.errors import RenderError
from serve_helpers.templates.repository import TemplateRepository, TemplateSet
from serve_helpers.threads import ReadWriteLock

__all__ = [
    "TemplateProvider",
    "HTMLTemplateRenderer",
    "get_template_provider",
    "set_template_provider"
]


class TemplateProvider(Protocol):
    def provide(self) -> TemplateSet:
        ...


_provider_lock = ReadWriteLock()
_default_provider: TemplateProvider = None


def get_template_provider() -> TemplateProvider:
    """
    The provider used by renderers created without one.
    Unless replaced, it is a ``TemplateRepository`` built from configuration
    on first use.
    """
    global _default_provider
    with _provider_lock.reading:
        if _default_provider is not None:
            return _default_provider
    with _provider_lock.writing:
        if _default_provider is None:
            _default_provider = TemplateRepository.from_config(config)
            logger.debug(f"created default template provider: {_default_provider}")
        return _default_provider


def set_template_provider(provider: TemplateProvider):
    global _default_provider
    with _provider_lock.writing:
        _default_provider = provider


class HTMLTemplateRenderer:
    """Renders templates of a provider into a falcon response."""

    def __init__(self, resp: falcon.Response, provider: TemplateProvider = None):
        self.resp = resp
        self._provider = provider

    @property
    def provider(self) -> TemplateProvider:
        if self._provider is not None:
            return self._provider
        return get_template_provider()

    def render(self, template: str, model: Any = None):
        try:
            templates = self.provider.provide()
        except Exception as e:
            self._fail(template, e)

        try:
            html = templates.execute(template, model)
        except Exception as e:
            # helpers and expressions may raise anything while executing
            self._fail(template, e)

        set_content_type(self.resp, CONTENT_HTML)
        self.resp.data = html.encode(DEFAULT_CHARSET)

    def _fail(self, template: str, cause: BaseException):
        message = f"unable to render '{template}' html template: {cause}"
        logger.opt(exception=cause).warning(message)
        write_error(self.resp, message)
        raise RenderError(message) from cause
