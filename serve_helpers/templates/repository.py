from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from threading import RLock
from typing import Any, Callable, Optional
import os

import jinja2
from loguru import logger

from serve_helpers.errors import TemplateCompileError
from serve_helpers.logging import time_and_log
from serve_helpers.threads import sync_method
from serve_helpers.utils import extension_of, relative_posix_path, strip_extension

__all__ = [
    "Compilation",
    "TemplateSet",
    "TemplateRepository"
]


class Compilation(Enum):
    ALWAYS = "always"
    """Compile the templates every time they are provided."""
    ONCE = "once"
    """Compile the templates the first time they are provided, then reuse them."""

    @classmethod
    def parse(cls, value: "Compilation | str") -> "Compilation":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValueError(
                f"unknown template compilation '{value}',"
                f" expected one of {[c.value for c in cls]}") from None


class TemplateSet:
    """
    A set of compiled HTML templates looked up by name.

    The model passed to ``execute`` is available as ``model``;
    when it is a mapping, its keys are available directly as well.
    """

    def __init__(self,
            sources: dict[str, str],
            util_funcs: dict[str, Callable] = None,
            paths: dict[str, str] = None):
        self.env = jinja2.Environment(
            loader=jinja2.DictLoader(sources),
            autoescape=True,
            keep_trailing_newline=True,
            cache_size=-1)
        self.env.globals.update(util_funcs or {})

        paths = paths or {}
        self._templates: dict[str, jinja2.Template] = {}
        for name in sources:
            try:
                self._templates[name] = self.env.get_template(name)
            except jinja2.TemplateSyntaxError as e:
                raise TemplateCompileError(name, paths.get(name, name), e) from e

    def lookup(self, name: str) -> Optional[jinja2.Template]:
        return self._templates.get(name)

    def names(self) -> list[str]:
        return sorted(self._templates)

    def __contains__(self, name):
        return name in self._templates

    def __len__(self):
        return len(self._templates)

    def execute(self, name: str, model: Any = None) -> str:
        template = self.lookup(name)
        if template is None:
            raise jinja2.TemplateNotFound(name, message=f"no template named '{name}'")
        context = dict(model) if isinstance(model, Mapping) else {}
        context["model"] = model
        return template.render(context)


@dataclass
class TemplateRepository:
    """
    Compiles every template file under ``directory``.

    A template is named by its path relative to the directory,
    with ``/`` separators and without the extension,
    e.g. ``pages/home.tmpl`` is ``pages/home``.
    """

    directory: str = "templates"
    """Directory to load templates from."""
    extension: str = ".tmpl"
    """Only files with this extension are templates."""
    compilation: Compilation = Compilation.ONCE
    util_funcs: dict[str, Callable] = field(default_factory=dict)
    """Helper functions available as globals in every template."""

    def __post_init__(self):
        self.compilation = Compilation.parse(self.compilation)
        self._templates: Optional[TemplateSet] = None
        self._lock = RLock()

    @classmethod
    def from_config(cls, config, util_funcs: dict[str, Callable] = None):
        return cls(
            directory=config.get("templates.directory", "templates"),
            extension=config.get("templates.extension", ".tmpl"),
            compilation=config.get("templates.compilation", "once"),
            util_funcs=util_funcs or {})

    @sync_method("_lock")
    def provide(self) -> TemplateSet:
        if self.compilation is Compilation.ONCE and self._templates is not None:
            return self._templates
        self._templates = self.compile()
        return self._templates

    def _find_sources(self):
        """Yields ``(name, path)`` for every template file, in lexical order."""
        for root, dirs, files in os.walk(self.directory):
            dirs.sort()
            for filename in sorted(files):
                path = os.path.join(root, filename)
                rel = relative_posix_path(self.directory, path)
                if extension_of(rel) != self.extension:
                    continue
                name = strip_extension(rel, self.extension)
                if not name or name.endswith("/"):
                    logger.warning(f"skipping template without a name: {path}")
                    continue
                yield name, path

    @time_and_log(lambda self: f"compiled templates in {self.directory}")
    def compile(self) -> TemplateSet:
        if not os.path.isdir(self.directory):
            logger.warning(f"template directory {self.directory} does not exist")

        sources = {}
        paths = {}
        for name, path in self._find_sources():
            try:
                with open(path, encoding="utf-8") as f:
                    sources[name] = f.read()
            except (OSError, UnicodeDecodeError) as e:
                raise TemplateCompileError(name, path, e) from e
            paths[name] = path

        templates = TemplateSet(sources, self.util_funcs, paths)
        logger.debug(f"{len(templates)} templates from {self.directory}")
        return templates
