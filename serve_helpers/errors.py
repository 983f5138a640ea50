__all__ = [
    "HelperError",
    "EncodeError",
    "RenderError",
    "TemplateCompileError"
]


class HelperError(Exception):
    """Base class of errors raised by this library."""


class EncodeError(HelperError):
    """A response body could not be encoded. A 500 has already been written."""


class RenderError(HelperError):
    """An HTML template could not be rendered. A 500 has already been written."""


class TemplateCompileError(HelperError):
    def __init__(self, name: str, path: str, reason):
        super().__init__(f"failed to compile template '{name}' ({path}): {reason}")
        self.name = name
        self.path = path
