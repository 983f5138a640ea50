import os
import posixpath


class as_context:
    """
    Wraps the provided enter and exit hooks as a context manager.
    """

    def __init__(self, enter=None, exit=None):
        self.enter = enter if enter is not None else lambda: None
        self.exit = exit if exit is not None else lambda: None

    def __enter__(self):
        return self.enter()

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.exit()
        return False


def relative_posix_path(directory: str, path: str) -> str:
    """``path`` relative to ``directory``, always with ``/`` separators."""
    rel = os.path.relpath(path, directory)
    return rel.replace(os.sep, posixpath.sep)


def extension_of(rel: str) -> str:
    """
    The extension of a relative path:
    everything from the last dot of the final component,
    or the empty string if the path has no dot at all.

    Unlike ``os.path.splitext``, a leading dot counts,
    so ``".tmpl"`` has the extension ``".tmpl"``.
    """
    if "." not in rel:
        return ""
    base = posixpath.basename(rel)
    dot = base.rfind(".")
    return base[dot:] if dot != -1 else ""


def strip_extension(rel: str, ext: str) -> str:
    return rel[:len(rel) - len(ext)]
