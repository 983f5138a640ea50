from threading import RLock
import os
from collections import defaultdict
from typing import Callable, Any
from loguru import logger
# tomli became tomllib of stdlib in 3.11 (PEP 680)
try:
    import tomllib
except ModuleNotFoundError:
    import tomli as tomllib

from serve_helpers.reloading import Reloader
from serve_helpers.threads import synchronized


CONFIG_ENV = "SERVE_HELPERS_CONFIG"
CONFIG_FILE = "config.toml"


def config_file() -> str:
    return os.environ.get(CONFIG_ENV, CONFIG_FILE)


@logger.catch(default=None, message="unexpected error loading config")
def load_config(filename: str = None) -> dict:
    filename = filename if filename is not None else config_file()
    try:
        with open(filename, "rb") as f:
            return tomllib.load(f)
    except OSError as e:
        logger.warning(f"failed to read config file {filename}: {e.strerror}")
    except tomllib.TOMLDecodeError as e:
        logger.error(f"bad TOML in config file {filename}: {str(e)}")
    return {}


def lookup(d: dict, path: str):
    keys = path.split(".")
    for key in keys:
        try:
            d = d[key]
        except TypeError as e:
            raise KeyError(path) from e
    return d


def try_lookup(d: dict, path: str, default=None):
    try:
        return lookup(d, path)
    except KeyError:
        return default


def find_diff(a: dict, b: dict):
    a_keys = set(a.keys())
    b_keys = set(b.keys())

    common = a_keys & b_keys
    difference = (a_keys | b_keys) - common

    for k in difference:
        yield (k, a.get(k), b.get(k))

    for k in common:
        if isinstance(a[k], dict) and isinstance(b[k], dict):
            for sk, sa, sb in find_diff(a[k], b[k]):
                yield (f"{k}.{sk}", sa, sb)
        elif a[k] != b[k]:
            yield (k, a[k], b[k])


Listener = Callable[[str, Any, Any], None]

_config_lock = RLock()

class Config:
    """
    Dotted-path view over a TOML configuration file.

    Listeners registered with ``on_change`` are called with
    ``(path, old, new)`` when a value changes,
    either through ``__setitem__`` or a reload of the file.
    A listener on ``"a"`` also hears about changes to ``"a.b"``.
    """

    def __init__(self, filename: str = None):
        self.filename = filename if filename is not None else config_file()
        self._config_dict = load_config(self.filename) or {}
        self._listeners: dict[str, list[Listener]] = defaultdict(list)
        self._reloader = None

    def start_reloader(self):
        if self._reloader is None:
            self._reloader = Reloader(self.filename, self.reload_config)
            self._reloader.start()

    def stop_reloader(self):
        if self._reloader is not None:
            self._reloader.stop()
            self._reloader = None

    @synchronized(_config_lock)
    def __getitem__(self, path: str):
        return lookup(self._config_dict, path)

    @synchronized(_config_lock)
    def get(self, path: str, default=None):
        return try_lookup(self._config_dict, path, default)

    @synchronized(_config_lock)
    def _set_item(self, path: str, value):
        keys = path.split(".")
        it = iter(keys[:-1])
        tail = keys[-1]
        parent = self._config_dict

        # traverse the part of path that exists
        for key in it:
            if key not in parent or not isinstance(parent[key], dict):
                parent[key] = {}
                parent = parent[key]
                break
            parent = parent[key]

        # build the part of path that does not exist
        for key in it:
            parent[key] = {}
            parent = parent[key]

        old = parent.get(tail)
        parent[tail] = value
        return old

    def __setitem__(self, path: str, value):
        old = self._set_item(path, value)
        if old != value:
            self._notify_change(path, old, value)

    @synchronized(_config_lock)
    def on_change(self, path: str, listener: Listener):
        self._listeners[path].append(listener)
        return listener

    def _notify_change(self, path, old, new):
        calls = []
        with _config_lock:
            for prefix, listeners in self._listeners.items():
                if path == prefix or path.startswith(prefix + "."):
                    calls += [(listener, path, old, new) for listener in listeners]
                elif prefix.startswith(path + "."):
                    # a whole table changed; narrow it to what the listener watches
                    sub = prefix[len(path) + 1:]
                    sub_old = try_lookup(old, sub) if isinstance(old, dict) else None
                    sub_new = try_lookup(new, sub) if isinstance(new, dict) else None
                    if sub_old != sub_new:
                        calls += [(listener, prefix, sub_old, sub_new)
                                  for listener in listeners]

        for listener, changed, o, n in calls:
            with logger.catch(message=f"config listener failed on {changed}"):
                listener(changed, o, n)

    def reload_config(self):
        logger.info(f"reloading config from {self.filename}")
        new_config = load_config(self.filename) or {}

        with _config_lock:
            old_config = self._config_dict
            self._config_dict = new_config
            changes = list(find_diff(old_config, new_config))

        for path, old, new in changes:
            logger.info(f"new config: {path} ({old} -> {new})")
            self._notify_change(path, old, new)


config = Config()
