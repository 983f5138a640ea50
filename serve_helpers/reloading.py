import os
import threading

from loguru import logger
from overrides import override


class _AbstractReloader(threading.Thread):
    def __init__(self, filename: str, reload_func):
        super().__init__(name=f"reloader:{filename}", daemon=True)
        self.filename = filename
        self.reload_func = reload_func
        self._stopped = threading.Event()

    def stop(self):
        self._stopped.set()


class PollingReloader(_AbstractReloader):
    """Calls ``reload_func`` whenever the modification time of the file increases."""

    def __init__(self, filename, reload_func, interval: float = 1.0):
        super().__init__(filename, reload_func)
        self.interval = interval
        self._baseline = None

    def _mtime(self):
        try:
            return os.stat(self.filename).st_mtime
        except OSError:
            return None

    @override
    def start(self):
        # baseline taken before the thread runs so no edit after start() is missed
        self._baseline = self._mtime()
        super().start()

    @override
    def run(self):
        old_mtime = self._baseline
        while not self._stopped.wait(self.interval):
            mtime = self._mtime()
            if mtime is None:
                continue
            if old_mtime is None or old_mtime < mtime:
                with logger.catch(message=f"failed to reload {self.filename}"):
                    self.reload_func()
            old_mtime = mtime


# We might detect and conditionally provide better implementations.
Reloader = PollingReloader
