"""
Multi-threading related utilities.
"""
from threading import Condition, Lock
from functools import wraps

from serve_helpers.utils import as_context

__all__ = [
    "synchronized",
    "sync_method",
    "ReadWriteLock"
]


def synchronized(lock):
    """
    Guards the decorated function with the provided lock.
    Anything usable in a ``with`` statement works as the lock.
    """
    def deco(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            with lock:
                return func(*args, **kwargs)
        return wrapper
    return deco


def sync_method(lock_attr):
    """
    Synchronizes the method using the lock named by the parameter.
    The attribute of the name will be looked up at runtime and used as the lock.
    """
    def deco(func):
        @wraps(func)
        def wrap(self, *args, **kws):
            with getattr(self, lock_attr):
                return func(self, *args, **kws)
        return wrap
    return deco


class ReadWriteLock:
    """
    Many readers or a single writer.

    ``reading`` and ``writing`` are reusable context managers.
    A waiting writer blocks readers that arrive after it,
    so a steady stream of readers cannot starve writers.
    """

    def __init__(self):
        self._cond = Condition(Lock())
        self._readers = 0
        self._writer_active = False
        self._writers_waiting = 0

        self.reading = as_context(self.acquire_read, self.release_read)
        self.writing = as_context(self.acquire_write, self.release_write)

    def acquire_read(self):
        with self._cond:
            while self._writer_active or self._writers_waiting:
                self._cond.wait()
            self._readers += 1

    def release_read(self):
        with self._cond:
            if self._readers <= 0:
                raise RuntimeError("release_read without matching acquire_read")
            self._readers -= 1
            if self._readers == 0:
                self._cond.notify_all()

    def acquire_write(self):
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer_active or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer_active = True

    def release_write(self):
        with self._cond:
            if not self._writer_active:
                raise RuntimeError("release_write without matching acquire_write")
            self._writer_active = False
            self._cond.notify_all()
