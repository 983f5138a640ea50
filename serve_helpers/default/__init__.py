"""
This module provides the default, opinionated implementations
of various common functionalities for convenience.
Here we sacrifice versatility for ease of use.
"""


from . import logging
from . import falcon
