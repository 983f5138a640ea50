from .repository import *
from .renderer import *
