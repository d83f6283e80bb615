"""Error hierarchy and handling helpers."""

from .internal import *  # noqa: F401,F403
from .internal import __all__  # noqa: F401
