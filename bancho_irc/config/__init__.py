"""Client configuration (pydantic model + JSON/env loader)."""

from .loader import load_config  # noqa: F401
from .model import ClientConfig  # noqa: F401

__all__ = ["ClientConfig", "load_config"]
