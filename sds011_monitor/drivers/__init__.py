"""Hardware drivers."""

from .base import BaseDriver
from .sds011 import SDS011Driver

__all__ = ["BaseDriver", "SDS011Driver"]
