"""
SDS-011 Monitor Package

Reads PM2.5/PM10 values from a Nova Fitness SDS-011 and changes its settings
over a USB-serial adapter.
"""

from .monitor import SDS011Monitor

__all__ = ["SDS011Monitor"]
