"""
Base Driver Module

Abstract base class for hardware drivers.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional


class BaseDriver(ABC):
    """
    Abstract base driver class.

    Attributes:
        name: Driver identifier name
        config: Configuration dictionary
    """

    def __init__(
        self,
        name: str = "BaseDriver",
        config: Optional[Dict[str, Any]] = None
    ):
        """
        Initialize driver.

        Args:
            name: Driver identifier name
            config: Configuration dictionary (port, baudrate, etc.)
        """
        self.name = name
        self.config = config or {}
        self._connected = False

    @abstractmethod
    def connect(self) -> None:
        """
        Connect to hardware.

        Raises:
            ConnectionError: If the device cannot be reached
        """
        ...

    @abstractmethod
    def disconnect(self) -> None:
        """Release the device. Safe to call when not connected."""
        ...

    @abstractmethod
    def reset(self) -> None:
        """Bring the device back to a known state."""
        ...

    def identify(self) -> str:
        """
        Return device identification string.

        Returns:
            str: Device ID string (e.g., "Manufacturer,Model,Serial,Version")
        """
        return "Unknown"

    def is_connected(self) -> bool:
        return self._connected

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r}, connected={self._connected})"
