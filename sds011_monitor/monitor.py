"""
SDS-011 Monitor Module

Runs the actions requested on the command line against one sensor:

- setup(): open the port and connect
- run(): query/change settings, then read measurements
- teardown(): release the port
"""

import logging
import time
from typing import Any, Callable, Dict, List, Optional

from .drivers.sds011 import SDS011Driver
from .libs.sds011_protocol import (
    Measurement,
    ReportingMode,
    WorkMode,
    WORK_STABILIZE_SECONDS,
)

logger = logging.getLogger(__name__)

# Printer receives (level, message); level is info, success, warning, error or data
Printer = Callable[[str, str], None]


class MonitorAborted(Exception):
    """Stop requested from outside (signal)."""
    pass


class SDS011Monitor:
    """
    SDS-011 monitor.

    Attributes:
        name: Monitor identifier
        version: Semantic version
        description: Human-readable description
    """

    name = "sds011_monitor"
    version = "2.1.0"
    description = "Set and get information from an SDS-011 sensor"

    def __init__(
        self,
        parameters: Optional[Dict[str, Any]] = None,
        hardware_config: Optional[Dict[str, Any]] = None,
        printer: Optional[Printer] = None,
        driver: Optional[SDS011Driver] = None,
    ) -> None:
        """
        Initialize monitor.

        Args:
            parameters: Requested actions and loop settings
            hardware_config: Driver configuration (port, baudrate, ...)
            printer: Console output callback, logging when omitted
            driver: Driver to use instead of one built from hardware_config
        """
        self.parameters = parameters or {}
        self.hardware_config = hardware_config or {}
        self._printer = printer
        self._abort = False

        self.sensor: Optional[SDS011Driver] = driver

        # Display requests
        self.show_firmware: bool = self.get_parameter("show_firmware", False)
        self.show_device_id: bool = self.get_parameter("show_device_id", False)
        self.show_work_mode: bool = self.get_parameter("show_work_mode", False)
        self.show_working_period: bool = self.get_parameter("show_working_period", False)
        self.show_reporting_mode: bool = self.get_parameter("show_reporting_mode", False)

        # Settings to change
        self.new_device_id: Optional[int] = self.get_parameter("new_device_id", None)
        self.work_mode: Optional[WorkMode] = self.get_parameter("work_mode", None)
        self.working_period: Optional[int] = self.get_parameter("working_period", None)
        self.humidity: float = self.get_parameter("humidity", 0.0)

        # Measurement loop
        self.query_mode: bool = self.get_parameter("query_mode", False)
        self.loop: int = self.get_parameter("loop", 10)
        self.delay: float = self.get_parameter("delay", 5)
        self.stabilize_seconds: float = self.get_parameter(
            "stabilize_seconds", WORK_STABILIZE_SECONDS
        )

        logger.debug(f"Initialized {self.name} v{self.version}")

    def get_parameter(self, key: str, default: Any = None) -> Any:
        """Parameter value, or default when missing or None."""
        value = self.parameters.get(key)
        return default if value is None else value

    def emit_log(self, level: str, message: str) -> None:
        """Send a message to the console printer, or to the log."""
        if self._printer is not None:
            self._printer(level, message)
        else:
            log_level = {"error": logging.ERROR, "warning": logging.WARNING}.get(level, logging.INFO)
            logger.log(log_level, message)

    # =========================================================================
    # Abort handling
    # =========================================================================

    def abort(self) -> None:
        """Request the running loop to stop at the next check."""
        self._abort = True

    def check_abort(self) -> None:
        if self._abort:
            raise MonitorAborted()

    def _wait(self, seconds: float) -> None:
        """Sleep in short slices so an abort is noticed."""
        deadline = time.monotonic() + seconds
        while True:
            self.check_abort()
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                return
            time.sleep(min(remaining, 0.1))

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def setup(self) -> None:
        """
        Open the port and connect to the sensor.

        Raises:
            ConnectionError: Port cannot be opened or sensor is unresponsive
        """
        if self.sensor is None:
            self.sensor = SDS011Driver(config=self.hardware_config)

        self.emit_log("warning", "Connecting to SDS-011")
        self.sensor.connect()
        self.emit_log("success", "Connected")

        # Streamed readings that arrive while a command waits for its reply
        self.sensor.client.session.on_measurement = self.show_measurement

        if self.humidity:
            self.sensor.client.set_humidity_correction(self.humidity)

    def run(self) -> Dict[str, Any]:
        """
        Execute the requested actions, then the measurement loop.

        Returns:
            Dict with the values read and the measurements taken

        Raises:
            SDS011Error: Any protocol failure, not retried here
            MonitorAborted: abort() was called
        """
        client = self.sensor.client
        results: Dict[str, Any] = {}

        if self.show_firmware:
            firmware = client.get_firmware_version()
            self.emit_log("data", f"Firmware date (Y-M-D): {firmware}")
            results["firmware"] = str(firmware)

        # Captured during the connection handshake
        if self.show_device_id or self.new_device_id is not None:
            device_id = client.get_device_id()
            self.emit_log("data", f"Current DeviceID: 0x{device_id:04x}")
            results["device_id"] = device_id

        if self.new_device_id is not None:
            device_id = client.set_device_id(self.new_device_id)
            self.emit_log("data", f"New DeviceID: 0x{device_id:04x}")
            results["device_id"] = device_id

        if self.show_reporting_mode:
            mode = client.get_reporting_mode()
            if mode == ReportingMode.STREAM:
                self.emit_log("data", "Currently in streaming mode")
            else:
                self.emit_log("data", "Currently in Query mode")
            results["reporting_mode"] = mode

        if self.show_work_mode:
            mode = client.get_work_mode()
            if mode == WorkMode.SLEEP:
                self.emit_log("data", "Currently in sleeping mode")
            else:
                self.emit_log("data", "Currently in Working mode")
            results["work_mode"] = mode

        if self.show_working_period:
            period = client.get_working_period()
            if period == 0:
                self.emit_log("data", "Working period in continuous mode")
            else:
                self.emit_log("data", f"Working period every {period} minutes")
            results["working_period"] = period

        if self.work_mode is not None:
            results["work_mode"] = client.set_work_mode(self.work_mode)

            if self.work_mode == WorkMode.SLEEP:
                # Reading would wake the sensor up again
                self.emit_log("warning", "Set to sleep")
                results["measurements"] = []
                return results

            self.emit_log(
                "warning",
                f"wait {self.stabilize_seconds:g} seconds to stabilize working mode"
            )
            self._wait(self.stabilize_seconds)
            # Drop the frames that piled up during the wait
            self.sensor.flush()

        if self.working_period is not None:
            results["working_period"] = client.set_working_period(self.working_period)

        results["measurements"] = self.read_pm()
        return results

    def show_measurement(self, measurement: Measurement) -> None:
        self.emit_log("data", f"PM 2.5 {measurement.pm25:f}, PM10 {measurement.pm10:f}")

    def read_pm(self) -> List[Measurement]:
        """
        Read PM values in streaming or query mode.

        Returns:
            Measurements taken, in order
        """
        client = self.sensor.client

        if self.query_mode:
            mode = ReportingMode.QUERY
            self.emit_log("success", f"Query for data with an {self.delay:g} seconds interval")
        else:
            mode = ReportingMode.STREAM
            self.emit_log("success", "Continuously capturing data")

        client.set_reporting_mode(mode)

        measurements: List[Measurement] = []
        endless = self.loop == 0
        remaining = self.loop

        while endless or remaining > 0:
            self.check_abort()

            measurement = client.read_measurement(mode)
            self.show_measurement(measurement)
            if not endless:
                measurements.append(measurement)
                remaining -= 1

            if (endless or remaining) and self.query_mode and self.delay:
                self._wait(self.delay)

        self.emit_log("data", "Number of requested loops reached")
        return measurements

    def teardown(self) -> None:
        """
        Release the sensor.

        Always called, even if setup or run failed.
        """
        if self.sensor is not None:
            try:
                self.sensor.disconnect()
            except Exception as e:
                logger.warning(f"Error during cleanup (ignored): {e}")
