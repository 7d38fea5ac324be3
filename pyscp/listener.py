from abc import ABC, abstractmethod
from typing import List
import logging

from pyscp.codec import CommandRecord


class ConsoleResponseListener(ABC):
    """Low-level callbacks from ConsoleProtocol."""

    @abstractmethod
    def connected(self):
        pass

    @abstractmethod
    def disconnected(self):
        pass

    @abstractmethod
    def record_received(self, record: CommandRecord):
        pass

    def device_identified(self, product_name: str):
        pass

    def error(self, error_message: str):
        pass


class ConsoleListener(ABC):

    @abstractmethod
    def connected(self):
        pass

    @abstractmethod
    def disconnected(self):
        pass

    def status_changed(self, status: str, message: str = ""):
        pass

    def device_identified(self, product_name: str):
        pass

    @abstractmethod
    def parameter_changed(self, token: str, x, y, value):
        """Called when the console reports a value. x and y are 1-based."""
        pass

    def macro_state_changed(self, mode):
        pass

    def macro_recorded(self, preset):
        """Called with the MacroPreset once a recording with content is stopped."""
        pass

    def error(self, error_message: str):
        # By default, do nothing but can be overwritten to be notified of these messages.
        pass


class MultiplexingListener(ConsoleListener):

    _listeners: List[ConsoleListener]

    def __init__(self):
        self._logger = logging.getLogger(__name__)
        self._listeners = []

    def _dispatch(self, method: str, *args):
        for listener in list(self._listeners):
            try:
                getattr(listener, method)(*args)
            except Exception as e:
                self._logger.error(f"Exception in {method}() callback: {e}", exc_info=True)

    def connected(self):
        self._dispatch("connected")

    def disconnected(self):
        self._dispatch("disconnected")

    def status_changed(self, status: str, message: str = ""):
        self._dispatch("status_changed", status, message)

    def device_identified(self, product_name: str):
        self._dispatch("device_identified", product_name)

    def parameter_changed(self, token: str, x, y, value):
        self._dispatch("parameter_changed", token, x, y, value)

    def macro_state_changed(self, mode):
        self._dispatch("macro_state_changed", mode)

    def macro_recorded(self, preset):
        self._dispatch("macro_recorded", preset)

    def error(self, error_message: str):
        self._dispatch("error", error_message)

    def register_listener(self, listener: ConsoleListener):
        self._listeners.append(listener)

    def unregister_listener(self, listener: ConsoleListener):
        if listener in self._listeners:
            self._listeners.remove(listener)
        else:
            logging.info("Listener isn't registered")


class LoggingListener(ConsoleListener):

    def __init__(self, logger = logging):
        self.logger = logger

    def connected(self):
        self.logger.info("Connected")

    def disconnected(self):
        self.logger.info("Disconnected")

    def status_changed(self, status: str, message: str = ""):
        self.logger.info(f"Status: {status} {message}".rstrip())

    def device_identified(self, product_name: str):
        self.logger.info(f"Device found: {product_name}")

    def parameter_changed(self, token: str, x, y, value):
        self.logger.info(f"{token} [{x}][{y}] = {value}")

    def macro_state_changed(self, mode):
        self.logger.info(f"Macro recorder: {mode.value}")

    def macro_recorded(self, preset):
        self.logger.info(f"{preset.label} recorded with {len(preset.actions)} commands")

    def error(self, error_message: str):
        self.logger.error(error_message)
