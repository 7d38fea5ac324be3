import asyncio
import logging
from typing import Optional

from pyscp.codec import tokenize
from pyscp.framer import LineFramer
from pyscp.listener import ConsoleResponseListener

# Identity query and the marker its response carries:
# OK devinfo productname "CL5"
DEVICE_INFO_QUERY = "devinfo productname"
DEVICE_INFO_RESPONSE = "OK devinfo productname"


def parse_product_name(line: str) -> str:
    """Product name is the last space-separated token of the identity response."""
    return line[line.rfind(" ") + 1:].replace('"', "").strip()


class ConsoleProtocol(asyncio.Protocol):
    _transport: Optional[asyncio.Transport]

    def __init__(self, callback: ConsoleResponseListener):
        self._logger = logging.getLogger(__name__)
        self._callback = callback
        self._transport = None
        self._framer = LineFramer()
        self.peer_name = None

    @property
    def connected(self) -> bool:
        return self._transport is not None and not self._transport.is_closing()

    def connection_made(self, transport):
        """Method from asyncio.Protocol"""
        self._transport = transport
        self._framer.reset()
        self.peer_name = transport.get_extra_info("peername")
        self._logger.info(f"Connection Made: {self.peer_name}")
        self._callback.connected()

    def connection_lost(self, exc):
        """Method from asyncio.Protocol"""
        self._transport = None
        # A partial line from the old connection can never be completed
        self._framer.reset()
        if exc is not None:
            self._logger.error(f"Network error: {exc}")
            self._callback.error(f"Network error: {exc}")
        self._callback.disconnected()

    def error_received(self, exc):
        self._logger.error(f"Network error: {exc}")
        self._callback.error(f"Network error: {exc}")

    def data_received(self, data):
        """Method from asyncio.Protocol"""
        self._logger.debug(f"data_received client: {data}")
        for line in self._framer.feed(data):
            self._process_received_line(line)

    def _process_received_line(self, line: str):
        self._logger.debug(f"Received: '{line}'")

        if DEVICE_INFO_RESPONSE in line:
            product_name = parse_product_name(line)
            self._logger.info(f"Device found: {product_name}")
            self._callback.device_identified(product_name)
            return

        record = tokenize(line)
        if record is None:
            self._logger.debug(f"Unhandled message received: {line}")
            return
        self._callback.record_received(record)

    def write(self, message: str):
        """Send one command line; the line feed is added here."""
        if self._transport is None:
            raise ConnectionError("Not connected")
        self._transport.write(f"{message}\n".encode("utf-8"))

    def close(self):
        if self._transport is not None:
            self._transport.close()
