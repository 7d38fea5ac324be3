"""SCP console session.

This module contains the high-level console abstraction with:
- Catalog loading for the configured console family
- The protocol engine (state store, macro recorder)
- Feedback registration, evaluation and polling
- Queue management and command worker
- Optional heartbeat polling
- Reconnection logic
- ConsoleProtocol instance creation and management

ConsoleResponseHandler receives the callbacks from the transport and forwards
them to the session."""

import asyncio
import logging
from asyncio import PriorityQueue, Task
from typing import Any, Optional

from pyscp.catalog import Catalog, ParamType, load_catalog_for_model
from pyscp.codec import GET, SET, CommandRecord
from pyscp.config import ConsoleConfig
from pyscp.engine import ProtocolEngine
from pyscp.feedback import FeedbackRegistry, Result, evaluate, evaluate_macro, poll_commands
from pyscp.listener import ConsoleListener, ConsoleResponseListener, MultiplexingListener
from pyscp.macro import MACRO_FEEDBACK, MACRO_LATCH, MACRO_START, MACRO_UNLATCH, MacroPreset
from pyscp.protocol import DEVICE_INFO_QUERY, ConsoleProtocol

# Command priority levels (lower number = higher priority)
# User actions go ahead of feedback polls so a big poll burst never delays a button press
PRIORITY_WRITE = 10   # set / scene recall
PRIORITY_READ = 20    # get / identity query / feedback polls

STATUS_OK = "ok"
STATUS_CONNECTING = "connecting"
STATUS_ERROR = "error"
STATUS_DISCONNECTED = "disconnected"


class ConsoleResponseHandler(ConsoleResponseListener):
    """Forwards ConsoleProtocol callbacks to the session."""

    def __init__(self, console):
        self._console = console

    def connected(self):
        self._console._on_connected()

    def disconnected(self):
        self._console._on_disconnected()

    def record_received(self, record: CommandRecord):
        self._console._on_record(record)

    def device_identified(self, product_name: str):
        self._console._on_device_identified(product_name)

    def error(self, error_message: str):
        self._console._on_error(error_message)


class ScpConsole:
    """One SCP console: catalog, live state, feedbacks, macros and the connection.

    Outbound commands are queued and written by a single worker task, so callers
    never wait on the network. Inbound lines are handled in arrival order on the
    event loop.
    """

    def __init__(self, config: ConsoleConfig, catalog: Optional[Catalog] = None):
        """Initialize the session.

        Args:
            config: Console settings; validated here
            catalog: Parameter catalog to use instead of the bundled table for
                config.model

        Raises:
            ConfigError: if config is invalid
            CatalogLoadError: if no catalog can be loaded for config.model
        """
        self._logger = logging.getLogger(__name__)
        self._config = config.validate()

        if catalog is None:
            catalog = load_catalog_for_model(config.model, config.channel_names)
        self._engine = ProtocolEngine(catalog, config)
        self._feedbacks = FeedbackRegistry()
        self._log_command_listing()

        self._product_name = ""
        self._status = STATUS_DISCONNECTED

        # Connection state
        self._connected = False
        self._reconnect = True

        # Tasks
        self._heartbeat_task: Optional[Task[Any]] = None
        self._command_worker_task: Optional[Task[Any]] = None
        self._reconnect_task: Optional[Task[Any]] = None

        # Priority queue to serialize commands (user commands jump ahead of polls)
        self._command_queue: PriorityQueue = PriorityQueue()
        self._queued_commands_set: set[str] = set()  # Deduplication set for queued commands
        self._command_sequence_number: int = 0  # Sequence number for FIFO order within same priority

        # Create multiplexing listener for external listeners
        self._multiplex_callback = MultiplexingListener()
        self._protocol = ConsoleProtocol(ConsoleResponseHandler(self))

    # ========== Connection lifecycle handlers ==========

    def _on_connected(self):
        self._logger.info(f"Connected to {self._config.host}")
        self._connected = True
        self._set_status(STATUS_OK)
        self._multiplex_callback.connected()

        if self._command_worker_task is not None and not self._command_worker_task.done():
            self._command_worker_task.cancel()
        if self._heartbeat_task is not None and not self._heartbeat_task.done():
            self._heartbeat_task.cancel()

        # Anything queued for the previous connection is stale
        self._drain_queue()

        loop = asyncio.get_running_loop()
        self._command_worker_task = loop.create_task(self._command_worker())
        if self._config.enable_heartbeat:
            self._heartbeat_task = loop.create_task(self._heartbeat())
            self._logger.info("Heartbeat task started (interval=%ss)", self._config.heartbeat_time)

        self._enqueue_command(DEVICE_INFO_QUERY, PRIORITY_READ)
        self.poll()

    def _on_disconnected(self):
        self._handle_connection_broken()

    def _on_error(self, error_message: str):
        self._set_status(STATUS_ERROR, error_message)
        self._multiplex_callback.error(error_message)

    def _on_device_identified(self, product_name: str):
        self._product_name = product_name
        self._multiplex_callback.device_identified(product_name)

    def _on_record(self, record: CommandRecord):
        observation = self._engine.handle_record(record)
        if observation is not None:
            self._multiplex_callback.parameter_changed(
                observation.token, observation.x, observation.y, observation.value
            )

    def _set_status(self, status: str, message: str = ""):
        self._status = status
        self._multiplex_callback.status_changed(status, message)

    def _log_command_listing(self):
        self._logger.info("******** COMMAND LIST *********")
        for label, action_id in self._engine.catalog.command_listing():
            self._logger.info(f"{label:<36} {action_id}")
        self._logger.info("***** END OF COMMAND LIST *****")

    # ========== Public API ==========

    @property
    def config(self) -> ConsoleConfig:
        return self._config

    @property
    def catalog(self) -> Catalog:
        return self._engine.catalog

    @property
    def engine(self) -> ProtocolEngine:
        return self._engine

    @property
    def product_name(self) -> str:
        return self._product_name

    @property
    def status(self) -> str:
        return self._status

    @property
    def connected(self) -> bool:
        return self._connected

    def register_listener(self, listener: ConsoleListener):
        """Register external listener for console events."""
        self._multiplex_callback.register_listener(listener)

    def unregister_listener(self, listener: ConsoleListener):
        """Unregister external listener."""
        self._multiplex_callback.unregister_listener(listener)

    async def async_connect(self):
        """Connect to the console."""
        self._reconnect = True
        self._set_status(STATUS_CONNECTING)
        loop = asyncio.get_running_loop()
        await loop.create_connection(
            lambda: self._protocol, host=self._config.host, port=self._config.port
        )

    def close(self):
        """Close the connection and stop reconnection attempts."""
        self._reconnect = False
        if self._reconnect_task is not None and not self._reconnect_task.done():
            self._reconnect_task.cancel()
        self._protocol.close()

    def reconfigure(self, config: ConsoleConfig):
        """Apply new settings, reloading the catalog for the (possibly new) model.

        Raises:
            ConfigError, CatalogLoadError: the previous configuration stays active
        """
        config.validate()
        catalog = load_catalog_for_model(config.model, config.channel_names)
        moved = (config.host, config.port) != (self._config.host, self._config.port)
        self._config = config
        self._engine.replace_catalog(catalog, config)
        self._logger.info(f"Device model= {config.model}")
        self._log_command_listing()

        if moved and self._connected:
            # Reconnect loop picks up the new host
            self._protocol.close()
        elif self._connected:
            self.poll()

    def query(self, token: str, x=1, y=1):
        """Last value the console reported for token at (x, y), or None."""
        return self._engine.store.query(token, x, y)

    def set(self, token: str, options: Optional[dict] = None) -> Optional[str]:
        """Send a set (or scene recall) for token. Returns the command, or None if nothing was sent."""
        command = self._engine.encode(SET, token, options)
        if command is None:
            return None
        self._enqueue_command(command, PRIORITY_WRITE)
        entry = self._engine.catalog.find(token)
        if entry is not None and entry.type is ParamType.SCENE:
            # A scene recall can change anything, refresh every feedback
            self.poll()
        return command

    def get(self, token: str, options: Optional[dict] = None) -> Optional[str]:
        command = self._engine.encode(GET, token, options)
        if command is not None:
            self._enqueue_command(command, PRIORITY_READ)
        return command

    def action(self, action_id: str, options: Optional[dict] = None):
        """Run an action by id: a macro recorder signal or a parameter token."""
        if action_id == MACRO_START:
            return self.macro_start()
        if action_id == MACRO_LATCH:
            return self.macro_latch()
        if action_id == MACRO_UNLATCH:
            return self.macro_unlatch()
        return self.set(action_id, options)

    def macro_start(self) -> Optional[MacroPreset]:
        recorder = self._engine.recorder
        preset = recorder.start()
        self._multiplex_callback.macro_state_changed(recorder.mode)
        if preset is not None:
            self._multiplex_callback.macro_recorded(preset)
        return preset

    def macro_latch(self):
        self._engine.recorder.latch()
        self._multiplex_callback.macro_state_changed(self._engine.recorder.mode)

    def macro_unlatch(self):
        self._engine.recorder.unlatch()
        self._multiplex_callback.macro_state_changed(self._engine.recorder.mode)

    def register_feedback(self, feedback_id: str, token: str, options: Optional[dict] = None):
        """Register a feedback and, when connected, poll its current value."""
        feedback = self._feedbacks.register(feedback_id, token, options)
        if token != MACRO_FEEDBACK:
            self.get(token, feedback.options)
        return feedback

    def unregister_feedback(self, feedback_id: str):
        self._feedbacks.unregister(feedback_id)

    def feedback(self, feedback_id: str) -> Optional[Result]:
        feedback = self._feedbacks.get(feedback_id)
        if feedback is None:
            return None
        if feedback.token == MACRO_FEEDBACK:
            return evaluate_macro(self._engine.recorder)
        return evaluate(self._engine, feedback)

    def poll(self):
        """Query the console for every registered feedback."""
        for command in poll_commands(self._engine, self._feedbacks):
            self._enqueue_command(command, PRIORITY_READ)

    # ========== Queue management ==========

    def _enqueue_command(self, message, priority: int = PRIORITY_WRITE):
        """Queue a command to be sent via the persistent connection."""
        if not self._connected:
            self._logger.info(f"Socket not connected, not sending: {message}")
            return
        # Deduplication: Only queue if not already present
        msg_key = message.strip()
        if msg_key in self._queued_commands_set:
            self._logger.debug(f"QUEUE: Duplicate command not queued: {msg_key}")
            return
        self._queued_commands_set.add(msg_key)
        self._command_sequence_number += 1
        self._logger.debug(f"QUEUE: Adding command #{self._command_sequence_number} (priority={priority}): {msg_key}")
        self._command_queue.put_nowait((priority, self._command_sequence_number, message))

    def _drain_queue(self):
        while not self._command_queue.empty():
            self._command_queue.get_nowait()
            self._command_queue.task_done()
        self._queued_commands_set.clear()

    async def _command_worker(self):
        """Worker task that processes all outgoing commands from the priority queue."""
        while True:
            try:
                priority, sequence_number, message = await self._command_queue.get()
                msg_key = message.strip()
                try:
                    if self._connected and self._protocol.connected:
                        self._logger.debug(f"Sending : '{msg_key}' to {self._config.host}")
                        self._protocol.write(message)
                    else:
                        self._logger.error(f"SEND FAILED: Command #{sequence_number} - not connected")
                        if self._connected:
                            self._handle_connection_broken()
                except Exception as e:
                    self._logger.error(f"Error sending command: {e}", exc_info=True)
                finally:
                    # Remove from deduplication set so it can be re-queued in the future
                    self._queued_commands_set.discard(msg_key)
                    self._command_queue.task_done()
            except asyncio.CancelledError:
                self._logger.debug("Command worker cancelled")
                break

    async def wait_until_sent(self):
        """Wait until every queued command has been written."""
        await self._command_queue.join()

    # ========== Heartbeat ==========

    async def _heartbeat(self):
        """Periodically re-poll every feedback."""
        while True:
            await asyncio.sleep(self._config.heartbeat_time)
            self._logger.debug(f"heartbeat - polling {len(self._feedbacks)} feedbacks")
            self.poll()

    # ========== Connection management ==========

    async def _wait_to_reconnect(self):
        """Attempt to reconnect after connection loss."""
        while not self._connected and self._reconnect:
            await asyncio.sleep(self._config.reconnect_time)
            try:
                await self.async_connect()
            except Exception as e:
                self._logger.warning(f"Reconnect attempt failed: {e}")
                self._set_status(STATUS_ERROR, str(e))

    def _handle_connection_broken(self):
        """Handle connection loss - called either by protocol callback or by send failure detection."""
        was_connected = self._connected
        self._connected = False

        if self._heartbeat_task is not None:
            self._heartbeat_task.cancel()
        if self._command_worker_task is not None:
            self._command_worker_task.cancel()
        self._drain_queue()

        disconnected_message = f"Disconnected from {self._config.host}"
        if self._reconnect:
            disconnected_message = disconnected_message + f", will try to reconnect in {self._config.reconnect_time} seconds"
            self._logger.error(disconnected_message)
        else:
            disconnected_message = disconnected_message + ", not reconnecting"
            self._logger.info(disconnected_message)

        self._set_status(STATUS_DISCONNECTED, disconnected_message)
        if was_connected:
            self._multiplex_callback.disconnected()

        if self._reconnect and (self._reconnect_task is None or self._reconnect_task.done()):
            self._reconnect_task = asyncio.get_running_loop().create_task(self._wait_to_reconnect())
