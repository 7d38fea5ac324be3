"""Protocol engine: catalog, codec, resolver, store and recorder for one console.

The engine does no I/O. Lines go in through ``handle_line``; command strings come
out of ``encode`` for the caller to send.
"""

import logging
from typing import Optional

from pyscp.catalog import Catalog
from pyscp.codec import CommandRecord, build_command, tokenize
from pyscp.config import ConsoleConfig
from pyscp.families import scene_encoding_for
from pyscp.macro import MacroRecorder
from pyscp.resolver import resolve
from pyscp.store import Observation, StateStore, coordinates_of


def _coordinate(value):
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.lstrip("-").isdigit():
        return int(value)
    return value


def resolve_options(options: dict, config: ConsoleConfig) -> Optional[tuple]:
    """Turn action/feedback options into a final (x, y, value).

    An X of 0 or below points at a configured channel alias ("My Channel 1" is
    -1). Returns None when the alias is not configured.
    """
    x = _coordinate(options.get("X"))
    if x is None:
        x = 1
    elif not isinstance(x, int):
        return None
    elif x <= 0:
        x = config.channel_for_alias(-x)
        if x is None:
            return None

    y = _coordinate(options.get("Y"))
    if y is None:
        y = 1
    return x, y, options.get("Val")


class ProtocolEngine:
    def __init__(self, catalog: Catalog, config: Optional[ConsoleConfig] = None):
        self._logger = logging.getLogger(__name__)
        self._config = config or ConsoleConfig(model=catalog.model)
        self._catalog = catalog
        self._store = StateStore()
        self._recorder = MacroRecorder(catalog)

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    @property
    def config(self) -> ConsoleConfig:
        return self._config

    @property
    def store(self) -> StateStore:
        return self._store

    @property
    def recorder(self) -> MacroRecorder:
        return self._recorder

    @property
    def scene_bank_in_address(self) -> bool:
        return scene_encoding_for(self._catalog.model).bank_in_address

    def replace_catalog(self, catalog: Catalog, config: Optional[ConsoleConfig] = None):
        """Swap in a new catalog snapshot; the store keeps its values."""
        self._catalog = catalog
        self._recorder.catalog = catalog
        if config is not None:
            self._config = config

    def handle_line(self, line: str) -> Optional[Observation]:
        record = tokenize(line)
        if record is None:
            self._logger.debug(f"Ignoring line: '{line}'")
            return None
        return self.handle_record(record)

    def handle_record(self, record: CommandRecord) -> Optional[Observation]:
        entry = resolve(self._catalog, record.address)
        if entry is None:
            self._logger.debug(f"Unknown command received: '{record.address}'")
            return None

        banked = self.scene_bank_in_address
        self._store.observe(entry, record, banked)
        self._recorder.observe(entry, record, banked)
        return coordinates_of(entry, record, banked)

    def encode(self, prefix: str, token: str, options: Optional[dict] = None) -> Optional[str]:
        resolved = resolve_options(options or {}, self._config)
        if resolved is None:
            self._logger.debug(f"Cannot resolve channel for {token}: {options}")
            return None
        x, y, value = resolved
        return build_command(prefix, self._catalog, token, x, y, value, self._store)
