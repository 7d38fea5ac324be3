"""SCP wire codec.

Decoding turns a protocol line into a CommandRecord::

    NOTIFY set MIXER:Current/InCh/Fader/Level 3 0 -1200 "-12.00"

Encoding builds the get/set command string for a catalog entry. The console's
coordinates are 0-based on the wire, while callers always pass 1-based X/Y.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from pyscp.catalog import Catalog, ParamType, is_response, split_tokens
from pyscp.families import scene_encoding_for

# Positional schema of a response record, version 1
RECORD_FIELDS_VERSION = 1
RECORD_FIELDS = ("status", "command", "address", "x", "y", "val", "txt_val")

GET = "get"
SET = "set"
PREFIXES = (GET, SET)

TOGGLE = "Toggle"

SCENE_RECALL = "ssrecall_ex"
SCENE_CURRENT = "sscurrent_ex"

_logger = logging.getLogger(__name__)

if len(set(RECORD_FIELDS)) != len(RECORD_FIELDS) or RECORD_FIELDS[:3] != ("status", "command", "address"):
    raise RuntimeError(f"Invalid record schema: {RECORD_FIELDS}")


@dataclass(frozen=True)
class CommandRecord:
    status: str
    command: Optional[str] = None
    address: Optional[str] = None
    x: Optional[str] = None
    y: Optional[str] = None
    val: Optional[str] = None
    txt_val: Optional[str] = None


def tokenize(line: str) -> Optional[CommandRecord]:
    """Decode one protocol line, or return None if it is not an OK/NOTIFY record."""
    tokens = split_tokens(line)
    if not is_response(tokens):
        return None
    if len(tokens) > 1 and ":" in tokens[1]:
        # Command verb left out, the address follows the status directly
        tokens.insert(1, None)
    return CommandRecord(**dict(zip(RECORD_FIELDS, tokens)))


def _join(*tokens) -> str:
    return " ".join(str(token) for token in tokens if token is not None and token != "")


def _toggled(store, token: str, x, y) -> Optional[int]:
    if store is None:
        return None
    stored = store.query(token, x, y)
    if stored is None:
        return None
    try:
        return 1 - int(stored)
    except (TypeError, ValueError):
        return None


def _wire_coordinates(x, y) -> Optional[tuple[int, int]]:
    """1-based X/Y to the 0-based wire pair, or None if either is not a number."""
    try:
        return int(x) - 1, int(y) - 1
    except (TypeError, ValueError):
        return None


def build_command(prefix: str, catalog: Catalog, token: str, x: int = 1,
                  y: Union[int, str] = 1, value=None, store=None) -> Optional[str]:
    """Build the command string for ``prefix`` (get/set) on the entry named by ``token``.

    Returns None when nothing should be sent: the token is not in the catalog,
    X/Y are not numbers, or the parameter type has no wire mapping.
    """
    if prefix not in PREFIXES:
        raise ValueError(f"Unknown command prefix: {prefix}")

    entry = catalog.find(token)
    if entry is None:
        _logger.debug(f"Unrecognized command: '{token}'")
        return None

    if entry.type in (ParamType.INTEGER, ParamType.BINARY, ParamType.STRING):
        coordinates = _wire_coordinates(x, y)
        if coordinates is None:
            _logger.debug(f"Invalid coordinates for {entry.address}: x={x!r} y={y!r}")
            return None
        wire_x, wire_y = coordinates

    if entry.type in (ParamType.INTEGER, ParamType.BINARY):
        if prefix == GET:
            value = None
        elif value == TOGGLE:
            value = _toggled(store, token, x, y)
        return _join(prefix, entry.address, wire_x, wire_y, value)

    if entry.type is ParamType.STRING:
        quoted = f'"{value}"' if prefix == SET and value is not None else None
        return _join(prefix, entry.address, wire_x, wire_y, quoted)

    if entry.type is ParamType.SCENE:
        address = scene_encoding_for(catalog.model).address_token(entry.address, y)
        if prefix == SET:
            return _join(SCENE_RECALL, address, x)
        return _join(SCENE_CURRENT, address)

    _logger.debug(f"No wire mapping for {entry.address} ({entry.type_name})")
    return None
