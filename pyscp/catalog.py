"""SCP parameter catalog.

A catalog is the table of addressable parameters for one console family. The
console itself reports these as ``prminfo``/``scninfo`` records, for example::

    OK prminfo 0 "MIXER:Current/InCh/Fader/Level" 72 1 -32768 1000 -32768 "dB" integer any rw 100

Records are parsed positionally using CATALOG_FIELDS. A catalog is immutable:
configuration changes produce a new snapshot rather than mutating an old one.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Iterable, Optional, Union

from pyscp.families import DEFAULT_MODEL, family_for, scene_encoding_for

# Positional schema of a catalog record, version 1
CATALOG_FIELDS_VERSION = 1
CATALOG_FIELDS = (
    "status", "command", "index", "address", "dim_x", "dim_y",
    "min", "max", "default", "unit", "type", "ui", "rw", "scale",
)

# Split on whitespace, but a double-quoted run is a single token
TOKEN_PATTERN = re.compile(r'(?:[^\s"]+|"[^"]*")+')

RESPONSE_STATUSES = ("OK", "NOTIFY")

# Catalog index of the scene-memory entry
SCENE_INDEX = 1000

NAME_SUFFIX = "Name"
COLOR_SUFFIX = "olor"

# Number of user-configurable channel aliases
ALIAS_COUNT = 4

MACRO_ACTIONS = (
    ("Record SCP Macro", "macroRecStart"),
    ("Record SCP Macro (latched)", "macroRecLatch"),
    ("Unlatch SCP Macro", "macroUnLatch"),
)

DATA_DIR = Path(__file__).parent / "data"

_logger = logging.getLogger(__name__)


def _check_field_table(fields, required):
    if len(set(fields)) != len(fields):
        raise RuntimeError(f"Duplicate field in schema: {fields}")
    missing = [name for name in required if name not in fields]
    if missing:
        raise RuntimeError(f"Schema is missing fields: {missing}")


_check_field_table(CATALOG_FIELDS, ("status", "index", "address", "dim_x", "dim_y", "type"))


class CatalogLoadError(Exception):
    """The parameter table is missing or holds no usable records."""


class ParamType(Enum):
    INTEGER = "integer"
    STRING = "string"
    BINARY = "binary"
    SCENE = "scene"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ParamType":
        try:
            return cls((value or "").lower())
        except ValueError:
            return cls.UNKNOWN


def normalize_address(address: str) -> str:
    """Turn ``MIXER:Current/InCh`` into the key form ``MIXER_Current/InCh``."""
    return address.replace(":", "_")


def split_tokens(line: str) -> list[str]:
    """Split a protocol line into tokens, stripping double quotes."""
    return [token.replace('"', "") for token in TOKEN_PATTERN.findall(line)]


def is_response(tokens: list[str]) -> bool:
    return bool(tokens) and tokens[0].upper() in RESPONSE_STATUSES


def _to_int(value: Optional[str], default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class ParameterDefinition:
    address: str
    index: int = 0
    dim_x: int = 1
    dim_y: int = 1
    min: Optional[str] = None
    max: Optional[str] = None
    default: Optional[str] = None
    type: ParamType = ParamType.UNKNOWN
    type_name: str = ""
    unit: str = ""
    scale: str = ""
    rw: str = ""
    ui: str = ""
    command: str = ""

    @property
    def token(self) -> str:
        return normalize_address(self.address)

    @property
    def sort_key(self) -> str:
        return self.address[self.address.find("/") + 1:].lower()

    @property
    def is_switch(self) -> bool:
        """True for integer parameters that are simply on/off."""
        return self.type is ParamType.INTEGER and _to_int(self.max, -1) == 1

    @classmethod
    def from_fields(cls, fields: dict) -> "ParameterDefinition":
        return cls(
            address=fields["address"],
            index=_to_int(fields.get("index")),
            dim_x=_to_int(fields.get("dim_x"), 1),
            dim_y=_to_int(fields.get("dim_y"), 1),
            min=fields.get("min"),
            max=fields.get("max"),
            default=fields.get("default"),
            type=ParamType.parse(fields.get("type")),
            type_name=fields.get("type") or "",
            unit=fields.get("unit") or "",
            scale=fields.get("scale") or "",
            rw=fields.get("rw") or "",
            ui=fields.get("ui") or "",
            command=fields.get("command") or "",
        )


@dataclass(frozen=True)
class ChannelAlias:
    id: int
    label: str


class Catalog:
    """Immutable, ordered set of parameter definitions for one console family."""

    def __init__(self, entries: Iterable[ParameterDefinition], model: str = DEFAULT_MODEL,
                 channel_names: Iterable[str] = ()):
        self._entries = tuple(entries)
        self._model = model
        self._by_token = {entry.token: entry for entry in self._entries}
        self._name_tokens = frozenset(
            entry.token for entry in self._entries if entry.address[-4:] == NAME_SUFFIX
        )
        self._color_tokens = frozenset(
            entry.token for entry in self._entries if entry.address[-4:] == COLOR_SUFFIX
        )
        names = list(channel_names)[:ALIAS_COUNT]
        names += [f"My Channel {i + 1}" for i in range(len(names), ALIAS_COUNT)]
        self._channel_aliases = tuple(
            ChannelAlias(-(i + 1), label) for i, label in enumerate(names)
        )

    def __len__(self):
        return len(self._entries)

    def __iter__(self):
        return iter(self._entries)

    def __contains__(self, token):
        return token in self._by_token

    @property
    def entries(self) -> tuple[ParameterDefinition, ...]:
        return self._entries

    @property
    def model(self) -> str:
        return self._model

    @property
    def name_tokens(self) -> frozenset:
        return self._name_tokens

    @property
    def color_tokens(self) -> frozenset:
        return self._color_tokens

    @property
    def channel_aliases(self) -> tuple[ChannelAlias, ...]:
        return self._channel_aliases

    def find(self, token: str) -> Optional[ParameterDefinition]:
        """Look up an entry by its normalized address."""
        return self._by_token.get(token)

    def is_name(self, token: str) -> bool:
        return token in self._name_tokens

    def is_color(self, token: str) -> bool:
        return token in self._color_tokens

    def channel_choices(self, dim_x: int) -> list[ChannelAlias]:
        """Dropdown choices for a channel axis: the aliases, then CH1..CHn."""
        return list(self._channel_aliases) + [
            ChannelAlias(i, f"CH{i}") for i in range(1, dim_x + 1)
        ]

    def label_for(self, entry: ParameterDefinition) -> str:
        if entry.type is ParamType.SCENE and scene_encoding_for(self._model).bank_in_address:
            return "Scene/Bank"
        return entry.address[entry.address.find("/") + 1:]

    def command_listing(self) -> list[tuple[str, str]]:
        listing = [(self.label_for(entry), entry.token) for entry in self._entries]
        listing.extend(MACRO_ACTIONS)
        return listing

    def with_channel_names(self, channel_names: Iterable[str]) -> "Catalog":
        return Catalog(self._entries, self._model, channel_names)


def parse_catalog(source: Union[str, bytes]) -> list[ParameterDefinition]:
    if isinstance(source, bytes):
        source = source.decode("ascii", errors="ignore")

    entries = []
    seen = set()
    for line in source.split("\n"):
        tokens = split_tokens(line)
        if not is_response(tokens):
            continue
        fields = dict(zip(CATALOG_FIELDS, tokens))
        if not fields.get("address"):
            continue
        entry = ParameterDefinition.from_fields(fields)
        if entry.address in seen:
            _logger.warning(f"Duplicate catalog address ignored: {entry.address}")
            continue
        seen.add(entry.address)
        entries.append(entry)
    return entries


def load_catalog(source: Union[str, bytes, None], channel_names: Iterable[str] = (),
                 model: str = DEFAULT_MODEL) -> Catalog:
    """Parse a parameter table into a sorted Catalog."""
    if not source:
        raise CatalogLoadError(f"No parameter data for console model {model}")

    entries = parse_catalog(source)
    if not entries:
        raise CatalogLoadError(f"No parameter records found for console model {model}")

    # sorted() is stable, so equal keys keep their source order
    entries = sorted(entries, key=lambda entry: entry.sort_key)
    catalog = Catalog(entries, model, channel_names)
    _logger.info(
        f"Loaded {len(catalog)} parameters for {model} "
        f"({len(catalog.name_tokens)} name, {len(catalog.color_tokens)} color)"
    )
    return catalog


def load_catalog_for_model(model: str, channel_names: Iterable[str] = (),
                           data_dir: Path = DATA_DIR) -> Catalog:
    """Load the parameter table bundled for a console family."""
    family = family_for(model)
    if family is None:
        raise CatalogLoadError(f"Unknown console model: {model}")
    try:
        data = (data_dir / family.parameter_file).read_bytes()
    except OSError as e:
        raise CatalogLoadError(f"Cannot read parameter table {family.parameter_file}: {e}") from e
    return load_catalog(data, channel_names, model)
