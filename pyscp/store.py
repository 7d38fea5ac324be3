"""Live mirror of console parameter values.

Values are keyed by normalized address, then 1-based X, then 1-based Y. A wire
coordinate of 0 (or a missing one) means "no dimension" and lands on index 1.
"""

from dataclasses import dataclass
from typing import Optional, Union

from pyscp.catalog import SCENE_INDEX, ParameterDefinition, ParamType
from pyscp.codec import CommandRecord

Value = Union[int, str]
Coordinate = Union[int, str]


@dataclass(frozen=True)
class Observation:
    token: str
    x: int
    y: Coordinate
    value: Optional[Value]


def _wire_index(value: Optional[str]) -> int:
    """Wire coordinate (0-based, possibly missing) to a 1-based index."""
    try:
        return int(value) + 1
    except (TypeError, ValueError):
        return 1


def typed_value(entry: ParameterDefinition, value: Optional[str]) -> Optional[Value]:
    if value is None:
        return None
    if entry.type is ParamType.STRING:
        return value
    try:
        return int(value)
    except ValueError:
        return value


def coordinates_of(entry: ParameterDefinition, record: CommandRecord,
                   scene_bank_in_address: bool = False) -> Observation:
    """Pull the 1-based coordinate and value out of a resolved record.

    Single-dimension responses leave out the value field and carry the value in
    the X slot instead, e.g. ``NOTIFY sscurrent_ex MIXER:Lib/Scene 12``.
    """
    x, y, val = record.x, record.y, record.val
    if val is None:
        val, x = x, None

    address = record.address or ""
    if (scene_bank_in_address and entry.index == SCENE_INDEX
            and len(address) > len(entry.address)):
        iy: Coordinate = address[-1]
    else:
        iy = _wire_index(y)

    return Observation(entry.token, _wire_index(x), iy, typed_value(entry, val))


class StateStore:
    """token -> X -> Y -> last observed value."""

    def __init__(self):
        self._data: dict[str, dict[int, dict[Coordinate, Value]]] = {}

    def __contains__(self, token):
        return token in self._data

    def observe(self, entry: ParameterDefinition, record: CommandRecord,
                scene_bank_in_address: bool = False) -> None:
        self.put(coordinates_of(entry, record, scene_bank_in_address))

    def put(self, observation: Observation) -> None:
        by_x = self._data.setdefault(observation.token, {})
        by_x.setdefault(observation.x, {})[observation.y] = observation.value

    def query(self, token: str, x: Coordinate = 1, y: Coordinate = 1) -> Optional[Value]:
        try:
            return self._data[token][_as_key(x)][_as_key(y)]
        except KeyError:
            return None

    def snapshot(self) -> dict:
        return {token: {x: dict(by_y) for x, by_y in by_x.items()}
                for token, by_x in self._data.items()}


def _as_key(value: Coordinate) -> Coordinate:
    if isinstance(value, str) and value.lstrip("-").isdigit():
        return int(value)
    return value
