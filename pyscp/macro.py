"""Record live console traffic into replayable macros.

Pressing the record button sends ``start`` and, half a second later, ``latch``;
releasing it sends ``unlatch``. Whichever of the two arrives while the latch
window is still open decides whether the new macro latches. A second ``start``
stops recording and hands the finished macro over as a MacroPreset.
"""

import logging
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from pyscp.catalog import ParameterDefinition, ParamType
from pyscp.codec import TOGGLE, CommandRecord
from pyscp.store import Coordinate, coordinates_of

MACRO_START = "macroRecStart"
MACRO_LATCH = "macroRecLatch"
MACRO_UNLATCH = "macroUnLatch"
MACRO_FEEDBACK = "macro"

LATCH_DELAY_MS = 500

BLACK = 0x000000
WHITE = 0xFFFFFF
RED = 0xFF0000
YELLOW = 0xFFFF00


class MacroMode(Enum):
    IDLE = "idle"
    RECORDING = "recording"     # latch window open
    LATCHED = "latched"
    ONE_SHOT = "one-shot"

    @property
    def recording(self) -> bool:
        return self is not MacroMode.IDLE


@dataclass
class MacroEntry:
    token: str
    x: Coordinate
    y: Coordinate
    val: Any = None

    def options(self) -> dict:
        options = {"X": self.x, "Y": self.y}
        if self.val is not None:
            options["Val"] = self.val
        return options


@dataclass
class Macro:
    label: str
    latch: bool = False
    entries: list[MacroEntry] = field(default_factory=list)

    def capture(self, entry: MacroEntry) -> None:
        """Append, or overwrite the value of an entry already at the same coordinate."""
        for existing in self.entries:
            if (existing.token, existing.x, existing.y) == (entry.token, entry.x, entry.y):
                existing.val = entry.val
                return
        self.entries.append(entry)


@dataclass
class MacroPreset:
    """A finished macro, ready to become a button in the preset layer."""
    id: str
    label: str
    latch: bool
    actions: list[dict]
    feedbacks: list[dict]
    release_actions: list[dict]


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


def capture_entry(entry: ParameterDefinition, record: CommandRecord,
                  scene_bank_in_address: bool = False) -> Optional[MacroEntry]:
    observation = coordinates_of(entry, record, scene_bank_in_address)
    if entry.type in (ParamType.INTEGER, ParamType.BINARY, ParamType.STRING):
        return MacroEntry(entry.token, observation.x, observation.y, observation.value)
    if entry.type is ParamType.SCENE:
        if observation.value is None:
            return None
        # Recalled scene number goes back in X, which is what a scene recall takes
        return MacroEntry(entry.token, observation.value, observation.y)
    return None


def finalize(macro: Macro, catalog=None) -> MacroPreset:
    actions = []
    feedbacks = []
    for entry in macro.entries:
        options = entry.options()
        feedbacks.append({
            "id": _new_id(),
            "type": entry.token,
            "options": dict(options),
            "style": {"color": BLACK, "bgcolor": RED},
        })
        definition = catalog.find(entry.token) if catalog is not None else None
        if definition is not None and definition.is_switch:
            options["Val"] = TOGGLE
        actions.append({"id": _new_id(), "action": entry.token, "options": options})

    return MacroPreset(
        id=_new_id(),
        label=macro.label,
        latch=macro.latch,
        actions=actions,
        feedbacks=feedbacks,
        release_actions=[{"id": _new_id(), "action": MACRO_UNLATCH, "options": {}}],
    )


def record_button_preset() -> dict:
    """Preset definition for the button that drives the recorder."""
    return {
        "category": "Macros",
        "label": "Create SCP Macro",
        "bank": {
            "style": "text",
            "text": "Record SCP Macro",
            "latch": False,
            "size": "auto",
            "color": WHITE,
            "bgcolor": BLACK,
        },
        "actions": [
            {"action": MACRO_START},
            {"action": MACRO_LATCH, "delay": LATCH_DELAY_MS},
        ],
        "release_actions": [{"action": MACRO_UNLATCH}],
        "feedbacks": [
            {"type": MACRO_FEEDBACK, "options": {"mode": "r", "fg": BLACK, "bg": RED}},
            {"type": MACRO_FEEDBACK, "options": {"mode": "rl", "fg": BLACK, "bg": YELLOW}},
        ],
    }


class MacroRecorder:
    def __init__(self, catalog=None):
        self._logger = logging.getLogger(__name__)
        self.catalog = catalog
        self._mode = MacroMode.IDLE
        self._count = 0
        self._macro: Optional[Macro] = None

    @property
    def mode(self) -> MacroMode:
        return self._mode

    @property
    def recording(self) -> bool:
        return self._mode.recording

    @property
    def count(self) -> int:
        return self._count

    @property
    def macro(self) -> Optional[Macro]:
        return self._macro

    def start(self) -> Optional[MacroPreset]:
        """Start recording, or stop if already recording.

        Stopping returns the finished MacroPreset, or None if nothing was captured.
        """
        if not self.recording:
            self._count += 1
            self._macro = Macro(f"Macro {self._count}")
            self._mode = MacroMode.RECORDING
            self._logger.info(f"Recording {self._macro.label}")
            return None

        macro = self._macro
        self._macro = None
        self._mode = MacroMode.IDLE
        if macro is None or not macro.entries:
            self._count -= 1
            self._logger.info("Recording stopped, nothing captured")
            return None

        self._logger.info(f"Recording stopped, {macro.label} has {len(macro.entries)} commands")
        return finalize(macro, self.catalog)

    def latch(self) -> None:
        if self._mode is MacroMode.RECORDING:
            self._macro.latch = True
            self._mode = MacroMode.LATCHED

    def unlatch(self) -> None:
        if self._mode is MacroMode.RECORDING:
            self._macro.latch = False
            self._mode = MacroMode.ONE_SHOT

    def observe(self, entry: ParameterDefinition, record: CommandRecord,
                scene_bank_in_address: bool = False) -> None:
        if not self.recording:
            return
        captured = capture_entry(entry, record, scene_bank_in_address)
        if captured is not None:
            self._macro.capture(captured)
