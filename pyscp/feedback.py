"""Feedback evaluation against the state store.

A feedback names a parameter token and the options a button was set up with. It
evaluates to True when the console currently holds the expected value. Name
and color parameters instead return a text/style override built from whatever
the console holds.
"""

from dataclasses import dataclass, field
from typing import Optional, Union

from pyscp.catalog import ParamType
from pyscp.codec import GET
from pyscp.engine import ProtocolEngine, resolve_options
from pyscp.macro import BLACK, MACRO_FEEDBACK, RED, YELLOW, MacroMode, MacroRecorder

# Channel color name -> button style. Unknown colors fall back to "Off".
CHANNEL_COLORS = {
    "Purple": {"color": 0xFFFFFF, "bgcolor": 0x800080},
    "Blue": {"color": 0xFFFFFF, "bgcolor": 0x0000FF},
    "SkyBlue": {"color": 0x000000, "bgcolor": 0x87CEEB},
    "Cyan": {"color": 0x000000, "bgcolor": 0x00FFFF},
    "Green": {"color": 0x000000, "bgcolor": 0x00FF00},
    "YellowGreen": {"color": 0x000000, "bgcolor": 0x9ACD32},
    "Yellow": {"color": 0x000000, "bgcolor": 0xFFFF00},
    "Orange": {"color": 0x000000, "bgcolor": 0xFFA500},
    "Red": {"color": 0xFFFFFF, "bgcolor": 0xFF0000},
    "Pink": {"color": 0x000000, "bgcolor": 0xFFC0CB},
    "White": {"color": 0x000000, "bgcolor": 0xFFFFFF},
    "Off": {"color": 0xFFFFFF, "bgcolor": 0x000000},
}

Result = Union[bool, dict]


@dataclass
class Feedback:
    token: str
    options: dict = field(default_factory=dict)


class FeedbackRegistry:
    def __init__(self):
        self._feedbacks: dict[str, Feedback] = {}

    def __len__(self):
        return len(self._feedbacks)

    def __iter__(self):
        return iter(self._feedbacks.values())

    def get(self, feedback_id: str) -> Optional[Feedback]:
        return self._feedbacks.get(feedback_id)

    def register(self, feedback_id: str, token: str, options: Optional[dict] = None) -> Feedback:
        feedback = Feedback(token, dict(options or {}))
        self._feedbacks[feedback_id] = feedback
        return feedback

    def unregister(self, feedback_id: str) -> None:
        self._feedbacks.pop(feedback_id, None)

    def clear(self) -> None:
        self._feedbacks.clear()


def evaluate(engine: ProtocolEngine, feedback: Feedback,
             colors: Optional[dict] = None) -> Result:
    catalog = engine.catalog
    entry = catalog.find(feedback.token)
    if entry is None:
        return False

    options = dict(feedback.options)
    if entry.type is ParamType.SCENE and options.get("Val") is None:
        # Scene feedbacks carry the expected scene number in X
        options["Val"] = options.get("X")
        options["X"] = 1

    resolved = resolve_options(options, engine.config)
    if resolved is None:
        return False
    x, y, expected = resolved

    stored = engine.store.query(feedback.token, x, y)
    if stored is None:
        return False
    if expected is not None and str(stored) == str(expected):
        return True

    if catalog.is_color(feedback.token):
        table = colors if colors is not None else CHANNEL_COLORS
        return dict(table.get(str(stored), table.get("Off", {})))
    if catalog.is_name(feedback.token):
        return {"text": stored}
    return False


def evaluate_macro(recorder: MacroRecorder) -> Optional[dict]:
    """Style for the record button while a macro is being recorded."""
    if not recorder.recording:
        return None
    if recorder.mode is MacroMode.LATCHED:
        return {"color": BLACK, "bgcolor": YELLOW, "text": "REC"}
    return {"color": BLACK, "bgcolor": RED, "text": "REC"}


def poll_commands(engine: ProtocolEngine, registry: FeedbackRegistry) -> list[str]:
    """One ``get`` per registered feedback, without duplicates."""
    commands = []
    seen = set()
    for feedback in registry:
        if feedback.token == MACRO_FEEDBACK:
            continue
        command = engine.encode(GET, feedback.token, feedback.options)
        if command is not None and command not in seen:
            seen.add(command)
            commands.append(command)
    return commands
