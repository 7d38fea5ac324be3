import pytest

from pyscp.config import ConsoleConfig
from pyscp.engine import ProtocolEngine
from pyscp.feedback import (
    CHANNEL_COLORS,
    Feedback,
    FeedbackRegistry,
    evaluate,
    evaluate_macro,
    poll_commands,
)
from pyscp.macro import MACRO_FEEDBACK, RED, YELLOW, MacroRecorder

from conftest import COLOR, LEVEL, METER, NAME, ON, SCENE


@pytest.fixture
def engine(catalog):
    return ProtocolEngine(catalog, ConsoleConfig(channels=[4, 1, 1, 1]))


def test_match(engine):
    engine.handle_line("NOTIFY set MIXER:Current/InCh/Fader/On 0 0 1")
    assert evaluate(engine, Feedback(ON, {"X": 1, "Val": 1})) is True
    assert evaluate(engine, Feedback(ON, {"X": 1, "Val": "1"})) is True
    assert evaluate(engine, Feedback(ON, {"X": 1, "Val": 0})) is False


def test_nothing_stored(engine):
    assert evaluate(engine, Feedback(ON, {"X": 1, "Val": 1})) is False


def test_unknown_token(engine):
    assert evaluate(engine, Feedback("MIXER_Current/Nothing", {"Val": 1})) is False


def test_channel_alias(engine):
    engine.handle_line("NOTIFY set MIXER:Current/InCh/Fader/On 3 0 1")
    assert evaluate(engine, Feedback(ON, {"X": -1, "Val": 1})) is True


def test_name_returns_text(engine):
    engine.handle_line('NOTIFY set MIXER:Current/InCh/Label/Name 1 0 "Lead Vox"')
    assert evaluate(engine, Feedback(NAME, {"X": 2})) == {"text": "Lead Vox"}


def test_color_returns_style(engine):
    engine.handle_line("NOTIFY set MIXER:Current/InCh/Label/Color 0 0 Red")
    assert evaluate(engine, Feedback(COLOR, {"X": 1})) == CHANNEL_COLORS["Red"]
    assert evaluate(engine, Feedback(COLOR, {"X": 1, "Val": "Red"})) is True


def test_unknown_color_is_off(engine):
    engine.handle_line("NOTIFY set MIXER:Current/InCh/Label/Color 0 0 Plaid")
    assert evaluate(engine, Feedback(COLOR, {"X": 1})) == CHANNEL_COLORS["Off"]


def test_custom_color_table(engine):
    engine.handle_line("NOTIFY set MIXER:Current/InCh/Label/Color 0 0 Blue")
    colors = {"Blue": {"bgcolor": 1}}
    assert evaluate(engine, Feedback(COLOR, {"X": 1}), colors) == {"bgcolor": 1}


def test_scene_number_in_x(engine):
    engine.handle_line("NOTIFY sscurrent_ex MIXER:Lib/Scene 12")
    assert evaluate(engine, Feedback(SCENE, {"X": 12})) is True
    assert evaluate(engine, Feedback(SCENE, {"X": 3})) is False


def test_macro_feedback():
    recorder = MacroRecorder()
    assert evaluate_macro(recorder) is None
    recorder.start()
    assert evaluate_macro(recorder)["bgcolor"] == RED
    recorder.latch()
    style = evaluate_macro(recorder)
    assert style["bgcolor"] == YELLOW
    assert style["text"] == "REC"


def test_poll_commands(engine):
    registry = FeedbackRegistry()
    registry.register("a", ON, {"X": 1, "Val": 1})
    registry.register("b", ON, {"X": 1, "Val": 0})
    registry.register("c", LEVEL, {"X": 2})
    registry.register("d", MACRO_FEEDBACK)
    registry.register("e", METER, {"X": 1})
    registry.register("f", NAME, {"X": 0})
    assert poll_commands(engine, registry) == [
        "get MIXER:Current/InCh/Fader/On 0 0",
        "get MIXER:Current/InCh/Fader/Level 1 0",
    ]


def test_registry():
    registry = FeedbackRegistry()
    options = {"X": 1}
    feedback = registry.register("a", ON, options)
    options["X"] = 2
    assert feedback.options == {"X": 1}
    assert registry.get("a") is feedback
    assert len(registry) == 1
    registry.unregister("a")
    registry.unregister("missing")
    assert registry.get("a") is None
    registry.register("b", ON)
    registry.clear()
    assert list(registry) == []
