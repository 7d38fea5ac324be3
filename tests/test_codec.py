import random
from dataclasses import fields

import pytest

from pyscp.catalog import SCENE_INDEX, Catalog, ParameterDefinition, ParamType
from pyscp.codec import GET, SET, TOGGLE, CommandRecord, build_command, tokenize
from pyscp.resolver import resolve
from pyscp.store import StateStore

from conftest import LEVEL, LINK, METER, NAME, ON, SCENE


def test_tokenize_without_command_verb():
    record = tokenize('OK MIXER:Current/InCh/Fader/Level 3 1 "-12.3"')
    assert record.status == "OK"
    assert record.command is None
    assert record.address == "MIXER:Current/InCh/Fader/Level"
    assert record.x == "3"
    assert record.y == "1"
    assert record.val == "-12.3"


def test_tokenize_notify():
    record = tokenize('NOTIFY set MIXER:Current/InCh/Fader/Level 3 0 -1200 "-12.00"')
    assert record == CommandRecord(
        "NOTIFY", "set", "MIXER:Current/InCh/Fader/Level", "3", "0", "-1200", "-12.00"
    )


def test_tokenize_short_record_leaves_missing_fields_empty():
    record = tokenize("NOTIFY sscurrent_ex MIXER:Lib/Scene 12")
    assert record.x == "12"
    assert record.y is None
    assert record.val is None
    assert record.txt_val is None


def test_tokenize_status_is_case_insensitive():
    assert tokenize("ok set MIXER:Current/InCh/Fader/On 0 0 1").status == "ok"


@pytest.mark.parametrize("line", [
    "",
    "   ",
    "ERROR set MIXER:Current/InCh/Fader/On 0 0 1 InvalidArgument",
    "devinfo productname",
    "OKAY set A 0 0 1",
])
def test_tokenize_non_records(line):
    assert tokenize(line) is None


def test_tokenize_quoted_value_with_spaces():
    record = tokenize('NOTIFY set MIXER:Current/InCh/Label/Name 0 0 "Lead Vox"')
    assert record.val == "Lead Vox"


def test_tokenize_unbalanced_quote():
    record = tokenize('NOTIFY set MIXER:Current/InCh/Label/Name 0 0 "Vox')
    assert record.address == "MIXER:Current/InCh/Label/Name"
    assert record.val == "Vox"


def test_tokenize_quote_inside_token():
    record = tokenize('NOTIFY set MIXER:Current/InCh/Label/Name 0 0 a"b c"d')
    assert record.val == "ab cd"


@pytest.mark.parametrize("line", [
    "OK",
    "NOTIFY \x00\x01\x02",
    'OK "" "" "" "" "" "" "" "" ""',
    "NOTIFY set " + "x" * 10000,
    'OK set """"',
    "OK set MIXER:Current/InCh/Fader/On 0 0 1 2 3 4 5 6",
])
def test_tokenize_malformed_lines(line):
    record = tokenize(line)
    assert record is None or isinstance(record, CommandRecord)


FUZZ_PREFIXES = ["OK ", "NOTIFY ", "ok ", "notify ", "", "ERROR ", "\"OK\" ", "OK\"", " OK "]
FUZZ_PIECES = [
    "\"", "\"", " ", "  ", "\t", "\r", "\n", "\x00", "\x01", "\x07", "\x1b", "\x7f",
    ":", "/", "_", "a", "Z", "0", "12", "-", "\u00e9", "OK", "NOTIFY", "set",
    "MIXER:Current/InCh/Fader/On",
]


def test_tokenize_generated_lines():
    rng = random.Random(49280)
    for _ in range(5000):
        line = rng.choice(FUZZ_PREFIXES) + "".join(
            rng.choice(FUZZ_PIECES) for _ in range(rng.randint(0, 30))
        )
        record = tokenize(line)
        if record is None:
            continue
        assert record.status.upper() in ("OK", "NOTIFY"), repr(line)
        for f in fields(record):
            value = getattr(record, f.name)
            assert value is None or '"' not in value, repr(line)


def test_tokenized_address_resolves(catalog):
    record = tokenize("NOTIFY set MIXER:Current/InCh/Fader/On 4 0 1")
    assert resolve(catalog, record.address).token == ON


def test_get_integer(catalog):
    assert build_command(GET, catalog, LEVEL, 3, 1) == "get MIXER:Current/InCh/Fader/Level 2 0"


def test_get_ignores_value(catalog):
    assert build_command(GET, catalog, ON, 1, 1, TOGGLE) == "get MIXER:Current/InCh/Fader/On 0 0"


def test_set_integer(catalog):
    assert build_command(SET, catalog, LEVEL, 3, 1, -1000) == "set MIXER:Current/InCh/Fader/Level 2 0 -1000"


def test_set_with_zero_value(catalog):
    assert build_command(SET, catalog, ON, 1, 1, 0) == "set MIXER:Current/InCh/Fader/On 0 0 0"


def test_set_binary(catalog):
    assert build_command(SET, catalog, LINK, 5, 1, 3) == "set MIXER:Current/InCh/Channel/Link 4 0 3"


@pytest.mark.parametrize("stored, expected", [("1", "0"), ("0", "1")])
def test_toggle_inverts_stored_value(catalog, stored, expected):
    store = StateStore()
    record = tokenize(f"NOTIFY set MIXER:Current/InCh/Fader/On 0 0 {stored}")
    store.observe(catalog.find(ON), record)
    command = build_command(SET, catalog, ON, 1, 1, TOGGLE, store)
    assert command == f"set MIXER:Current/InCh/Fader/On 0 0 {expected}"


def test_toggle_without_stored_value_sends_no_value(catalog):
    assert build_command(SET, catalog, ON, 1, 1, TOGGLE, StateStore()) == "set MIXER:Current/InCh/Fader/On 0 0"
    assert build_command(SET, catalog, ON, 1, 1, TOGGLE) == "set MIXER:Current/InCh/Fader/On 0 0"


def test_set_string_is_quoted(catalog):
    assert build_command(SET, catalog, NAME, 2, 1, "Lead Vox") == 'set MIXER:Current/InCh/Label/Name 1 0 "Lead Vox"'


def test_get_string(catalog):
    assert build_command(GET, catalog, NAME, 2, 1) == "get MIXER:Current/InCh/Label/Name 1 0"


def test_scene_recall_keeps_scene_number(catalog):
    assert build_command(SET, catalog, SCENE, 12, 1) == "ssrecall_ex MIXER:Lib/Scene 12"


def test_scene_query(catalog):
    assert build_command(GET, catalog, SCENE, 12, 1) == "sscurrent_ex MIXER:Lib/Scene"


def test_banked_scenes():
    scene = ParameterDefinition("MIXER:Lib/Bank/Scene/", index=SCENE_INDEX, dim_x=100, dim_y=2,
                                type=ParamType.SCENE)
    catalog = Catalog([scene], model="TF")
    assert build_command(SET, catalog, scene.token, 5, "b") == "ssrecall_ex MIXER:Lib/Bank/Scene/b 5"
    assert build_command(GET, catalog, scene.token, 1, "a") == "sscurrent_ex MIXER:Lib/Bank/Scene/a"
    # Numeric Y is not a bank
    assert build_command(GET, catalog, scene.token, 1, 1) == "sscurrent_ex MIXER:Lib/Bank/Scene/"


def test_plain_family_ignores_bank():
    scene = ParameterDefinition("MIXER:Lib/Scene", index=SCENE_INDEX, type=ParamType.SCENE)
    catalog = Catalog([scene], model="CL/QL")
    assert build_command(SET, catalog, scene.token, 7, "a") == "ssrecall_ex MIXER:Lib/Scene 7"


def test_unknown_token(catalog):
    assert build_command(SET, catalog, "MIXER_Current/Nothing", 1, 1, 1) is None


def test_unsupported_type(catalog):
    assert build_command(GET, catalog, METER, 1, 1) is None


def test_invalid_prefix(catalog):
    with pytest.raises(ValueError):
        build_command("ssrecall", catalog, LEVEL)


@pytest.mark.parametrize("token, x, y", [
    (LEVEL, 1, "a"),
    (LEVEL, "abc", 1),
    (LINK, None, 1),
    (NAME, 2, "b"),
])
def test_non_numeric_coordinates_send_nothing(catalog, token, x, y):
    assert build_command(SET, catalog, token, x, y, 0) is None
    assert build_command(GET, catalog, token, x, y) is None
