from unittest.mock import MagicMock

import pytest

from pyscp.catalog import load_catalog

CATALOG_SOURCE = """\
OK prminfo 0 "MIXER:Current/InCh/Fader/Level" 72 1 -32768 1000 -32768 "dB" integer any rw 100
OK prminfo 1 "MIXER:Current/InCh/Fader/On" 72 1 0 1 1 "" integer any rw 1
OK prminfo 2 "MIXER:Current/InCh/Label/Name" 72 1 0 8 "ch" "" string any rw 1
OK prminfo 3 "MIXER:Current/InCh/Label/Color" 72 1 0 8 "Blue" "" string any rw 1
OK prminfo 4 "MIXER:Current/InCh/ToMix/On" 72 24 0 1 1 "" integer any rw 1
OK prminfo 5 "MIXER:Current/InCh/Channel/Link" 72 1 0 8 "" "" binary any rw 1
OK prminfo 6 "MIXER:Current/Meter/InCh" 72 1 0 127 0 "" mtr any r 1
OK scninfo 1000 "MIXER:Lib/Scene" 300 1 0 300 0 "" scene any rw 1
ERROR prminfo "MIXER:Current/Bogus" UnknownAddress
"""

LEVEL = "MIXER_Current/InCh/Fader/Level"
ON = "MIXER_Current/InCh/Fader/On"
NAME = "MIXER_Current/InCh/Label/Name"
COLOR = "MIXER_Current/InCh/Label/Color"
TO_MIX_ON = "MIXER_Current/InCh/ToMix/On"
LINK = "MIXER_Current/InCh/Channel/Link"
METER = "MIXER_Current/Meter/InCh"
SCENE = "MIXER_Lib/Scene"


@pytest.fixture
def catalog():
    return load_catalog(CATALOG_SOURCE, ["Lead Vocal", "Pastor"])


@pytest.fixture
def transport():
    transport = MagicMock()
    transport.is_closing.return_value = False
    transport.get_extra_info.return_value = ("192.168.0.128", 49280)
    return transport
